"""Hub chain services: wallet derivation and asset bridging."""

from .bridge import AssetBridgeService, translate_incoming, translate_outgoing
from .wallet import HubWalletAbstraction

__all__ = [
    "AssetBridgeService",
    "HubWalletAbstraction",
    "translate_incoming",
    "translate_outgoing",
]
