"""Spoke chain providers, one per chain family."""

from .base import SpokeProvider, check_provider, check_relay_chain
from .evm import EvmSpokeProvider, SonicSpokeProvider
from .wallet import (
    BitcoinSpokeProvider,
    IconSpokeProvider,
    InjectiveSpokeProvider,
    SolanaSpokeProvider,
    StacksSpokeProvider,
    StellarSpokeProvider,
    SuiSpokeProvider,
    WalletSigner,
    WalletSpokeProvider,
)

__all__ = [
    "BitcoinSpokeProvider",
    "EvmSpokeProvider",
    "IconSpokeProvider",
    "InjectiveSpokeProvider",
    "SolanaSpokeProvider",
    "SonicSpokeProvider",
    "SpokeProvider",
    "StacksSpokeProvider",
    "StellarSpokeProvider",
    "SuiSpokeProvider",
    "WalletSigner",
    "WalletSpokeProvider",
    "check_provider",
    "check_relay_chain",
]
