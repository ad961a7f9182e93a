"""Deterministic hub wallet address derivation."""

from __future__ import annotations

import logging

from web3 import Web3

from ..codec import encode_address
from ..config import HubChainConfig
from ..connections import Web3Connection
from ..constants import get_relay_chain_id
from ..exceptions import NetworkError
from ..registry import AssetConfigRegistry

logger = logging.getLogger(__name__)

_FACTORY_DEPLOYED_ADDRESS = "getDeployedAddress(uint256,bytes)"
_ROUTER_DEPLOYED_ADDRESS = "getDeployedAddress(address)"


class HubWalletAbstraction:
    """Resolve the hub wallet that acts on behalf of a spoke address.

    The factory returns the deployed or counterfactual address, so the same
    ``(chain, address)`` pair always maps to the same hub wallet. Nothing is
    deployed by these reads.
    """

    def __init__(
        self,
        connection: Web3Connection,
        hub: HubChainConfig,
        registry: AssetConfigRegistry | None = None,
    ) -> None:
        self._connection = connection
        self._hub = hub
        self._registry = registry

    @property
    def hub_chain_id(self) -> str:
        return self._hub.chain_id

    def get_user_hub_wallet_address(self, spoke_chain_id: str, spoke_address: bytes) -> str:
        """Read the hub wallet for an already encoded spoke address.

        Raises:
            NetworkError: If the factory read fails; the wallet is then unknown
        """

        if self._registry is not None:
            relay_chain_id = self._registry.get_relay_chain_id(spoke_chain_id)
        else:
            relay_chain_id = get_relay_chain_id(spoke_chain_id)
        (address,) = self._connection.call(
            self._hub.hub_wallet_factory,
            _FACTORY_DEPLOYED_ADDRESS,
            [relay_chain_id, bytes(spoke_address)],
            ["address"],
        )
        wallet = Web3.to_checksum_address(address)
        logger.debug(
            "Hub wallet for %s/%s is %s", spoke_chain_id, bytes(spoke_address).hex(), wallet
        )
        return wallet

    def derive_user_wallet_address(self, spoke_chain_id: str, spoke_address: str) -> str:
        """Return the hub address that owns assets for ``spoke_address``.

        On the hub chain the user's own address is used directly.
        """

        if spoke_chain_id == self._hub.chain_id:
            return Web3.to_checksum_address(spoke_address)
        return self.get_user_hub_wallet_address(
            spoke_chain_id, encode_address(spoke_chain_id, spoke_address)
        )

    def get_user_router(self, address: str) -> str:
        """Return the wallet router proxy used for batched calls on the hub chain."""

        return read_user_router(self._connection, self._hub.wallet_router, address)


def read_user_router(connection: Web3Connection, wallet_router: str | None, owner: str) -> str:
    """Read the router proxy that ``wallet_router`` deploys for ``owner``.

    Raises:
        NetworkError: If the router cannot be resolved
    """

    if not wallet_router:
        raise NetworkError(f"No wallet router configured to resolve {owner}")
    owner = Web3.to_checksum_address(owner)
    (router,) = connection.call(wallet_router, _ROUTER_DEPLOYED_ADDRESS, [owner], ["address"])
    if int(router, 16) == 0:
        raise NetworkError(f"Wallet router returned no router for {owner}", endpoint=wallet_router)
    return Web3.to_checksum_address(router)
