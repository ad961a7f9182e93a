"""Top-level client wiring hub connections, relay, solver and services together."""

from __future__ import annotations

import logging

import requests

from .assets import AssetService
from .config import SodaxConfig
from .connections import Web3Connection
from .exceptions import InvalidSpokeProviderError, NetworkError, ValidationError
from .hub.bridge import AssetBridgeService
from .hub.wallet import HubWalletAbstraction
from .intents import IntentBuilder
from .registry import AssetConfigRegistry, default_registry
from .relay import RelayClient
from .settlement import IntentSettlementService
from .solver import SolverApiClient
from .spoke.base import SpokeProvider
from .spoke.evm import EvmSpokeProvider, SonicSpokeProvider
from .spoke.wallet import (
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
from .types import ChainFamily

logger = logging.getLogger(__name__)

_WALLET_PROVIDERS: dict[ChainFamily, type[WalletSpokeProvider]] = {
    ChainFamily.BITCOIN: BitcoinSpokeProvider,
    ChainFamily.SOLANA: SolanaSpokeProvider,
    ChainFamily.STELLAR: StellarSpokeProvider,
    ChainFamily.SUI: SuiSpokeProvider,
    ChainFamily.INJECTIVE: InjectiveSpokeProvider,
    ChainFamily.ICON: IconSpokeProvider,
    ChainFamily.STACKS: StacksSpokeProvider,
}


class SodaxClient:
    """Entry point for intent settlement and asset bridging.

    ``connect()`` must be called before any operation that touches the hub
    chain. Spoke providers are created per chain and passed into each call.
    """

    def __init__(
        self,
        config: SodaxConfig | None = None,
        *,
        registry: AssetConfigRegistry | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._config = (config or SodaxConfig()).with_defaults()
        self._registry = registry or default_registry()
        self._session = session or requests.Session()

        hub = self._config.hub
        self._hub_connection = Web3Connection(
            hub.rpc_url, request_timeout=self._config.request_timeout, network_name=hub.chain_id
        )
        self._builder = IntentBuilder(self._registry, hub_chain_id=hub.chain_id)
        self._hub_wallets = HubWalletAbstraction(self._hub_connection, hub, self._registry)
        self._bridge = AssetBridgeService(self._hub_connection, hub, self._registry)
        self._relay = RelayClient(self._config.relay, self._session)
        self._solver = SolverApiClient(self._config.solver, self._session, self._builder)
        self._intents = IntentSettlementService(
            self._config,
            self._hub_connection,
            self._builder,
            self._hub_wallets,
            self._relay,
            self._solver,
        )
        self._assets = AssetService(
            self._registry,
            self._bridge,
            self._hub_wallets,
            self._relay,
            partner_fee=self._config.bridge_partner_fee,
        )
        self._spoke_connections: list[Web3Connection] = []

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------
    def connect(self) -> None:
        try:
            self._hub_connection.connect()
        except (ValidationError, NetworkError):
            self.disconnect()
            raise
        except Exception as exc:  # pragma: no cover
            self.disconnect()
            raise NetworkError(
                "Failed to initialise hub connection",
                endpoint=self._config.hub.rpc_url,
                details={"error": str(exc)},
            ) from exc

    def disconnect(self) -> None:
        for connection in self._spoke_connections:
            connection.disconnect()
        self._spoke_connections.clear()
        self._hub_connection.disconnect()

    def is_connected(self) -> bool:
        return self._hub_connection.is_connected()

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------
    @property
    def config(self) -> SodaxConfig:
        return self._config

    @property
    def registry(self) -> AssetConfigRegistry:
        return self._registry

    @property
    def intents(self) -> IntentSettlementService:
        return self._intents

    @property
    def assets(self) -> AssetService:
        return self._assets

    @property
    def bridge(self) -> AssetBridgeService:
        return self._bridge

    @property
    def hub_wallets(self) -> HubWalletAbstraction:
        return self._hub_wallets

    @property
    def relay(self) -> RelayClient:
        return self._relay

    @property
    def solver(self) -> SolverApiClient:
        return self._solver

    # ------------------------------------------------------------------
    # Spoke providers
    # ------------------------------------------------------------------
    def evm_spoke_provider(self, chain_id: str, rpc_url: str, private_key: str) -> SpokeProvider:
        """Connect to an EVM spoke chain (or the hub itself) with a local signer."""

        chain_config = self._registry.get_spoke_chain(chain_id)
        connection = Web3Connection(
            rpc_url,
            request_timeout=self._config.request_timeout,
            private_key=private_key,
            network_name=chain_id,
        )
        connection.connect()
        self._spoke_connections.append(connection)

        provider: SpokeProvider
        if chain_config.family is ChainFamily.SONIC:
            provider = SonicSpokeProvider(
                chain_config,
                connection,
                wait_for_receipt=self._config.wait_for_receipt,
                receipt_timeout=self._config.receipt_timeout,
            )
        else:
            provider = EvmSpokeProvider(
                chain_config,
                connection,
                hub_chain_id=self._config.hub.chain_id,
                wait_for_receipt=self._config.wait_for_receipt,
                receipt_timeout=self._config.receipt_timeout,
            )
        logger.info("Spoke provider ready for %s (%s)", chain_id, provider.get_wallet_address())
        return provider

    def wallet_spoke_provider(self, chain_id: str, wallet: WalletSigner) -> SpokeProvider:
        """Spoke provider for a non-EVM chain backed by ``wallet``."""

        chain_config = self._registry.get_spoke_chain(chain_id)
        provider_cls = _WALLET_PROVIDERS.get(chain_config.family)
        if provider_cls is None:
            raise InvalidSpokeProviderError(
                f"{chain_id} is an EVM chain; use evm_spoke_provider",
                expected_chain=chain_id,
                provider_chain=chain_config.family.value,
            )
        return provider_cls(chain_config, wallet, hub_chain_id=self._config.hub.chain_id)
