"""Configuration containers for the Sodax intent settlement client."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .constants import (
    DEFAULT_DEADLINE_OFFSET,
    DEFAULT_HUB_RPC_URL,
    DEFAULT_RELAYER_API_ENDPOINT,
    DEFAULT_SOLVER_API_ENDPOINT,
    HUB_ASSET_MANAGER,
    HUB_BNUSD_VAULT,
    HUB_CHAIN_ID,
    HUB_INTENTS_CONTRACT,
    HUB_STATA_TOKEN_FACTORY,
    HUB_WALLET_FACTORY,
    HUB_WALLET_ROUTER,
    HUB_WRAPPED_NATIVE,
)
from .types import ZERO_ADDRESS, PartnerFee

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_RELAY_POLL_INTERVAL = 2.0
DEFAULT_RELAY_TIMEOUT = 120.0


@dataclass(frozen=True)
class HubChainConfig:
    """Addresses of the hub deployment the client settles against."""

    chain_id: str = HUB_CHAIN_ID
    rpc_url: str = DEFAULT_HUB_RPC_URL
    asset_manager: str = HUB_ASSET_MANAGER
    hub_wallet_factory: str = HUB_WALLET_FACTORY
    wallet_router: str = HUB_WALLET_ROUTER
    wrapped_native: str = HUB_WRAPPED_NATIVE
    stata_token_factory: str = HUB_STATA_TOKEN_FACTORY
    bnusd_vault: str = HUB_BNUSD_VAULT
    native_token: str = ZERO_ADDRESS


@dataclass(frozen=True)
class RelayConfig:
    """Relay backend endpoint and wait policy."""

    relayer_api_endpoint: str | None = None
    poll_interval: float = DEFAULT_RELAY_POLL_INTERVAL
    timeout: float = DEFAULT_RELAY_TIMEOUT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


@dataclass(frozen=True)
class SolverConfig:
    """Solver API endpoint and settlement contract."""

    solver_api_endpoint: str | None = None
    intents_contract: str = HUB_INTENTS_CONTRACT
    partner_fee: PartnerFee | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


@dataclass(frozen=True)
class SodaxConfig:
    """Aggregated configuration used to construct the settlement client."""

    hub: HubChainConfig = field(default_factory=HubChainConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    wait_for_receipt: bool = True
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    deadline_offset: int = DEFAULT_DEADLINE_OFFSET
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    bridge_partner_fee: PartnerFee | None = None

    def with_defaults(self) -> SodaxConfig:
        """Return a copy with default relay/solver endpoints filled in."""

        relay_url = self.relay.relayer_api_endpoint or DEFAULT_RELAYER_API_ENDPOINT
        solver_url = self.solver.solver_api_endpoint or DEFAULT_SOLVER_API_ENDPOINT

        return replace(
            self,
            hub=replace(self.hub, rpc_url=self.hub.rpc_url.rstrip("/")),
            relay=replace(self.relay, relayer_api_endpoint=relay_url.rstrip("/")),
            solver=replace(self.solver, solver_api_endpoint=solver_url.rstrip("/")),
        )
