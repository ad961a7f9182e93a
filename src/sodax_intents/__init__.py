"""Sodax intents - cross-chain intent settlement and asset bridging.

This library provides a Python interface for creating swap intents on spoke
chains, relaying them to the Sonic hub and bridging assets in and out of hub
vaults.
"""

from .assets import AssetService
from .client import SodaxClient
from .codec import decode_address, encode_address
from .config import HubChainConfig, RelayConfig, SodaxConfig, SolverConfig
from .exceptions import (
    AllowanceCheckFailedError,
    ApprovalFailedError,
    HubAssetNotFoundError,
    IntentNotFoundError,
    InvalidAmountError,
    InvalidParamsError,
    InvalidSpokeProviderError,
    InvalidStateTransitionError,
    NetworkError,
    RelayTimeoutError,
    SodaxError,
    SubmitTxFailedError,
    ValidationError,
)
from .hub import AssetBridgeService, HubWalletAbstraction
from .intents import IntentBuilder, calculate_fee_amount
from .registry import AssetConfigRegistry, SpokeChainConfig, default_registry
from .relay import RelayClient
from .settlement import IntentLifecycle, IntentSettlementService
from .solver import SolverApiClient
from .spoke import (
    EvmSpokeProvider,
    SonicSpokeProvider,
    SpokeProvider,
    WalletSigner,
    WalletSpokeProvider,
)
from .types import (
    BridgeLimit,
    BridgeLimitType,
    ChainFamily,
    CreateIntentParams,
    ErrorCode,
    Intent,
    IntentDeliveryInfo,
    IntentLifecycleState,
    IntentStatusCode,
    PacketData,
    PacketStatus,
    PartnerFeeAmount,
    PartnerFeePercentage,
    QuoteRequest,
    QuoteType,
    Response,
)

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "SodaxClient",
    "IntentSettlementService",
    "AssetService",
    # Building blocks
    "AssetBridgeService",
    "AssetConfigRegistry",
    "HubWalletAbstraction",
    "IntentBuilder",
    "IntentLifecycle",
    "RelayClient",
    "SolverApiClient",
    "SpokeChainConfig",
    "default_registry",
    # Spoke providers
    "SpokeProvider",
    "EvmSpokeProvider",
    "SonicSpokeProvider",
    "WalletSpokeProvider",
    "WalletSigner",
    # Configuration
    "SodaxConfig",
    "HubChainConfig",
    "RelayConfig",
    "SolverConfig",
    # Types and enums
    "BridgeLimit",
    "BridgeLimitType",
    "ChainFamily",
    "CreateIntentParams",
    "ErrorCode",
    "Intent",
    "IntentDeliveryInfo",
    "IntentLifecycleState",
    "IntentStatusCode",
    "PacketData",
    "PacketStatus",
    "PartnerFeeAmount",
    "PartnerFeePercentage",
    "QuoteRequest",
    "QuoteType",
    "Response",
    # Exceptions
    "SodaxError",
    "ValidationError",
    "InvalidAmountError",
    "InvalidParamsError",
    "HubAssetNotFoundError",
    "InvalidSpokeProviderError",
    "AllowanceCheckFailedError",
    "ApprovalFailedError",
    "SubmitTxFailedError",
    "RelayTimeoutError",
    "IntentNotFoundError",
    "NetworkError",
    "InvalidStateTransitionError",
    # Utility functions
    "encode_address",
    "decode_address",
    "calculate_fee_amount",
]
