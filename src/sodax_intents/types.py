"""Type definitions and data models for the Sodax intent settlement client."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from eth_abi import encode as abi_encode
from eth_typing import HexStr
from hexbytes import HexBytes
from web3 import Web3

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

INTENT_ABI_TYPE = (
    "(uint256,address,address,address,uint256,uint256,uint256,bool,"
    "uint256,uint256,bytes,bytes,address,bytes)"
)
INTENT_STATE_ABI_TYPE = "(bool,uint256,uint256,bool)"


class ErrorCode(str, Enum):
    """Failure kinds surfaced through ``Response.error_code``."""

    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_PARAMS = "INVALID_PARAMS"
    HUB_ASSET_NOT_FOUND = "HUB_ASSET_NOT_FOUND"
    ALLOWANCE_CHECK_FAILED = "ALLOWANCE_CHECK_FAILED"
    APPROVAL_FAILED = "APPROVAL_FAILED"
    SUBMIT_TX_FAILED = "SUBMIT_TX_FAILED"
    RELAY_TIMEOUT = "RELAY_TIMEOUT"
    RELAY_FAILED = "RELAY_FAILED"
    INVALID_SPOKE_PROVIDER = "INVALID_SPOKE_PROVIDER"
    CREATION_FAILED = "CREATION_FAILED"
    POST_EXECUTION_FAILED = "POST_EXECUTION_FAILED"
    QUOTE_FAILED = "QUOTE_FAILED"
    INTENT_NOT_FOUND = "INTENT_NOT_FOUND"
    UNKNOWN = "UNKNOWN"


class ChainFamily(Enum):
    """Chain families with a dedicated spoke provider."""

    EVM = "evm"
    SONIC = "sonic"
    BITCOIN = "bitcoin"
    SOLANA = "solana"
    STELLAR = "stellar"
    SUI = "sui"
    INJECTIVE = "injective"
    ICON = "icon"
    STACKS = "stacks"


class PacketStatus(str, Enum):
    """Delivery status reported by the relay network."""

    PENDING = "pending"
    VALIDATING = "validating"
    EXECUTING = "executing"
    EXECUTED = "executed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PacketStatus.EXECUTED, PacketStatus.FAILED)


class IntentLifecycleState(Enum):
    """Client-side lifecycle of a single intent."""

    BUILT = "built"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    RELAYING = "relaying"
    EXECUTED = "executed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class QuoteType(str, Enum):
    EXACT_INPUT = "exact_input"
    EXACT_OUTPUT = "exact_output"


class IntentStatusCode(IntEnum):
    """Solver-side execution status of an intent."""

    NOT_FOUND = -1
    NOT_STARTED_YET = 1  # Solver has not picked the intent up
    STARTED_NOT_FINISHED = 2
    SOLVED = 3
    FAILED = 4


class SolverErrorCode(IntEnum):
    """Error codes returned by the solver API in ``detail.code``."""

    NO_PATH_FOUND = -4
    NO_PRIVATE_LIQUIDITY = -5
    NOT_ENOUGH_PRIVATE_LIQUIDITY = -8
    NO_EXECUTION_MODULE_FOUND = -7
    QUOTE_NOT_FOUND = -8  # Alias; the API reuses -8 when executing a stale quote
    QUOTE_NOT_MATCH = -9
    INTENT_DATA_NOT_MATCH_QUOTE = -10
    NO_GAS_HANDLER_FOR_BLOCKCHAIN = -11
    INTENT_NOT_FOUND = -12
    QUOTE_EXPIRED = -13
    MAX_INPUT_AMOUNT = -14
    MAX_DIFF_OUTPUT = -15
    STOPPED = -16
    NO_ORACLE_MODULE_FOUND = -17
    NEGATIVE_INPUT_AMOUNT = -18
    INTENT_ALREADY_IN_ORDERBOOK = -19
    CREATE_INTENT_ORDER_FAILED = -998
    UNKNOWN = -999

    @classmethod
    def parse(cls, value: Any) -> SolverErrorCode:
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN


@dataclass
class Response:
    """Tagged result returned by every public settlement operation."""

    success: bool
    value: Any = None
    error: str | None = None
    error_code: ErrorCode | None = None
    tx_hash: str | None = None
    raw_response: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        code: ErrorCode,
        error: str,
        raw_response: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Response:
        return cls(success=False, error=error, error_code=code, raw_response=raw_response, **kwargs)


Address = str  # Hub or spoke chain address in its native string form


@dataclass(frozen=True)
class Intent:
    """Hub settlement contract intent, fields in contract order."""

    intent_id: int
    creator: Address
    input_token: Address
    output_token: Address
    input_amount: int
    min_output_amount: int
    deadline: int
    allow_partial_fill: bool
    src_chain: int
    dst_chain: int
    src_address: bytes
    dst_address: bytes
    solver: Address = ZERO_ADDRESS
    data: bytes = b""

    def as_tuple(self) -> tuple[Any, ...]:
        """Return the intent as a tuple consumable by eth_abi."""

        return (
            self.intent_id,
            Web3.to_checksum_address(self.creator),
            Web3.to_checksum_address(self.input_token),
            Web3.to_checksum_address(self.output_token),
            self.input_amount,
            self.min_output_amount,
            self.deadline,
            self.allow_partial_fill,
            self.src_chain,
            self.dst_chain,
            bytes(self.src_address),
            bytes(self.dst_address),
            Web3.to_checksum_address(self.solver),
            bytes(self.data),
        )

    @classmethod
    def from_tuple(cls, values: Sequence[Any]) -> Intent:
        if len(values) != 14:
            raise ValueError(f"Intent tuple must have 14 fields, got {len(values)}")

        return cls(
            intent_id=int(values[0]),
            creator=Web3.to_checksum_address(values[1]),
            input_token=Web3.to_checksum_address(values[2]),
            output_token=Web3.to_checksum_address(values[3]),
            input_amount=int(values[4]),
            min_output_amount=int(values[5]),
            deadline=int(values[6]),
            allow_partial_fill=bool(values[7]),
            src_chain=int(values[8]),
            dst_chain=int(values[9]),
            src_address=bytes(values[10]),
            dst_address=bytes(values[11]),
            solver=Web3.to_checksum_address(values[12]),
            data=bytes(values[13]),
        )

    @property
    def hash(self) -> HexBytes:
        """keccak256 of the ABI encoded intent, as computed by the contract."""

        return HexBytes(Web3.keccak(abi_encode([INTENT_ABI_TYPE], [self.as_tuple()])))


@dataclass(frozen=True)
class IntentOnchainState:
    exists: bool
    remaining_input: int
    received_output: int
    pending_payment: bool

    @classmethod
    def from_tuple(cls, values: Sequence[Any]) -> IntentOnchainState:
        exists, remaining, received, pending = values
        return cls(bool(exists), int(remaining), int(received), bool(pending))


@dataclass(frozen=True)
class CreateIntentParams:
    """User-facing swap parameters expressed in spoke-chain terms."""

    input_token: str
    output_token: str
    input_amount: int
    min_output_amount: int
    src_chain: str
    dst_chain: str
    src_address: str
    dst_address: str
    deadline: int = 0
    allow_partial_fill: bool = False
    solver: Address = ZERO_ADDRESS
    data: bytes = b""


@dataclass(frozen=True)
class PacketData:
    """Relay network delivery record."""

    src_chain_id: int
    src_tx_hash: str
    src_address: str
    status: PacketStatus
    dst_chain_id: int
    conn_sn: int
    dst_address: str
    dst_tx_hash: str
    signatures: tuple[str, ...] = ()
    payload: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PacketData:
        raw_status = str(data.get("status") or "pending").lower()
        try:
            status = PacketStatus(raw_status)
        except ValueError:
            logger.warning("Unknown relay packet status %r; treating as pending", raw_status)
            status = PacketStatus.PENDING

        return cls(
            src_chain_id=int(data.get("src_chain_id") or 0),
            src_tx_hash=str(data.get("src_tx_hash") or ""),
            src_address=str(data.get("src_address") or ""),
            status=status,
            dst_chain_id=int(data.get("dst_chain_id") or 0),
            conn_sn=int(data.get("conn_sn") or 0),
            dst_address=str(data.get("dst_address") or ""),
            dst_tx_hash=str(data.get("dst_tx_hash") or ""),
            signatures=tuple(str(sig) for sig in data.get("signatures") or ()),
            payload=str(data.get("payload") or ""),
        )


@dataclass(frozen=True)
class AssetDescriptor:
    """Hub representation of a spoke token."""

    asset: Address
    decimals: int
    vault: Address


@dataclass(frozen=True)
class VaultTokenInfo:
    """Per-token limits a hub vault applies to deposits."""

    decimals: int
    deposit_fee: int
    withdrawal_fee: int
    max_deposit: int
    is_supported: bool


@dataclass(frozen=True)
class VaultReserves:
    tokens: tuple[Address, ...]
    balances: tuple[int, ...]

    def balance_of(self, token: Address) -> int | None:
        target = token.lower()
        for reserve_token, balance in zip(self.tokens, self.balances):
            if reserve_token.lower() == target:
                return balance
        return None


class BridgeLimitType(str, Enum):
    DEPOSIT_LIMIT = "DEPOSIT_LIMIT"
    WITHDRAWAL_LIMIT = "WITHDRAWAL_LIMIT"


@dataclass(frozen=True)
class BridgeLimit:
    """Largest amount currently bridgeable between two tokens sharing a vault."""

    amount: int
    decimals: int
    type: BridgeLimitType


@dataclass(frozen=True)
class PartnerFeeAmount:
    address: Address
    amount: int


@dataclass(frozen=True)
class PartnerFeePercentage:
    address: Address
    percentage: int  # basis points, 100 = 1%


PartnerFee = PartnerFeeAmount | PartnerFeePercentage


@dataclass(frozen=True)
class ContractCall:
    """A single hub or EVM call, executed by a wallet contract or a signer."""

    address: Address
    value: int
    data: bytes

    def as_tuple(self) -> tuple[str, int, bytes]:
        return (Web3.to_checksum_address(self.address), self.value, bytes(self.data))


@dataclass(frozen=True)
class UnsignedTransaction:
    """A built but unsigned spoke transaction.

    ``payload`` is an EVM transaction dict for EVM families and a logical
    description (target, method, arguments) for wallet-backed families.
    """

    chain_id: str
    payload: Mapping[str, Any]
    action: str = ""


@dataclass(frozen=True)
class SignedTransaction:
    chain_id: str
    raw: Any
    action: str = ""


@dataclass(frozen=True)
class SubmittedTransaction:
    chain_id: str
    tx_hash: str


TxResult = UnsignedTransaction | SubmittedTransaction


@dataclass(frozen=True)
class IntentDeliveryInfo:
    src_chain_id: str
    src_tx_hash: str
    src_address: str
    dst_chain_id: str
    dst_tx_hash: str
    dst_address: str


@dataclass(frozen=True)
class QuoteRequest:
    token_src: str
    token_dst: str
    token_src_chain_id: str
    token_dst_chain_id: str
    amount: int
    quote_type: QuoteType = QuoteType.EXACT_INPUT


@dataclass
class RelayRequest:
    """Body of a relay backend request."""

    action: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {"action": self.action, "params": dict(self.params)}


def to_hex(value: bytes | bytearray | str) -> HexStr:
    """Render bytes as a 0x-prefixed hex string."""

    if isinstance(value, str):
        return HexStr(value if value.startswith("0x") else f"0x{value}")
    return HexStr(HexBytes(value).to_0x_hex())
