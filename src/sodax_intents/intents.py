"""Intent construction, partner fee accounting and settlement contract encoding."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from hexbytes import HexBytes
from web3 import Web3

from .codec import encode_address
from .constants import (
    FEE_DATA_TYPE,
    FEE_PERCENTAGE_SCALE,
    HUB_CHAIN_ID,
    MAX_PARTNER_FEE_BPS,
)
from .evm_utils import encode_approve, encode_function_call, event_topic, iter_logs
from .exceptions import HubAssetNotFoundError, InvalidAmountError, InvalidParamsError
from .registry import AssetConfigRegistry
from .types import (
    INTENT_ABI_TYPE,
    INTENT_STATE_ABI_TYPE,
    ContractCall,
    CreateIntentParams,
    Intent,
    IntentOnchainState,
    PartnerFee,
    PartnerFeeAmount,
    PartnerFeePercentage,
)

logger = logging.getLogger(__name__)

CREATE_INTENT_SIGNATURE = f"createIntent({INTENT_ABI_TYPE})"
CANCEL_INTENT_SIGNATURE = f"cancelIntent({INTENT_ABI_TYPE})"
FILL_INTENT_SIGNATURE = f"fillIntent({INTENT_ABI_TYPE},uint256,uint256,uint256)"
INTENT_STATES_SIGNATURE = "intentStates(bytes32)"

INTENT_CREATED_TOPIC = event_topic(f"IntentCreated(bytes32,{INTENT_ABI_TYPE})")
INTENT_FILLED_TOPIC = event_topic(f"IntentFilled(bytes32,{INTENT_STATE_ABI_TYPE})")

_FEE_DATA_TYPES = ["uint256", "address"]


# ----------------------------------------------------------------------
# Fees
# ----------------------------------------------------------------------
def calculate_percentage_fee(amount: int, bps: int) -> int:
    return amount * bps // FEE_PERCENTAGE_SCALE


def calculate_fee_amount(amount: int, fee: PartnerFee | None) -> int:
    """Return the partner fee taken out of ``amount``.

    Percentages are basis points and may not exceed 100 (1%); values above
    that are rejected rather than clamped.
    """

    if fee is None:
        return 0

    if isinstance(fee, PartnerFeeAmount):
        if fee.amount < 0:
            raise InvalidAmountError("Partner fee amount must not be negative", field="fee", value=fee.amount)
        if fee.amount > amount:
            raise InvalidAmountError(
                f"Partner fee {fee.amount} exceeds amount {amount}",
                field="fee",
                value=fee.amount,
                details={"amount": amount},
            )
        return fee.amount

    if isinstance(fee, PartnerFeePercentage):
        if not 0 <= fee.percentage <= MAX_PARTNER_FEE_BPS:
            raise InvalidParamsError(
                f"Partner fee percentage must be between 0 and {MAX_PARTNER_FEE_BPS} bps",
                field="fee",
                value=fee.percentage,
            )
        return calculate_percentage_fee(amount, fee.percentage)

    raise InvalidParamsError(f"Unsupported partner fee type {type(fee).__name__}", field="fee", value=fee)


def encode_fee_data(fee: PartnerFee | None, fee_amount: int) -> bytes:
    """Encode fee routing for the settlement contract, ``b""`` without a fee."""

    if fee is None:
        return b""
    receiver = Web3.to_checksum_address(fee.address)
    return bytes([FEE_DATA_TYPE]) + abi_encode(_FEE_DATA_TYPES, [fee_amount, receiver])


def decode_fee_data(data: bytes) -> tuple[int, str] | None:
    """Return ``(fee_amount, receiver)`` from intent data, ``None`` when empty."""

    if not data:
        return None
    if data[0] != FEE_DATA_TYPE:
        raise InvalidParamsError("Intent data does not carry fee routing", field="data", value=data[:1].hex())
    fee_amount, receiver = abi_decode(_FEE_DATA_TYPES, bytes(data[1:]))
    return int(fee_amount), Web3.to_checksum_address(receiver)


# ----------------------------------------------------------------------
# Intent builder
# ----------------------------------------------------------------------
def _require_hub_address(field: str, value: str) -> None:
    if not isinstance(value, str) or not Web3.is_address(value):
        raise InvalidParamsError(f"{field} must be a hub chain address", field=field, value=value)


@dataclass(frozen=True)
class BuiltIntent:
    intent: Intent
    fee_amount: int
    fee_data: bytes

    @property
    def total_amount(self) -> int:
        """Amount the user must deposit: intent input plus partner fee."""
        return self.intent.input_amount + self.fee_amount


class IntentBuilder:
    """Turn spoke-side swap parameters into a canonical hub intent."""

    def __init__(self, registry: AssetConfigRegistry, hub_chain_id: str = HUB_CHAIN_ID) -> None:
        self._registry = registry
        self._hub_chain_id = hub_chain_id

    def resolve_hub_token(self, chain_id: str, token: str) -> str:
        descriptor = self._registry.get_hub_asset(chain_id, token)
        if descriptor is not None:
            return Web3.to_checksum_address(descriptor.asset)
        if chain_id == self._hub_chain_id and Web3.is_address(token):
            # Hub-native tokens need no translation
            return Web3.to_checksum_address(token)
        raise HubAssetNotFoundError(
            f"Hub asset not found for token {token} on {chain_id}", chain_id=chain_id, token=token
        )

    def build_intent(
        self,
        params: CreateIntentParams,
        creator: str,
        fee: PartnerFee | None = None,
    ) -> BuiltIntent:
        """Build an intent whose input amount is ``params.input_amount`` minus the fee.

        Raises:
            InvalidAmountError: If the amount is not positive or the fee consumes it
            InvalidParamsError: If a chain, address or fee setting is malformed
            HubAssetNotFoundError: If either token has no hub representation
        """

        if params.input_amount <= 0:
            raise InvalidAmountError(
                "Input amount must be greater than 0", field="input_amount", value=params.input_amount
            )
        if params.min_output_amount < 0:
            raise InvalidAmountError(
                "Minimum output amount must not be negative",
                field="min_output_amount",
                value=params.min_output_amount,
            )
        if params.deadline < 0:
            raise InvalidParamsError("Deadline must not be negative", field="deadline", value=params.deadline)
        _require_hub_address("creator", creator)
        _require_hub_address("solver", params.solver)
        if fee is not None:
            _require_hub_address("fee", fee.address)

        input_token = self.resolve_hub_token(params.src_chain, params.input_token)
        output_token = self.resolve_hub_token(params.dst_chain, params.output_token)

        fee_amount = calculate_fee_amount(params.input_amount, fee)
        net_amount = params.input_amount - fee_amount
        if net_amount <= 0:
            raise InvalidAmountError(
                "Input amount after partner fee must be greater than 0",
                field="input_amount",
                value=params.input_amount,
                details={"fee_amount": fee_amount},
            )
        fee_data = encode_fee_data(fee, fee_amount)

        intent = Intent(
            intent_id=secrets.randbits(256),
            creator=Web3.to_checksum_address(creator),
            input_token=input_token,
            output_token=output_token,
            input_amount=net_amount,
            min_output_amount=params.min_output_amount,
            deadline=params.deadline,
            allow_partial_fill=params.allow_partial_fill,
            src_chain=self._registry.get_relay_chain_id(params.src_chain),
            dst_chain=self._registry.get_relay_chain_id(params.dst_chain),
            src_address=encode_address(params.src_chain, params.src_address),
            dst_address=encode_address(params.dst_chain, params.dst_address),
            solver=Web3.to_checksum_address(params.solver),
            data=fee_data if fee is not None else bytes(params.data),
        )
        logger.debug(
            "Built intent %s (input=%s, fee=%s, src=%s, dst=%s)",
            intent.intent_id,
            intent.input_amount,
            fee_amount,
            intent.src_chain,
            intent.dst_chain,
        )
        return BuiltIntent(intent=intent, fee_amount=fee_amount, fee_data=fee_data)


# ----------------------------------------------------------------------
# Settlement contract encoding
# ----------------------------------------------------------------------
def get_intent_hash(intent: Intent) -> HexBytes:
    return intent.hash


def encode_create_intent(intent: Intent, contract: str, value: int = 0) -> ContractCall:
    return ContractCall(
        address=contract,
        value=value,
        data=encode_function_call(CREATE_INTENT_SIGNATURE, [intent.as_tuple()]),
    )


def encode_cancel_intent(intent: Intent, contract: str) -> ContractCall:
    return ContractCall(
        address=contract,
        value=0,
        data=encode_function_call(CANCEL_INTENT_SIGNATURE, [intent.as_tuple()]),
    )


def encode_fill_intent(
    intent: Intent,
    input_amount: int,
    output_amount: int,
    external_fill_id: int,
    contract: str,
) -> ContractCall:
    return ContractCall(
        address=contract,
        value=0,
        data=encode_function_call(
            FILL_INTENT_SIGNATURE,
            [intent.as_tuple(), input_amount, output_amount, external_fill_id],
        ),
    )


def build_create_intent_calls(intent: Intent, fee_amount: int, contract: str) -> list[ContractCall]:
    """Approve the settlement contract for input plus fee, then create the intent."""

    return [
        encode_approve(intent.input_token, contract, intent.input_amount + fee_amount),
        encode_create_intent(intent, contract),
    ]


def decode_intent_state(values: Sequence[Any]) -> IntentOnchainState:
    return IntentOnchainState.from_tuple(values)


def parse_intent_created(receipt: Any, contract: str) -> list[tuple[HexBytes, Intent]]:
    """Decode ``IntentCreated`` logs emitted by ``contract`` in a receipt."""

    created: list[tuple[HexBytes, Intent]] = []
    for data in iter_logs(receipt, contract, INTENT_CREATED_TOPIC):
        intent_hash, values = abi_decode(["bytes32", INTENT_ABI_TYPE], data)
        created.append((HexBytes(intent_hash), Intent.from_tuple(values)))
    return created


def parse_intent_filled(receipt: Any, contract: str) -> list[tuple[HexBytes, IntentOnchainState]]:
    filled: list[tuple[HexBytes, IntentOnchainState]] = []
    for data in iter_logs(receipt, contract, INTENT_FILLED_TOPIC):
        intent_hash, values = abi_decode(["bytes32", INTENT_STATE_ABI_TYPE], data)
        filled.append((HexBytes(intent_hash), IntentOnchainState.from_tuple(values)))
    return filled
