from __future__ import annotations

from dataclasses import replace

import pytest
from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from web3 import Web3

from sodax_intents.constants import (
    ARBITRUM_MAINNET_CHAIN_ID,
    BASE_MAINNET_CHAIN_ID,
    HUB_INTENTS_CONTRACT,
    SONIC_MAINNET_CHAIN_ID,
)
from sodax_intents.evm_utils import function_selector
from sodax_intents.exceptions import HubAssetNotFoundError, InvalidAmountError, InvalidParamsError
from sodax_intents.intents import (
    CREATE_INTENT_SIGNATURE,
    FILL_INTENT_SIGNATURE,
    INTENT_CREATED_TOPIC,
    INTENT_FILLED_TOPIC,
    IntentBuilder,
    build_create_intent_calls,
    calculate_fee_amount,
    encode_fill_intent,
    decode_fee_data,
    encode_fee_data,
    parse_intent_created,
    parse_intent_filled,
)
from sodax_intents.registry import AssetConfigRegistry
from sodax_intents.types import (
    INTENT_ABI_TYPE,
    INTENT_STATE_ABI_TYPE,
    CreateIntentParams,
    Intent,
    PartnerFeeAmount,
    PartnerFeePercentage,
)

FEE_RECEIVER = "0x0000000000000000000000000000000000000FEE"
CREATOR = "0x2222222222222222222222222222222222222222"
ARBITRUM_USDC = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"
BASE_USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


def _params(amount: int = 1_000_000, **overrides: object) -> CreateIntentParams:
    values: dict[str, object] = {
        "input_token": ARBITRUM_USDC,
        "output_token": BASE_USDC,
        "input_amount": amount,
        "min_output_amount": 990_000,
        "src_chain": ARBITRUM_MAINNET_CHAIN_ID,
        "dst_chain": BASE_MAINNET_CHAIN_ID,
        "src_address": "0x" + "11" * 20,
        "dst_address": "0x" + "33" * 20,
        "deadline": 1_800_000_000,
    }
    values.update(overrides)
    return CreateIntentParams(**values)  # type: ignore[arg-type]


def test_percentage_fee_is_basis_points() -> None:
    assert calculate_fee_amount(1_000_000, PartnerFeePercentage(FEE_RECEIVER, 100)) == 10_000
    assert calculate_fee_amount(1_000_000, PartnerFeePercentage(FEE_RECEIVER, 0)) == 0
    assert calculate_fee_amount(1_000_000, None) == 0


def test_percentage_fee_above_one_percent_is_rejected() -> None:
    with pytest.raises(InvalidParamsError) as excinfo:
        calculate_fee_amount(1_000_000, PartnerFeePercentage(FEE_RECEIVER, 101))
    assert excinfo.value.value == 101


def test_fixed_fee_larger_than_amount_is_rejected() -> None:
    with pytest.raises(InvalidAmountError) as excinfo:
        calculate_fee_amount(500, PartnerFeeAmount(FEE_RECEIVER, 501))
    assert excinfo.value.details == {"amount": 500}


def test_fee_data_round_trip() -> None:
    fee = PartnerFeeAmount(FEE_RECEIVER, 1_000)
    data = encode_fee_data(fee, 1_000)

    assert data[0] == 1
    assert decode_fee_data(data) == (1_000, Web3.to_checksum_address(FEE_RECEIVER))
    assert encode_fee_data(None, 0) == b""
    assert decode_fee_data(b"") is None


def test_build_intent_deducts_fixed_fee(registry: AssetConfigRegistry) -> None:
    builder = IntentBuilder(registry)

    built = builder.build_intent(_params(), CREATOR, PartnerFeeAmount(FEE_RECEIVER, 1_000))
    intent = built.intent

    assert intent.input_amount == 999_000
    assert built.fee_amount == 1_000
    assert built.total_amount == 1_000_000
    assert decode_fee_data(intent.data) == (1_000, Web3.to_checksum_address(FEE_RECEIVER))
    assert intent.creator == CREATOR
    assert intent.input_token == Web3.to_checksum_address("0xdB7BdA65c3a1C51D64dC4444e418684677334109")
    assert intent.output_token == Web3.to_checksum_address("0x72E852545B024ddCbc5b70C1bCBDAA025164259C")
    assert intent.src_chain == 23
    assert intent.dst_chain == 30
    assert intent.src_address == bytes.fromhex("11" * 20)
    assert intent.dst_address == bytes.fromhex("33" * 20)


@pytest.mark.parametrize("amount", [1, 99, 10_000, 1_000_001, 123_456_789_012])
@pytest.mark.parametrize("bps", [0, 1, 37, 100])
def test_fee_conservation(registry: AssetConfigRegistry, amount: int, bps: int) -> None:
    builder = IntentBuilder(registry)
    fee = PartnerFeePercentage(FEE_RECEIVER, bps)

    built = builder.build_intent(_params(amount), CREATOR, fee)

    assert built.intent.input_amount + built.fee_amount == amount
    assert built.total_amount == amount


def test_build_intent_without_fee_keeps_caller_data(registry: AssetConfigRegistry) -> None:
    built = IntentBuilder(registry).build_intent(_params(data=b"\x05\x06"), CREATOR)

    assert built.fee_amount == 0
    assert built.intent.input_amount == 1_000_000
    assert built.intent.data == b"\x05\x06"


def test_fee_consuming_whole_amount_is_rejected(registry: AssetConfigRegistry) -> None:
    with pytest.raises(InvalidAmountError):
        IntentBuilder(registry).build_intent(_params(1_000), CREATOR, PartnerFeeAmount(FEE_RECEIVER, 1_000))


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_amount_is_rejected(registry: AssetConfigRegistry, amount: int) -> None:
    with pytest.raises(InvalidAmountError):
        IntentBuilder(registry).build_intent(_params(amount), CREATOR)


def test_unknown_input_token(registry: AssetConfigRegistry) -> None:
    with pytest.raises(HubAssetNotFoundError):
        IntentBuilder(registry).build_intent(_params(input_token="0x" + "99" * 20), CREATOR)


def test_hub_tokens_resolve_to_themselves(registry: AssetConfigRegistry) -> None:
    builder = IntentBuilder(registry)
    token = "0x" + "77" * 20

    assert builder.resolve_hub_token(SONIC_MAINNET_CHAIN_ID, token) == Web3.to_checksum_address(token)
    with pytest.raises(HubAssetNotFoundError):
        builder.resolve_hub_token(ARBITRUM_MAINNET_CHAIN_ID, token)


def test_intent_ids_are_unique(registry: AssetConfigRegistry) -> None:
    builder = IntentBuilder(registry)

    first = builder.build_intent(_params(), CREATOR).intent
    second = builder.build_intent(_params(), CREATOR).intent

    assert first.intent_id != second.intent_id
    assert first.hash != second.hash


def test_intent_tuple_round_trip_preserves_hash(registry: AssetConfigRegistry) -> None:
    intent = IntentBuilder(registry).build_intent(_params(), CREATOR).intent

    restored = Intent.from_tuple(intent.as_tuple())

    assert restored == intent
    assert restored.hash == Web3.keccak(abi_encode([INTENT_ABI_TYPE], [intent.as_tuple()]))


def test_create_calls_approve_input_plus_fee(registry: AssetConfigRegistry) -> None:
    built = IntentBuilder(registry).build_intent(_params(), CREATOR, PartnerFeeAmount(FEE_RECEIVER, 1_000))

    approve, create = build_create_intent_calls(built.intent, built.fee_amount, HUB_INTENTS_CONTRACT)

    assert approve.address == built.intent.input_token
    spender, amount = abi_decode(["address", "uint256"], approve.data[4:])
    assert spender.lower() == HUB_INTENTS_CONTRACT.lower()
    assert amount == 1_000_000
    assert create.address == HUB_INTENTS_CONTRACT
    assert create.data[:4] == function_selector(CREATE_INTENT_SIGNATURE)


def test_parse_intent_created_logs(registry: AssetConfigRegistry) -> None:
    intent = IntentBuilder(registry).build_intent(_params(), CREATOR).intent
    log_data = abi_encode(["bytes32", INTENT_ABI_TYPE], [bytes(intent.hash), intent.as_tuple()])
    receipt = {
        "logs": [
            {"address": "0x" + "99" * 20, "topics": [INTENT_CREATED_TOPIC], "data": log_data},
            {"address": HUB_INTENTS_CONTRACT.lower(), "topics": [INTENT_CREATED_TOPIC], "data": log_data},
        ]
    }

    parsed = parse_intent_created(receipt, HUB_INTENTS_CONTRACT)

    assert len(parsed) == 1
    intent_hash, decoded = parsed[0]
    assert intent_hash == intent.hash
    assert decoded == intent


def test_parse_intent_filled_logs() -> None:
    intent_hash = b"\x01" * 32
    log_data = abi_encode(["bytes32", INTENT_STATE_ABI_TYPE], [intent_hash, (True, 0, 995_000, False)])
    receipt = {"logs": [{"address": HUB_INTENTS_CONTRACT, "topics": [INTENT_FILLED_TOPIC], "data": log_data}]}

    ((parsed_hash, state),) = parse_intent_filled(receipt, HUB_INTENTS_CONTRACT)

    assert bytes(parsed_hash) == intent_hash
    assert state.exists is True
    assert state.remaining_input == 0
    assert state.received_output == 995_000


@pytest.mark.parametrize("field", ["solver", "creator"])
def test_malformed_hub_addresses_are_rejected(registry: AssetConfigRegistry, field: str) -> None:
    params = replace(_params(), solver="not-an-address") if field == "solver" else _params()
    creator = "0x1234" if field == "creator" else CREATOR

    with pytest.raises(InvalidParamsError) as excinfo:
        IntentBuilder(registry).build_intent(params, creator)
    assert excinfo.value.field == field


def test_fill_intent_argument_layout(registry: AssetConfigRegistry) -> None:
    intent = IntentBuilder(registry).build_intent(_params(), CREATOR).intent

    call = encode_fill_intent(intent, 1_000_000, 995_000, 42, HUB_INTENTS_CONTRACT)

    assert call.address == HUB_INTENTS_CONTRACT
    assert call.value == 0
    assert call.data[:4] == function_selector(FILL_INTENT_SIGNATURE)
    values, input_amount, output_amount, fill_id = abi_decode(
        [INTENT_ABI_TYPE, "uint256", "uint256", "uint256"], call.data[4:]
    )
    assert Intent.from_tuple(values) == intent
    assert (input_amount, output_amount, fill_id) == (1_000_000, 995_000, 42)
