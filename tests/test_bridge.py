from __future__ import annotations

from typing import TYPE_CHECKING, cast

import pytest
from eth_abi import decode as abi_decode
from web3 import Web3

from sodax_intents.config import HubChainConfig
from sodax_intents.connections import Web3Connection
from sodax_intents.constants import (
    ARBITRUM_MAINNET_CHAIN_ID,
    BASE_MAINNET_CHAIN_ID,
    HUB_ASSET_MANAGER,
    HUB_WRAPPED_NATIVE,
    OPTIMISM_MAINNET_CHAIN_ID,
    SOLANA_MAINNET_CHAIN_ID,
    SONIC_MAINNET_CHAIN_ID,
)
from sodax_intents.evm_utils import function_selector
from sodax_intents.exceptions import HubAssetNotFoundError, InvalidAmountError, InvalidParamsError
from sodax_intents.hub.bridge import AssetBridgeService, translate_incoming, translate_outgoing
from sodax_intents.registry import AssetConfigRegistry
from sodax_intents.types import ZERO_ADDRESS, PartnerFeeAmount, PartnerFeePercentage

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from conftest import FakeHubConnection

ARBITRUM_USDC = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"
ARBITRUM_BNUSD = "0xA256dd181C3f6E5eC68C6869f5D50a712d47212e"
SONIC_USDC = "0x29219dd400f2Bf60E5a23d13Be72B486D4038894"
BASE_USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
OPTIMISM_USDT = "0x94b008aA00579c1307B0EF2c499aD98a8ce58e58"
FEE_RECEIVER = Web3.to_checksum_address("0x" + "fe" * 20)
STATA_TOKEN = Web3.to_checksum_address("0x" + "5a" * 20)
RECIPIENT = "0x" + "44" * 20


def _bridge(connection: FakeHubConnection, registry: AssetConfigRegistry) -> AssetBridgeService:
    return AssetBridgeService(cast(Web3Connection, connection), HubChainConfig(), registry)


def test_translate_scales_to_vault_decimals() -> None:
    assert translate_incoming(1_000_000, 6) == 10**18
    assert translate_outgoing(10**18, 6) == 1_000_000
    assert translate_incoming(10**20, 20) == 10**18
    assert translate_outgoing(10**18, 20) == 10**20


def test_translate_outgoing_rounds_down() -> None:
    assert translate_outgoing(10**12 - 1, 6) == 0
    assert translate_outgoing(3 * 10**12 + 5, 6) == 3


@pytest.mark.parametrize("decimals", [6, 7, 8, 9, 18])
@pytest.mark.parametrize("amount", [1, 1_000_000, 123_456_789])
def test_translate_round_trip(amount: int, decimals: int) -> None:
    assert translate_outgoing(translate_incoming(amount, decimals), decimals) == amount


def test_wrap_into_vault_only(hub_connection: FakeHubConnection, registry: AssetConfigRegistry) -> None:
    descriptor = registry.require_hub_asset(ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC)

    calls = _bridge(hub_connection, registry).build_wrap_calls(
        ARBITRUM_USDC, ARBITRUM_MAINNET_CHAIN_ID, 1_000_000, descriptor.vault, RECIPIENT
    )

    assert [call.address for call in calls] == [descriptor.asset, descriptor.vault]
    assert calls[0].data[:4] == function_selector("approve(address,uint256)")
    assert calls[1].data[:4] == function_selector("deposit(address,uint256)")
    assert abi_decode(["address", "uint256"], calls[1].data[4:])[1] == 1_000_000
    assert hub_connection.calls == []


def test_wrap_into_pool_token(hub_connection: FakeHubConnection, registry: AssetConfigRegistry) -> None:
    hub_connection.stata_token = STATA_TOKEN

    calls = _bridge(hub_connection, registry).build_wrap_calls(
        ARBITRUM_USDC, ARBITRUM_MAINNET_CHAIN_ID, 1_000_000, STATA_TOKEN, RECIPIENT
    )

    assert len(calls) == 4
    spender, approved = abi_decode(["address", "uint256"], calls[2].data[4:])
    assert spender == STATA_TOKEN
    assert approved == 10**18
    assert calls[3].address == STATA_TOKEN
    shares, receiver = abi_decode(["uint256", "address"], calls[3].data[4:])
    assert shares == 10**18
    assert receiver == Web3.to_checksum_address(RECIPIENT)


def test_wrap_rejects_unrelated_pool_token(
    hub_connection: FakeHubConnection, registry: AssetConfigRegistry
) -> None:
    hub_connection.stata_token = STATA_TOKEN

    with pytest.raises(InvalidParamsError) as excinfo:
        _bridge(hub_connection, registry).build_wrap_calls(
            ARBITRUM_USDC, ARBITRUM_MAINNET_CHAIN_ID, 1_000_000, "0x" + "66" * 20, RECIPIENT
        )
    assert excinfo.value.details["expected"] == STATA_TOKEN


def test_wrap_validates_inputs(hub_connection: FakeHubConnection, registry: AssetConfigRegistry) -> None:
    bridge = _bridge(hub_connection, registry)

    with pytest.raises(InvalidAmountError):
        bridge.build_wrap_calls(ARBITRUM_USDC, ARBITRUM_MAINNET_CHAIN_ID, 0, STATA_TOKEN, RECIPIENT)
    with pytest.raises(HubAssetNotFoundError):
        bridge.build_wrap_calls("0x" + "99" * 20, ARBITRUM_MAINNET_CHAIN_ID, 1, STATA_TOKEN, RECIPIENT)


def test_unwrap_redeems_then_withdraws_to_spoke(
    hub_connection: FakeHubConnection, registry: AssetConfigRegistry
) -> None:
    hub_connection.stata_token = STATA_TOKEN
    hub_connection.share_ratio = 2
    descriptor = registry.require_hub_asset(ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC)
    recipient = bytes.fromhex("11" * 20)

    calls = _bridge(hub_connection, registry).build_unwrap_calls(
        ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC, 5 * 10**17, RECIPIENT, recipient
    )

    redeem, withdraw, transfer = calls
    assert redeem.address == STATA_TOKEN
    assert redeem.data[:4] == function_selector("redeem(uint256,address,address)")
    assert withdraw.address == descriptor.vault
    assert abi_decode(["address", "uint256"], withdraw.data[4:])[1] == 10**18
    assert transfer.address == HUB_ASSET_MANAGER
    asset, to, amount, data = abi_decode(["address", "bytes", "uint256", "bytes"], transfer.data[4:])
    assert asset == Web3.to_checksum_address(descriptor.asset)
    assert to == recipient
    assert amount == 1_000_000
    assert data == b""


def test_unwrap_bnusd_skips_redeem(hub_connection: FakeHubConnection, registry: AssetConfigRegistry) -> None:
    calls = _bridge(hub_connection, registry).build_unwrap_calls(
        ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_BNUSD, 10**18, RECIPIENT, bytes.fromhex("11" * 20)
    )

    assert len(calls) == 2
    assert "getStataToken(address)" not in hub_connection.signatures()


def test_unwrap_without_pool_token(hub_connection: FakeHubConnection, registry: AssetConfigRegistry) -> None:
    calls = _bridge(hub_connection, registry).build_unwrap_calls(
        SOLANA_MAINNET_CHAIN_ID,
        "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        10**18,
        RECIPIENT,
        bytes(32),
    )

    assert len(calls) == 2
    assert hub_connection.signatures() == ["getStataToken(address)"]


def test_withdraw_on_hub_is_plain_transfer(
    hub_connection: FakeHubConnection, registry: AssetConfigRegistry
) -> None:
    recipient = bytes.fromhex("44" * 20)

    (call,) = _bridge(hub_connection, registry).build_withdraw_calls(
        SONIC_MAINNET_CHAIN_ID, SONIC_USDC, 2_500, recipient
    )

    assert call.address == SONIC_USDC
    assert call.data[:4] == function_selector("transfer(address,uint256)")
    to, amount = abi_decode(["address", "uint256"], call.data[4:])
    assert to == Web3.to_checksum_address(RECIPIENT)
    assert amount == 2_500


def test_call_batch_codec_round_trip(hub_connection: FakeHubConnection, registry: AssetConfigRegistry) -> None:
    bridge = _bridge(hub_connection, registry)
    calls = bridge.build_deposit_calls(ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC, 1_000_000, RECIPIENT)

    decoded = AssetBridgeService.decode_calls(AssetBridgeService.encode_calls(calls))

    assert [(c.address.lower(), c.value, c.data) for c in decoded] == [
        (c.address.lower(), c.value, c.data) for c in calls
    ]


def test_bridge_between_spokes_goes_through_shared_vault(
    hub_connection: FakeHubConnection, registry: AssetConfigRegistry
) -> None:
    src = registry.require_hub_asset(ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC)
    dst = registry.require_hub_asset(BASE_MAINNET_CHAIN_ID, BASE_USDC)
    recipient = bytes.fromhex("44" * 20)

    approve, deposit, withdraw, transfer = _bridge(hub_connection, registry).build_bridge_calls(
        ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC, BASE_MAINNET_CHAIN_ID, BASE_USDC, 1_000_000, recipient
    )

    assert approve.address == src.asset
    assert deposit.address == src.vault
    assert withdraw.address == dst.vault
    assert withdraw.data[:4] == function_selector("withdraw(address,uint256)")
    assert abi_decode(["address", "uint256"], withdraw.data[4:]) == (
        Web3.to_checksum_address(dst.asset),
        10**18,
    )
    assert transfer.address == HUB_ASSET_MANAGER
    asset, to, amount, _ = abi_decode(["address", "bytes", "uint256", "bytes"], transfer.data[4:])
    assert asset == Web3.to_checksum_address(dst.asset)
    assert to == recipient
    assert amount == 1_000_000
    assert hub_connection.calls == []


def test_bridge_pays_partner_fee_in_vault_shares(
    hub_connection: FakeHubConnection, registry: AssetConfigRegistry
) -> None:
    vault = registry.require_hub_asset(ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC).vault

    calls = _bridge(hub_connection, registry).build_bridge_calls(
        ARBITRUM_MAINNET_CHAIN_ID,
        ARBITRUM_USDC,
        BASE_MAINNET_CHAIN_ID,
        BASE_USDC,
        1_000_000,
        bytes.fromhex("44" * 20),
        PartnerFeePercentage(FEE_RECEIVER, 100),
    )

    assert len(calls) == 5
    fee_transfer, withdraw, transfer = calls[2:]
    assert fee_transfer.address == vault
    assert abi_decode(["address", "uint256"], fee_transfer.data[4:]) == (FEE_RECEIVER, 10**16)
    assert abi_decode(["address", "uint256"], withdraw.data[4:])[1] == 99 * 10**16
    assert abi_decode(["address", "bytes", "uint256", "bytes"], transfer.data[4:])[2] == 990_000


def test_bridge_to_hub_native_token_unwraps(
    hub_connection: FakeHubConnection, registry: AssetConfigRegistry
) -> None:
    calls = _bridge(hub_connection, registry).build_bridge_calls(
        SONIC_MAINNET_CHAIN_ID,
        HUB_WRAPPED_NATIVE,
        SONIC_MAINNET_CHAIN_ID,
        ZERO_ADDRESS,
        10**18,
        bytes.fromhex("44" * 20),
    )

    unwrap = calls[-1]
    assert unwrap.address == HUB_WRAPPED_NATIVE
    assert unwrap.data[:4] == function_selector("withdrawTo(address,uint256)")
    assert abi_decode(["address", "uint256"], unwrap.data[4:]) == (
        Web3.to_checksum_address(RECIPIENT),
        10**18,
    )


def test_bridge_rejects_unrelated_tokens(hub_connection: FakeHubConnection, registry: AssetConfigRegistry) -> None:
    bridge = _bridge(hub_connection, registry)
    recipient = bytes.fromhex("44" * 20)

    with pytest.raises(InvalidParamsError) as excinfo:
        bridge.build_bridge_calls(
            ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC, OPTIMISM_MAINNET_CHAIN_ID, OPTIMISM_USDT, 1, recipient
        )
    assert excinfo.value.field == "dst_token"

    with pytest.raises(InvalidAmountError):
        bridge.build_bridge_calls(
            ARBITRUM_MAINNET_CHAIN_ID,
            ARBITRUM_USDC,
            BASE_MAINNET_CHAIN_ID,
            BASE_USDC,
            1_000_000,
            recipient,
            PartnerFeeAmount(FEE_RECEIVER, 10**18),
        )


def test_vault_reads(hub_connection: FakeHubConnection, registry: AssetConfigRegistry) -> None:
    vault = registry.require_hub_asset(ARBITRUM_MAINNET_CHAIN_ID, ARBITRUM_USDC).vault
    hub_connection.token_infos[SONIC_USDC.lower()] = (6, 0, 5, 10**12, True)
    hub_connection.vault_reserves = ([SONIC_USDC.lower()], [42])
    bridge = _bridge(hub_connection, registry)

    (info,) = bridge.get_token_infos(vault, [SONIC_USDC])
    reserves = bridge.get_vault_reserves(vault)

    assert (info.decimals, info.withdrawal_fee, info.max_deposit, info.is_supported) == (6, 5, 10**12, True)
    assert reserves.tokens == (SONIC_USDC,)
    assert reserves.balance_of(SONIC_USDC.lower()) == 42
    assert reserves.balance_of(ARBITRUM_USDC) is None
