from __future__ import annotations

from typing import Any

import pytest

from sodax_intents.constants import ARBITRUM_MAINNET_CHAIN_ID, BASE_MAINNET_CHAIN_ID, SONIC_MAINNET_CHAIN_ID
from sodax_intents.exceptions import RelayTimeoutError
from sodax_intents.registry import AssetConfigRegistry, SpokeChainConfig, default_registry
from sodax_intents.spoke.base import SpokeProvider
from sodax_intents.types import (
    ZERO_ADDRESS,
    ChainFamily,
    IntentStatusCode,
    PacketData,
    QuoteRequest,
    Response,
    SignedTransaction,
    UnsignedTransaction,
)

USER_ADDRESS = "0x1111111111111111111111111111111111111111"
HUB_WALLET = "0x2222222222222222222222222222222222222222"
SPOKE_TX_HASH = "0x" + "aa" * 32
HUB_TX_HASH = "0x" + "bb" * 32


class FakeHubConnection:
    """Stands in for the hub ``Web3Connection``; answers reads by signature."""

    def __init__(self) -> None:
        self.hub_wallet = HUB_WALLET
        self.stata_token = ZERO_ADDRESS
        self.share_ratio = 1
        self.intent_state: tuple[bool, int, int, bool] = (True, 1_000, 0, False)
        self.receipt: Any = None
        self.timestamp = 1_700_000_000
        self.token_infos: dict[str, tuple[int, int, int, int, bool]] = {}
        self.vault_reserves: tuple[list[str], list[int]] = ([], [])
        self.calls: list[tuple[str, str, list[Any]]] = []

    def call(
        self, address: str, signature: str, args: list[Any], output_types: list[str]
    ) -> tuple[Any, ...]:
        self.calls.append((address, signature, list(args)))
        if signature == "getDeployedAddress(uint256,bytes)":
            return (self.hub_wallet,)
        if signature == "getStataToken(address)":
            return (self.stata_token,)
        if signature == "convertToAssets(uint256)":
            return (args[0] * self.share_ratio,)
        if signature == "intentStates(bytes32)":
            return (self.intent_state,)
        if signature == "tokenInfo(address)":
            return self.token_infos[args[0].lower()]
        if signature == "getVaultReserves()":
            return self.vault_reserves
        raise AssertionError(f"unexpected hub read {signature}")

    def signatures(self) -> list[str]:
        return [signature for _, signature, _ in self.calls]

    def get_receipt(self, tx_hash: str, *, timeout: float | None = None) -> Any:
        return self.receipt

    def latest_block_timestamp(self) -> int:
        return self.timestamp


class FakeSpokeProvider(SpokeProvider):
    """EVM-family provider recording what it builds, signs and sends."""

    family = ChainFamily.EVM

    def __init__(self, chain_config: SpokeChainConfig, address: str = USER_ADDRESS) -> None:
        super().__init__(chain_config)
        self.address = address
        self.confirmed = True
        self.tx_hash = SPOKE_TX_HASH
        self.allowance = 0
        self.allowance_error: Exception | None = None
        self.sign_error: Exception | None = None
        self.deposits: list[dict[str, Any]] = []
        self.messages: list[dict[str, Any]] = []
        self.signed: list[UnsignedTransaction] = []
        self.submitted: list[SignedTransaction] = []

    def get_wallet_address(self) -> str:
        return self.address

    def build_deposit(
        self, token: str, amount: int, hub_recipient: str, data: bytes
    ) -> UnsignedTransaction:
        payload = {"token": token, "amount": amount, "to": hub_recipient, "data": bytes(data)}
        self.deposits.append(payload)
        return UnsignedTransaction(chain_id=self.chain_id, payload=payload, action="deposit")

    def build_message(self, hub_address: str, payload: bytes) -> UnsignedTransaction:
        body = {"to": hub_address, "payload": bytes(payload)}
        self.messages.append(body)
        return UnsignedTransaction(chain_id=self.chain_id, payload=body, action="send_message")

    def sign_transaction(self, unsigned: UnsignedTransaction) -> SignedTransaction:
        if self.sign_error is not None:
            raise self.sign_error
        self.signed.append(unsigned)
        return SignedTransaction(chain_id=self.chain_id, raw=dict(unsigned.payload), action=unsigned.action)

    def submit_transaction(self, signed: SignedTransaction) -> str:
        self.submitted.append(signed)
        return self.tx_hash

    def wait_for_transaction(self, tx_hash: str, timeout: float | None = None) -> bool:
        return self.confirmed

    def requires_allowance(self, token: str) -> bool:
        return True

    def get_allowance(self, token: str, owner: str, spender: str) -> int:
        if self.allowance_error is not None:
            raise self.allowance_error
        return self.allowance

    def build_approve(self, token: str, spender: str, amount: int) -> UnsignedTransaction:
        payload = {"token": token, "spender": spender, "amount": amount}
        return UnsignedTransaction(chain_id=self.chain_id, payload=payload, action="approve")


class FakeHubProvider(FakeSpokeProvider):
    family = ChainFamily.SONIC

    @property
    def is_hub(self) -> bool:
        return True


class FakeRelay:
    def __init__(self) -> None:
        self.packet_status = "executed"
        self.submit_error: Exception | None = None
        self.times_out = False
        self.submissions: list[tuple[int, str, Any]] = []
        self.waits: list[tuple[int, str, float | None]] = []

    def submit(self, chain_relay_id: int, tx_hash: str, data: Any = None) -> dict[str, Any]:
        self.submissions.append((chain_relay_id, tx_hash, data))
        if self.submit_error is not None:
            raise self.submit_error
        return {"success": True, "message": "Transaction registered"}

    def wait_until_executed(
        self, chain_relay_id: int, tx_hash: str, timeout: float | None = None
    ) -> PacketData:
        self.waits.append((chain_relay_id, tx_hash, timeout))
        if self.times_out:
            raise RelayTimeoutError("Timed out waiting for relay packet", elapsed=5.0, timeout=5.0, polls=3)
        return PacketData.from_dict(
            {
                "src_chain_id": chain_relay_id,
                "src_tx_hash": tx_hash,
                "status": self.packet_status,
                "dst_chain_id": 146,
                "conn_sn": 7,
                "dst_tx_hash": HUB_TX_HASH,
            }
        )

    def relay_and_wait(
        self,
        chain_relay_id: int,
        tx_hash: str,
        data: Any = None,
        timeout: float | None = None,
    ) -> PacketData:
        self.submit(chain_relay_id, tx_hash, data)
        return self.wait_until_executed(chain_relay_id, tx_hash, timeout)


class FakeSolver:
    def __init__(self) -> None:
        self.execution_response = Response(success=True, value={"answer": "OK", "intent_hash": "0x01"})
        self.executions: list[str] = []
        self.quotes: list[QuoteRequest] = []

    def post_execution(self, intent_tx_hash: str) -> Response:
        self.executions.append(intent_tx_hash)
        return self.execution_response

    def get_quote(self, request: QuoteRequest) -> Response:
        self.quotes.append(request)
        return Response(success=True, value=request.amount)

    def get_status(self, intent_tx_hash: str) -> Response:
        return Response(success=True, value=IntentStatusCode.SOLVED)


@pytest.fixture
def registry() -> AssetConfigRegistry:
    return default_registry()


@pytest.fixture
def hub_connection() -> FakeHubConnection:
    return FakeHubConnection()


@pytest.fixture
def relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def solver() -> FakeSolver:
    return FakeSolver()


@pytest.fixture
def arbitrum_provider(registry: AssetConfigRegistry) -> FakeSpokeProvider:
    return FakeSpokeProvider(registry.get_spoke_chain(ARBITRUM_MAINNET_CHAIN_ID))


@pytest.fixture
def sonic_provider(registry: AssetConfigRegistry) -> FakeHubProvider:
    return FakeHubProvider(registry.get_spoke_chain(SONIC_MAINNET_CHAIN_ID))


@pytest.fixture
def base_provider(registry: AssetConfigRegistry) -> FakeSpokeProvider:
    return FakeSpokeProvider(registry.get_spoke_chain(BASE_MAINNET_CHAIN_ID))
