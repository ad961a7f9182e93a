"""Spoke providers for EVM chains and the Sonic hub chain."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from hexbytes import HexBytes
from web3 import Web3

from ..config import DEFAULT_RECEIPT_TIMEOUT
from ..connections import Web3Connection
from ..constants import HUB_CHAIN_ID, get_relay_chain_id
from ..evm_utils import CALLS_ABI_TYPE, decode_calls, encode_function_call
from ..exceptions import InvalidSpokeProviderError
from ..hub.wallet import read_user_router
from ..intents import BuiltIntent, encode_cancel_intent, encode_create_intent
from ..registry import SpokeChainConfig
from ..transactions import TransactionDispatcher
from ..types import (
    ChainFamily,
    ContractCall,
    Intent,
    SignedTransaction,
    UnsignedTransaction,
)
from .base import SpokeProvider

logger = logging.getLogger(__name__)


class EvmSpokeProvider(SpokeProvider):
    """EVM spoke chain backed by a web3 connection and a local signer."""

    family = ChainFamily.EVM

    def __init__(
        self,
        chain_config: SpokeChainConfig,
        connection: Web3Connection,
        *,
        hub_chain_id: str = HUB_CHAIN_ID,
        wait_for_receipt: bool = True,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
    ) -> None:
        super().__init__(chain_config)
        self.connection = connection
        self._hub_chain_id = hub_chain_id
        self.dispatcher = TransactionDispatcher(
            connection, wait_for_receipt=wait_for_receipt, receipt_timeout=receipt_timeout
        )

    def get_wallet_address(self) -> str:
        return self.connection.account.address

    def _raw_tx(self, to: str, data: bytes, value: int = 0, action: str = "") -> UnsignedTransaction:
        return UnsignedTransaction(
            chain_id=self.chain_id,
            payload={
                "from": self.get_wallet_address(),
                "to": Web3.to_checksum_address(to),
                "value": value,
                "data": HexBytes(data).to_0x_hex(),
            },
            action=action,
        )

    # ------------------------------------------------------------------
    # Transaction building
    # ------------------------------------------------------------------
    def build_deposit(
        self, token: str, amount: int, hub_recipient: str, data: bytes
    ) -> UnsignedTransaction:
        call_data = encode_function_call(
            "transfer(address,bytes,uint256,bytes)",
            [Web3.to_checksum_address(token), HexBytes(hub_recipient), amount, bytes(data)],
        )
        value = amount if self.is_native_token(token) else 0
        return self._raw_tx(self.chain_config.asset_manager, call_data, value, action="deposit")

    def build_message(self, hub_address: str, payload: bytes) -> UnsignedTransaction:
        call_data = encode_function_call(
            "sendMessage(uint256,bytes,bytes)",
            [get_relay_chain_id(self._hub_chain_id), HexBytes(hub_address), bytes(payload)],
        )
        return self._raw_tx(self.chain_config.connection, call_data, action="send_message")

    # ------------------------------------------------------------------
    # Signing and submission
    # ------------------------------------------------------------------
    def sign_transaction(self, unsigned: UnsignedTransaction) -> SignedTransaction:
        return self.dispatcher.sign(unsigned)

    def submit_transaction(self, signed: SignedTransaction) -> str:
        return self.dispatcher.broadcast(signed)

    def wait_for_transaction(self, tx_hash: str, timeout: float | None = None) -> bool:
        return bool(self.dispatcher.confirm(tx_hash, timeout)["success"])

    # ------------------------------------------------------------------
    # Allowances
    # ------------------------------------------------------------------
    def requires_allowance(self, token: str) -> bool:
        return not self.is_native_token(token)

    def get_allowance(self, token: str, owner: str, spender: str) -> int:
        (allowance,) = self.connection.call(
            token,
            "allowance(address,address)",
            [Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)],
            ["uint256"],
        )
        return int(allowance)

    def build_approve(self, token: str, spender: str, amount: int) -> UnsignedTransaction:
        call_data = encode_function_call(
            "approve(address,uint256)", [Web3.to_checksum_address(spender), amount]
        )
        return self._raw_tx(token, call_data, action="approve")


class SonicSpokeProvider(EvmSpokeProvider):
    """Provider for users acting directly on the hub chain.

    Nothing is relayed: batched calls run through the user's router from the
    wallet router contract, and intents are created straight on the
    settlement contract.
    """

    family = ChainFamily.SONIC

    def __init__(
        self,
        chain_config: SpokeChainConfig,
        connection: Web3Connection,
        *,
        wait_for_receipt: bool = True,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
    ) -> None:
        if not chain_config.wallet_router or not chain_config.wrapped_native:
            raise InvalidSpokeProviderError(
                "Sonic chain config needs a wallet router and wrapped native token",
                provider_chain=chain_config.chain_id,
            )
        super().__init__(
            chain_config,
            connection,
            hub_chain_id=chain_config.chain_id,
            wait_for_receipt=wait_for_receipt,
            receipt_timeout=receipt_timeout,
        )

    @property
    def is_hub(self) -> bool:
        return True

    def get_user_router(self, address: str | None = None) -> str:
        return read_user_router(
            self.connection, self.chain_config.wallet_router, address or self.get_wallet_address()
        )

    def _route(self, calls: Sequence[ContractCall], value: int, action: str) -> UnsignedTransaction:
        call_data = encode_function_call(
            f"route({CALLS_ABI_TYPE})", [[call.as_tuple() for call in calls]]
        )
        return self._raw_tx(self.chain_config.wallet_router or "", call_data, value, action=action)

    # ------------------------------------------------------------------
    # Transaction building
    # ------------------------------------------------------------------
    def build_deposit(
        self, token: str, amount: int, hub_recipient: str, data: bytes
    ) -> UnsignedTransaction:
        calls = decode_calls(data)
        if self.is_native_token(token):
            pull = ContractCall(
                address=self.chain_config.wrapped_native or "",
                value=amount,
                data=encode_function_call("deposit()", []),
            )
            value = amount
        else:
            pull = ContractCall(
                address=token,
                value=0,
                data=encode_function_call(
                    "transferFrom(address,address,uint256)",
                    [self.get_wallet_address(), self.get_user_router(), amount],
                ),
            )
            value = 0
        return self._route([pull, *calls], value, action="deposit")

    def build_message(self, hub_address: str, payload: bytes) -> UnsignedTransaction:
        return self._route(decode_calls(payload), 0, action="route")

    def build_wallet_call(self, hub_wallet: str, calls: Sequence[ContractCall]) -> UnsignedTransaction:
        return self._route(calls, 0, action="route")

    def build_create_intent(
        self,
        built: BuiltIntent,
        spoke_token: str,
        intents_contract: str,
        hub_wallet: str,
    ) -> UnsignedTransaction:
        value = built.total_amount if self.is_native_token(spoke_token) else 0
        call = encode_create_intent(built.intent, intents_contract, value)
        return self._raw_tx(call.address, call.data, call.value, action="create_intent")

    def build_cancel_intent(
        self, intent: Intent, intents_contract: str, hub_wallet: str
    ) -> UnsignedTransaction:
        call = encode_cancel_intent(intent, intents_contract)
        return self._raw_tx(call.address, call.data, action="cancel_intent")

    def build_hub_call(self, to: str, data: bytes, value: int = 0) -> UnsignedTransaction:
        return self._raw_tx(to, data, value, action="hub_call")

    # ------------------------------------------------------------------
    # Allowances
    # ------------------------------------------------------------------
    def deposit_spender(self) -> str:
        return self.get_user_router()

    def swap_spender(self, intents_contract: str) -> str:
        return intents_contract
