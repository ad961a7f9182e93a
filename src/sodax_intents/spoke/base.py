"""Chain-family abstraction over spoke chain wallets and contracts."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, ClassVar

from ..codec import encode_for_family
from ..evm_utils import encode_calls
from ..exceptions import AllowanceCheckFailedError, ApprovalFailedError, InvalidSpokeProviderError
from ..intents import BuiltIntent, build_create_intent_calls, encode_cancel_intent
from ..registry import SpokeChainConfig
from ..types import (
    ChainFamily,
    ContractCall,
    Intent,
    SignedTransaction,
    UnsignedTransaction,
)

logger = logging.getLogger(__name__)


class SpokeProvider(ABC):
    """Everything the settlement flow needs from one spoke chain.

    Subclasses implement transaction building, signing and broadcast for a
    single chain family. Business logic only talks to this interface.
    """

    family: ClassVar[ChainFamily]

    def __init__(self, chain_config: SpokeChainConfig) -> None:
        if chain_config.family is not self.family:
            raise InvalidSpokeProviderError(
                f"{type(self).__name__} cannot serve {chain_config.family.value} chain {chain_config.chain_id}",
                expected_chain=chain_config.chain_id,
                provider_chain=self.family.value,
            )
        self.chain_config = chain_config

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    @property
    def chain_id(self) -> str:
        return self.chain_config.chain_id

    @property
    def relay_chain_id(self) -> int:
        return self.chain_config.relay_chain_id

    @property
    def is_hub(self) -> bool:
        return False

    @abstractmethod
    def get_wallet_address(self) -> str:
        """Native address of the connected wallet."""

    def encode_address(self, address: str) -> bytes:
        return encode_for_family(self.family, address)

    def is_native_token(self, token: str) -> bool:
        native = self.chain_config.native_token
        if self.family in (ChainFamily.EVM, ChainFamily.SONIC, ChainFamily.ICON):
            return token.lower() == native.lower()
        return token == native

    # ------------------------------------------------------------------
    # Transaction building
    # ------------------------------------------------------------------
    @abstractmethod
    def build_deposit(
        self, token: str, amount: int, hub_recipient: str, data: bytes
    ) -> UnsignedTransaction:
        """Asset manager transfer of ``amount`` to the hub carrying ``data``."""

    @abstractmethod
    def build_message(self, hub_address: str, payload: bytes) -> UnsignedTransaction:
        """Connection message delivering ``payload`` to ``hub_address``."""

    def build_wallet_call(self, hub_wallet: str, calls: Sequence[ContractCall]) -> UnsignedTransaction:
        """Have the user's hub wallet execute ``calls``."""

        return self.build_message(hub_wallet, encode_calls(calls))

    def build_create_intent(
        self,
        built: BuiltIntent,
        spoke_token: str,
        intents_contract: str,
        hub_wallet: str,
    ) -> UnsignedTransaction:
        """Deposit input plus fee and create the intent from the hub wallet."""

        calls = build_create_intent_calls(built.intent, built.fee_amount, intents_contract)
        return self.build_deposit(spoke_token, built.total_amount, hub_wallet, encode_calls(calls))

    def build_cancel_intent(
        self, intent: Intent, intents_contract: str, hub_wallet: str
    ) -> UnsignedTransaction:
        return self.build_wallet_call(hub_wallet, [encode_cancel_intent(intent, intents_contract)])

    def build_hub_call(self, to: str, data: bytes, value: int = 0) -> UnsignedTransaction:
        raise InvalidSpokeProviderError(
            f"{self.chain_id} is not the hub chain; direct hub calls are unavailable",
            provider_chain=self.chain_id,
        )

    # ------------------------------------------------------------------
    # Signing and submission
    # ------------------------------------------------------------------
    @abstractmethod
    def sign_transaction(self, unsigned: UnsignedTransaction) -> SignedTransaction:
        """Sign ``unsigned``; the only step that touches key material."""

    @abstractmethod
    def submit_transaction(self, signed: SignedTransaction) -> str:
        """Broadcast ``signed`` and return its transaction hash."""

    @abstractmethod
    def wait_for_transaction(self, tx_hash: str, timeout: float | None = None) -> bool:
        """Return True once ``tx_hash`` is confirmed successfully."""

    def send(self, unsigned: UnsignedTransaction) -> str:
        return self.submit_transaction(self.sign_transaction(unsigned))

    # ------------------------------------------------------------------
    # Allowances
    # ------------------------------------------------------------------
    def requires_allowance(self, token: str) -> bool:
        return False

    def deposit_spender(self) -> str:
        return self.chain_config.asset_manager

    def swap_spender(self, intents_contract: str) -> str:
        return self.deposit_spender()

    def get_allowance(self, token: str, owner: str, spender: str) -> int:
        raise AllowanceCheckFailedError(
            f"Allowances are not supported on {self.chain_id}",
            details={"token": token, "owner": owner, "spender": spender},
        )

    def build_approve(self, token: str, spender: str, amount: int) -> UnsignedTransaction:
        raise ApprovalFailedError(
            f"Approvals are not supported on {self.chain_id}",
            details={"token": token, "spender": spender, "amount": amount},
        )

    # ------------------------------------------------------------------
    # Relay
    # ------------------------------------------------------------------
    def relay_submit_data(self, hub_address: str, payload: bytes) -> dict[str, Any] | None:
        """Extra ``data`` for the relay submission; most chains carry it on-chain."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(chain_id={self.chain_id!r})"


def check_provider(provider: SpokeProvider, chain_id: str) -> None:
    """Raise unless ``provider`` serves ``chain_id``."""

    if provider.chain_id != chain_id:
        raise InvalidSpokeProviderError(
            f"Spoke provider for {provider.chain_id} cannot address {chain_id}",
            expected_chain=chain_id,
            provider_chain=provider.chain_id,
        )


def check_relay_chain(provider: SpokeProvider, relay_chain_id: int) -> None:
    if provider.relay_chain_id != relay_chain_id:
        raise InvalidSpokeProviderError(
            f"Spoke provider for {provider.chain_id} cannot address relay chain {relay_chain_id}",
            expected_chain=str(relay_chain_id),
            provider_chain=provider.chain_id,
        )
