"""Spoke providers for non-EVM chains backed by an external wallet signer.

Native transaction encoding and signature schemes live in the wallet; these
providers describe each deposit or message as a logical call and hand it to
the :class:`WalletSigner` for signing and broadcast.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from hexbytes import HexBytes

from ..constants import HUB_CHAIN_ID, get_relay_chain_id
from ..registry import SpokeChainConfig
from ..types import ChainFamily, SignedTransaction, UnsignedTransaction, to_hex
from .base import SpokeProvider

logger = logging.getLogger(__name__)


@runtime_checkable
class WalletSigner(Protocol):
    """Chain-specific wallet that turns logical calls into native transactions."""

    def get_address(self) -> str: ...

    def sign(self, unsigned: UnsignedTransaction) -> Any: ...

    def broadcast(self, signed: Any) -> str: ...

    def confirm(self, tx_hash: str, timeout: float | None = None) -> bool: ...


class WalletSpokeProvider(SpokeProvider):
    """Shared behaviour of wallet-backed spoke providers."""

    deposit_method = "transfer"
    message_method = "send_message"

    def __init__(
        self,
        chain_config: SpokeChainConfig,
        wallet: WalletSigner,
        *,
        hub_chain_id: str = HUB_CHAIN_ID,
    ) -> None:
        super().__init__(chain_config)
        self.wallet = wallet
        self._hub_chain_id = hub_chain_id

    def get_wallet_address(self) -> str:
        return self.wallet.get_address()

    def build_deposit(
        self, token: str, amount: int, hub_recipient: str, data: bytes
    ) -> UnsignedTransaction:
        payload = {
            "method": self.deposit_method,
            "contract": self.chain_config.asset_manager,
            "from": self.get_wallet_address(),
            "token": token,
            "to": to_hex(HexBytes(hub_recipient)),
            "amount": amount,
            "value": amount if self.is_native_token(token) else 0,
            "data": to_hex(bytes(data)),
        }
        return UnsignedTransaction(chain_id=self.chain_id, payload=payload, action="deposit")

    def build_message(self, hub_address: str, payload: bytes) -> UnsignedTransaction:
        body = {
            "method": self.message_method,
            "contract": self.chain_config.connection,
            "from": self.get_wallet_address(),
            "dst_chain_id": get_relay_chain_id(self._hub_chain_id),
            "dst_address": to_hex(HexBytes(hub_address)),
            "payload": to_hex(bytes(payload)),
        }
        return UnsignedTransaction(chain_id=self.chain_id, payload=body, action="send_message")

    def sign_transaction(self, unsigned: UnsignedTransaction) -> SignedTransaction:
        signed = self.wallet.sign(unsigned)
        logger.debug("Wallet signed %s on %s", unsigned.action or "tx", self.chain_id)
        return SignedTransaction(chain_id=unsigned.chain_id, raw=signed, action=unsigned.action)

    def submit_transaction(self, signed: SignedTransaction) -> str:
        tx_hash = self.wallet.broadcast(signed.raw)
        logger.info("Transaction sent for action=%s hash=%s chain=%s", signed.action, tx_hash, self.chain_id)
        return tx_hash

    def wait_for_transaction(self, tx_hash: str, timeout: float | None = None) -> bool:
        return bool(self.wallet.confirm(tx_hash, timeout))


class BitcoinSpokeProvider(WalletSpokeProvider):
    family = ChainFamily.BITCOIN


class SolanaSpokeProvider(WalletSpokeProvider):
    """Solana transactions carry only a hash of the payload on-chain.

    The relay therefore needs the hub address and full payload alongside the
    transaction hash.
    """

    family = ChainFamily.SOLANA

    def relay_submit_data(self, hub_address: str, payload: bytes) -> dict[str, Any] | None:
        return {"address": hub_address, "payload": to_hex(bytes(payload))}


class StellarSpokeProvider(WalletSpokeProvider):
    family = ChainFamily.STELLAR


class SuiSpokeProvider(WalletSpokeProvider):
    family = ChainFamily.SUI


class InjectiveSpokeProvider(WalletSpokeProvider):
    family = ChainFamily.INJECTIVE


class IconSpokeProvider(WalletSpokeProvider):
    family = ChainFamily.ICON


class StacksSpokeProvider(WalletSpokeProvider):
    family = ChainFamily.STACKS
