"""Transaction signing and dispatch for EVM spoke chains and the hub."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from hexbytes import HexBytes
from web3 import Web3

from .connections import Web3Connection
from .evm_utils import serialise_receipt
from .exceptions import NetworkError
from .types import SignedTransaction, UnsignedTransaction

logger = logging.getLogger(__name__)


class TransactionDispatcher:
    """Fill, sign, broadcast and confirm raw EVM transactions."""

    def __init__(
        self,
        connection: Web3Connection,
        *,
        wait_for_receipt: bool,
        receipt_timeout: float,
    ) -> None:
        self._connection = connection
        self._wait_for_receipt = wait_for_receipt
        self._receipt_timeout = receipt_timeout

    def prepare(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Complete a ``{from, to, value, data}`` payload with nonce, gas and chain id."""

        web3 = self._connection.web3
        sender = Web3.to_checksum_address(payload.get("from") or self._connection.account.address)
        tx: dict[str, Any] = {
            "from": sender,
            "to": Web3.to_checksum_address(payload["to"]),
            "value": int(payload.get("value", 0)),
            "data": HexBytes(payload.get("data") or b"").to_0x_hex(),
            "chainId": self._connection.chain_id,
        }
        try:
            tx["nonce"] = payload.get("nonce", web3.eth.get_transaction_count(sender, "pending"))
            tx["gasPrice"] = payload.get("gasPrice", web3.eth.gas_price)
            tx["gas"] = payload.get("gas", web3.eth.estimate_gas(tx))
        except Exception as exc:
            raise NetworkError(
                "Failed to prepare transaction",
                endpoint=self._connection.rpc_url,
                details={"tx": {k: v for k, v in tx.items() if k != "data"}, "error": str(exc)},
            ) from exc
        return tx

    def sign(self, unsigned: UnsignedTransaction) -> SignedTransaction:
        self._connection.ensure_connected()
        account = self._connection.account
        tx = self.prepare(unsigned.payload)
        signed = account.sign_transaction(tx)
        logger.debug("Signed %s for %s (nonce=%s)", unsigned.action or "tx", tx["from"], tx["nonce"])
        return SignedTransaction(chain_id=unsigned.chain_id, raw=signed, action=unsigned.action)

    def broadcast(self, signed: SignedTransaction) -> str:
        web3 = self._connection.web3
        try:
            tx_hash = web3.eth.send_raw_transaction(signed.raw.raw_transaction)
        except Exception as exc:  # pragma: no cover
            raise NetworkError(
                f"Failed to submit transaction for {signed.action or 'tx'}",
                endpoint=self._connection.rpc_url,
                details={"error": str(exc)},
            ) from exc

        tx_hex = HexBytes(tx_hash).to_0x_hex()
        logger.info("Transaction sent for action=%s hash=%s", signed.action, tx_hex)
        return tx_hex

    def confirm(self, tx_hash: str, timeout: float | None = None) -> dict[str, Any]:
        """Wait for the receipt of ``tx_hash`` and report whether it succeeded."""

        try:
            receipt = self._connection.get_receipt(
                tx_hash, timeout=self._receipt_timeout if timeout is None else timeout
            )
        except Exception as exc:
            raise NetworkError(
                f"No receipt for {tx_hash}",
                endpoint=self._connection.rpc_url,
                details={"error": str(exc)},
            ) from exc

        status = receipt.get("status") if isinstance(receipt, Mapping) else getattr(receipt, "status", None)
        block_number = (
            receipt.get("blockNumber") if isinstance(receipt, Mapping) else getattr(receipt, "blockNumber", None)
        )
        logger.info("Transaction confirmed hash=%s block=%s status=%s", tx_hash, block_number, status)
        return {
            "tx_hash": tx_hash,
            "success": status == 1,
            "receipt": serialise_receipt(receipt),
            "block_number": block_number,
        }

    def send(
        self,
        unsigned: UnsignedTransaction,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Sign and broadcast ``unsigned``, waiting for the receipt when configured."""

        tx_hash = self.broadcast(self.sign(unsigned))
        result: dict[str, Any] = {
            "tx_hash": tx_hash,
            "action": unsigned.action,
            "context": dict(context or {}),
            "receipt": None,
            "block_number": None,
        }
        if self._wait_for_receipt:
            confirmation = self.confirm(tx_hash)
            result["receipt"] = confirmation["receipt"]
            result["block_number"] = confirmation["block_number"]
        return result
