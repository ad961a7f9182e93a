"""Connection helpers for the hub chain and EVM spoke chains."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, cast

from eth_abi import decode as abi_decode
from eth_account import Account
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import HTTPProvider, Web3

from .evm_utils import encode_function_call
from .exceptions import NetworkError, ValidationError

logger = logging.getLogger(__name__)


class Web3Connection:
    """Manage a Web3 provider, an optional signer and typed contract reads."""

    def __init__(
        self,
        rpc_url: str,
        *,
        request_timeout: float,
        private_key: str | None = None,
        network_name: str = "hub",
    ):
        self.rpc_url = rpc_url
        self.network_name = network_name
        self._request_timeout = request_timeout
        self._private_key = private_key
        self._provider: HTTPProvider | None = None
        self._web3: Web3 | None = None
        self._account: LocalAccount | None = None
        self._chain_id: int | None = None
        self._connected = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def connect(self) -> None:
        """Initialise the provider and, when a key is configured, the signer."""

        if self._private_key is not None:
            try:
                self._account = cast(LocalAccount, Account.from_key(self._private_key))
            except Exception as exc:  # pragma: no cover
                raise ValidationError(
                    "Failed to derive signer account from provided private key",
                    field="private_key",
                    details={"error": str(exc)},
                ) from exc

        provider = HTTPProvider(self.rpc_url, request_kwargs={"timeout": self._request_timeout})
        web3 = Web3(provider)
        if not web3.is_connected():
            raise NetworkError(f"Unable to connect to {self.network_name} RPC", endpoint=self.rpc_url)

        self._provider = provider
        self._web3 = web3
        self._chain_id = web3.eth.chain_id
        if self._account is not None:
            web3.eth.default_account = self._account.address

        self._connected = True
        logger.info("Connected to %s RPC at %s", self.network_name, self.rpc_url)

    def disconnect(self) -> None:
        self._provider = None
        self._web3 = None
        self._account = None
        self._chain_id = None
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected and self._web3 is not None

    def ensure_connected(self) -> None:
        if not self.is_connected():
            raise NetworkError(f"{self.network_name} connector is not connected", endpoint=self.rpc_url)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def web3(self) -> Web3:
        if self._web3 is None:
            raise NetworkError(f"{self.network_name} RPC provider not connected", endpoint=self.rpc_url)
        return self._web3

    @property
    def account(self) -> LocalAccount:
        if self._account is None:
            raise NetworkError(
                "Signer account is not initialised; call connect() with a private key first",
                endpoint=self.rpc_url,
            )
        return self._account

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = self.web3.eth.chain_id
        return self._chain_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def call(
        self,
        address: str,
        signature: str,
        args: Sequence[Any],
        output_types: Sequence[str],
    ) -> tuple[Any, ...]:
        """Execute an ``eth_call`` and decode its result."""

        web3 = self.web3
        destination = Web3.to_checksum_address(address)
        call_data = encode_function_call(signature, args)

        try:
            result = web3.eth.call({"to": destination, "data": HexBytes(call_data)})
        except Exception as exc:
            raise NetworkError(
                f"Failed to execute {signature} on {self.network_name}",
                endpoint=str(destination),
                details={"error": str(exc), "args": list(args)},
            ) from exc

        if not output_types:
            return tuple()

        try:
            decoded = abi_decode(list(output_types), bytes(result))
        except Exception as exc:
            raise NetworkError(
                f"Failed to decode {signature} response",
                endpoint=str(destination),
                details={"error": str(exc)},
            ) from exc

        return tuple(decoded)

    def get_receipt(self, tx_hash: str, *, timeout: float | None = None) -> Any:
        web3 = self.web3
        if timeout is None:
            return web3.eth.get_transaction_receipt(HexBytes(tx_hash))
        return web3.eth.wait_for_transaction_receipt(HexBytes(tx_hash), timeout=timeout)

    def latest_block_timestamp(self) -> int:
        block = self.web3.eth.get_block("latest")
        return int(block["timestamp"])
