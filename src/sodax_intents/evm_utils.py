"""Helper functions for EVM operations."""

from collections.abc import Mapping, Sequence
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from hexbytes import HexBytes
from web3 import Web3

from .types import ContractCall

CALLS_ABI_TYPE = "(address,uint256,bytes)[]"


def function_selector(signature: str) -> bytes:
    """Return the 4 byte selector of a canonical function signature."""
    return bytes(Web3.keccak(text=signature)[:4])


def event_topic(signature: str) -> HexBytes:
    return HexBytes(Web3.keccak(text=signature))


def encode_function_call(signature: str, args: Sequence[Any]) -> bytes:
    """ABI encode a call to ``signature`` (e.g. ``approve(address,uint256)``)."""
    arg_types = _signature_arg_types(signature)
    encoded = abi_encode(arg_types, list(args)) if arg_types else b""
    return function_selector(signature) + encoded


def _signature_arg_types(signature: str) -> list[str]:
    inner = signature[signature.index("(") + 1 : signature.rindex(")")]
    types: list[str] = []
    depth = 0
    current = ""
    for char in inner:
        if char == "," and depth == 0:
            types.append(current)
            current = ""
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        current += char
    if current:
        types.append(current)
    return types


def encode_calls(calls: Sequence[ContractCall]) -> bytes:
    """Encode a batch of calls as ``(address,uint256,bytes)[]``."""
    return abi_encode([CALLS_ABI_TYPE], [[call.as_tuple() for call in calls]])


def decode_calls(data: bytes) -> list[ContractCall]:
    if not data:
        return []
    (decoded,) = abi_decode([CALLS_ABI_TYPE], bytes(data))
    return [
        ContractCall(address=Web3.to_checksum_address(addr), value=int(value), data=bytes(payload))
        for addr, value, payload in decoded
    ]


def serialise_receipt(receipt: Any) -> Any:
    """Serialise web3 receipt objects into JSON-friendly structures."""
    if receipt is None:
        return None
    if isinstance(receipt, Mapping):
        return {key: serialise_receipt(value) for key, value in receipt.items()}
    if isinstance(receipt, Sequence) and not isinstance(
        receipt, str | bytes | bytearray | HexBytes
    ):
        return [serialise_receipt(item) for item in receipt]
    if isinstance(receipt, bytes | bytearray | HexBytes):
        return HexBytes(receipt).to_0x_hex()
    return receipt


def encode_approve(token: str, spender: str, amount: int) -> ContractCall:
    return ContractCall(
        address=token,
        value=0,
        data=encode_function_call(
            "approve(address,uint256)", [Web3.to_checksum_address(spender), amount]
        ),
    )


def encode_transfer(token: str, recipient: str, amount: int) -> ContractCall:
    return ContractCall(
        address=token,
        value=0,
        data=encode_function_call(
            "transfer(address,uint256)", [Web3.to_checksum_address(recipient), amount]
        ),
    )


def iter_logs(receipt: Any, address: str, topic: HexBytes) -> list[bytes]:
    """Return the data of every log emitted by ``address`` with ``topic``."""

    if receipt is None:
        return []
    logs = receipt["logs"] if isinstance(receipt, Mapping) else getattr(receipt, "logs", [])
    target = address.lower()
    matches: list[bytes] = []
    for log in logs:
        topics = log.get("topics") or []
        if not topics or HexBytes(topics[0]) != topic:
            continue
        if str(log.get("address", "")).lower() != target:
            continue
        matches.append(bytes(HexBytes(log.get("data") or b"")))
    return matches
