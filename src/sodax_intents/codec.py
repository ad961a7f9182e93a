"""Chain address codec.

Hub-chain messages carry spoke addresses as opaque bytes. Each chain family
has its own canonical byte form; ``decode_address`` always returns the
canonical string form so that ``decode(encode(a)) == a`` for canonical input.
"""

from __future__ import annotations

import base64
import binascii
import struct
from collections.abc import Callable

import base58
from web3 import Web3

from .constants import get_chain_family
from .exceptions import ValidationError
from .types import ChainFamily

# Stellar strkey version bytes (already shifted)
_STELLAR_ACCOUNT_VERSION = 6 << 3
_STELLAR_CONTRACT_VERSION = 2 << 3

# XDR discriminants for ScVal::Address and ScAddress
_SCV_ADDRESS = 18
_SC_ADDRESS_TYPE_ACCOUNT = 0
_SC_ADDRESS_TYPE_CONTRACT = 1
_PUBLIC_KEY_TYPE_ED25519 = 0

_ICON_PREFIXES = {"hx": 0x00, "cx": 0x01}


def _invalid(family: ChainFamily, address: object, reason: str) -> ValidationError:
    return ValidationError(
        f"Invalid {family.value} address: {reason}",
        field="address",
        value=address,
    )


# ----------------------------------------------------------------------
# EVM
# ----------------------------------------------------------------------
def _encode_evm(address: str) -> bytes:
    if not Web3.is_address(address):
        raise _invalid(ChainFamily.EVM, address, "not a 20 byte hex address")
    return Web3.to_bytes(hexstr=Web3.to_checksum_address(address))


def _decode_evm(data: bytes) -> str:
    if len(data) != 20:
        raise _invalid(ChainFamily.EVM, data, f"expected 20 bytes, got {len(data)}")
    return Web3.to_checksum_address("0x" + bytes(data).hex())


# ----------------------------------------------------------------------
# UTF-8 families (Injective bech32, Bitcoin, Stacks)
# ----------------------------------------------------------------------
def _encode_utf8(address: str) -> bytes:
    if not address:
        raise ValidationError("Address must not be empty", field="address", value=address)
    return address.encode("utf-8")


def _decode_utf8(data: bytes) -> str:
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError(
            "Address bytes are not valid UTF-8", field="address", value=bytes(data).hex()
        ) from exc


# ----------------------------------------------------------------------
# ICON
# ----------------------------------------------------------------------
def _encode_icon(address: str) -> bytes:
    prefix = address[:2].lower()
    body = address[2:]
    if prefix not in _ICON_PREFIXES or len(body) != 40:
        raise _invalid(ChainFamily.ICON, address, "expected hx/cx followed by 40 hex characters")
    try:
        return bytes([_ICON_PREFIXES[prefix]]) + bytes.fromhex(body)
    except ValueError as exc:
        raise _invalid(ChainFamily.ICON, address, str(exc)) from exc


def _decode_icon(data: bytes) -> str:
    if len(data) != 21:
        raise _invalid(ChainFamily.ICON, data, f"expected 21 bytes, got {len(data)}")
    prefix = next((p for p, b in _ICON_PREFIXES.items() if b == data[0]), None)
    if prefix is None:
        raise _invalid(ChainFamily.ICON, data, f"unknown type byte {data[0]:#04x}")
    return prefix + data[1:].hex()


# ----------------------------------------------------------------------
# Sui
# ----------------------------------------------------------------------
def _encode_sui(address: str) -> bytes:
    body = address[2:] if address.lower().startswith("0x") else address
    if not body or len(body) > 64:
        raise _invalid(ChainFamily.SUI, address, "expected up to 32 hex bytes")
    try:
        return bytes.fromhex(body.zfill(64))
    except ValueError as exc:
        raise _invalid(ChainFamily.SUI, address, str(exc)) from exc


def _decode_sui(data: bytes) -> str:
    if len(data) != 32:
        raise _invalid(ChainFamily.SUI, data, f"expected 32 bytes, got {len(data)}")
    return "0x" + bytes(data).hex()


# ----------------------------------------------------------------------
# Solana
# ----------------------------------------------------------------------
def _encode_solana(address: str) -> bytes:
    try:
        raw = base58.b58decode(address)
    except ValueError as exc:
        raise _invalid(ChainFamily.SOLANA, address, str(exc)) from exc
    if len(raw) != 32:
        raise _invalid(ChainFamily.SOLANA, address, f"expected 32 byte key, got {len(raw)}")
    return raw


def _decode_solana(data: bytes) -> str:
    if len(data) != 32:
        raise _invalid(ChainFamily.SOLANA, data, f"expected 32 bytes, got {len(data)}")
    return base58.b58encode(bytes(data)).decode("ascii")


# ----------------------------------------------------------------------
# Stellar (ScVal address XDR)
# ----------------------------------------------------------------------
def _stellar_checksum(data: bytes) -> bytes:
    return struct.pack("<H", binascii.crc_hqx(data, 0))


def _decode_strkey(address: str) -> tuple[int, bytes]:
    try:
        raw = base64.b32decode(address)
    except (binascii.Error, ValueError) as exc:
        raise _invalid(ChainFamily.STELLAR, address, str(exc)) from exc
    if len(raw) != 35:
        raise _invalid(ChainFamily.STELLAR, address, "unexpected strkey length")
    version, payload, checksum = raw[0], raw[1:33], raw[33:]
    if _stellar_checksum(raw[:33]) != checksum:
        raise _invalid(ChainFamily.STELLAR, address, "checksum mismatch")
    return version, payload


def _encode_strkey(version: int, payload: bytes) -> str:
    body = bytes([version]) + payload
    return base64.b32encode(body + _stellar_checksum(body)).decode("ascii")


def _encode_stellar(address: str) -> bytes:
    version, payload = _decode_strkey(address)
    header = struct.pack(">I", _SCV_ADDRESS)
    if version == _STELLAR_ACCOUNT_VERSION:
        return header + struct.pack(">II", _SC_ADDRESS_TYPE_ACCOUNT, _PUBLIC_KEY_TYPE_ED25519) + payload
    if version == _STELLAR_CONTRACT_VERSION:
        return header + struct.pack(">I", _SC_ADDRESS_TYPE_CONTRACT) + payload
    raise _invalid(ChainFamily.STELLAR, address, "only G... and C... addresses are supported")


def _decode_stellar(data: bytes) -> str:
    data = bytes(data)
    if len(data) < 8 or struct.unpack(">I", data[:4])[0] != _SCV_ADDRESS:
        raise _invalid(ChainFamily.STELLAR, data, "not an ScVal address")
    (address_type,) = struct.unpack(">I", data[4:8])
    if address_type == _SC_ADDRESS_TYPE_ACCOUNT and len(data) == 44:
        return _encode_strkey(_STELLAR_ACCOUNT_VERSION, data[12:])
    if address_type == _SC_ADDRESS_TYPE_CONTRACT and len(data) == 40:
        return _encode_strkey(_STELLAR_CONTRACT_VERSION, data[8:])
    raise _invalid(ChainFamily.STELLAR, data, "malformed ScAddress")


_CODECS: dict[ChainFamily, tuple[Callable[[str], bytes], Callable[[bytes], str]]] = {
    ChainFamily.EVM: (_encode_evm, _decode_evm),
    ChainFamily.SONIC: (_encode_evm, _decode_evm),
    ChainFamily.INJECTIVE: (_encode_utf8, _decode_utf8),
    ChainFamily.BITCOIN: (_encode_utf8, _decode_utf8),
    ChainFamily.STACKS: (_encode_utf8, _decode_utf8),
    ChainFamily.ICON: (_encode_icon, _decode_icon),
    ChainFamily.SUI: (_encode_sui, _decode_sui),
    ChainFamily.SOLANA: (_encode_solana, _decode_solana),
    ChainFamily.STELLAR: (_encode_stellar, _decode_stellar),
}


def encode_for_family(family: ChainFamily, address: str) -> bytes:
    encoder, _ = _CODECS[family]
    return encoder(address)


def decode_for_family(family: ChainFamily, data: bytes) -> str:
    _, decoder = _CODECS[family]
    return decoder(bytes(data))


def encode_address(chain_id: str, address: str) -> bytes:
    """Encode a native spoke address into its hub message byte form."""

    return encode_for_family(get_chain_family(chain_id), address)


def decode_address(chain_id: str, data: bytes) -> str:
    """Decode hub message bytes back into the native spoke address."""

    return decode_for_family(get_chain_family(chain_id), data)
