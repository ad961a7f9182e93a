"""Tests for the chain address codec."""

import pytest
from web3 import Web3

from sodax_intents.codec import _encode_strkey, decode_address, encode_address
from sodax_intents.constants import (
    ARBITRUM_MAINNET_CHAIN_ID,
    BITCOIN_MAINNET_CHAIN_ID,
    ICON_MAINNET_CHAIN_ID,
    INJECTIVE_MAINNET_CHAIN_ID,
    SOLANA_MAINNET_CHAIN_ID,
    SONIC_MAINNET_CHAIN_ID,
    STELLAR_MAINNET_CHAIN_ID,
    SUI_MAINNET_CHAIN_ID,
)
from sodax_intents.exceptions import InvalidParamsError, ValidationError

STELLAR_CONTRACT = "CAS3J7GYLGXMF6TDJBBYYSE3HQ6BBSMLNUQ34T6TZMYMW2EVH34XOWMA"


class TestEvmAddresses:
    def test_encodes_to_twenty_bytes(self):
        encoded = encode_address(ARBITRUM_MAINNET_CHAIN_ID, "0x" + "ab" * 20)
        assert encoded == bytes.fromhex("ab" * 20)

    def test_decode_returns_checksum_form(self):
        address = "0xaf88d065e77c8cc2239327c5edb3a432268e5831"
        encoded = encode_address(ARBITRUM_MAINNET_CHAIN_ID, address)
        assert decode_address(ARBITRUM_MAINNET_CHAIN_ID, encoded) == Web3.to_checksum_address(address)

    def test_hub_chain_uses_evm_form(self):
        address = Web3.to_checksum_address("0x" + "12" * 20)
        encoded = encode_address(SONIC_MAINNET_CHAIN_ID, address)
        assert decode_address(SONIC_MAINNET_CHAIN_ID, encoded) == address

    def test_rejects_malformed_address(self):
        with pytest.raises(ValidationError) as excinfo:
            encode_address(ARBITRUM_MAINNET_CHAIN_ID, "0x1234")
        assert excinfo.value.field == "address"

    def test_rejects_wrong_length_bytes(self):
        with pytest.raises(ValidationError):
            decode_address(ARBITRUM_MAINNET_CHAIN_ID, b"\x01" * 19)


class TestIconAddresses:
    def test_wallet_address_prefix_byte(self):
        address = "hx" + "0a" * 20
        encoded = encode_address(ICON_MAINNET_CHAIN_ID, address)
        assert len(encoded) == 21
        assert encoded[0] == 0x00
        assert decode_address(ICON_MAINNET_CHAIN_ID, encoded) == address

    def test_contract_address_prefix_byte(self):
        address = "cx88fd7df7ddff82f7cc735c871dc519838cb235bb"
        encoded = encode_address(ICON_MAINNET_CHAIN_ID, address)
        assert encoded[0] == 0x01
        assert decode_address(ICON_MAINNET_CHAIN_ID, encoded) == address

    def test_rejects_unknown_prefix(self):
        with pytest.raises(ValidationError):
            encode_address(ICON_MAINNET_CHAIN_ID, "ax" + "00" * 20)


class TestSuiAddresses:
    def test_short_address_is_left_padded(self):
        encoded = encode_address(SUI_MAINNET_CHAIN_ID, "0x2")
        assert len(encoded) == 32
        assert decode_address(SUI_MAINNET_CHAIN_ID, encoded) == "0x" + "00" * 31 + "02"

    def test_full_address_round_trip(self):
        address = "0x" + "5f" * 32
        assert decode_address(SUI_MAINNET_CHAIN_ID, encode_address(SUI_MAINNET_CHAIN_ID, address)) == address


class TestSolanaAddresses:
    def test_system_program_is_zero_key(self):
        encoded = encode_address(SOLANA_MAINNET_CHAIN_ID, "11111111111111111111111111111111")
        assert encoded == bytes(32)

    def test_round_trip(self):
        address = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
        encoded = encode_address(SOLANA_MAINNET_CHAIN_ID, address)
        assert len(encoded) == 32
        assert decode_address(SOLANA_MAINNET_CHAIN_ID, encoded) == address

    def test_rejects_invalid_characters(self):
        with pytest.raises(ValidationError):
            encode_address(SOLANA_MAINNET_CHAIN_ID, "0OIl")


class TestStellarAddresses:
    def test_contract_address_round_trip(self):
        encoded = encode_address(STELLAR_MAINNET_CHAIN_ID, STELLAR_CONTRACT)
        assert len(encoded) == 40
        assert encoded[:8] == bytes.fromhex("0000001200000001")
        assert decode_address(STELLAR_MAINNET_CHAIN_ID, encoded) == STELLAR_CONTRACT

    def test_account_address_round_trip(self):
        account = _encode_strkey(6 << 3, bytes(range(32)))
        assert account.startswith("G")

        encoded = encode_address(STELLAR_MAINNET_CHAIN_ID, account)
        assert len(encoded) == 44
        assert encoded[-32:] == bytes(range(32))
        assert decode_address(STELLAR_MAINNET_CHAIN_ID, encoded) == account

    def test_rejects_bad_checksum(self):
        corrupted = STELLAR_CONTRACT[:-1] + ("B" if STELLAR_CONTRACT[-1] != "B" else "C")
        with pytest.raises(ValidationError):
            encode_address(STELLAR_MAINNET_CHAIN_ID, corrupted)

    def test_rejects_non_address_scval(self):
        with pytest.raises(ValidationError):
            decode_address(STELLAR_MAINNET_CHAIN_ID, b"\x00" * 40)


class TestUtf8Addresses:
    def test_injective_bech32_is_utf8(self):
        address = "inj1dg6tm62uup53wn2kn97caeqfwt0sukx3qjk8rw"
        encoded = encode_address(INJECTIVE_MAINNET_CHAIN_ID, address)
        assert encoded == address.encode()
        assert decode_address(INJECTIVE_MAINNET_CHAIN_ID, encoded) == address

    def test_bitcoin_is_utf8(self):
        address = "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq"
        assert decode_address(BITCOIN_MAINNET_CHAIN_ID, encode_address(BITCOIN_MAINNET_CHAIN_ID, address)) == address

    def test_empty_address_rejected(self):
        with pytest.raises(ValidationError):
            encode_address(BITCOIN_MAINNET_CHAIN_ID, "")

    def test_invalid_utf8_bytes_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            decode_address(INJECTIVE_MAINNET_CHAIN_ID, b"\xff\xfe")
        assert excinfo.value.field == "address"


def test_unknown_chain_rejected():
    with pytest.raises(InvalidParamsError):
        encode_address("0x1.ethereum", "0x" + "ab" * 20)
