"""Hub-side call builders that move value between spoke tokens and vault shares."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from web3 import Web3

from ..codec import decode_address
from ..config import HubChainConfig
from ..connections import Web3Connection
from ..constants import VAULT_TOKEN_DECIMALS
from ..evm_utils import decode_calls as _decode_calls
from ..evm_utils import encode_approve, encode_function_call, encode_transfer
from ..evm_utils import encode_calls as _encode_calls
from ..exceptions import InvalidAmountError, InvalidParamsError
from ..intents import calculate_fee_amount
from ..registry import AssetConfigRegistry
from ..types import (
    ZERO_ADDRESS,
    AssetDescriptor,
    ContractCall,
    PartnerFee,
    VaultReserves,
    VaultTokenInfo,
)

logger = logging.getLogger(__name__)


def translate_incoming(amount: int, decimals: int) -> int:
    """Scale a native amount to the vault's fixed decimal base."""

    if decimals <= VAULT_TOKEN_DECIMALS:
        return amount * 10 ** (VAULT_TOKEN_DECIMALS - decimals)
    return amount // 10 ** (decimals - VAULT_TOKEN_DECIMALS)


def translate_outgoing(amount: int, decimals: int) -> int:
    """Scale a vault amount back to native decimals, rounding down."""

    if decimals <= VAULT_TOKEN_DECIMALS:
        return amount // 10 ** (VAULT_TOKEN_DECIMALS - decimals)
    return amount * 10 ** (decimals - VAULT_TOKEN_DECIMALS)


class AssetBridgeService:
    """Build ordered hub call batches for wrapping and unwrapping assets.

    Calls are returned as data; executing them (usually packed into one
    spoke deposit or hub wallet message) is the caller's job.
    """

    def __init__(
        self,
        connection: Web3Connection,
        hub: HubChainConfig,
        registry: AssetConfigRegistry,
    ) -> None:
        self._connection = connection
        self._hub = hub
        self._registry = registry

    @property
    def hub_chain_id(self) -> str:
        return self._hub.chain_id

    # ------------------------------------------------------------------
    # Hub reads
    # ------------------------------------------------------------------
    def get_token_infos(self, vault: str, tokens: Sequence[str]) -> list[VaultTokenInfo]:
        infos: list[VaultTokenInfo] = []
        for token in tokens:
            decimals, deposit_fee, withdrawal_fee, max_deposit, is_supported = self._connection.call(
                vault,
                "tokenInfo(address)",
                [Web3.to_checksum_address(token)],
                ["uint8", "uint256", "uint256", "uint256", "bool"],
            )
            infos.append(
                VaultTokenInfo(
                    decimals=int(decimals),
                    deposit_fee=int(deposit_fee),
                    withdrawal_fee=int(withdrawal_fee),
                    max_deposit=int(max_deposit),
                    is_supported=bool(is_supported),
                )
            )
        return infos

    def get_vault_reserves(self, vault: str) -> VaultReserves:
        """Tokens held by ``vault`` and the balance of each."""

        tokens, balances = self._connection.call(
            vault, "getVaultReserves()", [], ["address[]", "uint256[]"]
        )
        return VaultReserves(
            tokens=tuple(Web3.to_checksum_address(token) for token in tokens),
            balances=tuple(int(balance) for balance in balances),
        )

    def get_stata_token(self, vault: str) -> str:
        (token,) = self._connection.call(
            self._hub.stata_token_factory,
            "getStataToken(address)",
            [Web3.to_checksum_address(vault)],
            ["address"],
        )
        return Web3.to_checksum_address(token)

    def get_unwrapped_amount(self, pool_token: str, shares: int) -> int:
        """ERC-4626 ``convertToAssets`` on the second-layer pool token."""

        (assets,) = self._connection.call(
            pool_token, "convertToAssets(uint256)", [shares], ["uint256"]
        )
        return int(assets)

    # ------------------------------------------------------------------
    # Wrap / unwrap
    # ------------------------------------------------------------------
    def build_wrap_calls(
        self,
        spoke_token: str,
        spoke_chain_id: str,
        amount: int,
        pool_token: str,
        recipient: str,
    ) -> list[ContractCall]:
        """Deposit a bridged asset into its vault, then into the pool wrapper.

        When ``pool_token`` is the vault itself only the vault deposit is built.

        Raises:
            HubAssetNotFoundError: If the spoke token has no hub mapping
            InvalidParamsError: If the pool token does not wrap the asset's vault
        """

        _require_positive(amount)
        descriptor = self._registry.require_hub_asset(spoke_chain_id, spoke_token)

        calls = [
            encode_approve(descriptor.asset, descriptor.vault, amount),
            _vault_deposit(descriptor, amount),
        ]
        if pool_token.lower() == descriptor.vault.lower():
            return calls

        stata_token = self.get_stata_token(descriptor.vault)
        if stata_token.lower() != pool_token.lower():
            raise InvalidParamsError(
                f"Pool token {pool_token} does not wrap vault {descriptor.vault}",
                field="pool_token",
                value=pool_token,
                details={"expected": stata_token},
            )

        translated = translate_incoming(amount, descriptor.decimals)
        calls.append(encode_approve(descriptor.vault, stata_token, translated))
        calls.append(
            ContractCall(
                address=stata_token,
                value=0,
                data=encode_function_call(
                    "deposit(uint256,address)",
                    [translated, Web3.to_checksum_address(recipient)],
                ),
            )
        )
        logger.debug(
            "Wrap calls for %s on %s: %s calls (translated=%s)",
            spoke_token,
            spoke_chain_id,
            len(calls),
            translated,
        )
        return calls

    def build_unwrap_calls(
        self,
        spoke_chain_id: str,
        spoke_token: str,
        amount: int,
        holder: str,
        recipient: bytes,
    ) -> list[ContractCall]:
        """Mirror of :meth:`build_wrap_calls`, ending with a transfer to ``recipient``.

        ``recipient`` is the codec-encoded address on ``spoke_chain_id``.
        """

        _require_positive(amount)
        descriptor = self._registry.require_hub_asset(spoke_chain_id, spoke_token)
        holder_address = Web3.to_checksum_address(holder)

        calls: list[ContractCall] = []
        vault_amount = amount
        if descriptor.vault.lower() != self._hub.bnusd_vault.lower():
            stata_token = self.get_stata_token(descriptor.vault)
            if stata_token.lower() != ZERO_ADDRESS:
                vault_amount = self.get_unwrapped_amount(stata_token, amount)
                calls.append(
                    ContractCall(
                        address=stata_token,
                        value=0,
                        data=encode_function_call(
                            "redeem(uint256,address,address)",
                            [amount, holder_address, holder_address],
                        ),
                    )
                )

        calls.append(_vault_withdraw(descriptor, vault_amount))
        asset_amount = translate_outgoing(vault_amount, descriptor.decimals)
        calls.append(self._transfer_out(spoke_chain_id, descriptor.asset, recipient, asset_amount))
        return calls

    # ------------------------------------------------------------------
    # Plain vault deposit / withdraw
    # ------------------------------------------------------------------
    def build_deposit_calls(
        self,
        spoke_chain_id: str,
        spoke_token: str,
        amount: int,
        recipient: str,
    ) -> list[ContractCall]:
        """Deposit into the vault and hand the minted shares to ``recipient``."""

        _require_positive(amount)
        descriptor = self._registry.require_hub_asset(spoke_chain_id, spoke_token)
        return [
            encode_approve(descriptor.asset, descriptor.vault, amount),
            _vault_deposit(descriptor, amount),
            encode_transfer(
                descriptor.vault, recipient, translate_incoming(amount, descriptor.decimals)
            ),
        ]

    def build_withdraw_calls(
        self,
        spoke_chain_id: str,
        spoke_token: str,
        amount: int,
        recipient: bytes,
    ) -> list[ContractCall]:
        """Send ``amount`` of the hub asset back to ``recipient`` on its spoke chain."""

        _require_positive(amount)
        descriptor = self._registry.require_hub_asset(spoke_chain_id, spoke_token)
        return [self._transfer_out(spoke_chain_id, descriptor.asset, recipient, amount)]

    # ------------------------------------------------------------------
    # Spoke to spoke
    # ------------------------------------------------------------------
    def build_bridge_calls(
        self,
        src_chain_id: str,
        src_token: str,
        dst_chain_id: str,
        dst_token: str,
        amount: int,
        recipient: bytes,
        fee: PartnerFee | None = None,
    ) -> list[ContractCall]:
        """Move ``amount`` of ``src_token`` through its vault and out as ``dst_token``.

        Tokens that are themselves vault shares skip the matching deposit or
        withdrawal. The partner fee is paid in vault shares before withdrawal.
        ``recipient`` is the codec-encoded address on ``dst_chain_id``.

        Raises:
            HubAssetNotFoundError: If either token has no hub mapping
            InvalidParamsError: If the two tokens are backed by different vaults
            InvalidAmountError: If nothing is left to send after the fee
        """

        _require_positive(amount)
        src = self._registry.require_hub_asset(src_chain_id, src_token)
        dst = self._registry.require_hub_asset(dst_chain_id, dst_token)
        if src.vault.lower() != dst.vault.lower():
            raise InvalidParamsError(
                f"{src_token} on {src_chain_id} and {dst_token} on {dst_chain_id} do not share a vault",
                field="dst_token",
                value=dst_token,
                details={"src_vault": src.vault, "dst_vault": dst.vault},
            )

        calls: list[ContractCall] = []
        shares = amount
        share_token = src.asset
        if not self._registry.is_vault(src.asset):
            calls.append(encode_approve(src.asset, src.vault, amount))
            calls.append(_vault_deposit(src, amount))
            shares = translate_incoming(amount, src.decimals)
            share_token = src.vault

        fee_amount = calculate_fee_amount(shares, fee)
        if fee is not None and fee_amount > 0:
            calls.append(encode_transfer(share_token, fee.address, fee_amount))
        shares -= fee_amount
        if shares <= 0:
            raise InvalidAmountError(
                "Amount after partner fee must be greater than 0",
                field="amount",
                value=amount,
                details={"fee_amount": fee_amount},
            )

        out_amount = shares
        if not self._registry.is_vault(dst.asset):
            calls.append(_vault_withdraw(dst, shares))
            out_amount = translate_outgoing(shares, dst.decimals)

        if dst_chain_id == self._hub.chain_id and dst_token.lower() == self._hub.native_token.lower():
            # Unwrap to the native token on the way out
            receiver = Web3.to_checksum_address(decode_address(dst_chain_id, recipient))
            calls.append(
                ContractCall(
                    address=dst.asset,
                    value=0,
                    data=encode_function_call("withdrawTo(address,uint256)", [receiver, out_amount]),
                )
            )
        else:
            calls.append(self._transfer_out(dst_chain_id, dst.asset, recipient, out_amount))
        logger.debug(
            "Bridge calls %s/%s -> %s/%s: %s calls (shares=%s, fee=%s, out=%s)",
            src_chain_id,
            src_token,
            dst_chain_id,
            dst_token,
            len(calls),
            shares,
            fee_amount,
            out_amount,
        )
        return calls

    # ------------------------------------------------------------------
    # Call batch codec
    # ------------------------------------------------------------------
    @staticmethod
    def encode_calls(calls: Sequence[ContractCall]) -> bytes:
        return _encode_calls(calls)

    @staticmethod
    def decode_calls(data: bytes) -> list[ContractCall]:
        return _decode_calls(data)

    def _transfer_out(
        self, spoke_chain_id: str, asset: str, recipient: bytes, amount: int
    ) -> ContractCall:
        if spoke_chain_id == self._hub.chain_id:
            return encode_transfer(asset, decode_address(spoke_chain_id, recipient), amount)
        return ContractCall(
            address=self._hub.asset_manager,
            value=0,
            data=encode_function_call(
                "transfer(address,bytes,uint256,bytes)",
                [Web3.to_checksum_address(asset), bytes(recipient), amount, b""],
            ),
        )


def _vault_deposit(descriptor: AssetDescriptor, amount: int) -> ContractCall:
    return ContractCall(
        address=descriptor.vault,
        value=0,
        data=encode_function_call(
            "deposit(address,uint256)", [Web3.to_checksum_address(descriptor.asset), amount]
        ),
    )


def _vault_withdraw(descriptor: AssetDescriptor, amount: int) -> ContractCall:
    return ContractCall(
        address=descriptor.vault,
        value=0,
        data=encode_function_call(
            "withdraw(address,uint256)", [Web3.to_checksum_address(descriptor.asset), amount]
        ),
    )


def _require_positive(amount: int) -> None:
    if amount <= 0:
        raise InvalidAmountError("Amount must be greater than 0", field="amount", value=amount)
