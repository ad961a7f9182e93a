"""Bridging actions: move spoke tokens into hub vaults, out again and across spokes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict
from typing import Any

from .codec import encode_address
from .exceptions import (
    AllowanceCheckFailedError,
    ApprovalFailedError,
    InvalidParamsError,
    SodaxError,
)
from .evm_utils import encode_calls
from .hub.bridge import AssetBridgeService
from .hub.wallet import HubWalletAbstraction
from .intents import calculate_fee_amount
from .registry import AssetConfigRegistry
from .relay import RelayClient
from .spoke.base import SpokeProvider
from .types import (
    BridgeLimit,
    BridgeLimitType,
    ErrorCode,
    PacketStatus,
    PartnerFee,
    Response,
    SubmittedTransaction,
    UnsignedTransaction,
    VaultReserves,
)

logger = logging.getLogger(__name__)


class AssetService:
    """Deposit into, withdraw from and bridge through hub vaults for a spoke wallet."""

    def __init__(
        self,
        registry: AssetConfigRegistry,
        bridge: AssetBridgeService,
        hub_wallets: HubWalletAbstraction,
        relay: RelayClient,
        partner_fee: PartnerFee | None = None,
    ) -> None:
        self._registry = registry
        self._bridge = bridge
        self._hub_wallets = hub_wallets
        self._relay = relay
        self._partner_fee = partner_fee

    def deposit(
        self,
        spoke_token: str,
        amount: int,
        spoke_provider: SpokeProvider,
        pool_token: str | None = None,
        raw: bool = False,
        timeout: float | None = None,
    ) -> Response:
        """Bridge ``amount`` of ``spoke_token`` into its hub vault.

        With ``pool_token`` set to a second-layer wrapper the vault shares are
        deposited once more. The shares end up in the user's hub wallet.
        """

        payload = {
            "chain_id": spoke_provider.chain_id,
            "token": spoke_token,
            "amount": str(amount),
            "pool_token": pool_token,
        }

        def run() -> Response:
            wallet = spoke_provider.get_wallet_address()
            hub_wallet = self._hub_wallets.derive_user_wallet_address(spoke_provider.chain_id, wallet)
            descriptor = self._registry.require_hub_asset(spoke_provider.chain_id, spoke_token)
            calls = self._bridge.build_wrap_calls(
                spoke_token,
                spoke_provider.chain_id,
                amount,
                pool_token or descriptor.vault,
                hub_wallet,
            )
            data = encode_calls(calls)
            unsigned = spoke_provider.build_deposit(spoke_token, amount, hub_wallet, data)
            logger.debug(
                "Stage DEPOSIT [%s]: built (hub_wallet=%s, calls=%s, raw=%s)",
                spoke_provider.chain_id,
                hub_wallet,
                len(calls),
                raw,
            )
            if raw:
                return Response(success=True, value=unsigned)
            relay_data = spoke_provider.relay_submit_data(hub_wallet, data)
            return self._send_and_relay(spoke_provider, unsigned, timeout, relay_data)

        return self._guard("deposit", run, payload)

    def withdraw(
        self,
        spoke_chain_id: str,
        spoke_token: str,
        amount: int,
        recipient: str,
        spoke_provider: SpokeProvider,
        raw: bool = False,
        timeout: float | None = None,
    ) -> Response:
        """Unwrap ``amount`` vault shares held by the hub wallet of ``spoke_provider``.

        The asset is sent to ``recipient`` on ``spoke_chain_id``, which may
        differ from the chain the instruction is sent from.
        """

        payload = {
            "chain_id": spoke_chain_id,
            "token": spoke_token,
            "amount": str(amount),
            "recipient": recipient,
        }

        def run() -> Response:
            hub_wallet = self._hub_wallets.derive_user_wallet_address(
                spoke_provider.chain_id, spoke_provider.get_wallet_address()
            )
            destination = self._registry.get_spoke_chain(spoke_chain_id)
            encoded_recipient = encode_address(destination.chain_id, recipient)
            calls = self._bridge.build_unwrap_calls(
                spoke_chain_id, spoke_token, amount, hub_wallet, encoded_recipient
            )
            unsigned = spoke_provider.build_wallet_call(hub_wallet, calls)
            logger.debug(
                "Stage WITHDRAW [%s]: built (hub_wallet=%s, calls=%s, raw=%s)",
                spoke_chain_id,
                hub_wallet,
                len(calls),
                raw,
            )
            if raw:
                return Response(success=True, value=unsigned)
            relay_data = spoke_provider.relay_submit_data(hub_wallet, encode_calls(calls))
            return self._send_and_relay(spoke_provider, unsigned, timeout, relay_data)

        return self._guard("withdraw", run, payload)

    # ------------------------------------------------------------------
    # Spoke to spoke bridge
    # ------------------------------------------------------------------
    @property
    def partner_fee(self) -> PartnerFee | None:
        return self._partner_fee

    def get_fee(self, amount: int) -> int:
        """Partner fee the configured bridge fee takes out of ``amount``."""
        return calculate_fee_amount(amount, self._partner_fee)

    def bridge(
        self,
        src_token: str,
        amount: int,
        dst_chain_id: str,
        dst_token: str,
        recipient: str,
        spoke_provider: SpokeProvider,
        fee: PartnerFee | None = None,
        raw: bool = False,
        timeout: float | None = None,
    ) -> Response:
        """Send ``amount`` of ``src_token`` to ``recipient`` as ``dst_token`` on ``dst_chain_id``.

        Both tokens must be backed by the same hub vault. One spoke deposit
        carries the hub calls, so the tokens pass through the user's hub
        wallet. On success ``value`` is the spoke transaction and ``tx_hash``
        the hub transaction that executed the calls.
        """

        payload = {
            "src_chain_id": spoke_provider.chain_id,
            "src_token": src_token,
            "amount": str(amount),
            "dst_chain_id": dst_chain_id,
            "dst_token": dst_token,
            "recipient": recipient,
        }

        def run() -> Response:
            wallet = spoke_provider.get_wallet_address()
            hub_wallet = self._hub_wallets.derive_user_wallet_address(spoke_provider.chain_id, wallet)
            destination = self._registry.get_spoke_chain(dst_chain_id)
            calls = self._bridge.build_bridge_calls(
                spoke_provider.chain_id,
                src_token,
                dst_chain_id,
                dst_token,
                amount,
                encode_address(destination.chain_id, recipient),
                fee or self._partner_fee,
            )
            data = encode_calls(calls)
            unsigned = spoke_provider.build_deposit(src_token, amount, hub_wallet, data)
            logger.debug(
                "Stage BRIDGE [%s]: built (dst=%s, hub_wallet=%s, calls=%s, raw=%s)",
                spoke_provider.chain_id,
                dst_chain_id,
                hub_wallet,
                len(calls),
                raw,
            )
            if raw:
                return Response(success=True, value=unsigned)
            relay_data = spoke_provider.relay_submit_data(hub_wallet, data)
            return self._send_and_relay(spoke_provider, unsigned, timeout, relay_data)

        return self._guard("bridge", run, payload)

    def is_bridgeable(self, src_chain_id: str, src_token: str, dst_chain_id: str, dst_token: str) -> bool:
        """True when both tokens are configured and share a hub vault."""

        if src_chain_id not in self._registry.chain_ids or dst_chain_id not in self._registry.chain_ids:
            return False
        src = self._registry.get_hub_asset(src_chain_id, src_token)
        dst = self._registry.get_hub_asset(dst_chain_id, dst_token)
        if src is None or dst is None:
            return False
        return src.vault.lower() == dst.vault.lower()

    def get_bridgeable_tokens(self, src_chain_id: str, dst_chain_id: str, token: str) -> Response:
        """Tokens on ``dst_chain_id`` that ``token`` can be bridged into."""

        payload = {"src_chain_id": src_chain_id, "dst_chain_id": dst_chain_id, "token": token}

        def run() -> Response:
            src = self._registry.require_hub_asset(src_chain_id, token)
            self._registry.get_spoke_chain(dst_chain_id)
            vault = src.vault.lower()
            tokens = [
                dst_token
                for dst_token, descriptor in self._registry.hub_assets(dst_chain_id).items()
                if descriptor.vault.lower() == vault
            ]
            return Response(success=True, value=tokens)

        return self._guard("get_bridgeable_tokens", run, payload)

    def get_bridgeable_amount(
        self, src_chain_id: str, src_token: str, dst_chain_id: str, dst_token: str
    ) -> Response:
        """Largest amount the shared vault currently accepts for this route.

        Leaving a spoke is capped by the vault's remaining deposit room for
        the source token; arriving on a spoke is capped by what the vault
        holds of the destination token. Spoke to spoke takes the smaller of
        the two, compared in whole token units. ``value`` is a
        :class:`BridgeLimit`.
        """

        payload = {
            "src_chain_id": src_chain_id,
            "src_token": src_token,
            "dst_chain_id": dst_chain_id,
            "dst_token": dst_token,
        }

        def run() -> Response:
            src = self._registry.require_hub_asset(src_chain_id, src_token)
            dst = self._registry.require_hub_asset(dst_chain_id, dst_token)
            if not self.is_bridgeable(src_chain_id, src_token, dst_chain_id, dst_token):
                raise InvalidParamsError(
                    f"Tokens {src_token} and {dst_token} are not bridgeable",
                    field="dst_token",
                    value=dst_token,
                )

            src_info, dst_info = self._bridge.get_token_infos(src.vault, [src.asset, dst.asset])
            reserves = self._bridge.get_vault_reserves(dst.vault)

            if not src_info.is_supported:
                limit = BridgeLimit(0, src_info.decimals, BridgeLimitType.DEPOSIT_LIMIT)
                return Response(success=True, value=limit)

            def deposit_limit() -> BridgeLimit:
                deposited = self._reserve_of(reserves, src.asset, src_chain_id)
                room = max(src_info.max_deposit - deposited, 0)
                return BridgeLimit(room, src_info.decimals, BridgeLimitType.DEPOSIT_LIMIT)

            def withdrawal_limit() -> BridgeLimit:
                held = self._reserve_of(reserves, dst.asset, dst_chain_id)
                return BridgeLimit(held, dst_info.decimals, BridgeLimitType.WITHDRAWAL_LIMIT)

            hub_chain_id = self._bridge.hub_chain_id
            if src_chain_id != hub_chain_id and dst_chain_id == hub_chain_id:
                limit = deposit_limit()
            elif src_chain_id == hub_chain_id and dst_chain_id != hub_chain_id:
                limit = withdrawal_limit()
            else:
                deposit, withdrawal = deposit_limit(), withdrawal_limit()
                # Compare in whole token units
                if deposit.amount * 10**withdrawal.decimals < withdrawal.amount * 10**deposit.decimals:
                    limit = deposit
                else:
                    limit = withdrawal
            logger.debug(
                "Bridge limit %s/%s -> %s/%s: %s %s",
                src_chain_id,
                src_token,
                dst_chain_id,
                dst_token,
                limit.amount,
                limit.type.value,
            )
            return Response(success=True, value=limit)

        return self._guard("get_bridgeable_amount", run, payload)

    # ------------------------------------------------------------------
    # Allowances
    # ------------------------------------------------------------------
    def is_allowance_valid(self, spoke_token: str, amount: int, spoke_provider: SpokeProvider) -> Response:
        try:
            if not spoke_provider.requires_allowance(spoke_token):
                return Response(success=True, value=True)
            allowance = spoke_provider.get_allowance(
                spoke_token, spoke_provider.get_wallet_address(), spoke_provider.deposit_spender()
            )
        except Exception as exc:
            logger.error("Deposit allowance check failed: %s", exc)
            return AllowanceCheckFailedError(
                f"Allowance check failed: {exc}", details={"error": str(exc)}
            ).to_response(payload={"token": spoke_token, "amount": str(amount)})
        return Response(success=True, value=allowance >= amount)

    def approve(
        self,
        spoke_token: str,
        amount: int,
        spoke_provider: SpokeProvider,
        raw: bool = False,
    ) -> Response:
        try:
            unsigned = spoke_provider.build_approve(spoke_token, spoke_provider.deposit_spender(), amount)
            if raw:
                return Response(success=True, value=unsigned)
            tx_hash = spoke_provider.send(unsigned)
        except Exception as exc:
            logger.error("Deposit approval failed: %s", exc)
            return ApprovalFailedError(
                f"Approval failed: {exc}", details={"error": str(exc)}
            ).to_response(payload={"token": spoke_token, "amount": str(amount)})
        return Response(
            success=True, value=SubmittedTransaction(spoke_provider.chain_id, tx_hash), tx_hash=tx_hash
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _send_and_relay(
        self,
        spoke_provider: SpokeProvider,
        unsigned: UnsignedTransaction,
        timeout: float | None,
        relay_data: dict[str, Any] | None = None,
    ) -> Response:
        tx_hash = spoke_provider.send(unsigned)
        submitted = SubmittedTransaction(spoke_provider.chain_id, tx_hash)
        if not spoke_provider.wait_for_transaction(tx_hash):
            return Response.failure(
                ErrorCode.SUBMIT_TX_FAILED,
                f"Spoke transaction {tx_hash} was not confirmed",
                raw_response={"tx_hash": tx_hash},
                value=submitted,
            )
        if spoke_provider.is_hub:
            return Response(success=True, value=submitted, tx_hash=tx_hash)

        packet = self._relay.relay_and_wait(spoke_provider.relay_chain_id, tx_hash, relay_data, timeout)
        if packet.status is PacketStatus.FAILED:
            return Response.failure(
                ErrorCode.RELAY_FAILED,
                f"Relay reported failed delivery of {tx_hash}",
                raw_response={"packet": asdict(packet)},
                value=submitted,
                tx_hash=tx_hash,
            )
        logger.info("Bridged %s on %s to hub tx %s", tx_hash, spoke_provider.chain_id, packet.dst_tx_hash)
        return Response(success=True, value=submitted, tx_hash=packet.dst_tx_hash)

    @staticmethod
    def _reserve_of(reserves: VaultReserves, asset: str, chain_id: str) -> int:
        balance = reserves.balance_of(asset)
        if balance is None:
            raise InvalidParamsError(
                f"Token {asset} not found in the vault reserves for {chain_id}",
                field="token",
                value=asset,
            )
        return balance

    def _guard(self, name: str, run: Callable[[], Response], payload: dict[str, Any]) -> Response:
        try:
            return run()
        except SodaxError as exc:
            logger.error("%s failed: %s", name, exc.message)
            return exc.to_response(payload=payload)
        except Exception as exc:
            logger.exception("Unexpected %s failure", name)
            return Response.failure(
                ErrorCode.UNKNOWN, str(exc), raw_response={"payload": payload, "error": str(exc)}
            )


__all__ = ["AssetService"]
