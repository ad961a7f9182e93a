"""Intent lifecycle orchestration: create, relay, execute, query and cancel."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any

from .config import SodaxConfig
from .connections import Web3Connection
from .constants import DEFAULT_SOLVER_FEE_BPS
from .evm_utils import encode_calls
from .exceptions import (
    AllowanceCheckFailedError,
    ApprovalFailedError,
    InvalidParamsError,
    InvalidStateTransitionError,
    RelayTimeoutError,
    SodaxError,
    SubmitTxFailedError,
)
from .hub.wallet import HubWalletAbstraction
from .intents import (
    INTENT_STATES_SIGNATURE,
    IntentBuilder,
    build_create_intent_calls,
    calculate_fee_amount,
    calculate_percentage_fee,
    decode_intent_state,
    parse_intent_created,
    parse_intent_filled,
)
from .relay import RelayClient
from .solver import SolverApiClient
from .spoke.base import SpokeProvider, check_provider, check_relay_chain
from .types import (
    INTENT_STATE_ABI_TYPE,
    CreateIntentParams,
    ErrorCode,
    Intent,
    IntentDeliveryInfo,
    IntentLifecycleState,
    IntentOnchainState,
    PacketData,
    PacketStatus,
    PartnerFee,
    QuoteRequest,
    QuoteType,
    Response,
    SubmittedTransaction,
    UnsignedTransaction,
)

logger = logging.getLogger(__name__)

State = IntentLifecycleState

_TRANSITIONS: dict[IntentLifecycleState, frozenset[IntentLifecycleState]] = {
    State.BUILT: frozenset({State.SIGNED}),
    State.SIGNED: frozenset({State.SUBMITTED}),
    State.SUBMITTED: frozenset({State.RELAYING, State.EXECUTED, State.CANCELLED}),
    State.RELAYING: frozenset({State.EXECUTED, State.FAILED, State.CANCELLED}),
    State.EXECUTED: frozenset({State.CANCELLED}),
    State.FAILED: frozenset({State.CANCELLED}),
    State.CANCELLED: frozenset(),
}


@dataclass
class IntentLifecycle:
    """Client-side state machine of a single intent.

    Every intent gets its own instance; nothing is shared between intents.
    """

    intent: Intent
    src_chain_id: str
    fee_amount: int = 0
    state: IntentLifecycleState = State.BUILT
    spoke_tx_hash: str | None = None
    hub_tx_hash: str | None = None
    packet: PacketData | None = None
    relay_data: dict[str, Any] | None = None
    history: list[IntentLifecycleState] = field(default_factory=lambda: [State.BUILT])

    def can_advance(self, new_state: IntentLifecycleState) -> bool:
        return new_state in _TRANSITIONS[self.state]

    def ensure_can_advance(self, new_state: IntentLifecycleState) -> None:
        if not self.can_advance(new_state):
            raise InvalidStateTransitionError(self.state.value, new_state.value)

    def advance(self, new_state: IntentLifecycleState) -> None:
        self.ensure_can_advance(new_state)
        logger.debug(
            "Stage LIFECYCLE [%s]: %s -> %s", self.intent.intent_id, self.state.value, new_state.value
        )
        self.state = new_state
        self.history.append(new_state)

    @property
    def is_terminal(self) -> bool:
        return self.state in (State.EXECUTED, State.FAILED, State.CANCELLED)


def adjust_amount_by_fee(amount: int, fee: PartnerFee | None, quote_type: QuoteType) -> int:
    """Quote amount net of partner fee: subtract on exact input, add on exact output."""

    fee_amount = calculate_fee_amount(amount, fee)
    if quote_type is QuoteType.EXACT_INPUT:
        return amount - fee_amount
    return amount + fee_amount


class IntentSettlementService:
    """Drive intents from creation on a spoke chain to settlement on the hub."""

    def __init__(
        self,
        config: SodaxConfig,
        hub_connection: Web3Connection,
        builder: IntentBuilder,
        hub_wallets: HubWalletAbstraction,
        relay: RelayClient,
        solver: SolverApiClient,
    ) -> None:
        self._config = config
        self._hub = hub_connection
        self._builder = builder
        self._hub_wallets = hub_wallets
        self._relay = relay
        self._solver = solver

    @property
    def intents_contract(self) -> str:
        return self._config.solver.intents_contract

    @property
    def partner_fee(self) -> PartnerFee | None:
        return self._config.solver.partner_fee

    # ------------------------------------------------------------------
    # Creation and submission
    # ------------------------------------------------------------------
    def create_intent(
        self,
        params: CreateIntentParams,
        spoke_provider: SpokeProvider,
        fee: PartnerFee | None = None,
        raw: bool = False,
    ) -> Response:
        """Build, sign and broadcast the spoke transaction creating an intent.

        The value is ``(tx, lifecycle)``. With ``raw=True`` ``tx`` is the
        :class:`UnsignedTransaction` and the lifecycle stays ``BUILT``;
        otherwise it is a :class:`SubmittedTransaction` and the lifecycle is
        ``SUBMITTED``.
        """

        def run() -> Response:
            check_provider(spoke_provider, params.src_chain)
            wallet_address = spoke_provider.get_wallet_address()
            if not _same_address(wallet_address, params.src_address):
                raise InvalidParamsError(
                    "src_address must be the spoke provider's wallet address",
                    field="src_address",
                    value=params.src_address,
                )

            creator = self._hub_wallets.derive_user_wallet_address(params.src_chain, wallet_address)
            built = self._builder.build_intent(params, creator, fee or self.partner_fee)
            unsigned = spoke_provider.build_create_intent(
                built, params.input_token, self.intents_contract, creator
            )
            hub_payload = encode_calls(
                build_create_intent_calls(built.intent, built.fee_amount, self.intents_contract)
            )
            lifecycle = IntentLifecycle(
                intent=built.intent,
                src_chain_id=params.src_chain,
                fee_amount=built.fee_amount,
                relay_data=spoke_provider.relay_submit_data(creator, hub_payload),
            )
            logger.debug(
                "Stage CREATE [%s]: built (creator=%s, fee=%s, raw=%s)",
                built.intent.intent_id,
                creator,
                built.fee_amount,
                raw,
            )
            if raw:
                return Response(success=True, value=(unsigned, lifecycle))

            tx_hash = self._sign_and_submit(lifecycle, spoke_provider, unsigned)
            return Response(
                success=True,
                value=(SubmittedTransaction(spoke_provider.chain_id, tx_hash), lifecycle),
                tx_hash=tx_hash,
            )

        return self._guard("create_intent", run, _describe(params))

    def submit_intent(
        self,
        lifecycle: IntentLifecycle,
        spoke_provider: SpokeProvider,
        timeout: float | None = None,
    ) -> Response:
        """Relay a submitted intent and wait for delivery on the hub.

        A rejected relay submission leaves the lifecycle in ``SUBMITTED`` so
        the caller may retry with the same transaction hash.
        """

        def run() -> Response:
            if lifecycle.spoke_tx_hash is None:
                raise InvalidStateTransitionError(lifecycle.state.value, State.RELAYING.value)

            if spoke_provider.is_hub:
                lifecycle.advance(State.EXECUTED)
                lifecycle.hub_tx_hash = lifecycle.spoke_tx_hash
                return Response(success=True, tx_hash=lifecycle.hub_tx_hash)

            lifecycle.ensure_can_advance(State.RELAYING)
            tx_hash = lifecycle.spoke_tx_hash
            try:
                self._relay.submit(spoke_provider.relay_chain_id, tx_hash, lifecycle.relay_data)
            except SubmitTxFailedError as exc:
                logger.error("Relay submission of %s failed: %s", tx_hash, exc.message)
                return exc.to_response(payload={"tx_hash": tx_hash})

            lifecycle.advance(State.RELAYING)
            try:
                packet = self._relay.wait_until_executed(
                    spoke_provider.relay_chain_id, tx_hash, timeout
                )
            except RelayTimeoutError as exc:
                lifecycle.advance(State.FAILED)
                return exc.to_response(payload={"tx_hash": tx_hash})

            lifecycle.packet = packet
            if packet.status is PacketStatus.FAILED:
                lifecycle.advance(State.FAILED)
                return Response.failure(
                    ErrorCode.RELAY_FAILED,
                    f"Relay reported failed delivery of {tx_hash}",
                    raw_response={"packet": asdict(packet)},
                    value=packet,
                )

            lifecycle.advance(State.EXECUTED)
            lifecycle.hub_tx_hash = packet.dst_tx_hash
            return Response(success=True, value=packet, tx_hash=packet.dst_tx_hash)

        return self._guard("submit_intent", run, {"tx_hash": lifecycle.spoke_tx_hash})

    def create_and_submit_intent(
        self,
        params: CreateIntentParams,
        spoke_provider: SpokeProvider,
        fee: PartnerFee | None = None,
        timeout: float | None = None,
    ) -> Response:
        """Create an intent, relay it to the hub and notify the solver.

        The value is ``(execution_answer, intent, delivery_info)``. Once the
        spoke transaction exists, a failure carries the :class:`IntentLifecycle`
        as its value and the spoke transaction hash, so the caller can retry
        :meth:`submit_intent` or cancel ``lifecycle.intent``.
        """

        created = self.create_intent(params, spoke_provider, fee)
        if not created.success:
            return Response.failure(
                ErrorCode.CREATION_FAILED,
                created.error or "Intent creation failed",
                raw_response={"cause": created.error_code, **(created.raw_response or {})},
            )
        tx, lifecycle = created.value
        tx_hash = tx.tx_hash

        def run() -> Response:
            if not spoke_provider.wait_for_transaction(tx_hash):
                return Response.failure(
                    ErrorCode.CREATION_FAILED,
                    f"Spoke transaction {tx_hash} was not confirmed",
                    raw_response={"tx_hash": tx_hash},
                )

            relayed = self.submit_intent(lifecycle, spoke_provider, timeout)
            if not relayed.success:
                return relayed
            dst_tx_hash = lifecycle.hub_tx_hash or tx_hash

            execution = self._solver.post_execution(dst_tx_hash)
            if not execution.success:
                return Response.failure(
                    ErrorCode.POST_EXECUTION_FAILED,
                    execution.error or "Solver execution notice failed",
                    raw_response=execution.raw_response,
                    tx_hash=dst_tx_hash,
                )

            delivery = IntentDeliveryInfo(
                src_chain_id=params.src_chain,
                src_tx_hash=tx_hash,
                src_address=params.src_address,
                dst_chain_id=self._hub_wallets.hub_chain_id,
                dst_tx_hash=dst_tx_hash,
                dst_address=lifecycle.intent.creator,
            )
            logger.debug("Stage EXECUTE [%s]: solver acknowledged %s", tx_hash, execution.value)
            return Response(
                success=True,
                value=(execution.value, lifecycle.intent, delivery),
                tx_hash=dst_tx_hash,
            )

        response = self._guard("create_and_submit_intent", run, _describe(params), ErrorCode.CREATION_FAILED)
        if not response.success:
            response.value = lifecycle
            response.tx_hash = response.tx_hash or tx_hash
        return response

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------
    def cancel_intent(
        self,
        intent: Intent,
        spoke_provider: SpokeProvider,
        raw: bool = False,
        lifecycle: IntentLifecycle | None = None,
    ) -> Response:
        """Cancel an open intent from the chain it was created on."""

        def run() -> Response:
            check_relay_chain(spoke_provider, intent.src_chain)
            if lifecycle is not None:
                lifecycle.ensure_can_advance(State.CANCELLED)

            state = self.read_intent_state(intent)
            if not state.exists:
                return Response.failure(
                    ErrorCode.INTENT_NOT_FOUND,
                    f"Intent {intent.hash.to_0x_hex()} is not open on the hub",
                    raw_response={"intent_hash": intent.hash.to_0x_hex()},
                )

            hub_wallet = self._hub_wallets.derive_user_wallet_address(
                spoke_provider.chain_id, spoke_provider.get_wallet_address()
            )
            unsigned = spoke_provider.build_cancel_intent(intent, self.intents_contract, hub_wallet)
            if raw:
                return Response(success=True, value=unsigned)

            tx_hash = spoke_provider.send(unsigned)
            if lifecycle is not None:
                lifecycle.advance(State.CANCELLED)
            return Response(
                success=True,
                value=SubmittedTransaction(spoke_provider.chain_id, tx_hash),
                tx_hash=tx_hash,
            )

        return self._guard("cancel_intent", run, {"intent_id": intent.intent_id})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def read_intent_state(self, intent: Intent) -> IntentOnchainState:
        (values,) = self._hub.call(
            self.intents_contract,
            INTENT_STATES_SIGNATURE,
            [bytes(intent.hash)],
            [INTENT_STATE_ABI_TYPE],
        )
        return decode_intent_state(values)

    def get_intent_state(self, intent: Intent) -> Response:
        return self._guard(
            "get_intent_state",
            lambda: Response(success=True, value=self.read_intent_state(intent)),
            {"intent_id": intent.intent_id},
        )

    def get_intent(self, tx_hash: str) -> Response:
        """Return the intent created by hub transaction ``tx_hash``."""

        def run() -> Response:
            receipt = self._hub.get_receipt(tx_hash, timeout=self._config.receipt_timeout)
            created = parse_intent_created(receipt, self.intents_contract)
            if not created:
                return Response.failure(ErrorCode.INTENT_NOT_FOUND, f"No intent found for {tx_hash}")
            _, intent = created[0]
            return Response(success=True, value=intent, tx_hash=tx_hash)

        return self._guard("get_intent", run, {"tx_hash": tx_hash})

    def get_filled_intent(self, tx_hash: str) -> Response:
        """Return the post-fill intent state recorded in hub transaction ``tx_hash``."""

        def run() -> Response:
            receipt = self._hub.get_receipt(tx_hash, timeout=self._config.receipt_timeout)
            filled = parse_intent_filled(receipt, self.intents_contract)
            if not filled:
                return Response.failure(ErrorCode.INTENT_NOT_FOUND, f"No filled intent found for {tx_hash}")
            _, state = filled[0]
            return Response(success=True, value=state, tx_hash=tx_hash)

        return self._guard("get_filled_intent", run, {"tx_hash": tx_hash})

    def get_quote(self, request: QuoteRequest) -> Response:
        """Solver quote with the configured partner fee taken into account."""

        try:
            amount = adjust_amount_by_fee(request.amount, self.partner_fee, request.quote_type)
        except SodaxError as exc:
            return exc.to_response(payload={"amount": request.amount})
        return self._solver.get_quote(
            QuoteRequest(
                token_src=request.token_src,
                token_dst=request.token_dst,
                token_src_chain_id=request.token_src_chain_id,
                token_dst_chain_id=request.token_dst_chain_id,
                amount=amount,
                quote_type=request.quote_type,
            )
        )

    def get_status(self, intent_tx_hash: str) -> Response:
        return self._solver.get_status(intent_tx_hash)

    def post_execution(self, intent_tx_hash: str) -> Response:
        return self._solver.post_execution(intent_tx_hash)

    def get_swap_deadline(self, offset: int | None = None) -> Response:
        """Deadline ``offset`` seconds after the latest hub block."""

        extra = self._config.deadline_offset if offset is None else offset
        return self._guard(
            "get_swap_deadline",
            lambda: Response(success=True, value=self._hub.latest_block_timestamp() + extra),
            {"offset": extra},
        )

    def get_partner_fee(self, amount: int) -> int:
        return calculate_fee_amount(amount, self.partner_fee)

    def get_solver_fee(self, amount: int) -> int:
        return calculate_percentage_fee(amount, DEFAULT_SOLVER_FEE_BPS)

    # ------------------------------------------------------------------
    # Allowances
    # ------------------------------------------------------------------
    def is_allowance_valid(self, params: CreateIntentParams, spoke_provider: SpokeProvider) -> Response:
        """Whether the wallet already approved ``params.input_amount`` of the input token."""

        try:
            if not spoke_provider.requires_allowance(params.input_token):
                return Response(success=True, value=True)
            owner = spoke_provider.get_wallet_address()
            spender = spoke_provider.swap_spender(self.intents_contract)
            allowance = spoke_provider.get_allowance(params.input_token, owner, spender)
        except Exception as exc:
            logger.error("Allowance check failed: %s", exc)
            return AllowanceCheckFailedError(
                f"Allowance check failed: {exc}", details={"error": str(exc)}
            ).to_response(payload=_describe(params))
        return Response(success=True, value=allowance >= params.input_amount)

    def approve(
        self,
        params: CreateIntentParams,
        spoke_provider: SpokeProvider,
        raw: bool = False,
    ) -> Response:
        """Approve the spender used by :meth:`create_intent` for ``params.input_amount``."""

        try:
            spender = spoke_provider.swap_spender(self.intents_contract)
            unsigned = spoke_provider.build_approve(params.input_token, spender, params.input_amount)
            if raw:
                return Response(success=True, value=unsigned)
            tx_hash = spoke_provider.send(unsigned)
        except Exception as exc:
            logger.error("Approval failed: %s", exc)
            return ApprovalFailedError(
                f"Approval failed: {exc}", details={"error": str(exc)}
            ).to_response(payload=_describe(params))
        return Response(
            success=True, value=SubmittedTransaction(spoke_provider.chain_id, tx_hash), tx_hash=tx_hash
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _sign_and_submit(
        self,
        lifecycle: IntentLifecycle,
        spoke_provider: SpokeProvider,
        unsigned: UnsignedTransaction,
    ) -> str:
        signed = spoke_provider.sign_transaction(unsigned)
        lifecycle.advance(State.SIGNED)
        tx_hash = spoke_provider.submit_transaction(signed)
        lifecycle.spoke_tx_hash = tx_hash
        lifecycle.advance(State.SUBMITTED)
        logger.info("Intent %s submitted on %s: %s", lifecycle.intent.intent_id, spoke_provider.chain_id, tx_hash)
        return tx_hash

    def _guard(
        self,
        name: str,
        run: Callable[[], Response],
        payload: Any,
        fallback: ErrorCode = ErrorCode.UNKNOWN,
    ) -> Response:
        try:
            return run()
        except InvalidStateTransitionError:
            raise
        except SodaxError as exc:
            logger.error("%s failed: %s", name, exc.message)
            if fallback is not ErrorCode.UNKNOWN:
                return Response.failure(
                    fallback, exc.message, raw_response={"cause": exc.code, "payload": payload}
                )
            return exc.to_response(payload=payload)
        except Exception as exc:
            logger.exception("Unexpected %s failure", name)
            return Response.failure(
                fallback, str(exc), raw_response={"payload": payload, "error": str(exc)}
            )


def _same_address(left: str, right: str) -> bool:
    if left.startswith("0x") and right.startswith("0x"):
        return left.lower() == right.lower()
    return left == right


def _describe(params: CreateIntentParams) -> dict[str, Any]:
    described = asdict(params)
    described["data"] = bytes(params.data).hex()
    return described


__all__ = [
    "IntentLifecycle",
    "IntentSettlementService",
    "adjust_amount_by_fee",
]