"""HTTP client for the solver API (quotes, execution notices, status)."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

import requests

from .config import SolverConfig
from .exceptions import SodaxError, ValidationError
from .intents import IntentBuilder
from .types import (
    ErrorCode,
    IntentStatusCode,
    QuoteRequest,
    Response,
    SolverErrorCode,
)

logger = logging.getLogger(__name__)

EXECUTE_ATTEMPTS = 3
EXECUTE_RETRY_DELAY = 1.0


class SolverApiClient:
    """Talk to the solver backend; every call returns a :class:`Response`."""

    def __init__(
        self,
        config: SolverConfig,
        session: requests.Session,
        builder: IntentBuilder,
    ) -> None:
        if not config.solver_api_endpoint:
            raise ValidationError(
                "Solver endpoint is not configured", field="solver_api_endpoint", value=None
            )
        self._base_url = config.solver_api_endpoint.rstrip("/")
        self._session = session
        self._builder = builder
        self._request_timeout = config.request_timeout

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------
    def get_quote(self, request: QuoteRequest) -> Response:
        """Quote ``request.amount`` of the source token in terms of the destination token."""

        try:
            payload = self._quote_payload(request)
        except SodaxError as exc:
            return Response.failure(exc.code, exc.message, raw_response={"payload": _describe(request)})

        outcome = self._post("/quote", payload, ErrorCode.QUOTE_FAILED)
        if not outcome.success:
            return outcome

        body = outcome.raw_response or {}
        try:
            quoted = int(str(body["quoted_amount"]))
        except (KeyError, TypeError, ValueError):
            return Response.failure(
                ErrorCode.QUOTE_FAILED,
                "Solver returned a malformed quote",
                raw_response={"response": body, "payload": payload},
            )
        logger.debug("Quote %s -> %s: %s", payload["token_src"], payload["token_dst"], quoted)
        return Response(success=True, value=quoted, raw_response=body)

    def post_execution(self, intent_tx_hash: str) -> Response:
        """Notify the solver that the intent landed on the hub.

        Transport errors are retried a few times; the solver ignores repeats.
        """

        if not intent_tx_hash:
            return Response.failure(ErrorCode.INVALID_PARAMS, "Empty intent_tx_hash")

        payload = {"intent_tx_hash": intent_tx_hash}
        outcome = Response.failure(ErrorCode.UNKNOWN, "Solver execution notice not sent")
        for attempt in range(1, EXECUTE_ATTEMPTS + 1):
            outcome = self._post("/execute", payload, ErrorCode.POST_EXECUTION_FAILED)
            if outcome.success or outcome.error_code is not ErrorCode.UNKNOWN:
                break
            logger.warning("Solver /execute attempt %s failed: %s", attempt, outcome.error)
            if attempt < EXECUTE_ATTEMPTS:
                time.sleep(EXECUTE_RETRY_DELAY)

        if outcome.success:
            outcome.value = dict(outcome.raw_response or {})
        return outcome

    def get_status(self, intent_tx_hash: str) -> Response:
        if not intent_tx_hash:
            return Response.failure(ErrorCode.INVALID_PARAMS, "Empty intent_tx_hash")

        outcome = self._post("/status", {"intent_tx_hash": intent_tx_hash}, ErrorCode.UNKNOWN)
        if not outcome.success:
            return outcome

        body = outcome.raw_response or {}
        try:
            status = IntentStatusCode(int(body["status"]))
        except (KeyError, TypeError, ValueError):
            return Response.failure(
                ErrorCode.UNKNOWN, "Solver returned a malformed status", raw_response=body
            )
        return Response(success=True, value=status, raw_response=body)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _quote_payload(self, request: QuoteRequest) -> dict[str, Any]:
        if request.amount <= 0:
            raise ValidationError("amount must be greater than 0", field="amount", value=request.amount)
        return {
            "token_src": self._builder.resolve_hub_token(request.token_src_chain_id, request.token_src),
            "token_src_blockchain_id": request.token_src_chain_id,
            "token_dst": self._builder.resolve_hub_token(request.token_dst_chain_id, request.token_dst),
            "token_dst_blockchain_id": request.token_dst_chain_id,
            "amount": str(request.amount),
            "quote_type": request.quote_type.value,
        }

    def _post(self, path: str, payload: Mapping[str, Any], error_code: ErrorCode) -> Response:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.post(url, json=dict(payload), timeout=self._request_timeout)
        except requests.RequestException as exc:
            logger.error("Solver request to %s failed: %s", path, exc)
            return Response.failure(
                ErrorCode.UNKNOWN, str(exc), raw_response={"payload": dict(payload), "error": str(exc)}
            )

        try:
            body = response.json()
        except ValueError:
            body = {"text": response.text}

        if not response.ok:
            detail = body.get("detail") if isinstance(body, Mapping) else None
            code = SolverErrorCode.parse(detail.get("code") if isinstance(detail, Mapping) else None)
            message = detail.get("message") if isinstance(detail, Mapping) else None
            logger.error("Solver %s returned HTTP %s (%s)", path, response.status_code, code.name)
            return Response.failure(
                error_code,
                f"[{code.name}] {message or f'HTTP {response.status_code}'}",
                raw_response={
                    "response": body,
                    "solver_error": code,
                    "status_code": response.status_code,
                    "payload": dict(payload),
                },
            )

        if not isinstance(body, Mapping):
            return Response.failure(error_code, "Unexpected solver response format", raw_response={"response": body})
        return Response(success=True, raw_response=dict(body))


def _describe(request: QuoteRequest) -> dict[str, Any]:
    return {
        "token_src": request.token_src,
        "token_src_chain_id": request.token_src_chain_id,
        "token_dst": request.token_dst,
        "token_dst_chain_id": request.token_dst_chain_id,
        "amount": str(request.amount),
        "quote_type": request.quote_type.value,
    }
