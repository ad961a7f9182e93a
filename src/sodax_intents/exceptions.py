"""Exception hierarchy for the Sodax intent settlement client."""

from __future__ import annotations

from typing import Any

from .types import ErrorCode, Response


class SodaxError(Exception):
    """Base exception for all intent settlement errors."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self, payload: Any | None = None, **kwargs: Any) -> Response:
        """Convert into a failed :class:`Response` for public entry points."""

        raw: dict[str, Any] = {"details": dict(self.details)}
        if payload is not None:
            raw["payload"] = payload
        return Response.failure(self.code, self.message, raw_response=raw, **kwargs)


class ValidationError(SodaxError):
    """Raised when local input validation fails."""

    code = ErrorCode.INVALID_PARAMS

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidAmountError(ValidationError):
    """Raised when an amount is zero, negative or smaller than its fee."""

    code = ErrorCode.INVALID_AMOUNT


class InvalidParamsError(ValidationError):
    """Raised for malformed intent or bridging parameters."""

    code = ErrorCode.INVALID_PARAMS


class HubAssetNotFoundError(SodaxError):
    """Raised when a spoke token has no hub asset mapping."""

    code = ErrorCode.HUB_ASSET_NOT_FOUND

    def __init__(
        self,
        message: str,
        chain_id: str | None = None,
        token: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.chain_id = chain_id
        self.token = token


class InvalidSpokeProviderError(SodaxError):
    """Raised when a spoke provider cannot address the requested chain."""

    code = ErrorCode.INVALID_SPOKE_PROVIDER

    def __init__(
        self,
        message: str,
        expected_chain: str | None = None,
        provider_chain: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.expected_chain = expected_chain
        self.provider_chain = provider_chain


class AllowanceCheckFailedError(SodaxError):
    code = ErrorCode.ALLOWANCE_CHECK_FAILED


class ApprovalFailedError(SodaxError):
    code = ErrorCode.APPROVAL_FAILED


class SubmitTxFailedError(SodaxError):
    """Raised when the relay backend rejects or cannot receive a submission."""

    code = ErrorCode.SUBMIT_TX_FAILED

    def __init__(
        self,
        message: str,
        raw_response: Any | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.raw_response = raw_response
        self.status_code = status_code

    def to_response(self, payload: Any | None = None, **kwargs: Any) -> Response:
        response = super().to_response(payload, **kwargs)
        raw = response.raw_response if response.raw_response is not None else {}
        raw["response"] = self.raw_response
        raw["status_code"] = self.status_code
        response.raw_response = raw
        return response


class RelayTimeoutError(SodaxError):
    """Raised when no terminal relay packet was observed before the deadline."""

    code = ErrorCode.RELAY_TIMEOUT

    def __init__(
        self,
        message: str,
        elapsed: float | None = None,
        timeout: float | None = None,
        polls: int = 0,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.elapsed = elapsed
        self.timeout = timeout
        self.polls = polls


class IntentNotFoundError(SodaxError):
    """Raised when the hub settlement contract has no record of an intent."""

    code = ErrorCode.INTENT_NOT_FOUND


class NetworkError(SodaxError):
    """Raised when network/connection issues occur."""

    code = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class InvalidStateTransitionError(SodaxError):
    """Raised when an intent lifecycle is driven out of order.

    This indicates a programming error and is never converted into a failed
    ``Response``.
    """

    def __init__(self, current: str, requested: str):
        super().__init__(f"Illegal intent state transition {current} -> {requested}")
        self.current = current
        self.requested = requested
