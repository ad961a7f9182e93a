"""Client for the intent relay backend."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

import requests

from .config import RelayConfig
from .exceptions import NetworkError, RelayTimeoutError, SubmitTxFailedError, ValidationError
from .types import PacketData, RelayRequest

logger = logging.getLogger(__name__)


class RelayClient:
    """Submit spoke transactions to the relay network and wait for delivery."""

    def __init__(self, config: RelayConfig, session: requests.Session) -> None:
        if not config.relayer_api_endpoint:
            raise ValidationError(
                "Relay endpoint is not configured", field="relayer_api_endpoint", value=None
            )
        self._url = config.relayer_api_endpoint.rstrip("/")
        self._session = session
        self._request_timeout = config.request_timeout
        self._poll_interval = config.poll_interval
        self._timeout = config.timeout

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------
    def submit(
        self,
        chain_relay_id: int,
        tx_hash: str,
        data: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Submit a spoke transaction hash to the relay.

        Performs exactly one HTTP request. The relay treats a duplicate
        submission of the same hash as a no-op, so callers may retry.
        """

        _require_params(chain_relay_id, tx_hash)
        params: dict[str, Any] = {"chain_id": chain_relay_id, "tx_hash": tx_hash}
        if data is not None:
            params["data"] = dict(data)
        payload = RelayRequest("submit", params).to_payload()

        logger.info("Submitting tx %s to relay (chain_id=%s)", tx_hash, chain_relay_id)
        try:
            response = self._session.post(self._url, json=payload, timeout=self._request_timeout)
        except requests.RequestException as exc:
            raise SubmitTxFailedError(
                f"Relay unreachable: {exc}", details={"payload": payload, "error": str(exc)}
            ) from exc

        if not response.ok:
            raise SubmitTxFailedError(
                f"Relay rejected submission with HTTP {response.status_code}",
                raw_response=response.text,
                status_code=response.status_code,
                details={"payload": payload},
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise SubmitTxFailedError(
                "Relay returned a malformed submit response",
                raw_response=response.text,
                status_code=response.status_code,
                details={"payload": payload},
            ) from exc

        if not isinstance(body, Mapping) or body.get("success") is not True:
            message = body.get("message") if isinstance(body, Mapping) else None
            raise SubmitTxFailedError(
                f"Relay did not accept submission: {message or 'unknown reason'}",
                raw_response=body,
                status_code=response.status_code,
                details={"payload": payload},
            )

        logger.debug("Relay accepted tx %s: %s", tx_hash, body.get("message"))
        return dict(body)

    def get_transaction_packets(self, chain_relay_id: int, tx_hash: str) -> list[PacketData]:
        _require_params(chain_relay_id, tx_hash)
        body = self._request(
            RelayRequest(
                "get_transaction_packets", {"chain_id": chain_relay_id, "tx_hash": tx_hash}
            )
        )
        if not body.get("success"):
            return []
        entries = body.get("data") or []
        return [PacketData.from_dict(entry) for entry in entries if isinstance(entry, Mapping)]

    def get_packet(self, chain_relay_id: int, tx_hash: str, conn_sn: int) -> PacketData | None:
        _require_params(chain_relay_id, tx_hash)
        body = self._request(
            RelayRequest(
                "get_packet",
                {"chain_id": chain_relay_id, "tx_hash": tx_hash, "conn_sn": conn_sn},
            )
        )
        data = body.get("data")
        if not body.get("success") or not isinstance(data, Mapping):
            return None
        return PacketData.from_dict(data)

    def wait_until_executed(
        self,
        chain_relay_id: int,
        tx_hash: str,
        timeout: float | None = None,
    ) -> PacketData:
        """Poll until the packet for ``tx_hash`` reaches a terminal status.

        A ``failed`` packet is returned like an ``executed`` one; callers
        branch on ``packet.status``. Transport errors count as pending.

        Raises:
            RelayTimeoutError: If no terminal packet was seen before the deadline
        """

        limit = self._timeout if timeout is None else timeout
        start = time.monotonic()
        polls = 0
        logger.debug(
            "Stage RELAY [%s]: wait for packet (chain_id=%s, timeout=%s, interval=%s)",
            tx_hash,
            chain_relay_id,
            limit,
            self._poll_interval,
        )

        while True:
            polls += 1
            packet = self._poll_packet(chain_relay_id, tx_hash, polls)
            if packet is not None and packet.status.is_terminal:
                logger.debug(
                    "Stage RELAY [%s]: packet %s after %s polls (dst_tx=%s)",
                    tx_hash,
                    packet.status.value,
                    polls,
                    packet.dst_tx_hash,
                )
                return packet

            elapsed = time.monotonic() - start
            remaining = limit - elapsed
            if remaining <= 0:
                logger.error("Relay wait for %s timed out after %.1fs", tx_hash, elapsed)
                raise RelayTimeoutError(
                    f"Timed out waiting for relay packet of {tx_hash}",
                    elapsed=elapsed,
                    timeout=limit,
                    polls=polls,
                    details={"chain_id": chain_relay_id, "tx_hash": tx_hash},
                )
            time.sleep(min(self._poll_interval, remaining))

    def relay_and_wait(
        self,
        chain_relay_id: int,
        tx_hash: str,
        data: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> PacketData:
        """Submit ``tx_hash`` and wait for its packet to reach a terminal status."""

        self.submit(chain_relay_id, tx_hash, data)
        return self.wait_until_executed(chain_relay_id, tx_hash, timeout)

    # ------------------------------------------------------------------
    # Low-level helpers
    # ------------------------------------------------------------------
    def _poll_packet(self, chain_relay_id: int, tx_hash: str, attempt: int) -> PacketData | None:
        try:
            packets = self.get_transaction_packets(chain_relay_id, tx_hash)
        except (requests.RequestException, NetworkError, ValueError) as exc:
            logger.warning("Relay poll error (attempt %s): %s", attempt, exc)
            return None

        wanted = tx_hash.lower()
        return next((p for p in packets if p.src_tx_hash.lower() == wanted), None)

    def _request(self, request: RelayRequest) -> Mapping[str, Any]:
        response = self._session.post(
            self._url, json=request.to_payload(), timeout=self._request_timeout
        )
        if response.status_code >= 500:
            raise NetworkError(
                f"Relay returned HTTP {response.status_code}",
                endpoint=self._url,
                status_code=response.status_code,
            )
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, Mapping):
            raise ValueError(f"Unexpected relay response format: {body!r}")
        return body


def _require_params(chain_relay_id: int, tx_hash: str) -> None:
    if chain_relay_id <= 0:
        raise ValidationError("Relay chain id must be positive", field="chain_id", value=chain_relay_id)
    if not tx_hash:
        raise ValidationError("Transaction hash must not be empty", field="tx_hash", value=tx_hash)
