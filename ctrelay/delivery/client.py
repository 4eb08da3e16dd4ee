"""Delivery client — signs a record and POSTs it to the target endpoint.

One request per record, no retries.  Every attempt produces a
``DeliveryOutcome``; transport failures and timeouts become outcomes with
status 0 instead of exceptions.

Timeouts
--------
httpx timeouts apply per phase and per socket read, so an endpoint that
trickles its headers would never trip them.  Each request therefore also
runs under a ``RequestWatchdog`` that shuts the connection's socket down
once the whole-request deadline passes.
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from types import TracebackType
from typing import Any

import httpx

from ctrelay.core.hasher import record_json_bytes, signature_header
from ctrelay.models.delivery import DeliveryOutcome
from ctrelay.models.records import StreamRecord

logger = logging.getLogger(__name__)

DELIVERY_TIMEOUT_SECONDS = 10.0
USER_AGENT = "CertWatch-Webhook/1.0"

# httpcore trace events that carry the connection's network stream
_STREAM_EVENTS = ("connection.connect_tcp.complete", "connection.start_tls.complete")


def build_delivery_headers(
    record: StreamRecord, body: bytes, secret: str, *, user_agent: str = USER_AGENT
) -> dict[str, str]:
    """Return the headers that accompany a delivered record."""
    return {
        "Content-Type": "application/json",
        "User-Agent": user_agent,
        "X-CertWatch-Event-Id": record.event_id,
        "X-CertWatch-Timestamp": record.timestamp,
        "X-CertWatch-Signature": signature_header(body, secret),
    }


class RequestWatchdog:
    """Enforces a deadline on one request by shutting down its socket.

    Installed as the request's httpcore ``trace`` extension, it captures the
    network stream as the connection is opened.  When the timer fires the
    socket is shut down, which unblocks any pending read with an error.
    The timer runs from ``__enter__`` until ``__exit__``.
    """

    def __init__(self, seconds: float) -> None:
        self._lock = threading.Lock()
        self._stream: Any = None
        self._timer = threading.Timer(seconds, self._expire)
        self._timer.daemon = True
        self.expired = False

    def __enter__(self) -> RequestWatchdog:
        self._timer.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._timer.cancel()

    def trace(self, event_name: str, info: dict[str, Any]) -> None:
        if event_name not in _STREAM_EVENTS:
            return
        with self._lock:
            self._stream = info.get("return_value")
            expired = self.expired
        if expired:
            self._abort()

    def _expire(self) -> None:
        with self._lock:
            self.expired = True
        self._abort()

    def _abort(self) -> None:
        with self._lock:
            stream = self._stream
        if stream is None:
            return
        sock = stream.get_extra_info("socket")
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as exc:
            logger.debug("Watchdog could not shut down socket: %s", exc)


class DeliveryClient:
    """Sends signed records over HTTP.

    Parameters
    ----------
    timeout:
        Whole-request deadline in seconds, from dispatch until the response
        headers have arrived.
    client:
        An ``httpx.Client`` to use instead of creating one.  Injected
        clients are not closed by ``close()``.  The deadline can only cut
        connections that the client opens for the request, so the owned
        client keeps no idle connections.
    user_agent:
        Product token sent as ``User-Agent``.
    """

    def __init__(
        self,
        timeout: float = DELIVERY_TIMEOUT_SECONDS,
        *,
        client: httpx.Client | None = None,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._timeout = timeout
        self._user_agent = user_agent
        self._owns_client = client is None
        self._client = client or httpx.Client(
            limits=httpx.Limits(max_keepalive_connections=0)
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> DeliveryClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def deliver(
        self, record: StreamRecord, target_url: str, secret: str, index: int
    ) -> DeliveryOutcome:
        """POST *record* to *target_url* and describe what happened.

        Latency runs from dispatch until the response headers arrive; the
        response body is never read.
        """
        body = record_json_bytes(record)
        headers = build_delivery_headers(
            record, body, secret, user_agent=self._user_agent
        )

        start = time.perf_counter()
        watchdog = RequestWatchdog(self._timeout)
        try:
            with watchdog:
                request = self._client.build_request(
                    "POST",
                    target_url,
                    content=body,
                    headers=headers,
                    timeout=self._timeout,
                    extensions={"trace": watchdog.trace},
                )
                response = self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            latency_ms = _elapsed_ms(start)
            if watchdog.expired or isinstance(exc, httpx.TimeoutException):
                logger.warning(
                    "delivery.timeout index=%d url=%s elapsed_ms=%d", index, target_url, latency_ms
                )
                error = f"delivery failed: timed out after {self._timeout:g}s"
            else:
                logger.warning(
                    "delivery.error index=%d url=%s error=%s", index, target_url, exc
                )
                error = f"delivery failed: {str(exc) or type(exc).__name__}"
            return DeliveryOutcome(
                index=index,
                common_name=record.common_name,
                latency_ms=latency_ms,
                error=error,
            )

        latency_ms = _elapsed_ms(start)
        status = response.status_code
        response.close()

        status_text = httpx.codes.get_reason_phrase(status)
        success = 200 <= status < 300
        logger.debug(
            "delivery.done index=%d status=%d elapsed_ms=%d", index, status, latency_ms
        )
        return DeliveryOutcome(
            index=index,
            common_name=record.common_name,
            status=status,
            status_text=status_text,
            latency_ms=latency_ms,
            success=success,
            error=None if success else f"received status {status} {status_text}".rstrip(),
        )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
