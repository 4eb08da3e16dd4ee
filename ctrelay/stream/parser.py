"""Server-sent event stream parser.

Two layers:

- ``iter_sse_events`` turns an iterable of text lines into
  ``(event_kind, data)`` pairs following the SSE framing rules used by the
  certificate stream.
- ``EventStream`` owns the long-lived HTTP GET, enforces the maximum line
  size, and maps transport failures onto ``StreamConnectError``,
  ``StreamReadError`` and ``StreamCancelled``.

Framing rules
-------------
- ``:`` starts a comment; it is discarded and does not touch the pending kind.
- A blank line ends the event block and resets the pending kind.
- ``event:`` sets the pending kind to the trimmed remainder.
- ``data:`` yields ``(pending_kind, trimmed_remainder)`` immediately, without
  clearing the pending kind.
- Anything else is ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from types import TracebackType

import httpx

from ctrelay.core.cancellation import CancelToken
from ctrelay.core.errors import RelayError

logger = logging.getLogger(__name__)

MAX_LINE_BYTES = 1024 * 1024
STREAM_PATH = "/api/v1/tools/webhook-test/stream"


class StreamError(RelayError):
    """Base class for stream-level failures."""


class StreamConnectError(StreamError):
    """The stream could not be opened or answered with a non-200 status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StreamReadError(StreamError):
    """The connection dropped or produced an unreadable line mid-stream."""


class StreamCancelled(StreamError):
    """The stream was closed because cancellation was requested."""


def build_stream_url(api_endpoint: str, secret: str) -> str:
    """Return the direct-secret stream URL for *api_endpoint*."""
    return str(
        httpx.URL(api_endpoint.rstrip("/") + STREAM_PATH, params={"secret": secret})
    )


def iter_sse_events(lines: Iterable[str]) -> Iterator[tuple[str, str]]:
    """Yield ``(event_kind, data)`` pairs from SSE-framed text lines.

    The kind is ``""`` when no ``event:`` line precedes the data in the
    current block.

    >>> list(iter_sse_events([":hi", "event: meta", "data: {}", ""]))
    [('meta', '{}')]
    """
    current_event = ""
    for line in lines:
        line = line.rstrip("\r\n")

        if line.startswith(":"):
            continue

        if line == "":
            current_event = ""
            continue

        if line.startswith("event:"):
            current_event = line[len("event:"):].strip()
            continue

        if line.startswith("data:"):
            yield current_event, line[len("data:"):].strip()


class EventStream:
    """A long-lived SSE connection to the certificate stream.

    Usage
    -----
    >>> with EventStream(client, url, secret, cancel_token=token) as stream:
    ...     for kind, data in stream.events():
    ...         ...

    Opening happens in ``__enter__`` (or ``open()``) so a connection failure
    surfaces before any pair is yielded.

    Parameters
    ----------
    client:
        The ``httpx.Client`` to issue the GET with.
    url:
        The stream address.
    secret:
        Sent as a bearer token.
    cancel_token:
        Polled between lines; cancelling it also closes the open response so
        a blocked read unwinds.
    max_line_bytes:
        Longest accepted line.  Bounds the maximum record size.
    connect_timeout:
        Timeout for establishing the connection.  Reads never time out.
    """

    def __init__(
        self,
        client: httpx.Client,
        url: str,
        secret: str,
        *,
        cancel_token: CancelToken | None = None,
        max_line_bytes: int = MAX_LINE_BYTES,
        connect_timeout: float | None = 15.0,
    ) -> None:
        self._client = client
        self._url = url
        self._secret = secret
        self._token = cancel_token or CancelToken()
        self._max_line_bytes = max_line_bytes
        self._connect_timeout = connect_timeout
        self._response: httpx.Response | None = None

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Open the connection.  Raises ``StreamConnectError`` on failure."""
        if self._token.cancelled:
            raise StreamCancelled("cancelled before the stream was opened")

        request = self._client.build_request(
            "GET",
            self._url,
            headers={
                "Authorization": f"Bearer {self._secret}",
                "Accept": "text/event-stream",
                "Cache-Control": "no-cache",
            },
            timeout=httpx.Timeout(None, connect=self._connect_timeout),
        )
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            if self._token.cancelled:
                raise StreamCancelled("cancelled while connecting") from exc
            raise StreamConnectError(f"failed to connect to stream: {exc}") from exc

        if response.status_code != 200:
            response.close()
            raise StreamConnectError(
                f"stream returned status {response.status_code}",
                status_code=response.status_code,
            )

        self._response = response
        self._token.add_callback(self.close)
        logger.info("Stream connected: %s%s", response.url.host, response.url.path)

    def close(self) -> None:
        """Close the response.  Safe to call more than once."""
        response, self._response = self._response, None
        if response is not None:
            self._token.remove_callback(self.close)
            response.close()

    def __enter__(self) -> EventStream:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def lines(self) -> Iterator[str]:
        """Yield decoded lines from the open response.

        Raises ``StreamReadError`` on a dropped connection or an oversized
        line, and ``StreamCancelled`` once cancellation has been requested.
        """
        response = self._response
        if response is None:
            raise StreamError("stream is not open")

        buffer = b""
        try:
            for chunk in response.iter_bytes():
                buffer += chunk
                while b"\n" in buffer:
                    raw, buffer = buffer.split(b"\n", 1)
                    self._check_line(raw)
                    if self._token.cancelled:
                        raise StreamCancelled("stream cancelled")
                    yield raw.decode("utf-8", errors="replace")
                self._check_line(buffer)
        except (httpx.HTTPError, httpx.StreamError) as exc:
            if self._token.cancelled:
                raise StreamCancelled("stream cancelled") from exc
            raise StreamReadError(f"stream read error: {exc}") from exc

        if self._token.cancelled:
            raise StreamCancelled("stream cancelled")
        if buffer:
            yield buffer.decode("utf-8", errors="replace")

    def events(self) -> Iterator[tuple[str, str]]:
        """Yield ``(event_kind, data)`` pairs until the stream ends."""
        return iter_sse_events(self.lines())

    def _check_line(self, raw: bytes) -> None:
        if len(raw) > self._max_line_bytes:
            raise StreamReadError(
                f"stream read error: line exceeds {self._max_line_bytes} bytes"
            )
