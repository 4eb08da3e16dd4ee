"""Session bootstrapper — exchanges an API key for a stream session.

A single POST to the session API.  When the caller supplies a secret it is
forwarded so the session signs with the caller's key instead of a
server-generated one.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from ctrelay.core.errors import RelayError
from ctrelay.models.session import Session, SessionResponse

logger = logging.getLogger(__name__)

SESSION_PATH = "/api/v1/tools/webhook-test/session"
SESSION_TIMEOUT_SECONDS = 15.0


class SessionCreationError(RelayError):
    """Raised when the session API rejects or fails the request."""

    def __init__(
        self, message: str, *, status_code: int | None = None, code: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


def _parse_envelope(response: httpx.Response) -> SessionResponse | None:
    try:
        return SessionResponse.model_validate_json(response.content)
    except ValidationError:
        return None


def create_session(
    api_endpoint: str,
    api_key: str,
    user_secret: str | None = None,
    *,
    client: httpx.Client | None = None,
    timeout: float = SESSION_TIMEOUT_SECONDS,
) -> Session:
    """Create a stream session and return its ``Session`` bundle.

    Raises
    ------
    SessionCreationError
        On transport failure, a status other than 200/201, or a body that
        does not report success.
    """
    url = api_endpoint.rstrip("/") + SESSION_PATH
    headers = {"X-API-Key": api_key, "Accept": "application/json"}
    body = {"secret": user_secret} if user_secret else None

    owns_client = client is None
    http = client or httpx.Client()
    try:
        logger.info("Creating session at %s", url)
        response = http.post(url, json=body, headers=headers, timeout=timeout)
    except httpx.HTTPError as exc:
        raise SessionCreationError(f"failed to create session: {exc}") from exc
    finally:
        if owns_client:
            http.close()

    status = response.status_code
    envelope = _parse_envelope(response)

    if status not in (200, 201):
        if envelope is not None and envelope.error is not None:
            raise SessionCreationError(
                f"session creation failed ({status}): "
                f"{envelope.error.code} - {envelope.error.message}",
                status_code=status,
                code=envelope.error.code,
            )
        raise SessionCreationError(
            f"session creation failed with status {status}", status_code=status
        )

    if envelope is None:
        raise SessionCreationError(
            "failed to decode session response", status_code=status
        )

    if not envelope.success or envelope.data is None:
        if envelope.error is not None:
            raise SessionCreationError(
                f"session creation failed: {envelope.error.code} - {envelope.error.message}",
                status_code=status,
                code=envelope.error.code,
            )
        raise SessionCreationError(
            "session creation returned unsuccessful response", status_code=status
        )

    data = envelope.data
    logger.info(
        "Session %s created (stream %ds)", data.test_id, data.stream_duration_seconds
    )
    return Session(
        secret=data.secret,
        stream_url=data.stream_url,
        stream_duration_seconds=data.stream_duration_seconds,
        test_id=data.test_id,
    )
