"""Local webhook receiver — verifies signatures on delivered records.

A minimal FastAPI app for testing the relay end to end on one machine:
run ``ctrelay receive --secret S`` in one terminal and
``ctrelay stream --secret S --url http://localhost:3000/webhook`` in another.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ctrelay.core.hasher import verify_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-certwatch-signature"


class ReceiverState:
    """Counts received payloads across requests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.received = 0
        self.verified = 0

    def mark(self, verified: bool) -> int:
        with self._lock:
            self.received += 1
            if verified:
                self.verified += 1
            return self.received


def create_receiver_app(
    secret: str,
    *,
    on_payload: Callable[[int, dict, bool], None] | None = None,
) -> FastAPI:
    """Build the receiver app.

    Parameters
    ----------
    secret:
        The signing secret shared with the relay.
    on_payload:
        Called with ``(count, payload, verified)`` for every POST.  Used by
        the CLI to print each delivery.
    """
    app = FastAPI(title="ctrelay receiver")
    state = ReceiverState()
    app.state.receiver = state

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "received": state.received}

    @app.post("/webhook")
    async def webhook(request: Request) -> JSONResponse:
        body = await request.body()
        verified = verify_signature(body, request.headers.get(SIGNATURE_HEADER), secret)
        count = state.mark(verified)

        try:
            payload = json.loads(body)
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        logger.info("receiver.webhook count=%d verified=%s", count, verified)
        if on_payload is not None:
            on_payload(count, payload, verified)
        return JSONResponse({"received": True, "verified": verified})

    return app
