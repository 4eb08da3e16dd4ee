"""Event dispatcher — classifies parsed SSE pairs and decodes their bodies.

Each ``(kind, data)`` pair goes to exactly one method of an
``EventHandler``:

- ``meta``      -> ``on_meta(StreamMeta)``
- ``complete``  -> ``on_complete(str)``
- ``error``     -> ``on_error(str)``
- anything else -> ``on_payload(StreamRecord)``

``meta`` and payload bodies are JSON; a body that does not decode is
dropped and the stream continues.  ``complete`` and ``error`` carry raw
text and cannot fail to decode.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from ctrelay.models.records import StreamMeta, StreamRecord

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """The event kinds the certificate stream emits."""

    META = "meta"
    COMPLETE = "complete"
    ERROR = "error"
    PAYLOAD = "payload"

    @classmethod
    def classify(cls, event_name: str) -> EventKind:
        """Map an SSE event name to a kind; unknown or empty names are payloads."""
        try:
            kind = cls(event_name)
        except ValueError:
            return cls.PAYLOAD
        return kind


@runtime_checkable
class EventHandler(Protocol):
    """One method per event kind."""

    def on_meta(self, meta: StreamMeta) -> None:
        ...

    def on_payload(self, record: StreamRecord) -> None:
        ...

    def on_complete(self, message: str) -> None:
        ...

    def on_error(self, message: str) -> None:
        ...


def dispatch_event(event_name: str, data: str, handler: EventHandler) -> bool:
    """Route one parsed pair to *handler*.

    Returns ``True`` if a handler method was invoked, ``False`` if the body
    failed to decode and the pair was dropped.
    """
    kind = EventKind.classify(event_name)

    if kind is EventKind.META:
        try:
            meta = StreamMeta.model_validate_json(data)
        except ValidationError as exc:
            logger.debug("Dropping undecodable meta event: %s", exc)
            return False
        handler.on_meta(meta)
        return True

    if kind is EventKind.COMPLETE:
        handler.on_complete(data)
        return True

    if kind is EventKind.ERROR:
        handler.on_error(data)
        return True

    try:
        record = StreamRecord.model_validate_json(data)
    except ValidationError as exc:
        logger.debug("Dropping undecodable payload: %s", exc)
        return False
    handler.on_payload(record)
    return True
