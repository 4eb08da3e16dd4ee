"""RecordDispatcher — fans each record out to every registered sink.

Sinks run in registration order, one after another, so every sink sees
records in arrival order.  A sink failure is logged and does not prevent
delivery to the remaining sinks or affect the record's outcome.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from ctrelay.models.delivery import DeliveryOutcome
from ctrelay.models.records import StreamRecord

if TYPE_CHECKING:
    from ctrelay.routing.sinks import BaseSink

logger = logging.getLogger(__name__)


class DispatchResult(BaseModel):
    """What happened to one record across all sinks."""

    model_config = ConfigDict(frozen=True)

    index: int
    succeeded: list[str] = []
    failed: list[str] = []
    outcome: DeliveryOutcome | None = None


class RecordDispatcher:
    """Routes records to ALL registered sinks.

    Usage
    -----
    >>> dispatcher = RecordDispatcher()
    >>> dispatcher.register_sink(RawStdoutSink())
    >>> dispatcher.register_sink(JsonlFileSink("payloads.jsonl"))
    >>> result = dispatcher.dispatch(record, index=1)
    """

    def __init__(self) -> None:
        self._sinks: list[BaseSink] = []

    # ------------------------------------------------------------------
    # Sink management
    # ------------------------------------------------------------------

    def register_sink(self, sink: BaseSink) -> None:
        """Register a sink to receive dispatched records.

        Sinks are called in registration order.  Duplicate registration
        of the same sink instance is silently ignored.
        """
        if sink not in self._sinks:
            self._sinks.append(sink)
            logger.info("Registered sink: %s", sink.sink_name)

    @property
    def registered_sinks(self) -> list[BaseSink]:
        """Return a copy of the registered sink list."""
        return list(self._sinks)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, record: StreamRecord, index: int) -> DispatchResult:
        """Dispatch a record to ALL registered sinks.

        Returns the names of the sinks that accepted the record, the names
        of those that raised, and the delivery outcome if a sink produced one.
        """
        succeeded: list[str] = []
        failed: list[str] = []
        outcome: DeliveryOutcome | None = None

        for sink in self._sinks:
            try:
                result = sink.accept(record, index)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Sink %s failed for record #%d (%s): %s",
                    sink.sink_name,
                    index,
                    record.event_id,
                    exc,
                )
                failed.append(sink.sink_name)
                continue
            succeeded.append(sink.sink_name)
            if result is not None:
                outcome = result

        return DispatchResult(
            index=index, succeeded=succeeded, failed=failed, outcome=outcome
        )

    def close(self) -> None:
        """Close every sink.  Close failures are logged, not raised."""
        for sink in self._sinks:
            try:
                sink.close()
            except Exception as exc:  # noqa: BLE001
                logger.error("Sink %s failed to close: %s", sink.sink_name, exc)
