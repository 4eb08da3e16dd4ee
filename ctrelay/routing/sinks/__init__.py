"""Sink protocol for ctrelay record routing.

All sinks implement the ``BaseSink`` protocol: a ``sink_name`` property,
an ``accept(record, index)`` method, and ``close()``.  Only the HTTP
delivery sink returns a ``DeliveryOutcome``; the others return ``None``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ctrelay.models.delivery import DeliveryOutcome
from ctrelay.models.records import StreamRecord


@runtime_checkable
class BaseSink(Protocol):
    """Protocol that every ctrelay sink must implement.

    Attributes
    ----------
    sink_name : str
        A unique human-readable identifier for this sink instance
        (e.g. ``"raw_stdout"``, ``"jsonl_file"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the unique name of this sink."""
        ...

    def accept(self, record: StreamRecord, index: int) -> DeliveryOutcome | None:
        """Process one record.

        Parameters
        ----------
        record:
            The decoded record.  Read-only.
        index:
            The record's 1-based sequence index within the run.
        """
        ...

    def close(self) -> None:
        """Release any resources held by the sink."""
        ...
