"""Delivery outcome and run aggregate models."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, model_validator


class DeliveryOutcome(BaseModel):
    """The result of attempting HTTP delivery of one record.

    ``status`` is 0 when no response was received; such an outcome always
    carries an error description.
    """

    model_config = ConfigDict(frozen=True)

    index: int  # 1-based, arrival order
    common_name: str = ""
    status: int = 0
    status_text: str = ""
    latency_ms: int = 0
    success: bool = False
    error: str | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> DeliveryOutcome:
        if self.success != (200 <= self.status < 300):
            raise ValueError(
                f"success={self.success} is inconsistent with status {self.status}"
            )
        if self.status == 0 and not self.error:
            raise ValueError("an outcome without a response must carry an error")
        return self


class RunResult(BaseModel):
    """Aggregate over every delivery outcome of one run."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    elapsed_ms: int = 0
    total_latency_ms: int = 0
    records: int = 0  # records processed by any sink
    file_records: int = 0
    cancelled: bool = False
    stream_error: str | None = None

    @classmethod
    def from_outcomes(
        cls,
        outcomes: Iterable[DeliveryOutcome],
        elapsed_ms: int,
        *,
        records: int | None = None,
        file_records: int = 0,
        cancelled: bool = False,
        stream_error: str | None = None,
    ) -> RunResult:
        """Build the aggregate from a finished run's outcomes."""
        outcomes = list(outcomes)
        succeeded = sum(1 for o in outcomes if o.success)
        return cls(
            total=len(outcomes),
            succeeded=succeeded,
            failed=len(outcomes) - succeeded,
            elapsed_ms=elapsed_ms,
            total_latency_ms=sum(o.latency_ms for o in outcomes),
            records=len(outcomes) if records is None else records,
            file_records=file_records,
            cancelled=cancelled,
            stream_error=stream_error,
        )

    @property
    def avg_latency_ms(self) -> int:
        """Integer mean latency; 0 when nothing was delivered."""
        if not self.total:
            return 0
        return self.total_latency_ms // self.total

    @property
    def success_pct(self) -> float:
        """Percentage of successful deliveries, rounded to one decimal."""
        if not self.total:
            return 0.0
        return round(self.succeeded / self.total * 100.0, 1)

    @property
    def elapsed_seconds(self) -> float:
        return self.elapsed_ms / 1000.0

    @property
    def has_output(self) -> bool:
        """Whether at least one record was processed."""
        return self.records > 0 or self.total > 0 or self.file_records > 0

    @property
    def success(self) -> bool:
        return self.failed == 0 and self.stream_error is None
