"""Tests for the Pydantic data models — validation, immutability, aggregates."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from ctrelay.models import (
    DeliveryOutcome,
    RelayOptions,
    RunResult,
    StreamMeta,
    StreamRecord,
)


def _outcome(index: int, status: int = 200, latency_ms: int = 10, **kw) -> DeliveryOutcome:
    success = 200 <= status < 300
    error = kw.pop("error", None if success else f"received status {status}")
    return DeliveryOutcome(
        index=index, status=status, latency_ms=latency_ms, success=success, error=error, **kw
    )


class TestStreamRecord:
    def test_missing_fields_default_empty(self):
        record = StreamRecord.model_validate_json('{"event_id": "evt_1"}')
        assert record.event_id == "evt_1"
        assert record.data.common_name == ""
        assert record.data.domains == []

    def test_null_fields_take_defaults(self):
        record = StreamRecord.model_validate_json(
            '{"event_id": null, "timestamp": "t", "data": null}'
        )
        assert record.event_id == ""
        assert record.timestamp == "t"
        assert record.data.domains == []

    def test_unknown_fields_ignored(self):
        record = StreamRecord.model_validate_json('{"event_id": "e", "extra": 1}')
        assert record.event_id == "e"

    def test_frozen(self, record):
        with pytest.raises(ValidationError):
            record.event_id = "changed"

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            StreamRecord.model_validate_json("[1, 2]")

    def test_common_name_shortcut(self, record):
        assert record.common_name == record.data.common_name


class TestStreamMeta:
    def test_decodes_wire_names(self):
        meta = StreamMeta.model_validate_json('{"testId":"t1","streamDurationSeconds":60}')
        assert meta.test_id == "t1"
        assert meta.stream_duration_seconds == 60


class TestDeliveryOutcome:
    def test_success_requires_2xx(self):
        with pytest.raises(ValidationError):
            DeliveryOutcome(index=1, status=500, success=True)

    def test_2xx_must_be_success(self):
        with pytest.raises(ValidationError):
            DeliveryOutcome(index=1, status=204, success=False, error="x")

    def test_status_zero_requires_error(self):
        with pytest.raises(ValidationError):
            DeliveryOutcome(index=1, status=0, success=False)

    def test_status_zero_with_error(self):
        outcome = DeliveryOutcome(index=1, status=0, success=False, error="delivery failed: boom")
        assert outcome.success is False

    @pytest.mark.parametrize("status", [199, 200, 201, 299, 300, 404, 503])
    def test_success_boundary(self, status):
        outcome = _outcome(1, status)
        assert outcome.success == (200 <= status < 300)


class TestRunResult:
    def test_avg_and_pct(self):
        outcomes = [_outcome(1, 200, 10), _outcome(2, 200, 20), _outcome(3, 500, 30)]
        result = RunResult.from_outcomes(outcomes, elapsed_ms=1500)

        assert result.total == 3
        assert result.succeeded == 2
        assert result.failed == 1
        assert result.avg_latency_ms == 20
        assert result.success_pct == 66.7
        assert result.elapsed_seconds == 1.5
        assert result.success is False

    def test_empty(self):
        result = RunResult.from_outcomes([], elapsed_ms=0)
        assert result.avg_latency_ms == 0
        assert result.success_pct == 0.0
        assert result.success is True
        assert result.has_output is False

    def test_stream_error_fails_run(self):
        result = RunResult.from_outcomes([_outcome(1)], elapsed_ms=5, stream_error="boom")
        assert result.success is False

    def test_records_counted_separately(self):
        result = RunResult.from_outcomes([], elapsed_ms=5, records=4)
        assert result.records == 4
        assert result.has_output is True


class TestRelayOptions:
    def test_requires_an_output(self):
        with pytest.raises(ValidationError, match="at least one of"):
            RelayOptions(secret="s")

    def test_requires_a_credential(self):
        with pytest.raises(ValidationError, match="api_key or secret"):
            RelayOptions(raw=True)

    def test_targets_in_sink_labels(self):
        opts = RelayOptions(
            secret="s", target_url="http://h/webhook", file_path=Path("out.jsonl"), raw=True
        )
        assert opts.targets == ["http://h/webhook", "file: out.jsonl", "stdout"]
        assert opts.mode == "Secret"

    def test_api_key_mode(self):
        assert RelayOptions(api_key="k", raw=True).mode == "API key"
