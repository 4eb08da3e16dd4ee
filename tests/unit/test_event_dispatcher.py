"""Unit tests for event classification and kind-specific decoding."""

from __future__ import annotations

import pytest

from ctrelay.models.records import StreamMeta, StreamRecord
from ctrelay.stream.dispatcher import EventHandler, EventKind, dispatch_event


class _RecordingHandler:
    """Collects every callback as (method, argument)."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def on_meta(self, meta: StreamMeta) -> None:
        self.calls.append(("meta", meta))

    def on_payload(self, record: StreamRecord) -> None:
        self.calls.append(("payload", record))

    def on_complete(self, message: str) -> None:
        self.calls.append(("complete", message))

    def on_error(self, message: str) -> None:
        self.calls.append(("error", message))


class TestEventKind:
    @pytest.mark.parametrize(
        "name, kind",
        [
            ("meta", EventKind.META),
            ("complete", EventKind.COMPLETE),
            ("error", EventKind.ERROR),
            ("", EventKind.PAYLOAD),
            ("certificate", EventKind.PAYLOAD),
        ],
    )
    def test_classify(self, name, kind):
        assert EventKind.classify(name) is kind


class TestDispatchEvent:
    def test_handler_protocol(self):
        assert isinstance(_RecordingHandler(), EventHandler)

    def test_meta_decoded(self):
        handler = _RecordingHandler()
        assert dispatch_event("meta", '{"testId":"t1","streamDurationSeconds":60}', handler)
        assert handler.calls == [("meta", StreamMeta(test_id="t1", stream_duration_seconds=60))]

    def test_payload_decoded(self, record):
        handler = _RecordingHandler()
        assert dispatch_event("", record.model_dump_json(), handler)
        assert handler.calls == [("payload", record)]

    def test_complete_and_error_pass_raw_text(self):
        handler = _RecordingHandler()
        dispatch_event("complete", "Stream finished after 60s", handler)
        dispatch_event("error", "{not json either", handler)
        assert handler.calls == [
            ("complete", "Stream finished after 60s"),
            ("error", "{not json either"),
        ]

    def test_malformed_payload_dropped(self):
        handler = _RecordingHandler()
        assert dispatch_event("", "{not json", handler) is False
        assert handler.calls == []

    def test_malformed_meta_dropped(self):
        handler = _RecordingHandler()
        assert dispatch_event("meta", '{"streamDurationSeconds": "soon"}', handler) is False
        assert handler.calls == []

    def test_payload_with_null_lists_decoded(self):
        handler = _RecordingHandler()
        body = (
            '{"event":"ct.certificate.new","event_id":"evt_n","data":'
            '{"common_name":"a.com","domains":null,"ct_log_sources":null}}'
        )

        assert dispatch_event("", body, handler) is True
        record = handler.calls[0][1]
        assert record.common_name == "a.com"
        assert record.data.domains == []
        assert record.data.ct_log_sources == []
