"""Raw sink — echoes each record as one compact JSON line on stdout."""

from __future__ import annotations

import sys
from typing import TextIO

from ctrelay.core.hasher import record_json_bytes
from ctrelay.models.records import StreamRecord


class RawStdoutSink:
    """Writes NDJSON to a text stream (standard output by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def sink_name(self) -> str:
        return "raw_stdout"

    def accept(self, record: StreamRecord, index: int) -> None:
        # Resolved per call so redirected stdout (tests, CliRunner) is honoured.
        stream = self._stream or sys.stdout
        stream.write(record_json_bytes(record).decode("utf-8") + "\n")
        stream.flush()

    def close(self) -> None:
        pass
