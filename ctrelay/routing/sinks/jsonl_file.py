"""JSONL file sink — appends one compact JSON record per line.

The file is opened in append mode when the sink is created, so existing
content is never truncated, and it is closed exactly once by ``close()``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ctrelay.core.hasher import record_json_bytes
from ctrelay.models.records import StreamRecord

logger = logging.getLogger(__name__)


class JsonlFileSink:
    """Appends records to a JSONL file.

    Parameters
    ----------
    path:
        The file to append to.  Created if missing; parent directories
        must already exist.

    Raises
    ------
    OSError
        If the file cannot be opened for appending.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._handle = self.path.open("a", encoding="utf-8")
        self.records_written = 0

    @property
    def sink_name(self) -> str:
        return "jsonl_file"

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def accept(self, record: StreamRecord, index: int) -> None:
        self._handle.write(record_json_bytes(record).decode("utf-8") + "\n")
        self._handle.flush()
        self.records_written += 1
        logger.debug("JsonlFileSink: appended record #%d to %s", index, self.path)

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()
            logger.debug(
                "JsonlFileSink: closed %s after %d records", self.path, self.records_written
            )
