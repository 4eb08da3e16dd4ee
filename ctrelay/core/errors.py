"""Top-level relay errors.

Apart from ``OSError`` for an output file that cannot be opened, only
these errors propagate out of a run.  Decode failures, delivery failures
and sink write failures are absorbed where they happen and show up in
outcomes or log lines.
"""

from __future__ import annotations


class RelayError(RuntimeError):
    """Base class for every error raised by ctrelay."""


class RelayConnectionError(RelayError):
    """The session or the stream could not be established or was lost."""


class RunIncompleteError(RelayError):
    """The run was cancelled before any record was processed."""
