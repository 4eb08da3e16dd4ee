"""Cooperative cancellation for a relay run.

A ``CancelToken`` is passed through every blocking call.  Blocking sites
poll it between lines and requests, and may register a callback so that a
blocked read is unwound as soon as cancellation is requested.
"""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)


class CancelToken:
    """A one-shot cancellation flag with optional callbacks."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        """Request cancellation.  Only the first call has any effect."""
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        logger.info("Cancellation requested: %s", reason)
        for callback in callbacks:
            try:
                callback()
            except Exception as exc:  # noqa: BLE001
                logger.debug("Cancel callback %r failed: %s", callback, exc)

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run *callback* on cancellation, immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


def install_signal_handlers(
    token: CancelToken,
    signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
) -> Callable[[], None]:
    """Route *signals* to ``token.cancel()``.

    Returns a function that restores the previous handlers.
    """
    previous: dict[signal.Signals, object] = {}

    def _handler(signum: int, frame: object) -> None:
        token.cancel(f"received {signal.Signals(signum).name}")

    for sig in signals:
        previous[sig] = signal.signal(sig, _handler)

    def _restore() -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    return _restore
