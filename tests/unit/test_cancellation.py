"""Unit tests for CancelToken and signal wiring."""

from __future__ import annotations

import os
import signal

import pytest

from ctrelay.core.cancellation import CancelToken, install_signal_handlers


class TestCancelToken:
    def test_initially_not_cancelled(self):
        assert CancelToken().cancelled is False

    def test_cancel_sets_reason_once(self):
        token = CancelToken()
        token.cancel("first")
        token.cancel("second")
        assert token.cancelled is True
        assert token.reason == "first"

    def test_callbacks_run_once(self):
        token = CancelToken()
        calls: list[int] = []
        token.add_callback(lambda: calls.append(1))
        token.cancel()
        token.cancel()
        assert calls == [1]

    def test_callback_added_after_cancel_runs_immediately(self):
        token = CancelToken()
        token.cancel()
        calls: list[int] = []
        token.add_callback(lambda: calls.append(1))
        assert calls == [1]

    def test_removed_callback_not_run(self):
        token = CancelToken()
        calls: list[int] = []

        def callback() -> None:
            calls.append(1)

        token.add_callback(callback)
        token.remove_callback(callback)
        token.cancel()
        assert calls == []

    def test_failing_callback_does_not_stop_others(self):
        token = CancelToken()
        calls: list[int] = []

        def boom() -> None:
            raise RuntimeError("boom")

        token.add_callback(boom)
        token.add_callback(lambda: calls.append(1))
        token.cancel()
        assert calls == [1]


@pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="POSIX signals only")
class TestInstallSignalHandlers:
    def test_signal_cancels_token_and_restores(self):
        token = CancelToken()
        before = signal.getsignal(signal.SIGUSR1)
        restore = install_signal_handlers(token, signals=(signal.SIGUSR1,))
        try:
            os.kill(os.getpid(), signal.SIGUSR1)
        finally:
            restore()

        assert token.cancelled is True
        assert token.reason == "received SIGUSR1"
        assert signal.getsignal(signal.SIGUSR1) == before
