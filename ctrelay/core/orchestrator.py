"""Relay orchestrator — owns the lifecycle of one streaming run.

The RelayOrchestrator wires the session bootstrapper, the event stream,
the event dispatcher, and the record sinks into a single run:

    IDLE -> CONNECTING -> STREAMING -> DRAINING -> DONE

Records are processed one at a time on the reading thread.  Each record
gets the next sequence index from the ``OutcomeAccumulator`` and is then
fanned out to the active sinks in the fixed order raw stdout, JSONL file,
HTTP delivery.  Only the HTTP delivery sink produces a DeliveryOutcome.

Exit policy
-----------
- Session and stream connection failures propagate as
  ``RelayConnectionError`` unless cancellation was requested after at
  least one record was processed.
- Cancellation before any record was processed raises
  ``RunIncompleteError``.
- Everything else is reflected in the returned ``RunResult``.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum

import httpx

from ctrelay import __version__
from ctrelay.config import RelayConfig
from ctrelay.core.cancellation import CancelToken
from ctrelay.core.errors import RelayConnectionError, RelayError, RunIncompleteError
from ctrelay.delivery.client import DeliveryClient
from ctrelay.models.delivery import DeliveryOutcome, RunResult
from ctrelay.models.options import RelayOptions
from ctrelay.models.records import StreamMeta, StreamRecord
from ctrelay.models.session import Session
from ctrelay.monitor.renderer import RelayRenderer
from ctrelay.routing.dispatcher import RecordDispatcher
from ctrelay.routing.sinks.http_delivery import HttpDeliverySink
from ctrelay.routing.sinks.jsonl_file import JsonlFileSink
from ctrelay.routing.sinks.raw_stdout import RawStdoutSink
from ctrelay.session import SessionCreationError, create_session
from ctrelay.stream.dispatcher import dispatch_event
from ctrelay.stream.parser import (
    EventStream,
    StreamCancelled,
    StreamError,
    build_stream_url,
)

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """Lifecycle states of a relay run."""

    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    DRAINING = "draining"
    DONE = "done"


# DONE is terminal.  CONNECTING may drain directly when the stream never opens.
VALID_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.CONNECTING},
    RunState.CONNECTING: {RunState.STREAMING, RunState.DRAINING},
    RunState.STREAMING: {RunState.DRAINING},
    RunState.DRAINING: {RunState.DONE},
    RunState.DONE: set(),
}


class InvalidTransitionError(RelayError):
    """Raised when a requested run state transition is not valid."""


class OutcomeAccumulator:
    """The run's shared mutable state: sequence counter and outcomes.

    All access goes through one lock, so indices stay dense and strictly
    increasing even if handlers were ever invoked from more than one thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._index = 0
        self._outcomes: list[DeliveryOutcome] = []
        self._file_records = 0

    def next_index(self) -> int:
        with self._lock:
            self._index += 1
            return self._index

    def record(self, outcome: DeliveryOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)

    def mark_file_write(self) -> None:
        with self._lock:
            self._file_records += 1

    @property
    def records_processed(self) -> int:
        with self._lock:
            return self._index

    @property
    def file_records(self) -> int:
        with self._lock:
            return self._file_records

    def snapshot(self) -> list[DeliveryOutcome]:
        """Return a copy of the outcomes in index order."""
        with self._lock:
            return list(self._outcomes)


class RelayOrchestrator:
    """Runs one relay session from connection to summary.

    Implements the ``EventHandler`` protocol, so the event dispatcher calls
    straight back into it for every parsed stream event.

    Parameters
    ----------
    options:
        What to connect to and which sinks to drive.
    config:
        Timeouts, limits and the user agent.  Defaults are read from the
        environment.
    renderer:
        Progress and summary output.  Disabled automatically in raw mode.
    cancel_token:
        Cooperative cancellation, usually wired to SIGINT/SIGTERM.
    http_client:
        Client used for the session request and the stream.  Created (and
        closed) by the orchestrator when not provided.
    delivery_client:
        Client used by the HTTP delivery sink.
    """

    def __init__(
        self,
        options: RelayOptions,
        *,
        config: RelayConfig | None = None,
        renderer: RelayRenderer | None = None,
        cancel_token: CancelToken | None = None,
        http_client: httpx.Client | None = None,
        delivery_client: DeliveryClient | None = None,
        version: str = __version__,
    ) -> None:
        self.options = options
        self.config = config or RelayConfig()
        self.renderer = renderer or RelayRenderer.create(
            no_color=self.config.no_color, enabled=not options.raw
        )
        self.cancel_token = cancel_token or CancelToken()
        self.version = version

        self._owns_http = http_client is None
        self._http = http_client or httpx.Client()
        self._delivery_client = delivery_client

        self.state = RunState.IDLE
        self.accumulator = OutcomeAccumulator()
        self.session: Session | None = None
        self.stream_duration_seconds = 0
        self.stream_error: str | None = None
        self.result: RunResult | None = None

        self._dispatcher = RecordDispatcher()
        self._file_sink: JsonlFileSink | None = None
        self._connected = False
        self._connecting_line_open = False
        self._started = 0.0

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(self, target: RunState) -> None:
        allowed = VALID_TRANSITIONS.get(self.state, set())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition run from {self.state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        logger.debug("Run state %s -> %s", self.state.value, target.value)
        self.state = target

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def run(self) -> RunResult:
        """Execute the run and return its aggregate result.

        Raises
        ------
        RelayConnectionError
            The session or stream failed and no cancellation with prior
            output excuses it.
        RunIncompleteError
            Cancelled before any record was processed.
        OSError
            The output file could not be opened.
        """
        self._transition(RunState.CONNECTING)
        self._started = time.monotonic()
        failure: RelayError | None = None

        try:
            session = self._resolve_session()
            self._build_sinks(session.secret)
            self._consume(session)
        except StreamCancelled:
            logger.info("Stream cancelled after %d records", self.accumulator.records_processed)
        except (StreamError, SessionCreationError) as exc:
            failure = exc
            logger.warning("Run ended with connection error: %s", exc)
        finally:
            self._drain()

        result = self._finish()

        cancelled = self.cancel_token.cancelled
        if failure is not None and not (cancelled and self.accumulator.records_processed):
            if isinstance(failure, SessionCreationError):
                message = str(failure)
                if not message.startswith("failed to create session"):
                    message = f"failed to create session: {message}"
                raise RelayConnectionError(message) from failure
            raise RelayConnectionError(f"stream error: {failure}") from failure
        if cancelled and not self.accumulator.records_processed:
            raise RunIncompleteError("interrupted before any record was processed")
        return result

    def _resolve_session(self) -> Session:
        opts = self.options
        if opts.api_key:
            session = create_session(
                opts.api_endpoint,
                opts.api_key,
                opts.secret,
                client=self._http,
                timeout=self.config.session_timeout_seconds,
            )
            self.renderer.print_info(f"Signing secret: {session.secret}")
        elif opts.secret:
            session = Session(
                secret=opts.secret,
                stream_url=build_stream_url(opts.api_endpoint, opts.secret),
            )
        else:
            raise SessionCreationError("either api_key or secret is required")
        self.session = session
        self.stream_duration_seconds = session.stream_duration_seconds
        return session

    def _build_sinks(self, secret: str) -> None:
        """Register the active sinks in the fixed order raw, file, HTTP."""
        opts = self.options
        if opts.raw:
            self._dispatcher.register_sink(RawStdoutSink())
        if opts.file_path is not None:
            self._file_sink = JsonlFileSink(opts.file_path)
            self._dispatcher.register_sink(self._file_sink)
        if opts.target_url:
            client = self._delivery_client or DeliveryClient(
                self.config.delivery_timeout_seconds,
                user_agent=self.config.user_agent,
            )
            self._dispatcher.register_sink(HttpDeliverySink(client, opts.target_url, secret))

    def _consume(self, session: Session) -> None:
        self.renderer.print_banner(
            self.version, self.options.targets, self.options.mode, self.stream_duration_seconds
        )
        self.renderer.print_connecting()
        self._connecting_line_open = True

        stream = EventStream(
            self._http,
            session.stream_url,
            session.secret,
            cancel_token=self.cancel_token,
            max_line_bytes=self.config.max_line_bytes,
        )
        with stream:
            self._transition(RunState.STREAMING)
            for event_name, data in stream.events():
                dispatch_event(event_name, data, self)
                if self.stream_error is not None:
                    break

    def _drain(self) -> None:
        if self.state is not RunState.DRAINING:
            self._transition(RunState.DRAINING)
        if self._connecting_line_open:
            self.renderer.end_line()
            self._connecting_line_open = False
        self._dispatcher.close()
        if self._owns_http:
            self._http.close()

    def _finish(self) -> RunResult:
        elapsed_ms = int((time.monotonic() - self._started) * 1000)
        result = RunResult.from_outcomes(
            self.accumulator.snapshot(),
            elapsed_ms,
            records=self.accumulator.records_processed,
            file_records=self.accumulator.file_records,
            cancelled=self.cancel_token.cancelled,
            stream_error=self.stream_error,
        )
        self.result = result
        self._transition(RunState.DONE)

        if self._file_sink is not None:
            self.renderer.print_info(
                f"Saved {result.file_records} payloads to {self._file_sink.path}"
            )
        if self.options.target_url:
            self.renderer.print_summary(result)
        if result.cancelled and result.has_output:
            self.renderer.print_info("Interrupted by signal")
        return result

    # ------------------------------------------------------------------
    # EventHandler
    # ------------------------------------------------------------------

    def _mark_connected(self) -> None:
        if self._connected:
            return
        self._connected = True
        self._connecting_line_open = False
        self.renderer.print_connected()

    def on_meta(self, meta: StreamMeta) -> None:
        self._mark_connected()
        self.stream_duration_seconds = meta.stream_duration_seconds
        logger.info(
            "Stream session %s, lifetime %ds", meta.test_id, meta.stream_duration_seconds
        )

    def on_payload(self, record: StreamRecord) -> None:
        if self.cancel_token.cancelled:
            return
        self._mark_connected()

        index = self.accumulator.next_index()
        dispatched = self._dispatcher.dispatch(record, index)

        if self._file_sink is not None and self._file_sink.sink_name in dispatched.succeeded:
            self.accumulator.mark_file_write()

        outcome = dispatched.outcome
        if outcome is not None:
            self.accumulator.record(outcome)
            self.renderer.print_delivery(outcome)
            if self.options.verbose:
                self.renderer.print_verbose_record(record)
        elif self._file_sink is not None:
            self.renderer.print_file_saved(index, record.common_name)

    def on_complete(self, message: str) -> None:
        self.renderer.print_info(f"Stream complete: {message}")

    def on_error(self, message: str) -> None:
        self.stream_error = message
        self.renderer.print_error(f"Stream error: {message}")
