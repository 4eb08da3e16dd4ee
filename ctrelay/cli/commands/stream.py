"""``ctrelay stream`` — relay the certificate stream to the configured sinks.

Exit codes
----------
0    every delivery succeeded (or there was nothing to deliver)
1    at least one delivery failed
2    invalid options, or the output file could not be opened
3    the session or stream failed, or the stream reported an error
130  interrupted before any record was processed
"""

from __future__ import annotations

from pathlib import Path

import typer

from ctrelay.config import RelayConfig
from ctrelay.core.cancellation import CancelToken, install_signal_handlers
from ctrelay.core.errors import RelayConnectionError, RunIncompleteError
from ctrelay.core.orchestrator import RelayOrchestrator
from ctrelay.models.delivery import RunResult
from ctrelay.models.options import RelayOptions
from ctrelay.monitor.renderer import RelayRenderer

EXIT_OK = 0
EXIT_DELIVERY_FAILED = 1
EXIT_USAGE = 2
EXIT_STREAM_ERROR = 3
EXIT_INTERRUPTED = 130


def exit_code_for(result: RunResult) -> int:
    """Map a finished run onto a process exit code."""
    if result.stream_error is not None:
        return EXIT_STREAM_ERROR
    if result.failed:
        return EXIT_DELIVERY_FAILED
    return EXIT_OK


def stream_cmd(
    url: str = typer.Option(
        None, "--url", "-u", help="Deliver payloads via HTTP POST to this URL."
    ),
    secret: str = typer.Option(
        None, "--secret", "-s", help="Webhook signing secret (direct secret mode)."
    ),
    api_key: str = typer.Option(
        None, "--api-key", "-k", help="API key; creates a test session automatically."
    ),
    file: Path = typer.Option(
        None, "--file", "-f", help="Append payloads to a JSONL file (one JSON per line)."
    ),
    raw: bool = typer.Option(
        False, "--raw", help="Print raw NDJSON to stdout (pipe-friendly)."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print the full JSON payload for each delivery."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable colored output (also: NO_COLOR)."
    ),
    api_endpoint: str = typer.Option(
        None, "--api-endpoint", help="Override the API base URL."
    ),
) -> None:
    """Relay live certificate events to your endpoint, a file, or stdout.

    Outputs are combinable; records reach them in the order stdout, file,
    HTTP.  Press Ctrl+C to stop and print the summary.
    """
    config = RelayConfig()
    no_color = no_color or config.no_color
    errors = RelayRenderer.create(no_color=no_color)

    if not (url or file or raw):
        errors.print_error("at least one of --url, --file, or --raw is required")
        raise typer.Exit(EXIT_USAGE)
    if not (api_key or secret):
        errors.print_error("either --api-key or --secret is required")
        raise typer.Exit(EXIT_USAGE)

    options = RelayOptions(
        target_url=url,
        secret=secret,
        api_key=api_key,
        file_path=file,
        raw=raw,
        verbose=verbose,
        api_endpoint=api_endpoint or config.api_endpoint,
    )

    token = CancelToken()
    restore_signals = install_signal_handlers(token)
    orchestrator = RelayOrchestrator(
        options,
        config=config,
        renderer=RelayRenderer.create(no_color=no_color, enabled=not raw),
        cancel_token=token,
    )
    try:
        result = orchestrator.run()
    except RunIncompleteError as exc:
        errors.print_error(str(exc))
        raise typer.Exit(EXIT_INTERRUPTED)
    except RelayConnectionError as exc:
        errors.print_error(str(exc))
        raise typer.Exit(EXIT_STREAM_ERROR)
    except OSError as exc:
        errors.print_error(f"failed to open output file {file}: {exc}")
        raise typer.Exit(EXIT_USAGE)
    finally:
        restore_signals()

    code = exit_code_for(result)
    if code == EXIT_DELIVERY_FAILED:
        errors.print_error("some deliveries failed")
    raise typer.Exit(code)
