"""Main Typer application — imports and registers all CLI commands.

Entry point: ``ctrelay`` (configured via pyproject.toml [project.scripts]).

Commands: stream, preview, receive, version.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from ctrelay import __version__
from ctrelay.cli.commands.preview import preview_cmd
from ctrelay.cli.commands.receive import receive_cmd
from ctrelay.cli.commands.stream import stream_cmd
from ctrelay.config import RelayConfig

app = typer.Typer(
    name="ctrelay",
    help="ctrelay: relay live certificate-transparency events to your webhook endpoint.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="stream", help="Relay the live stream to a URL, a file, or stdout.")(stream_cmd)
app.command(name="preview", help="Show a signed sample payload and exit.")(preview_cmd)
app.command(name="receive", help="Run a local receiver that verifies signatures.")(receive_cmd)


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (default: CTRELAY_LOG_LEVEL or WARNING)."
    ),
) -> None:
    """ctrelay: relay live certificate-transparency events to your webhook endpoint."""
    configure_logging(log_level or RelayConfig().log_level)


@app.command(name="version", help="Print the version and exit.")
def version_cmd() -> None:
    """Print the ctrelay version."""
    typer.echo(f"ctrelay v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
