"""ctrelay CLI — Typer-based command-line interface.

Provides the ``ctrelay`` command with subcommands for relaying the
certificate stream, previewing a signed sample request, and running a
local signature-verifying receiver.

All output uses Rich for formatted terminal display.
"""
