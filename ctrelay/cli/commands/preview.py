"""``ctrelay preview`` — show a signed sample request and exit.

No session or network access is needed.  Without ``--secret`` a random
32-byte key is used.
"""

from __future__ import annotations

import typer

from ctrelay import __version__
from ctrelay.config import RelayConfig
from ctrelay.monitor.renderer import RelayRenderer
from ctrelay.preview import generate_sample_record, random_hex


def preview_cmd(
    secret: str = typer.Option(
        None, "--secret", "-s", help="Preview with your real HMAC signing secret."
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output."),
) -> None:
    """Show the request your endpoint will receive, signed with *secret*."""
    renderer = RelayRenderer.create(no_color=no_color or RelayConfig().no_color)
    signing_secret = secret or random_hex(32)

    renderer.print_preview(generate_sample_record(), signing_secret, __version__)
    if not secret:
        renderer.print_info(
            "Tip: pass --secret <your-secret> to preview with your real HMAC key"
        )
