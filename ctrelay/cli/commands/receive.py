"""``ctrelay receive`` — run a local receiver that verifies signatures."""

from __future__ import annotations

from datetime import datetime, timezone

import typer
import uvicorn
from rich.console import Console
from rich.markup import escape

from ctrelay.receiver import create_receiver_app

console = Console(highlight=False)


def _print_payload(count: int, payload: dict, verified: bool) -> None:
    data = payload.get("data")
    if not isinstance(data, dict):
        data = {}
    domains = data.get("domains")
    domain_count = len(domains) if isinstance(domains, list) else 0
    status = "[green]VERIFIED[/green]" if verified else "[red]FAILED[/red]"
    console.print()
    console.print(f"  [bold]#{count}[/bold]  [cyan]{escape(str(data.get('common_name') or 'unknown'))}[/cyan]")
    console.print(
        f"      Domains: {domain_count}  "
        f"Issuer: {escape(str(data.get('issuer_cn') or 'unknown'))}"
    )
    console.print(f"      Event:   {escape(str(payload.get('event_id', '')))}")
    console.print(f"      HMAC:    {status}")
    console.print(f"      [dim]{datetime.now(timezone.utc).isoformat()}[/dim]")


def receive_cmd(
    secret: str = typer.Option(
        ..., "--secret", "-s", help="The same secret passed to 'ctrelay stream'."
    ),
    port: int = typer.Option(3000, "--port", "-p", help="Port to listen on."),
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
) -> None:
    """Receive relayed payloads on POST /webhook and verify their HMAC."""
    app = create_receiver_app(secret, on_payload=_print_payload)

    console.print()
    console.print("  [bold]ctrelay Webhook Receiver[/bold]")
    console.print()
    console.print(f"  Listening: [cyan]http://{host}:{port}/webhook[/cyan]")
    console.print(f"  Health:    http://{host}:{port}/health")
    console.print(f"  Secret:    {escape(secret[:8])}...")
    console.print()
    console.print("[dim]  Waiting for payloads...[/dim]")

    uvicorn.run(app, host=host, port=port, log_level="warning")
