"""Rich terminal renderer for relay runs.

Color is an explicit choice made when the renderer is built
(``RelayRenderer.create(no_color=...)``); Rich also honours ``NO_COLOR``.
A disabled renderer prints nothing, which is how raw mode keeps stdout
free of decoration.

Color scheme
------------
- green : 2xx deliveries, connected, saved
- red   : failed deliveries and errors
- yellow: partial success in the summary
- cyan  : informational lines
- dim   : labels and latency
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from ctrelay.core.hasher import record_json_bytes, signature_header
from ctrelay.delivery.client import USER_AGENT
from ctrelay.models.delivery import DeliveryOutcome, RunResult
from ctrelay.models.records import StreamRecord

CN_WIDTH = 28


def truncate(text: str, max_len: int) -> str:
    """Shorten *text* to *max_len* characters, ending in ``...`` if cut."""
    if len(text) <= max_len:
        return text
    if max_len <= 3:
        return text[:max_len]
    return text[: max_len - 3] + "..."


class RelayRenderer:
    """Renders run progress and summaries.

    Parameters
    ----------
    console:
        Console for regular output.  A new one is created if not provided.
    err_console:
        Console for error lines (stderr by default).
    enabled:
        When False every method is a no-op.
    """

    def __init__(
        self,
        console: Console | None = None,
        err_console: Console | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)
        self.enabled = enabled

    @classmethod
    def create(cls, *, no_color: bool = False, enabled: bool = True) -> RelayRenderer:
        """Build a renderer with an explicit color setting."""
        return cls(
            Console(no_color=no_color, highlight=False),
            Console(stderr=True, no_color=no_color, highlight=False),
            enabled=enabled,
        )

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def print_banner(
        self, version: str, targets: list[str], mode: str, duration: int = 0
    ) -> None:
        if not self.enabled:
            return
        target = " + ".join(targets)
        self.console.print()
        self.console.print(f"  [bold]CertWatch Webhook Relay v{escape(version)}[/bold]")
        self.console.print(f"  [dim]Target:[/dim] {escape(target)}")
        if duration > 0:
            self.console.print(f"  [dim]Mode:  [/dim] {mode}[dim] ·[/dim] Stream: {duration}s")
        else:
            self.console.print(f"  [dim]Mode:  [/dim] {mode}")
        self.console.print()

    def print_connecting(self) -> None:
        if self.enabled:
            self.console.print("  [dim]Connecting...[/dim] ", end="")

    def end_line(self) -> None:
        """Terminate a pending ``Connecting...`` line."""
        if self.enabled:
            self.console.print()

    def print_connected(self) -> None:
        if self.enabled:
            self.console.print("[green]✓ Connected[/green]")
            self.console.print()

    def print_delivery(self, outcome: DeliveryOutcome) -> None:
        if not self.enabled:
            return
        index = escape(f"#{outcome.index:<3d}")
        cn = escape(f"{truncate(outcome.common_name, CN_WIDTH):<{CN_WIDTH}}")
        latency = f"({outcome.latency_ms}ms)"

        if outcome.success:
            status = f"[green]{outcome.status} {escape(outcome.status_text)}[/green]  [dim]{latency}[/dim]"
        elif outcome.status == 0:
            status = f"[red]ERR {escape(outcome.error or '')}[/red]"
        else:
            status = f"[red]{outcome.status} {escape(outcome.status_text)}[/red]  [dim]{latency}[/dim]"

        self.console.print(f"  [dim]{index}[/dim] {cn} [dim]->[/dim] {status}")

    def print_file_saved(self, index: int, common_name: str) -> None:
        if not self.enabled:
            return
        idx = escape(f"#{index:<3d}")
        cn = escape(f"{truncate(common_name, CN_WIDTH):<{CN_WIDTH}}")
        self.console.print(f"  [dim]{idx}[/dim] {cn} [dim]->[/dim] [green]saved[/green]")

    def print_verbose_record(self, record: StreamRecord) -> None:
        if not self.enabled:
            return
        text = Text(record.model_dump_json(indent=2), style="dim")
        self.console.print(Panel.fit(text, border_style="dim", padding=(0, 2)))

    def print_summary(self, result: RunResult) -> None:
        if not self.enabled:
            return
        separator = "─" * 36
        delivered_style = "green" if result.succeeded == result.total else "yellow"

        self.console.print()
        self.console.print(f"  [dim]{separator}[/dim]")
        self.console.print("  [bold]Summary[/bold]")
        self.console.print(f"  [dim]{separator}[/dim]")
        self.console.print(
            f"  [dim]Delivered:[/dim] [{delivered_style}]"
            f"{result.succeeded}/{result.total} ({result.success_pct:.1f}%)[/{delivered_style}]"
        )
        if result.failed:
            self.console.print(f"  [dim]Failed:   [/dim] [red]{result.failed}[/red]")
        self.console.print(f"  [dim]Elapsed:  [/dim] {result.elapsed_seconds:.1f}s")
        if result.total:
            self.console.print(f"  [dim]Avg:      [/dim] {result.avg_latency_ms}ms")
        self.console.print()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def print_info(self, message: str) -> None:
        if self.enabled:
            self.console.print(f"  [cyan]Info:[/cyan] {escape(message)}")

    def print_error(self, message: str) -> None:
        if self.enabled:
            self.err_console.print(f"  [red]Error:[/red] {escape(message)}")

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def print_preview(self, record: StreamRecord, secret: str, version: str) -> None:
        """Show the request an endpoint would receive for *record*."""
        body = record_json_bytes(record)
        headers = "\n".join([
            "Content-Type: application/json",
            f"User-Agent: {USER_AGENT}",
            f"X-CertWatch-Event-Id: {record.event_id}",
            f"X-CertWatch-Timestamp: {record.timestamp}",
            f"X-CertWatch-Signature: {signature_header(body, secret)}",
        ])

        self.console.print()
        self.console.print(
            f"  [bold]CertWatch Webhook Relay v{escape(version)}[/bold] [dim]-- Preview[/dim]"
        )
        self.console.print()
        self.console.print("  This is what your endpoint will receive:")
        self.console.print()
        request = Group(
            Text("Headers:", style="bold"),
            Text(headers),
            Text(""),
            Text("Body:", style="bold"),
            Syntax(record.model_dump_json(indent=2), "json", background_color="default"),
        )
        self.console.print(
            Panel(
                request,
                title="POST Request",
                title_align="left",
                border_style="dim",
                padding=(1, 2),
            )
        )
        self.console.print()
        self.console.print(f"  [dim]Signing secret:[/dim] {escape(secret)}")
        self.console.print()
        self.console.print("  Verify the signature in your endpoint:")
        self.console.print(
            "    [cyan]HMAC-SHA256(raw request body, secret) == signature[/cyan]"
        )
        self.console.print(
            "    [dim]The body is sent as compact JSON; sign the raw bytes, "
            "not a re-serialized copy.[/dim]"
        )
        self.console.print()
