"""Unit tests for the Rich relay renderer."""

from __future__ import annotations

import io

from rich.console import Console

from conftest import rendered, rendered_errors
from ctrelay.core.hasher import record_json_bytes, signature_header
from ctrelay.models.delivery import DeliveryOutcome, RunResult
from ctrelay.monitor.renderer import CN_WIDTH, RelayRenderer, truncate


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("example.com", 28) == "example.com"

    def test_long_text_gets_ellipsis(self):
        text = "a" * 40
        assert truncate(text, CN_WIDTH) == "a" * (CN_WIDTH - 3) + "..."
        assert len(truncate(text, CN_WIDTH)) == CN_WIDTH

    def test_tiny_limit(self):
        assert truncate("abcdef", 2) == "ab"


class TestDeliveryLines:
    def test_success_line(self, renderer):
        renderer.print_delivery(
            DeliveryOutcome(
                index=1, common_name="www.example.com", status=200,
                status_text="OK", latency_ms=42, success=True,
            )
        )
        out = rendered(renderer)
        assert "#1" in out
        assert "www.example.com" in out
        assert "200 OK" in out
        assert "(42ms)" in out

    def test_transport_failure_line(self, renderer):
        renderer.print_delivery(
            DeliveryOutcome(index=7, status=0, error="delivery failed: timed out after 10s")
        )
        assert "ERR delivery failed: timed out after 10s" in rendered(renderer)

    def test_long_common_name_truncated(self, renderer):
        name = "very-long-subdomain-name.internal.example.com"
        renderer.print_delivery(
            DeliveryOutcome(index=2, common_name=name, status=404, status_text="Not Found")
        )
        out = rendered(renderer)
        assert truncate(name, CN_WIDTH) in out
        assert name not in out

    def test_file_saved_line(self, renderer):
        renderer.print_file_saved(3, "mail.example.com")
        out = rendered(renderer)
        assert "#3" in out and "saved" in out


class TestSummary:
    def test_partial_success(self, renderer):
        outcomes = [
            DeliveryOutcome(index=1, status=200, status_text="OK", latency_ms=10, success=True),
            DeliveryOutcome(index=2, status=500, status_text="Internal Server Error", latency_ms=20),
            DeliveryOutcome(index=3, status=200, status_text="OK", latency_ms=30, success=True),
        ]
        renderer.print_summary(RunResult.from_outcomes(outcomes, 2500))
        out = rendered(renderer)
        assert "Delivered: 2/3 (66.7%)" in out
        assert "Failed:" in out
        assert "Elapsed:   2.5s" in out
        assert "Avg:       20ms" in out

    def test_nothing_delivered(self, renderer):
        renderer.print_summary(RunResult.from_outcomes([], 100))
        out = rendered(renderer)
        assert "Delivered: 0/0 (0.0%)" in out
        assert "Avg:" not in out
        assert "Failed:" not in out


class TestMessages:
    def test_errors_go_to_err_console(self, renderer):
        renderer.print_error("stream error: boom")
        assert "Error: stream error: boom" in rendered_errors(renderer)
        assert rendered(renderer) == ""

    def test_markup_in_messages_is_escaped(self, renderer):
        renderer.print_info("value [red]not markup[/red]")
        assert "[red]not markup[/red]" in rendered(renderer)

    def test_banner(self, renderer):
        renderer.print_banner("1.0.0", ["http://x.test/hook", "stdout"], "Secret", 120)
        out = rendered(renderer)
        assert "CertWatch Webhook Relay v1.0.0" in out
        assert "http://x.test/hook + stdout" in out
        assert "Stream: 120s" in out

    def test_disabled_renderer_prints_nothing(self, record):
        out, err = io.StringIO(), io.StringIO()
        renderer = RelayRenderer(
            Console(file=out, no_color=True), Console(file=err, no_color=True), enabled=False
        )
        renderer.print_banner("1.0.0", ["stdout"], "Secret")
        renderer.print_connecting()
        renderer.print_connected()
        renderer.print_error("x")
        renderer.print_verbose_record(record)
        assert out.getvalue() == "" and err.getvalue() == ""


class TestPreview:
    def test_preview_shows_signed_request(self, renderer, record):
        renderer.print_preview(record, "preview-secret", "1.0.0")
        out = rendered(renderer)
        expected = signature_header(record_json_bytes(record), "preview-secret")
        assert f"X-CertWatch-Signature: {expected}" in out
        assert f"X-CertWatch-Event-Id: {record.event_id}" in out
        assert "POST Request" in out
        assert "Signing secret: preview-secret" in out
        assert record.data.fingerprint in out
