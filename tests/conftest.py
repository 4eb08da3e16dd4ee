"""Shared test fixtures for ctrelay."""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from rich.console import Console

from ctrelay.models.records import CertificateData, StreamRecord
from ctrelay.monitor.renderer import RelayRenderer


# ---------------------------------------------------------------------------
# Record factories shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_record() -> Callable[..., StreamRecord]:
    """Factory fixture: build a StreamRecord with sensible defaults."""

    def _factory(
        event_id: str = "evt_0001",
        common_name: str = "www.example.com",
        **overrides: Any,
    ) -> StreamRecord:
        data = CertificateData(
            fingerprint="sha256:" + "ab" * 32,
            serial_number="01:02:03:04",
            common_name=common_name,
            domains=[common_name, "example.com"],
            issuer_org="Let's Encrypt",
            issuer_cn="R11",
            not_before="2026-01-01T00:00:00Z",
            not_after="2026-04-01T00:00:00Z",
            ct_log_sources=["Google Argon 2026"],
            seen_at="2026-01-01T00:00:05Z",
        )
        defaults: dict[str, Any] = {
            "event": "ct.certificate.new",
            "event_id": event_id,
            "timestamp": "2026-01-01T00:00:05Z",
            "api_version": "2024-01-01",
            "data": data,
        }
        defaults.update(overrides)
        return StreamRecord(**defaults)

    return _factory


@pytest.fixture
def record(make_record: Callable[..., StreamRecord]) -> StreamRecord:
    """Convenience: a ready-made StreamRecord with test defaults."""
    return make_record()


# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------


def sse_body(*blocks: str) -> bytes:
    """Join SSE event blocks, each terminated by a blank line."""
    return "".join(block.rstrip("\n") + "\n\n" for block in blocks).encode("utf-8")


def payload_block(record: StreamRecord) -> str:
    return f"data: {record.model_dump_json()}"


@pytest.fixture
def sse() -> Callable[..., bytes]:
    return sse_body


# ---------------------------------------------------------------------------
# HTTP + rendering
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    """Factory fixture: an httpx.Client backed by a MockTransport handler."""
    clients: list[httpx.Client] = []

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _factory
    for client in clients:
        client.close()


@pytest.fixture
def renderer() -> RelayRenderer:
    """A renderer writing plain text into in-memory buffers."""
    return RelayRenderer(
        Console(file=io.StringIO(), width=200, no_color=True, highlight=False),
        Console(file=io.StringIO(), width=200, no_color=True, highlight=False),
    )


def rendered(renderer: RelayRenderer) -> str:
    """Everything the renderer printed to its regular console."""
    return renderer.console.file.getvalue()


def rendered_errors(renderer: RelayRenderer) -> str:
    return renderer.err_console.file.getvalue()
