"""Sample record generation for ``ctrelay preview``.

All random values come from ``secrets`` so previewed fingerprints and
serials look like the real thing.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone

from ctrelay.models.records import CertificateData, StreamRecord

SAMPLE_EVENT = "ct.certificate.new"
SAMPLE_API_VERSION = "2024-01-01"


def _rfc3339(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def random_hex(n_bytes: int) -> str:
    """Return *n_bytes* random bytes as lowercase hex."""
    return secrets.token_hex(n_bytes)


def random_serial_number(n_bytes: int = 16) -> str:
    """Return an upper-case, colon-separated hex serial (``AB:CD:...``)."""
    return ":".join(f"{b:02X}" for b in secrets.token_bytes(n_bytes))


def generate_sample_record(now: datetime | None = None) -> StreamRecord:
    """Build a realistic-looking record for previews."""
    now = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    stamp = _rfc3339(now)
    return StreamRecord(
        event=SAMPLE_EVENT,
        event_id=f"evt_{uuid.uuid4()}",
        timestamp=stamp,
        api_version=SAMPLE_API_VERSION,
        data=CertificateData(
            fingerprint=f"sha256:{random_hex(32)}",
            serial_number=random_serial_number(16),
            common_name="*.example.com",
            domains=["*.example.com", "example.com"],
            issuer_org="Let's Encrypt",
            issuer_cn="R11",
            not_before=stamp,
            not_after=_rfc3339(now + timedelta(days=90)),
            ct_log_sources=["Google Argon 2026"],
            seen_at=stamp,
        ),
    )
