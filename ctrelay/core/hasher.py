"""Canonical serialization and HMAC-SHA256 signing for stream records.

The signature is always computed over the exact bytes that are
transmitted: the compact JSON of the record in declared field order.
"""

from __future__ import annotations

import hashlib
import hmac

from ctrelay.models.records import StreamRecord

SIGNATURE_PREFIX = "sha256="


def record_json_bytes(record: StreamRecord) -> bytes:
    """Produce the canonical JSON bytes of a record (compact, field order)."""
    return record.model_dump_json().encode("utf-8")


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def sign_payload(body: bytes | str, secret: str) -> str:
    """Return the hex HMAC-SHA256 of *body* keyed with *secret*."""
    return hmac.new(_as_bytes(secret), _as_bytes(body), hashlib.sha256).hexdigest()


def signature_header(body: bytes | str, secret: str) -> str:
    """Return the ``sha256=<hex>`` value sent in the signature header."""
    return SIGNATURE_PREFIX + sign_payload(body, secret)


def verify_signature(body: bytes | str, header: str | None, secret: str) -> bool:
    """Check a ``sha256=<hex>`` header against *body* in constant time."""
    if not header or not header.startswith(SIGNATURE_PREFIX):
        return False
    provided = header[len(SIGNATURE_PREFIX):]
    expected = sign_payload(body, secret)
    # compare_digest rejects non-ASCII str input with TypeError
    try:
        return hmac.compare_digest(expected, provided)
    except TypeError:
        return False
