"""Stream record models — certificate-transparency events as delivered by the stream.

Every record is a frozen Pydantic model.  Decoding is lenient about missing
keys (they default to empty) and ignores unknown keys, so a partially
populated event still decodes.  The canonical wire form is the compact JSON
produced by ``model_dump_json()`` in declared field order.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _drop_null_fields(data: Any) -> Any:
    """Treat JSON null like a missing key, so the field keeps its default."""
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


class CertificateData(BaseModel):
    """Certificate details carried inside a stream record."""

    model_config = ConfigDict(frozen=True)

    fingerprint: str = ""
    serial_number: str = ""
    common_name: str = ""
    domains: list[str] = []
    issuer_org: str = ""
    issuer_cn: str = ""
    not_before: str = ""  # RFC 3339
    not_after: str = ""  # RFC 3339
    ct_log_sources: list[str] = []
    seen_at: str = ""  # RFC 3339

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        return _drop_null_fields(data)


class StreamRecord(BaseModel):
    """A single CT certificate event (the "webhook payload")."""

    model_config = ConfigDict(frozen=True)

    event: str = ""  # e.g. "ct.certificate.new"
    event_id: str = ""
    timestamp: str = ""  # RFC 3339
    api_version: str = ""
    data: CertificateData = CertificateData()

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        return _drop_null_fields(data)

    @property
    def common_name(self) -> str:
        return self.data.common_name


class StreamMeta(BaseModel):
    """Session metadata announced once near the start of the stream."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    test_id: str = Field(default="", alias="testId")
    stream_duration_seconds: int = Field(default=0, alias="streamDurationSeconds")
