"""ctrelay data models — all Pydantic v2, all frozen (immutable)."""

from ctrelay.models.delivery import DeliveryOutcome, RunResult
from ctrelay.models.options import DEFAULT_API_ENDPOINT, RelayOptions
from ctrelay.models.records import CertificateData, StreamMeta, StreamRecord
from ctrelay.models.session import (
    Session,
    SessionData,
    SessionErrorBody,
    SessionResponse,
)

__all__ = [
    # records
    "CertificateData",
    "StreamRecord",
    "StreamMeta",
    # delivery
    "DeliveryOutcome",
    "RunResult",
    # session
    "Session",
    "SessionData",
    "SessionErrorBody",
    "SessionResponse",
    # options
    "DEFAULT_API_ENDPOINT",
    "RelayOptions",
]
