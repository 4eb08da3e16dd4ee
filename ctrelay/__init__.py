"""ctrelay: certificate-transparency stream relay.

Consumes the long-lived server-sent event stream of a certificate
transparency service and fans each record out to local sinks:
  - Signed HTTP delivery to your webhook endpoint (HMAC-SHA256)
  - Append-only JSONL file
  - Raw NDJSON on stdout
  - Session bootstrap from an API key
  - Cooperative cancellation on SIGINT/SIGTERM with a delivery summary
"""

__version__ = "1.0.0"
__description__ = "Relay live certificate-transparency events to local webhook sinks"

from ctrelay.core.orchestrator import RelayOrchestrator

__all__ = ["RelayOrchestrator", "__version__"]
