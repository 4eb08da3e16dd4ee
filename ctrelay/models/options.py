"""Run request options — what to connect to and which sinks to drive."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, model_validator

DEFAULT_API_ENDPOINT = "https://api.certwatch.app"


class RelayOptions(BaseModel):
    """Options for a single relay run.

    At least one output (``target_url``, ``file_path`` or ``raw``) and one
    credential (``api_key`` or ``secret``) are required.
    """

    model_config = ConfigDict(frozen=True)

    target_url: str | None = None
    secret: str | None = None
    api_key: str | None = None
    file_path: Path | None = None
    raw: bool = False
    verbose: bool = False
    api_endpoint: str = DEFAULT_API_ENDPOINT

    @model_validator(mode="after")
    def _check_required(self) -> RelayOptions:
        if not (self.target_url or self.file_path or self.raw):
            raise ValueError("at least one of target_url, file_path or raw is required")
        if not (self.api_key or self.secret):
            raise ValueError("either api_key or secret is required")
        return self

    @property
    def mode(self) -> str:
        """Human-readable authentication mode."""
        return "API key" if self.api_key else "Secret"

    @property
    def targets(self) -> list[str]:
        """Display labels for every active output, in sink order."""
        labels: list[str] = []
        if self.target_url:
            labels.append(self.target_url)
        if self.file_path:
            labels.append(f"file: {self.file_path}")
        if self.raw:
            labels.append("stdout")
        return labels
