"""Session bootstrap wire models and the transient Session bundle."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SessionData(BaseModel):
    """Details of a successfully created test session."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    test_id: str = Field(default="", alias="testId")
    secret: str = ""
    stream_url: str = Field(default="", alias="streamUrl")
    expires_in_seconds: int = Field(default=0, alias="expiresInSeconds")
    stream_duration_seconds: int = Field(default=0, alias="streamDurationSeconds")


class SessionErrorBody(BaseModel):
    """Error details returned when session creation is rejected."""

    model_config = ConfigDict(frozen=True)

    code: str = ""
    message: str = ""


class SessionResponse(BaseModel):
    """The JSON envelope returned by the session API."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    data: SessionData | None = None
    error: SessionErrorBody | None = None


class Session(BaseModel):
    """Credential and endpoint bundle used for exactly one run.  Never persisted."""

    model_config = ConfigDict(frozen=True)

    secret: str
    stream_url: str
    stream_duration_seconds: int = 0
    test_id: str = ""
