from __future__ import annotations

from pydantic import BaseModel, Field


class HealthOut(BaseModel):
    """Health check response."""

    status: str = Field(
        description="Service status indicator. `ok` means the API process is up and responding.",
        examples=["ok"],
    )


class ErrorOut(BaseModel):
    """Error envelope returned for every failed request."""

    error: str = Field(examples=["Missing required fields: speechSample and mode are required."])
    details: str | None = Field(
        default=None,
        description="Optional diagnostic text (e.g. the upstream provider's response body).",
    )
