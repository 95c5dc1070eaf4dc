"""Pydantic response schemas for the fileforge API.

The conversion endpoint itself answers with raw bytes; these models cover
the JSON bodies: error payloads, the supported-formats lookup and health.
Field names serialise in camelCase to match the browser client.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ErrorResponse(BaseModel):
    """Error body for every non-2xx JSON response."""

    error: str


class FormatsResponse(BaseModel):
    """Target formats a declared MIME type may be converted to, in display order."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mime_type: str
    targets: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Liveness plus whether each external provider is configured."""

    status: str = "ok"
    version: str
    providers: dict[str, bool] = Field(default_factory=dict)
