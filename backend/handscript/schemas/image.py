"""
Handscript Backend: Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the API contract between clients and backend.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate the OpenAPI documentation.
Who:   Used by route handlers and by ImageService to shape store responses.

Envelope:
    Every JSON response is wrapped as {"message": ..., "result": ...} on
    success and {"message": "Error", "error": {...}} on failure.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from handscript.config import settings


class InkColor(str, Enum):
    """Ink colors the renderer supports."""

    BLACK = "black"
    RED = "red"
    BLUE = "blue"


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ImageCreate(BaseModel):
    """
    What:  Body of POST /api/images.
    Who:   Sent by the text submission form.

    Defaults match the submission form: black ink on a ruled page.
    Validation runs before any rendering happens, so a bad color or empty
    text never reaches the renderer.
    """

    text: str = Field(description="Text to write on the page")
    color: InkColor = Field(default=InkColor.BLACK, description="Ink color: black, red or blue")
    ruled: bool = Field(default=True, description="Draw ruled lines on the page")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Rejects blank text and text over the configured length limit."""
        if not v.strip():
            raise ValueError("Text must not be empty")
        if len(v) > settings.max_text_length:
            raise ValueError(
                f"Text is {len(v)} characters long; the maximum is {settings.max_text_length}"
            )
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ImageResource(BaseModel):
    """
    What:  One stored image as reported by the media store.

    Only the fields the client needs are kept; anything else the store
    returns (version, signature, tags...) is dropped.
    """

    public_id: str = Field(description="Identifier assigned by the media store")
    secure_url: str = Field(description="HTTPS URL of the stored image")
    width: int = Field(description="Pixel width")
    height: int = Field(description="Pixel height")
    format: Optional[str] = Field(default=None, description="File format, e.g. png")
    bytes: Optional[int] = Field(default=None, description="Stored size in bytes")
    created_at: Optional[str] = Field(default=None, description="Upload time (ISO 8601)")


class ImageListResult(BaseModel):
    resources: List[ImageResource] = Field(description="Images under the configured folder")
    next_cursor: Optional[str] = Field(
        default=None,
        description="Set when more resources exist; pass as ?cursor= to fetch them",
    )


class DeleteResult(BaseModel):
    """
    Maps each requested public id to the store's verdict,
    either "deleted" or "not_found".
    """

    deleted: Dict[str, str] = Field(default_factory=dict)


class ImageListEnvelope(BaseModel):
    message: str = Field(default="Success")
    result: ImageListResult


class ImageEnvelope(BaseModel):
    message: str = Field(default="Success")
    result: ImageResource


class DeleteEnvelope(BaseModel):
    message: str = Field(default="Success")
    result: DeleteResult


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorDetail(BaseModel):
    """
    Fields:
        code: Machine-readable error code (e.g. "validation_error", "render_error")
        detail: Human-readable description
        field: Offending request field, for validation errors
        request_id: Correlation ID for tracing this error in server logs
    """

    code: str
    detail: str
    field: Optional[str] = None
    request_id: Optional[str] = None


class ErrorResponse(BaseModel):
    message: str = Field(default="Error")
    error: ErrorDetail


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and media store status.
    Who:   Returned by GET /health for monitoring and load balancer probes.
    """

    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    media_store: str = Field(description="Media store status: available, unavailable, unconfigured")
    uptime_seconds: float = Field(description="Seconds since service started")
