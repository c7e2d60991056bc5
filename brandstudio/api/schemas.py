"""
Pydantic schemas for the Brand Studio HTTP API.

Request and response bodies share the camelCase interchange names of the
core models and accept snake_case on input as well.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator

from brandstudio.models import AspectRatio, BrandProfile, GeneratedArt, StudioModel


class CreateStyleRequest(StudioModel):
    """Request model for POST /studio/brand/styles."""

    name: str = Field(..., description="Style name, unique within the brand (case-insensitive)")
    images: list[str] = Field(
        ...,
        description="Reference images as data URLs; DNA is scanned from the first",
        min_length=1,
    )


class ReferenceRequest(StudioModel):
    """Request model for POST /studio/brand/references."""

    kind: Literal["expert", "product"] = Field(..., description="Reference collection")
    image: str = Field(..., description="Image as a data URL")


class ScanRequest(StudioModel):
    """Request model for POST /studio/dna/scan."""

    image: str = Field(..., description="Reference image as a data URL", min_length=1)


class GenerateRequest(StudioModel):
    """Request model for POST /studio/art/generate."""

    prompt: str = Field(..., description="What to create")
    aspect_ratio: AspectRatio = Field(AspectRatio.SQUARE, description="Output format")
    style_id: str | None = Field(None, description="Saved style to apply")
    expert_reference: str | None = Field(None, description="Expert photo as a data URL")
    product_references: list[str] = Field(default_factory=list, description="Product photos as data URLs")
    impact_mode: bool | None = Field(None, description="Launch-style visuals (defaults to the brand setting)")
    watermark: bool = Field(False, description="Add the brand watermark")

    @field_validator("prompt")
    @classmethod
    def validate_prompt_not_empty(cls, v: str) -> str:
        """Ensure prompt is not empty."""
        if not v or not v.strip():
            raise ValueError("prompt must not be empty")
        return v


class FeedbackRequest(StudioModel):
    """Request model for POST /studio/art/feedback."""

    art: GeneratedArt
    rejected: bool = Field(..., description="True to mark the art as rejected")


class HistoryResponse(StudioModel):
    """Response from GET /studio/art/history."""

    history: list[GeneratedArt]


class ImportResponse(StudioModel):
    """Response from POST /studio/backup."""

    brand: BrandProfile
    history_count: int


class HealthResponse(StudioModel):
    """Response from GET /studio/health."""

    status: str
    online: bool
    generation: dict[str, Any] = Field(default_factory=dict)
