"""
Pydantic models for brand state and generation results.

Attributes are snake_case in Python. The interchange format (backup documents
and API bodies) uses camelCase aliases, so every model validates from either
spelling and serializes with ``by_alias=True`` when leaving the process.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_HISTORY_ITEMS = 100
MAX_DNA_COLORS = 5
DEFAULT_TYPOGRAPHY = "Padrão"


class AspectRatio(str, Enum):
    """Output formats supported by the image model."""

    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    STORIES = "9:16"
    YOUTUBE = "16:9"


class StudioModel(BaseModel):
    """Shared config: camelCase aliases, population by field name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        """Dump using the camelCase interchange names."""
        return self.model_dump(mode="json", by_alias=True)


class ScannedDNA(StudioModel):
    """Visual DNA extracted from a reference image. Never hand-edited."""

    colors: list[str] = Field(default_factory=list, description="Up to 5 hex colors")
    typography: str = Field(default=DEFAULT_TYPOGRAPHY)
    elements: list[str] = Field(default_factory=list, description="Graphic element tags")
    description: str = Field(default="", description="Narrative summary")

    @field_validator("colors", "elements", mode="before")
    @classmethod
    def coerce_string_list(cls, v):
        """Anything that is not a list becomes empty; non-string items are dropped."""
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, str)]

    @field_validator("colors")
    @classmethod
    def limit_colors(cls, v: list[str]) -> list[str]:
        return v[:MAX_DNA_COLORS]

    @field_validator("typography", mode="before")
    @classmethod
    def default_typography(cls, v):
        if not isinstance(v, str) or not v.strip():
            return DEFAULT_TYPOGRAPHY
        return v

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v):
        return v if isinstance(v, str) else ""


class VisualStyle(StudioModel):
    """
    Named, reusable style definition.

    Two stored shapes exist: legacy records carry a single ``image`` and
    current records carry ``images``. See ``persistence.styles.normalize_style``.
    """

    id: str
    name: str
    images: list[str] = Field(default_factory=list)
    image: str | None = None
    dna: ScannedDNA | None = None

    @field_validator("images", mode="before")
    @classmethod
    def null_images_to_empty(cls, v):
        return [] if v is None else v


class BrandProfile(StudioModel):
    """Singleton record describing the business identity."""

    name: str = ""
    logo: str | None = None
    summary: str = ""
    colors: list[str] = Field(default_factory=list)
    typography: str = ""
    visual_style: str = ""
    expert_references: list[str] = Field(default_factory=list)
    product_references: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)
    gallery: list[str] = Field(default_factory=list)
    scanned_dna: ScannedDNA | None = Field(default=None, alias="scannedDNA")
    use_launch_impact: bool = False
    saved_styles: list[VisualStyle] = Field(default_factory=list)

    @field_validator(
        "colors",
        "expert_references",
        "product_references",
        "references",
        "gallery",
        "saved_styles",
        mode="before",
    )
    @classmethod
    def null_list_to_empty(cls, v):
        return [] if v is None else v

    @field_validator("name", "summary", "typography", "visual_style", mode="before")
    @classmethod
    def null_text_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("use_launch_impact", mode="before")
    @classmethod
    def null_flag_to_false(cls, v):
        return False if v is None else v


class GeneratedArt(StudioModel):
    """One generation outcome. Only ``is_rejected`` changes after creation."""

    id: str
    urls: list[str] = Field(default_factory=list)
    prompt: str = ""
    description: str | None = None
    timestamp: int = Field(..., description="Creation time, epoch milliseconds")
    is_rejected: bool = False
    style_name: str | None = None

    @field_validator("urls", mode="before")
    @classmethod
    def null_urls_to_empty(cls, v):
        return [] if v is None else v

    @field_validator("is_rejected", mode="before")
    @classmethod
    def null_rejected_to_false(cls, v):
        return False if v is None else v


class ArtResult(StudioModel):
    """Raw pipeline output before it becomes a GeneratedArt."""

    image_urls: list[str]
    description: str = ""


class BackupEnvelope(StudioModel):
    """Full-state export/import document. ``brand`` is None when nothing was saved."""

    brand: BrandProfile | None = None
    history: list[GeneratedArt] = Field(default_factory=list)
    export_date: int = Field(..., description="Export time, epoch milliseconds")


DEFAULT_BRAND = BrandProfile(
    name="Jana's Cakes",
    summary="Identidade visual feminina e sofisticada.",
    colors=["#F9EDED", "#F9D2D2", "#EE989D", "#F2AB36", "#9D5316"],
    typography="Script elegante.",
    visual_style="Feminino e acolhedor.",
)
