"""
Brand Studio
============

Brand-aware art generation for small confectionery businesses:
- generation: visual DNA scan and art generation on Gemini
- persistence: Supabase brand profile / history and JSON backups
- studio: BrandStudio orchestrator holding brand and history state
- api: FastAPI router
"""

from brandstudio.errors import StudioError
from brandstudio.models import (
    DEFAULT_BRAND,
    MAX_HISTORY_ITEMS,
    ArtResult,
    AspectRatio,
    BrandProfile,
    GeneratedArt,
    ScannedDNA,
    VisualStyle,
)
from brandstudio.studio import BrandStudio, StudioState

__version__ = "0.1.0"

__all__ = [
    "BrandStudio",
    "StudioState",
    "StudioError",
    "DEFAULT_BRAND",
    "MAX_HISTORY_ITEMS",
    "ArtResult",
    "AspectRatio",
    "BrandProfile",
    "GeneratedArt",
    "ScannedDNA",
    "VisualStyle",
]
