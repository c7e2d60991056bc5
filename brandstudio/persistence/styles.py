"""
Visual style normalization.

Stored styles come in two shapes: legacy records with a single ``image`` and
current records with an ``images`` list. ``normalize_style`` is applied once
at the load boundary; code past that point only reads ``images``.
"""

from __future__ import annotations

from brandstudio.errors import DuplicateStyleName, StyleNotFound
from brandstudio.models import BrandProfile, VisualStyle


def normalize_style(style: VisualStyle) -> VisualStyle:
    """Copy the legacy ``image`` into ``images`` when ``images`` is empty. Idempotent."""
    if not style.images and style.image:
        return style.model_copy(update={"images": [style.image]})
    return style


def primary_image(style: VisualStyle) -> str:
    """Representative thumbnail: first image, else legacy image, else empty."""
    if style.images:
        return style.images[0]
    return style.image or ""


def normalize_profile(profile: BrandProfile) -> BrandProfile:
    """Normalize every saved style of a profile."""
    styles = [normalize_style(s) for s in profile.saved_styles]
    return profile.model_copy(update={"saved_styles": styles})


def find_style(profile: BrandProfile, name: str) -> VisualStyle | None:
    """Case-insensitive lookup by style name."""
    wanted = name.strip().lower()
    for style in profile.saved_styles:
        if style.name.strip().lower() == wanted:
            return style
    return None


def get_style(profile: BrandProfile, style_id: str) -> VisualStyle:
    """Lookup by id; raises StyleNotFound."""
    for style in profile.saved_styles:
        if style.id == style_id:
            return style
    raise StyleNotFound(f"Estilo não encontrado: {style_id}")


def ensure_unique_name(profile: BrandProfile, name: str) -> None:
    """Raise DuplicateStyleName if a style with this name already exists."""
    if find_style(profile, name) is not None:
        raise DuplicateStyleName(
            "Um estilo com este nome já existe. Por favor, escolha um nome diferente."
        )
