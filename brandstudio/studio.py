"""
Brand Studio - Main orchestrator.

Holds the in-memory brand and history state and coordinates the generation
pipeline with the persistence gateway. Collaborators (the HTTP router, the
CLI) talk to this class instead of wiring the pieces themselves.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass, field
from typing import Literal, Sequence

from brandstudio.errors import ConfigurationError, InvalidImage, StoreUnavailable
from brandstudio.generation import data_url
from brandstudio.generation.pipeline import GenerationPipeline
from brandstudio.models import (
    DEFAULT_BRAND,
    MAX_HISTORY_ITEMS,
    AspectRatio,
    BrandProfile,
    GeneratedArt,
    VisualStyle,
)
from brandstudio.persistence.backup import BackupCodec, now_ms
from brandstudio.persistence.gateway import PersistenceGateway
from brandstudio.persistence.styles import ensure_unique_name, get_style, normalize_profile

logger = logging.getLogger(__name__)

ReferenceKind = Literal["expert", "product"]

_BASE36 = string.digits + string.ascii_lowercase


def random_id(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def new_art_id() -> str:
    return f"art-{random_id(5)}"


def cap_history(history: list[GeneratedArt], limit: int = MAX_HISTORY_ITEMS) -> list[GeneratedArt]:
    """Newest first, at most ``limit`` entries."""
    ordered = sorted(history, key=lambda art: art.timestamp, reverse=True)
    return ordered[:limit]


@dataclass
class StudioState:
    """Snapshot returned by ``BrandStudio.load``."""

    brand: BrandProfile
    history: list[GeneratedArt] = field(default_factory=list)
    online: bool = True


class BrandStudio:
    """
    Main service for brand-aware art generation.

    Usage:
        studio = BrandStudio(GenerationPipeline(GeminiService()), PersistenceGateway())
        await studio.load()

        style = await studio.create_style("Rústico", [img1, img2])
        art = await studio.generate("bolo de cenoura", "1:1", style_id=style.id)
        await studio.record_feedback(art, rejected=False)
    """

    def __init__(
        self,
        pipeline: GenerationPipeline,
        gateway: PersistenceGateway,
        backup: BackupCodec | None = None,
    ):
        self.pipeline = pipeline
        self.gateway = gateway
        self.backup = backup or BackupCodec(gateway)
        self.brand: BrandProfile = DEFAULT_BRAND.model_copy(deep=True)
        self.history: list[GeneratedArt] = []
        self.online = False

    # =========================================================================
    # STATE
    # =========================================================================

    async def load(self) -> StudioState:
        """
        Load brand and history from the store.

        When nothing is saved the default brand is written to the store, so
        exports always carry a brand. When the store is unreachable or holds
        rows that do not validate, the studio keeps working offline with the
        default brand.
        """
        try:
            await self.gateway.init()
            saved_brand = await self.gateway.get_brand()
            saved_history = await self.gateway.get_history()
            if saved_brand is None:
                await self.gateway.save_brand(self.brand)
        except (StoreUnavailable, ConfigurationError) as e:
            logger.warning(f"[STUDIO] Store unavailable, starting offline: {e.message}")
            self.online = False
            return StudioState(brand=self.brand, history=self.history, online=False)

        if saved_brand is not None:
            self.brand = saved_brand
        self.history = cap_history(saved_history, self.gateway.max_history)
        self.online = True

        logger.info(f"[STUDIO] Loaded brand '{self.brand.name}' with {len(self.history)} art entries")
        return StudioState(brand=self.brand, history=self.history, online=True)

    async def update_brand(self, brand: BrandProfile) -> BrandProfile:
        """Adopt and persist a new brand profile."""
        self.brand = normalize_profile(brand)
        await self.gateway.save_brand(self.brand)
        return self.brand

    async def add_reference(self, kind: ReferenceKind, image: str) -> BrandProfile:
        """Append an expert or product reference image."""
        if not data_url.is_image(image):
            raise InvalidImage("Imagem de referência inválida.")
        key = self._reference_key(kind)
        references = [*getattr(self.brand, key), image]
        return await self.update_brand(self.brand.model_copy(update={key: references}))

    async def remove_reference(self, kind: ReferenceKind, index: int) -> BrandProfile:
        key = self._reference_key(kind)
        references = list(getattr(self.brand, key))
        if not 0 <= index < len(references):
            raise IndexError(f"No {kind} reference at index {index}")
        del references[index]
        return await self.update_brand(self.brand.model_copy(update={key: references}))

    @staticmethod
    def _reference_key(kind: ReferenceKind) -> str:
        if kind == "expert":
            return "expert_references"
        if kind == "product":
            return "product_references"
        raise ValueError(f"Unknown reference kind: {kind}")

    # =========================================================================
    # STYLES
    # =========================================================================

    async def create_style(self, name: str, images: Sequence[str]) -> VisualStyle:
        """
        Create a saved style, scanning its DNA from the first image.

        Raises:
            ValueError: If the name is blank or no images are given
            DuplicateStyleName: If the name is taken (case-insensitive)
            InvalidImage: If the first image does not decode
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Por favor, insira um nome para o estilo.")
        if not images:
            raise ValueError("Pelo menos uma imagem é necessária para criar um estilo.")
        ensure_unique_name(self.brand, name)

        dna = await self.pipeline.scan_dna(images[0])

        style = VisualStyle(id=random_id(9), name=name, images=list(images), dna=dna)
        await self.update_brand(
            self.brand.model_copy(update={"saved_styles": [*self.brand.saved_styles, style]})
        )
        logger.info(f"[STUDIO] Created style '{name}' ({len(images)} image(s))")
        return style

    def build_brand_context(self, style: VisualStyle | None = None) -> str:
        context = f"Estilo: {self.brand.visual_style}."
        if style is not None:
            description = style.dna.description if style.dna else ""
            context += f" DNA: {style.name} - {description}"
        return context

    # =========================================================================
    # GENERATION
    # =========================================================================

    async def generate(
        self,
        prompt: str,
        aspect_ratio: AspectRatio | str = AspectRatio.SQUARE,
        style_id: str | None = None,
        expert_reference: str | None = None,
        product_references: Sequence[str] = (),
        impact_mode: bool | None = None,
        watermark: bool = False,
    ) -> GeneratedArt:
        """
        Generate a transient GeneratedArt. Nothing is stored until feedback.

        Raises:
            StyleNotFound: If ``style_id`` is not a saved style
        """
        style = get_style(self.brand, style_id) if style_id else None
        references = [*([expert_reference] if expert_reference else []), *product_references]

        result = await self.pipeline.generate_art(
            prompt=prompt,
            aspect_ratio=aspect_ratio,
            brand_context=self.build_brand_context(style),
            reference_images=references or None,
            impact_mode=self.brand.use_launch_impact if impact_mode is None else impact_mode,
            dna=style.dna if style else None,
            watermark=watermark,
            watermark_text=self.brand.name or None,
        )

        return GeneratedArt(
            id=new_art_id(),
            urls=result.image_urls,
            prompt=prompt,
            description=result.description,
            timestamp=now_ms(),
            style_name=style.name if style else None,
        )

    async def record_feedback(self, art: GeneratedArt, rejected: bool) -> GeneratedArt:
        """Persist a generated art as accepted or rejected and add it to history."""
        art = art.model_copy(update={"is_rejected": rejected})
        await self.gateway.save_art(art)

        others = [item for item in self.history if item.id != art.id]
        self.history = cap_history([art, *others], self.gateway.max_history)
        return art

    # =========================================================================
    # HISTORY
    # =========================================================================

    async def delete_art(self, art_id: str) -> None:
        await self.gateway.delete_art(art_id)
        self.history = [art for art in self.history if art.id != art_id]

    async def clear_history(self) -> None:
        await self.gateway.clear_history()
        self.history = []

    async def clear_all(self) -> None:
        """Wipe store history and brand, then start over from the default brand."""
        await self.gateway.clear_all()
        self.history = []
        self.brand = DEFAULT_BRAND.model_copy(deep=True)
        await self.gateway.save_brand(self.brand)

    # =========================================================================
    # BACKUP
    # =========================================================================

    async def export_backup(self) -> str:
        return await self.backup.export_backup()

    async def export_named(self) -> tuple[str, str]:
        """Backup filename and document, both taken from the same store snapshot."""
        return await self.backup.export_named()

    async def import_backup(self, text: str) -> StudioState:
        """Restore a backup and adopt it as current state."""
        imported = await self.backup.import_backup(text)
        self.brand = imported.brand
        self.history = cap_history(imported.history, self.gateway.max_history)
        return StudioState(brand=self.brand, history=self.history, online=self.online)
