"""
Generation Pipeline
===================

Two operations on top of a GenerativeService:

1. SCAN - Extract visual DNA (colors, typography, elements, narrative) from
   a reference image
2. GENERATE - Compose brand context, DNA, impact and watermark directives
   with reference images, produce one image, then a caption

Image and DNA calls go through RetryExecutor. The caption call does not: a
failed caption degrades to an empty string instead of failing the art.
"""

from __future__ import annotations

import logging
from typing import Sequence

from brandstudio.config import GeminiConfig
from brandstudio.errors import InvalidImage
from brandstudio.generation import data_url, parser
from brandstudio.generation.gemini_client import GenerationRequest, GenerativeService
from brandstudio.generation.prompts import (
    ART_HEADER,
    CAPTION_PROMPT_TEMPLATE,
    DNA_ANALYSIS_PROMPT,
    DNA_BLOCK_TEMPLATE,
    IMPACT_DIRECTIVE,
    LANGUAGE_RULE,
    watermark_directive,
)
from brandstudio.generation.retry import RetryExecutor
from brandstudio.models import ArtResult, AspectRatio, ScannedDNA

logger = logging.getLogger(__name__)


def build_instruction(
    prompt: str,
    aspect_ratio: str,
    brand_context: str = "",
    impact_mode: bool = False,
    dna: ScannedDNA | None = None,
    watermark: bool = False,
    watermark_text: str = "",
) -> str:
    """
    Compose the single text block sent with an image request.

    Exactly one watermark directive is always present.
    """
    sections = [ART_HEADER, f"BRANDING: {brand_context or ''}"]

    if dna is not None:
        sections.append(
            DNA_BLOCK_TEMPLATE.format(
                colors=", ".join(dna.colors),
                description=dna.description,
            )
        )

    if impact_mode:
        sections.append(IMPACT_DIRECTIVE)

    sections.append(f"REGRAS: {watermark_directive(watermark, watermark_text)} {LANGUAGE_RULE}")
    sections.append(f"OBJETIVO: {prompt}")
    sections.append(f"FORMATO: {aspect_ratio}")
    return "\n".join(sections)


class GenerationPipeline:
    """
    Composes requests, calls the generative service and parses results.

    Example:
        pipeline = GenerationPipeline(GeminiService())

        dna = await pipeline.scan_dna(reference_data_url)
        result = await pipeline.generate_art(
            prompt="bolo de chocolate",
            aspect_ratio="1:1",
            brand_context="Estilo: Feminino e acolhedor.",
            dna=dna,
        )
    """

    def __init__(
        self,
        service: GenerativeService,
        config: GeminiConfig | None = None,
        retry: RetryExecutor | None = None,
    ):
        self.service = service
        self.config = config or GeminiConfig()
        self.retry = retry or RetryExecutor(
            max_attempts=self.config.max_attempts,
            initial_delay_ms=self.config.initial_delay_ms,
        )

    async def scan_dna(self, image: str) -> ScannedDNA:
        """
        Extract visual DNA from a reference image.

        Args:
            image: Data URL of the reference image

        Returns:
            ScannedDNA with defaults for any missing field

        Raises:
            InvalidImage: If the image does not decode (no call is made)
            ParseFailure: If the service returns malformed JSON
            RateLimited: If retries are exhausted
        """
        payload = data_url.decode(image)
        if payload is None:
            raise InvalidImage("Imagem inválida para scan.")

        request = GenerationRequest(
            model=self.config.dna_model,
            parts=[payload, DNA_ANALYSIS_PROMPT],
            response_mime_type="application/json",
        )

        logger.info(f"[PIPELINE] Scanning visual DNA ({payload.mime_type})")
        response = await self.retry.execute(lambda: self.service.generate(request))

        dna = parser.parse_dna(parser.extract_text(response))
        logger.info(
            f"[PIPELINE] DNA extracted: {len(dna.colors)} color(s), {len(dna.elements)} element(s)"
        )
        return dna

    async def generate_art(
        self,
        prompt: str,
        aspect_ratio: AspectRatio | str = AspectRatio.SQUARE,
        brand_context: str = "",
        reference_images: str | Sequence[str] | None = None,
        impact_mode: bool = False,
        dna: ScannedDNA | None = None,
        watermark: bool = False,
        watermark_text: str | None = None,
    ) -> ArtResult:
        """
        Generate one image plus a caption.

        Args:
            prompt: What to create (required)
            aspect_ratio: Target format, e.g. "1:1"
            brand_context: Free-text brand description
            reference_images: Data URL or list of data URLs; invalid ones are skipped
            impact_mode: Request bolder, launch-style visuals
            dna: Visual DNA to steer colors and narrative
            watermark: Include (True) or explicitly exclude (False) a watermark
            watermark_text: Watermark wording (defaults to config)

        Returns:
            ArtResult with exactly one image URL and a possibly empty caption

        Raises:
            ValueError: If prompt is empty
            GenerationFailed: If no image was produced
            RateLimited: If retries are exhausted on the image step
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt cannot be empty")

        ratio = AspectRatio(aspect_ratio).value

        instruction = build_instruction(
            prompt=prompt,
            aspect_ratio=ratio,
            brand_context=brand_context,
            impact_mode=impact_mode,
            dna=dna,
            watermark=watermark,
            watermark_text=watermark_text or self.config.watermark_text,
        )

        image_parts = self._decode_references(reference_images)
        request = GenerationRequest(
            model=self.config.image_model,
            parts=[*image_parts, instruction],
            aspect_ratio=ratio,
        )

        logger.info(
            f"[PIPELINE] Generating art: ratio={ratio}, references={len(image_parts)}, "
            f"impact={impact_mode}, dna={dna is not None}, watermark={watermark}"
        )
        response = await self.retry.execute(lambda: self.service.generate(request))
        image_url = parser.extract_image(response)

        description = await self._caption(prompt)
        return ArtResult(image_urls=[image_url], description=description)

    def _decode_references(self, references: str | Sequence[str] | None) -> list:
        if not references:
            return []
        if isinstance(references, str):
            references = [references]

        payloads = []
        for ref in references:
            payload = data_url.decode(ref)
            if payload is None:
                logger.debug("[PIPELINE] Skipping reference that is not a data URL")
                continue
            payloads.append(payload)
        return payloads

    async def _caption(self, prompt: str) -> str:
        request = GenerationRequest(
            model=self.config.caption_model,
            parts=[CAPTION_PROMPT_TEMPLATE.format(prompt=prompt)],
        )
        try:
            response = await self.service.generate(request)
        except Exception as e:
            logger.warning(f"[PIPELINE] Caption generation failed, continuing without caption: {e}")
            return ""
        return parser.extract_text(response)
