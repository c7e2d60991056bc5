"""
Response parsing for the generative service.

Two modes:
- DNA: JSON text (possibly wrapped in markdown fences) -> ScannedDNA
- Art: content parts -> first inline image as a data URL, plus caption text
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from brandstudio.errors import GenerationFailed, ParseFailure
from brandstudio.generation.data_url import DEFAULT_IMAGE_MIME, ImagePayload
from brandstudio.models import ScannedDNA

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ParseResult(Generic[T]):
    """Tagged parse outcome: ``value`` when successful, ``error`` otherwise."""

    success: bool
    value: T | None = None
    error: ParseFailure | None = None

    @classmethod
    def ok(cls, value: T) -> "ParseResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, message: str) -> "ParseResult[T]":
        return cls(success=False, error=ParseFailure(message))

    def unwrap(self) -> T:
        if not self.success:
            raise self.error
        return self.value


def strip_code_fences(text: str | None) -> str:
    """Remove markdown fence markers (```json / ```) and surrounding whitespace."""
    if not text:
        return ""
    return text.replace("```json", "").replace("```", "").strip()


def try_parse_dna(text: str | None) -> ParseResult[ScannedDNA]:
    """
    Parse visual DNA JSON into a ScannedDNA.

    Missing or mistyped fields fall back to defaults. Invalid JSON is a failure.
    """
    cleaned = strip_code_fences(text) or "{}"

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"[PARSER] DNA response is not valid JSON: {e}")
        logger.debug(f"[PARSER] Raw response was: {cleaned[:500]}")
        return ParseResult.fail(f"Resposta de DNA inválida: {e.msg}")

    if not isinstance(data, dict):
        return ParseResult.fail(
            f"Resposta de DNA inválida: esperado objeto JSON, recebido {type(data).__name__}"
        )

    try:
        return ParseResult.ok(ScannedDNA.model_validate(data))
    except ValidationError as e:
        return ParseResult.fail(f"Resposta de DNA inválida: {e.error_count()} campo(s) incorretos")


def parse_dna(text: str | None) -> ScannedDNA:
    """Parse visual DNA JSON, raising ParseFailure on malformed input."""
    return try_parse_dna(text).unwrap()


def _response_parts(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def find_inline_image(response: Any) -> ImagePayload | None:
    """Return the first inline image payload in the response, if any."""
    for part in _response_parts(response):
        inline = getattr(part, "inline_data", None)
        if not inline or not getattr(inline, "data", None):
            continue
        data = inline.data
        if isinstance(data, (bytes, bytearray)):
            data = base64.b64encode(data).decode("utf-8")
        return ImagePayload(
            mime_type=getattr(inline, "mime_type", None) or DEFAULT_IMAGE_MIME,
            data=data,
        )
    return None


def extract_image(response: Any) -> str:
    """
    Extract the generated image as a data URL.

    Raises:
        GenerationFailed: If the response carries no inline image
    """
    payload = find_inline_image(response)
    if payload is None:
        raise GenerationFailed("Geração falhou: nenhuma imagem produzida")
    return payload.to_data_url()


def extract_text(response: Any) -> str:
    """Response text verbatim, or empty string when absent."""
    if response is None:
        return ""
    try:
        text = getattr(response, "text", None)
    except ValueError:
        # Mixed-modality responses can refuse text access
        return ""
    return text or ""
