"""
Gemini Service Client
=====================

Adapter between the generation pipeline and Google Gemini (``google-genai``).

The pipeline speaks in ``GenerationRequest`` objects (ordered text / inline
image parts plus output configuration) and receives the SDK's
``GenerateContentResponse``. Anything that implements ``GenerativeService``
can stand in for Gemini, which is how the test suite runs offline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from brandstudio.config import GeminiConfig, looks_like_api_key, mask_key
from brandstudio.errors import ConfigurationError, GenerationServiceError, RateLimited
from brandstudio.generation.data_url import ImagePayload
from brandstudio.generation.retry import is_rate_limited

logger = logging.getLogger(__name__)

RequestPart = Union[str, ImagePayload]


@dataclass
class GenerationRequest:
    """
    One call to the generative service.

    Attributes:
        model: Model identifier
        parts: Ordered content parts (text or inline images)
        aspect_ratio: Target aspect ratio for image requests
        response_mime_type: Desired output format for structured requests
    """

    model: str
    parts: list[RequestPart] = field(default_factory=list)
    aspect_ratio: str | None = None
    response_mime_type: str | None = None

    @property
    def text_parts(self) -> list[str]:
        return [p for p in self.parts if isinstance(p, str)]

    @property
    def image_parts(self) -> list[ImagePayload]:
        return [p for p in self.parts if isinstance(p, ImagePayload)]


class GenerativeService(Protocol):
    """Anything that can turn a GenerationRequest into a content response."""

    async def generate(self, request: GenerationRequest) -> Any:
        ...


class GeminiService:
    """
    Gemini implementation of GenerativeService.

    The SDK client is created lazily on first use so that constructing the
    service never requires credentials.

    Example:
        service = GeminiService(GeminiConfig(api_key="AIza..."))
        response = await service.generate(
            GenerationRequest(model="gemini-2.5-flash-image", parts=["Um bolo"], aspect_ratio="1:1")
        )
    """

    def __init__(self, config: GeminiConfig | None = None, client: Any = None):
        """
        Initialize Gemini service.

        Args:
            config: Optional GeminiConfig (uses env vars if not provided)
            client: Optional pre-built ``genai.Client``
        """
        self.config = config or GeminiConfig()
        self._client = client
        self._initialized = client is not None

    def _ensure_client(self):
        """Lazy initialization of Gemini client."""
        if self._initialized:
            return

        if not self.config.api_key:
            raise ConfigurationError("GOOGLE_API_KEY environment variable not set")

        self._client = genai.Client(api_key=self.config.api_key)
        self._initialized = True
        logger.info(f"[GEMINI] Client initialized (key {mask_key(self.config.api_key)})")

    @staticmethod
    def build_contents(request: GenerationRequest) -> list[types.Part]:
        """Convert request parts to SDK parts, preserving order."""
        contents = []
        for part in request.parts:
            if isinstance(part, ImagePayload):
                contents.append(
                    types.Part.from_bytes(data=part.to_bytes(), mime_type=part.mime_type)
                )
            else:
                contents.append(types.Part.from_text(text=part))
        return contents

    @staticmethod
    def build_config(request: GenerationRequest) -> types.GenerateContentConfig | None:
        """Output configuration: image aspect ratio or structured response format."""
        kwargs: dict[str, Any] = {}
        if request.aspect_ratio:
            kwargs["response_modalities"] = ["IMAGE", "TEXT"]
            kwargs["image_config"] = types.ImageConfig(aspect_ratio=request.aspect_ratio)
        if request.response_mime_type:
            kwargs["response_mime_type"] = request.response_mime_type
        return types.GenerateContentConfig(**kwargs) if kwargs else None

    async def generate(self, request: GenerationRequest) -> types.GenerateContentResponse:
        """
        Send one request to Gemini.

        Raises:
            ConfigurationError: If no API key is configured
            RateLimited: On 429 / RESOURCE_EXHAUSTED
            GenerationServiceError: On any other API error or a transport failure
        """
        self._ensure_client()

        logger.info(
            f"[GEMINI] Calling {request.model} "
            f"({len(request.image_parts)} image part(s), {len(request.text_parts)} text part(s))"
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=request.model,
                contents=self.build_contents(request),
                config=self.build_config(request),
            )
        except genai_errors.APIError as e:
            if is_rate_limited(e):
                logger.warning(f"[GEMINI] Rate limited by {request.model}: {e.status}")
                raise RateLimited(f"Limite de requisições atingido ({e.code})") from e
            logger.error(f"[GEMINI] {request.model} call failed: {e}")
            raise GenerationServiceError(f"Falha no serviço de geração: {e.message or e}", code=e.code) from e
        except httpx.HTTPError as e:
            logger.error(f"[GEMINI] {request.model} transport failure: {e!r}")
            raise GenerationServiceError("Falha ao conectar ao serviço de geração") from e

        return response

    async def health_check(self) -> dict[str, Any]:
        """
        Check if the Gemini client is properly configured.

        Returns:
            Health status dictionary
        """
        try:
            self._ensure_client()
            return {
                "status": "healthy",
                "image_model": self.config.image_model,
                "dna_model": self.config.dna_model,
                "caption_model": self.config.caption_model,
                "api_key_configured": bool(self.config.api_key),
                "api_key_format_ok": looks_like_api_key(self.config.api_key),
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "error": str(e),
                "api_key_configured": bool(self.config.api_key),
            }
