"""
Configuration dataclasses for the brand studio.

Provides configuration for:
- GeminiConfig: Generative service credentials, models and retry policy
- StoreConfig: Supabase store credentials and history cap
"""

import os
from dataclasses import dataclass

from brandstudio.models import MAX_HISTORY_ITEMS


@dataclass
class GeminiConfig:
    """
    Configuration for the Gemini generative service.

    Reads the API key from environment variables if not provided explicitly.

    Environment Variables:
        GOOGLE_API_KEY: API key for Gemini (GEMINI_API_KEY accepted as fallback)
        STUDIO_MAX_ATTEMPTS: Attempts per guarded call (default: 2)
        STUDIO_RETRY_DELAY_MS: Initial backoff delay in milliseconds (default: 1000)

    Example:
        # From environment
        config = GeminiConfig()

        # Explicit values (override env)
        config = GeminiConfig(api_key="AIza...", image_model="gemini-2.5-flash-image")
    """

    api_key: str | None = None

    # Model identifiers
    dna_model: str = "gemini-3-pro-preview"  # Visual DNA analysis (structured JSON)
    image_model: str = "gemini-2.5-flash-image"  # Art generation
    caption_model: str = "gemini-3-flash-preview"  # Post captions

    max_attempts: int | None = None
    initial_delay_ms: int | None = None

    watermark_text: str = "Jana's Cakes"

    def __post_init__(self):
        """Load from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
        if self.max_attempts is None:
            self.max_attempts = int(os.getenv("STUDIO_MAX_ATTEMPTS", "2"))
        if self.initial_delay_ms is None:
            self.initial_delay_ms = int(os.getenv("STUDIO_RETRY_DELAY_MS", "1000"))


@dataclass
class StoreConfig:
    """
    Configuration for the Supabase store.

    Environment Variables:
        SUPABASE_URL: Supabase project URL
        SUPABASE_SERVICE_KEY: Service key (SUPABASE_ANON_KEY accepted as fallback)
    """

    supabase_url: str = ""
    supabase_key: str = ""
    max_history: int = MAX_HISTORY_ITEMS

    def __post_init__(self):
        if not self.supabase_url:
            self.supabase_url = os.getenv("SUPABASE_URL", "")
        if not self.supabase_key:
            self.supabase_key = os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_ANON_KEY", "")

    @property
    def is_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def looks_like_api_key(key: str | None) -> bool:
    """Basic shape check for Google API keys ("AI" prefix, at least 20 chars)."""
    if not key:
        return False
    key = key.strip()
    return key.startswith("AI") and len(key) >= 20


def mask_key(key: str) -> str:
    """Mask all but the first and last four characters of a credential."""
    if len(key) <= 8:
        return key
    return key[:4] + "•" * (len(key) - 8) + key[-4:]
