"""Testing utilities for the brand studio.

Provides:
- FakeSupabaseClient: In-memory store with PostgREST-style query chains
- FakeGenerativeService: Scripted generative service
- Response builders for image / text / empty Gemini responses
"""

from brandstudio.testing.fakes import (
    TINY_PNG,
    FakeGenerativeService,
    FakeSupabaseClient,
    RateLimitError,
    empty_response,
    image_response,
    no_rows_error,
    text_response,
)

__all__ = [
    "TINY_PNG",
    "FakeGenerativeService",
    "FakeSupabaseClient",
    "RateLimitError",
    "empty_response",
    "image_response",
    "no_rows_error",
    "text_response",
]
