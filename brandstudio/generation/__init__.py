"""
Generation Module
=================

Visual DNA extraction and art generation on Gemini:
- GenerationPipeline: scan_dna / generate_art
- GeminiService: google-genai adapter (GenerativeService protocol)
- RetryExecutor: rate-limit-only exponential backoff
- data_url / parser: inline image codec and response parsing
"""

from brandstudio.generation.data_url import ImagePayload
from brandstudio.generation.gemini_client import (
    GeminiService,
    GenerationRequest,
    GenerativeService,
)
from brandstudio.generation.parser import ParseResult, parse_dna, try_parse_dna
from brandstudio.generation.pipeline import GenerationPipeline, build_instruction
from brandstudio.generation.retry import RetryExecutor, is_rate_limited

__all__ = [
    "GenerationPipeline",
    "build_instruction",
    "GeminiService",
    "GenerationRequest",
    "GenerativeService",
    "RetryExecutor",
    "is_rate_limited",
    "ImagePayload",
    "ParseResult",
    "parse_dna",
    "try_parse_dna",
]
