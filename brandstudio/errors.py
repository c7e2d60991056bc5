"""Typed failures surfaced by the generation pipeline and the persistence layer."""


class StudioError(Exception):
    """Base exception for brand studio errors.

    Attributes:
        message: Human-readable description, safe to show to the user
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidImage(StudioError):
    """Image reference could not be decoded (raised before any network call)."""

    pass


class RateLimited(StudioError):
    """Generative service signalled a rate-limit or quota condition."""

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message)
        self.attempts = attempts


class GenerationFailed(StudioError):
    """Service responded but produced no usable image."""

    pass


class GenerationServiceError(StudioError):
    """Generative service call failed for a reason other than rate limiting."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class ParseFailure(StudioError):
    """Structured response was not valid or expected JSON."""

    pass


class InvalidBackup(StudioError):
    """Backup document is malformed or missing required fields."""

    pass


class StoreUnavailable(StudioError):
    """Structured data store call failed."""

    def __init__(self, message: str, operation: str = ""):
        super().__init__(message)
        self.operation = operation


class DuplicateStyleName(StudioError):
    """A visual style with the same name (case-insensitive) already exists."""

    pass


class StyleNotFound(StudioError):
    """Requested visual style is not part of the brand profile."""

    pass


class ConfigurationError(StudioError):
    """Required credentials or settings are missing."""

    pass
