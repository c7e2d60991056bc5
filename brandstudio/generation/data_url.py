"""
Data URL codec.

Images travel through the studio as self-describing inline references
(``data:<mime>;base64,<payload>``). Decoding never raises: anything that is
not a well-formed data URL decodes to ``None`` and callers skip it.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
from dataclasses import dataclass
from pathlib import Path

DATA_URL_PREFIX = "data:"
DEFAULT_IMAGE_MIME = "image/png"


@dataclass(frozen=True)
class ImagePayload:
    """Decoded inline image: mime type plus base64 payload text."""

    mime_type: str
    data: str

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    def to_data_url(self) -> str:
        return f"{DATA_URL_PREFIX}{self.mime_type};base64,{self.data}"


def encode(data: bytes, mime_type: str = DEFAULT_IMAGE_MIME) -> str:
    """Encode raw bytes as a data URL."""
    payload = base64.b64encode(data).decode("utf-8")
    return f"{DATA_URL_PREFIX}{mime_type};base64,{payload}"


def decode(ref: str | None) -> ImagePayload | None:
    """
    Split a data URL into mime type and payload.

    Args:
        ref: Candidate data URL (may be None)

    Returns:
        ImagePayload, or None if ``ref`` is absent or not a valid data URL.
        Line breaks and spaces inside the base64 payload are dropped.
    """
    if not ref or not isinstance(ref, str) or not ref.startswith(DATA_URL_PREFIX):
        return None

    header, sep, data = ref.partition(",")
    data = "".join(data.split())
    if not sep or not data:
        return None

    mime_type = header[len(DATA_URL_PREFIX):].split(";")[0].strip()
    if not mime_type:
        return None

    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return None

    return ImagePayload(mime_type=mime_type, data=data)


def is_image(ref: str | None) -> bool:
    return decode(ref) is not None


def read_file(path: str | Path) -> str:
    """Read an image file from disk and return it as a data URL."""
    path = Path(path)
    mime_type, _ = mimetypes.guess_type(path.name)
    return encode(path.read_bytes(), mime_type or DEFAULT_IMAGE_MIME)
