"""
Backup export / import.

The backup document is UTF-8 JSON ``{"brand": ..., "history": [...], "exportDate": <ms>}``
using camelCase field names. Import validates the whole document before
writing anything, then writes the brand followed by each history entry in
order. There is no transaction: a store failure on entry N leaves entries
0..N-1 committed.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from brandstudio.errors import InvalidBackup
from brandstudio.models import BackupEnvelope, BrandProfile, GeneratedArt
from brandstudio.persistence.gateway import PersistenceGateway
from brandstudio.persistence.styles import normalize_profile

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def backup_filename(brand_name: str | None) -> str:
    """``backup-<slug>.json`` for the given brand name."""
    slug = re.sub(r"[^a-z0-9]+", "-", (brand_name or "").lower()).strip("-")
    return f"backup-{slug or 'marca'}.json"


@dataclass
class ImportedState:
    """Brand and history as read from a backup, for the caller to adopt."""

    brand: BrandProfile
    history: list[GeneratedArt] = field(default_factory=list)


def parse_backup(text: str) -> ImportedState:
    """
    Validate a backup document without touching the store.

    Raises:
        InvalidBackup: If the text is not JSON, not an object, lacks ``brand``,
            or contains records that do not validate
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise InvalidBackup(f"Backup inválido: JSON malformado ({e})") from e

    if not isinstance(data, dict) or data.get("brand") is None:
        raise InvalidBackup("Backup inválido: campo 'brand' ausente")

    raw_history = data.get("history")
    if not isinstance(raw_history, list):
        raw_history = []

    try:
        brand = BrandProfile.model_validate(data["brand"])
        history = [GeneratedArt.model_validate(item) for item in raw_history]
    except ValidationError as e:
        raise InvalidBackup(f"Backup inválido: {e.error_count()} campo(s) incorretos") from e

    return ImportedState(brand=normalize_profile(brand), history=history)


class BackupCodec:
    """
    Serializes the full brand + history state to a self-contained document.

    Usage:
        codec = BackupCodec(gateway)
        text = await codec.export_backup()
        state = await codec.import_backup(text)
    """

    def __init__(self, gateway: PersistenceGateway, clock: Callable[[], int] | None = None):
        self.gateway = gateway
        self._clock = clock or now_ms

    async def build_envelope(self) -> BackupEnvelope:
        """Snapshot of the store contents (brand may be None)."""
        brand = await self.gateway.get_brand()
        history = await self.gateway.get_history()
        return BackupEnvelope(brand=brand, history=history, export_date=self._clock())

    async def export_backup(self) -> str:
        """Serialize brand, history and export timestamp to JSON text."""
        _, text = await self.export_named()
        return text

    async def export_named(self) -> tuple[str, str]:
        """Export the store and name the file after the exported brand."""
        envelope = await self.build_envelope()
        logger.info(
            f"[BACKUP] Exported brand={envelope.brand is not None}, "
            f"history={len(envelope.history)}"
        )
        filename = backup_filename(envelope.brand.name if envelope.brand else None)
        return filename, json.dumps(envelope.to_document(), ensure_ascii=False)

    async def import_backup(self, text: str) -> ImportedState:
        """
        Restore a backup into the store.

        Returns:
            ImportedState for the caller to adopt as current state

        Raises:
            InvalidBackup: If the document is invalid (store untouched)
            StoreUnavailable: If a write fails (earlier writes stay committed)
        """
        state = parse_backup(text)

        await self.gateway.save_brand(state.brand)
        for art in state.history:
            await self.gateway.save_art(art)

        logger.info(f"[BACKUP] Imported brand '{state.brand.name}' and {len(state.history)} art entries")
        return state

    async def write_backup(self, directory: str | Path) -> Path:
        """Export to ``<directory>/backup-<brand>.json`` and return the path."""
        filename, text = await self.export_named()
        path = Path(directory) / filename
        await asyncio.to_thread(path.write_text, text, encoding="utf-8")
        logger.info(f"[BACKUP] Written to {path}")
        return path

    async def read_backup(self, path: str | Path) -> ImportedState:
        """Import a backup file."""
        text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        return await self.import_backup(text)
