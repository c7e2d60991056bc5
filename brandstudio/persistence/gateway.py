"""
Supabase persistence for the brand profile and generation history.

Tables:
- brand_profiles: at most one row holding the BrandProfile (snake_case columns)
- art_history: one row per GeneratedArt, keyed by id

Write paths raise StoreUnavailable on any store error. Read paths return
None / [] only for the legitimate "nothing saved yet" case.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client, create_client

from brandstudio.config import StoreConfig
from brandstudio.errors import ConfigurationError, StoreUnavailable
from brandstudio.models import BrandProfile, GeneratedArt
from brandstudio.persistence.styles import normalize_profile

logger = logging.getLogger(__name__)

BRAND_TABLE = "brand_profiles"
HISTORY_TABLE = "art_history"

# PostgREST: "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"

# Filters that match every row, for unconditional deletes
ALL_ART_IDS = ("id", "")
ALL_BRAND_IDS = ("id", "00000000-0000-0000-0000-000000000000")


def brand_to_row(profile: BrandProfile) -> dict[str, Any]:
    """Map a BrandProfile to brand_profiles columns."""
    return {
        "name": profile.name,
        "logo": profile.logo,
        "summary": profile.summary,
        "colors": profile.colors,
        "typography": profile.typography,
        "visual_style": profile.visual_style,
        "expert_references": profile.expert_references,
        "product_references": profile.product_references,
        "references": profile.references,
        "gallery": profile.gallery,
        "saved_styles": [style.to_document() for style in profile.saved_styles],
        "scanned_dna": profile.scanned_dna.to_document() if profile.scanned_dna else None,
        "use_launch_impact": profile.use_launch_impact,
    }


def row_to_brand(row: dict[str, Any]) -> BrandProfile:
    """Map a brand_profiles row back to a normalized BrandProfile."""
    profile = BrandProfile.model_validate({
        "name": row.get("name"),
        "logo": row.get("logo"),
        "summary": row.get("summary"),
        "colors": row.get("colors"),
        "typography": row.get("typography"),
        "visual_style": row.get("visual_style"),
        "expert_references": row.get("expert_references"),
        "product_references": row.get("product_references"),
        "references": row.get("references"),
        "gallery": row.get("gallery"),
        "saved_styles": row.get("saved_styles"),
        "scanned_dna": row.get("scanned_dna"),
        "use_launch_impact": row.get("use_launch_impact"),
    })
    return normalize_profile(profile)


def art_to_row(art: GeneratedArt) -> dict[str, Any]:
    """Map a GeneratedArt to art_history columns."""
    return {
        "id": art.id,
        "urls": art.urls,
        "prompt": art.prompt,
        "timestamp": art.timestamp,
        "style_name": art.style_name,
        "description": art.description,
        "is_rejected": art.is_rejected,
    }


def row_to_art(row: dict[str, Any]) -> GeneratedArt:
    return GeneratedArt.model_validate({
        "id": row["id"],
        "urls": row.get("urls"),
        "prompt": row.get("prompt") or "",
        "timestamp": row["timestamp"],
        "style_name": row.get("style_name"),
        "description": row.get("description"),
        "is_rejected": row.get("is_rejected"),
    })


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate PostgREST, transport and row validation failures into StoreUnavailable."""
    try:
        yield
    except APIError as e:
        logger.error(f"[STORE] {operation} failed: {e.code} {e.message}")
        raise StoreUnavailable(f"Falha no banco de dados ({operation}): {e.message}", operation=operation) from e
    except httpx.HTTPError as e:
        logger.error(f"[STORE] {operation} failed: {e}")
        raise StoreUnavailable(f"Falha ao conectar ao banco de dados ({operation})", operation=operation) from e
    except ValidationError as e:
        logger.error(f"[STORE] {operation} returned invalid rows: {e.error_count()} error(s)")
        raise StoreUnavailable(f"Dados inválidos no banco de dados ({operation})", operation=operation) from e


class PersistenceGateway:
    """
    Maps brand state and history onto Supabase.

    Assumes a single active client per store: ``save_brand`` is a
    read-then-write without locking, last writer wins.

    Usage:
        gateway = PersistenceGateway()
        await gateway.init()

        await gateway.save_brand(profile)
        brand = await gateway.get_brand()  # None when nothing saved yet

        await gateway.save_art(art)
        history = await gateway.get_history()  # newest first
    """

    def __init__(self, client: Client | None = None, config: StoreConfig | None = None):
        self.config = config or StoreConfig()
        self._client = client

    @property
    def client(self) -> Client:
        """Lazy initialization of Supabase client."""
        if self._client is None:
            if not self.config.is_configured:
                raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY required")
            self._client = create_client(self.config.supabase_url, self.config.supabase_key)
            logger.info("[STORE] Supabase client initialized")
        return self._client

    @property
    def max_history(self) -> int:
        return self.config.max_history

    async def init(self) -> None:
        """
        Verify the store is reachable.

        Raises:
            StoreUnavailable: If the brand table cannot be queried
        """
        try:
            self.client.table(BRAND_TABLE).select("id").limit(1).execute()
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                return
            logger.error(f"[STORE] Connection check failed: {e.code} {e.message}")
            raise StoreUnavailable("Falha ao conectar ao banco de dados Supabase", operation="init") from e
        except httpx.HTTPError as e:
            logger.error(f"[STORE] Connection check failed: {e}")
            raise StoreUnavailable("Falha ao conectar ao banco de dados Supabase", operation="init") from e
        logger.info("[STORE] Connection verified")

    # =========================================================================
    # BRAND PROFILE
    # =========================================================================

    async def save_brand(self, profile: BrandProfile) -> None:
        """Update the singleton brand row, or insert it if none exists."""
        row = brand_to_row(profile)
        table = self.client.table(BRAND_TABLE)

        with _store_errors("save_brand"):
            existing = table.select("id").limit(1).execute()

            if existing.data:
                brand_id = existing.data[0]["id"]
                row["updated_at"] = datetime.now(timezone.utc).isoformat()
                table.update(row).eq("id", brand_id).execute()
                logger.info(f"[STORE] Updated brand profile {brand_id}")
            else:
                table.insert(row).execute()
                logger.info("[STORE] Created brand profile")

    async def get_brand(self) -> BrandProfile | None:
        """
        Load the brand profile.

        Returns:
            Normalized BrandProfile, or None if none has been saved

        Raises:
            StoreUnavailable: On any error other than "no rows", or when the
                stored row does not validate
        """
        try:
            response = self.client.table(BRAND_TABLE).select("*").limit(1).single().execute()
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                logger.debug("[STORE] No brand profile saved yet")
                return None
            logger.error(f"[STORE] get_brand failed: {e.code} {e.message}")
            raise StoreUnavailable(f"Falha no banco de dados (get_brand): {e.message}", operation="get_brand") from e
        except httpx.HTTPError as e:
            raise StoreUnavailable("Falha ao conectar ao banco de dados (get_brand)", operation="get_brand") from e

        if not response.data:
            return None
        with _store_errors("get_brand"):
            return row_to_brand(response.data)

    # =========================================================================
    # ART HISTORY
    # =========================================================================

    async def save_art(self, art: GeneratedArt) -> None:
        """Upsert a history entry by id, then drop entries beyond the cap."""
        with _store_errors("save_art"):
            self.client.table(HISTORY_TABLE).upsert(art_to_row(art)).execute()
            logger.info(f"[STORE] Saved art {art.id} (rejected={art.is_rejected})")
            self._prune_history()

    def _prune_history(self) -> None:
        response = self.client.table(HISTORY_TABLE) \
            .select("id") \
            .order("timestamp", desc=True) \
            .execute()

        overflow = [row["id"] for row in (response.data or [])[self.max_history:]]
        if overflow:
            self.client.table(HISTORY_TABLE).delete().in_("id", overflow).execute()
            logger.info(f"[STORE] Evicted {len(overflow)} oldest art entries")

    async def get_history(self) -> list[GeneratedArt]:
        """All history entries, newest first. Empty list when none saved."""
        with _store_errors("get_history"):
            response = self.client.table(HISTORY_TABLE) \
                .select("*") \
                .order("timestamp", desc=True) \
                .execute()
            return [row_to_art(row) for row in (response.data or [])]

    async def delete_art(self, art_id: str) -> None:
        with _store_errors("delete_art"):
            self.client.table(HISTORY_TABLE).delete().eq("id", art_id).execute()
        logger.info(f"[STORE] Deleted art {art_id}")

    async def clear_history(self) -> None:
        """Delete every history entry. Not reversible."""
        with _store_errors("clear_history"):
            self.client.table(HISTORY_TABLE).delete().neq(*ALL_ART_IDS).execute()
        logger.info("[STORE] History cleared")

    async def clear_all(self) -> None:
        """Delete history, then the brand profile. Not reversible."""
        await self.clear_history()
        with _store_errors("clear_all"):
            self.client.table(BRAND_TABLE).delete().neq(*ALL_BRAND_IDS).execute()
        logger.info("[STORE] All data cleared")
