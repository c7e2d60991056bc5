"""Tests for the Supabase persistence gateway."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from postgrest.exceptions import APIError

from brandstudio.config import StoreConfig
from brandstudio.errors import ConfigurationError, StoreUnavailable
from brandstudio.models import BrandProfile, GeneratedArt, VisualStyle
from brandstudio.persistence.gateway import (
    BRAND_TABLE,
    HISTORY_TABLE,
    PersistenceGateway,
    art_to_row,
    brand_to_row,
    row_to_art,
    row_to_brand,
)
from brandstudio.testing import FakeSupabaseClient


def store_error(code: str = "500", message: str = "boom") -> APIError:
    return APIError({"code": code, "message": message, "details": None, "hint": None})


def art(n: int, **kwargs) -> GeneratedArt:
    return GeneratedArt(id=f"art-{n:05d}", urls=[f"data:image/png;base64,{n}"], prompt=f"p{n}", timestamp=1000 + n, **kwargs)


@pytest.fixture
def client():
    return FakeSupabaseClient()


@pytest.fixture
def gateway(client):
    return PersistenceGateway(client=client, config=StoreConfig(supabase_url="http://x", supabase_key="k"))


class TestRowMapping:
    """Tests for model <-> row mapping."""

    def test_brand_row_uses_snake_case_columns(self):
        row = brand_to_row(BrandProfile(name="Loja", visual_style="Clean", use_launch_impact=True))
        assert row["visual_style"] == "Clean"
        assert row["use_launch_impact"] is True
        assert row["saved_styles"] == []
        assert row["scanned_dna"] is None

    def test_brand_row_normalizes_legacy_styles(self):
        row = {
            "name": "Loja",
            "colors": None,
            "saved_styles": [{"id": "s1", "name": "Antigo", "image": "data:image/png;base64,AAA="}],
        }
        profile = row_to_brand(row)
        assert profile.colors == []
        assert profile.saved_styles[0].images == ["data:image/png;base64,AAA="]

    def test_art_row_round_trip(self):
        original = art(1, description="Legenda", is_rejected=True, style_name="Rústico")
        assert row_to_art(art_to_row(original)) == original

    def test_art_row_without_new_columns(self):
        restored = row_to_art({"id": "art-a", "urls": ["u"], "prompt": "p", "timestamp": 5, "style_name": None})
        assert restored.description is None
        assert restored.is_rejected is False


class TestClientInitialization:
    """Tests for lazy client creation."""

    def test_unconfigured_store_raises(self):
        with patch.dict("os.environ", {}, clear=True):
            gateway = PersistenceGateway(config=StoreConfig())
        with pytest.raises(ConfigurationError):
            _ = gateway.client

    def test_injected_client_used(self, client):
        assert PersistenceGateway(client=client).client is client


class TestInit:
    """Tests for the connectivity check."""

    @pytest.mark.asyncio
    async def test_init_ok(self, gateway):
        await gateway.init()

    @pytest.mark.asyncio
    async def test_init_tolerates_no_rows(self, gateway, client):
        client.fail(BRAND_TABLE, "select", store_error("PGRST116"))
        await gateway.init()

    @pytest.mark.asyncio
    async def test_init_failure(self, gateway, client):
        client.fail(BRAND_TABLE, "select", store_error("42P01", "relation does not exist"))
        with pytest.raises(StoreUnavailable) as exc_info:
            await gateway.init()
        assert exc_info.value.operation == "init"

    @pytest.mark.asyncio
    async def test_init_transport_failure(self):
        client = MagicMock()
        client.table.return_value.select.return_value.limit.return_value.execute.side_effect = (
            httpx.ConnectError("refused")
        )
        gateway = PersistenceGateway(client=client)
        with pytest.raises(StoreUnavailable):
            await gateway.init()


class TestBrand:
    """Tests for brand profile persistence."""

    @pytest.mark.asyncio
    async def test_get_brand_none_when_empty(self, gateway):
        assert await gateway.get_brand() is None

    @pytest.mark.asyncio
    async def test_save_then_get(self, gateway):
        profile = BrandProfile(
            name="Doce Lar",
            colors=["#FFF"],
            saved_styles=[VisualStyle(id="abc", name="Clássico", images=["data:image/png;base64,AAA="])],
        )
        await gateway.save_brand(profile)
        assert await gateway.get_brand() == profile

    @pytest.mark.asyncio
    async def test_save_brand_keeps_single_row(self, gateway, client):
        await gateway.save_brand(BrandProfile(name="Primeira"))
        await gateway.save_brand(BrandProfile(name="Segunda"))

        rows = client.rows(BRAND_TABLE)
        assert len(rows) == 1
        assert rows[0]["name"] == "Segunda"
        assert "updated_at" in rows[0]

    @pytest.mark.asyncio
    async def test_get_brand_store_error(self, gateway, client):
        client.fail(BRAND_TABLE, "select", store_error("08006", "connection failure"))
        with pytest.raises(StoreUnavailable) as exc_info:
            await gateway.get_brand()
        assert exc_info.value.operation == "get_brand"

    @pytest.mark.asyncio
    async def test_get_brand_invalid_row(self, gateway, client):
        client.table(BRAND_TABLE).insert({"name": "Loja", "saved_styles": [{"name": "Sem id"}]}).execute()
        with pytest.raises(StoreUnavailable) as exc_info:
            await gateway.get_brand()
        assert exc_info.value.operation == "get_brand"

    @pytest.mark.asyncio
    async def test_save_brand_store_error(self, gateway, client):
        client.fail(BRAND_TABLE, "insert", store_error())
        with pytest.raises(StoreUnavailable):
            await gateway.save_brand(BrandProfile(name="Loja"))


class TestHistory:
    """Tests for art history persistence."""

    @pytest.mark.asyncio
    async def test_empty_history(self, gateway):
        assert await gateway.get_history() == []

    @pytest.mark.asyncio
    async def test_history_newest_first(self, gateway):
        for n in (2, 1, 3):
            await gateway.save_art(art(n))
        history = await gateway.get_history()
        assert [a.id for a in history] == ["art-00003", "art-00002", "art-00001"]

    @pytest.mark.asyncio
    async def test_history_invalid_row(self, gateway, client):
        client.table(HISTORY_TABLE).insert({"id": "art-x", "timestamp": "ontem"}).execute()
        with pytest.raises(StoreUnavailable) as exc_info:
            await gateway.get_history()
        assert exc_info.value.operation == "get_history"

    @pytest.mark.asyncio
    async def test_save_art_is_idempotent_upsert(self, gateway, client):
        await gateway.save_art(art(1))
        await gateway.save_art(art(1, is_rejected=True))

        rows = client.rows(HISTORY_TABLE)
        assert len(rows) == 1
        assert rows[0]["is_rejected"] is True

    @pytest.mark.asyncio
    async def test_history_cap_evicts_oldest(self, gateway):
        for n in range(101):
            await gateway.save_art(art(n))

        history = await gateway.get_history()

        assert len(history) == 100
        assert history[0].id == "art-00100"
        assert history[-1].id == "art-00001"
        assert all(a.timestamp > b.timestamp for a, b in zip(history, history[1:]))

    @pytest.mark.asyncio
    async def test_delete_art(self, gateway):
        await gateway.save_art(art(1))
        await gateway.save_art(art(2))
        await gateway.delete_art("art-00001")
        assert [a.id for a in await gateway.get_history()] == ["art-00002"]

    @pytest.mark.asyncio
    async def test_clear_history(self, gateway):
        await gateway.save_art(art(1))
        await gateway.clear_history()
        assert await gateway.get_history() == []

    @pytest.mark.asyncio
    async def test_clear_all(self, gateway, client):
        await gateway.save_brand(BrandProfile(name="Loja"))
        await gateway.save_art(art(1))

        await gateway.clear_all()

        assert client.rows(BRAND_TABLE) == []
        assert client.rows(HISTORY_TABLE) == []
        assert client.calls[-2:] == [(HISTORY_TABLE, "delete"), (BRAND_TABLE, "delete")]

    @pytest.mark.asyncio
    async def test_save_art_store_error(self, gateway, client):
        client.fail(HISTORY_TABLE, "upsert", store_error())
        with pytest.raises(StoreUnavailable) as exc_info:
            await gateway.save_art(art(1))
        assert exc_info.value.operation == "save_art"
