"""Tests for the BrandStudio orchestrator."""

import json
import re
from unittest.mock import AsyncMock

import pytest
from postgrest.exceptions import APIError

from brandstudio.config import GeminiConfig, StoreConfig
from brandstudio.errors import DuplicateStyleName, InvalidImage, StyleNotFound
from brandstudio.generation import data_url
from brandstudio.generation.pipeline import GenerationPipeline
from brandstudio.generation.prompts import IMPACT_DIRECTIVE
from brandstudio.generation.retry import RetryExecutor
from brandstudio.models import DEFAULT_BRAND, BrandProfile, GeneratedArt
from brandstudio.persistence.gateway import BRAND_TABLE, HISTORY_TABLE, PersistenceGateway
from brandstudio.studio import BrandStudio, cap_history, new_art_id, random_id
from brandstudio.testing import (
    TINY_PNG,
    FakeGenerativeService,
    FakeSupabaseClient,
    image_response,
    text_response,
)

IMAGE = data_url.encode(TINY_PNG, "image/png")
CONFIG = GeminiConfig(api_key="AIza-test-key-0123456789", max_attempts=2, initial_delay_ms=1)


@pytest.fixture
def service():
    return FakeGenerativeService()


@pytest.fixture
def client():
    return FakeSupabaseClient()


@pytest.fixture
def studio(service, client):
    pipeline = GenerationPipeline(
        service, config=CONFIG, retry=RetryExecutor(2, 1, sleep=AsyncMock())
    )
    gateway = PersistenceGateway(client=client, config=StoreConfig(supabase_url="http://x", supabase_key="k"))
    return BrandStudio(pipeline, gateway)


def script_art(service, caption="Legenda"):
    service.script(CONFIG.image_model, image_response())
    service.script(CONFIG.caption_model, text_response(caption))


class TestHelpers:
    """Tests for id and history helpers."""

    def test_random_id(self):
        assert re.fullmatch(r"[0-9a-z]{9}", random_id(9))

    def test_new_art_id(self):
        assert re.fullmatch(r"art-[0-9a-z]{5}", new_art_id())

    def test_cap_history(self):
        history = [GeneratedArt(id=f"a{n}", timestamp=n) for n in range(5)]
        assert [a.id for a in cap_history(history, 3)] == ["a4", "a3", "a2"]


class TestLoad:
    """Tests for BrandStudio.load()."""

    @pytest.mark.asyncio
    async def test_load_empty_store_uses_default(self, studio, client):
        state = await studio.load()
        assert state.online is True
        assert state.brand == DEFAULT_BRAND
        assert state.history == []
        assert client.rows(BRAND_TABLE)[0]["name"] == DEFAULT_BRAND.name

    @pytest.mark.asyncio
    async def test_load_saved_state(self, studio, client):
        await studio.gateway.save_brand(BrandProfile(name="Doce Lar"))
        await studio.gateway.save_art(GeneratedArt(id="art-1", timestamp=5))

        state = await studio.load()

        assert state.brand.name == "Doce Lar"
        assert [a.id for a in state.history] == ["art-1"]

    @pytest.mark.asyncio
    async def test_load_offline_when_store_down(self, studio, client):
        client.fail(BRAND_TABLE, "select", APIError({"code": "08006", "message": "down"}))

        state = await studio.load()

        assert state.online is False
        assert state.brand == DEFAULT_BRAND
        assert studio.online is False

    @pytest.mark.asyncio
    async def test_load_offline_when_saved_style_invalid(self, studio, client):
        client.table(BRAND_TABLE).insert({
            "name": "Doce Lar",
            "saved_styles": [{"name": "Sem id"}],
        }).execute()

        state = await studio.load()

        assert state.online is False
        assert state.brand == DEFAULT_BRAND


class TestBrandEditing:
    """Tests for brand and reference updates."""

    @pytest.mark.asyncio
    async def test_update_brand_persists(self, studio, client):
        await studio.update_brand(BrandProfile(name="Nova"))
        assert client.rows(BRAND_TABLE)[0]["name"] == "Nova"

    @pytest.mark.asyncio
    async def test_add_and_remove_reference(self, studio):
        await studio.add_reference("product", IMAGE)
        await studio.add_reference("expert", IMAGE)
        assert studio.brand.product_references == [IMAGE]
        assert studio.brand.expert_references == [IMAGE]

        await studio.remove_reference("product", 0)
        assert studio.brand.product_references == []

    @pytest.mark.asyncio
    async def test_add_invalid_reference(self, studio):
        with pytest.raises(InvalidImage):
            await studio.add_reference("product", "not-an-image")

    @pytest.mark.asyncio
    async def test_remove_missing_reference(self, studio):
        with pytest.raises(IndexError):
            await studio.remove_reference("expert", 3)


class TestStyles:
    """Tests for style creation."""

    @pytest.mark.asyncio
    async def test_create_style_scans_first_image(self, studio, service):
        service.script(CONFIG.dna_model, text_response('{"colors": ["#FFF"], "description": "Suave"}'))
        second = data_url.encode(b"second", "image/jpeg")

        style = await studio.create_style("Rústico", [IMAGE, second])

        assert re.fullmatch(r"[0-9a-z]{9}", style.id)
        assert style.images == [IMAGE, second]
        assert style.dna.description == "Suave"
        assert studio.brand.saved_styles == [style]
        assert len(service.requests) == 1
        assert service.requests[0].image_parts[0].to_data_url() == IMAGE

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected_before_scan(self, studio, service):
        service.script(CONFIG.dna_model, text_response("{}"))
        await studio.create_style("Rústico", [IMAGE])

        with pytest.raises(DuplicateStyleName):
            await studio.create_style("rústico", [IMAGE])
        assert service.call_count == 1

    @pytest.mark.asyncio
    async def test_name_required(self, studio):
        with pytest.raises(ValueError):
            await studio.create_style("  ", [IMAGE])

    @pytest.mark.asyncio
    async def test_images_required(self, studio):
        with pytest.raises(ValueError):
            await studio.create_style("Novo", [])

    def test_brand_context(self, studio):
        assert studio.build_brand_context() == f"Estilo: {DEFAULT_BRAND.visual_style}."


class TestGenerate:
    """Tests for generation and feedback."""

    @pytest.mark.asyncio
    async def test_generate_is_transient(self, studio, service, client):
        script_art(service, "Que delícia!")

        art = await studio.generate("bolo de chocolate", "1:1")

        assert re.fullmatch(r"art-[0-9a-z]{5}", art.id)
        assert art.urls == [IMAGE]
        assert art.description == "Que delícia!"
        assert art.is_rejected is False
        assert art.style_name is None
        assert client.rows(HISTORY_TABLE) == []
        assert studio.history == []

    @pytest.mark.asyncio
    async def test_generate_with_style_and_references(self, studio, service):
        service.script(CONFIG.dna_model, text_response('{"colors": ["#111"], "description": "Escuro"}'))
        style = await studio.create_style("Noturno", [IMAGE])
        script_art(service)
        expert = data_url.encode(b"expert", "image/jpeg")

        art = await studio.generate(
            "bolo", "9:16", style_id=style.id, expert_reference=expert, product_references=[IMAGE]
        )

        request = service.requests_for(CONFIG.image_model)[0]
        assert [p.mime_type for p in request.image_parts] == ["image/jpeg", "image/png"]
        instruction = request.text_parts[0]
        assert "DNA: Noturno - Escuro" in instruction
        assert "Cores: #111" in instruction
        assert art.style_name == "Noturno"

    @pytest.mark.asyncio
    async def test_impact_defaults_to_brand_setting(self, studio, service):
        await studio.update_brand(studio.brand.model_copy(update={"use_launch_impact": True}))
        script_art(service)

        await studio.generate("lançamento", "1:1")

        assert IMPACT_DIRECTIVE in service.requests_for(CONFIG.image_model)[0].text_parts[0]

    @pytest.mark.asyncio
    async def test_watermark_uses_brand_name(self, studio, service):
        script_art(service)
        await studio.generate("bolo", "1:1", watermark=True)
        assert f'"{DEFAULT_BRAND.name}"' in service.requests_for(CONFIG.image_model)[0].text_parts[0]

    @pytest.mark.asyncio
    async def test_unknown_style(self, studio):
        with pytest.raises(StyleNotFound):
            await studio.generate("bolo", "1:1", style_id="missing")

    @pytest.mark.asyncio
    async def test_record_feedback(self, studio, service, client):
        script_art(service)
        art = await studio.generate("bolo", "1:1")

        saved = await studio.record_feedback(art, rejected=True)

        assert saved.is_rejected is True
        assert studio.history == [saved]
        assert client.rows(HISTORY_TABLE)[0]["is_rejected"] is True

    @pytest.mark.asyncio
    async def test_feedback_history_capped(self, studio):
        studio.history = [GeneratedArt(id=f"old-{n}", timestamp=n) for n in range(100)]

        await studio.record_feedback(GeneratedArt(id="art-new", timestamp=10_000), rejected=False)

        assert len(studio.history) == 100
        assert studio.history[0].id == "art-new"
        assert "old-0" not in [a.id for a in studio.history]


class TestHistoryAndBackup:
    """Tests for history management and backups."""

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, studio):
        for n in range(3):
            await studio.record_feedback(GeneratedArt(id=f"art-{n}", timestamp=n), rejected=False)

        await studio.delete_art("art-1")
        assert [a.id for a in studio.history] == ["art-2", "art-0"]

        await studio.clear_history()
        assert studio.history == []

    @pytest.mark.asyncio
    async def test_clear_all_resets_brand(self, studio, client):
        await studio.update_brand(BrandProfile(name="Outra"))

        await studio.clear_all()

        assert studio.brand == DEFAULT_BRAND
        assert [row["name"] for row in client.rows(BRAND_TABLE)] == [DEFAULT_BRAND.name]

    @pytest.mark.asyncio
    async def test_import_adopts_state(self, studio):
        text = json.dumps({
            "brand": {"name": "Importada"},
            "history": [{"id": "art-x", "urls": [], "prompt": "p", "timestamp": 9}],
        })

        state = await studio.import_backup(text)

        assert studio.brand.name == "Importada"
        assert [a.id for a in studio.history] == ["art-x"]
        assert state.brand is studio.brand

    @pytest.mark.asyncio
    async def test_export_backup(self, studio):
        await studio.update_brand(BrandProfile(name="Exportada"))
        document = json.loads(await studio.export_backup())
        assert document["brand"]["name"] == "Exportada"

    @pytest.mark.asyncio
    async def test_backup_from_fresh_store_restores_history(self, studio):
        await studio.load()
        await studio.record_feedback(GeneratedArt(id="art-1", prompt="bolo", timestamp=7), rejected=False)

        text = await studio.export_backup()
        assert json.loads(text)["brand"]["name"] == DEFAULT_BRAND.name

        await studio.clear_all()
        state = await studio.import_backup(text)

        assert [a.id for a in state.history] == ["art-1"]
        assert [a.id for a in (await studio.load()).history] == ["art-1"]

    @pytest.mark.asyncio
    async def test_backup_after_clear_all_carries_brand(self, studio):
        await studio.clear_all()
        await studio.record_feedback(GeneratedArt(id="art-2", timestamp=3), rejected=True)

        text = await studio.export_backup()
        await studio.clear_all()

        state = await studio.import_backup(text)
        assert [a.id for a in state.history] == ["art-2"]
