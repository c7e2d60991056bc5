"""
FastAPI router for the Brand Studio API.

Endpoints:
- GET /studio/brand - Current brand profile
- PUT /studio/brand - Replace the brand profile
- POST /studio/brand/styles - Create a saved style (DNA scanned from the first image)
- POST /studio/brand/references - Add an expert or product reference
- DELETE /studio/brand/references/{kind}/{index} - Remove a reference
- POST /studio/dna/scan - Extract visual DNA from an image
- POST /studio/art/generate - Generate one art (not stored until feedback)
- POST /studio/art/feedback - Accept or reject a generated art
- GET /studio/art/history - Generation history, newest first
- DELETE /studio/art/{art_id} - Delete one history entry
- DELETE /studio/art - Clear history
- DELETE /studio/data - Clear history and brand
- GET /studio/backup - Download a backup document
- POST /studio/backup - Restore a backup document
- GET /studio/health - Store and generative service status
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from brandstudio.api.schemas import (
    CreateStyleRequest,
    FeedbackRequest,
    GenerateRequest,
    HealthResponse,
    HistoryResponse,
    ImportResponse,
    ReferenceRequest,
    ScanRequest,
)
from brandstudio.errors import (
    ConfigurationError,
    DuplicateStyleName,
    GenerationFailed,
    GenerationServiceError,
    InvalidBackup,
    InvalidImage,
    ParseFailure,
    RateLimited,
    StoreUnavailable,
    StudioError,
    StyleNotFound,
)
from brandstudio.generation.gemini_client import GeminiService
from brandstudio.generation.pipeline import GenerationPipeline
from brandstudio.models import BrandProfile, GeneratedArt, ScannedDNA, VisualStyle
from brandstudio.persistence.gateway import PersistenceGateway
from brandstudio.studio import BrandStudio

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/studio", tags=["studio"])

STATUS_BY_ERROR: dict[type[StudioError], int] = {
    InvalidImage: 400,
    InvalidBackup: 400,
    StyleNotFound: 404,
    DuplicateStyleName: 409,
    RateLimited: 429,
    GenerationFailed: 502,
    GenerationServiceError: 502,
    ParseFailure: 502,
    StoreUnavailable: 503,
    ConfigurationError: 503,
}


# ============================================================================
# Dependencies
# ============================================================================


@lru_cache()
def get_studio() -> BrandStudio:
    """Dependency to get singleton BrandStudio instance."""
    service = GeminiService()
    return BrandStudio(
        pipeline=GenerationPipeline(service, config=service.config),
        gateway=PersistenceGateway(),
    )


# ============================================================================
# Error mapping
# ============================================================================


def status_for(error: Exception) -> int:
    """HTTP status for a studio failure (500 when unmapped)."""
    if isinstance(error, StudioError):
        for cls in type(error).__mro__:
            if cls in STATUS_BY_ERROR:
                return STATUS_BY_ERROR[cls]
        return 500
    if isinstance(error, IndexError):
        return 404
    if isinstance(error, ValueError):
        return 400
    return 500


@contextmanager
def _http_errors(operation: str) -> Iterator[None]:
    """Translate studio failures raised inside an endpoint into HTTPException."""
    try:
        yield
    except (StudioError, ValueError, IndexError) as e:
        status = status_for(e)
        detail = e.message if isinstance(e, StudioError) else str(e)
        log = logger.error if status >= 500 else logger.warning
        log(f"[API] {operation} failed ({status}): {detail}")
        raise HTTPException(status_code=status, detail=detail) from e


# ============================================================================
# Brand
# ============================================================================


@router.get("/brand", response_model=BrandProfile, summary="Get brand profile")
async def get_brand(studio: BrandStudio = Depends(get_studio)) -> BrandProfile:
    return studio.brand


@router.put("/brand", response_model=BrandProfile, summary="Replace brand profile")
async def put_brand(
    brand: BrandProfile,
    studio: BrandStudio = Depends(get_studio),
) -> BrandProfile:
    with _http_errors("put_brand"):
        return await studio.update_brand(brand)


@router.post(
    "/brand/styles",
    response_model=VisualStyle,
    status_code=201,
    summary="Create saved style",
    description="Scans visual DNA from the first image and stores the style with the brand.",
    responses={409: {"description": "Style name already exists"}},
)
async def create_style(
    request: CreateStyleRequest,
    studio: BrandStudio = Depends(get_studio),
) -> VisualStyle:
    with _http_errors("create_style"):
        return await studio.create_style(request.name, request.images)


@router.post("/brand/references", response_model=BrandProfile, summary="Add reference image")
async def add_reference(
    request: ReferenceRequest,
    studio: BrandStudio = Depends(get_studio),
) -> BrandProfile:
    with _http_errors("add_reference"):
        return await studio.add_reference(request.kind, request.image)


@router.delete(
    "/brand/references/{kind}/{index}",
    response_model=BrandProfile,
    summary="Remove reference image",
)
async def remove_reference(
    kind: str,
    index: int,
    studio: BrandStudio = Depends(get_studio),
) -> BrandProfile:
    with _http_errors("remove_reference"):
        return await studio.remove_reference(kind, index)


# ============================================================================
# Generation
# ============================================================================


@router.post("/dna/scan", response_model=ScannedDNA, summary="Extract visual DNA")
async def scan_dna(
    request: ScanRequest,
    studio: BrandStudio = Depends(get_studio),
) -> ScannedDNA:
    with _http_errors("scan_dna"):
        return await studio.pipeline.scan_dna(request.image)


@router.post(
    "/art/generate",
    response_model=GeneratedArt,
    summary="Generate art",
    description=(
        "Generates one image and a caption. The result is not stored; "
        "send it to POST /studio/art/feedback to keep it in history."
    ),
    responses={429: {"description": "Rate limited after retries"}},
)
async def generate_art(
    request: GenerateRequest,
    studio: BrandStudio = Depends(get_studio),
) -> GeneratedArt:
    with _http_errors("generate_art"):
        return await studio.generate(
            prompt=request.prompt,
            aspect_ratio=request.aspect_ratio,
            style_id=request.style_id,
            expert_reference=request.expert_reference,
            product_references=request.product_references,
            impact_mode=request.impact_mode,
            watermark=request.watermark,
        )


@router.post("/art/feedback", response_model=GeneratedArt, summary="Accept or reject art")
async def record_feedback(
    request: FeedbackRequest,
    studio: BrandStudio = Depends(get_studio),
) -> GeneratedArt:
    with _http_errors("record_feedback"):
        return await studio.record_feedback(request.art, rejected=request.rejected)


# ============================================================================
# History
# ============================================================================


@router.get("/art/history", response_model=HistoryResponse, summary="Generation history")
async def get_history(studio: BrandStudio = Depends(get_studio)) -> HistoryResponse:
    return HistoryResponse(history=studio.history)


@router.delete("/art/{art_id}", status_code=204, summary="Delete history entry")
async def delete_art(art_id: str, studio: BrandStudio = Depends(get_studio)) -> Response:
    with _http_errors("delete_art"):
        await studio.delete_art(art_id)
    return Response(status_code=204)


@router.delete("/art", status_code=204, summary="Clear history")
async def clear_history(studio: BrandStudio = Depends(get_studio)) -> Response:
    with _http_errors("clear_history"):
        await studio.clear_history()
    return Response(status_code=204)


@router.delete("/data", status_code=204, summary="Clear history and brand")
async def clear_all(studio: BrandStudio = Depends(get_studio)) -> Response:
    with _http_errors("clear_all"):
        await studio.clear_all()
    return Response(status_code=204)


# ============================================================================
# Backup
# ============================================================================


@router.get("/backup", summary="Download backup")
async def export_backup(studio: BrandStudio = Depends(get_studio)) -> Response:
    with _http_errors("export_backup"):
        filename, document = await studio.export_named()
    return Response(
        content=document,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/backup",
    response_model=ImportResponse,
    summary="Restore backup",
    description="Body is the raw backup JSON document produced by GET /studio/backup.",
)
async def import_backup(
    http_request: Request,
    studio: BrandStudio = Depends(get_studio),
) -> ImportResponse:
    body = await http_request.body()
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail="Backup must be UTF-8 JSON") from e

    with _http_errors("import_backup"):
        state = await studio.import_backup(text)
    return ImportResponse(brand=state.brand, history_count=len(state.history))


# ============================================================================
# Health
# ============================================================================


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(studio: BrandStudio = Depends(get_studio)) -> HealthResponse:
    generation: dict = {}
    health_check = getattr(studio.pipeline.service, "health_check", None)
    if health_check is not None:
        generation = await health_check()

    status = "healthy" if studio.online and generation.get("status", "healthy") == "healthy" else "degraded"
    return HealthResponse(status=status, online=studio.online, generation=generation)
