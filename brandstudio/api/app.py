"""FastAPI application for the Brand Studio.

Run with:
    uvicorn brandstudio.api.app:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from brandstudio.api.router import get_studio
from brandstudio.api.router import router as studio_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load brand and history once at startup."""
    state = await get_studio().load()
    logger.info(f"[API] Studio ready (online={state.online}, history={len(state.history)})")
    yield


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="Brand Studio API",
    description="Brand-aware confectionery art generation with visual DNA",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(studio_router)


@app.get("/health")
async def health_check() -> dict:
    """Liveness check."""
    return {"status": "ok"}
