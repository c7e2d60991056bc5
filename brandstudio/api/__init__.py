"""HTTP surface for the Brand Studio (FastAPI)."""

from brandstudio.api.router import get_studio, router

__all__ = ["get_studio", "router"]
