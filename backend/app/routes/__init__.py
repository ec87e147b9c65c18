"""
Route aggregator — mounts the publishing router under /api/v1 prefix.

Health is exported separately for main.py to mount at root.
"""
from fastapi import APIRouter

from app.routes.publishing import router as publishing_router
from app.routes.health import router as health_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(publishing_router)

__all__ = ["v1_router", "health_router"]
