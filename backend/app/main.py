import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.core.middleware import apply_cors, apply_error_handlers
from app.routes import health_router, v1_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler.

    On startup:
    - Log the selected publishing and record-store backends

    Clients are created lazily by app.container on first request.
    """
    logger.info("=== %s Starting ===", settings.app_name)
    logger.info(
        "play_backend=%s record_store_backend=%s downloads_dir=%s",
        settings.play_backend,
        settings.record_store_backend,
        settings.downloads_dir,
    )

    yield

    logger.info("=== %s Shutting Down ===", settings.app_name)


logging.basicConfig(level=settings.log_level, format="%(levelname)s:%(name)s:%(message)s")
app = FastAPI(title=settings.app_name, lifespan=lifespan)

apply_cors(app)
apply_error_handlers(app)

app.include_router(v1_router)
app.include_router(health_router)
