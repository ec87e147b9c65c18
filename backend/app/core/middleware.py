"""
Middleware — CORS configuration and JSON error handlers.

Extracted from main.py to keep app factory slim.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import PublisherException

logger = logging.getLogger("middleware")


def apply_cors(app: FastAPI) -> None:
    """Apply CORS middleware with the configured origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _error_body(message: str) -> dict:
    return {"success": False, "error": message}


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def apply_error_handlers(app: FastAPI) -> None:
    """
    Register exception handlers that render {success: false, error}.

    Stack traces never leave the process; unexpected errors are logged
    and reported as a generic 500.
    """

    @app.exception_handler(PublisherException)
    async def publisher_exception_handler(request: Request, exc: PublisherException):
        logger.info(
            "request failed path=%s status=%s error=%s",
            request.url.path,
            exc.status_code,
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=_error_body(_format_validation_errors(exc)))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error path=%s", request.url.path)
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))
