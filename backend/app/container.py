"""
Lazy DI container — singleton access to clients, stores, and services.

Implementations are chosen from settings (play_backend,
record_store_backend), never from which credentials happen to be set.
Routes resolve these getters through FastAPI Depends so tests can
override them.
"""

from functools import lru_cache

import redis

from app.core.config import settings
from app.clients.play_base import PlayPublishingClient
from app.clients.google_play_client import GooglePlayClient
from app.clients.sandbox_play_client import SandboxPlayClient
from app.clients.supabase_client import SupabaseClient
from app.db.publish_record_store import (
    InMemoryPublishRecordStore,
    PublishRecordStore,
    SupabasePublishRecordStore,
)
from app.db.session_store import RedisSessionStore
from app.services.package_builder import WebViewPackageBuilder
from app.services.play_console_service import PlayConsoleService
from app.services.publish_orchestrator import PublishOrchestrator


# -- Clients ---------------------------------------------------------------

@lru_cache(maxsize=1)
def get_play_client() -> PlayPublishingClient:
    backend = settings.play_backend.lower()
    if backend == "google":
        return GooglePlayClient(settings)
    if backend == "sandbox":
        return SandboxPlayClient()
    raise RuntimeError(f"Unknown PLAY_BACKEND {settings.play_backend!r} (expected google or sandbox)")


@lru_cache(maxsize=1)
def get_google_play_client() -> GooglePlayClient:
    """OAuth helpers always talk to Google, whatever the publish backend."""
    return GooglePlayClient(settings)


@lru_cache(maxsize=1)
def get_supabase_client():
    return SupabaseClient(settings)


@lru_cache(maxsize=1)
def get_redis_client():
    return redis.from_url(settings.redis_url)


# -- Stores ----------------------------------------------------------------

@lru_cache(maxsize=1)
def get_publish_record_store() -> PublishRecordStore:
    backend = settings.record_store_backend.lower()
    if backend == "supabase":
        return SupabasePublishRecordStore(
            get_supabase_client(), table=settings.publish_records_table
        )
    if backend == "memory":
        return InMemoryPublishRecordStore()
    raise RuntimeError(
        f"Unknown RECORD_STORE_BACKEND {settings.record_store_backend!r} (expected supabase or memory)"
    )


@lru_cache(maxsize=1)
def get_session_store():
    return RedisSessionStore(get_redis_client(), ttl_seconds=settings.session_ttl_seconds)


# -- Services --------------------------------------------------------------

@lru_cache(maxsize=1)
def get_play_console_service():
    return PlayConsoleService(get_play_client())


@lru_cache(maxsize=1)
def get_package_builder():
    return WebViewPackageBuilder(settings)


@lru_cache(maxsize=1)
def get_publish_orchestrator():
    return PublishOrchestrator(
        play=get_play_console_service(),
        builder=get_package_builder(),
        record_store=get_publish_record_store(),
        timeout_seconds=settings.publish_timeout_seconds,
    )
