"""
Unit tests for the lazy DI container.
"""
import pytest
from unittest.mock import patch

from app import container
from app.clients.google_play_client import GooglePlayClient
from app.clients.sandbox_play_client import SandboxPlayClient
from app.db.publish_record_store import InMemoryPublishRecordStore
from app.services.publish_orchestrator import PublishOrchestrator


_GETTERS = (
    container.get_play_client,
    container.get_google_play_client,
    container.get_publish_record_store,
    container.get_play_console_service,
    container.get_package_builder,
    container.get_publish_orchestrator,
)


@pytest.fixture(autouse=True)
def clear_caches():
    for getter in _GETTERS:
        getter.cache_clear()
    yield
    for getter in _GETTERS:
        getter.cache_clear()


@pytest.mark.unit
class TestContainer:
    """Tests for container.py DI factory functions."""

    def test_google_backend(self, mock_settings):
        mock_settings.play_backend = "google"
        with patch("app.container.settings", mock_settings):
            assert isinstance(container.get_play_client(), GooglePlayClient)

    def test_sandbox_backend(self, mock_settings):
        mock_settings.play_backend = "Sandbox"
        with patch("app.container.settings", mock_settings):
            assert isinstance(container.get_play_client(), SandboxPlayClient)

    def test_unknown_backend(self, mock_settings):
        mock_settings.play_backend = "appstore"
        with patch("app.container.settings", mock_settings):
            with pytest.raises(RuntimeError, match="PLAY_BACKEND"):
                container.get_play_client()

    def test_memory_record_store(self, mock_settings):
        mock_settings.record_store_backend = "memory"
        with patch("app.container.settings", mock_settings):
            assert isinstance(container.get_publish_record_store(), InMemoryPublishRecordStore)

    def test_unknown_record_store(self, mock_settings):
        mock_settings.record_store_backend = "mongo"
        with patch("app.container.settings", mock_settings):
            with pytest.raises(RuntimeError, match="RECORD_STORE_BACKEND"):
                container.get_publish_record_store()

    def test_orchestrator_chain_and_singleton(self, mock_settings):
        mock_settings.play_backend = "sandbox"
        mock_settings.record_store_backend = "memory"
        with patch("app.container.settings", mock_settings):
            a = container.get_publish_orchestrator()
            b = container.get_publish_orchestrator()
        assert isinstance(a, PublishOrchestrator)
        assert a is b
