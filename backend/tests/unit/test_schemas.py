"""
Unit tests for publishing schemas.
"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from app.schemas.publishing import (
    EditSession,
    PublishRequest,
    PublishToPlayStoreRequest,
)


pytestmark = pytest.mark.unit


class TestPublishRequest:

    def test_defaults(self, sample_service_account_key):
        request = PublishRequest(
            source_url="https://example.com",
            app_title="Demo",
            package_identifier="com.example.demo",
            credentials=sample_service_account_key,
        )
        assert request.track == "internal"
        assert request.language == "en-US"
        assert request.icon_url is None

    def test_credentials_required(self):
        with pytest.raises(PydanticValidationError):
            PublishRequest(
                source_url="https://example.com",
                app_title="Demo",
                package_identifier="com.example.demo",
            )


class TestEditSession:

    def test_created_at_is_aware(self):
        edit = EditSession(package_identifier="com.example.demo", edit_id="e1")
        assert edit.created_at.tzinfo is not None


class TestPublishToPlayStoreRequest:

    def test_all_fields_optional(self):
        body = PublishToPlayStoreRequest()
        assert body.url is None
        assert body.serviceAccountKey is None

    def test_service_account_key_as_object(self, sample_service_account_key):
        body = PublishToPlayStoreRequest(serviceAccountKey=sample_service_account_key)
        assert body.serviceAccountKey["client_email"].endswith("iam.gserviceaccount.com")
