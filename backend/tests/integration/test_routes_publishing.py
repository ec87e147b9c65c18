"""
Integration tests for publishing routes.

Tests POST /api/v1/publishing/publish-to-play-store and the OAuth
session routes (authorize, callback, validate-authorization, publish,
status, onboarding-guide). Services are replaced through
app.dependency_overrides.
"""
import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from app.container import (
    get_google_play_client,
    get_play_console_service,
    get_publish_orchestrator,
    get_session_store,
)
from app.core.exceptions import (
    AuthorizationError,
    PlatformError,
    PublishFailedError,
    UploadError,
    ValidationError,
)
from app.db.session_store import RedisSessionStore
from app.schemas.publishing import CredentialValidation, PublishResult, PublishTimeline


PUBLISH_URL = "/api/v1/publishing/publish-to-play-store"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _result(**overrides) -> PublishResult:
    data = dict(
        publish_id="com.example.demo_1700000000000",
        package_identifier="com.example.demo",
        edit_id="edit-1",
        version_code=3,
        track="internal",
        status="published",
        console_url="https://play.google.com/console/developers/com.example.demo/app-bundle",
        listing_updated=True,
        timeline=PublishTimeline(
            submitted="2026-01-01T00:00:00+00:00",
            estimatedReview="1-3 business days",
            estimatedLive="2-4 business days",
        ),
    )
    data.update(overrides)
    return PublishResult(**data)


@pytest.fixture
def mock_google():
    google = MagicMock()
    google.authorization_url = MagicMock(return_value="https://accounts.test/auth?client_id=x")
    google.exchange_code_for_tokens = AsyncMock(return_value={"access_token": "ya29.x"})
    return google


@pytest.fixture
def mock_play_service():
    svc = MagicMock()
    svc.validate_credentials = AsyncMock(
        return_value=CredentialValidation(valid=True, account_info={"packageName": "com.example.demo"})
    )
    svc.get_app_status = AsyncMock(return_value={"packageName": "com.example.demo"})
    return svc


@pytest.fixture
def session_store(mock_redis):
    return RedisSessionStore(mock_redis)


@pytest.fixture
def client(mock_orchestrator, mock_google, mock_play_service, session_store):
    """Create a test client with every publishing dependency overridden."""
    from app.main import app

    app.dependency_overrides[get_publish_orchestrator] = lambda: mock_orchestrator
    app.dependency_overrides[get_google_play_client] = lambda: mock_google
    app.dependency_overrides[get_play_console_service] = lambda: mock_play_service
    app.dependency_overrides[get_session_store] = lambda: session_store
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def publish_body(sample_service_account_key):
    return {
        "url": "https://example.com",
        "appName": "Demo App",
        "description": "Demo",
        "serviceAccountKey": json.dumps(sample_service_account_key),
        "packageName": "com.example.demo",
        "track": "internal",
    }


# ---------------------------------------------------------------------------
# POST /publish-to-play-store
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestPublishToPlayStore:

    def test_success(self, client, mock_orchestrator, publish_body):
        mock_orchestrator.publish.return_value = _result()

        response = client.post(PUBLISH_URL, json=publish_body)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "published"
        assert data["versionCode"] > 0
        assert data["track"] == "internal"
        assert data["publishId"] == "com.example.demo_1700000000000"
        assert data["consoleUrl"].startswith("https://play.google.com/console/")
        assert data["timeline"]["estimatedReview"] == "1-3 business days"

    def test_request_mapping(self, client, mock_orchestrator, publish_body):
        mock_orchestrator.publish.return_value = _result()
        del publish_body["track"]
        del publish_body["description"]

        client.post(PUBLISH_URL, json=publish_body)

        request = mock_orchestrator.publish.call_args.args[0]
        assert request.source_url == "https://example.com"
        assert request.track == "internal"
        assert request.full_description == "Mobile app for Demo App"
        assert request.package_identifier == "com.example.demo"

    def test_short_description_truncated(self, client, mock_orchestrator, publish_body):
        mock_orchestrator.publish.return_value = _result()
        publish_body["description"] = "x" * 200

        client.post(PUBLISH_URL, json=publish_body)

        request = mock_orchestrator.publish.call_args.args[0]
        assert len(request.short_description) == 80
        assert len(request.full_description) == 200

    def test_key_as_object(self, client, mock_orchestrator, publish_body, sample_service_account_key):
        mock_orchestrator.publish.return_value = _result()
        publish_body["serviceAccountKey"] = sample_service_account_key

        response = client.post(PUBLISH_URL, json=publish_body)

        assert response.status_code == 200

    def test_missing_fields(self, client, mock_orchestrator):
        response = client.post(PUBLISH_URL, json={"appName": "Demo", "packageName": "com.x.y"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert "url" in data["error"]
        assert "serviceAccountKey" in data["error"]
        mock_orchestrator.publish.assert_not_awaited()

    def test_invalid_track(self, client, mock_orchestrator, publish_body):
        mock_orchestrator.publish.side_effect = PublishFailedError(
            "validating",
            ValidationError("Invalid track 'nightly'; expected one of: internal, alpha, beta, production"),
            "Validation failed",
        )
        publish_body["track"] = "nightly"

        response = client.post(PUBLISH_URL, json=publish_body)

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert "track" in data["error"]

    def test_unreachable_source_url(self, client, mock_orchestrator, publish_body):
        mock_orchestrator.publish.side_effect = PublishFailedError(
            "building",
            ValidationError("Source URL https://nonexistent-site-xyz.invalid is unreachable"),
            "Package build failed",
        )

        response = client.post(PUBLISH_URL, json=publish_body)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Package build failed")

    def test_rejected_credentials(self, client, mock_orchestrator, publish_body):
        mock_orchestrator.publish.side_effect = PublishFailedError(
            "validating", AuthorizationError("Invalid credentials: rejected"), "Validation failed"
        )

        response = client.post(PUBLISH_URL, json=publish_body)

        assert response.status_code == 400

    def test_upload_failure(self, client, mock_orchestrator, publish_body):
        mock_orchestrator.publish.side_effect = PublishFailedError(
            "uploading", UploadError("reset by peer"), "Failed to upload APK"
        )

        response = client.post(PUBLISH_URL, json=publish_body)

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["failedStage"] == "uploading"

    def test_commit_failure(self, client, mock_orchestrator, publish_body):
        mock_orchestrator.publish.side_effect = PublishFailedError(
            "committing", PlatformError("Google Play", "conflict", 409), "Failed to commit edit"
        )

        response = client.post(PUBLISH_URL, json=publish_body)

        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to commit edit")

    def test_key_never_echoed(self, client, mock_orchestrator, publish_body):
        mock_orchestrator.publish.side_effect = PublishFailedError(
            "committing", PlatformError("Google Play", "conflict", 409), "Failed to commit edit"
        )

        response = client.post(PUBLISH_URL, json=publish_body)

        assert "PRIVATE KEY" not in response.text


# ---------------------------------------------------------------------------
# OAuth session routes
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestAuthorize:

    def test_authorize_returns_url_and_stores_state(self, client, mock_google, mock_redis):
        response = client.get("/api/v1/publishing/authorize")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["authorizationUrl"].startswith("https://accounts.test/auth")
        state = mock_google.authorization_url.call_args.kwargs["state"]
        assert f"publisher:session:state:{state}" in mock_redis.data


@pytest.mark.integration
class TestOAuthCallback:

    def test_missing_code(self, client):
        response = client.get("/api/v1/publishing/oauth/callback")
        assert response.status_code == 400

    def test_missing_state(self, client, mock_google):
        response = client.get("/api/v1/publishing/oauth/callback?code=abc")

        assert response.status_code == 400
        assert "state" in response.json()["error"]
        mock_google.exchange_code_for_tokens.assert_not_awaited()

    def test_unknown_state(self, client, mock_google):
        response = client.get("/api/v1/publishing/oauth/callback?code=abc&state=forged")

        assert response.status_code == 400
        mock_google.exchange_code_for_tokens.assert_not_awaited()

    def test_state_is_single_use(self, client, session_store):
        session_store.save_oauth_state("s1")
        first = client.get(
            "/api/v1/publishing/oauth/callback?code=abc&state=s1", follow_redirects=False
        )
        second = client.get(
            "/api/v1/publishing/oauth/callback?code=abc&state=s1", follow_redirects=False
        )

        assert first.status_code == 302
        assert second.status_code == 400

    def test_creates_session_and_redirects(self, client, mock_redis, session_store):
        session_store.save_oauth_state("s1")
        response = client.get(
            "/api/v1/publishing/oauth/callback?code=abc&state=s1", follow_redirects=False
        )

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("/publish.html?authorized=true&session=session_")
        assert len(mock_redis.data) == 1

    def test_exchange_rejected(self, client, mock_google, session_store):
        session_store.save_oauth_state("s1")
        mock_google.exchange_code_for_tokens.side_effect = AuthorizationError("invalid_grant")

        response = client.get("/api/v1/publishing/oauth/callback?code=bad&state=s1", follow_redirects=False)

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_exchange_platform_failure_redirects(self, client, mock_google, session_store):
        session_store.save_oauth_state("s1")
        mock_google.exchange_code_for_tokens.side_effect = PlatformError("Google Play", "down")

        response = client.get("/api/v1/publishing/oauth/callback?code=x&state=s1", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/publish.html?error=authorization_failed"


@pytest.mark.integration
class TestValidateAuthorization:

    def test_valid(self, client, session_store):
        session_id = session_store.create_session({"access_token": "ya29.x"})

        response = client.post(
            "/api/v1/publishing/validate-authorization",
            json={"sessionId": session_id, "packageName": "com.example.demo"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["packageName"] == "com.example.demo"

    def test_missing_fields(self, client):
        response = client.post("/api/v1/publishing/validate-authorization", json={})
        assert response.status_code == 400

    def test_unknown_session(self, client):
        response = client.post(
            "/api/v1/publishing/validate-authorization",
            json={"sessionId": "session_nope", "packageName": "com.example.demo"},
        )
        assert response.status_code == 401

    def test_no_access(self, client, session_store, mock_play_service):
        mock_play_service.validate_credentials.return_value = CredentialValidation(
            valid=False, error="denied"
        )
        session_id = session_store.create_session({"access_token": "ya29.x"})

        response = client.post(
            "/api/v1/publishing/validate-authorization",
            json={"sessionId": session_id, "packageName": "com.example.demo"},
        )

        assert response.status_code == 403
        assert "No access" in response.json()["error"]


@pytest.mark.integration
class TestSessionPublish:

    def test_publish_with_session(self, client, session_store, mock_orchestrator):
        mock_orchestrator.publish.return_value = _result()
        session_id = session_store.create_session({"access_token": "ya29.x"})

        response = client.post(
            "/api/v1/publishing/publish",
            json={
                "sessionId": session_id,
                "packageName": "com.example.demo",
                "appName": "Demo App",
                "websiteUrl": "https://example.com",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["editId"] == "edit-1"
        assert data["versionCode"] == 3
        request = mock_orchestrator.publish.call_args.args[0]
        assert request.credentials == {"access_token": "ya29.x"}

    def test_expired_session(self, client, mock_orchestrator):
        response = client.post(
            "/api/v1/publishing/publish",
            json={
                "sessionId": "session_gone",
                "packageName": "com.example.demo",
                "appName": "Demo App",
                "websiteUrl": "https://example.com",
            },
        )

        assert response.status_code == 401
        mock_orchestrator.publish.assert_not_awaited()


@pytest.mark.integration
class TestStatusAndGuide:

    def test_status(self, client, session_store):
        session_id = session_store.create_session({"access_token": "ya29.x"})

        response = client.get(f"/api/v1/publishing/status/{session_id}/com.example.demo")

        assert response.status_code == 200
        assert response.json()["status"]["packageName"] == "com.example.demo"

    def test_onboarding_guide(self, client):
        response = client.get("/api/v1/publishing/onboarding-guide")

        assert response.status_code == 200
        guide = response.json()["guide"]
        assert len(guide["steps"]) == 4
