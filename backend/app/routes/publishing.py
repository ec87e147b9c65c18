"""
Publishing routes — one-click Google Play publishing.

Provides:
- POST /publishing/publish-to-play-store          – publish with a service-account key
- GET  /publishing/authorize                      – start developer OAuth
- GET  /publishing/oauth/callback                 – OAuth redirect target
- POST /publishing/validate-authorization         – check session access to a package
- POST /publishing/publish                        – publish with an OAuth session
- GET  /publishing/status/{session_id}/{package}  – app status via session
- GET  /publishing/onboarding-guide               – static onboarding guide
"""
import logging
import secrets
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse

from app.clients.google_play_client import GooglePlayClient
from app.container import (
    get_google_play_client,
    get_play_console_service,
    get_publish_orchestrator,
    get_session_store,
)
from app.core.constants.publishing import (
    CONSOLE_URL_TEMPLATE,
    DEFAULT_TRACK,
    SHORT_DESCRIPTION_LIMIT,
    STATUS_PUBLISHED,
)
from app.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PublishFailedError,
    PublisherException,
    SessionError,
    ValidationError,
)
from app.db.session_store import RedisSessionStore
from app.schemas.publishing import (
    AppStatusResponse,
    AuthorizeResponse,
    PublishRequest,
    PublishToPlayStoreRequest,
    PublishToPlayStoreResponse,
    SessionPublishRequest,
    SessionPublishResponse,
    ValidateAuthorizationRequest,
    ValidateAuthorizationResponse,
)
from app.services.play_console_service import PlayConsoleService
from app.services.publish_orchestrator import PublishOrchestrator, PublishStage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/publishing", tags=["publishing"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require(payload: Any, fields: tuple[str, ...]) -> None:
    missing = [name for name in fields if not getattr(payload, name)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _failure_status(exc: PublishFailedError) -> int:
    """400 for bad input and rejected credentials, 500 for everything else."""
    if isinstance(exc.cause, ValidationError):
        return 400
    if exc.stage == PublishStage.VALIDATING.value and isinstance(
        exc.cause, (AuthorizationError, NotFoundError)
    ):
        return 400
    return 500


def _failure_response(exc: PublishFailedError) -> JSONResponse:
    return JSONResponse(
        status_code=_failure_status(exc),
        content={"success": False, "error": exc.message, "failedStage": exc.stage},
    )


def _load_session(store: RedisSessionStore, session_id: str) -> Dict[str, Any]:
    session = store.get_session(session_id)
    if not session:
        raise SessionError("Invalid or expired session. Please re-authorize.")
    return session


# ---------------------------------------------------------------------------
# Service-account publishing
# ---------------------------------------------------------------------------

@router.post("/publish-to-play-store", response_model=PublishToPlayStoreResponse)
async def publish_to_play_store(
    payload: PublishToPlayStoreRequest = Body(...),
    orchestrator: PublishOrchestrator = Depends(get_publish_orchestrator),
):
    """Build a WebView APK for payload.url and publish it in one call."""
    _require(payload, ("url", "appName", "serviceAccountKey", "packageName"))

    description = payload.description or f"Mobile app for {payload.appName}"
    request = PublishRequest(
        source_url=payload.url,
        app_title=payload.appName,
        short_description=description[:SHORT_DESCRIPTION_LIMIT],
        full_description=description,
        package_identifier=payload.packageName,
        credentials=payload.serviceAccountKey,
        track=payload.track or DEFAULT_TRACK,
        icon_url=payload.iconUrl,
        category=payload.category,
    )

    try:
        result = await orchestrator.publish(request)
    except PublishFailedError as exc:
        return _failure_response(exc)

    return PublishToPlayStoreResponse(
        success=True,
        publishId=result.publish_id,
        versionCode=result.version_code,
        track=result.track,
        status=STATUS_PUBLISHED,
        consoleUrl=result.console_url,
        message="App successfully published to Google Play Console",
        timeline=result.timeline,
    )


# ---------------------------------------------------------------------------
# OAuth session publishing
# ---------------------------------------------------------------------------

@router.get("/authorize", response_model=AuthorizeResponse)
async def authorize(
    google: GooglePlayClient = Depends(get_google_play_client),
    sessions: RedisSessionStore = Depends(get_session_store),
):
    state = secrets.token_urlsafe(16)
    url = google.authorization_url(state=state)
    sessions.save_oauth_state(state)
    return AuthorizeResponse(
        success=True,
        authorizationUrl=url,
        message="Please authorize your Google Play Developer account",
    )


@router.get("/oauth/callback")
async def oauth_callback(
    code: str | None = Query(None),
    state: str | None = Query(None),
    google: GooglePlayClient = Depends(get_google_play_client),
    sessions: RedisSessionStore = Depends(get_session_store),
):
    if not code:
        raise ValidationError("Authorization code not provided")
    if not state or not sessions.consume_oauth_state(state):
        raise ValidationError("Invalid or expired OAuth state")

    try:
        tokens = await google.exchange_code_for_tokens(code)
    except AuthorizationError:
        return JSONResponse(
            status_code=401,
            content={"success": False, "error": "Failed to exchange authorization code"},
        )
    except PublisherException as exc:
        logger.error("oauth callback failed error=%s", exc.message)
        return RedirectResponse("/publish.html?error=authorization_failed", status_code=302)

    session_id = sessions.create_session(tokens)
    return RedirectResponse(
        f"/publish.html?authorized=true&session={session_id}", status_code=302
    )


@router.post("/validate-authorization", response_model=ValidateAuthorizationResponse)
async def validate_authorization(
    payload: ValidateAuthorizationRequest = Body(...),
    sessions: RedisSessionStore = Depends(get_session_store),
    play: PlayConsoleService = Depends(get_play_console_service),
):
    _require(payload, ("sessionId", "packageName"))
    session = _load_session(sessions, payload.sessionId)

    validation = await play.validate_credentials(session["tokens"], payload.packageName)
    if not validation.valid:
        raise AuthorizationError(
            "No access to the specified package name or invalid developer account"
        )

    return ValidateAuthorizationResponse(
        success=True,
        message="Authorization validated successfully",
        packageName=payload.packageName,
        developerAccount=validation.account_info,
    )


@router.post("/publish", response_model=SessionPublishResponse)
async def publish_with_session(
    payload: SessionPublishRequest = Body(...),
    sessions: RedisSessionStore = Depends(get_session_store),
    orchestrator: PublishOrchestrator = Depends(get_publish_orchestrator),
):
    _require(payload, ("sessionId", "packageName", "appName", "websiteUrl"))
    session = _load_session(sessions, payload.sessionId)

    description = payload.appDescription or f"Mobile app for {payload.appName}"
    request = PublishRequest(
        source_url=payload.websiteUrl,
        app_title=payload.appName,
        short_description=description[:SHORT_DESCRIPTION_LIMIT],
        full_description=description,
        package_identifier=payload.packageName,
        credentials=session["tokens"],
        track=payload.track or DEFAULT_TRACK,
        icon_url=payload.iconUrl,
    )

    try:
        result = await orchestrator.publish(request)
    except PublishFailedError as exc:
        return _failure_response(exc)

    return SessionPublishResponse(
        success=True,
        message="App published successfully to your Google Play Console",
        editId=result.edit_id,
        versionCode=result.version_code,
        track=result.track,
        packageName=result.package_identifier,
        developerConsoleUrl=CONSOLE_URL_TEMPLATE.format(package_name=result.package_identifier),
    )


@router.get("/status/{session_id}/{package_name}", response_model=AppStatusResponse)
async def app_status(
    session_id: str,
    package_name: str,
    sessions: RedisSessionStore = Depends(get_session_store),
    play: PlayConsoleService = Depends(get_play_console_service),
):
    session = _load_session(sessions, session_id)
    status = await play.get_app_status(session["tokens"], package_name)
    return AppStatusResponse(success=True, status=status)


ONBOARDING_GUIDE: Dict[str, Any] = {
    "title": "Google Play Developer Authorization Guide",
    "subtitle": "Secure OAuth-based publishing workflow",
    "steps": [
        {
            "step": 1,
            "title": "Google Play Developer Account Required",
            "description": "You must have an active Google Play Developer account to use the publishing service",
            "requirements": [
                "Active Google Play Developer account",
                "Publishing permission on the target package",
                "The package created in Play Console before the first publish",
            ],
        },
        {
            "step": 2,
            "title": "One-Click Authorization",
            "description": 'Click "Authorize with Google Play" to connect your developer account',
            "process": [
                "Sign in on Google's OAuth screen with your developer account",
                "Grant permission to publish on your behalf",
                "You are redirected back with authorization confirmed",
            ],
        },
        {
            "step": 3,
            "title": "Publishing",
            "description": "Once authorized, apps are uploaded straight to your Play Console",
            "tracks": ["internal", "alpha", "beta", "production"],
        },
        {
            "step": 4,
            "title": "Google's Review Process",
            "description": "Published releases go through Google's standard review",
        },
    ],
    "troubleshooting": {
        "Not a Google Play Developer": "An active Google Play Developer account is required",
        "Authorization failed": "Sign in with the Google account that has developer access",
        "Access denied": "Check that the account has publishing permission on the package",
    },
}


@router.get("/onboarding-guide")
async def onboarding_guide():
    return {"success": True, "guide": ONBOARDING_GUIDE}
