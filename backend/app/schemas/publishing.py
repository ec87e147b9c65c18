"""
Publishing schemas — publish pipeline payloads and HTTP bodies.

Internal models (PublishRequest, EditSession, UploadedArtifact,
TrackAssignment) are transient: they live for one publish call and are
never persisted by the pipeline itself.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from app.core.constants.publishing import DEFAULT_LISTING_LANGUAGE, DEFAULT_TRACK


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Pipeline models
# ---------------------------------------------------------------------------

class PublishRequest(BaseModel):
    source_url: str
    app_title: str
    short_description: str = ""
    full_description: str = ""
    package_identifier: str
    # Service-account key (JSON string or dict) or OAuth token dict
    credentials: Union[str, Dict[str, Any]]
    track: str = DEFAULT_TRACK
    language: str = DEFAULT_LISTING_LANGUAGE
    icon_url: Optional[str] = None
    category: Optional[str] = None


class EditSession(BaseModel):
    package_identifier: str
    edit_id: str
    created_at: datetime = Field(default_factory=_utcnow)


class UploadedArtifact(BaseModel):
    edit_id: str
    version_code: int
    checksum: Optional[str] = None


class TrackAssignment(BaseModel):
    edit_id: str
    track: str
    version_code: int
    status: str


class CredentialValidation(BaseModel):
    valid: bool
    error: Optional[str] = None
    account_info: Optional[Dict[str, Any]] = None


class BuiltPackage(BaseModel):
    binary_path: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PublishTimeline(BaseModel):
    submitted: str
    estimatedReview: str
    estimatedLive: str


class PublishResult(BaseModel):
    publish_id: str
    package_identifier: str
    edit_id: str
    version_code: int
    track: str
    status: str
    console_url: str
    listing_updated: bool
    timeline: PublishTimeline


# ---------------------------------------------------------------------------
# HTTP bodies
# ---------------------------------------------------------------------------

class PublishToPlayStoreRequest(BaseModel):
    """
    Body of POST /publish-to-play-store.

    Every field is optional at the schema level; the route reports the
    missing required ones in a single 400.
    """
    url: Optional[str] = None
    appName: Optional[str] = None
    description: Optional[str] = None
    serviceAccountKey: Optional[Union[str, Dict[str, Any]]] = None
    packageName: Optional[str] = None
    track: Optional[str] = None
    category: Optional[str] = None
    iconUrl: Optional[str] = None


class PublishToPlayStoreResponse(BaseModel):
    success: bool
    publishId: Optional[str] = None
    versionCode: Optional[int] = None
    track: Optional[str] = None
    status: Optional[str] = None
    consoleUrl: Optional[str] = None
    message: Optional[str] = None
    timeline: Optional[PublishTimeline] = None


class SessionPublishRequest(BaseModel):
    sessionId: Optional[str] = None
    packageName: Optional[str] = None
    appName: Optional[str] = None
    appDescription: Optional[str] = None
    websiteUrl: Optional[str] = None
    iconUrl: Optional[str] = None
    track: Optional[str] = None


class SessionPublishResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    editId: Optional[str] = None
    versionCode: Optional[int] = None
    track: Optional[str] = None
    packageName: Optional[str] = None
    developerConsoleUrl: Optional[str] = None


class ValidateAuthorizationRequest(BaseModel):
    sessionId: Optional[str] = None
    packageName: Optional[str] = None


class ValidateAuthorizationResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    packageName: Optional[str] = None
    developerAccount: Optional[Dict[str, Any]] = None


class AuthorizeResponse(BaseModel):
    success: bool
    authorizationUrl: str
    message: str


class AppStatusResponse(BaseModel):
    success: bool
    status: Dict[str, Any]
