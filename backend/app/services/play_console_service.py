"""
Play Console service — the individual publish steps.

Wraps a PlayPublishingClient with the per-step contracts the publish
orchestrator relies on:
- validate_credentials: probe access with a throwaway edit
- open_edit / upload_artifact / update_listing / assign_track / commit_edit
"""
import logging
from typing import Any, Dict

from app.clients.play_base import Credentials, PlayPublishingClient
from app.core.constants.publishing import (
    RELEASE_STATUS_COMPLETED,
    SHORT_DESCRIPTION_LIMIT,
    TITLE_LIMIT,
    VALID_TRACKS,
)
from app.core.exceptions import (
    AuthorizationError,
    InternalError,
    NotFoundError,
    PlatformError,
    PublisherException,
    UploadError,
    ValidationError,
)
from app.schemas.publishing import (
    CredentialValidation,
    EditSession,
    TrackAssignment,
    UploadedArtifact,
)

logger = logging.getLogger("play_console_service")


def validate_track(track: str) -> str:
    if track not in VALID_TRACKS:
        raise ValidationError(
            f"Invalid track {track!r}; expected one of: {', '.join(VALID_TRACKS)}"
        )
    return track


class PlayConsoleService:
    def __init__(self, client: PlayPublishingClient) -> None:
        self._client = client

    async def get_access_token(self, credentials: Credentials) -> str:
        return await self._client.get_access_token(credentials)

    # ------------------------------------------------------------------
    # Credential validation
    # ------------------------------------------------------------------

    async def validate_credentials(
        self, credentials: Credentials, package_name: str
    ) -> CredentialValidation:
        """
        Check that credentials can publish to package_name.

        The platform has no read-only permission check, so access is
        probed by opening a throwaway edit and deleting it again.

        Expected denials come back as valid=False. Malformed credentials
        (ValidationError) and transport failures (PlatformError without an
        upstream status) are raised.
        """
        try:
            token = await self._client.get_access_token(credentials)
            details = await self._read_details(token, package_name)
        except (AuthorizationError, NotFoundError) as exc:
            return CredentialValidation(
                valid=False, error=f"Invalid credentials or package name: {exc.message}"
            )
        except PlatformError as exc:
            if exc.upstream_status is None:
                raise
            return CredentialValidation(
                valid=False, error=f"Invalid credentials or package name: {exc.message}"
            )

        return CredentialValidation(
            valid=True,
            account_info={
                "packageName": details.get("packageName", package_name),
                "defaultLanguage": details.get("defaultLanguage"),
                "contactEmail": details.get("contactEmail"),
            },
        )

    # ------------------------------------------------------------------
    # Edit steps
    # ------------------------------------------------------------------

    async def open_edit(self, token: str, package_name: str) -> EditSession:
        edit = await self._client.insert_edit(token, package_name)
        edit_id = edit.get("id")
        if not edit_id:
            raise PlatformError("Google Play", "edit insert returned no id")
        logger.info("edit opened package=%s edit_id=%s", package_name, edit_id)
        return EditSession(package_identifier=package_name, edit_id=edit_id)

    async def upload_artifact(
        self, token: str, session: EditSession, binary_path: str
    ) -> UploadedArtifact:
        data = await self._client.upload_apk(
            token, session.package_identifier, session.edit_id, binary_path
        )
        version_code = int(data.get("versionCode") or 0)
        if version_code <= 0:
            raise UploadError("Platform did not assign a versionCode")
        checksum = (data.get("binary") or {}).get("sha1")
        logger.info(
            "artifact uploaded edit_id=%s version_code=%s", session.edit_id, version_code
        )
        return UploadedArtifact(
            edit_id=session.edit_id, version_code=version_code, checksum=checksum
        )

    async def update_listing(
        self,
        token: str,
        session: EditSession,
        language: str,
        title: str,
        short_description: str,
        full_description: str,
    ) -> bool:
        """Best-effort: failures are logged and reported as False."""
        listing = {
            "title": (title or "")[:TITLE_LIMIT],
            "shortDescription": (short_description or "")[:SHORT_DESCRIPTION_LIMIT],
            "fullDescription": full_description or "",
        }
        try:
            await self._client.update_listing(
                token, session.package_identifier, session.edit_id, language, listing
            )
        except Exception as exc:
            logger.warning(
                "listing update failed edit_id=%s language=%s error=%s",
                session.edit_id,
                language,
                getattr(exc, "message", None) or exc,
            )
            return False
        return True

    async def assign_track(
        self,
        token: str,
        session: EditSession,
        artifact: UploadedArtifact,
        track: str,
    ) -> TrackAssignment:
        validate_track(track)
        if artifact.edit_id != session.edit_id:
            raise InternalError(
                f"versionCode {artifact.version_code} belongs to edit {artifact.edit_id}, "
                f"not {session.edit_id}"
            )
        await self._client.update_track(
            token,
            session.package_identifier,
            session.edit_id,
            track,
            artifact.version_code,
            RELEASE_STATUS_COMPLETED,
        )
        logger.info(
            "track assigned edit_id=%s track=%s version_code=%s",
            session.edit_id,
            track,
            artifact.version_code,
        )
        return TrackAssignment(
            edit_id=session.edit_id,
            track=track,
            version_code=artifact.version_code,
            status=RELEASE_STATUS_COMPLETED,
        )

    async def commit_edit(self, token: str, session: EditSession) -> Dict[str, Any]:
        data = await self._client.commit_edit(
            token, session.package_identifier, session.edit_id
        )
        logger.info("edit committed package=%s edit_id=%s", session.package_identifier, session.edit_id)
        return data

    # ------------------------------------------------------------------
    # Other operations
    # ------------------------------------------------------------------

    async def _read_details(self, token: str, package_name: str) -> Dict[str, Any]:
        """Open a throwaway edit, read app details, then discard the edit."""
        edit = await self._client.insert_edit(token, package_name)
        try:
            return await self._client.get_app_details(token, package_name, edit["id"])
        finally:
            try:
                await self._client.delete_edit(token, package_name, edit["id"])
            except PublisherException as exc:
                # Left-over probe edits are inert drafts on the platform
                logger.warning("probe edit delete failed edit_id=%s error=%s", edit["id"], exc.message)

    async def get_app_status(self, credentials: Credentials, package_name: str) -> Dict[str, Any]:
        token = await self._client.get_access_token(credentials)
        details = await self._read_details(token, package_name)
        return {
            "packageName": details.get("packageName", package_name),
            "defaultLanguage": details.get("defaultLanguage"),
            "contactEmail": details.get("contactEmail"),
            "contactPhone": details.get("contactPhone"),
        }
