"""
Publish orchestrator — website URL to a committed Google Play release.

Runs the publish steps strictly in order:

    validating -> building -> editing -> uploading -> listing
    -> assigning -> committing -> published

The first failing step moves the run to "failed" and aborts; only the
listing step is best-effort. The temporary APK is deleted on every exit
path, and a publish record is handed to the record store after the
outcome is known.
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from app.core.constants.publishing import (
    CONSOLE_URL_TEMPLATE,
    ESTIMATED_LIVE,
    ESTIMATED_REVIEW,
    PLATFORM_GOOGLE_PLAY,
    STATUS_FAILED,
    STATUS_PUBLISHED,
)
from app.core.exceptions import (
    AuthorizationError,
    InternalError,
    PlatformError,
    PublisherException,
    PublishFailedError,
)
from app.db.publish_record_store import PublishRecordStore
from app.schemas.publishing import PublishRequest, PublishResult, PublishTimeline
from app.services.package_builder import WebViewPackageBuilder, remove_artifact
from app.services.play_console_service import PlayConsoleService, validate_track

logger = logging.getLogger("publish_orchestrator")


class PublishStage(str, Enum):
    VALIDATING = "validating"
    BUILDING = "building"
    EDITING = "editing"
    UPLOADING = "uploading"
    LISTING = "listing"
    ASSIGNING = "assigning"
    COMMITTING = "committing"
    PUBLISHED = "published"
    FAILED = "failed"


STAGE_LABELS: Dict[PublishStage, str] = {
    PublishStage.VALIDATING: "Validation failed",
    PublishStage.BUILDING: "Package build failed",
    PublishStage.EDITING: "Failed to create edit session",
    PublishStage.UPLOADING: "Failed to upload APK",
    PublishStage.LISTING: "Failed to update listing",
    PublishStage.ASSIGNING: "Failed to assign to track",
    PublishStage.COMMITTING: "Failed to commit edit",
}


class _PublishRun:
    """Mutable progress of one publish call."""

    def __init__(self, request: PublishRequest) -> None:
        self.request = request
        self.stage = PublishStage.VALIDATING
        self.failed_stage: Optional[PublishStage] = None
        self.binary_path: Optional[str] = None
        self.edit_id: Optional[str] = None
        self.version_code: Optional[int] = None


class PublishOrchestrator:
    def __init__(
        self,
        play: PlayConsoleService,
        builder: WebViewPackageBuilder,
        record_store: Optional[PublishRecordStore] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._play = play
        self._builder = builder
        self._records = record_store
        self._timeout = timeout_seconds

    async def publish(self, request: PublishRequest) -> PublishResult:
        """
        Publish request.source_url as an app on request.track.

        Raises PublishFailedError carrying the failed stage and the cause.
        """
        run = _PublishRun(request)
        try:
            if self._timeout:
                result = await asyncio.wait_for(self._run(run), timeout=self._timeout)
            else:
                result = await self._run(run)
        except asyncio.TimeoutError:
            failure = PublishFailedError(
                run.stage.value,
                PlatformError(
                    "Google Play",
                    f"publish timed out after {self._timeout:g}s during {run.stage.value}",
                ),
                STAGE_LABELS.get(run.stage),
            )
            run.failed_stage = run.stage
            run.stage = PublishStage.FAILED
            logger.error(
                "publish failed package=%s stage=%s error=%s",
                request.package_identifier,
                failure.stage,
                failure.message,
            )
            await self._record(run, error=failure.message)
            raise failure
        except PublishFailedError as failure:
            await self._record(run, error=failure.message)
            raise

        await self._record(run, result=result)
        return result

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _enter(self, run: _PublishRun, stage: PublishStage) -> None:
        run.stage = stage
        logger.info(
            "publish stage=%s package=%s", stage.value, run.request.package_identifier
        )

    async def _run(self, run: _PublishRun) -> PublishResult:
        request = run.request
        package = request.package_identifier
        try:
            # --- validating ---
            self._enter(run, PublishStage.VALIDATING)
            validate_track(request.track)
            validation = await self._play.validate_credentials(request.credentials, package)
            if not validation.valid:
                raise AuthorizationError(f"Invalid credentials: {validation.error}")
            token = await self._play.get_access_token(request.credentials)

            # --- building ---
            self._enter(run, PublishStage.BUILDING)
            built = await self._builder.build_package(
                url=request.source_url,
                app_name=request.app_title,
                description=request.full_description,
                icon_url=request.icon_url,
                package_name=package,
                category=request.category,
            )
            run.binary_path = built.binary_path

            # --- editing ---
            self._enter(run, PublishStage.EDITING)
            session = await self._play.open_edit(token, package)
            run.edit_id = session.edit_id

            # --- uploading ---
            self._enter(run, PublishStage.UPLOADING)
            artifact = await self._play.upload_artifact(token, session, built.binary_path)
            run.version_code = artifact.version_code

            # --- listing (best-effort) ---
            self._enter(run, PublishStage.LISTING)
            listing_updated = await self._play.update_listing(
                token,
                session,
                request.language,
                request.app_title,
                request.short_description,
                request.full_description,
            )

            # --- assigning ---
            self._enter(run, PublishStage.ASSIGNING)
            assignment = await self._play.assign_track(token, session, artifact, request.track)

            # --- committing ---
            self._enter(run, PublishStage.COMMITTING)
            await self._play.commit_edit(token, session)

            self._enter(run, PublishStage.PUBLISHED)
        except PublisherException as exc:
            raise self._fail(run, exc) from exc
        except Exception as exc:
            logger.exception("unexpected publish error stage=%s", run.stage.value)
            raise self._fail(run, InternalError(f"Unexpected error during {run.stage.value}")) from exc
        finally:
            self._cleanup(run)

        return PublishResult(
            publish_id=f"{package}_{int(time.time() * 1000)}",
            package_identifier=package,
            edit_id=session.edit_id,
            version_code=assignment.version_code,
            track=assignment.track,
            status=STATUS_PUBLISHED,
            console_url=CONSOLE_URL_TEMPLATE.format(package_name=package),
            listing_updated=listing_updated,
            timeline=PublishTimeline(
                submitted=datetime.now(timezone.utc).isoformat(),
                estimatedReview=ESTIMATED_REVIEW,
                estimatedLive=ESTIMATED_LIVE,
            ),
        )

    def _fail(self, run: _PublishRun, cause: PublisherException) -> PublishFailedError:
        run.failed_stage = run.stage
        failure = PublishFailedError(run.stage.value, cause, STAGE_LABELS.get(run.stage))
        run.stage = PublishStage.FAILED
        logger.error(
            "publish failed package=%s stage=%s error=%s",
            run.request.package_identifier,
            failure.stage,
            failure.message,
        )
        return failure

    def _cleanup(self, run: _PublishRun) -> None:
        try:
            remove_artifact(run.binary_path)
        except OSError as exc:
            logger.warning(
                "failed to delete temporary artifact path=%s error=%s", run.binary_path, exc
            )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def _record(
        self,
        run: _PublishRun,
        result: Optional[PublishResult] = None,
        error: Optional[str] = None,
    ) -> None:
        """Fire-and-forget history row; never changes the publish outcome."""
        if self._records is None:
            return
        request = run.request
        record: Dict[str, Any] = {
            "platform": PLATFORM_GOOGLE_PLAY,
            "package_name": request.package_identifier,
            "source_url": request.source_url,
            "track": request.track,
            "edit_id": run.edit_id,
            "version_code": run.version_code,
        }
        if result is not None:
            record.update(
                publish_id=result.publish_id,
                status=STATUS_PUBLISHED,
                message=f"Published to {result.track} track",
            )
        else:
            record.update(
                publish_id=f"{request.package_identifier}_{int(time.time() * 1000)}",
                status=STATUS_FAILED,
                failed_stage=run.failed_stage.value if run.failed_stage else None,
                error=error,
            )
        try:
            await self._records.record_publish(record)
        except Exception as exc:
            logger.warning(
                "publish record not stored package=%s error=%s",
                request.package_identifier,
                exc,
            )
