"""
Sandbox publishing client — in-process stand-in for the Play platform.

Simulates edit sessions, version codes and commits without any network
access. Selected with PLAY_BACKEND=sandbox and used by the end-to-end
tests. Failures can be injected per step.
"""
import hashlib
import itertools
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Set

from app.clients.play_base import Credentials, PlayPublishingClient
from app.clients.google_play_client import parse_credentials
from app.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PlatformError,
    UploadError,
)

logger = logging.getLogger("sandbox_play_client")

SERVICE = "Sandbox Play"


class SandboxPlayClient(PlayPublishingClient):
    def __init__(
        self,
        rejected_credentials: Optional[Set[str]] = None,
        unregistered_packages: Optional[Set[str]] = None,
        fail_steps: Optional[Set[str]] = None,
    ) -> None:
        # rejected_credentials holds client_email values (or access tokens)
        self.rejected_credentials = set(rejected_credentials or ())
        self.unregistered_packages = set(unregistered_packages or ())
        # Step names: insert_edit, upload_apk, update_listing, update_track, commit_edit
        self.fail_steps = set(fail_steps or ())
        self.open_edits: Dict[str, Dict[str, Any]] = {}
        self.committed_edits: Dict[str, Dict[str, Any]] = {}
        self.deleted_edits: Set[str] = set()
        self._version_codes: Dict[str, itertools.count] = {}

    async def get_access_token(self, credentials: Credentials) -> str:
        creds = parse_credentials(credentials)
        principal = creds.get("client_email") or creds.get("access_token")
        if principal in self.rejected_credentials:
            raise AuthorizationError(f"Credential rejected for {principal}")
        return f"sandbox-token:{principal}"

    def _check_package(self, package_name: str) -> None:
        if package_name in self.unregistered_packages:
            raise NotFoundError(f"Package {package_name} is not registered")

    def _maybe_fail(self, step: str) -> None:
        if step in self.fail_steps:
            if step == "upload_apk":
                raise UploadError(f"injected failure at {step}", 500)
            raise PlatformError(SERVICE, f"injected failure at {step}", 500)

    def _edit(self, package_name: str, edit_id: str) -> Dict[str, Any]:
        edit = self.open_edits.get(edit_id)
        if edit is None or edit["package_name"] != package_name:
            raise NotFoundError(f"Edit {edit_id} is not open for {package_name}")
        return edit

    async def get_app_details(self, token: str, package_name: str, edit_id: str) -> Dict[str, Any]:
        self._edit(package_name, edit_id)
        return {"packageName": package_name, "defaultLanguage": "en-US"}

    async def insert_edit(self, token: str, package_name: str) -> Dict[str, Any]:
        self._check_package(package_name)
        self._maybe_fail("insert_edit")
        edit_id = uuid.uuid4().hex
        self.open_edits[edit_id] = {
            "package_name": package_name,
            "apks": {},
            "listings": {},
            "tracks": {},
        }
        logger.info("sandbox edit opened package=%s edit_id=%s", package_name, edit_id)
        return {"id": edit_id}

    async def delete_edit(self, token: str, package_name: str, edit_id: str) -> None:
        self._edit(package_name, edit_id)
        del self.open_edits[edit_id]
        self.deleted_edits.add(edit_id)

    async def upload_apk(
        self, token: str, package_name: str, edit_id: str, apk_path: str
    ) -> Dict[str, Any]:
        edit = self._edit(package_name, edit_id)
        self._maybe_fail("upload_apk")
        sha1 = hashlib.sha1(Path(apk_path).read_bytes()).hexdigest()
        counter = self._version_codes.setdefault(package_name, itertools.count(1))
        version_code = next(counter)
        edit["apks"][version_code] = sha1
        return {"versionCode": version_code, "binary": {"sha1": sha1}}

    async def update_listing(
        self,
        token: str,
        package_name: str,
        edit_id: str,
        language: str,
        listing: Dict[str, Any],
    ) -> Dict[str, Any]:
        edit = self._edit(package_name, edit_id)
        self._maybe_fail("update_listing")
        edit["listings"][language] = dict(listing)
        return {"language": language, **listing}

    async def update_track(
        self,
        token: str,
        package_name: str,
        edit_id: str,
        track: str,
        version_code: int,
        status: str,
    ) -> Dict[str, Any]:
        edit = self._edit(package_name, edit_id)
        self._maybe_fail("update_track")
        if version_code not in edit["apks"]:
            raise PlatformError(SERVICE, f"versionCode {version_code} not in edit {edit_id}", 400)
        release = {"versionCodes": [str(version_code)], "status": status}
        edit["tracks"][track] = release
        return {"track": track, "releases": [release]}

    async def commit_edit(self, token: str, package_name: str, edit_id: str) -> Dict[str, Any]:
        edit = self._edit(package_name, edit_id)
        self._maybe_fail("commit_edit")
        self.committed_edits[edit_id] = self.open_edits.pop(edit_id)
        logger.info("sandbox edit committed package=%s edit_id=%s", package_name, edit_id)
        return {"id": edit_id}
