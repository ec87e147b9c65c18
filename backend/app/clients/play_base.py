"""
Publishing platform client interface.

Two implementations, selected by settings.play_backend:
- GooglePlayClient: Android Publisher API v3 over httpx
- SandboxPlayClient: in-process double for local runs and tests
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Union

Credentials = Union[str, Dict[str, Any]]


class PlayPublishingClient(ABC):
    """
    Raw platform operations. Every call after insert_edit is scoped to an
    edit id; nothing is visible on the platform until commit_edit succeeds.

    Errors are reported as app.core.exceptions types:
    AuthorizationError, NotFoundError, UploadError, PlatformError.
    """

    @abstractmethod
    async def get_access_token(self, credentials: Credentials) -> str:
        """Exchange developer credentials for a bearer token."""
        ...

    @abstractmethod
    async def get_app_details(self, token: str, package_name: str, edit_id: str) -> Dict[str, Any]:
        """App details are only readable inside an open edit."""
        ...

    @abstractmethod
    async def insert_edit(self, token: str, package_name: str) -> Dict[str, Any]:
        """Open an edit session. Returns the platform edit resource ({"id": ...})."""
        ...

    @abstractmethod
    async def delete_edit(self, token: str, package_name: str, edit_id: str) -> None:
        ...

    @abstractmethod
    async def upload_apk(
        self, token: str, package_name: str, edit_id: str, apk_path: str
    ) -> Dict[str, Any]:
        """Upload a binary. Returns {"versionCode": int, "binary": {"sha1": str}}."""
        ...

    @abstractmethod
    async def update_listing(
        self,
        token: str,
        package_name: str,
        edit_id: str,
        language: str,
        listing: Dict[str, Any],
    ) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update_track(
        self,
        token: str,
        package_name: str,
        edit_id: str,
        track: str,
        version_code: int,
        status: str,
    ) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def commit_edit(self, token: str, package_name: str, edit_id: str) -> Dict[str, Any]:
        ...
