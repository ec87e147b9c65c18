"""
Google Play HTTP client — service-account / OAuth tokens and
Android Publisher API v3 edit calls.
"""
import asyncio
import json
import logging
import os
import time
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import urlencode

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from app.clients.play_base import Credentials, PlayPublishingClient
from app.core.config import Settings
from app.core.constants.publishing import (
    ANDROID_PUBLISHER_SCOPE,
    APK_MIME_TYPE,
    JWT_BEARER_GRANT_TYPE,
)
from app.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PlatformError,
    UploadError,
    ValidationError,
)

logger = logging.getLogger("google_play_client")

SERVICE = "Google Play"
UPLOAD_CHUNK_SIZE = 1024 * 1024


async def _iter_file(path: str, chunk_size: int = UPLOAD_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Stream a file in chunks, reading off the event loop."""
    with open(path, "rb") as fh:
        while True:
            chunk = await asyncio.to_thread(fh.read, chunk_size)
            if not chunk:
                break
            yield chunk


def parse_credentials(credentials: Credentials) -> Dict[str, Any]:
    """
    Normalize developer credentials into a dict.

    Accepts a service-account key (JSON string or dict) or an OAuth token
    dict. Raises ValidationError for malformed JSON or unknown shapes.
    """
    if isinstance(credentials, str):
        try:
            credentials = json.loads(credentials)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Malformed credential JSON: {exc.msg}") from exc
    if not isinstance(credentials, dict):
        raise ValidationError("Credentials must be a JSON object")
    if credentials.get("access_token"):
        return credentials
    missing = [k for k in ("client_email", "private_key") if not credentials.get(k)]
    if missing:
        raise ValidationError(
            f"Service account key is missing fields: {', '.join(missing)}"
        )
    return credentials


class GooglePlayClient(PlayPublishingClient):
    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.android_publisher_base_url.rstrip("/")
        self._token_uri = settings.google_token_uri
        self._auth_uri = settings.google_auth_uri
        self._client_id = settings.google_oauth_client_id
        self._client_secret = settings.google_oauth_client_secret
        self._redirect_uri = settings.google_oauth_redirect_uri
        self._timeout = settings.http_timeout_seconds
        self._upload_timeout = settings.upload_timeout_seconds

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def get_access_token(self, credentials: Credentials) -> str:
        creds = parse_credentials(credentials)
        if creds.get("access_token"):
            return await self._token_from_oauth(creds)
        return await self._token_from_service_account(creds)

    def _build_assertion(self, key: Dict[str, Any]) -> str:
        now = int(time.time())
        claims = {
            "iss": key["client_email"],
            "scope": ANDROID_PUBLISHER_SCOPE,
            "aud": key.get("token_uri") or self._token_uri,
            "iat": now,
            "exp": now + 3600,
        }
        headers = {"kid": key["private_key_id"]} if key.get("private_key_id") else None
        try:
            return jwt.encode(claims, key["private_key"], algorithm="RS256", headers=headers)
        except JOSEError as exc:
            raise ValidationError(f"Service account private key is invalid: {exc}") from exc

    async def _token_from_service_account(self, key: Dict[str, Any]) -> str:
        assertion = self._build_assertion(key)
        token_uri = key.get("token_uri") or self._token_uri
        data = await self._post_token(
            token_uri,
            {"grant_type": JWT_BEARER_GRANT_TYPE, "assertion": assertion},
        )
        logger.info("google token issued client_email=%s", key["client_email"])
        return data["access_token"]

    async def _token_from_oauth(self, tokens: Dict[str, Any]) -> str:
        expiry_ms = tokens.get("expiry_date")
        expired = expiry_ms is not None and int(expiry_ms) <= int(time.time() * 1000)
        if expired and tokens.get("refresh_token"):
            refreshed = await self.refresh_tokens(tokens["refresh_token"])
            return refreshed["access_token"]
        if expired:
            raise AuthorizationError("OAuth access token expired, please re-authorize")
        return tokens["access_token"]

    async def _post_token(self, url: str, form: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    url,
                    data=form,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.TransportError as exc:
            raise PlatformError(SERVICE, f"token endpoint unreachable: {exc}") from exc

        if resp.status_code in (400, 401, 403):
            raise AuthorizationError(f"Credential rejected by Google: {resp.text}")
        if resp.status_code >= 400:
            raise PlatformError(SERVICE, f"token exchange failed: {resp.text}", resp.status_code)

        body = resp.json()
        if not body.get("access_token"):
            raise AuthorizationError("No access_token in Google OAuth response")
        return body

    # ------------------------------------------------------------------
    # OAuth authorization-code flow
    # ------------------------------------------------------------------

    def authorization_url(self, state: Optional[str] = None) -> str:
        if not self._client_id:
            raise ValidationError("GOOGLE_OAUTH_CLIENT_ID is not configured")
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": ANDROID_PUBLISHER_SCOPE,
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{self._auth_uri}?{urlencode(params)}"

    async def exchange_code_for_tokens(self, code: str) -> Dict[str, Any]:
        body = await self._post_token(
            self._token_uri,
            {
                "code": code,
                "client_id": self._client_id or "",
                "client_secret": self._client_secret or "",
                "redirect_uri": self._redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        return self._with_expiry(body)

    async def refresh_tokens(self, refresh_token: str) -> Dict[str, Any]:
        body = await self._post_token(
            self._token_uri,
            {
                "refresh_token": refresh_token,
                "client_id": self._client_id or "",
                "client_secret": self._client_secret or "",
                "grant_type": "refresh_token",
            },
        )
        body.setdefault("refresh_token", refresh_token)
        return self._with_expiry(body)

    @staticmethod
    def _with_expiry(body: Dict[str, Any]) -> Dict[str, Any]:
        expires_in = int(body.get("expires_in") or 3600)
        body["expiry_date"] = int(time.time() * 1000) + expires_in * 1000
        return body

    # ------------------------------------------------------------------
    # Android Publisher API
    # ------------------------------------------------------------------

    def _app_path(self, package_name: str) -> str:
        return f"/androidpublisher/v3/applications/{package_name}"

    async def _call(
        self,
        method: str,
        path: str,
        token: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        logger.info("play request method=%s path=%s", method, path)

        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.request(
                    method=method, url=url, headers=headers, json=json, params=params
                )
        except httpx.TransportError as exc:
            raise PlatformError(SERVICE, f"{method} {path} failed: {exc}") from exc

        logger.info("play response status=%s path=%s", resp.status_code, path)
        self._raise_for_status(resp, path)

        if resp.text:
            return resp.json()
        return {}

    @staticmethod
    def _raise_for_status(resp: httpx.Response, path: str, upload: bool = False) -> None:
        status = resp.status_code
        if status < 400:
            return
        if status in (401, 403):
            raise AuthorizationError(f"Permission denied for {path}: {resp.text}")
        if status == 404:
            raise NotFoundError(f"Package or edit not found for {path}: {resp.text}")
        if upload:
            raise UploadError(resp.text, status)
        raise PlatformError(SERVICE, resp.text, status)

    async def get_app_details(self, token: str, package_name: str, edit_id: str) -> Dict[str, Any]:
        return await self._call(
            "GET", f"{self._app_path(package_name)}/edits/{edit_id}/details", token
        )

    async def insert_edit(self, token: str, package_name: str) -> Dict[str, Any]:
        return await self._call("POST", f"{self._app_path(package_name)}/edits", token, json={})

    async def delete_edit(self, token: str, package_name: str, edit_id: str) -> None:
        await self._call("DELETE", f"{self._app_path(package_name)}/edits/{edit_id}", token)

    async def upload_apk(
        self, token: str, package_name: str, edit_id: str, apk_path: str
    ) -> Dict[str, Any]:
        url = (
            f"{self._base_url}/upload{self._app_path(package_name)}"
            f"/edits/{edit_id}/apks"
        )
        size = os.path.getsize(apk_path)
        logger.info(
            "play upload package=%s edit_id=%s bytes=%s", package_name, edit_id, size
        )
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": APK_MIME_TYPE,
            "Content-Length": str(size),
            "Accept": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self._upload_timeout) as client:
                resp = await client.post(
                    url,
                    params={"uploadType": "media"},
                    headers=headers,
                    content=_iter_file(apk_path),
                )
        except httpx.TransportError as exc:
            raise UploadError(f"APK transfer failed: {exc}") from exc

        logger.info("play upload response status=%s edit_id=%s", resp.status_code, edit_id)
        self._raise_for_status(resp, "apks.upload", upload=True)
        return resp.json()

    async def update_listing(
        self,
        token: str,
        package_name: str,
        edit_id: str,
        language: str,
        listing: Dict[str, Any],
    ) -> Dict[str, Any]:
        body = {"language": language, **listing}
        return await self._call(
            "PUT",
            f"{self._app_path(package_name)}/edits/{edit_id}/listings/{language}",
            token,
            json=body,
        )

    async def update_track(
        self,
        token: str,
        package_name: str,
        edit_id: str,
        track: str,
        version_code: int,
        status: str,
    ) -> Dict[str, Any]:
        body = {
            "track": track,
            "releases": [{"versionCodes": [str(version_code)], "status": status}],
        }
        return await self._call(
            "PUT",
            f"{self._app_path(package_name)}/edits/{edit_id}/tracks/{track}",
            token,
            json=body,
        )

    async def commit_edit(self, token: str, package_name: str, edit_id: str) -> Dict[str, Any]:
        return await self._call(
            "POST", f"{self._app_path(package_name)}/edits/{edit_id}:commit", token
        )
