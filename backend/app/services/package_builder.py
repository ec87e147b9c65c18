"""
Package builder — wraps a website URL in a minimal Android WebView shell.

Checks that the source URL answers with a success status, then writes an
APK-layout zip archive (manifest plus WebView/app configuration) to the
downloads directory as temp_{package}_{timestamp_ms}.apk. The caller owns
the file and must delete it with remove_artifact().
"""
import json
import logging
import os
import re
import time
import zipfile
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import httpx

from app.core.config import Settings
from app.core.constants.publishing import APK_EXTENSION, TEMP_ARTIFACT_TEMPLATE
from app.core.constants.webview import (
    ANDROID_PERMISSIONS,
    COMPILE_SDK_VERSION,
    DEFAULT_CATEGORY,
    MIN_SDK_VERSION,
    PROBE_USER_AGENT,
    TARGET_SDK_VERSION,
    VERSION_CODE,
    VERSION_NAME,
    WEBVIEW_SETTINGS,
    WEBVIEW_USER_AGENT,
)
from app.core.exceptions import ValidationError
from app.schemas.publishing import BuiltPackage

logger = logging.getLogger("package_builder")

_NON_ALNUM = re.compile(r"[^a-z0-9]")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def derive_package_name(app_name: str, namespace: str = "com.rapidsaas") -> str:
    """'Demo App!' -> 'com.rapidsaas.demoapp'."""
    slug = _NON_ALNUM.sub("", (app_name or "").lower())
    if not slug:
        raise ValidationError(
            f"App name {app_name!r} has no letters or digits to build a package name from"
        )
    return f"{namespace}.{slug}"


def temp_artifact_name(package_name: str, timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return TEMP_ARTIFACT_TEMPLATE.format(
        package_name=package_name, timestamp_ms=timestamp_ms, ext=APK_EXTENSION
    )


def _android_manifest(package_name: str, app_name: str) -> str:
    permissions = "\n".join(
        f'    <uses-permission android:name="{p}" />' for p in ANDROID_PERMISSIONS
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<manifest xmlns:android="http://schemas.android.com/apk/res/android"\n'
        f'    package="{package_name}"\n'
        f'    android:versionCode="{VERSION_CODE}"\n'
        f'    android:versionName="{VERSION_NAME}">\n'
        f'    <uses-sdk android:minSdkVersion="{MIN_SDK_VERSION}" '
        f'android:targetSdkVersion="{TARGET_SDK_VERSION}" />\n'
        f"{permissions}\n"
        f'    <application android:label="{_xml_escape(app_name)}" '
        'android:usesCleartextTraffic="false">\n'
        '        <activity android:name=".WebViewActivity" android:exported="true">\n'
        "            <intent-filter>\n"
        '                <action android:name="android.intent.action.MAIN" />\n'
        '                <category android:name="android.intent.category.LAUNCHER" />\n'
        "            </intent-filter>\n"
        "        </activity>\n"
        "    </application>\n"
        "</manifest>\n"
    )


def _xml_escape(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def remove_artifact(path: Optional[str]) -> bool:
    """Delete a built artifact. Missing files are not an error; returns True if deleted."""
    if not path:
        return False
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    logger.info("temporary artifact deleted path=%s", path)
    return True


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class WebViewPackageBuilder:
    def __init__(self, settings: Settings) -> None:
        self._downloads_dir = Path(settings.downloads_dir)
        self._namespace = settings.package_namespace
        self._timeout = settings.http_timeout_seconds

    async def check_source_url(self, url: str) -> Dict[str, Any]:
        """Fail with ValidationError unless url answers with a non-error status."""
        parsed = urlsplit(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError(f"Source URL must be an http(s) URL: {url!r}")

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True
            ) as client:
                resp = await client.get(url, headers={"User-Agent": PROBE_USER_AGENT})
        except httpx.HTTPError as exc:
            raise ValidationError(f"Source URL {url} is unreachable: {exc}") from exc

        if resp.status_code >= 400:
            raise ValidationError(
                f"Source URL {url} returned status {resp.status_code}"
            )

        warnings = []
        if parsed.scheme == "http":
            warnings.append("Website does not use HTTPS")
        return {"final_url": str(resp.url), "status_code": resp.status_code, "warnings": warnings}

    async def build_package(
        self,
        url: str,
        app_name: str,
        description: str = "",
        icon_url: Optional[str] = None,
        package_name: Optional[str] = None,
        category: Optional[str] = None,
    ) -> BuiltPackage:
        # An explicit package name wins; only derive when none was given
        if not package_name:
            package_name = derive_package_name(app_name, self._namespace)

        probe = await self.check_source_url(url)

        app_config = {
            "name": app_name,
            "description": description or "",
            "category": category or DEFAULT_CATEGORY,
            "packageName": package_name,
            "versionName": VERSION_NAME,
            "versionCode": VERSION_CODE,
            "minSdkVersion": MIN_SDK_VERSION,
            "targetSdkVersion": TARGET_SDK_VERSION,
            "compileSdkVersion": COMPILE_SDK_VERSION,
            "iconUrl": icon_url,
        }
        webview_config = {
            "url": url,
            "userAgent": WEBVIEW_USER_AGENT,
            **WEBVIEW_SETTINGS,
        }

        self._downloads_dir.mkdir(parents=True, exist_ok=True)
        binary_path = self._downloads_dir / temp_artifact_name(package_name)
        try:
            with zipfile.ZipFile(binary_path, "w", compression=zipfile.ZIP_DEFLATED) as apk:
                apk.writestr("AndroidManifest.xml", _android_manifest(package_name, app_name))
                apk.writestr("assets/webview_config.json", json.dumps(webview_config, indent=2))
                apk.writestr("assets/app_config.json", json.dumps(app_config, indent=2))
        except OSError:
            remove_artifact(str(binary_path))
            raise

        size = binary_path.stat().st_size
        logger.info(
            "package built package=%s path=%s bytes=%s", package_name, binary_path, size
        )
        return BuiltPackage(
            binary_path=str(binary_path),
            metadata={
                "package_name": package_name,
                "app_name": app_name,
                "version_name": VERSION_NAME,
                "version_code": VERSION_CODE,
                "source_url": url,
                "final_url": probe["final_url"],
                "size_bytes": size,
                "warnings": probe["warnings"],
            },
        )
