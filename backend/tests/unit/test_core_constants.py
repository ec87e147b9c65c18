"""
Unit tests for core constants modules (publishing, webview).
"""
import pytest

from app.core.constants import publishing, webview


pytestmark = pytest.mark.unit


class TestPublishingConstants:

    def test_tracks(self):
        assert publishing.VALID_TRACKS == ("internal", "alpha", "beta", "production")
        assert publishing.DEFAULT_TRACK in publishing.VALID_TRACKS

    def test_release_status(self):
        assert publishing.RELEASE_STATUS_COMPLETED == "completed"

    def test_apk_mime_type(self):
        assert publishing.APK_MIME_TYPE == "application/vnd.android.package-archive"

    def test_console_url_template(self):
        url = publishing.CONSOLE_URL_TEMPLATE.format(package_name="com.example.demo")
        assert url.startswith("https://play.google.com/console/")
        assert "com.example.demo" in url

    def test_short_description_limit(self):
        assert publishing.SHORT_DESCRIPTION_LIMIT == 80


class TestWebViewConstants:

    def test_internet_permission(self):
        assert "android.permission.INTERNET" in webview.ANDROID_PERMISSIONS

    def test_sdk_versions_ordered(self):
        assert webview.MIN_SDK_VERSION <= webview.TARGET_SDK_VERSION <= webview.COMPILE_SDK_VERSION

    def test_user_agent(self):
        assert isinstance(webview.WEBVIEW_USER_AGENT, str)
        assert webview.WEBVIEW_USER_AGENT
