"""
Constants package — re-exports from domain-specific modules.

Usage:
    from app.core.constants.publishing import VALID_TRACKS
    # or import everything:
    from app.core.constants import publishing, webview
"""

from app.core.constants import publishing, webview
from app.core.constants.publishing import (
    VALID_TRACKS,
    DEFAULT_TRACK,
    RELEASE_STATUS_COMPLETED,
    APK_MIME_TYPE,
    ANDROID_PUBLISHER_SCOPE,
    DEFAULT_LISTING_LANGUAGE,
    SHORT_DESCRIPTION_LIMIT,
)
from app.core.constants.webview import (
    WEBVIEW_USER_AGENT,
    ANDROID_PERMISSIONS,
)
