"""
Publishing constants — Google Play tracks, MIME types, naming templates.

Publishing pipeline constants (Android Publisher API v3).
"""

# Distribution tracks accepted by the track assigner
VALID_TRACKS: tuple[str, ...] = ("internal", "alpha", "beta", "production")
DEFAULT_TRACK: str = "internal"

# Release status written with every track assignment
RELEASE_STATUS_COMPLETED: str = "completed"

# Final status reported for a committed publish
STATUS_PUBLISHED: str = "published"
STATUS_FAILED: str = "failed"

APK_MIME_TYPE: str = "application/vnd.android.package-archive"
APK_EXTENSION: str = "apk"

ANDROID_PUBLISHER_SCOPE: str = "https://www.googleapis.com/auth/androidpublisher"
JWT_BEARER_GRANT_TYPE: str = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# Listing defaults
DEFAULT_LISTING_LANGUAGE: str = "en-US"
SHORT_DESCRIPTION_LIMIT: int = 80
TITLE_LIMIT: int = 30

# temp_{package_name}_{timestamp_ms}.{ext}
TEMP_ARTIFACT_TEMPLATE: str = "temp_{package_name}_{timestamp_ms}.{ext}"

CONSOLE_URL_TEMPLATE: str = "https://play.google.com/console/developers/{package_name}/app-bundle"

# Review timeline shown to the user after a successful publish
ESTIMATED_REVIEW: str = "1-3 business days"
ESTIMATED_LIVE: str = "2-4 business days"

# Platform name stored with publish records
PLATFORM_GOOGLE_PLAY: str = "GOOGLE_PLAY"
