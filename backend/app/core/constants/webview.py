"""
WebView shell constants — Android build settings for generated packages.
"""

WEBVIEW_USER_AGENT: str = "RapidSaaSApp/1.0"

# User agent used when probing the source site
PROBE_USER_AGENT: str = (
    "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Mobile Safari/537.36"
)

ANDROID_PERMISSIONS: list[str] = [
    "android.permission.INTERNET",
    "android.permission.ACCESS_NETWORK_STATE",
]

VERSION_NAME: str = "1.0.0"
VERSION_CODE: int = 1
MIN_SDK_VERSION: int = 21
TARGET_SDK_VERSION: int = 33
COMPILE_SDK_VERSION: int = 33

DEFAULT_CATEGORY: str = "productivity"

WEBVIEW_SETTINGS: dict[str, bool] = {
    "enableJavaScript": True,
    "enableDomStorage": True,
    "enableFileAccess": False,
    "allowUniversalAccessFromFileURLs": False,
}
