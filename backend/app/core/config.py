import os
from typing import Optional
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()


class Settings(BaseModel):
    app_name: str = os.getenv("APP_NAME", "WebView App Publisher")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")

    # Supabase (publish history / audit records)
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_service_role_key: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    publish_records_table: str = os.getenv("PUBLISH_RECORDS_TABLE", "app_submissions")

    # Redis (OAuth sessions)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    session_ttl_seconds: int = int(os.getenv("SESSION_TTL_SECONDS", "3600"))

    # Implementation selection: "google" | "sandbox", "supabase" | "memory"
    play_backend: str = os.getenv("PLAY_BACKEND", "google")
    record_store_backend: str = os.getenv("RECORD_STORE_BACKEND", "supabase")

    # Google OAuth (developer-authorized publishing variant)
    google_oauth_client_id: Optional[str] = os.getenv("GOOGLE_OAUTH_CLIENT_ID")
    google_oauth_client_secret: Optional[str] = os.getenv("GOOGLE_OAUTH_CLIENT_SECRET")
    google_oauth_redirect_uri: str = os.getenv(
        "GOOGLE_OAUTH_REDIRECT_URI",
        "http://localhost:8000/api/v1/publishing/oauth/callback",
    )
    google_auth_uri: str = os.getenv(
        "GOOGLE_AUTH_URI", "https://accounts.google.com/o/oauth2/v2/auth"
    )
    google_token_uri: str = os.getenv("GOOGLE_TOKEN_URI", "https://oauth2.googleapis.com/token")
    android_publisher_base_url: str = os.getenv(
        "ANDROID_PUBLISHER_BASE_URL", "https://androidpublisher.googleapis.com"
    )

    # Package builder
    downloads_dir: str = os.getenv("DOWNLOADS_DIR", "downloads")
    package_namespace: str = os.getenv("PACKAGE_NAMESPACE", "com.rapidsaas")

    # Timeouts (seconds)
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
    upload_timeout_seconds: float = float(os.getenv("UPLOAD_TIMEOUT_SECONDS", "300"))
    publish_timeout_seconds: float = float(os.getenv("PUBLISH_TIMEOUT_SECONDS", "900"))

    @property
    def cors_origins(self) -> list[str]:
        """CORS origins parsed from the comma separated setting."""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = Settings()
