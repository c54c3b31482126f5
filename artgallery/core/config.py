import os
from pydantic import BaseModel
from typing import Optional


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """for reading environment-driven configuration.

    Values have sensible defaults for LocalStack-based development.
    """
    aws_access_key_id: str = os.getenv("AWS_ACCESS_KEY_ID", "test")
    aws_secret_access_key: str = os.getenv("AWS_SECRET_ACCESS_KEY", "test")
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    aws_endpoint_url: Optional[str] = os.getenv("AWS_ENDPOINT_URL")
    bucket_name: str = os.getenv("BUCKET_NAME", "gallery")
    key_prefix: str = os.getenv("KEY_PREFIX", "gallery/images")

    artworks_table: str = os.getenv("ARTWORKS_TABLE", "Artworks")
    tags_table: str = os.getenv("TAGS_TABLE", "Tags")
    profiles_table: str = os.getenv("PROFILES_TABLE", "Profiles")
    users_table: str = os.getenv("USERS_TABLE", "Users")
    sessions_table: str = os.getenv("SESSIONS_TABLE", "Sessions")

    url_expiry: int = int(os.getenv("URL_EXPIRY", "3600"))
    thumbnail_width: int = int(os.getenv("THUMBNAIL_WIDTH", "400"))
    webp_quality: int = int(os.getenv("WEBP_QUALITY", "80"))

    google_client_id: Optional[str] = os.getenv("GOOGLE_CLIENT_ID")
    google_client_secret: Optional[str] = os.getenv("GOOGLE_CLIENT_SECRET")
    oauth_redirect_uri: str = os.getenv(
        "OAUTH_REDIRECT_URI", "http://localhost:8000/api/auth/callback/google"
    )
    session_secret: str = os.getenv("SESSION_SECRET", "change-me")
    session_max_age: int = int(os.getenv("SESSION_MAX_AGE", str(30 * 24 * 3600)))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    debug: bool = _flag("DEBUG")

    @property
    def oauth_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

settings = Settings()
