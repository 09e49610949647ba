import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


def _csv(val: str | None, default: list[str]) -> list[str]:
    if not val:
        return default
    return [v.strip() for v in val.split(",") if v.strip()]


def _int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


@dataclass(frozen=True)
class Settings:
    env: str = os.getenv("ENV", "local")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # DB / Redis
    # Required. A blank value surfaces as BackendConfigurationError on first use.
    database_url: str = os.getenv("DATABASE_URL", "")
    database_echo: bool = _bool(os.getenv("DATABASE_ECHO"), default=False)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Image storage
    storage_backend: str = os.getenv("STORAGE_BACKEND", "local")
    storage_root: str = os.getenv("STORAGE_ROOT", "./data/media")
    public_media_base_url: str = os.getenv(
        "PUBLIC_MEDIA_BASE_URL", "http://localhost:8000/media"
    )
    image_upload_folder: str = os.getenv("IMAGE_UPLOAD_FOLDER", "events")
    image_max_upload_bytes: int = _int(
        os.getenv("IMAGE_MAX_UPLOAD_BYTES"), default=5 * 1024 * 1024
    )
    cloudinary_cloud_name: str | None = os.getenv("CLOUDINARY_CLOUD_NAME") or None
    cloudinary_api_key: str | None = os.getenv("CLOUDINARY_API_KEY") or None
    cloudinary_api_secret: str | None = os.getenv("CLOUDINARY_API_SECRET") or None
    cloudinary_timeout_seconds: float = float(
        os.getenv("CLOUDINARY_TIMEOUT_SECONDS", "30")
    )

    # CORS
    cors_allow_origins: list[str] = field(
        default_factory=lambda: _csv(
            os.getenv("CORS_ALLOW_ORIGINS"),
            default=["http://localhost:3000", "http://127.0.0.1:3000"],
        )
    )

    # Security headers
    security_headers_enabled: bool = _bool(
        os.getenv("SECURITY_HEADERS_ENABLED"),
        default=True,
    )

    # Rate limiting
    rate_limit_enabled: bool = _bool(os.getenv("RATE_LIMIT_ENABLED"), default=True)
    rate_limit_default: str = os.getenv("RATE_LIMIT_DEFAULT", "60/minute")
    # Applied to POST/PATCH (event creation, bookings) instead of the default
    rate_limit_write: str = os.getenv("RATE_LIMIT_WRITE", "10/minute")
    redis_socket_timeout_seconds: float = float(
        os.getenv("REDIS_SOCKET_TIMEOUT_SECONDS", "0.5")
    )
    rate_limit_exempt_paths: list[str] = field(
        default_factory=lambda: _csv(
            os.getenv("RATE_LIMIT_EXEMPT_PATHS"),
            default=["/health", "/metrics"],
        )
    )


settings = Settings()
