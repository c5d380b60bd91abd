from pathlib import Path
from typing import Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    # Database (SQLite file by default; any SQLAlchemy URL works)
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'gallery.db'}"
    # Create missing tables at start-up; production deployments use alembic instead
    DB_AUTO_CREATE: bool = True

    # Security
    SECRET_KEY: str = "CHANGE_THIS_TO_A_SECRET_KEY"
    # Signed token validity, fixed at issuance
    TOKEN_TTL_SECONDS: int = 60 * 60
    AUTH_COOKIE_NAME: str = "gallery_token"
    # Cookie lifetime is shorter than the token validity on purpose (kept separate)
    AUTH_COOKIE_MAX_AGE_SECONDS: int = 600
    COOKIE_SECURE: bool = False  # override to True in prod; or auto-detected from BASE_URL

    # Roles
    ADMIN_USERNAME: str = "admin"

    # Uniqueness checks compare names with this collation (case-insensitive)
    COLLATION_LOCALE: str = "pl"

    # App/Base URL
    BASE_URL: str = "http://localhost:8000"

    # Templates / static files
    TEMPLATES_DIR: str = str(BASE_DIR / "templates")
    STATIC_DIR: str = str(BASE_DIR / "static")

    # Upload/security
    UPLOAD_DIR: str = str(BASE_DIR / "storage" / "images")
    MAX_UPLOAD_BYTES: int = 20_000_000  # 20 MB per file default
    ALLOWED_UPLOAD_FORMATS: Tuple[str, ...] = ("JPEG", "PNG", "GIF", "WEBP")

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_JSON: bool = True
    LOG_FILE: str = str(BASE_DIR / "logs" / "app.log")
    LOG_MAX_BYTES: int = 5_000_000  # 5 MB
    LOG_BACKUP_COUNT: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def load_settings() -> Settings:
    settings = Settings()

    if settings.SECRET_KEY == "CHANGE_THIS_TO_A_SECRET_KEY" or not settings.SECRET_KEY:
        # Do not crash imports in some tools; instead, provide a helpful message.
        import warnings

        warnings.warn(
            "SECRET_KEY is not configured. Set SECRET_KEY in the environment or .env; "
            "login tokens signed with the placeholder key are not secure."
        )

    # Auto-detect secure cookies when running under HTTPS
    if not settings.COOKIE_SECURE and settings.BASE_URL.lower().startswith("https"):
        settings.COOKIE_SECURE = True
    return settings


settings = load_settings()
