# app/config.py
from __future__ import annotations

from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILE = PROJECT_ROOT / ".env"

load_dotenv(ENV_FILE)  # load the root .env explicitly

DEFAULT_SQLITE_URL = "sqlite:///data/tasks.sqlite3"


def _normalize_dsn(dsn: str) -> str:
    """SQLAlchemy no longer accepts the bare postgres:// scheme."""
    if dsn.startswith("postgres://"):
        return "postgresql://" + dsn[len("postgres://"):]
    return dsn


class Settings(BaseSettings):
    APP_TITLE: str = "Task Management API"
    LOG_LEVEL: str = "INFO"

    # Storage
    STORAGE_BACKEND: Literal["json", "sql"] = "json"
    DATA_FILE: str = "data/database.json"
    DB_URL: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
    )
    DURABILITY_MODE: Literal["sync", "background"] = "sync"

    # Uploads
    UPLOADS_DIR: str = "uploads"
    STATIC_PREFIX: str = "/static"
    MAX_IMAGE_BYTES: int = Field(default=20 * 1024 * 1024, ge=1)
    MAX_MEDIA_BYTES: int = Field(default=200 * 1024 * 1024, ge=1)

    # HTTP
    CORS_ORIGINS: str = "*"

    # Config
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def db_url(self) -> str:
        if self.DB_URL and self.DB_URL.strip():
            return _normalize_dsn(self.DB_URL.strip())
        return DEFAULT_SQLITE_URL

    @property
    def storage_source(self) -> str:
        """Human-readable source for logging."""
        if self.STORAGE_BACKEND == "json":
            return f"json:{self.DATA_FILE}"
        return "sql:DB_URL" if self.DB_URL else "sql:default-sqlite"


settings = Settings()
