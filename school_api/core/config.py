"""
Configuration helpers for the school content backend.

Settings are read from environment variables once and cached; tests call
``get_settings.cache_clear()`` after changing the environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    host: str
    port: int
    data_dir: Path
    public_dir: Path
    public_base_url: str
    max_upload_bytes: int
    strict_uploads: bool
    cors_origins: tuple[str, ...]
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str | None, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    def _path(value: str | None, default: Path) -> Path:
        value = (value or "").strip()
        return Path(value).expanduser() if value else default

    origins = tuple(
        origin.strip()
        for origin in (os.getenv("CORS_ORIGINS") or "*").split(",")
        if origin.strip()
    )
    max_upload = _int(os.getenv("MAX_UPLOAD_BYTES"), DEFAULT_MAX_UPLOAD_BYTES)

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int(os.getenv("PORT", "5000"), 5000),
        data_dir=_path(os.getenv("DATA_DIR"), ROOT_DIR / "data"),
        public_dir=_path(os.getenv("PUBLIC_DIR"), ROOT_DIR / "public"),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "").strip().rstrip("/"),
        max_upload_bytes=max_upload if max_upload > 0 else DEFAULT_MAX_UPLOAD_BYTES,
        strict_uploads=_bool(os.getenv("STRICT_UPLOADS"), False),
        cors_origins=origins or ("*",),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
