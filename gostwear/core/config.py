"""
Configuration helpers for the Gostwear backend.

Routers/services should call get_settings() instead of reading os.environ
directly, so tests can swap the environment and clear the cache.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import math
import os

DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:5500",
    "https://gostwear-frontend.vercel.app",
)
DEFAULT_ORIGIN_REGEX = r"https?://.*\.vercel\.app"

_ROOT = Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    port: int
    data_dir: Path
    public_dir: Path
    allowed_origins: tuple[str, ...]
    allowed_origin_regex: str
    store_lock_timeout: float | None
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _timeout(value: str | None) -> float | None:
        # unset, empty, non-positive or non-finite means wait forever
        try:
            seconds = float(value) if value else 0.0
        except ValueError:
            return None
        return seconds if 0 < seconds < math.inf else None

    def _origins(value: str | None) -> tuple[str, ...]:
        if value is None:
            return DEFAULT_ALLOWED_ORIGINS
        return tuple(o.strip().rstrip("/") for o in value.split(",") if o.strip())

    app_env = (os.getenv("APP_ENV") or "dev").lower()
    return Settings(
        app_env=app_env,
        port=_int(os.getenv("PORT", "5000"), 5000),
        data_dir=Path(os.getenv("DATA_DIR") or _ROOT / "data"),
        public_dir=Path(os.getenv("PUBLIC_DIR") or _ROOT / "public"),
        allowed_origins=_origins(os.getenv("ALLOWED_ORIGINS")),
        allowed_origin_regex=os.getenv("ALLOWED_ORIGIN_REGEX", DEFAULT_ORIGIN_REGEX),
        store_lock_timeout=_timeout(os.getenv("STORE_LOCK_TIMEOUT", "10")),
        log_level=(os.getenv("LOG_LEVEL") or ("INFO" if app_env == "prod" else "DEBUG")).upper(),
    )
