# config.py
import os
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional


def _normalize_database_url(url: str) -> str:
    # hosted Postgres often hands out postgres://, SQLAlchemy wants a driver
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://") and "+psycopg" not in url:
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once at startup and never mutated."""

    database_url: str = "sqlite:///./expenses.db"
    jwt_secret_key: Optional[str] = None
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 3600
    upload_dir: str = "./uploads"
    max_upload_bytes: int = 5 * 1024 * 1024
    default_page_size: int = 10
    max_page_size: int = 100
    scheduler_enabled: bool = True
    orphan_grace_seconds: int = 3600
    log_level: str = "INFO"

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(seconds=self.access_token_ttl_seconds)

    @property
    def orphan_grace(self) -> timedelta:
        return timedelta(seconds=self.orphan_grace_seconds)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=_normalize_database_url(
                os.getenv("DATABASE_URL", cls.database_url)
            ),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY") or None,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            access_token_ttl_seconds=int(
                os.getenv("ACCESS_TOKEN_TTL_SECONDS", cls.access_token_ttl_seconds)
            ),
            upload_dir=os.getenv("UPLOAD_DIR", cls.upload_dir),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", cls.max_upload_bytes)),
            default_page_size=int(
                os.getenv("DEFAULT_PAGE_SIZE", cls.default_page_size)
            ),
            max_page_size=int(os.getenv("MAX_PAGE_SIZE", cls.max_page_size)),
            scheduler_enabled=_env_bool("SCHEDULER_ENABLED", cls.scheduler_enabled),
            orphan_grace_seconds=int(
                os.getenv("ORPHAN_GRACE_SECONDS", cls.orphan_grace_seconds)
            ),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
