from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv(override=False)


DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174"]


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() not in {"0", "false", "no"}


class Settings(BaseModel):
    """Runtime configuration for the index service."""

    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "dev"))
    vault_dir: Path = Field(default_factory=lambda: Path(os.getenv("MATHREF_VAULT_DIR", ".")))
    sqlite_db_path: Path | None = Field(
        default_factory=lambda: Path(os.getenv("MATHREF_SQLITE_DB", "artifacts/mathref.db"))
    )
    persist_index: bool = Field(default_factory=lambda: _env_flag("MATHREF_PERSIST", "true"))
    exclude_example: bool = Field(default_factory=lambda: _env_flag("MATHREF_EXCLUDE_EXAMPLE", "false"))
    outline_retry_seconds: float = Field(
        default_factory=lambda: float(os.getenv("MATHREF_OUTLINE_RETRY_SECONDS", "0.5"))
    )
    outline_max_retries: int = Field(
        default_factory=lambda: int(os.getenv("MATHREF_OUTLINE_MAX_RETRIES", "5")), validate_default=True
    )
    log_level: str = Field(default_factory=lambda: os.getenv("MATHREF_LOG_LEVEL", "INFO"), validate_default=True)
    cors_origins: List[str] = Field(default_factory=lambda: os.getenv("CORS_ORIGINS"), validate_default=True)
    sse_heartbeat_interval: float = Field(default_factory=lambda: float(os.getenv("SSE_HEARTBEAT_SECONDS", "15")))

    model_config = {
        "frozen": True,
    }

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> List[str]:
        if value is None:
            return list(DEFAULT_CORS_ORIGINS)
        if isinstance(value, str):
            if not value.strip():
                return list(DEFAULT_CORS_ORIGINS)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return list(value)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("outline_max_retries")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(value, 0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance for FastAPI dependency injection."""

    return Settings()


__all__ = ["Settings", "get_settings", "DEFAULT_CORS_ORIGINS"]
