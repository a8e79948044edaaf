"""Environment-driven settings for the LegaliTea API."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv


DEFAULT_MODEL_NAME = "gemini-2.5-flash"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]
MEGABYTE = 1024 * 1024

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _get_list(env: Mapping[str, str], name: str, default: List[str]) -> List[str]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime configuration resolved from the process environment."""

    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL_NAME
    environment: str = "development"
    port: int = 3001
    max_text_length: int = 50_000
    max_upload_bytes: int = 10 * MEGABYTE
    max_body_bytes: int = 10 * MEGABYTE
    rate_limit_max: int = 100
    rate_limit_window_seconds: int = 15 * 60
    save_rate_limit_max: int = 3
    save_rate_limit_window_seconds: int = 60
    rate_limit_cleanup_seconds: int = 5 * 60
    fallback_enabled: bool = True
    save_ttl_hours: int = 24
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    upstash_redis_url: Optional[str] = None
    upstash_redis_token: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def redis_configured(self) -> bool:
        return bool(self.upstash_redis_url and self.upstash_redis_token)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``env`` (defaults to ``os.environ`` after loading ``.env``)."""

        if env is None:
            load_dotenv()
            env = os.environ

        return cls(
            gemini_api_key=env.get("GEMINI_API_KEY") or None,
            gemini_model=env.get("GEMINI_MODEL") or DEFAULT_MODEL_NAME,
            environment=env.get("ENVIRONMENT") or env.get("NODE_ENV") or "development",
            port=_get_int(env, "PORT", 3001),
            max_text_length=_get_int(env, "LEGALITEA_MAX_TEXT_LENGTH", 50_000),
            max_upload_bytes=_get_int(env, "LEGALITEA_MAX_UPLOAD_BYTES", 10 * MEGABYTE),
            max_body_bytes=_get_int(env, "LEGALITEA_MAX_BODY_BYTES", 10 * MEGABYTE),
            rate_limit_max=_get_int(env, "LEGALITEA_RATE_LIMIT_MAX", 100),
            rate_limit_window_seconds=_get_int(env, "LEGALITEA_RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
            save_rate_limit_max=_get_int(env, "LEGALITEA_SAVE_RATE_LIMIT_MAX", 3),
            save_rate_limit_window_seconds=_get_int(env, "LEGALITEA_SAVE_RATE_LIMIT_WINDOW_SECONDS", 60),
            rate_limit_cleanup_seconds=_get_int(env, "LEGALITEA_RATE_LIMIT_CLEANUP_SECONDS", 5 * 60),
            fallback_enabled=_get_bool(env, "LEGALITEA_FALLBACK_ENABLED", True),
            save_ttl_hours=_get_int(env, "LEGALITEA_SAVE_TTL_HOURS", 24),
            cors_origins=_get_list(env, "CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
            upstash_redis_url=env.get("UPSTASH_REDIS_REST_URL") or None,
            upstash_redis_token=env.get("UPSTASH_REDIS_REST_TOKEN") or None,
        )


__all__ = ["Settings", "DEFAULT_MODEL_NAME", "MEGABYTE"]
