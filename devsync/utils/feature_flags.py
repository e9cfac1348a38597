"""Runtime configuration helpers sourced from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _normalize_bool(value: str | None, default: bool = False) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class AppSettings:
    app_env: str
    email_enabled: bool
    dev_mode: bool
    free_tier_member_limit: int
    free_tier_workspace_limit: int
    invite_ttl_days: int


@lru_cache(maxsize=None)
def get_settings() -> AppSettings:
    """Return the cached settings state sourced from the environment."""
    app_env = (os.getenv("APP_ENV") or "development").strip().lower()
    return AppSettings(
        app_env=app_env,
        # Production sends by default; elsewhere only when explicitly enabled
        email_enabled=_normalize_bool(os.getenv("EMAIL_ENABLED"), default=app_env == "production"),
        dev_mode=_normalize_bool(os.getenv("DEV_MODE"), default=False),
        free_tier_member_limit=_int_env("FREE_TIER_MEMBER_LIMIT", 5),
        free_tier_workspace_limit=_int_env("FREE_TIER_WORKSPACE_LIMIT", 1),
        invite_ttl_days=_int_env("INVITE_TTL_DAYS", 7),
    )


def email_enabled() -> bool:
    """Whether invitation emails are actually dispatched."""
    return get_settings().email_enabled


def dev_mode_enabled() -> bool:
    """Resolve every request as the local development user."""
    return get_settings().dev_mode


def refresh_settings_cache() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_settings.cache_clear()
