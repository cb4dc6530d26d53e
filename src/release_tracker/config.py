"""
Configuration helpers and defaults.

Centralize tunables to avoid magic numbers in code/tests.
Settings are loaded once per process and passed explicitly to request code.
"""

from __future__ import annotations

import functools
import os
from dataclasses import dataclass

DEFAULT_ASANA_BASE_URL = "https://app.asana.com/api/1.0"
DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY_MS = 100
DEFAULT_UPCOMING_WINDOW_DAYS = 30


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v is not None else default


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = (_env(name, "") or "").strip()
    try:
        value = int(raw) if raw else default
    except ValueError:
        value = default
    return max(minimum, value)


@dataclass(frozen=True)
class Settings:
    asana_token: str | None
    workspace_id: str | None
    asana_base_url: str = DEFAULT_ASANA_BASE_URL
    asana_secret_name: str | None = None
    request_timeout_seconds: int = 8
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay_ms: int = DEFAULT_BATCH_DELAY_MS
    upcoming_window_days: int = DEFAULT_UPCOMING_WINDOW_DAYS
    cors_allow_origin: str = "*"

    @property
    def is_configured(self) -> bool:
        return bool(self.asana_token) and bool(self.workspace_id)

    @property
    def batch_delay_seconds(self) -> float:
        return self.batch_delay_ms / 1000.0


def load_settings() -> Settings:
    """Load settings from environment with safe defaults for local tests."""

    secret_name = _env("ASANA_SECRET_NAME") or None
    token = _env("ASANA_TOKEN") or None
    if not token and secret_name:
        from .aws_secrets import load_token_from_secret

        token = load_token_from_secret(secret_name)

    return Settings(
        asana_token=token,
        workspace_id=_env("ASANA_WORKSPACE_ID") or None,
        asana_base_url=_env("ASANA_BASE_URL") or DEFAULT_ASANA_BASE_URL,
        asana_secret_name=secret_name,
        request_timeout_seconds=_int_env("ASANA_TIMEOUT_SECONDS", 8, minimum=1),
        batch_size=_int_env("TASK_BATCH_SIZE", DEFAULT_BATCH_SIZE, minimum=1),
        batch_delay_ms=_int_env("TASK_BATCH_DELAY_MS", DEFAULT_BATCH_DELAY_MS),
        upcoming_window_days=_int_env("UPCOMING_WINDOW_DAYS", DEFAULT_UPCOMING_WINDOW_DAYS),
        cors_allow_origin=_env("CORS_ALLOW_ORIGIN", "*") or "*",
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Loaded on first request, then read-only for the life of the container.
    return load_settings()
