"""Runtime configuration read from the process environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field


DEFAULT_SANDBOX_TIMEOUT_MS = 10 * 60 * 1000
DEFAULT_MAX_DURATION_SECONDS = 60.0
DEFAULT_ALLOWED_ORIGINS = ("http://localhost:3000",)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    e2b_api_key: str | None = None
    sandbox_timeout_ms: int = DEFAULT_SANDBOX_TIMEOUT_MS
    max_duration_seconds: float = DEFAULT_MAX_DURATION_SECONDS
    await_file_writes: bool = True
    allowed_origins: tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)
    log_level: str = "INFO"

    @property
    def api_key_set(self) -> bool:
        return bool(self.e2b_api_key)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_number(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be numeric, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings() -> Settings:
    """Build settings from the current environment."""

    origins_raw = os.getenv("FRAGMENTS_ALLOWED_ORIGINS")
    if origins_raw:
        origins = tuple(item.strip() for item in origins_raw.split(",") if item.strip())
    else:
        origins = DEFAULT_ALLOWED_ORIGINS

    return Settings(
        e2b_api_key=os.getenv("E2B_API_KEY") or None,
        sandbox_timeout_ms=int(_env_number("FRAGMENTS_SANDBOX_TIMEOUT_MS", DEFAULT_SANDBOX_TIMEOUT_MS)),
        max_duration_seconds=_env_number("FRAGMENTS_MAX_DURATION_SECONDS", DEFAULT_MAX_DURATION_SECONDS),
        await_file_writes=_env_bool("FRAGMENTS_AWAIT_FILE_WRITES", True),
        allowed_origins=origins,
        log_level=os.getenv("FRAGMENTS_LOG_LEVEL", "INFO").upper(),
    )


def get_settings() -> Settings:
    # Read once per request; nothing is cached between requests.
    return load_settings()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
