"""
Environment variable loading for thor_streamer.

- THOR_SERVER_ADDRESS: publisher host:port
- THOR_AUTH_TOKEN: value sent in the "authorization" metadata
- THOR_PROGRAM_FILTERS: comma-separated base58 program ids
- THOR_INCLUDE_VOTE / THOR_INCLUDE_FAILED: 1 | true | yes | on
- THOR_MAX_RETRIES, THOR_SIGNATURE_LOG_FILE, THOR_LOG_DIRECTORY, THOR_EVENTS_MODULE
- Loads .env from the working directory when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from thor_streamer.core.exceptions import ConfigError

ENV_PREFIX = "THOR_"
_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def load_env(path: str | Path | None = None) -> None:
    """Load .env (default: ./.env). Existing environment variables win. Safe to call repeatedly."""
    load_dotenv(Path(path) if path else Path.cwd() / ".env", override=False)


def env_str(name: str) -> str | None:
    raw = (os.getenv(ENV_PREFIX + name) or "").strip()
    return raw or None


def env_bool(name: str) -> bool | None:
    raw = env_str(name)
    if raw is None:
        return None
    low = raw.lower()
    if low in _TRUE:
        return True
    if low in _FALSE:
        return False
    raise ConfigError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def env_int(name: str) -> int | None:
    raw = env_str(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e


def env_list(name: str) -> list[str] | None:
    raw = env_str(name)
    if raw is None:
        return None
    return [p.strip() for p in raw.split(",") if p.strip()]
