"""
Client settings: JSON config file plus environment overrides.

Responsibilities:
- Read the JSON config file (same keys as the original client's config.json).
- Apply THOR_* environment overrides (see thor_streamer.config.env).
- Validate required settings and derive EndpointConfig / FilterConfig.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from thor_streamer.client.connector import DEFAULT_TIMEOUT_SEC, EndpointConfig
from thor_streamer.config.env import env_bool, env_int, env_list, env_str, load_env
from thor_streamer.core.exceptions import ConfigError
from thor_streamer.filters.transaction_filter import FilterConfig

DEFAULT_MAX_RETRIES = 5
DEFAULT_SIGNATURE_LOG_FILE = "signatures.log"
DEFAULT_EVENTS_MODULE = "events_pb2"


@dataclass(frozen=True)
class StreamerSettings:
    server_address: str = ""
    auth_token: str = ""
    program_filters: tuple[str, ...] = field(default_factory=tuple)
    log_directory: str = ""
    include_vote: bool = False
    include_failed: bool = False
    max_retries: int = DEFAULT_MAX_RETRIES
    signature_log_file: str = DEFAULT_SIGNATURE_LOG_FILE
    default_timeout_sec: float = DEFAULT_TIMEOUT_SEC
    events_module: str = DEFAULT_EVENTS_MODULE

    def validate(self) -> StreamerSettings:
        if not self.server_address:
            raise ConfigError("server address is required")
        if not self.auth_token:
            raise ConfigError("auth token is required")
        if self.default_timeout_sec <= 0:
            raise ConfigError("default_timeout_sec must be positive")
        return self

    def log_directory_path(self) -> Path:
        if not self.log_directory:
            return Path.cwd()
        return Path(self.log_directory).expanduser().resolve()

    def signature_log_path(self) -> Path:
        path = Path(self.signature_log_file).expanduser()
        if path.is_absolute():
            return path
        return self.log_directory_path() / path

    def endpoint(self) -> EndpointConfig:
        return EndpointConfig(
            address=self.server_address,
            auth_token=self.auth_token,
            max_retries=self.max_retries,
            default_timeout=self.default_timeout_sec,
        )

    def filter_config(self) -> FilterConfig:
        return FilterConfig.build(
            self.program_filters,
            include_vote=self.include_vote,
            include_failed=self.include_failed,
        )


def _file_bool(data: dict[str, Any], key: str) -> bool:
    value = data[key]
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def _file_number(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data[key]
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a number, got {value!r}") from e


def _from_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"failed to read config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to parse config: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config file must contain a JSON object")

    out: dict[str, Any] = {}
    if "server_address" in data:
        out["server_address"] = str(data["server_address"] or "")
    if "auth_token" in data:
        out["auth_token"] = str(data["auth_token"] or "")
    if "program_filters" in data:
        filters = data["program_filters"] or []
        if not isinstance(filters, list):
            raise ConfigError("program_filters must be a list")
        out["program_filters"] = tuple(str(p) for p in filters)
    if "log_directory" in data:
        out["log_directory"] = str(data["log_directory"] or "")
    if "include_vote_transactions" in data:
        out["include_vote"] = _file_bool(data, "include_vote_transactions")
    if "include_failed_transactions" in data:
        out["include_failed"] = _file_bool(data, "include_failed_transactions")
    if data.get("max_retries") is not None:
        out["max_retries"] = _file_number(data, "max_retries", int)
    if data.get("signature_log_file"):
        out["signature_log_file"] = str(data["signature_log_file"])
    if data.get("default_timeout_sec") is not None:
        out["default_timeout_sec"] = _file_number(data, "default_timeout_sec", float)
    if data.get("events_module"):
        out["events_module"] = str(data["events_module"])
    return out


def _from_env() -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in (
        ("server_address", env_str("SERVER_ADDRESS")),
        ("auth_token", env_str("AUTH_TOKEN")),
        ("log_directory", env_str("LOG_DIRECTORY")),
        ("signature_log_file", env_str("SIGNATURE_LOG_FILE")),
        ("events_module", env_str("EVENTS_MODULE")),
        ("include_vote", env_bool("INCLUDE_VOTE")),
        ("include_failed", env_bool("INCLUDE_FAILED")),
        ("max_retries", env_int("MAX_RETRIES")),
    ):
        if value is not None:
            out[key] = value
    filters = env_list("PROGRAM_FILTERS")
    if filters is not None:
        out["program_filters"] = tuple(filters)
    return out


def load_settings(path: str | Path | None = None, *, use_env: bool = True) -> StreamerSettings:
    """
    Build settings from defaults, then the JSON file (if given), then THOR_* env.

    max_retries defaults to 5 only when absent; an explicit 0 or negative
    value is kept and makes the connector give up without an attempt.
    """
    settings = StreamerSettings()
    if path is not None:
        settings = replace(settings, **_from_file(Path(path)))
    if use_env:
        load_env()
        settings = replace(settings, **_from_env())
    return settings
