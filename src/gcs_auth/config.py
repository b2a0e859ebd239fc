"""YAML configuration loading with environment variable interpolation."""

from __future__ import annotations

import math
import os
import re
from pathlib import Path

import yaml

from gcs_auth.models import AppConfig, AuthConfig, LoggingConfig

JSONPrimitive = None | bool | int | float | str
JSONValue = "JSONPrimitive | JSONList | JSONObject"
JSONList = list[JSONValue]
JSONObject = dict[str, JSONValue]
JSONType = JSONList | JSONObject

ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)}")

# Keys that would put key material into the config file
FORBIDDEN_KEYS = ("credentials", "private_key")


def _interpolate_env_vars(value: str) -> str:
    """Replace ${ENV_VAR} patterns with environment variable values."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        env_val = os.environ.get(var_name, "")
        if not env_val:
            raise ValueError(f"Environment variable '{var_name}' is not set")
        return env_val

    return ENV_VAR_PATTERN.sub(replacer, value)


def _interpolate_recursive(obj: JSONPrimitive | JSONType) -> JSONPrimitive | JSONType:
    """Recursively interpolate env vars in strings within dicts/lists."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


def _number(data: dict, key: str) -> float:
    """Read a finite, non-negative number from the auth section."""
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f"auth.{key} must be a number, got {value!r}")
    if value < 0:
        raise ValueError(f"auth.{key} must not be negative, got {value}")
    return float(value)


def _count(data: dict, key: str) -> int:
    """Read a non-negative integer from the auth section; ``2.0`` is accepted, ``1.9`` is not."""
    value = data[key]
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"auth.{key} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"auth.{key} must not be negative, got {value}")
    return value


def _parse_logging_config(data: dict) -> LoggingConfig:
    """Parse the logging section."""
    if not isinstance(data, dict):
        raise ValueError("'logging' must be a mapping")
    level = data.get("level", "INFO")
    if not isinstance(level, str):
        raise ValueError(f"logging.level must be a string, got {level!r}")
    log_file = data.get("file")
    if log_file is not None and not isinstance(log_file, str):
        raise ValueError(f"logging.file must be a path string, got {log_file!r}")
    return LoggingConfig(level=level, file=log_file)


def _parse_auth_config(data: dict) -> AuthConfig:
    """Parse token acquisition settings."""
    if not isinstance(data, dict):
        raise ValueError("'auth' must be a mapping")
    for key in FORBIDDEN_KEYS:
        if key in data:
            raise ValueError(
                "Credentials must not be stored in the config file. "
                "Set GOOGLE_APPLICATION_CREDENTIALS to the key file path instead."
            )

    cfg = AuthConfig()
    if "scopes" in data:
        scopes = data["scopes"]
        if not isinstance(scopes, list) or not scopes or not all(isinstance(s, str) for s in scopes):
            raise ValueError("auth.scopes must be a non-empty list of scope URIs")
        cfg.scopes = tuple(scopes)
    if "timeout" in data:
        cfg.timeout = _number(data, "timeout")
    if "max_retries" in data:
        cfg.max_retries = _count(data, "max_retries")
    if "retry_backoff" in data:
        cfg.retry_backoff = _number(data, "retry_backoff")
    return cfg


def load_config(path: str | Path) -> AppConfig:
    """Load and validate a YAML configuration file.

    Args:
        path: Path to the YAML config file.

    Returns:
        Parsed AppConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError("Config file must be a YAML mapping")

    data = _interpolate_recursive(raw)

    for key in FORBIDDEN_KEYS:
        if key in data:
            raise ValueError(
                "Credentials must not be stored in the config file. "
                "Set GOOGLE_APPLICATION_CREDENTIALS to the key file path instead."
            )

    app_config = AppConfig()

    if "logging" in data:
        app_config.logging = _parse_logging_config(data["logging"])

    if "auth" in data:
        app_config.auth = _parse_auth_config(data["auth"])

    return app_config
