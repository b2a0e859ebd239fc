"""Data models for gcs-auth."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any

from gcs_auth.errors import ConfigError, MalformedResponseError

DEFAULT_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/devstorage.full_control",
)


@dataclass(frozen=True)
class ApplicationCredentials:
    """Service-account identity and signing key, as stored in a JSON key file."""

    cred_type: str
    project_id: str
    private_key_id: str
    private_key: str = field(repr=False)
    client_email: str
    client_id: str
    auth_uri: str
    token_uri: str
    auth_provider_x509_cert_url: str
    client_x509_cert_url: str

    @staticmethod
    def _json_key(name: str) -> str:
        return "type" if name == "cred_type" else name

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApplicationCredentials:
        """Build credentials from a parsed key file.

        Raises:
            ConfigError: If a required key is missing or not a string.
        """
        if not isinstance(data, dict):
            raise ConfigError("Credentials must be a JSON object")
        kwargs = {}
        for f in fields(cls):
            key = cls._json_key(f.name)
            value = data.get(key)
            if not isinstance(value, str):
                raise ConfigError(f"Credentials are missing required string field '{key}'")
            kwargs[f.name] = value
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str | Path) -> ApplicationCredentials:
        """Load credentials from a service-account JSON key file.

        Raises:
            ConfigError: If the file cannot be read or does not hold valid credentials.
        """
        cred_path = Path(path)
        try:
            raw = cred_path.read_text()
        except OSError as e:
            raise ConfigError(f"Cannot read credentials file {cred_path}: {e}") from e
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ConfigError(f"Credentials file {cred_path} is not valid JSON: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, str]:
        return {self._json_key(f.name): getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class TokenValue:
    """An authorization value. ``Bearer`` is the only kind issued today."""

    value: str = field(repr=False)
    kind: str = "Bearer"

    def __str__(self) -> str:
        return f"{self.kind} {self.value}"


@dataclass(frozen=True)
class Token:
    """A cached token and the absolute UTC instant it stops being usable."""

    value: TokenValue
    expiry: datetime

    def is_valid(self, now: datetime) -> bool:
        return self.expiry >= now

    def expires_in(self, now: datetime) -> int:
        """Whole seconds left before expiry, never negative."""
        return max(0, int((self.expiry - now).total_seconds()))


@dataclass
class AuthResponse:
    """Body returned by both the token endpoint and the metadata server."""

    access_token: str
    expires_in: int = 0

    @classmethod
    def from_json(cls, body: bytes | str) -> AuthResponse:
        """Parse a token response body.

        Raises:
            MalformedResponseError: If the body is not a JSON object with a
                string ``access_token`` and an optional integer ``expires_in``.
        """
        try:
            data = json.loads(body)
        except ValueError as e:
            raise MalformedResponseError(f"Token response is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponseError("Token response must be a JSON object")

        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise MalformedResponseError("Token response has no 'access_token'")

        expires_in = data.get("expires_in", 0)
        # bool is an int subclass; reject it explicitly
        if isinstance(expires_in, bool):
            raise MalformedResponseError(f"Token response 'expires_in' is not an integer: {expires_in!r}")
        if isinstance(expires_in, float) and expires_in.is_integer():
            expires_in = int(expires_in)
        if not isinstance(expires_in, int):
            raise MalformedResponseError(f"Token response 'expires_in' is not an integer: {expires_in!r}")
        return cls(access_token=access_token, expires_in=expires_in)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: str | None = None


@dataclass
class AuthConfig:
    """Token acquisition settings."""

    scopes: tuple[str, ...] = DEFAULT_SCOPES
    timeout: float = 30.0  # Seconds per exchange request
    max_retries: int = 2
    retry_backoff: float = 0.5  # Base seconds for exponential backoff


@dataclass
class AppConfig:
    """Top-level application configuration."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
