"""Discover which credential source the environment offers.

Two inputs decide how a client obtains tokens:

``GOOGLE_APPLICATION_CREDENTIALS``
    Path to a service-account JSON key file.
``K_SERVICE``
    Presence-only marker, set by the platform when the process runs inside the
    managed compute environment (its value is ignored).

Each is looked up in priority order:

  1. the process environment
  2. a ``.env`` file in the current working directory

Empty values count as absent.  Discovery runs every time :func:`load_env` is
called, so each client sees the environment as it is when the client is built.

Typical usage::

    from gcs_auth.env import load_env

    env = load_env()
    if env.credentials_path is not None:
        ...
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CREDENTIALS_VAR = "GOOGLE_APPLICATION_CREDENTIALS"
MANAGED_MARKER_VAR = "K_SERVICE"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _parse_dotenv(path: Path) -> dict[str, str]:
    """Parse a .env file into a ``{key: value}`` dict.

    Handles ``KEY=value``, double/single-quoted values, comment lines, and
    blank lines.  Inline comments are *not* stripped (not standard dotenv).
    """
    result: dict[str, str] = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]
        if key:
            result[key] = value
    return result


def _read_dotenv(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    try:
        return _parse_dotenv(path)
    except (OSError, ValueError):
        logger.debug("Failed to parse .env file", exc_info=True)
        return {}


def _lookup(name: str, dotenv_vars: dict[str, str]) -> tuple[str | None, str]:
    """Return ``(value, source)`` for *name*, or ``(None, "none")``."""
    value = os.environ.get(name)
    if value:
        return value, "environment"
    value = dotenv_vars.get(name)
    if value:
        return value, ".env file"
    return None, "none"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AuthEnv:
    """Credential sources found in the environment."""

    credentials_path: Path | None = None
    managed: bool = False
    source: str = "none"  # "environment", ".env file" or "none"


def load_env(dotenv_path: str | Path = ".env") -> AuthEnv:
    """Look up the credentials-file path and the managed-compute marker.

    Each variable is resolved on its own (process environment, then ``.env``)
    before precedence is applied, so a key file named in ``.env`` still wins
    over a marker set in the process environment.

    Args:
        dotenv_path: ``.env`` file consulted when the process environment does
            not set a variable.

    Returns:
        AuthEnv describing what was found.  ``source`` names where the input
        that decides the strategy came from.  Nothing is validated here; a
        path that does not exist surfaces when the credentials file is loaded.
    """
    dotenv_vars: dict[str, str] = {}
    if not (os.environ.get(CREDENTIALS_VAR) and os.environ.get(MANAGED_MARKER_VAR)):
        dotenv_vars = _read_dotenv(Path(dotenv_path))

    cred_path, cred_source = _lookup(CREDENTIALS_VAR, dotenv_vars)
    marker, marker_source = _lookup(MANAGED_MARKER_VAR, dotenv_vars)
    managed = marker is not None

    if cred_path is not None:
        return AuthEnv(credentials_path=Path(cred_path), managed=managed, source=cred_source)
    if managed:
        return AuthEnv(managed=True, source=marker_source)
    return AuthEnv()
