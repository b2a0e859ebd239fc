"""gcs-auth: bearer tokens for Google Cloud Storage."""

__version__ = "1.0.0"

from gcs_auth.auth import MetadataManager, TokenManager, TokenProvider
from gcs_auth.client import Client
from gcs_auth.errors import (
    AuthError,
    ConfigError,
    MalformedResponseError,
    SigningError,
    StorageError,
    TransportError,
)
from gcs_auth.models import ApplicationCredentials
from gcs_auth.provider import SharedTokenProvider
from gcs_auth.storage import Bucket, Object

__all__ = [
    "ApplicationCredentials",
    "AuthError",
    "Bucket",
    "Client",
    "ConfigError",
    "MalformedResponseError",
    "MetadataManager",
    "Object",
    "SharedTokenProvider",
    "SigningError",
    "StorageError",
    "TokenManager",
    "TokenProvider",
    "TransportError",
    "__version__",
]
