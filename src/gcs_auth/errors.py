"""Exception hierarchy for token acquisition and the storage request seam."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure raised while obtaining a bearer token."""


class ConfigError(AuthError):
    """No usable credential source, or the credential source is invalid."""


class TransportError(AuthError):
    """Network failure, timeout, or non-2xx status during a token exchange."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status

    @property
    def retryable(self) -> bool:
        """Whether repeating the same request could reasonably succeed."""
        if self.status is None:
            return True
        return self.status == 429 or self.status >= 500


class MalformedResponseError(AuthError):
    """The token endpoint answered with a body that is not the expected JSON shape."""


class SigningError(AuthError):
    """The private key could not be used to sign the assertion."""


class StorageError(Exception):
    """An API call made through :meth:`gcs_auth.client.Client.request` failed.

    Auth failures are chained as ``__cause__``; HTTP failures of the call
    itself carry ``status``.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
