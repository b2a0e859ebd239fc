"""Bearer-token acquisition for Google Cloud APIs.

Two strategies implement the :class:`TokenProvider` interface:

:class:`TokenManager`
    Signs a short-lived RS256 assertion with a service-account private key and
    exchanges it at the OAuth2 token endpoint.
:class:`MetadataManager`
    Fetches the ambient identity token from the instance metadata server, for
    code running inside Google's own compute environment.

Both cache the token they obtain and return it until it expires; refresh is
purely demand-driven.  A provider is *not* safe to share between concurrent
tasks on its own, wrap it in :class:`gcs_auth.provider.SharedTokenProvider`.

Typical usage::

    from gcs_auth.auth import TokenManager
    from gcs_auth.models import ApplicationCredentials

    creds = ApplicationCredentials.from_file("key.json")
    provider = TokenManager(creds, ["https://www.googleapis.com/auth/cloud-platform"])
    header = await provider.token()   # "Bearer ya29...."
"""

from __future__ import annotations

import abc
import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

import aiohttp
import jwt

from gcs_auth.errors import MalformedResponseError, SigningError, TransportError
from gcs_auth.models import ApplicationCredentials, AuthConfig, AuthResponse, Token, TokenValue

logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
METADATA_ENDPOINT = (
    "http://metadata.google.internal/computeMetadata/v1/instance/service-accounts/default/token"
)
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# Shorter than the 60 minutes the endpoint grants, to absorb clock skew and
# in-flight request latency.
ASSERTION_VALIDITY = timedelta(minutes=45)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class TokenProvider(abc.ABC):
    """A caching source of ``authorization`` header values.

    Subclasses implement :meth:`_exchange`; the caching policy lives here:
    a cached token is returned while ``expiry >= now``, otherwise one
    exchange is performed and its result replaces the cache.  A failed
    exchange leaves the cache untouched.

    Parameters
    ----------
    scopes:
        Scope URIs requested for every token.
    session:
        aiohttp session used for exchanges.  When omitted the provider creates
        one on first use and closes it in :meth:`close`.
    config:
        Timeout and retry settings; defaults to :class:`AuthConfig`.
    clock:
        Zero-argument callable returning the current UTC datetime.
    """

    kind: str = "abstract"

    def __init__(
        self,
        scopes: Sequence[str],
        *,
        session: aiohttp.ClientSession | None = None,
        config: AuthConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.scopes = " ".join(scopes)
        self.config = config or AuthConfig()
        self._session = session
        self._owns_session = session is None
        self._clock = clock or utc_now
        self._current_token: Token | None = None

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    @property
    def current_token(self) -> Token | None:
        """The cached token, possibly expired, or ``None`` before the first exchange."""
        return self._current_token

    def now(self) -> datetime:
        return self._clock()

    def cached_token(self, now: datetime | None = None) -> str | None:
        """Return the cached header value if it is still valid, without any I/O."""
        if now is None:
            now = self.now()
        token = self._current_token
        if token is not None and token.is_valid(now):
            return str(token.value)
        return None

    async def token(self) -> str:
        """Return a valid ``authorization`` value, exchanging for a new token if needed.

        Raises:
            gcs_auth.errors.AuthError: If a new token was needed and could not
                be obtained.
        """
        current_time = self.now()
        cached = self.cached_token(current_time)
        if cached is not None:
            logger.debug("Using cached %s token", self.kind)
            return cached

        token = await self._exchange(current_time)
        self._current_token = token
        logger.info("Obtained %s token (expires: %s)", self.kind, token.expiry.isoformat())
        return str(token.value)

    @abc.abstractmethod
    async def _exchange(self, current_time: datetime) -> Token:
        """Obtain a fresh token. Must not touch the cache."""

    # ------------------------------------------------------------------
    # HTTP transport
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this provider created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    async def _send_once(self, method: str, url: str, **kwargs) -> bytes:
        session = self._get_session()
        timeout = aiohttp.ClientTimeout(total=self.config.timeout or None)
        try:
            async with session.request(method, url, timeout=timeout, **kwargs) as resp:
                body = await resp.read()
                if not 200 <= resp.status < 300:
                    raise TransportError(
                        f"{method} {url} returned HTTP {resp.status}: {body[:200]!r}",
                        url=url,
                        status=resp.status,
                    )
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"{method} {url} failed: {e!r}", url=url) from e

    async def _send(self, method: str, url: str, **kwargs) -> bytes:
        """Issue one exchange request, retrying transient transport errors.

        Args:
            method: HTTP method.
            url: Request URL.
            **kwargs: Forwarded to :meth:`aiohttp.ClientSession.request`.

        Returns:
            The raw response body of a 2xx response.

        Raises:
            TransportError: On network failure, timeout, or non-2xx status once
                retries are exhausted (non-retryable statuses fail at once).
        """
        retries = self.config.max_retries
        attempt = 0
        while True:
            try:
                return await self._send_once(method, url, **kwargs)
            except TransportError as e:
                if not e.retryable or attempt >= retries:
                    raise
                wait = self.config.retry_backoff * (2**attempt)
                logger.warning(
                    "Token request error (attempt %d/%d): %s. Retrying in %.1fs",
                    attempt + 1,
                    retries + 1,
                    e,
                    wait,
                )
                await asyncio.sleep(wait)
                attempt += 1


class TokenManager(TokenProvider):
    """Assertion-exchange strategy for explicit service-account credentials.

    The cached token's expiry is the assertion's own ``exp`` claim (issue time
    plus :data:`ASSERTION_VALIDITY`); the ``expires_in`` reported by the
    endpoint is not used for bookkeeping.
    """

    kind = "service account"

    def __init__(self, creds: ApplicationCredentials, scopes: Sequence[str], **kwargs) -> None:
        super().__init__(scopes, **kwargs)
        self.creds = creds

    def _sign_assertion(self, current_time: datetime, expiry: datetime) -> str:
        payload = {
            "iss": self.creds.client_email,
            "scope": self.scopes,
            "aud": TOKEN_ENDPOINT,
            "exp": int(expiry.timestamp()),
            "iat": int(current_time.timestamp()),
        }
        try:
            return jwt.encode(
                payload,
                self.creds.private_key,
                algorithm="RS256",
                headers={"typ": "JWT"},
            )
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise SigningError(f"Could not sign assertion for {self.creds.client_email}: {e}") from e

    async def _exchange(self, current_time: datetime) -> Token:
        expiry = current_time + ASSERTION_VALIDITY
        assertion = self._sign_assertion(current_time, expiry)
        body = await self._send(
            "POST",
            TOKEN_ENDPOINT,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
        )
        response = AuthResponse.from_json(body)
        return Token(value=TokenValue(response.access_token), expiry=expiry)


class MetadataManager(TokenProvider):
    """Instance-metadata strategy for workloads running on Google compute.

    Here the server-reported ``expires_in`` is authoritative: the cached
    token expires ``expires_in`` seconds after the request was issued.
    """

    kind = "metadata"

    async def _exchange(self, current_time: datetime) -> Token:
        body = await self._send(
            "GET",
            METADATA_ENDPOINT,
            headers={"Metadata-Flavor": "Google"},
            params={"scopes": ",".join(self.scopes.split())},
        )
        response = AuthResponse.from_json(body)
        try:
            expiry = current_time + timedelta(seconds=response.expires_in)
        except OverflowError as e:
            raise MalformedResponseError(
                f"Token response 'expires_in' is out of range: {response.expires_in}"
            ) from e
        return Token(value=TokenValue(response.access_token), expiry=expiry)
