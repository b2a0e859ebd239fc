"""Cloud Storage client bound to a project and one token strategy.

The strategy is chosen once, when the client is built, and never changes:

  1. ``GOOGLE_APPLICATION_CREDENTIALS`` names a key file -> :class:`TokenManager`
  2. ``K_SERVICE`` is set (managed compute)            -> :class:`MetadataManager`
  3. neither                                           -> :class:`ConfigError`

Every client owns its provider and token cache; two clients never share
tokens.

Typical usage::

    from gcs_auth.client import Client

    async with Client.from_env("my-project") as client:
        buckets = await client.buckets()
        bucket = await client.bucket("my-bucket")

Any other API call goes through :meth:`Client.request`, which attaches the
current token.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any

import aiohttp

from gcs_auth.auth import Clock, MetadataManager, TokenManager, TokenProvider
from gcs_auth.env import CREDENTIALS_VAR, AuthEnv, load_env
from gcs_auth.errors import AuthError, ConfigError, StorageError
from gcs_auth.models import DEFAULT_SCOPES, ApplicationCredentials, AuthConfig
from gcs_auth.provider import SharedTokenProvider
from gcs_auth.storage import Bucket, Object, path_segment, resource_name

logger = logging.getLogger(__name__)


class Client:
    """Cloud Storage client for a specific project.

    Build it with :meth:`from_env`, :meth:`from_credentials` or
    :meth:`from_metadata` rather than calling the constructor directly.
    """

    ENDPOINT = "https://storage.googleapis.com/storage/v1"
    # Uploads go to a separate endpoint.
    UPLOAD_ENDPOINT = "https://storage.googleapis.com/upload/storage/v1"
    SCOPES: tuple[str, ...] = DEFAULT_SCOPES

    def __init__(
        self,
        project_name: str,
        provider: TokenProvider,
        *,
        session: aiohttp.ClientSession | None = None,
        config: AuthConfig | None = None,
        credential_source: str = "explicit",
    ) -> None:
        self.project_name = project_name
        self.config = config or AuthConfig()
        self.credential_source = credential_source
        self.token_provider = SharedTokenProvider(provider)
        self._session = session
        self._owns_session = session is None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_credentials(
        cls,
        project_name: str,
        creds: ApplicationCredentials,
        *,
        config: AuthConfig | None = None,
        session: aiohttp.ClientSession | None = None,
        clock: Clock | None = None,
        credential_source: str = "explicit",
    ) -> Client:
        """Create a client that signs assertions with *creds*."""
        config = config or AuthConfig()
        provider = TokenManager(creds, config.scopes, session=session, config=config, clock=clock)
        return cls(project_name, provider, session=session, config=config, credential_source=credential_source)

    @classmethod
    def from_metadata(
        cls,
        project_name: str,
        *,
        config: AuthConfig | None = None,
        session: aiohttp.ClientSession | None = None,
        clock: Clock | None = None,
        credential_source: str = "explicit",
    ) -> Client:
        """Create a client that fetches tokens from the instance metadata server."""
        config = config or AuthConfig()
        provider = MetadataManager(config.scopes, session=session, config=config, clock=clock)
        return cls(project_name, provider, session=session, config=config, credential_source=credential_source)

    @classmethod
    def from_env(
        cls,
        project_name: str,
        *,
        config: AuthConfig | None = None,
        session: aiohttp.ClientSession | None = None,
        clock: Clock | None = None,
        env: AuthEnv | None = None,
    ) -> Client:
        """Create a client from whatever credential source the environment offers.

        Args:
            project_name: Project the client operates on.
            config: Scopes, timeout and retry settings.
            session: Shared aiohttp session; one is created lazily if omitted.
            clock: Clock override for the token provider.
            env: Pre-discovered environment; :func:`load_env` is called if omitted.

        Raises:
            ConfigError: If no credential source is available, or the
                credentials file cannot be loaded.
        """
        if env is None:
            env = load_env()

        if env.credentials_path is not None:
            creds = ApplicationCredentials.from_file(env.credentials_path)
            logger.info(
                "Using service account %s from %s (%s)",
                creds.client_email,
                env.credentials_path,
                env.source,
            )
            return cls.from_credentials(
                project_name,
                creds,
                config=config,
                session=session,
                clock=clock,
                credential_source=f"{CREDENTIALS_VAR} ({env.source})",
            )
        if env.managed:
            logger.info("Using instance metadata server for tokens (%s)", env.source)
            return cls.from_metadata(
                project_name,
                config=config,
                session=session,
                clock=clock,
                credential_source=f"metadata server ({env.source})",
            )
        raise ConfigError(f"Missing both {CREDENTIALS_VAR} and metadata service.")

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    @staticmethod
    def uri(path: str) -> str:
        """Join *path* onto :attr:`ENDPOINT`; a leading slash is optional."""
        if path.startswith("/"):
            return f"{Client.ENDPOINT}{path}"
        return f"{Client.ENDPOINT}/{path}"

    @property
    def provider(self) -> TokenProvider:
        return self.token_provider.provider

    @property
    def scopes(self) -> Sequence[str]:
        return self.provider.scopes.split()

    async def token(self) -> str:
        """Return the current ``authorization`` header value."""
        return await self.token_provider.token()

    async def authorization_headers(self) -> dict[str, str]:
        return {"authorization": await self.token()}

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Issue one authorized API request.

        The token is obtained once, before the request is sent; the provider
        lock is not held while the request is in flight.

        Returns:
            The decoded JSON body for JSON responses, ``{}`` for an empty
            body, raw bytes otherwise.

        Raises:
            StorageError: If no token could be obtained (the auth error is the
                ``__cause__``) or the API answered with an error status.
        """
        try:
            auth_headers = await self.authorization_headers()
        except AuthError as e:
            raise StorageError(f"{method} {url}: could not authorize request: {e}") from e

        request_headers = dict(headers or {})
        request_headers.update(auth_headers)

        session = self._get_session()
        timeout = aiohttp.ClientTimeout(total=self.config.timeout or None)
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                headers=request_headers,
                timeout=timeout,
            ) as resp:
                body = await resp.read()
                if resp.status >= 400:
                    raise StorageError(
                        f"{method} {url} returned HTTP {resp.status}: {body[:200]!r}",
                        status=resp.status,
                    )
                content_type = resp.headers.get("Content-Type", "")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StorageError(f"{method} {url} failed: {e!r}") from e

        if not body:
            return {}
        if content_type.startswith("application/json"):
            return _decode_json(body, method, url)
        return body

    # ------------------------------------------------------------------
    # Buckets and objects
    # ------------------------------------------------------------------

    async def bucket(self, name: str) -> Bucket:
        """Look up an existing bucket and return a handle to it."""
        resource = await self.request("GET", self.uri(f"/b/{path_segment(name)}"))
        return Bucket(self, resource_name(resource, f"get bucket {name!r}"))

    async def buckets(self) -> list[Bucket]:
        """List the buckets of :attr:`project_name`."""
        resources = await self.request("GET", self.uri("/b"), params={"project": self.project_name})
        if not isinstance(resources, dict):
            raise StorageError("list buckets: response is not a JSON object")
        # The API omits "items" when the project has no buckets.
        items = resources.get("items", [])
        if not isinstance(items, list):
            raise StorageError("list buckets: 'items' is not a list")
        return [Bucket(self, resource_name(item, "list buckets")) for item in items]

    async def create_bucket(self, name: str) -> Bucket:
        """Create a bucket in :attr:`project_name` and return a handle to it."""
        resource = await self.request(
            "POST",
            self.uri("/b"),
            params={"project": self.project_name},
            json={"kind": "storage#bucket", "name": name},
        )
        created = resource_name(resource, f"create bucket {name!r}")
        logger.info("Created bucket %s in project %s", created, self.project_name)
        return Bucket(self, created)

    def object(self, bucket: str, name: str) -> Object:
        """Return a handle to an object without contacting the API."""
        return Object(self, bucket, name)

    async def close(self) -> None:
        """Close the sessions this client and its provider created."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        await self.token_provider.close()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def _decode_json(body: bytes, method: str, url: str) -> Any:
    try:
        return json.loads(body)
    except ValueError as e:
        raise StorageError(f"{method} {url} returned invalid JSON: {e}") from e
