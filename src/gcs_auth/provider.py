"""Shared, lock-guarded access to a single token provider.

Every API call made by a :class:`gcs_auth.client.Client` asks this handle for
its ``authorization`` value.

Design notes
------------
*   Reads of a still-valid cached token take a fast path that never touches
    the lock.  Reading does not mutate the provider, so this cannot observe a
    half-written cache.

*   A refresh holds ``_lock`` for its entire duration, network round-trip
    included.  Callers racing on an expired token queue behind the lock; the
    provider re-checks its cache once they get in, so only the first one
    performs an exchange and the rest receive the refreshed token.

*   The cache is only replaced under the lock, so for one handle the expiry
    of returned tokens never goes backwards.

*   The lock is released before :meth:`token` returns; the caller's own
    request never runs under it.
"""

from __future__ import annotations

import asyncio
import logging

from gcs_auth.auth import TokenProvider

logger = logging.getLogger(__name__)


class SharedTokenProvider:
    """Serializes refreshes of one :class:`TokenProvider` across concurrent tasks."""

    def __init__(self, provider: TokenProvider) -> None:
        self.provider = provider
        self._lock = asyncio.Lock()

    @property
    def kind(self) -> str:
        return self.provider.kind

    async def token(self) -> str:
        """Return a valid ``authorization`` value, refreshing at most once per expiry."""
        cached = self.provider.cached_token()
        if cached is not None:
            return cached

        async with self._lock:
            # Whoever held the lock before us may already have refreshed.
            return await self.provider.token()

    async def close(self) -> None:
        await self.provider.close()
