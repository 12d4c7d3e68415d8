"""Memoizing wrapper around any ``DirectoryClient``.

Successful responses are stored in the shared ``TTLCache`` under the
``search:``, ``browse:`` and ``nonprofit:`` namespaces.  Errors propagate and
are never cached, so a transient upstream failure does not stick.
"""

import logging

from ...models import NonprofitCandidate, NonprofitDetails
from ..cache import TTLCache, browse_key, nonprofit_key, search_key
from .base import DirectoryClient

logger = logging.getLogger(__name__)


class CachedDirectoryClient(DirectoryClient):
    def __init__(self, inner: DirectoryClient, cache: TTLCache):
        self.inner = inner
        self.cache = cache

    @property
    def is_configured(self) -> bool:
        return self.inner.is_configured

    async def aclose(self) -> None:
        await self.inner.aclose()

    async def browse_cause(
        self,
        cause: str,
        take: int = 50,
        page: int = 1,
    ) -> list[NonprofitCandidate]:
        key = browse_key(cause, page=page, take=take)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Directory cache hit: %s", key)
            return list(cached)
        results = await self.inner.browse_cause(cause, take=take, page=page)
        self.cache.set(key, list(results))
        return results

    async def search_nonprofits(
        self,
        term: str,
        causes: list[str] | None = None,
        take: int = 50,
    ) -> list[NonprofitCandidate]:
        key = search_key(term, causes=causes, take=take)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Directory cache hit: %s", key)
            return list(cached)
        results = await self.inner.search_nonprofits(term, causes=causes, take=take)
        self.cache.set(key, list(results))
        return results

    async def get_nonprofit_details(self, identifier: str) -> NonprofitDetails | None:
        key = nonprofit_key(identifier)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        details = await self.inner.get_nonprofit_details(identifier)
        if details is not None:
            self.cache.set(key, details)
        return details
