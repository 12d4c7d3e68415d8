"""Tests for the memoizing directory wrapper."""

import pytest

from nonprofit_recs.errors import DirectoryError
from nonprofit_recs.lib.cache import TTLCache
from nonprofit_recs.lib.directory import CachedDirectoryClient, DirectoryClient
from nonprofit_recs.models import NonprofitCandidate, NonprofitDetails


class CountingDirectory(DirectoryClient):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple] = []

    async def browse_cause(self, cause, take=50, page=1):
        self.calls.append(("browse", cause, take, page))
        if self.fail:
            raise DirectoryError("down", status_code=503)
        return [NonprofitCandidate(slug=f"{cause}-org")]

    async def search_nonprofits(self, term, causes=None, take=50):
        self.calls.append(("search", term, causes, take))
        return [NonprofitCandidate(slug=f"{term}-org")]

    async def get_nonprofit_details(self, identifier):
        self.calls.append(("details", identifier))
        if identifier == "missing":
            return None
        return NonprofitDetails(slug=identifier, profile_url=f"https://www.every.org/{identifier}")


@pytest.fixture
def cache():
    return TTLCache()


@pytest.mark.asyncio
async def test_browse_is_memoized(cache):
    inner = CountingDirectory()
    client = CachedDirectoryClient(inner, cache)
    first = await client.browse_cause("disasters")
    second = await client.browse_cause("disasters")
    assert [o.slug for o in first] == [o.slug for o in second] == ["disasters-org"]
    assert len(inner.calls) == 1
    assert cache.get("browse:disasters:1:50") is not None


@pytest.mark.asyncio
async def test_browse_pages_cached_separately(cache):
    inner = CountingDirectory()
    client = CachedDirectoryClient(inner, cache)
    await client.browse_cause("disasters", page=1)
    await client.browse_cause("disasters", page=2)
    assert len(inner.calls) == 2


@pytest.mark.asyncio
async def test_search_cache_ignores_cause_order(cache):
    inner = CountingDirectory()
    client = CachedDirectoryClient(inner, cache)
    await client.search_nonprofits("flood", causes=["a", "b"])
    await client.search_nonprofits("flood", causes=["b", "a"])
    assert len(inner.calls) == 1


@pytest.mark.asyncio
async def test_errors_are_not_cached(cache):
    inner = CountingDirectory(fail=True)
    client = CachedDirectoryClient(inner, cache)
    for _ in range(2):
        with pytest.raises(DirectoryError):
            await client.browse_cause("disasters")
    assert len(inner.calls) == 2
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_details_memoized_but_not_found_is_not(cache):
    inner = CountingDirectory()
    client = CachedDirectoryClient(inner, cache)
    assert (await client.get_nonprofit_details("red-cross")).slug == "red-cross"
    await client.get_nonprofit_details("red-cross")
    assert await client.get_nonprofit_details("missing") is None
    await client.get_nonprofit_details("missing")
    assert inner.calls == [("details", "red-cross"), ("details", "missing"), ("details", "missing")]


@pytest.mark.asyncio
async def test_returned_lists_are_copies(cache):
    client = CachedDirectoryClient(CountingDirectory(), cache)
    first = await client.search_nonprofits("flood")
    first.clear()
    assert len(await client.search_nonprofits("flood")) == 1


def test_is_configured_passthrough(cache):
    class Unconfigured(CountingDirectory):
        @property
        def is_configured(self):
            return False

    assert not CachedDirectoryClient(Unconfigured(), cache).is_configured
