"""Base abstraction for nonprofit directory clients.

A directory client answers three kinds of queries: browse by cause, search by
free-text term, and fetch one nonprofit's details.  Each call either returns
its results or raises ``DirectoryError``; failures of one call never affect
another.
"""

from abc import ABC, abstractmethod

from ...models import NonprofitCandidate, NonprofitDetails


class DirectoryClient(ABC):
    """Abstract base class for nonprofit directory clients."""

    @property
    def is_configured(self) -> bool:
        """False when the client cannot make any request (e.g. missing key)."""
        return True

    @abstractmethod
    async def browse_cause(
        self,
        cause: str,
        take: int = 50,
        page: int = 1,
    ) -> list[NonprofitCandidate]:
        """Return nonprofits the directory lists under *cause*."""
        ...

    @abstractmethod
    async def search_nonprofits(
        self,
        term: str,
        causes: list[str] | None = None,
        take: int = 50,
    ) -> list[NonprofitCandidate]:
        """Full-text search, optionally scoped to *causes*."""
        ...

    @abstractmethod
    async def get_nonprofit_details(self, identifier: str) -> NonprofitDetails | None:
        """Fetch one nonprofit by slug or EIN.  Returns ``None`` if not found."""
        ...

    async def aclose(self) -> None:
        """Release any network resources held by the client."""
