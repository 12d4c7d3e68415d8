"""Pluggable trust/vetting signal providers.

A provider turns a candidate into ``TrustVettingSignals``.  Providers are
injected into the reranker; when none is configured, or every configured
provider raises, the candidate gets the unknown default.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from ...models import UNKNOWN_SIGNALS, NonprofitCandidate, TrustVettingSignals

logger = logging.getLogger(__name__)


class TrustProvider(ABC):
    """Abstract base class for trust/vetting providers."""

    @abstractmethod
    async def resolve(self, candidate: NonprofitCandidate) -> TrustVettingSignals:
        ...


class NoopTrustProvider(TrustProvider):
    """Knows nothing about anyone."""

    async def resolve(self, candidate: NonprofitCandidate) -> TrustVettingSignals:
        return UNKNOWN_SIGNALS


class CallableTrustProvider(TrustProvider):
    """Adapts a plain ``async def fn(candidate) -> TrustVettingSignals``."""

    def __init__(self, fn: Callable[[NonprofitCandidate], Awaitable[TrustVettingSignals]]):
        self.fn = fn

    async def resolve(self, candidate: NonprofitCandidate) -> TrustVettingSignals:
        return await self.fn(candidate)


async def resolve_signals(
    candidate: NonprofitCandidate,
    trust_provider: TrustProvider | None = None,
    vetting_provider: TrustProvider | None = None,
) -> TrustVettingSignals:
    """Ask the trust provider, then the vetting provider, then give up.

    A provider that raises, or returns something that is not a valid set of
    signals, counts as failed for this candidate.
    """
    for kind, provider in (("Trust", trust_provider), ("Vetting", vetting_provider)):
        if provider is None:
            continue
        try:
            return TrustVettingSignals.model_validate(await provider.resolve(candidate))
        except Exception:
            logger.warning("%s provider failed for %s", kind, candidate.slug, exc_info=True)
    return UNKNOWN_SIGNALS
