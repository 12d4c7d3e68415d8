"""Policy-aligned reranker.

Ordering policy: geography is PRIMARY, cause alignment is SECONDARY, trust is
a TIEBREAKER and profile quality is a minor supporting signal.

For every candidate in the pool:

1. Resolve trust/vetting signals (all candidates concurrently, bounded).
2. Drop it at the vetting gate if unverified, or if vetting is unknown and
   its profile is too thin to trust.
3. Assign a geo tier and compute cause, trust and quality sub-scores.
4. Drop it if it has no cause alignment at all and enough candidates have
   already been accepted.

Survivors are sorted by tier, then cause score, then trust score, and a
diversity pass limits how often one primary category repeats.
"""

import asyncio
import functools
import logging

from pydantic import BaseModel, Field

from ...models import (
    ArticleEntities,
    ExcludedCounts,
    GeoTierCounts,
    NonprofitCandidate,
    NonprofitRanked,
    ScoreBreakdown,
)
from . import scoring
from .geo import GEO_TIER_RANK, determine_geo_tier, geo_score
from .trust import TrustProvider, resolve_signals

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

# Zero-cause candidates are only dropped once this many have been accepted.
MIN_POOL_BEFORE_CAUSE_EXCLUSION = 5
# Cause scores closer than this are treated as tied.
CAUSE_TIE_TOLERANCE = 0.1
MAX_PER_CATEGORY = 2
# The diversity pass backfills only when it leaves fewer than this many...
DIVERSITY_BACKFILL_BELOW = 10
# ...and never past this many results.
DIVERSITY_MAX_RESULTS = 20
MAX_CONCURRENCY = 8


class RerankingInput(BaseModel):
    candidates: list[NonprofitCandidate] = Field(default_factory=list)
    entities: ArticleEntities = Field(default_factory=ArticleEntities)
    causes: list[str] = Field(default_factory=list)
    article_keywords: list[str] = Field(default_factory=list)


class RerankingResult(BaseModel):
    ranked: list[NonprofitRanked] = Field(default_factory=list)
    geo_tier_counts: GeoTierCounts = Field(default_factory=GeoTierCounts)
    excluded_counts: ExcludedCounts = Field(default_factory=ExcludedCounts)
    trust_coverage: float = Field(0.0, description="% of the pool with a known trust score")


def _compare(a: NonprofitRanked, b: NonprofitRanked) -> int:
    if a.geo_tier != b.geo_tier:
        return GEO_TIER_RANK[b.geo_tier] - GEO_TIER_RANK[a.geo_tier]
    if abs(a.score.cause - b.score.cause) > CAUSE_TIE_TOLERANCE:
        return -1 if a.score.cause > b.score.cause else 1
    if a.score.trust != b.score.trust:
        return -1 if a.score.trust > b.score.trust else 1
    return 0


def sort_ranked(ranked: list[NonprofitRanked]) -> list[NonprofitRanked]:
    """Stable sort: tier, then cause (with tolerance), then trust."""
    return sorted(ranked, key=functools.cmp_to_key(_compare))


def apply_diversity_rule(ranked: list[NonprofitRanked]) -> list[NonprofitRanked]:
    """Keep at most ``MAX_PER_CATEGORY`` per primary category.

    If that leaves a short list, skipped items are appended back in their
    sorted order so small result sets are not over-pruned.
    """
    counts: dict[str, int] = {}
    diversified: list[NonprofitRanked] = []
    kept: set[int] = set()

    for idx, org in enumerate(ranked):
        category = org.primary_category or "unknown"
        if counts.get(category, 0) < MAX_PER_CATEGORY:
            diversified.append(org)
            kept.add(idx)
            counts[category] = counts.get(category, 0) + 1

    if len(diversified) < DIVERSITY_BACKFILL_BELOW:
        for idx, org in enumerate(ranked):
            if len(diversified) >= DIVERSITY_MAX_RESULTS:
                break
            if idx not in kept:
                diversified.append(org)

    return diversified


class Reranker:
    def __init__(
        self,
        trust_provider: TrustProvider | None = None,
        vetting_provider: TrustProvider | None = None,
        max_concurrency: int = MAX_CONCURRENCY,
    ):
        self.trust_provider = trust_provider
        self.vetting_provider = vetting_provider
        self.max_concurrency = max(1, max_concurrency)

    async def _resolve_all(self, candidates: list[NonprofitCandidate]):
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def one(candidate):
            async with semaphore:
                return await resolve_signals(candidate, self.trust_provider, self.vetting_provider)

        return await asyncio.gather(*(one(c) for c in candidates))

    async def rerank(self, payload: RerankingInput) -> RerankingResult:
        candidates = payload.candidates
        logger.info("Reranking %d candidates", len(candidates))

        signals_list = await self._resolve_all(candidates)

        ranked: list[NonprofitRanked] = []
        excluded = ExcludedCounts()
        geography = payload.entities.geography

        for candidate, signals in zip(candidates, signals_list):
            if not scoring.passes_vetting_gate(candidate, signals):
                excluded.vetting += 1
                continue

            tier = determine_geo_tier(candidate, geography)
            geo = geo_score(tier)
            cause = scoring.cause_score(candidate, payload.causes, payload.article_keywords)
            if cause == 0 and len(ranked) >= MIN_POOL_BEFORE_CAUSE_EXCLUSION:
                excluded.cause += 1
                continue

            trust = signals.trust_score if signals.trust_score is not None else 0
            quality = scoring.quality_score(candidate)
            score = ScoreBreakdown(
                total=scoring.total_score(geo, cause, trust, quality),
                geo=geo,
                cause=cause,
                trust=trust,
                quality=quality,
            )

            ranked.append(NonprofitRanked(
                **candidate.model_dump(),
                score=score,
                geo_tier=tier,
                reasons=scoring.generate_reasons(candidate, tier, cause, signals, quality),
                score_breakdown=scoring.format_score_breakdown(score),
                trust_vetting=signals,
            ))

        diversified = apply_diversity_rule(sort_ranked(ranked))

        tier_counts = GeoTierCounts()
        for org in diversified:
            setattr(tier_counts, org.geo_tier, getattr(tier_counts, org.geo_tier) + 1)

        known_trust = sum(1 for s in signals_list if s.trust_score is not None)
        trust_coverage = (known_trust / len(candidates)) * 100 if candidates else 0.0

        logger.info(
            "Reranking complete: ranked=%d excluded_vetting=%d excluded_cause=%d trust_coverage=%.1f%%",
            len(diversified), excluded.vetting, excluded.cause, trust_coverage,
        )

        return RerankingResult(
            ranked=diversified,
            geo_tier_counts=tier_counts,
            excluded_counts=excluded,
            trust_coverage=trust_coverage,
        )
