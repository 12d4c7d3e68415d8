"""Recommendation pipeline: cache → candidate generation → reranking → enrichment.

The full ranked list for an article is cached under a ``recommendation:``
key; every call slices its own top N from it and enriches that slice, so
callers asking for different N share one cache entry.
"""

import logging
import time

from pydantic import BaseModel, Field

from ..errors import DirectoryNotConfiguredError
from ..models import (
    ArticleContext,
    CacheStats,
    DebugInfo,
    ExcludedCounts,
    GeoTierCounts,
    NonprofitRanked,
    RecommendationResult,
)
from .cache import TTLCache, recommendation_key
from .candidates import CandidateGenerationInput, CandidateGenerator
from .enricher import Enricher
from .ranking import Reranker, RerankingInput

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10


class RecommendationOptions(BaseModel):
    debug: bool = False
    top_n: int = Field(DEFAULT_TOP_N, ge=1)
    use_cache: bool = True


class CachedRecommendation(BaseModel):
    """What is stored in the cache for one article: the full ranked list."""

    ranked: list[NonprofitRanked] = Field(default_factory=list)
    causes_used: list[str] = Field(default_factory=list)
    search_terms_used: list[str] = Field(default_factory=list)
    geo_tier_counts: GeoTierCounts = Field(default_factory=GeoTierCounts)
    excluded_counts: ExcludedCounts = Field(default_factory=ExcludedCounts)
    trust_coverage: float = 0.0
    candidate_count: int = 0


def article_cache_key(context: ArticleContext) -> str:
    return recommendation_key(
        f"{context.title}\n{context.description or ''}",
        context.entities.geography.model_dump(),
        context.causes,
    )


class RecommendationOrchestrator:
    def __init__(
        self,
        cache: TTLCache,
        generator: CandidateGenerator,
        reranker: Reranker,
        enricher: Enricher | None = None,
    ):
        self.cache = cache
        self.generator = generator
        self.reranker = reranker
        self.enricher = enricher

    async def _run_pipeline(self, context: ArticleContext) -> CachedRecommendation:
        if not self.generator.directory.is_configured:
            raise DirectoryNotConfiguredError("Nonprofit directory client is not configured")

        generated = await self.generator.generate(CandidateGenerationInput(
            entities=context.entities,
            causes=context.causes,
        ))
        if not generated.candidates:
            logger.info("No candidates found")
            return CachedRecommendation(
                causes_used=generated.causes_used,
                search_terms_used=generated.search_terms_used,
            )

        reranked = await self.reranker.rerank(RerankingInput(
            candidates=generated.candidates,
            entities=context.entities,
            causes=context.causes,
            article_keywords=context.keywords,
        ))
        if not reranked.ranked:
            logger.info("No candidates passed ranking filters")

        return CachedRecommendation(
            ranked=reranked.ranked,
            causes_used=generated.causes_used,
            search_terms_used=generated.search_terms_used,
            geo_tier_counts=reranked.geo_tier_counts,
            excluded_counts=reranked.excluded_counts,
            trust_coverage=reranked.trust_coverage,
            candidate_count=generated.candidate_count,
        )

    async def recommend_nonprofits_for_article(
        self,
        context: ArticleContext,
        options: RecommendationOptions | None = None,
    ) -> RecommendationResult:
        options = options or RecommendationOptions()
        started = time.perf_counter()
        logger.info("Recommending nonprofits for article: %s", context.title)

        key = article_cache_key(context)
        record: CachedRecommendation | None = None
        cache_hit = False
        if options.use_cache:
            record = self.cache.get(key)
            cache_hit = record is not None
            if cache_hit:
                logger.info("Recommendation cache hit")

        if record is None:
            record = await self._run_pipeline(context)
            # Empty results are never cached.
            if options.use_cache and record.ranked:
                self.cache.set(key, record)

        top = record.ranked[:options.top_n]
        enrichment_count = 0
        nonprofits: list[NonprofitRanked] = top
        if self.enricher is not None and top:
            enrichment = await self.enricher.enrich_top(top, options.top_n)
            nonprofits = list(enrichment.enriched)
            enrichment_count = enrichment.enrichment_count

        debug = None
        if options.debug:
            debug = DebugInfo(
                causes_used=record.causes_used,
                search_terms_used=record.search_terms_used,
                geo_tier_counts=record.geo_tier_counts,
                excluded_counts=record.excluded_counts,
                trust_coverage=record.trust_coverage,
                candidate_count=record.candidate_count,
                enrichment_count=enrichment_count,
                cache_hit=cache_hit,
                cache_stats=self.cache.stats(),
                processing_time_ms=(time.perf_counter() - started) * 1000,
            )

        logger.info(
            "Recommendation pipeline complete in %.0fms, returned %d nonprofits",
            (time.perf_counter() - started) * 1000, len(nonprofits),
        )
        return RecommendationResult(nonprofits=nonprofits, debug=debug)

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()
