"""Detail enrichment for the top of a ranked list.

Fetches each nonprofit's detail record and merges it into the ranked item.
Ranking data (score, tier, reasons) is never altered; a failed lookup keeps
the ranked item as-is with ``enriched=False``.
"""

import asyncio
import logging

from pydantic import BaseModel, Field

from ..models import EnrichedNonprofit, NonprofitRanked
from .directory import DirectoryClient
from .directory.everyorg import profile_url

logger = logging.getLogger(__name__)

MAX_CONCURRENCY = 5

# Detail fields allowed to overwrite the ranked record when present.
_DETAIL_FIELDS = (
    "name", "description", "ein", "logo_url", "cover_image_url", "website_url",
    "location_address", "primary_category", "ntee_code", "ntee_code_meaning",
    "tags", "causes",
)


class EnrichmentResult(BaseModel):
    enriched: list[EnrichedNonprofit] = Field(default_factory=list)
    enrichment_count: int = 0
    failed_count: int = 0


class Enricher:
    def __init__(self, directory: DirectoryClient, max_concurrency: int = MAX_CONCURRENCY):
        self.directory = directory
        self.max_concurrency = max(1, max_concurrency)

    async def _enrich_one(self, semaphore: asyncio.Semaphore, org: NonprofitRanked) -> EnrichedNonprofit:
        base = org.model_dump()
        async with semaphore:
            try:
                details = await self.directory.get_nonprofit_details(org.slug)
            except Exception as exc:
                logger.warning("Enrichment failed for %s: %s", org.slug, exc)
                return EnrichedNonprofit(
                    **base, enriched=False, enrichment_error=str(exc) or type(exc).__name__,
                    profile_url=profile_url(org.slug),
                )

        if details is None:
            return EnrichedNonprofit(
                **base, enriched=False, enrichment_error="Failed to fetch details",
                profile_url=profile_url(org.slug),
            )

        for field in _DETAIL_FIELDS:
            value = getattr(details, field)
            if value:
                base[field] = value
        return EnrichedNonprofit(
            **base,
            enriched=True,
            is_disbursable=details.is_disbursable,
            location=details.location,
            categories=details.categories,
            profile_url=details.profile_url,
        )

    async def enrich_top(self, ranked: list[NonprofitRanked], top_n: int) -> EnrichmentResult:
        to_enrich = ranked[:top_n]
        semaphore = asyncio.Semaphore(self.max_concurrency)
        enriched = await asyncio.gather(*(self._enrich_one(semaphore, org) for org in to_enrich))

        ok = sum(1 for e in enriched if e.enriched)
        logger.info("Enrichment complete: %d succeeded, %d failed", ok, len(enriched) - ok)
        return EnrichmentResult(
            enriched=list(enriched),
            enrichment_count=ok,
            failed_count=len(enriched) - ok,
        )
