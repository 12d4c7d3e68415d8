"""Directory-backed candidate generator.

Builds a pool of nonprofits for an article using two retrieval strategies:

1. **Browse** the directory for each of the first few article causes.
2. **Search** the directory for terms derived from the article entities
   (disaster type, geography, affected group), scoped to the causes when
   there are any.

All sub-queries run concurrently under a semaphore.  Results are merged by
``slug`` in query order (browse results first, then searches in term order),
the first record seen for a slug wins, and the pool is truncated to a hard
cap.  A failing sub-query is logged and contributes nothing; only a
directory that is not configured at all aborts generation.
"""

import asyncio
import logging

from ...errors import DirectoryNotConfiguredError
from ...models import ArticleEntities, NonprofitCandidate
from ..directory import DirectoryClient
from .base import CandidateGenerationInput, CandidateGenerationResult

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

MAX_CAUSES_TO_BROWSE = 3
MAX_SEARCH_TERMS = 5
RESULTS_PER_QUERY = 50
MAX_CANDIDATES = 200
MAX_CONCURRENCY = 4

# Appended to the term list whenever a disaster type is known.
GENERIC_RELIEF_TERMS = ("disaster relief", "emergency response")


def build_search_terms(entities: ArticleEntities) -> list[str]:
    """Return search terms in priority order, de-duplicated, blanks dropped."""
    disaster = (entities.disaster_type or "").strip()
    geo = entities.geography
    country = (geo.country or "").strip()
    region = (geo.region or "").strip()
    city = (geo.city or "").strip()
    group = (entities.affected_group or "").strip()

    terms: list[str] = []
    if disaster:
        terms += [disaster, f"{disaster} relief"]
    if country:
        terms.append(country)
        if disaster:
            terms.append(f"{country} {disaster}")
    if region:
        terms.append(region)
    if city:
        terms.append(city)
    if group:
        terms.append(group)
        if disaster:
            terms.append(f"{group} {disaster}")
    if disaster:
        terms += GENERIC_RELIEF_TERMS

    seen: set[str] = set()
    unique: list[str] = []
    for term in terms:
        if term and term not in seen:
            seen.add(term)
            unique.append(term)
    return unique


class CandidateGenerator:
    """Produces a bounded, slug-unique candidate pool from a directory client."""

    def __init__(
        self,
        directory: DirectoryClient,
        max_causes_to_browse: int = MAX_CAUSES_TO_BROWSE,
        max_search_terms: int = MAX_SEARCH_TERMS,
        results_per_query: int = RESULTS_PER_QUERY,
        max_candidates: int = MAX_CANDIDATES,
        max_concurrency: int = MAX_CONCURRENCY,
    ):
        self.directory = directory
        self.max_causes_to_browse = max_causes_to_browse
        self.max_search_terms = max_search_terms
        self.results_per_query = results_per_query
        self.max_candidates = max_candidates
        self.max_concurrency = max(1, max_concurrency)

    async def _run_query(self, semaphore: asyncio.Semaphore, label: str, make_call) -> list[NonprofitCandidate]:
        async with semaphore:
            try:
                results = await make_call()
            except DirectoryNotConfiguredError:
                raise
            except Exception:
                logger.warning("Directory query %s failed; skipping", label, exc_info=True)
                return []
        logger.debug("Directory query %s returned %d results", label, len(results))
        return results

    async def generate(self, payload: CandidateGenerationInput) -> CandidateGenerationResult:
        causes = [c for c in payload.causes if c]
        causes_to_browse = causes[:self.max_causes_to_browse]
        terms = build_search_terms(payload.entities)[:self.max_search_terms]
        scope = causes or None

        logger.info(
            "Generating candidates: causes=%s geography=%s disaster_type=%s",
            causes, payload.entities.geography.model_dump(exclude_none=True),
            payload.entities.disaster_type or "none",
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)
        queries = []
        for cause in causes_to_browse:
            queries.append(self._run_query(
                semaphore,
                f"browse:{cause}",
                lambda cause=cause: self.directory.browse_cause(
                    cause, take=self.results_per_query, page=1),
            ))
        for term in terms:
            queries.append(self._run_query(
                semaphore,
                f"search:{term}",
                lambda term=term: self.directory.search_nonprofits(
                    term, causes=scope, take=self.results_per_query),
            ))

        # gather returns results in submission order.
        batches = await asyncio.gather(*queries)

        merged: dict[str, NonprofitCandidate] = {}
        for batch in batches:
            for org in batch:
                if org.slug and org.slug not in merged:
                    merged[org.slug] = org

        candidates = list(merged.values())[:self.max_candidates]
        logger.info("Generated %d unique candidates", len(candidates))

        return CandidateGenerationResult(
            candidates=candidates,
            search_terms_used=terms,
            causes_used=causes_to_browse,
        )
