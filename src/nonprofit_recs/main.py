import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from .config import Settings, load_settings
from .lib.cache import TTLCache
from .lib.candidates import CandidateGenerator
from .lib.directory import CachedDirectoryClient, EveryOrgClient
from .lib.enricher import Enricher
from .lib.orchestrator import RecommendationOrchestrator
from .lib.ranking import Reranker
from .routers import health, recommendations
from .security import verify_api_key

logger = logging.getLogger(__name__)


def build_orchestrator(settings: Settings) -> RecommendationOrchestrator:
    """Wire the recommendation pipeline from *settings*."""
    cache = TTLCache(max_entries=settings.cache_max_entries, ttls=settings.cache_ttls())
    directory = CachedDirectoryClient(
        EveryOrgClient(
            api_key=settings.every_org_api_key,
            base_url=settings.every_org_base_url,
            timeout=settings.directory_timeout_seconds,
            max_retries=settings.directory_max_retries,
            retry_delay=settings.directory_retry_delay_seconds,
        ),
        cache,
    )
    generator = CandidateGenerator(
        directory,
        max_causes_to_browse=settings.max_causes_to_browse,
        max_search_terms=settings.max_search_terms,
        results_per_query=settings.results_per_query,
        max_candidates=settings.max_candidates,
        max_concurrency=settings.directory_max_concurrency,
    )
    reranker = Reranker(max_concurrency=settings.trust_max_concurrency)
    enricher = Enricher(directory) if settings.enrich_top_n else None
    return RecommendationOrchestrator(cache, generator, reranker, enricher)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    orchestrator = build_orchestrator(settings)
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    sweeper = asyncio.create_task(
        orchestrator.cache.run_sweeper(settings.cache_sweep_interval_seconds)
    )
    try:
        yield
    finally:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        await orchestrator.generator.directory.aclose()


app = FastAPI(
    title="Nonprofit Recommendations API",
    description="Recommends trustworthy, relevant nonprofits for crisis news articles",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(recommendations.router)


@app.get("/", dependencies=[Depends(verify_api_key)])
async def root():
    return {"message": "Nonprofit Recommendations API"}
