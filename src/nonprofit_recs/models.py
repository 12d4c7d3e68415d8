from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

GeoTier = Literal["tier1", "tier2", "tier3"]
VettedStatus = Literal["verified", "unverified", "unknown"]


# ---------------------------------------------------------------------------
# Article input
# ---------------------------------------------------------------------------

class Geography(BaseModel):
    """Where the crisis described by an article takes place."""

    model_config = ConfigDict(frozen=True)

    country: str | None = None
    region: str | None = None
    city: str | None = None


class ArticleEntities(BaseModel):
    """Facts extracted from an article by the upstream classifier."""

    model_config = ConfigDict(frozen=True)

    geography: Geography = Field(default_factory=Geography)
    disaster_type: str | None = Field(None, description="e.g. wildfire, earthquake")
    affected_group: str | None = Field(None, description="e.g. refugees, children")


class ArticleContext(BaseModel):
    """Everything the engine knows about the article being matched."""

    title: str
    description: str | None = None
    content: str | None = None
    url: str | None = None
    entities: ArticleEntities = Field(default_factory=ArticleEntities)
    causes: list[str] = Field(default_factory=list, description="Directory cause slugs")
    keywords: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Directory records
# ---------------------------------------------------------------------------

class NonprofitCandidate(BaseModel):
    """An organization returned by the nonprofit directory."""

    slug: str = Field(..., description="Stable directory identifier")
    name: str = ""
    description: str = ""
    ein: str | None = None
    logo_url: str | None = None
    cover_image_url: str | None = None
    website_url: str | None = None
    location_address: str | None = Field(None, description="Free-text address")
    primary_category: str | None = None
    ntee_code: str | None = None
    ntee_code_meaning: str | None = None
    tags: list[str] = Field(default_factory=list)
    causes: list[str] = Field(default_factory=list)


class Location(BaseModel):
    city: str | None = None
    state: str | None = None
    country: str | None = None


class NonprofitDetails(NonprofitCandidate):
    """A directory record fetched from the detail endpoint."""

    is_disbursable: bool | None = None
    location: Location | None = None
    categories: list[str] = Field(default_factory=list)
    profile_url: str


# ---------------------------------------------------------------------------
# Ranking output
# ---------------------------------------------------------------------------

class TrustVettingSignals(BaseModel):
    """Trust and vetting information supplied by a pluggable provider."""

    model_config = ConfigDict(frozen=True)

    trust_score: float | None = Field(None, ge=0, le=100, description="0-100, None if unknown")
    vetted_status: VettedStatus = "unknown"
    source: str = "none"


UNKNOWN_SIGNALS = TrustVettingSignals()


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: float
    geo: float
    cause: float
    trust: float
    quality: float


class NonprofitRanked(NonprofitCandidate):
    """A candidate with its explainable ranking score attached."""

    model_config = ConfigDict(frozen=True)

    score: ScoreBreakdown
    geo_tier: GeoTier
    reasons: list[str] = Field(default_factory=list)
    score_breakdown: str = ""
    trust_vetting: TrustVettingSignals = UNKNOWN_SIGNALS


class EnrichedNonprofit(NonprofitRanked):
    """A ranked nonprofit merged with detail-endpoint data (when available)."""

    enriched: bool = False
    enrichment_error: str | None = None
    is_disbursable: bool | None = None
    location: Location | None = None
    categories: list[str] = Field(default_factory=list)
    profile_url: str


class GeoTierCounts(BaseModel):
    tier1: int = 0
    tier2: int = 0
    tier3: int = 0


class ExcludedCounts(BaseModel):
    vetting: int = 0
    cause: int = 0


class CacheStats(BaseModel):
    hits: int
    misses: int
    size: int
    hit_rate: float = Field(..., description="Percentage of gets that were hits")


class DebugInfo(BaseModel):
    causes_used: list[str] = Field(default_factory=list)
    search_terms_used: list[str] = Field(default_factory=list)
    geo_tier_counts: GeoTierCounts = Field(default_factory=GeoTierCounts)
    excluded_counts: ExcludedCounts = Field(default_factory=ExcludedCounts)
    trust_coverage: float = 0.0
    candidate_count: int = 0
    enrichment_count: int = 0
    cache_hit: bool = False
    cache_stats: CacheStats | None = None
    processing_time_ms: float = 0.0


class RecommendationResult(BaseModel):
    nonprofits: list[EnrichedNonprofit | NonprofitRanked] = Field(default_factory=list)
    debug: DebugInfo | None = None
