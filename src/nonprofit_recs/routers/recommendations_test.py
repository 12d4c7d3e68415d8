"""Tests for the recommendations router."""

import os

import pytest
from fastapi.testclient import TestClient

from ..config import Settings
from ..errors import DirectoryError, DirectoryNotConfiguredError
from ..main import app
from ..models import (
    CacheStats,
    DebugInfo,
    GeoTierCounts,
    NonprofitRanked,
    RecommendationResult,
    ScoreBreakdown,
)


def make_ranked(slug: str) -> NonprofitRanked:
    score = ScoreBreakdown(total=80, geo=100, cause=60, trust=0, quality=70)
    return NonprofitRanked(
        slug=slug,
        name=f"{slug} relief",
        location_address="Istanbul, Turkey",
        score=score,
        geo_tier="tier1",
        reasons=["Operates directly in impacted area (Istanbul, Turkey)"],
        score_breakdown="Total: 80.0 (Geo: 100, Cause: 60, Trust: 0, Quality: 70)",
    )


class FakeOrchestrator:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = []
        self.cleared = False

    async def recommend_nonprofits_for_article(self, context, options):
        self.calls.append((context, options))
        if self.error is not None:
            raise self.error
        ranked = [make_ranked("relief-a"), make_ranked("relief-b")][:options.top_n]
        debug = None
        if options.debug:
            debug = DebugInfo(
                causes_used=context.causes,
                search_terms_used=["earthquake"],
                geo_tier_counts=GeoTierCounts(tier1=len(ranked)),
                candidate_count=2,
                cache_stats=self.get_cache_stats(),
            )
        return RecommendationResult(nonprofits=ranked, debug=debug)

    def get_cache_stats(self):
        return CacheStats(hits=3, misses=1, size=2, hit_rate=75.0)

    def clear_cache(self):
        self.cleared = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def api_key_env():
    prev = os.environ.get("API_KEY")
    os.environ["API_KEY"] = "testkey"
    yield
    if prev is None:
        del os.environ["API_KEY"]
    else:
        os.environ["API_KEY"] = prev


def clear_app_state():
    """Remove whatever the tests installed on ``app.state``."""
    for attr in ("orchestrator", "settings"):
        if hasattr(app.state, attr):
            delattr(app.state, attr)


@pytest.fixture
def orchestrator():
    """Install a fake orchestrator on the app for one test, then clean up."""
    fake = FakeOrchestrator()
    app.state.orchestrator = fake
    yield fake
    clear_app_state()


HEADERS = {"X-API-Key": "testkey"}

BODY = {
    "title": "  Earthquake strikes southern Turkey ",
    "description": "Thousands displaced",
    "entities": {"geography": {"country": "Turkey"}, "disaster_type": "earthquake"},
    "causes": ["disasters"],
    "keywords": ["earthquake"],
}


# ---------------------------------------------------------------------------
# POST /recommendations
# ---------------------------------------------------------------------------

def test_recommend_returns_ranked_nonprofits(orchestrator):
    client = TestClient(app, headers=HEADERS)
    resp = client.post("/recommendations", json=BODY)
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert [n["slug"] for n in data["nonprofits"]] == ["relief-a", "relief-b"]
    assert data["nonprofits"][0]["score"]["geo"] == 100
    assert data["debug"] is None

    context, options = orchestrator.calls[0]
    assert context.title == "Earthquake strikes southern Turkey"
    assert context.entities.geography.country == "Turkey"
    assert options.top_n == 10
    assert options.debug is False


def test_recommend_passes_top_n_and_debug(orchestrator):
    client = TestClient(app, headers=HEADERS)
    resp = client.post("/recommendations", json={**BODY, "top_n": 1, "debug": True})
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["nonprofits"]) == 1
    assert data["debug"]["causes_used"] == ["disasters"]
    assert data["debug"]["cache_stats"]["hits"] == 3


def test_recommend_uses_configured_default_top_n(orchestrator):
    app.state.settings = Settings(default_top_n=1)
    client = TestClient(app, headers=HEADERS)
    resp = client.post("/recommendations", json=BODY)
    assert resp.status_code == 200
    assert orchestrator.calls[0][1].top_n == 1


@pytest.mark.parametrize("override", [
    {"title": ""},
    {"top_n": 0},
    {"top_n": 51},
    {"causes": None},
])
def test_recommend_validates_body(orchestrator, override):
    body = {**BODY, **override}
    if override.get("causes", "") is None:
        del body["causes"]
    client = TestClient(app, headers=HEADERS)
    resp = client.post("/recommendations", json=body)
    assert resp.status_code == 422
    assert orchestrator.calls == []


def test_recommend_directory_not_configured_is_503(orchestrator):
    orchestrator.error = DirectoryNotConfiguredError("no key")
    client = TestClient(app, headers=HEADERS)
    resp = client.post("/recommendations", json=BODY)
    assert resp.status_code == 503
    assert resp.json() == {"detail": "Nonprofit directory is not configured"}


def test_recommend_pipeline_failure_is_502(orchestrator):
    orchestrator.error = DirectoryError("boom", status_code=500)
    client = TestClient(app, headers=HEADERS)
    resp = client.post("/recommendations", json=BODY)
    assert resp.status_code == 502
    assert resp.json() == {"detail": "Failed to get recommendations"}


def test_recommend_without_engine_is_503():
    client = TestClient(app, headers=HEADERS)
    resp = client.post("/recommendations", json=BODY)
    assert resp.status_code == 503


def test_recommend_requires_api_key(orchestrator):
    client = TestClient(app)
    resp = client.post("/recommendations", json=BODY)
    assert resp.status_code == 401
    assert orchestrator.calls == []


# ---------------------------------------------------------------------------
# Cache endpoints
# ---------------------------------------------------------------------------

def test_cache_stats(orchestrator):
    client = TestClient(app, headers=HEADERS)
    resp = client.get("/recommendations/cache/stats")
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "stats": {"hits": 3, "misses": 1, "size": 2, "hit_rate": 75.0},
    }


def test_cache_clear(orchestrator):
    client = TestClient(app, headers=HEADERS)
    resp = client.post("/recommendations/cache/clear")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Cache cleared successfully"}
    assert orchestrator.cleared


def test_cache_endpoints_require_api_key(orchestrator):
    client = TestClient(app)
    assert client.get("/recommendations/cache/stats").status_code == 401
    assert client.post("/recommendations/cache/clear").status_code == 401
    assert not orchestrator.cleared


# ---------------------------------------------------------------------------
# Fixture hygiene
# ---------------------------------------------------------------------------

def test_clear_app_state_skips_attributes_never_set():
    app.state.orchestrator = FakeOrchestrator()
    clear_app_state()
    assert not hasattr(app.state, "orchestrator")
    assert not hasattr(app.state, "settings")
    # Nothing left to remove: must not raise.
    clear_app_state()
