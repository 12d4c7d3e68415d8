"""Runtime settings read from the environment.

``.env`` has already been loaded by the package ``__init__`` by the time
``load_settings`` runs, so values there behave like real environment
variables.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_EVERY_ORG_BASE_URL = "https://partners.every.org/v0.2"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    every_org_api_key: str = ""
    every_org_base_url: str = DEFAULT_EVERY_ORG_BASE_URL
    directory_timeout_seconds: float = 5.0
    directory_max_retries: int = 3
    directory_retry_delay_seconds: float = 0.5
    directory_max_concurrency: int = 4
    trust_max_concurrency: int = 8

    # Candidate generation
    max_causes_to_browse: int = 3
    max_search_terms: int = 5
    results_per_query: int = 50
    max_candidates: int = 200

    # Cache
    cache_max_entries: int = 1000
    cache_sweep_interval_seconds: float = 300.0
    cache_ttl_search_seconds: float = 6 * 60 * 60
    cache_ttl_browse_seconds: float = 6 * 60 * 60
    cache_ttl_nonprofit_seconds: float = 24 * 60 * 60
    cache_ttl_recommendation_seconds: float = 60 * 60

    enrich_top_n: bool = True
    default_top_n: int = 10

    def cache_ttls(self) -> dict[str, float]:
        """Default TTLs keyed by cache-key prefix."""
        return {
            "search": self.cache_ttl_search_seconds,
            "browse": self.cache_ttl_browse_seconds,
            "nonprofit": self.cache_ttl_nonprofit_seconds,
            "recommendation": self.cache_ttl_recommendation_seconds,
        }


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _read_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build ``Settings`` from *environ* (defaults to ``os.environ``)."""
    env = os.environ if environ is None else environ
    d = Settings()
    return Settings(
        every_org_api_key=env.get("EVERY_ORG_API_KEY", d.every_org_api_key).strip(),
        every_org_base_url=env.get("EVERY_ORG_BASE_URL", d.every_org_base_url).rstrip("/"),
        directory_timeout_seconds=_read_float(
            env, "DIRECTORY_TIMEOUT_SECONDS", d.directory_timeout_seconds),
        directory_max_retries=_read_int(env, "DIRECTORY_MAX_RETRIES", d.directory_max_retries),
        directory_retry_delay_seconds=_read_float(
            env, "DIRECTORY_RETRY_DELAY_SECONDS", d.directory_retry_delay_seconds),
        directory_max_concurrency=_read_int(
            env, "DIRECTORY_MAX_CONCURRENCY", d.directory_max_concurrency),
        trust_max_concurrency=_read_int(env, "TRUST_MAX_CONCURRENCY", d.trust_max_concurrency),
        max_causes_to_browse=_read_int(env, "RECS_MAX_CAUSES_TO_BROWSE", d.max_causes_to_browse),
        max_search_terms=_read_int(env, "RECS_MAX_SEARCH_TERMS", d.max_search_terms),
        results_per_query=_read_int(env, "RECS_RESULTS_PER_QUERY", d.results_per_query),
        max_candidates=_read_int(env, "RECS_MAX_CANDIDATES", d.max_candidates),
        cache_max_entries=_read_int(env, "CACHE_MAX_ENTRIES", d.cache_max_entries),
        cache_sweep_interval_seconds=_read_float(
            env, "CACHE_SWEEP_INTERVAL_SECONDS", d.cache_sweep_interval_seconds),
        cache_ttl_search_seconds=_read_float(
            env, "CACHE_TTL_SEARCH_SECONDS", d.cache_ttl_search_seconds),
        cache_ttl_browse_seconds=_read_float(
            env, "CACHE_TTL_BROWSE_SECONDS", d.cache_ttl_browse_seconds),
        cache_ttl_nonprofit_seconds=_read_float(
            env, "CACHE_TTL_NONPROFIT_SECONDS", d.cache_ttl_nonprofit_seconds),
        cache_ttl_recommendation_seconds=_read_float(
            env, "CACHE_TTL_RECOMMENDATION_SECONDS", d.cache_ttl_recommendation_seconds),
        enrich_top_n=_read_bool(env, "RECS_ENRICH_TOP_N", d.enrich_top_n),
        default_top_n=_read_int(env, "RECS_DEFAULT_TOP_N", d.default_top_n),
    )
