"""Pure scoring and gating rules used by the reranker.

Every function here is deterministic and side-effect free so each rule can be
tested on its own.
"""

import re

from ...models import GeoTier, NonprofitCandidate, ScoreBreakdown, TrustVettingSignals

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

WEIGHTS = {
    "geo": 0.40,
    "cause": 0.35,
    "trust": 0.15,
    "quality": 0.10,
}

CAUSE_MATCH_POINTS = 30
RELIEF_KEYWORD_POINTS = 5
RELIEF_KEYWORD_CAP = 50
ARTICLE_KEYWORD_POINTS = 3
ARTICLE_KEYWORD_CAP = 60
MAX_SCORE = 100

MIN_DESCRIPTION_LENGTH = 50
HIGH_QUALITY_THRESHOLD = 80

DISASTER_RELIEF_KEYWORDS = (
    "disaster", "relief", "emergency", "response", "humanitarian",
    "crisis", "aid", "rescue", "recovery", "rebuild", "shelter",
    "food", "water", "medical", "health", "refugee", "displaced",
    "earthquake", "flood", "wildfire", "hurricane", "tornado",
    "tsunami", "drought", "famine", "conflict", "war",
)

LEGAL_SUFFIX_RE = re.compile(r"\b(INC|LLC|CORP|CORPORATION|FOUNDATION|TRUST|LTD)\b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Vetting gate
# ---------------------------------------------------------------------------

def is_legal_name_only(name: str) -> bool:
    """True for names like ``JOHN DOE FOUNDATION INC``.

    An all-caps name carrying a legal-entity suffix is usually a raw IRS
    registration rather than a curated public name.
    """
    if not name or not any(ch.isalpha() for ch in name):
        return False
    return name == name.upper() and LEGAL_SUFFIX_RE.search(name) is not None


def passes_vetting_gate(candidate: NonprofitCandidate, signals: TrustVettingSignals) -> bool:
    if signals.vetted_status == "unverified":
        return False
    if signals.vetted_status == "unknown":
        if not candidate.description or not candidate.website_url:
            return False
        if is_legal_name_only(candidate.name):
            return False
    return True


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------

def cause_score(
    candidate: NonprofitCandidate,
    causes: list[str],
    article_keywords: list[str],
) -> int:
    org_causes = {c.lower() for c in candidate.causes}
    description = (candidate.description or "").lower()
    ntee = (candidate.ntee_code_meaning or "").lower()

    matched = sum(1 for c in {c.lower() for c in causes if c} if c in org_causes)
    relief_hits = sum(
        1 for kw in DISASTER_RELIEF_KEYWORDS if kw in description or kw in ntee
    )
    article_hits = sum(
        1 for kw in {k.strip().lower() for k in article_keywords if k.strip()}
        if kw in description
    )

    score = (
        matched * CAUSE_MATCH_POINTS
        + min(relief_hits * RELIEF_KEYWORD_POINTS, RELIEF_KEYWORD_CAP)
        + min(article_hits * ARTICLE_KEYWORD_POINTS, ARTICLE_KEYWORD_CAP)
    )
    return min(MAX_SCORE, score)


def quality_score(candidate: NonprofitCandidate) -> int:
    score = 0
    if candidate.description and len(candidate.description) > MIN_DESCRIPTION_LENGTH:
        score += 30
    if candidate.website_url:
        score += 30
    for present in (candidate.logo_url, candidate.ein, candidate.location_address, candidate.ntee_code):
        if present:
            score += 10
    return min(MAX_SCORE, score)


def total_score(geo: float, cause: float, trust: float, quality: float) -> float:
    return (
        geo * WEIGHTS["geo"]
        + cause * WEIGHTS["cause"]
        + trust * WEIGHTS["trust"]
        + quality * WEIGHTS["quality"]
    )


def format_score_breakdown(score: ScoreBreakdown) -> str:
    return (
        f"Total: {score.total:.1f} (Geo: {score.geo:g}, Cause: {score.cause:g}, "
        f"Trust: {score.trust:g}, Quality: {score.quality:g})"
    )


# ---------------------------------------------------------------------------
# Reasons
# ---------------------------------------------------------------------------

def generate_reasons(
    candidate: NonprofitCandidate,
    geo_tier: GeoTier,
    cause: float,
    signals: TrustVettingSignals,
    quality: float,
) -> list[str]:
    reasons: list[str] = []

    if geo_tier == "tier1":
        reasons.append(f"Operates directly in impacted area ({candidate.location_address})")
    elif geo_tier == "tier2":
        reasons.append(f"Regional responder ({candidate.location_address})")
    else:
        reasons.append("Global disaster response organization")

    if cause >= 50:
        reasons.append("Strong disaster relief specialization")
    elif cause >= 30:
        reasons.append("Relevant disaster response experience")
    elif cause > 0:
        reasons.append("Some disaster relief capability")

    if signals.trust_score is not None:
        reasons.append(f"Trust score: {signals.trust_score:g}% ({signals.source})")
    else:
        reasons.append("Trust score unavailable; tie-breaker skipped")

    if signals.vetted_status == "verified":
        reasons.append("Partner-reviewed organization")
    elif signals.vetted_status == "unknown":
        reasons.append("Vetting status unknown; passed quality checks")

    if quality >= HIGH_QUALITY_THRESHOLD:
        reasons.append("Complete profile with verified information")

    return reasons
