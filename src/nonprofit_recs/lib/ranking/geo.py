"""Geographic tiering.

* ``tier1`` – the candidate's address mentions the crisis country, region or
  city.
* ``tier2`` – the address mentions a regional neighbour of the crisis
  country.
* ``tier3`` – everything else (global responders).
"""

from ...models import GeoTier, Geography, NonprofitCandidate

# Hand-maintained; countries not listed here simply have no tier2.
REGIONAL_NEIGHBORS: dict[str, tuple[str, ...]] = {
    # North America
    "United States": ("Canada", "Mexico"),
    "Canada": ("United States",),
    "Mexico": ("United States", "Guatemala", "Belize"),
    # Europe
    "Turkey": ("Greece", "Bulgaria", "Syria", "Iraq", "Iran"),
    "Greece": ("Turkey", "Bulgaria", "Albania"),
    # Asia
    "Bangladesh": ("India", "Myanmar"),
    "India": ("Bangladesh", "Pakistan", "Nepal", "Sri Lanka"),
}

GEO_TIER_SCORES: dict[GeoTier, int] = {
    "tier1": 100,
    "tier2": 60,
    "tier3": 30,
}

# Higher sorts first.
GEO_TIER_RANK: dict[GeoTier, int] = {
    "tier1": 3,
    "tier2": 2,
    "tier3": 1,
}


def neighbors_of(country: str) -> tuple[str, ...]:
    """Regional neighbours of *country* (case-insensitive lookup)."""
    wanted = country.strip().lower()
    for name, neighbors in REGIONAL_NEIGHBORS.items():
        if name.lower() == wanted:
            return neighbors
    return ()


def determine_geo_tier(candidate: NonprofitCandidate, geography: Geography) -> GeoTier:
    location = (candidate.location_address or "").lower()
    if not location:
        return "tier3"

    for place in (geography.country, geography.region, geography.city):
        if place and place.strip() and place.strip().lower() in location:
            return "tier1"

    if geography.country:
        for neighbor in neighbors_of(geography.country):
            if neighbor.lower() in location:
                return "tier2"

    return "tier3"


def geo_score(tier: GeoTier) -> int:
    return GEO_TIER_SCORES[tier]
