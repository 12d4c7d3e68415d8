"""Every.org partner API client.

Endpoints used (all ``GET``, all take ``apiKey`` as a query parameter):

* ``/browse/{cause}?take&page`` – nonprofits tagged with a cause.
* ``/search/{term}?take[&causes=a,b]`` – free-text search.
* ``/nonprofit/{slug-or-ein}`` – one nonprofit's detail record.

Transport errors, 429 and 5xx responses are retried with exponential
backoff; any other 4xx fails immediately.  Retrying lives here and nowhere
else in the engine.
"""

import asyncio
import logging
from urllib.parse import quote

import httpx

from ...errors import DirectoryError, DirectoryNotConfiguredError
from ...models import Location, NonprofitCandidate, NonprofitDetails
from .base import DirectoryClient

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "https://partners.every.org/v0.2"
PROFILE_BASE_URL = "https://www.every.org"
DEFAULT_TIMEOUT = 5.0  # seconds
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 0.5  # seconds, doubled after every failed attempt


# ---------------------------------------------------------------------------
# Response mapping
# ---------------------------------------------------------------------------

def parse_nonprofit(src: dict) -> NonprofitCandidate:
    """Map one Every.org JSON object onto a ``NonprofitCandidate``."""
    return NonprofitCandidate(
        slug=src.get("slug") or "",
        name=src.get("name") or "",
        description=src.get("description") or "",
        ein=src.get("ein"),
        logo_url=src.get("logoUrl"),
        cover_image_url=src.get("coverImageUrl"),
        website_url=src.get("websiteUrl"),
        location_address=src.get("locationAddress"),
        primary_category=src.get("primaryCategory"),
        ntee_code=src.get("nteeCode"),
        ntee_code_meaning=src.get("nteeCodeMeaning"),
        tags=src.get("tags") or [],
        causes=src.get("causes") or [],
    )


def parse_location(address: str | None) -> Location:
    """Best-effort split of a free-text address.

    The last comma-separated part is taken as the country, the one before it
    as the state, and the first part as the city when there are at least
    three parts.
    """
    if not address:
        return Location()
    parts = [p.strip() for p in address.split(",") if p.strip()]
    return Location(
        country=parts[-1] if parts else None,
        state=parts[-2] if len(parts) > 1 else None,
        city=parts[0] if len(parts) > 2 else None,
    )


def profile_url(slug: str) -> str:
    return f"{PROFILE_BASE_URL}/{slug}"


def parse_nonprofit_details(src: dict) -> NonprofitDetails:
    base = parse_nonprofit(src)
    return NonprofitDetails(
        **base.model_dump(),
        is_disbursable=src.get("isDisbursable"),
        location=parse_location(base.location_address),
        categories=src.get("categories") or [],
        profile_url=profile_url(base.slug),
    )


def _nonprofits_from(data) -> list[NonprofitCandidate]:
    if not isinstance(data, dict):
        raise DirectoryError("Unexpected directory response body")
    results = []
    for src in data.get("nonprofits") or []:
        if not isinstance(src, dict) or not src.get("slug"):
            continue
        results.append(parse_nonprofit(src))
    return results


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class EveryOrgClient(DirectoryClient):
    """``DirectoryClient`` backed by the Every.org partner API.

    *http_client* may be supplied (tests pass one built on
    ``httpx.MockTransport``); otherwise the client owns an ``AsyncClient``.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        if not api_key:
            logger.warning("EVERY_ORG_API_KEY is not set; directory queries will fail")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _get(self, path: str, params: dict) -> httpx.Response:
        if not self.is_configured:
            raise DirectoryNotConfiguredError("Every.org API key is not configured")

        url = f"{self.base_url}{path}"
        params = {"apiKey": self.api_key, **params}

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await self._http.get(url, params=params)
            except httpx.HTTPError as exc:
                if attempt >= self.max_retries:
                    raise DirectoryError(f"Request to {path} failed: {exc}") from exc
                logger.debug("Transport error on %s (%s), retrying", path, exc)
            else:
                status = resp.status_code
                if status < 400 or status == 404:
                    return resp
                retryable = status == 429 or status >= 500
                if not retryable or attempt >= self.max_retries:
                    raise DirectoryError(
                        f"Request to {path} returned HTTP {status}", status_code=status,
                    )
                logger.debug("HTTP %d on %s, retrying", status, path)

            delay = self.retry_delay * (2 ** (attempt - 1))
            logger.info(
                "Retrying directory request (attempt %d/%d) after %.2fs",
                attempt + 1, self.max_retries, delay,
            )
            await asyncio.sleep(delay)

        # Unreachable: the loop either returns or raises.
        raise DirectoryError(f"Request to {path} failed")

    @staticmethod
    def _json(resp: httpx.Response, path: str):
        try:
            return resp.json()
        except ValueError as exc:
            raise DirectoryError(f"Invalid JSON from {path}") from exc

    async def browse_cause(
        self,
        cause: str,
        take: int = 50,
        page: int = 1,
    ) -> list[NonprofitCandidate]:
        path = f"/browse/{quote(cause, safe='')}"
        resp = await self._get(path, {"take": take, "page": page})
        if resp.status_code == 404:
            return []
        return _nonprofits_from(self._json(resp, path))

    async def search_nonprofits(
        self,
        term: str,
        causes: list[str] | None = None,
        take: int = 50,
    ) -> list[NonprofitCandidate]:
        path = f"/search/{quote(term.strip(), safe='')}"
        params: dict = {"take": take}
        if causes:
            params["causes"] = ",".join(causes)
        resp = await self._get(path, params)
        if resp.status_code == 404:
            return []
        return _nonprofits_from(self._json(resp, path))

    async def get_nonprofit_details(self, identifier: str) -> NonprofitDetails | None:
        path = f"/nonprofit/{quote(identifier, safe='')}"
        resp = await self._get(path, {})
        if resp.status_code == 404:
            return None
        data = self._json(resp, path)
        src = data.get("data", data) if isinstance(data, dict) else None
        nonprofit = src.get("nonprofit") if isinstance(src, dict) else None
        if not isinstance(nonprofit, dict):
            return None
        return parse_nonprofit_details(nonprofit)
