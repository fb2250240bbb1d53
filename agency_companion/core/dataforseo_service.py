"""DataForSEO service for keyword search volume and organic ranking lookups.

Both lookups are best-effort: any failure is logged and reported as None so a
company analysis can still be rendered without live SEO data.
"""

from typing import Any
from urllib.parse import urlparse

import httpx

from agency_companion.core.config import get_settings
from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_analysis import KeywordMetric, SearchRanking

logger = get_logger(__name__)

DATAFORSEO_BASE_URL = "https://api.dataforseo.com/v3"
SEARCH_VOLUME_PATH = "/keywords_data/google_ads/search_volume/live"
SERP_PATH = "/serp/google/organic/live/advanced"

SERP_DEPTH = 20
TOP_COMPETITOR_COUNT = 5


def _domain_of(url: str) -> str:
    """Bare host for a URL or domain string ("https://www.acme.com/x" -> "acme.com")."""
    candidate = url.strip().lower()
    if "://" not in candidate:
        candidate = f"http://{candidate}"
    host = urlparse(candidate).netloc.split(":")[0]
    return host[4:] if host.startswith("www.") else host


async def _post_task(path: str, task: dict[str, Any]) -> dict | None:
    """
    POST a single live task and return its first task object.

    Returns:
        The tasks[0] dict, or None when credentials are missing or the call fails
    """
    settings = get_settings()
    if not settings.DATAFORSEO_LOGIN or not settings.DATAFORSEO_PASSWORD:
        logger.warning("DataForSEO credentials not configured, skipping lookup")
        return None

    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
        response = await client.post(
            f"{DATAFORSEO_BASE_URL}{path}",
            auth=(settings.DATAFORSEO_LOGIN, settings.DATAFORSEO_PASSWORD),
            json=[task],
        )
        response.raise_for_status()
        data = response.json()

    tasks = data.get("tasks") or []
    if not tasks:
        logger.warning(f"DataForSEO returned no tasks for {path}")
        return None

    first = tasks[0]
    # 20000 is DataForSEO's per-task "Ok."
    if first.get("status_code") not in (None, 20000):
        logger.warning(
            f"DataForSEO task failed: {first.get('status_code')} {first.get('status_message')}"
        )
        return None
    return first


async def fetch_keyword_volumes(keywords: list[str]) -> list[KeywordMetric] | None:
    """
    Fetch Google Ads search volume for a set of keywords.

    Args:
        keywords: Keywords to look up

    Returns:
        One KeywordMetric per keyword DataForSEO returned, or None on any failure
    """
    keywords = [k for k in keywords if k and k.strip()]
    if not keywords:
        return None

    settings = get_settings()
    try:
        task = await _post_task(
            SEARCH_VOLUME_PATH,
            {
                "keywords": keywords,
                "location_code": settings.DATAFORSEO_LOCATION_CODE,
                "language_code": settings.DATAFORSEO_LANGUAGE_CODE,
            },
        )
        if task is None:
            return None

        results = task.get("result") or []
        metrics = [
            KeywordMetric(
                keyword=item.get("keyword") or "",
                search_volume=item.get("search_volume"),
                competition=item.get("competition"),
                competition_index=item.get("competition_index"),
                cpc=item.get("cpc"),
            )
            for item in results
            if item and item.get("keyword")
        ]
        if not metrics:
            logger.info(f"DataForSEO returned no volume data for {len(keywords)} keywords")
            return None

        logger.info(f"Fetched search volume for {len(metrics)} keywords")
        return metrics

    except Exception as e:
        logger.error(f"Keyword volume lookup failed: {e}")
        return None


async def fetch_search_ranking(keyword: str, website_url: str) -> SearchRanking | None:
    """
    Find where a website ranks in Google organic results for a keyword.

    Args:
        keyword: Search query
        website_url: The client's website (URL or bare domain)

    Returns:
        SearchRanking with the site's best position (None if not ranked) and the
        top competing domains, or None on any failure
    """
    if not keyword or not website_url:
        return None

    settings = get_settings()
    try:
        task = await _post_task(
            SERP_PATH,
            {
                "keyword": keyword,
                "location_code": settings.DATAFORSEO_LOCATION_CODE,
                "language_code": settings.DATAFORSEO_LANGUAGE_CODE,
                "depth": SERP_DEPTH,
            },
        )
        if task is None:
            return None

        results = task.get("result") or []
        if not results:
            logger.info(f"DataForSEO returned no SERP for '{keyword}'")
            return None

        items = [i for i in (results[0].get("items") or []) if i.get("type") == "organic"]
        items.sort(key=lambda i: i.get("rank_absolute") or i.get("rank_group") or 0)

        site_domain = _domain_of(website_url)
        position = None
        ranking_url = None
        competitors: list[str] = []

        for item in items:
            item_domain = _domain_of(item.get("domain") or item.get("url") or "")
            if not item_domain:
                continue
            if item_domain == site_domain or item_domain.endswith(f".{site_domain}"):
                if position is None:
                    position = item.get("rank_absolute") or item.get("rank_group")
                    ranking_url = item.get("url")
                continue
            if item_domain not in competitors and len(competitors) < TOP_COMPETITOR_COUNT:
                competitors.append(item_domain)

        logger.info(
            f"Ranking for '{keyword}': {site_domain} at position {position or 'not ranked'}"
        )
        return SearchRanking(
            keyword=keyword,
            website_url=website_url,
            position=position,
            ranking_url=ranking_url,
            top_competitors=competitors,
        )

    except Exception as e:
        logger.error(f"Search ranking lookup failed for '{keyword}': {e}")
        return None
