"""Google PageSpeed Insights service."""

import httpx

from agency_companion.core.config import get_settings
from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_analysis import PagePerformance

logger = get_logger(__name__)

PAGESPEED_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
CATEGORIES = ("performance", "accessibility", "best-practices", "seo")


def _normalize_url(url: str) -> str:
    url = url.strip()
    if "://" not in url:
        url = f"https://{url}"
    return url


def _category_score(categories: dict, name: str) -> int | None:
    score = (categories.get(name) or {}).get("score")
    return round(score * 100) if score is not None else None


async def fetch_page_performance(url: str) -> PagePerformance | None:
    """
    Run a mobile Lighthouse audit through PageSpeed Insights v5.

    Args:
        url: Page URL (scheme optional)

    Returns:
        PagePerformance with 0-100 category scores and core vitals display
        values, or None on any failure
    """
    if not url or not url.strip():
        return None

    settings = get_settings()
    target = _normalize_url(url)
    params: list[tuple[str, str]] = [("url", target), ("strategy", "mobile")]
    params.extend(("category", c.upper().replace("-", "_")) for c in CATEGORIES)
    if settings.PAGESPEED_API_KEY:
        params.append(("key", settings.PAGESPEED_API_KEY))

    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(PAGESPEED_URL, params=params)
            response.raise_for_status()
            data = response.json()

        lighthouse = data.get("lighthouseResult") or {}
        categories = lighthouse.get("categories") or {}
        audits = lighthouse.get("audits") or {}
        if not categories:
            logger.warning(f"PageSpeed returned no categories for {target}")
            return None

        def display(audit_id: str) -> str | None:
            return (audits.get(audit_id) or {}).get("displayValue") or None

        result = PagePerformance(
            url=target,
            strategy="mobile",
            performance_score=_category_score(categories, "performance"),
            accessibility_score=_category_score(categories, "accessibility"),
            best_practices_score=_category_score(categories, "best-practices"),
            seo_score=_category_score(categories, "seo"),
            first_contentful_paint=display("first-contentful-paint"),
            largest_contentful_paint=display("largest-contentful-paint"),
            cumulative_layout_shift=display("cumulative-layout-shift"),
            total_blocking_time=display("total-blocking-time"),
        )
        logger.info(f"PageSpeed for {target}: performance={result.performance_score}")
        return result

    except Exception as e:
        logger.error(f"PageSpeed lookup failed for {target}: {e}")
        return None
