"""Pydantic schemas for the company analysis and the SEO data feeding it."""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from agency_companion.core.schemas_common import CamelModel


def _as_str_list(value: Any) -> list[str]:
    """Coerce loosely-shaped LLM list output into a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, dict):
        value = list(value.values())
    if not isinstance(value, list):
        raise ValueError("Expected a list of strings")
    items = []
    for item in value:
        if isinstance(item, str):
            text = item
        elif isinstance(item, dict):
            text = " - ".join(str(v) for v in item.values() if v)
        else:
            text = str(item)
        if text.strip():
            items.append(text.strip())
    return items


StrList = Annotated[list[str], BeforeValidator(_as_str_list)]


# =============================================================================
# LLM-produced company analysis
# =============================================================================


class Competitor(CamelModel):
    name: str = ""
    website: str | None = None
    strengths: StrList = []
    weaknesses: StrList = []


class TargetAudience(CamelModel):
    demographics: str | None = None
    psychographics: str | None = None
    pain_points: StrList = []


class IndustryChallenges(CamelModel):
    current: StrList = []
    emerging: StrList = []


class KeywordRecommendation(CamelModel):
    keyword: str
    intent: str | None = None
    priority: str | None = None


class WebsitePerformanceEstimate(CamelModel):
    """The model's own estimate, shown when live PageSpeed data is unavailable."""

    estimated_load_time: str | None = None
    mobile_friendliness: str | None = None
    seo_score_estimate: int | None = Field(default=None, ge=0, le=100)
    notes: StrList = []


class Recommendations(CamelModel):
    short_term: StrList = []
    medium_term: StrList = []
    long_term: StrList = []


class CompanyAnalysis(CamelModel):
    """Structured company analysis returned by the narrative generator."""

    business_overview: str = Field(..., min_length=1)
    competitors: list[Competitor] = []
    target_audience: TargetAudience | None = None
    industry_challenges: IndustryChallenges | None = None
    keyword_recommendations: list[KeywordRecommendation] = []
    website_performance: WebsitePerformanceEstimate | None = None
    recommendations: Recommendations | None = None


# =============================================================================
# Normalized third-party SEO data
# =============================================================================


class KeywordMetric(CamelModel):
    """Search volume data for one keyword."""

    keyword: str
    search_volume: int | None = None
    competition: str | None = None
    competition_index: int | None = None
    cpc: float | None = None


class SearchRanking(CamelModel):
    """Where a website ranks in organic search for one keyword."""

    keyword: str
    website_url: str
    position: int | None = None
    ranking_url: str | None = None
    top_competitors: list[str] = []


class PagePerformance(CamelModel):
    """Lighthouse category scores (0-100) and core vitals for a page."""

    url: str
    strategy: str = "mobile"
    performance_score: int | None = None
    accessibility_score: int | None = None
    best_practices_score: int | None = None
    seo_score: int | None = None
    first_contentful_paint: str | None = None
    largest_contentful_paint: str | None = None
    cumulative_layout_shift: str | None = None
    total_blocking_time: str | None = None
