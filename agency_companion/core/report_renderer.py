"""Company analysis report assembly and HTML rendering.

The report is a plain camelCase dict so it can be stored or returned as JSON;
the HTML view is rendered from that dict alone and is deterministic for a given
report. Every section tolerates missing data.
"""

from html import escape
from typing import Any

from agency_companion.core.schemas_analysis import (
    CompanyAnalysis,
    KeywordMetric,
    PagePerformance,
    SearchRanking,
)

NO_DATA = "No data available"

BADGE_COLORS = {
    "green": "#16a34a",
    "yellow": "#ca8a04",
    "red": "#dc2626",
}

PERFORMANCE_SCORES = (
    ("Performance", "performanceScore"),
    ("Accessibility", "accessibilityScore"),
    ("Best Practices", "bestPracticesScore"),
    ("SEO", "seoScore"),
)

CORE_VITALS = (
    ("First Contentful Paint", "firstContentfulPaint"),
    ("Largest Contentful Paint", "largestContentfulPaint"),
    ("Cumulative Layout Shift", "cumulativeLayoutShift"),
    ("Total Blocking Time", "totalBlockingTime"),
)


def score_badge(score: int | float | None) -> str | None:
    """Badge color for a 0-100 score: green >= 90, yellow >= 70, else red."""
    if score is None:
        return None
    if score >= 90:
        return "green"
    if score >= 70:
        return "yellow"
    return "red"


def assemble_analysis_report(
    analysis: CompanyAnalysis | None,
    keyword_metrics: list[KeywordMetric] | None,
    ranking: SearchRanking | None,
    performance: PagePerformance | None,
    keywords: list[str] | None,
) -> dict[str, Any]:
    """
    Combine the narrative analysis and live SEO lookups into one document.

    Missing lookups are kept as None so the renderer can show a placeholder.
    """
    return {
        "analysis": analysis.model_dump(by_alias=True) if analysis else None,
        "keywords": list(keywords or []),
        "keywordMetrics": (
            [m.model_dump(by_alias=True) for m in keyword_metrics] if keyword_metrics else None
        ),
        "searchRanking": ranking.model_dump(by_alias=True) if ranking else None,
        "performance": performance.model_dump(by_alias=True) if performance else None,
    }


# =============================================================================
# HTML helpers
# =============================================================================


def _text(value: Any) -> str:
    if value is None or value == "":
        return NO_DATA
    return escape(str(value))


def _placeholder() -> str:
    return f'<p class="no-data">{NO_DATA}</p>'


def _list(items: Any) -> str:
    if not items or not isinstance(items, list):
        return _placeholder()
    return "<ul>" + "".join(f"<li>{escape(str(i))}</li>" for i in items) + "</ul>"


def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _dicts(items: Any) -> list[dict]:
    if not isinstance(items, list):
        return []
    return [i for i in items if isinstance(i, dict)]


def _section(title: str, body: str) -> str:
    return f'<section class="report-section"><h2>{escape(title)}</h2>{body}</section>'


def _badge_html(score: Any) -> str:
    if not isinstance(score, (int, float)):
        return f'<span class="badge badge-none">{NO_DATA}</span>'
    color = score_badge(score)
    return (
        f'<span class="badge badge-{color}" '
        f'style="background:{BADGE_COLORS[color]};color:#fff;padding:2px 8px;border-radius:4px;">'
        f"{int(score)}</span>"
    )


def _bar_html(label: str, score: Any) -> str:
    if not isinstance(score, (int, float)):
        return f'<div class="score-row"><span class="score-label">{escape(label)}</span> {_badge_html(None)}</div>'
    pct = max(0, min(100, int(score)))
    color = BADGE_COLORS[score_badge(pct)]
    return (
        f'<div class="score-row"><span class="score-label">{escape(label)}</span> {_badge_html(pct)}'
        f'<div class="bar" style="background:#e5e7eb;height:8px;border-radius:4px;">'
        f'<div class="bar-fill" style="width:{pct}%;background:{color};height:8px;border-radius:4px;"></div>'
        f"</div></div>"
    )


# =============================================================================
# Sections
# =============================================================================


def _overview_html(analysis: dict) -> str:
    overview = analysis.get("businessOverview")
    if not overview:
        return _placeholder()
    paragraphs = [p.strip() for p in str(overview).split("\n") if p.strip()]
    return "".join(f"<p>{escape(p)}</p>" for p in paragraphs)


def _competitors_html(analysis: dict) -> str:
    competitors = _dicts(analysis.get("competitors"))
    if not competitors:
        return _placeholder()
    rows = []
    for c in competitors:
        rows.append(
            "<tr>"
            f"<td>{_text(c.get('name'))}</td>"
            f"<td>{_text(c.get('website'))}</td>"
            f"<td>{_list(c.get('strengths'))}</td>"
            f"<td>{_list(c.get('weaknesses'))}</td>"
            "</tr>"
        )
    return (
        '<table class="competitors"><thead><tr>'
        "<th>Competitor</th><th>Website</th><th>Strengths</th><th>Weaknesses</th>"
        "</tr></thead><tbody>" + "".join(rows) + "</tbody></table>"
    )


def _audience_html(analysis: dict) -> str:
    audience = _dict(analysis.get("targetAudience"))
    if not audience:
        return _placeholder()
    return (
        f"<h3>Demographics</h3><p>{_text(audience.get('demographics'))}</p>"
        f"<h3>Psychographics</h3><p>{_text(audience.get('psychographics'))}</p>"
        f"<h3>Pain Points</h3>{_list(audience.get('painPoints'))}"
    )


def _challenges_html(analysis: dict) -> str:
    challenges = _dict(analysis.get("industryChallenges"))
    if not challenges:
        return _placeholder()
    return (
        f"<h3>Current</h3>{_list(challenges.get('current'))}"
        f"<h3>Emerging</h3>{_list(challenges.get('emerging'))}"
    )


def _keywords_html(report: dict, analysis: dict) -> str:
    recommendations = {
        str(r.get("keyword") or "").lower(): r for r in _dicts(analysis.get("keywordRecommendations"))
    }
    metrics = _dicts(report.get("keywordMetrics"))

    if metrics:
        rows = []
        for m in metrics:
            rec = recommendations.get(str(m.get("keyword") or "").lower(), {})
            volume = m.get("searchVolume")
            cpc = m.get("cpc")
            rows.append(
                "<tr>"
                f"<td>{_text(m.get('keyword'))}</td>"
                f"<td>{f'{volume:,}' if isinstance(volume, int) else NO_DATA}</td>"
                f"<td>{_text(m.get('competition'))}</td>"
                f"<td>{f'${cpc:.2f}' if isinstance(cpc, (int, float)) else NO_DATA}</td>"
                f"<td>{_text(rec.get('intent'))}</td>"
                "</tr>"
            )
        return (
            '<table class="keywords"><thead><tr>'
            "<th>Keyword</th><th>Monthly Searches</th><th>Competition</th><th>CPC</th><th>Intent</th>"
            "</tr></thead><tbody>" + "".join(rows) + "</tbody></table>"
        )

    if recommendations:
        rows = [
            "<tr>"
            f"<td>{_text(r.get('keyword'))}</td>"
            f"<td>{_text(r.get('intent'))}</td>"
            f"<td>{_text(r.get('priority'))}</td>"
            "</tr>"
            for r in recommendations.values()
        ]
        return (
            f'<p class="note">Live search volume: {NO_DATA}</p>'
            '<table class="keywords"><thead><tr>'
            "<th>Keyword</th><th>Intent</th><th>Priority</th>"
            "</tr></thead><tbody>" + "".join(rows) + "</tbody></table>"
        )

    return _placeholder()


def _ranking_html(report: dict) -> str:
    ranking = _dict(report.get("searchRanking"))
    if not ranking:
        return _placeholder()
    position = ranking.get("position")
    status = f"#{position}" if position else "Not in the top results"
    competitors = ranking.get("topCompetitors") or []
    return (
        f"<p><strong>Keyword:</strong> {_text(ranking.get('keyword'))}</p>"
        f"<p><strong>Current position:</strong> {escape(status)}</p>"
        f"<h3>Top competing domains</h3>{_list(competitors)}"
    )


def _performance_html(report: dict, analysis: dict) -> str:
    performance = _dict(report.get("performance"))
    if performance:
        bars = "".join(_bar_html(label, performance.get(key)) for label, key in PERFORMANCE_SCORES)
        vitals = "".join(
            f"<tr><td>{escape(label)}</td><td>{_text(performance.get(key))}</td></tr>"
            for label, key in CORE_VITALS
        )
        return (
            f'<div class="scores">{bars}</div>'
            '<table class="vitals"><thead><tr><th>Metric</th><th>Value</th></tr></thead>'
            f"<tbody>{vitals}</tbody></table>"
        )

    estimate = _dict(analysis.get("websitePerformance"))
    if not estimate:
        return _placeholder()
    return (
        f'<p class="note">Live PageSpeed data: {NO_DATA}. Showing an estimate.</p>'
        f"<p><strong>Estimated load time:</strong> {_text(estimate.get('estimatedLoadTime'))}</p>"
        f"<p><strong>Mobile friendliness:</strong> {_text(estimate.get('mobileFriendliness'))}</p>"
        f"{_bar_html('Estimated SEO', estimate.get('seoScoreEstimate'))}"
        f"{_list(estimate.get('notes'))}"
    )


def _recommendations_html(analysis: dict) -> str:
    recs = _dict(analysis.get("recommendations"))
    if not recs:
        return _placeholder()
    return (
        f"<h3>Short Term (0-3 months)</h3>{_list(recs.get('shortTerm'))}"
        f"<h3>Medium Term (3-6 months)</h3>{_list(recs.get('mediumTerm'))}"
        f"<h3>Long Term (6-12 months)</h3>{_list(recs.get('longTerm'))}"
    )


def render_analysis_html(report: dict[str, Any] | None) -> str:
    """
    Render an assembled report as HTML.

    Args:
        report: Output of assemble_analysis_report (any part may be missing)

    Returns:
        HTML fragment; missing sections show a "No data available" placeholder
    """
    report = _dict(report)
    analysis = _dict(report.get("analysis"))

    sections = [
        _section("Business Overview", _overview_html(analysis)),
        _section("Competitor Analysis", _competitors_html(analysis)),
        _section("Target Audience", _audience_html(analysis)),
        _section("Industry Challenges", _challenges_html(analysis)),
        _section("Keyword Research", _keywords_html(report, analysis)),
        _section("Search Ranking", _ranking_html(report)),
        _section("Website Performance", _performance_html(report, analysis)),
        _section("Recommendations", _recommendations_html(analysis)),
    ]
    return '<div class="company-analysis">' + "".join(sections) + "</div>"
