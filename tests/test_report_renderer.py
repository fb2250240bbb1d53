"""Tests for company analysis report assembly and rendering."""

import pytest

from agency_companion.core.report_renderer import (
    NO_DATA,
    assemble_analysis_report,
    render_analysis_html,
    score_badge,
)
from agency_companion.core.schemas_analysis import (
    CompanyAnalysis,
    Competitor,
    KeywordMetric,
    PagePerformance,
    SearchRanking,
    WebsitePerformanceEstimate,
)


@pytest.mark.parametrize(
    "score,color",
    [(100, "green"), (90, "green"), (89, "yellow"), (70, "yellow"), (69, "red"), (0, "red"), (None, None)],
)
def test_score_badge_thresholds(score, color):
    assert score_badge(score) == color


def _full_report():
    analysis = CompanyAnalysis(
        business_overview="Acme & Sons fix pipes.\nFamily-run since 1982.",
        competitors=[Competitor(name="<Roto>", website="https://roto.test", strengths=["Brand"], weaknesses=[])],
    )
    metrics = [KeywordMetric(keyword="emergency plumber", search_volume=2400, competition="HIGH", cpc=12.5)]
    ranking = SearchRanking(keyword="emergency plumber", website_url="acme.test", position=7, top_competitors=["roto.test"])
    performance = PagePerformance(
        url="https://acme.test", performance_score=64, accessibility_score=91, best_practices_score=78,
        seo_score=100, largest_contentful_paint="4.3 s",
    )
    return assemble_analysis_report(analysis, metrics, ranking, performance, ["emergency plumber"])


def test_assemble_uses_camel_case_keys():
    report = _full_report()

    assert set(report) == {"analysis", "keywords", "keywordMetrics", "searchRanking", "performance"}
    assert report["analysis"]["businessOverview"].startswith("Acme")
    assert report["keywordMetrics"][0]["searchVolume"] == 2400
    assert report["performance"]["performanceScore"] == 64


def test_assemble_keeps_missing_lookups_as_none():
    report = assemble_analysis_report(None, None, None, None, None)

    assert report == {"analysis": None, "keywords": [], "keywordMetrics": None, "searchRanking": None, "performance": None}


def test_render_full_report():
    html = render_analysis_html(_full_report())

    assert "Acme &amp; Sons fix pipes." in html
    assert "&lt;Roto&gt;" in html
    assert "<Roto>" not in html
    assert "2,400" in html
    assert "$12.50" in html
    assert "#7" in html
    assert "width:64%" in html
    assert 'badge-red' in html
    assert 'badge-green' in html
    assert 'badge-yellow' in html
    assert "4.3 s" in html


def test_render_is_deterministic():
    report = _full_report()
    assert render_analysis_html(report) == render_analysis_html(report)


@pytest.mark.parametrize("report", [None, {}, {"analysis": None}, {"analysis": {}, "performance": {}}])
def test_render_missing_sections_show_placeholder(report):
    html = render_analysis_html(report)

    assert NO_DATA in html
    assert "Business Overview" in html
    assert "Recommendations" in html


def test_render_falls_back_to_estimated_performance():
    analysis = CompanyAnalysis(
        business_overview="Overview",
        website_performance=WebsitePerformanceEstimate(estimated_load_time="3.5s", seo_score_estimate=72),
    )
    html = render_analysis_html(assemble_analysis_report(analysis, None, None, None, []))

    assert "Showing an estimate" in html
    assert "3.5s" in html
    assert "badge-yellow" in html


def test_render_tolerates_partial_fields():
    report = {
        "analysis": {"competitors": [{"name": None}], "recommendations": {"shortTerm": "not a list"}},
        "keywordMetrics": [{"keyword": "x", "searchVolume": "n/a"}],
        "searchRanking": {"keyword": "x"},
        "performance": {"performanceScore": None},
    }

    html = render_analysis_html(report)

    assert "Not in the top results" in html
    assert NO_DATA in html


@pytest.mark.parametrize(
    "report",
    [
        "not a report",
        {"analysis": "plain text analysis"},
        {"analysis": {"targetAudience": "text", "industryChallenges": ["a"], "recommendations": "soon"}},
        {"analysis": {"competitors": ["Roto", None], "keywordRecommendations": "plumber"}},
        {"analysis": {"websitePerformance": "slow"}, "performance": [64]},
        {"keywordMetrics": ["plumber", {"keyword": 42, "searchVolume": 10}], "searchRanking": "#7"},
    ],
)
def test_render_tolerates_wrongly_shaped_sections(report):
    html = render_analysis_html(report)

    assert html.startswith('<div class="company-analysis">')
    assert NO_DATA in html
