"""Tests for the company analysis chain."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from agency_companion.chains.generate_company_analysis import generate_company_analysis
from agency_companion.core.llm import GenerationError

CHAIN = "agency_companion.chains.generate_company_analysis.complete_chat"

CLIENT_INFO = {
    "name": "Acme Plumbing",
    "industry": "Home Services",
    "website_url": "https://acmeplumbing.test",
    "project_value": 12000,
}

FULL_ANALYSIS = {
    "businessOverview": "Acme is a family-run plumbing company.",
    "competitors": [
        {"name": "Roto Rooter", "website": "https://rotorooter.test", "strengths": ["Brand"], "weaknesses": "Price"}
    ],
    "targetAudience": {
        "demographics": "Homeowners 30-65",
        "psychographics": "Value reliability",
        "painPoints": ["Slow response"],
    },
    "industryChallenges": {"current": ["Labor shortage"], "emerging": ["Smart home devices"]},
    "keywordRecommendations": [{"keyword": "emergency plumber", "intent": "transactional", "priority": "high"}],
    "websitePerformance": {"estimatedLoadTime": "3s", "mobileFriendliness": "Fair", "seoScoreEstimate": 55, "notes": []},
    "recommendations": {"shortTerm": ["Fix GMB"], "mediumTerm": ["Blog"], "longTerm": ["Expand"]},
}


@pytest.mark.asyncio
async def test_parses_full_analysis():
    with patch(CHAIN, new_callable=AsyncMock, return_value=json.dumps(FULL_ANALYSIS)) as mock_chat:
        analysis = await generate_company_analysis(CLIENT_INFO)

    assert analysis.business_overview.startswith("Acme")
    assert analysis.competitors[0].weaknesses == ["Price"]
    assert analysis.target_audience.pain_points == ["Slow response"]
    assert analysis.website_performance.seo_score_estimate == 55
    assert analysis.recommendations.short_term == ["Fix GMB"]
    assert mock_chat.await_args.kwargs["json_output"] is True
    assert "Acme Plumbing" in mock_chat.await_args.args[1]


@pytest.mark.asyncio
async def test_missing_sections_fall_back_to_defaults():
    raw = '```json\n{"businessOverview": "Short overview."}\n```'
    with patch(CHAIN, new_callable=AsyncMock, return_value=raw):
        analysis = await generate_company_analysis(CLIENT_INFO)

    assert analysis.competitors == []
    assert analysis.target_audience is None
    assert analysis.keyword_recommendations == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "Here is your analysis: Acme is great.",
        '["not", "an", "object"]',
        '{"competitors": []}',
        '{"businessOverview": "x", "websitePerformance": {"seoScoreEstimate": 180}}',
    ],
)
async def test_invalid_output_raises_generation_error(raw):
    with patch(CHAIN, new_callable=AsyncMock, return_value=raw):
        with pytest.raises(GenerationError):
            await generate_company_analysis(CLIENT_INFO)


@pytest.mark.asyncio
async def test_api_failure_raises_generation_error():
    with patch(CHAIN, new_callable=AsyncMock, side_effect=ValueError("Language model returned an empty completion")):
        with pytest.raises(GenerationError, match="empty completion"):
            await generate_company_analysis(CLIENT_INFO)
