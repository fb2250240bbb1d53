"""Tests for keyword extraction."""

from unittest.mock import AsyncMock, patch

import pytest

from agency_companion.chains.extract_keywords import extract_keywords

CHAIN = "agency_companion.chains.extract_keywords.complete_chat"


@pytest.mark.asyncio
async def test_dedupes_case_insensitively_and_caps_at_five():
    raw = (
        '{"keywords": ["Emergency Plumber", "emergency plumber", "drain cleaning", "", 42, '
        '"water heater repair", "sump pump install", "pipe leak repair", "boiler service"]}'
    )
    with patch(CHAIN, new_callable=AsyncMock, return_value=raw):
        keywords = await extract_keywords("Acme is a plumbing company in Denver.")

    assert keywords == [
        "Emergency Plumber",
        "drain cleaning",
        "water heater repair",
        "sump pump install",
        "pipe leak repair",
    ]


@pytest.mark.asyncio
async def test_accepts_fenced_json():
    raw = '```json\n{"keywords": ["denver plumber"]}\n```'
    with patch(CHAIN, new_callable=AsyncMock, return_value=raw):
        assert await extract_keywords("text") == ["denver plumber"]


@pytest.mark.asyncio
async def test_blank_input_skips_model():
    with patch(CHAIN, new_callable=AsyncMock) as mock_chat:
        assert await extract_keywords("   ") == []
    mock_chat.assert_not_awaited()


@pytest.mark.asyncio
async def test_api_failure_returns_empty():
    with patch(CHAIN, new_callable=AsyncMock, side_effect=RuntimeError("connection reset")):
        assert await extract_keywords("text") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["not json", '["a", "b"]', '{"keywords": "plumber"}', '{"other": []}'])
async def test_malformed_output_returns_empty(raw):
    with patch(CHAIN, new_callable=AsyncMock, return_value=raw):
        assert await extract_keywords("text") == []
