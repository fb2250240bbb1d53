"""Tests for the shared LLM helpers."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import BaseModel

from agency_companion.core.llm import (
    complete_chat,
    parse_llm_json,
    parse_llm_json_dict,
    strip_html_fences,
    strip_llm_fences,
)


class _Sample(BaseModel):
    name: str


@pytest.mark.parametrize(
    "raw,expected",
    [
        ('{"a": 1}', '{"a": 1}'),
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('```\n{"a": 1}\n```', '{"a": 1}'),
        ('Sure! ```json\n{"a": 1}\n``` Hope this helps', '{"a": 1}'),
        ('```json\n{"a": 1}', '{"a": 1}'),
    ],
)
def test_strip_llm_fences(raw, expected):
    assert strip_llm_fences(raw) == expected


def test_strip_html_fences():
    assert strip_html_fences("```html\n<h2>Hi</h2>\n```") == "<h2>Hi</h2>"
    assert strip_html_fences("  <p>plain</p>  ") == "<p>plain</p>"


def test_parse_llm_json_validates_model():
    assert parse_llm_json('```json\n{"name": "Acme"}\n```', _Sample).name == "Acme"


def test_parse_llm_json_dict_rejects_non_objects():
    with pytest.raises(ValueError):
        parse_llm_json_dict("[1, 2]")
    with pytest.raises(json.JSONDecodeError):
        parse_llm_json_dict("not json")


def _openai_response(content):
    message = MagicMock(content=content)
    return MagicMock(choices=[MagicMock(message=message)])


@pytest.mark.asyncio
async def test_complete_chat_openai_json_mode():
    with patch("agency_companion.core.llm.AsyncOpenAI") as MockOpenAI:
        create = AsyncMock(return_value=_openai_response('{"ok": true}'))
        MockOpenAI.return_value.chat.completions.create = create

        text = await complete_chat("system", "user", temperature=0.1, max_tokens=50, json_output=True)

    assert text == '{"ok": true}'
    kwargs = create.await_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["max_tokens"] == 50
    assert kwargs["messages"][0] == {"role": "system", "content": "system"}


@pytest.mark.asyncio
async def test_complete_chat_plain_text_has_no_response_format():
    with patch("agency_companion.core.llm.AsyncOpenAI") as MockOpenAI:
        create = AsyncMock(return_value=_openai_response("<p>Hi</p>"))
        MockOpenAI.return_value.chat.completions.create = create

        await complete_chat("system", "user")

    assert "response_format" not in create.await_args.kwargs


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "   "])
async def test_complete_chat_empty_completion_raises(content):
    with patch("agency_companion.core.llm.AsyncOpenAI") as MockOpenAI:
        MockOpenAI.return_value.chat.completions.create = AsyncMock(return_value=_openai_response(content))

        with pytest.raises(ValueError, match="empty completion"):
            await complete_chat("system", "user")


@pytest.mark.asyncio
async def test_complete_chat_anthropic_provider():
    with patch("agency_companion.core.llm.get_settings") as mock_settings, patch(
        "agency_companion.core.llm.AsyncAnthropic"
    ) as MockAnthropic:
        mock_settings.return_value.LLM_PROVIDER = "anthropic"
        mock_settings.return_value.ANTHROPIC_MODEL = "claude-test"
        mock_settings.return_value.LLM_MAX_TOKENS = 1000
        create = AsyncMock(return_value=MagicMock(content=[MagicMock(text="<h2>"), MagicMock(text="Hi</h2>")]))
        MockAnthropic.return_value.messages.create = create

        text = await complete_chat("system", "user")

    assert text == "<h2>Hi</h2>"
    kwargs = create.await_args.kwargs
    assert kwargs["system"] == "system"
    assert kwargs["model"] == "claude-test"
    assert kwargs["max_tokens"] == 1000
