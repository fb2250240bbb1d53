"""LLM client utilities shared by the deliverable chains."""

import json
import re
from typing import TypeVar

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from pydantic import BaseModel

from agency_companion.core.config import get_settings
from agency_companion.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


class GenerationError(Exception):
    """Raised when a language-model call or its output cannot produce a deliverable."""


async def complete_chat(
    system_prompt: str,
    user_prompt: str,
    *,
    temperature: float = 0.4,
    max_tokens: int | None = None,
    json_output: bool = False,
) -> str:
    """
    Run a single system+user completion against the configured provider.

    Args:
        system_prompt: Instructions for the model
        user_prompt: The request body
        temperature: Sampling temperature
        max_tokens: Completion budget (defaults to LLM_MAX_TOKENS)
        json_output: Ask the provider for a JSON object response where supported

    Returns:
        The raw completion text

    Raises:
        ValueError: If the provider returns no content
        openai.APIError / anthropic.APIError: On transport or API failures
    """
    settings = get_settings()
    max_tokens = max_tokens or settings.LLM_MAX_TOKENS

    if settings.LLM_PROVIDER == "anthropic":
        client = AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)
        response = await client.messages.create(
            model=settings.ANTHROPIC_MODEL,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        text = "".join(getattr(block, "text", "") for block in response.content)
    else:
        client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        kwargs = {}
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}
        response = await client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
        text = response.choices[0].message.content or ""

    if not text.strip():
        raise ValueError("Language model returned an empty completion")

    logger.debug(f"LLM completion received: {len(text)} characters")
    return text


_JSON_FENCE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)
_HTML_FENCE = re.compile(r"^```(?:html)?\s*\n?(.*?)```$", re.DOTALL)


def strip_llm_fences(raw_output: str) -> str:
    """Return the JSON inside a ```json fence, or the trimmed text if unfenced.

    An unterminated opening fence, or a dangling closing one, is dropped too.
    """
    text = raw_output.strip()
    fenced = _JSON_FENCE.search(text)
    if fenced:
        return fenced.group(1).strip()

    for opener in ("```json", "```"):
        if text.startswith(opener):
            text = text[len(opener):]
            break
    return text.removesuffix("```").strip()


def strip_html_fences(raw_output: str) -> str:
    """Unwrap markup the model returned inside a ```html fence."""
    text = raw_output.strip()
    fenced = _HTML_FENCE.match(text)
    return fenced.group(1).strip() if fenced else text


def parse_llm_json_dict(raw_output: str) -> dict:
    """
    Decode a model completion that should hold a single JSON object.

    Raises:
        json.JSONDecodeError: The text is not JSON once fences are removed
        ValueError: The JSON is an array or scalar
    """
    value = json.loads(strip_llm_fences(raw_output))
    if not isinstance(value, dict):
        raise ValueError(f"Expected a JSON object, got {type(value).__name__}")
    return value


def parse_llm_json(raw_output: str, model: type[T]) -> T:
    """Decode a completion and validate it as `model` (raises pydantic.ValidationError)."""
    return model.model_validate(parse_llm_json_dict(raw_output))
