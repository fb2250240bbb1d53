"""LLM chain for pulling SEO keywords out of a company analysis."""

from agency_companion.core.llm import complete_chat, parse_llm_json_dict
from agency_companion.core.logging import get_logger

logger = get_logger(__name__)

MAX_KEYWORDS = 5

SYSTEM_PROMPT = """You are an SEO strategist.

Given a description of a business, list the search keywords its customers are most likely to type into Google.

RULES:
- Return at most 5 keywords, most valuable first
- Prefer 2-4 word commercial phrases over single generic words
- No brand names of competitors

Output ONLY valid JSON:
{"keywords": ["string", "string"]}
"""


async def extract_keywords(text: str) -> list[str]:
    """
    Extract up to five search keywords from free text.

    Never raises: blank input, API failures and malformed output all yield [].
    """
    if not text or not text.strip():
        return []

    try:
        raw = await complete_chat(
            SYSTEM_PROMPT,
            text[:6000],
            temperature=0.2,
            max_tokens=300,
            json_output=True,
        )
        parsed = parse_llm_json_dict(raw)
    except Exception as e:
        logger.warning(f"Keyword extraction failed: {e}")
        return []

    candidates = parsed.get("keywords")
    if not isinstance(candidates, list):
        logger.warning("Keyword extraction returned no keyword list")
        return []

    keywords: list[str] = []
    seen: set[str] = set()
    for item in candidates:
        if not isinstance(item, str):
            continue
        keyword = item.strip()
        if not keyword or keyword.lower() in seen:
            continue
        seen.add(keyword.lower())
        keywords.append(keyword)
        if len(keywords) == MAX_KEYWORDS:
            break

    logger.info(f"Extracted {len(keywords)} keywords")
    return keywords
