"""LLM chain for the website site map and content plan."""

from typing import Any

from agency_companion.chains._client_context import build_client_context_block
from agency_companion.core.llm import GenerationError, complete_chat, strip_html_fences
from agency_companion.core.logging import get_logger

logger = get_logger(__name__)


SYSTEM_PROMPT = """You are an information architect at a web design agency.

Create a detailed website site map and content plan. Include:
- Main page structure and navigation (nested list, top-level pages first)
- Key content sections for each page with a one-line description
- Placeholder intro copy for the main sections
- Recommended features and functionality (forms, booking, e-commerce, etc.)

The client reviews this document directly, so keep it clear and jargon-free.
Format as clean HTML (h2/h3/p/ul/li only, no <html> or <body> wrapper).
Output ONLY the HTML."""


async def generate_site_map(client_info: dict[str, Any]) -> str:
    """
    Generate a site map and content plan.

    Raises:
        GenerationError: On API failure or empty output
    """
    user_prompt = f"{build_client_context_block(client_info)}\n\nCreate the site map."
    try:
        raw = await complete_chat(SYSTEM_PROMPT, user_prompt, temperature=0.5, max_tokens=2000)
    except Exception as e:
        raise GenerationError(f"Site map request failed: {e}") from e

    logger.info(f"Site map generated for {client_info.get('name')}")
    return strip_html_fences(raw)
