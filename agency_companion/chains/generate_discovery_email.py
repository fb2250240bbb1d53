"""LLM chain for the schedule-discovery-call email."""

from typing import Any

from agency_companion.chains._client_context import build_client_context_block
from agency_companion.core.llm import GenerationError, complete_chat, strip_html_fences
from agency_companion.core.logging import get_logger

logger = get_logger(__name__)

MAX_ANALYSIS_CHARS = 1500

SYSTEM_PROMPT = """You write outreach emails for a web design and digital marketing agency.

Write an email inviting the client to a 30-45 minute discovery call. The email should:
- Greet the contact by name when known
- Reference one or two specific observations about their business or market
- Explain what the call will cover (goals, audience, current website, timeline, budget)
- Offer two or three time slots as placeholders ([DAY/TIME])
- Close warmly and professionally

Keep it under 250 words. Format as simple HTML paragraphs (no <html> or <body> wrapper).
Output ONLY the HTML."""


async def generate_discovery_email(
    client_info: dict[str, Any],
    analysis_text: str | None = None,
) -> str:
    """
    Generate a discovery call invitation email.

    Raises:
        GenerationError: On API failure or empty output
    """
    sections = [build_client_context_block(client_info)]
    if analysis_text:
        sections.append(f"# Company analysis (excerpt)\n{analysis_text[:MAX_ANALYSIS_CHARS]}")
    sections.append("Write the discovery call email.")

    try:
        raw = await complete_chat(SYSTEM_PROMPT, "\n\n".join(sections), temperature=0.6, max_tokens=800)
    except Exception as e:
        raise GenerationError(f"Discovery email request failed: {e}") from e

    return strip_html_fences(raw)
