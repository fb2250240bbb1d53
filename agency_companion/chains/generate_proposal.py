"""LLM chain for project proposals with pricing."""

import json
from typing import Any

from pydantic import ValidationError

from agency_companion.chains._client_context import build_client_context_block
from agency_companion.core.llm import (
    GenerationError,
    complete_chat,
    parse_llm_json_dict,
    strip_html_fences,
    strip_llm_fences,
)
from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_companion import ProposalDraft, ProposalPricing

logger = get_logger(__name__)

MAX_ANALYSIS_CHARS = 2000

SYSTEM_PROMPT = """You are the account lead at a web design and digital marketing agency, writing a client proposal.

The proposal must include:
- Project understanding and objectives
- Proposed approach and methodology
- Deliverables and timeline
- Investment: one-time project fee, monthly website care plan, monthly products/hosting
- Next steps

Write the proposal as clean HTML (h2/h3/p/ul/li/table only, no <html> or <body> wrapper).

Output ONLY valid JSON:
{
  "content": "<h2>...</h2>...",
  "pricing": {
    "projectTotalFee": integer dollars,
    "carePlanMonthly": integer dollars,
    "productsMonthly": integer dollars
  }
}

The pricing figures must match the numbers quoted in the content."""


def _legacy_text_draft(raw: str) -> ProposalDraft:
    """Treat a non-JSON completion as proposal content without pricing."""
    return ProposalDraft(content=strip_html_fences(raw), pricing=None)


def _looks_like_json(raw: str) -> bool:
    return strip_llm_fences(raw).startswith(("{", "["))


async def generate_proposal(
    client_info: dict[str, Any],
    analysis_text: str | None = None,
    discovery_notes: str | None = None,
) -> ProposalDraft:
    """
    Generate a proposal for a client.

    Args:
        client_info: Normalized client context
        analysis_text: Latest company analysis (HTML or text), used as background
        discovery_notes: Notes from the discovery call

    Returns:
        ProposalDraft; pricing is None when the model answered in plain text
        or its pricing block could not be read

    Raises:
        GenerationError: On API failure, empty output or a malformed JSON draft
    """
    sections = [build_client_context_block(client_info)]
    if analysis_text:
        sections.append(f"# Company analysis (excerpt)\n{analysis_text[:MAX_ANALYSIS_CHARS]}")
    if discovery_notes:
        sections.append(f"# Discovery call notes\n{discovery_notes}")
    sections.append(
        "Write the proposal. Anchor the project fee to the project value unless the "
        "discovery notes call for a different scope."
    )

    try:
        raw = await complete_chat(
            SYSTEM_PROMPT,
            "\n\n".join(sections),
            temperature=0.5,
            max_tokens=2500,
            json_output=True,
        )
    except Exception as e:
        raise GenerationError(f"Proposal request failed: {e}") from e

    if not _looks_like_json(raw):
        logger.info("Proposal returned as plain text, pricing will use defaults")
        return _legacy_text_draft(raw)

    try:
        parsed = parse_llm_json_dict(raw)
        content = parsed.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ValueError("Proposal JSON has no content")
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"Proposal output did not validate: {e}")
        raise GenerationError(f"Proposal output was not valid: {e}") from e

    return ProposalDraft(content=strip_html_fences(content), pricing=_parse_pricing(parsed.get("pricing")))


def _parse_pricing(pricing_data: Any) -> ProposalPricing | None:
    """Validate the pricing block; an unusable one falls back to default pricing."""
    if not pricing_data:
        return None
    try:
        return ProposalPricing.model_validate(pricing_data)
    except ValidationError as e:
        logger.warning(f"Ignoring unusable proposal pricing {pricing_data!r}: {e}")
        return None
