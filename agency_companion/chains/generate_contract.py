"""LLM chain for web design services contracts."""

from typing import Any

from agency_companion.chains._client_context import build_client_context_block, format_money
from agency_companion.core.llm import GenerationError, complete_chat, strip_html_fences
from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_companion import ProposalPricing

logger = get_logger(__name__)


SYSTEM_PROMPT = """You draft services agreements for a web design and development agency.

The contract must include:
- Parties involved (use [AGENCY NAME] as the agency placeholder)
- Scope of work
- Timeline and deliverables
- Payment terms and schedule, including any monthly care plan and products fees
- Intellectual property rights
- Termination clauses
- Standard legal protections (limitation of liability, confidentiality, governing law)

Write it as a formal document that can serve as a starting point for a real contract.
Format as clean HTML (h2/h3/p/ol/ul/li only, no <html> or <body> wrapper).
Output ONLY the HTML."""


def _pricing_block(client_info: dict[str, Any], pricing: ProposalPricing | None) -> str:
    if pricing is None:
        return (
            "# Pricing\n"
            f"- Project fee: {format_money(client_info.get('project_value') or 0)} "
            "(no accepted proposal yet; use this as the fee)"
        )
    lines = ["# Pricing (from the accepted proposal)"]
    if pricing.project_total_fee is not None:
        lines.append(f"- Project fee: {format_money(pricing.project_total_fee)}")
    if pricing.care_plan_monthly is not None:
        lines.append(f"- Care plan: {format_money(pricing.care_plan_monthly)}/month")
    if pricing.products_monthly is not None:
        lines.append(f"- Products and hosting: {format_money(pricing.products_monthly)}/month")
    return "\n".join(lines)


async def generate_contract(
    client_info: dict[str, Any],
    pricing: ProposalPricing | None = None,
) -> str:
    """
    Generate a services contract.

    Args:
        client_info: Normalized client context
        pricing: Pricing from the latest completed proposal, if any

    Returns:
        Contract HTML

    Raises:
        GenerationError: On API failure or empty output
    """
    user_prompt = (
        f"{build_client_context_block(client_info)}\n\n"
        f"{_pricing_block(client_info, pricing)}\n\n"
        "Draft the contract."
    )
    try:
        raw = await complete_chat(SYSTEM_PROMPT, user_prompt, temperature=0.3, max_tokens=2500)
    except Exception as e:
        raise GenerationError(f"Contract request failed: {e}") from e

    logger.info(f"Contract generated for {client_info.get('name')}")
    return strip_html_fences(raw)
