"""LLM chain for the structured company analysis.

Produces the narrative half of the company-analysis deliverable: overview,
competitors, audience, challenges, keyword ideas, an estimated website
assessment and phased recommendations. Live SEO data is merged in later by the
report assembler.
"""

from typing import Any

from pydantic import ValidationError

from agency_companion.chains._client_context import build_client_context_block
from agency_companion.core.llm import GenerationError, complete_chat, parse_llm_json
from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_analysis import CompanyAnalysis

logger = get_logger(__name__)


SYSTEM_PROMPT = """You are a senior digital-marketing strategist at a web design agency.

You prepare a company analysis before the agency's first discovery call with a new client.
Be concrete and specific to the client's industry and market. When you are unsure about a
fact (for example competitor names), say what kind of competitor to look for instead of
inventing a company.

Output ONLY valid JSON with exactly this structure:
{
  "businessOverview": "2-3 paragraph overview of the business and its market position",
  "competitors": [
    {"name": "string", "website": "string or null", "strengths": ["string"], "weaknesses": ["string"]}
  ],
  "targetAudience": {
    "demographics": "string",
    "psychographics": "string",
    "painPoints": ["string"]
  },
  "industryChallenges": {
    "current": ["string"],
    "emerging": ["string"]
  },
  "keywordRecommendations": [
    {"keyword": "string", "intent": "informational|commercial|transactional|navigational", "priority": "high|medium|low"}
  ],
  "websitePerformance": {
    "estimatedLoadTime": "string",
    "mobileFriendliness": "string",
    "seoScoreEstimate": 0-100,
    "notes": ["string"]
  },
  "recommendations": {
    "shortTerm": ["string"],
    "mediumTerm": ["string"],
    "longTerm": ["string"]
  }
}

Include 3-5 competitors and 5-8 keyword recommendations."""


async def generate_company_analysis(client_info: dict[str, Any]) -> CompanyAnalysis:
    """
    Generate a structured company analysis for a client.

    Args:
        client_info: Normalized client context (see build_client_info)

    Returns:
        Validated CompanyAnalysis

    Raises:
        GenerationError: On API failure, empty output, invalid JSON or wrong shape
    """
    logger.info(
        f"Generating company analysis for {client_info.get('name')}",
        extra={"client_name": client_info.get("name")},
    )

    user_prompt = (
        f"{build_client_context_block(client_info)}\n\n"
        "Prepare the company analysis for this client."
    )

    try:
        raw = await complete_chat(
            SYSTEM_PROMPT,
            user_prompt,
            temperature=0.4,
            max_tokens=2500,
            json_output=True,
        )
    except Exception as e:
        raise GenerationError(f"Company analysis request failed: {e}") from e

    try:
        analysis = parse_llm_json(raw, CompanyAnalysis)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error(f"Company analysis output did not validate: {e}")
        raise GenerationError(f"Company analysis output was not valid: {e}") from e

    logger.info(
        f"Company analysis ready: {len(analysis.competitors)} competitors, "
        f"{len(analysis.keyword_recommendations)} keyword ideas"
    )
    return analysis
