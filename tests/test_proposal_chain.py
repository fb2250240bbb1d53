"""Tests for the proposal, contract and text deliverable chains."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from agency_companion.chains.generate_contract import generate_contract
from agency_companion.chains.generate_discovery_email import generate_discovery_email
from agency_companion.chains.generate_proposal import generate_proposal
from agency_companion.chains.generate_site_map import generate_site_map
from agency_companion.chains.generate_status_update import generate_status_update
from agency_companion.core.llm import GenerationError
from agency_companion.core.schemas_companion import ProposalPricing

CLIENT_INFO = {
    "name": "Acme Plumbing",
    "industry": "Home Services",
    "contact_name": "Dana Reyes",
    "project_name": "Website Redesign",
    "project_value": 12000,
}


class TestProposal:
    CHAIN = "agency_companion.chains.generate_proposal.complete_chat"

    @pytest.mark.asyncio
    async def test_json_draft_with_pricing(self):
        raw = json.dumps(
            {
                "content": "<h2>Proposal</h2><p>$14,000</p>",
                "pricing": {"projectTotalFee": 14000, "carePlanMonthly": 129, "productsMonthly": 35},
            }
        )
        with patch(self.CHAIN, new_callable=AsyncMock, return_value=raw) as mock_chat:
            draft = await generate_proposal(CLIENT_INFO, "<p>Analysis</p>", "Wants booking")

        assert draft.content == "<h2>Proposal</h2><p>$14,000</p>"
        assert draft.pricing.project_total_fee == 14000
        assert draft.pricing.products_monthly == 35
        prompt = mock_chat.await_args.args[1]
        assert "Wants booking" in prompt
        assert "<p>Analysis</p>" in prompt

    @pytest.mark.asyncio
    async def test_plain_text_is_legacy_content(self):
        raw = "```html\n<h2>Proposal</h2>\n```"
        with patch(self.CHAIN, new_callable=AsyncMock, return_value=raw):
            draft = await generate_proposal(CLIENT_INFO)

        assert draft.content == "<h2>Proposal</h2>"
        assert draft.pricing is None

    @pytest.mark.asyncio
    async def test_json_without_pricing(self):
        with patch(self.CHAIN, new_callable=AsyncMock, return_value='{"content": "<p>Hi</p>"}'):
            draft = await generate_proposal(CLIENT_INFO)

        assert draft.pricing is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw",
        [
            '{"content": ""}',
            '{"pricing": {"projectTotalFee": 1}}',
            '{"content": "<p>x</p>",',
        ],
    )
    async def test_malformed_json_raises(self, raw):
        with patch(self.CHAIN, new_callable=AsyncMock, return_value=raw):
            with pytest.raises(GenerationError):
                await generate_proposal(CLIENT_INFO)

    @pytest.mark.asyncio
    async def test_fractional_and_formatted_prices_are_rounded(self):
        raw = json.dumps(
            {
                "content": "<h2>Proposal</h2>",
                "pricing": {"projectTotalFee": "$5,000", "carePlanMonthly": 99.99, "productsMonthly": "29/month"},
            }
        )
        with patch(self.CHAIN, new_callable=AsyncMock, return_value=raw):
            draft = await generate_proposal(CLIENT_INFO)

        assert draft.pricing.project_total_fee == 5000
        assert draft.pricing.care_plan_monthly == 100
        assert draft.pricing.products_monthly == 29

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "pricing",
        [{"projectTotalFee": -10}, {"carePlanMonthly": "call us"}, "about five grand"],
    )
    async def test_unusable_pricing_keeps_content(self, pricing):
        raw = json.dumps({"content": "<h2>Proposal</h2>", "pricing": pricing})
        with patch(self.CHAIN, new_callable=AsyncMock, return_value=raw):
            draft = await generate_proposal(CLIENT_INFO)

        assert draft.content == "<h2>Proposal</h2>"
        assert draft.pricing is None

    @pytest.mark.asyncio
    async def test_api_failure_raises(self):
        with patch(self.CHAIN, new_callable=AsyncMock, side_effect=RuntimeError("503")):
            with pytest.raises(GenerationError):
                await generate_proposal(CLIENT_INFO)


class TestContract:
    CHAIN = "agency_companion.chains.generate_contract.complete_chat"

    @pytest.mark.asyncio
    async def test_includes_proposal_pricing(self):
        pricing = ProposalPricing(project_total_fee=14000, care_plan_monthly=129, products_monthly=None)
        with patch(self.CHAIN, new_callable=AsyncMock, return_value="<h2>Agreement</h2>") as mock_chat:
            content = await generate_contract(CLIENT_INFO, pricing)

        assert content == "<h2>Agreement</h2>"
        prompt = mock_chat.await_args.args[1]
        assert "$14,000" in prompt
        assert "$129/month" in prompt
        assert "Products and hosting" not in prompt

    @pytest.mark.asyncio
    async def test_falls_back_to_project_value(self):
        with patch(self.CHAIN, new_callable=AsyncMock, return_value="<h2>Agreement</h2>") as mock_chat:
            await generate_contract(CLIENT_INFO)

        assert "$12,000" in mock_chat.await_args.args[1]


class TestTextChains:
    @pytest.mark.asyncio
    async def test_site_map(self):
        with patch(
            "agency_companion.chains.generate_site_map.complete_chat",
            new_callable=AsyncMock,
            return_value="<h2>Home</h2>",
        ):
            assert await generate_site_map(CLIENT_INFO) == "<h2>Home</h2>"

    @pytest.mark.asyncio
    async def test_status_update_lists_progress(self):
        with patch(
            "agency_companion.chains.generate_status_update.complete_chat",
            new_callable=AsyncMock,
            return_value="<p>Hi Dana</p>",
        ) as mock_chat:
            await generate_status_update(CLIENT_INFO, {"completed": ["company_analysis"], "in_progress": []})

        prompt = mock_chat.await_args.args[1]
        assert "Completed deliverables: company analysis" in prompt
        assert "Nothing else is currently in progress." in prompt

    @pytest.mark.asyncio
    async def test_discovery_email_failure(self):
        with patch(
            "agency_companion.chains.generate_discovery_email.complete_chat",
            new_callable=AsyncMock,
            side_effect=ValueError("Language model returned an empty completion"),
        ):
            with pytest.raises(GenerationError):
                await generate_discovery_email(CLIENT_INFO, "<p>Analysis</p>")
