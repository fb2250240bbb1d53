"""Companion task orchestrator.

Runs one deliverable generation for a client end to end:
pending -> in_progress -> completed, or back to pending with a failure message.

The storage-level in-flight check in begin_generation guarantees at most one
running generation per (client, task type).
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from agency_companion.chains.extract_keywords import extract_keywords
from agency_companion.chains.generate_company_analysis import generate_company_analysis
from agency_companion.chains.generate_contract import generate_contract
from agency_companion.chains.generate_discovery_email import generate_discovery_email
from agency_companion.chains.generate_proposal import generate_proposal
from agency_companion.chains.generate_site_map import generate_site_map
from agency_companion.chains.generate_status_update import generate_status_update
from agency_companion.core.dataforseo_service import fetch_keyword_volumes, fetch_search_ranking
from agency_companion.core.logging import get_logger, log_with_context
from agency_companion.core.pagespeed_service import fetch_page_performance
from agency_companion.core.report_renderer import assemble_analysis_report, render_analysis_html
from agency_companion.core.schemas_analysis import CompanyAnalysis
from agency_companion.core.schemas_common import utc_now_iso
from agency_companion.core.schemas_companion import TASK_LABELS, TASK_TYPES, ProposalPricing
from agency_companion.db.storage import Storage

logger = get_logger(__name__)

# Fallback monthly pricing when a proposal comes back without figures
DEFAULT_CARE_PLAN_MONTHLY = 99
DEFAULT_PRODUCTS_MONTHLY = 29


class InvalidTaskTypeError(ValueError):
    """Raised for a task type outside TASK_TYPES."""

    def __init__(self, task_type: str):
        self.task_type = task_type
        super().__init__(
            f"Invalid task type '{task_type}'. Valid types: {', '.join(TASK_TYPES)}"
        )


class ClientNotFoundError(LookupError):
    """Raised when the client for a generation does not exist."""

    def __init__(self, client_id: int):
        self.client_id = client_id
        super().__init__(f"Client {client_id} not found")


class TaskDeletedError(LookupError):
    """Raised when a task row disappears while its generation is running."""

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} was deleted while it was being generated")


class GenerationFailedError(Exception):
    """Raised after a failed generation has been recorded on its task row."""

    def __init__(self, task: dict, message: str):
        self.task = task
        self.message = message
        super().__init__(message)


def build_client_info(client: dict) -> dict[str, Any]:
    """
    Normalize a stored client row into the context the chains prompt with.

    Args:
        client: Client row (snake_case)

    Returns:
        Dict with name, industry, website, contact and project fields
    """
    return {
        "id": client.get("id"),
        "name": client.get("name") or "",
        "industry": client.get("industry") or "",
        "website_url": (client.get("website_url") or "").strip(),
        "contact_name": client.get("contact_name") or "",
        "contact_title": client.get("contact_title") or "",
        "email": client.get("email") or "",
        "status": client.get("status") or "Discovery",
        "project_name": client.get("project_name") or "",
        "project_description": client.get("project_description") or "",
        "project_status": client.get("project_status") or "active",
        "project_value": client.get("project_value") or 0,
    }


def _latest_completed_content(storage: Storage, client_id: int, task_type: str) -> str | None:
    task = storage.latest_companion_task(client_id, task_type, status="completed")
    return task.get("content") if task else None


def _proposal_pricing(storage: Storage, client_id: int) -> ProposalPricing | None:
    """Pricing from the latest completed proposal's metadata, if it parses."""
    task = storage.latest_companion_task(client_id, "proposal", status="completed")
    if not task or not task.get("metadata"):
        return None
    try:
        return ProposalPricing.model_validate(json.loads(task["metadata"]))
    except ValueError as e:
        logger.warning(f"Ignoring unreadable proposal pricing on task {task['id']}: {e}")
        return None


async def _nothing() -> None:
    return None


# =============================================================================
# Per-type generators: each returns (content, metadata JSON string or None)
# =============================================================================


async def _run_company_analysis(
    storage: Storage, client_info: dict[str, Any]
) -> tuple[str, str | None]:
    analysis: CompanyAnalysis = await generate_company_analysis(client_info)

    keyword_source = "\n".join(
        [analysis.business_overview]
        + [k.keyword for k in analysis.keyword_recommendations]
    )
    keywords = await extract_keywords(keyword_source)
    if not keywords:
        # Fall back to the analysis' own ideas when extraction comes back empty
        keywords = [k.keyword for k in analysis.keyword_recommendations if k.keyword][:5]

    website = client_info.get("website_url")
    volumes, ranking, performance = await asyncio.gather(
        fetch_keyword_volumes(keywords) if keywords else _nothing(),
        fetch_search_ranking(keywords[0], website) if keywords and website else _nothing(),
        fetch_page_performance(website) if website else _nothing(),
    )

    report = assemble_analysis_report(analysis, volumes, ranking, performance, keywords)
    metadata = {
        "keywords": keywords,
        "performanceScore": performance.performance_score if performance else None,
    }
    return render_analysis_html(report), json.dumps(metadata)


async def _run_proposal(
    storage: Storage,
    client_info: dict[str, Any],
    discovery_notes: str | None,
) -> tuple[str, str | None]:
    analysis_text = _latest_completed_content(storage, client_info["id"], "company_analysis")
    draft = await generate_proposal(client_info, analysis_text, discovery_notes)

    pricing = draft.pricing or ProposalPricing()
    if pricing.project_total_fee is None:
        pricing.project_total_fee = client_info.get("project_value") or 0
    if pricing.care_plan_monthly is None:
        pricing.care_plan_monthly = DEFAULT_CARE_PLAN_MONTHLY
    if pricing.products_monthly is None:
        pricing.products_monthly = DEFAULT_PRODUCTS_MONTHLY

    return draft.content, json.dumps(pricing.model_dump(by_alias=True))


async def _run_contract(storage: Storage, client_info: dict[str, Any]) -> tuple[str, str | None]:
    pricing = _proposal_pricing(storage, client_info["id"])
    content = await generate_contract(client_info, pricing)
    metadata = json.dumps(pricing.model_dump(by_alias=True)) if pricing else None
    return content, metadata


async def _run_status_update(
    storage: Storage, client_info: dict[str, Any], current_task_id: int
) -> tuple[str, str | None]:
    completed: list[str] = []
    in_progress: list[str] = []
    for task_type, task in storage.current_companion_tasks(client_info["id"]).items():
        if task["id"] == current_task_id:
            continue
        if task["status"] == "completed":
            completed.append(task_type)
        elif task["status"] == "in_progress":
            in_progress.append(task_type)

    progress = {"completed": completed, "in_progress": in_progress}
    content = await generate_status_update(client_info, progress)
    return content, json.dumps(progress)


async def _run_discovery_email(
    storage: Storage, client_info: dict[str, Any]
) -> tuple[str, str | None]:
    analysis_text = _latest_completed_content(storage, client_info["id"], "company_analysis")
    return await generate_discovery_email(client_info, analysis_text), None


async def _run_site_map(storage: Storage, client_info: dict[str, Any]) -> tuple[str, str | None]:
    return await generate_site_map(client_info), None


async def _dispatch(
    storage: Storage,
    task_type: str,
    client_info: dict[str, Any],
    task: dict,
    discovery_notes: str | None,
) -> tuple[str, str | None]:
    if task_type == "company_analysis":
        return await _run_company_analysis(storage, client_info)
    if task_type == "proposal":
        return await _run_proposal(storage, client_info, discovery_notes)
    if task_type == "contract":
        return await _run_contract(storage, client_info)
    if task_type == "status_update":
        return await _run_status_update(storage, client_info, task["id"])
    if task_type == "schedule_discovery":
        return await _run_discovery_email(storage, client_info)
    return await _run_site_map(storage, client_info)


# =============================================================================
# Entry point
# =============================================================================


async def run_generation(
    storage: Storage,
    client_id: int,
    task_type: str,
    discovery_notes: str | None = None,
    task_id: int | None = None,
) -> dict:
    """
    Generate one companion deliverable and record it on its task row.

    Args:
        storage: Storage backend
        client_id: Client ID
        task_type: One of TASK_TYPES
        discovery_notes: Optional discovery call notes (used by proposals)
        task_id: Existing stub task to fill instead of inserting a new row

    Returns:
        The completed task row

    Raises:
        InvalidTaskTypeError: Unknown task type
        ClientNotFoundError: Client does not exist
        TaskInFlightError: A generation for this client and type is already running
        ValueError: task_id does not match the client and type
        GenerationFailedError: Generation failed; the task was reset to pending
        TaskDeletedError: The task row was deleted before the result was saved
    """
    if task_type not in TASK_TYPES:
        raise InvalidTaskTypeError(task_type)

    client = storage.get_client(client_id)
    if not client:
        raise ClientNotFoundError(client_id)

    task = storage.begin_generation(client_id, task_type, task_id)
    client_info = build_client_info(client)

    log_with_context(
        logger,
        logging.INFO,
        f"Starting {task_type} generation for client {client_id}",
        client_id=client_id,
        task_type=task_type,
        task_id=task["id"],
    )

    try:
        content, metadata = await _dispatch(storage, task_type, client_info, task, discovery_notes)
    except Exception as e:
        message = f"Failed to generate {TASK_LABELS[task_type]}: {e}"
        log_with_context(
            logger,
            logging.ERROR,
            message,
            client_id=client_id,
            task_type=task_type,
            task_id=task["id"],
        )
        failed = storage.update_companion_task(
            task["id"],
            {"status": "pending", "content": message, "error": message, "completed_at": None},
        )
        if failed is None:
            raise TaskDeletedError(task["id"]) from e
        raise GenerationFailedError(failed, message) from e

    completed = storage.update_companion_task(
        task["id"],
        {
            "status": "completed",
            "content": content,
            "metadata": metadata,
            "error": None,
            "completed_at": utc_now_iso(),
        },
    )
    if completed is None:
        log_with_context(
            logger,
            logging.WARNING,
            f"Discarding {task_type} result for client {client_id}: task was deleted",
            client_id=client_id,
            task_type=task_type,
            task_id=task["id"],
        )
        raise TaskDeletedError(task["id"])

    log_with_context(
        logger,
        logging.INFO,
        f"Completed {task_type} generation for client {client_id}",
        client_id=client_id,
        task_type=task_type,
        task_id=task["id"],
    )
    return completed
