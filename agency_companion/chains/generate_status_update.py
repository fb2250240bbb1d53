"""LLM chain for client status update emails."""

from typing import Any

from agency_companion.chains._client_context import build_client_context_block
from agency_companion.core.llm import GenerationError, complete_chat, strip_html_fences
from agency_companion.core.logging import get_logger
from agency_companion.core.schemas_companion import TASK_LABELS

logger = get_logger(__name__)


SYSTEM_PROMPT = """You write project status update emails on behalf of a web design and development professional.

The email should:
- Open with a friendly, professional greeting to the client contact
- Summarize the current project status and recent progress
- Outline what's coming next
- Ask for any information or feedback needed to move forward
- End with a professional closing

Keep it under 300 words. Format as simple HTML paragraphs and lists (no <html> or <body> wrapper).
Output ONLY the HTML."""


def _labels(task_types: list[str]) -> str:
    return ", ".join(TASK_LABELS.get(t, t) for t in task_types)


async def generate_status_update(
    client_info: dict[str, Any],
    task_progress: dict[str, list[str]] | None = None,
) -> str:
    """
    Generate a status update email.

    Args:
        client_info: Normalized client context
        task_progress: {"completed": [task types], "in_progress": [task types]}

    Returns:
        Email body HTML

    Raises:
        GenerationError: On API failure or empty output
    """
    task_progress = task_progress or {}
    completed = task_progress.get("completed") or []
    in_progress = task_progress.get("in_progress") or []

    progress_lines = [
        f"Completed deliverables: {_labels(completed)}" if completed
        else "No deliverables have been completed yet.",
        f"In progress: {_labels(in_progress)}" if in_progress
        else "Nothing else is currently in progress.",
    ]

    user_prompt = (
        f"{build_client_context_block(client_info)}\n\n"
        "# Progress\n" + "\n".join(progress_lines) + "\n\n"
        "Write the status update email."
    )
    try:
        raw = await complete_chat(SYSTEM_PROMPT, user_prompt, temperature=0.5, max_tokens=1000)
    except Exception as e:
        raise GenerationError(f"Status update request failed: {e}") from e

    return strip_html_fences(raw)
