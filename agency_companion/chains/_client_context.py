"""Shared client context block for deliverable chains."""

from typing import Any

# (label, client_info key) in prompt order
_FIELDS = (
    ("Company", "name"),
    ("Industry", "industry"),
    ("Website", "website_url"),
    ("Primary contact", "contact_name"),
    ("Contact title", "contact_title"),
    ("Current phase", "status"),
    ("Project", "project_name"),
    ("Project description", "project_description"),
    ("Project status", "project_status"),
)


def format_money(value: Any) -> str:
    """Format a whole-dollar amount ("$12,500"); falls back to the raw value."""
    try:
        return f"${int(value):,}"
    except (TypeError, ValueError):
        return str(value)


def build_client_context_block(client_info: dict[str, Any]) -> str:
    """Format client info as a prompt context block.

    Missing fields are rendered as "Not specified" so the model never invents them
    silently.
    """
    lines = ["# Client"]
    for label, key in _FIELDS:
        value = client_info.get(key)
        lines.append(f"- {label}: {value if value not in (None, '') else 'Not specified'}")
    lines.append(f"- Project value: {format_money(client_info.get('project_value') or 0)}")
    return "\n".join(lines)
