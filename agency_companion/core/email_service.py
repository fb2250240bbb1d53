"""Outbound email service.

Sends through the SendGrid v3 API when SENDGRID_API_KEY is configured;
otherwise the message is only logged.
"""

from typing import Any

import httpx

from agency_companion.core.config import get_settings
from agency_companion.core.logging import get_logger

logger = get_logger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


def build_sendgrid_payload(
    to: str,
    from_email: str,
    subject: str,
    html: str | None = None,
    text: str | None = None,
) -> dict[str, Any]:
    """SendGrid v3 mail/send body. Plain text must precede HTML in `content`."""
    content = []
    if text:
        content.append({"type": "text/plain", "value": text})
    if html:
        content.append({"type": "text/html", "value": html})
    if not content:
        content.append({"type": "text/plain", "value": " "})

    return {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {"email": from_email},
        "subject": subject,
        "content": content,
    }


async def send_email(
    to: str,
    subject: str,
    html: str | None = None,
    text: str | None = None,
    from_email: str | None = None,
) -> bool:
    """
    Send a transactional email.

    Args:
        to: Recipient address
        subject: Email subject
        html: HTML body
        text: Plain text body
        from_email: Sender (defaults to DEFAULT_FROM_EMAIL)

    Returns:
        True if SendGrid accepted the message, or if sending is simulated
    """
    settings = get_settings()
    sender = from_email or settings.DEFAULT_FROM_EMAIL

    if not settings.SENDGRID_API_KEY:
        logger.info(f"SENDGRID_API_KEY not set, simulating email to {to}: subject='{subject}'")
        return True

    payload = build_sendgrid_payload(to, sender, subject, html, text)
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(
                SENDGRID_API_URL,
                headers={
                    "Authorization": f"Bearer {settings.SENDGRID_API_KEY}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"SendGrid send to {to} failed: {e}")
        return False

    logger.info(f"Email sent to {to}, subject='{subject}'")
    return True
