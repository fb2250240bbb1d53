"""API endpoint for sending deliverables to clients by email."""

from fastapi import APIRouter, HTTPException

from agency_companion.core.email_service import send_email
from agency_companion.core.schemas_companion import EmailSendRequest

router = APIRouter(prefix="/email")


@router.post("/send")
async def send(body: EmailSendRequest):
    """Send an email; simulated when SendGrid is not configured."""
    if not body.html and not body.text:
        raise HTTPException(status_code=400, detail="Either html or text is required")

    success = await send_email(
        to=body.to,
        subject=body.subject,
        html=body.html,
        text=body.text,
        from_email=body.from_email,
    )
    return {"success": success}
