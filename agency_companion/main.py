"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agency_companion.api import router as api_router
from agency_companion.core.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="Agency Companion",
    description="Client management and AI deliverable generation for a web design agency",
    version="0.1.0",
)


def _format_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        # Drop the "body"/"query"/"path" prefix from the location
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location)
        messages.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation failures as 400 with a readable detail."""
    detail = _format_validation_errors(exc)
    logger.info(f"Rejected {request.method} {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content={"detail": detail})


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


app.include_router(api_router, prefix="/api")
