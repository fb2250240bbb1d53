"""API router for /api endpoints."""

from fastapi import APIRouter

from agency_companion.api import auth, clients, companion_tasks, email, projects, share

router = APIRouter()

# Staff authentication (cookie sessions)
router.include_router(auth.router, tags=["auth"])

# Client management
router.include_router(clients.router, tags=["clients"])

# Legacy project records
router.include_router(projects.router, tags=["projects"])

# AI companion tasks and generation
router.include_router(companion_tasks.router, tags=["companion"])

# Site-map sharing and client feedback
router.include_router(share.router, tags=["share"])

# Outbound email
router.include_router(email.router, tags=["email"])
