"""Pytest configuration and fixtures."""

import os

# Settings are cached on first use, so the test environment must be in place
# before any agency_companion module is imported.
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ["APP_ENV"] = "test"
os.environ["LLM_PROVIDER"] = "openai"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SESSION_SECRET"] = "test-session-secret"
for _key in ("DATAFORSEO_LOGIN", "DATAFORSEO_PASSWORD", "PAGESPEED_API_KEY", "SENDGRID_API_KEY"):
    os.environ.pop(_key, None)

from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from agency_companion.db.memory import MemStorage  # noqa: E402
from agency_companion.db.storage import get_storage  # noqa: E402
from agency_companion.main import app  # noqa: E402


@pytest.fixture
def storage():
    """Fresh in-memory storage per test."""
    return MemStorage()


@pytest.fixture(autouse=True)
def background_generation():
    """Stub the company analysis that client creation schedules in the background."""
    with patch("agency_companion.api.clients.run_generation", new_callable=AsyncMock) as mock:
        yield mock


@pytest.fixture
def api(storage):
    """TestClient wired to the per-test storage."""
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_client(storage):
    """Insert a client row directly into storage."""

    def _make(**overrides):
        data = {
            "name": "Acme Plumbing",
            "contact_name": "Dana Reyes",
            "contact_title": "Owner",
            "email": "dana@acme.test",
            "industry": "Home Services",
            "website_url": "https://acmeplumbing.test",
            "status": "Discovery",
            "project_name": "Website Redesign",
            "project_description": "New marketing site with online booking",
            "project_status": "active",
            "project_value": 12000,
        }
        data.update(overrides)
        return storage.create_client(data)

    return _make
