"""Tests for the deliverable generation endpoint."""

import json
from unittest.mock import AsyncMock, patch

from agency_companion.core.llm import GenerationError
from agency_companion.core.schemas_companion import ProposalDraft, ProposalPricing

ORCH = "agency_companion.services.companion_orchestrator"


def test_generate_site_map_success(api, make_client):
    client = make_client()

    with patch(f"{ORCH}.generate_site_map", new_callable=AsyncMock) as mock_chain:
        mock_chain.return_value = "<h2>Home</h2>"
        response = api.post(f"/api/clients/{client['id']}/generate/site_map")

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "site_map"
    assert data["status"] == "completed"
    assert data["content"] == "<h2>Home</h2>"
    assert data["completedAt"]
    assert data["error"] is None
    assert mock_chain.await_args.args[0]["name"] == "Acme Plumbing"


def test_generate_invalid_type_lists_valid_types(api, make_client):
    client = make_client()

    response = api.post(f"/api/clients/{client['id']}/generate/invoice")

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "invoice" in detail
    for task_type in ("company_analysis", "proposal", "contract", "site_map", "status_update", "schedule_discovery"):
        assert task_type in detail


def test_generate_unknown_client(api):
    response = api.post("/api/clients/404/generate/site_map")
    assert response.status_code == 404


def test_generate_in_flight_returns_409(api, make_client, storage):
    """Test a second generation for the same client and type is refused."""
    client = make_client()
    storage.begin_generation(client["id"], "site_map")

    with patch(f"{ORCH}.generate_site_map", new_callable=AsyncMock) as mock_chain:
        response = api.post(f"/api/clients/{client['id']}/generate/site_map")

    assert response.status_code == 409
    mock_chain.assert_not_awaited()


def test_generate_failure_returns_pending_task(api, make_client, storage):
    """Test a failed generation answers 500 with the task reset to pending."""
    client = make_client()

    with patch(f"{ORCH}.generate_site_map", new_callable=AsyncMock) as mock_chain:
        mock_chain.side_effect = GenerationError("model unavailable")
        response = api.post(f"/api/clients/{client['id']}/generate/site_map")

    assert response.status_code == 500
    body = response.json()
    assert "model unavailable" in body["detail"]
    task = body["task"]
    assert task["status"] == "pending"
    assert "model unavailable" in task["content"]
    assert task["error"] == task["content"]
    assert task["completedAt"] is None
    assert storage.get_companion_task(task["id"])["status"] == "pending"


def test_generate_reuses_stub_task(api, make_client, storage):
    client = make_client()
    stub = storage.create_companion_task(client["id"], {"type": "status_update"})

    with patch(f"{ORCH}.generate_status_update", new_callable=AsyncMock) as mock_chain:
        mock_chain.return_value = "<p>Update</p>"
        response = api.post(
            f"/api/clients/{client['id']}/generate/status_update",
            json={"taskId": stub["id"]},
        )

    assert response.status_code == 200
    assert response.json()["id"] == stub["id"]
    assert len(storage.list_companion_tasks(client["id"])) == 1


def test_generate_with_mismatched_stub(api, make_client, storage):
    client = make_client()
    stub = storage.create_companion_task(client["id"], {"type": "contract"})

    response = api.post(
        f"/api/clients/{client['id']}/generate/proposal",
        json={"taskId": stub["id"]},
    )

    assert response.status_code == 400


def test_generate_proposal_passes_discovery_notes(api, make_client):
    client = make_client(project_value=18000)
    draft = ProposalDraft(content="<h2>Proposal</h2>", pricing=ProposalPricing(project_total_fee=20000))

    with patch(f"{ORCH}.generate_proposal", new_callable=AsyncMock) as mock_chain:
        mock_chain.return_value = draft
        response = api.post(
            f"/api/clients/{client['id']}/generate/proposal",
            json={"discoveryNotes": "Wants online booking"},
        )

    assert response.status_code == 200
    assert mock_chain.await_args.args[2] == "Wants online booking"
    pricing = json.loads(response.json()["metadata"])
    assert pricing == {"projectTotalFee": 20000, "carePlanMonthly": 99, "productsMonthly": 29}


def test_generate_task_deleted_mid_run_returns_409(api, make_client, storage):
    client = make_client()

    async def delete_then_answer(client_info):
        for task in storage.list_companion_tasks(client["id"]):
            storage.delete_companion_task(task["id"])
        return "<h2>Home</h2>"

    with patch(f"{ORCH}.generate_site_map", new=AsyncMock(side_effect=delete_then_answer)):
        response = api.post(f"/api/clients/{client['id']}/generate/site_map")

    assert response.status_code == 409
    assert "deleted" in response.json()["detail"]
