"""Tests for the outbound email service and endpoint."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from agency_companion.core.email_service import (
    SENDGRID_API_URL,
    build_sendgrid_payload,
    send_email,
)


def test_payload_puts_plain_text_first():
    payload = build_sendgrid_payload("dana@acme.test", "team@agency.test", "Hello", html="<p>Hi</p>", text="Hi")

    assert [c["type"] for c in payload["content"]] == ["text/plain", "text/html"]
    assert payload["personalizations"] == [{"to": [{"email": "dana@acme.test"}]}]
    assert payload["from"] == {"email": "team@agency.test"}


def test_payload_without_body_has_placeholder_text():
    payload = build_sendgrid_payload("dana@acme.test", "team@agency.test", "Hello")

    assert payload["content"] == [{"type": "text/plain", "value": " "}]


@pytest.mark.asyncio
async def test_send_is_simulated_without_api_key():
    with patch("httpx.AsyncClient") as MockClient:
        assert await send_email("dana@acme.test", "Hello", html="<p>Hi</p>") is True

    MockClient.assert_not_called()


def _configured_settings():
    settings = MagicMock()
    settings.SENDGRID_API_KEY = "sg-test"
    settings.DEFAULT_FROM_EMAIL = "team@agency.test"
    settings.HTTP_TIMEOUT_SECONDS = 5.0
    return settings


@pytest.mark.asyncio
async def test_send_posts_to_sendgrid():
    client_instance = MagicMock()
    client_instance.post = AsyncMock(return_value=MagicMock(raise_for_status=MagicMock()))

    with patch("agency_companion.core.email_service.get_settings", return_value=_configured_settings()), patch(
        "httpx.AsyncClient"
    ) as MockClient:
        MockClient.return_value.__aenter__ = AsyncMock(return_value=client_instance)
        MockClient.return_value.__aexit__ = AsyncMock(return_value=False)

        assert await send_email("dana@acme.test", "Hello", text="Hi") is True

    args, kwargs = client_instance.post.call_args
    assert args[0] == SENDGRID_API_URL
    assert kwargs["headers"]["Authorization"] == "Bearer sg-test"
    assert kwargs["json"]["from"] == {"email": "team@agency.test"}


@pytest.mark.asyncio
async def test_send_returns_false_on_http_error():
    client_instance = MagicMock()
    client_instance.post = AsyncMock(side_effect=httpx.ConnectError("refused"))

    with patch("agency_companion.core.email_service.get_settings", return_value=_configured_settings()), patch(
        "httpx.AsyncClient"
    ) as MockClient:
        MockClient.return_value.__aenter__ = AsyncMock(return_value=client_instance)
        MockClient.return_value.__aexit__ = AsyncMock(return_value=False)

        assert await send_email("dana@acme.test", "Hello", text="Hi") is False


def test_send_endpoint(api):
    with patch("agency_companion.api.email.send_email", new_callable=AsyncMock, return_value=True) as mock_send:
        response = api.post(
            "/api/email/send",
            json={"to": "dana@acme.test", "from": "me@agency.test", "subject": "Proposal", "html": "<p>Hi</p>"},
        )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert mock_send.await_args.kwargs["from_email"] == "me@agency.test"


def test_send_endpoint_requires_body(api):
    response = api.post("/api/email/send", json={"to": "dana@acme.test", "subject": "Proposal"})

    assert response.status_code == 400
