"""Tests for the lint webhook endpoint.

The dispatcher is mocked; these tests cover request validation and scheduling only.
"""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.lint_reviewer.dispatcher import DispatchOutcome, EventDispatcher

WEBHOOK_SECRET = "s3cret"

PULL_REQUEST_BODY = json.dumps(
    {
        "action": "opened",
        "number": 7,
        "repository": {"name": "web", "owner": {"login": "acme"}},
        "pull_request": {"head": {"ref": "feature", "sha": "abc"}},
    }
).encode()


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def webhook_headers(event: str = "pull_request", body: bytes = PULL_REQUEST_BODY, **extra: str) -> dict:
    headers = {
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "delivery-1",
        "X-Hub-Signature-256": sign(body),
        "Content-Type": "application/json",
    }
    headers.update(extra)
    return headers


@pytest.fixture
def mock_dispatcher():
    dispatcher = Mock(spec=EventDispatcher)
    dispatcher.dispatch = AsyncMock(return_value=DispatchOutcome.DONE)
    return dispatcher


@pytest.fixture
def test_app(mock_dispatcher):
    """Create test app with mocked dependencies."""
    test_app = FastAPI()

    from src.lint_reviewer.server.routes import router

    test_app.include_router(router)

    test_app.state.dispatcher = mock_dispatcher
    test_app.state.webhook_secret = WEBHOOK_SECRET

    return test_app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


class TestLintWebhook:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_pull_request_is_accepted_and_dispatched(self, client, mock_dispatcher):
        response = client.post("/lint", content=PULL_REQUEST_BODY, headers=webhook_headers())

        assert response.status_code == 202
        assert response.json() == {"success": True, "message": "Accepted", "delivery_id": "delivery-1"}
        # Background tasks run before TestClient returns
        mock_dispatcher.dispatch.assert_awaited_once_with(json.loads(PULL_REQUEST_BODY))

    def test_missing_event_header_returns_400(self, client, mock_dispatcher):
        headers = webhook_headers()
        del headers["X-GitHub-Event"]

        response = client.post("/lint", content=PULL_REQUEST_BODY, headers=headers)

        assert response.status_code == 400
        mock_dispatcher.dispatch.assert_not_awaited()

    def test_bad_signature_returns_401(self, client, mock_dispatcher):
        headers = webhook_headers(**{"X-Hub-Signature-256": sign(PULL_REQUEST_BODY, "wrong")})

        response = client.post("/lint", content=PULL_REQUEST_BODY, headers=headers)

        assert response.status_code == 401
        mock_dispatcher.dispatch.assert_not_awaited()

    def test_missing_signature_returns_401(self, client):
        headers = webhook_headers()
        del headers["X-Hub-Signature-256"]

        response = client.post("/lint", content=PULL_REQUEST_BODY, headers=headers)

        assert response.status_code == 401

    def test_signature_not_checked_without_secret(self, client, test_app, mock_dispatcher):
        test_app.state.webhook_secret = None
        headers = webhook_headers()
        del headers["X-Hub-Signature-256"]

        response = client.post("/lint", content=PULL_REQUEST_BODY, headers=headers)

        assert response.status_code == 202
        mock_dispatcher.dispatch.assert_awaited_once()

    def test_ping_returns_pong(self, client, mock_dispatcher):
        body = b'{"zen": "Keep it logically awesome."}'

        response = client.post("/lint", content=body, headers=webhook_headers("ping", body))

        assert response.status_code == 200
        assert response.json()["message"] == "pong"
        mock_dispatcher.dispatch.assert_not_awaited()

    def test_other_events_are_ignored(self, client, mock_dispatcher):
        body = b'{"ref": "refs/heads/main"}'

        response = client.post("/lint", content=body, headers=webhook_headers("push", body))

        assert response.status_code == 200
        assert response.json()["message"] == "Ignored push event"
        mock_dispatcher.dispatch.assert_not_awaited()

    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]"])
    def test_invalid_json_returns_400(self, client, mock_dispatcher, body):
        response = client.post("/lint", content=body, headers=webhook_headers(body=body))

        assert response.status_code == 400
        mock_dispatcher.dispatch.assert_not_awaited()
