import os
from unittest.mock import patch

from fastapi.testclient import TestClient

from src.clients.github import GitHubClient
from src.lint_reviewer.dispatcher import EventDispatcher
from src.lint_reviewer.server.main import create_app


def test_lifespan_wires_client_and_dispatcher():
    env = {"GITHUB_TOKEN": "t0ken", "GITHUB_OWNER": "acme", "GITHUB_WEBHOOK_SECRET": "s3cret"}
    app = create_app()

    with patch.dict(os.environ, env), TestClient(app) as client:
        assert client.get("/health").json() == {"status": "healthy"}
        assert isinstance(app.state.github_client, GitHubClient)
        assert app.state.github_client.owner == "acme"
        assert isinstance(app.state.dispatcher, EventDispatcher)
        assert app.state.webhook_secret == "s3cret"
