"""Lint reviewer FastAPI service."""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from src.clients.github_factory import get_github_client
from src.lint_reviewer.dispatcher import build_dispatcher
from src.lint_reviewer.server.routes import router
from src.utils.config import get_github_webhook_secret, get_port
from src.utils.logging import get_logger, get_uvicorn_log_config

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the GitHub client and dispatcher on startup and close the client on shutdown."""
    logger.info("🚀 Starting lint reviewer...")

    github_client = get_github_client()
    app.state.github_client = github_client
    app.state.dispatcher = build_dispatcher(github_client)
    app.state.webhook_secret = get_github_webhook_secret()

    if app.state.webhook_secret is None:
        logger.warning("⚠️ GITHUB_WEBHOOK_SECRET is not set. Webhook signatures will NOT be verified!")

    logger.info("✅ Lint reviewer startup complete", owner=github_client.owner)

    yield

    logger.info("🛑 Shutting down lint reviewer...")
    await github_client.aclose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Lint Reviewer",
        description="Lints the changed lines of pull requests and posts inline review comments",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()


def run(host: str = "0.0.0.0", port: int | None = None) -> None:
    uvicorn.run(
        "src.lint_reviewer.server.main:app",
        host=host,
        port=port or get_port(),
        log_config=get_uvicorn_log_config(),
    )


if __name__ == "__main__":
    run()
