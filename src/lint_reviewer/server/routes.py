"""Route definitions for the lint reviewer webhook server."""

import json

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request, Response
from pydantic import BaseModel

from src.lint_reviewer.dispatcher import EventDispatcher
from src.lint_reviewer.server.verification import verify_github_webhook
from src.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class WebhookResponse(BaseModel):
    """Webhook response model."""

    success: bool
    message: str
    delivery_id: str | None = None


@router.get("/health")
async def health_check():
    return {"status": "healthy"}


@router.post("/lint", response_model=WebhookResponse)
async def lint_webhook(request: Request, response: Response, background_tasks: BackgroundTasks):
    """Receive a GitHub webhook and schedule a lint review for pull request events."""
    body = await request.body()
    headers = dict(request.headers)
    event_type = headers.get("x-github-event")
    delivery_id = headers.get("x-github-delivery")

    if not event_type:
        raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

    try:
        verify_github_webhook(headers, body, request.app.state.webhook_secret)
    except ValueError as e:
        logger.warning("Rejected webhook", delivery_id=delivery_id, error=str(e))
        raise HTTPException(status_code=401, detail=str(e))

    if event_type == "ping":
        return WebhookResponse(success=True, message="pong", delivery_id=delivery_id)

    if event_type != "pull_request":
        logger.debug("Ignoring webhook event", event_type=event_type, delivery_id=delivery_id)
        return WebhookResponse(
            success=True, message=f"Ignored {event_type} event", delivery_id=delivery_id
        )

    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    dispatcher: EventDispatcher = request.app.state.dispatcher
    background_tasks.add_task(dispatcher.dispatch, payload)

    logger.info(
        "Scheduled lint review",
        delivery_id=delivery_id,
        action=payload.get("action"),
        pr_number=payload.get("number"),
    )
    response.status_code = 202
    return WebhookResponse(success=True, message="Accepted", delivery_id=delivery_id)
