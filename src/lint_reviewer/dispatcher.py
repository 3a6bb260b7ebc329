"""Handle inbound pull request events end to end.

Per event: Received -> ActionFiltered -> ConfigResolved (or Skipped) -> StatusPending
-> Assembling -> Publishing -> Done (or Failed).

There is no retry and no checkpoint. A failure after the pending status is posted
leaves the commit status at "pending".
"""

from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from src.clients.github import GitHubClient
from src.lint_reviewer.assembler import ReviewAssembler
from src.lint_reviewer.exceptions import LintConfigError
from src.lint_reviewer.lint_config import resolve_lint_config
from src.lint_reviewer.linter import LinterFactory, build_eslint_linter_factory
from src.lint_reviewer.models import CommitState, PullRequestEvent
from src.utils.config import (
    get_eslint_binary,
    get_lint_dedup_key,
    get_lint_max_concurrent_files,
    get_lint_source_suffixes,
    get_lint_status_context,
    get_lint_timeout_seconds,
)
from src.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

HANDLED_ACTIONS = frozenset({"opened", "synchronize"})


class DispatchOutcome(StrEnum):
    IGNORED = "ignored"
    SKIPPED = "skipped"
    DONE = "done"
    FAILED = "failed"


class EventDispatcher:
    """Drives one review cycle per pull request event."""

    def __init__(
        self,
        client: GitHubClient,
        assembler: ReviewAssembler,
        linter_factory: LinterFactory,
    ):
        self.client = client
        self.assembler = assembler
        self.linter_factory = linter_factory

    def parse_event(self, payload: dict[str, Any]) -> PullRequestEvent | None:
        """Return the event if it is one we act on, None otherwise."""
        action = payload.get("action")
        if action not in HANDLED_ACTIONS:
            logger.debug("Ignoring pull request action", action=action)
            return None

        try:
            event = PullRequestEvent.model_validate(payload)
        except ValidationError as e:
            logger.error("Invalid pull request payload", error=str(e))
            return None

        if event.owner is not None and event.owner != self.client.owner:
            logger.warning(
                "Ignoring event for unconfigured owner",
                owner=event.owner,
                configured_owner=self.client.owner,
            )
            return None
        return event

    async def dispatch(self, payload: dict[str, Any]) -> DispatchOutcome:
        """Handle one webhook payload. Never raises."""
        event = self.parse_event(payload)
        if event is None:
            return DispatchOutcome.IGNORED

        with LogContext(repo=event.repo, pr_number=event.number, head_sha=event.head_sha):
            try:
                return await self._handle(event)
            except Exception as e:
                logger.exception("Lint review failed; commit status left pending", error=str(e))
                return DispatchOutcome.FAILED

    async def _handle(self, event: PullRequestEvent) -> DispatchOutcome:
        try:
            config = await resolve_lint_config(self.client, event.repo, event.branch)
        except LintConfigError as e:
            logger.error("Skipping event with unreadable lint config", error=str(e))
            return DispatchOutcome.SKIPPED

        if config is None:
            return DispatchOutcome.SKIPPED

        linter = self.linter_factory(config)

        await self.assembler.publish_status(
            event.repo, event.head_sha, CommitState.PENDING, "Linting changed lines"
        )

        files = await self.client.list_pr_files(event.repo, event.number)
        review = await self.assembler.assemble(
            repo=event.repo,
            pr_number=event.number,
            branch=event.branch,
            head_sha=event.head_sha,
            files=files,
            linter=linter,
        )

        if not review.comments:
            logger.info("No new comments to post")
            return DispatchOutcome.DONE

        await self.client.create_review(event.repo, event.number, review.to_payload())
        return DispatchOutcome.DONE


def build_dispatcher(client: GitHubClient) -> EventDispatcher:
    """Wire an EventDispatcher from environment configuration."""
    assembler = ReviewAssembler(
        client,
        status_context=get_lint_status_context(),
        max_concurrency=get_lint_max_concurrent_files(),
        suffixes=get_lint_source_suffixes(),
        dedup_key=get_lint_dedup_key(),
    )
    linter_factory = build_eslint_linter_factory(
        binary=get_eslint_binary(), timeout=get_lint_timeout_seconds()
    )
    return EventDispatcher(client, assembler, linter_factory)
