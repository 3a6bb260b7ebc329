"""Suppress proposed comments that already exist on a pull request.

GitHub's own comment list is the source of truth, so redelivered events for the
same commit do not post the same comment twice.

By default a comment is identified by (position, body) only. Two files sharing a
diff position and message therefore count as duplicates of each other; pass a key
that includes "path" to compare file paths as well.
"""

from collections.abc import Sequence
from typing import Any

from src.clients.github import ExistingReviewComment, GitHubClient
from src.lint_reviewer.models import ProposedComment
from src.utils.config import DEFAULT_DEDUP_KEY
from src.utils.logging import get_logger

logger = get_logger(__name__)

DEDUP_KEY_FIELDS = frozenset({"path", "position", "body"})


def validate_dedup_key(key: Sequence[str]) -> tuple[str, ...]:
    fields = tuple(key)
    unknown = set(fields) - DEDUP_KEY_FIELDS
    if not fields or unknown:
        raise ValueError(
            f"Dedup key must be a non-empty subset of {sorted(DEDUP_KEY_FIELDS)}, got {list(fields)}"
        )
    return fields


def comment_key(
    comment: ProposedComment | ExistingReviewComment, key: Sequence[str]
) -> tuple[Any, ...]:
    return tuple(getattr(comment, name) for name in key)


def filter_duplicates(
    candidates: Sequence[ProposedComment],
    existing: Sequence[ExistingReviewComment],
    key: Sequence[str] = DEFAULT_DEDUP_KEY,
) -> list[ProposedComment]:
    """Return the candidates that don't match any existing comment, in order."""
    fields = validate_dedup_key(key)
    seen = {comment_key(comment, fields) for comment in existing}
    return [c for c in candidates if comment_key(c, fields) not in seen]


async def suppress_duplicates(
    client: GitHubClient,
    repo: str,
    pr_number: int,
    candidates: Sequence[ProposedComment],
    key: Sequence[str] = DEFAULT_DEDUP_KEY,
) -> list[ProposedComment]:
    """Fetch the pull request's review comments and drop candidates already posted."""
    if not candidates:
        return []

    existing = await client.list_review_comments(repo, pr_number)
    fresh = filter_duplicates(candidates, existing, key)

    if len(fresh) != len(candidates):
        logger.info(
            "Suppressed duplicate comments",
            repo=repo,
            pr_number=pr_number,
            suppressed=len(candidates) - len(fresh),
        )
    return fresh
