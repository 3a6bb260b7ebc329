"""Turn one file's lint findings into positioned review comments."""

import posixpath
from collections.abc import Sequence

from src.lint_reviewer.diff_positions import build_position_map
from src.lint_reviewer.linter import Linter
from src.lint_reviewer.models import ProposedComment
from src.utils.config import DEFAULT_SOURCE_SUFFIXES
from src.utils.logging import get_logger

logger = get_logger(__name__)


def should_lint(path: str, linter: Linter, suffixes: Sequence[str] = DEFAULT_SOURCE_SUFFIXES) -> bool:
    """Whether a changed file is in scope for linting.

    Dotfiles are skipped regardless of suffix so the linter's own configuration
    (e.g. `.eslintrc.js`) is never flagged.
    """
    if not path.endswith(tuple(suffixes)):
        return False
    if posixpath.basename(path).startswith("."):
        return False
    return not linter.is_ignored(path)


async def correlate_findings(
    path: str,
    patch: str | None,
    content: str,
    linter: Linter,
    suffixes: Sequence[str] = DEFAULT_SOURCE_SUFFIXES,
) -> list[ProposedComment]:
    """Lint a file and keep only findings on lines the pull request added.

    Args:
        path: File path in the repository
        patch: The file's patch text from the pull request
        content: Full new-file content
        linter: Linter configured for this event
        suffixes: File suffixes that are linted

    Returns:
        One comment per surviving finding, in linter order

    Raises:
        MalformedHunkError: If the patch has an unparseable hunk header
        LinterError: If the linter fails on this file
    """
    if not should_lint(path, linter, suffixes):
        return []

    # Resolve positions before linting so a malformed patch never costs a linter run
    position_map = build_position_map(patch)
    if not position_map:
        return []

    findings = await linter.lint(path, content)

    comments = [
        ProposedComment(
            body=finding.comment_body(),
            path=path,
            position=position_map[finding.line],
        )
        for finding in findings
        if finding.line in position_map
    ]

    dropped = len(findings) - len(comments)
    if dropped:
        logger.debug("Dropped findings on untouched lines", path=path, dropped=dropped)
    return comments
