"""Build one pull request's lint review across all of its changed files.

Files are fetched and linted concurrently. A file that fails (fetch error,
malformed patch, linter crash) contributes no comments and the rest of the review
carries on; only when every lintable file fails is the whole review abandoned.
"""

import asyncio
from collections.abc import Sequence

from src.clients.github import ChangedFile, GitHubClient
from src.lint_reviewer.correlator import correlate_findings, should_lint
from src.lint_reviewer.dedup import suppress_duplicates, validate_dedup_key
from src.lint_reviewer.diff_positions import build_position_map
from src.lint_reviewer.exceptions import ReviewAssemblyError
from src.lint_reviewer.linter import Linter
from src.lint_reviewer.models import CommitState, ProposedComment, Review
from src.utils.config import DEFAULT_DEDUP_KEY, DEFAULT_SOURCE_SUFFIXES
from src.utils.error_handling import ErrorCounter, record_exception_and_ignore
from src.utils.logging import get_logger

logger = get_logger(__name__)

REMOVED_FILE_STATUS = "removed"


def commit_id_for(files: Sequence[ChangedFile], fallback: str) -> str:
    """All files of one event share a commit, so the first file's contents_url names it."""
    if files and files[0].commit_ref:
        return files[0].commit_ref
    return fallback


def status_for(comments: Sequence[ProposedComment]) -> tuple[CommitState, str]:
    if not comments:
        return CommitState.SUCCESS, "No lint problems on changed lines"
    return CommitState.FAILURE, f"{len(comments)} lint problem(s) on changed lines"


class ReviewAssembler:
    """Fans out fetch-and-lint per changed file and merges the results into a Review."""

    def __init__(
        self,
        client: GitHubClient,
        status_context: str = "lint-reviewer",
        max_concurrency: int = 8,
        suffixes: Sequence[str] = DEFAULT_SOURCE_SUFFIXES,
        dedup_key: Sequence[str] = DEFAULT_DEDUP_KEY,
    ):
        self.client = client
        self.status_context = status_context
        self.max_concurrency = max(1, max_concurrency)
        self.suffixes = tuple(suffixes)
        self.dedup_key = validate_dedup_key(dedup_key)

    async def _comments_for_file(
        self,
        repo: str,
        branch: str,
        changed_file: ChangedFile,
        linter: Linter,
        semaphore: asyncio.Semaphore,
        counter: ErrorCounter,
    ) -> list[ProposedComment]:
        comments: list[ProposedComment] = []
        async with semaphore:
            with record_exception_and_ignore(
                logger, f"Failed to lint {changed_file.filename}", counter
            ):
                # Deletion-only hunks add no lines, so there is nothing to fetch or lint
                if not build_position_map(changed_file.patch):
                    return comments
                content = await self.client.get_raw_file_content(
                    repo, changed_file.filename, branch
                )
                comments = await correlate_findings(
                    changed_file.filename, changed_file.patch, content, linter, self.suffixes
                )
        return comments

    async def collect_comments(
        self, repo: str, branch: str, files: Sequence[ChangedFile], linter: Linter
    ) -> list[ProposedComment]:
        """Lint every eligible file concurrently and merge comments in file order.

        Raises:
            ReviewAssemblyError: If there were lintable files and all of them failed
        """
        # Removed files no longer exist on the head branch
        eligible = [
            f
            for f in files
            if f.patch
            and f.status != REMOVED_FILE_STATUS
            and should_lint(f.filename, linter, self.suffixes)
        ]
        if not eligible:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)
        counter: ErrorCounter = {}
        per_file = await asyncio.gather(
            *[
                self._comments_for_file(repo, branch, f, linter, semaphore, counter)
                for f in eligible
            ]
        )

        failed = counter.get("failed", 0)
        logger.info(
            "Linted changed files",
            repo=repo,
            eligible=len(eligible),
            successful=counter.get("successful", 0),
            failed=failed,
        )
        if failed == len(eligible):
            raise ReviewAssemblyError(failed)

        return [comment for comments in per_file for comment in comments]

    async def publish_status(
        self, repo: str, sha: str, state: CommitState, description: str
    ) -> None:
        await self.client.create_commit_status(
            repo, sha, state.value, description, self.status_context
        )

    async def assemble(
        self,
        repo: str,
        pr_number: int,
        branch: str,
        head_sha: str,
        files: Sequence[ChangedFile],
        linter: Linter,
    ) -> Review:
        """Produce the review for one pull request event.

        The aggregate status is decided from the merged comments before duplicate
        suppression and published straight away.
        """
        commit_id = commit_id_for(files, head_sha)

        comments = await self.collect_comments(repo, branch, files, linter)

        state, description = status_for(comments)
        await self.publish_status(repo, head_sha, state, description)

        comments = await suppress_duplicates(
            self.client, repo, pr_number, comments, self.dedup_key
        )

        return Review(commit_id=commit_id, comments=tuple(comments))
