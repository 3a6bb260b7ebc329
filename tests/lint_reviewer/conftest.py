from collections.abc import Iterable
from unittest.mock import AsyncMock, Mock

import pytest

from src.clients.github import ChangedFile, GitHubClient
from src.lint_reviewer.linter import LintFinding

PATCH_TWO_ADDED = "@@ -1,3 +1,4 @@\n context\n+added1\n context\n+added2\n"


class FakeLinter:
    """In-memory stand-in for a configured linter."""

    def __init__(
        self,
        findings: dict[str, list[LintFinding]] | None = None,
        ignored: Iterable[str] = (),
        errors: dict[str, Exception] | None = None,
    ):
        self.findings = findings or {}
        self.ignored = set(ignored)
        self.errors = errors or {}
        self.calls: list[tuple[str, str]] = []

    def is_ignored(self, path: str) -> bool:
        return path in self.ignored

    async def lint(self, path: str, content: str) -> list[LintFinding]:
        self.calls.append((path, content))
        if path in self.errors:
            raise self.errors[path]
        return list(self.findings.get(path, []))


def make_changed_file(filename: str, patch: str | None = PATCH_TWO_ADDED, sha: str = "abc123") -> ChangedFile:
    return ChangedFile(
        filename=filename,
        patch=patch,
        contents_url=f"https://api.github.com/repos/acme/web/contents/{filename}?ref={sha}",
    )


@pytest.fixture
def github_client():
    """GitHubClient double with every call mocked and sensible empty defaults."""
    client = Mock(spec=GitHubClient)
    client.owner = "acme"
    client.list_pr_files = AsyncMock(return_value=[])
    client.list_review_comments = AsyncMock(return_value=[])
    client.get_raw_file_content = AsyncMock(return_value="")
    client.list_directory = AsyncMock(return_value=[])
    client.create_review = AsyncMock(return_value={"id": 1})
    client.create_commit_status = AsyncMock(return_value={})
    client.get_pull_request = AsyncMock(return_value={})
    return client
