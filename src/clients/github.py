"""GitHub REST client used by the lint reviewer.

Every call is scoped to a single repository owner and authenticated with a bearer
token, both supplied at construction time.
"""

import time
from typing import Any
from urllib.parse import parse_qs, quote, urlparse

import httpx
from pydantic import BaseModel, ConfigDict

from src.utils.logging import get_logger
from src.utils.rate_limiter import RateLimitedError, rate_limited

logger = get_logger(__name__)

GITHUB_JSON_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_RAW_MEDIA_TYPE = "application/vnd.github.raw"
GITHUB_API_VERSION = "2022-11-28"


class GitHubAPIError(Exception):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ChangedFile(BaseModel):
    """One entry of `GET /pulls/{n}/files`."""

    model_config = ConfigDict(extra="ignore")

    filename: str
    status: str = "modified"
    # Absent for binary files and very large diffs
    patch: str | None = None
    contents_url: str = ""

    @property
    def commit_ref(self) -> str | None:
        """The commit id encoded in `contents_url` as its `ref` query parameter."""
        refs = parse_qs(urlparse(self.contents_url).query).get("ref")
        return refs[0] if refs else None


class ExistingReviewComment(BaseModel):
    """Review comment already posted on a pull request."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    path: str = ""
    # null once the comment is outdated by a later push
    position: int | None = None
    body: str = ""


class GitHubClient:
    """A client for the subset of the GitHub REST API the lint reviewer needs."""

    per_page = 100

    def __init__(
        self,
        token: str,
        owner: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the GitHub client.

        Args:
            token: Bearer credential attached to every request
            owner: Repository owner (user or organization) all calls are scoped to
            base_url: REST API root, for GitHub Enterprise installs
            timeout: Per-request timeout in seconds
            http_client: Pre-built client, mostly for tests
        """
        if not token:
            raise ValueError("A GitHub token is required")
        if not owner:
            raise ValueError("A repository owner is required")

        self.owner = owner
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": GITHUB_JSON_MEDIA_TYPE,
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
                "User-Agent": "lint-reviewer",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _repo_path(self, repo: str) -> str:
        return f"/repos/{self.owner}/{repo}"

    def _calculate_retry_after(self, headers: httpx.Headers) -> int:
        """Calculate retry_after seconds from GitHub rate limit headers (minimum 1 second)."""
        retry_after = headers.get("retry-after")
        if retry_after:
            try:
                return max(1, int(retry_after))
            except ValueError:
                pass

        # x-ratelimit-reset is an epoch timestamp
        reset_time = headers.get("x-ratelimit-reset")
        if reset_time:
            try:
                return max(1, int(reset_time) - int(time.time()))
            except ValueError:
                pass

        return 60

    def _is_rate_limited(self, response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        return response.status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0"

    def _error_message(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return response.text[:200]

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        accept: str | None = None,
    ) -> httpx.Response:
        headers = {"Accept": accept} if accept else None
        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            raise GitHubAPIError(f"{method} {url} timed out") from e
        except httpx.RequestError as e:
            raise GitHubAPIError(f"{method} {url} failed: {e}") from e

        if self._is_rate_limited(response):
            raise RateLimitedError(
                retry_after=self._calculate_retry_after(response.headers),
                message=f"GitHub rate limit hit for {method} {url}",
            )

        if response.is_error:
            raise GitHubAPIError(
                f"{method} {url} returned {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
            )

        return response

    async def _get_paginated(self, url: str) -> list[dict[str, Any]]:
        """Follow `Link: rel="next"` headers and return every item across pages."""
        items: list[dict[str, Any]] = []
        next_url: str | None = url
        params: dict[str, Any] | None = {"per_page": self.per_page}

        while next_url:
            response = await self._request("GET", next_url, params=params)
            page = response.json()
            if not isinstance(page, list):
                raise GitHubAPIError(f"Expected a list from {next_url}, got {type(page).__name__}")
            items.extend(item for item in page if isinstance(item, dict))

            next_url = response.links.get("next", {}).get("url")
            # The next link already carries per_page and page
            params = None

        return items

    @rate_limited()
    async def get_pull_request(self, repo: str, pr_number: int) -> dict[str, Any]:
        response = await self._request("GET", f"{self._repo_path(repo)}/pulls/{pr_number}")
        return response.json()

    @rate_limited()
    async def list_pr_files(self, repo: str, pr_number: int) -> list[ChangedFile]:
        """List the files changed by a pull request, in the order GitHub reports them."""
        items = await self._get_paginated(f"{self._repo_path(repo)}/pulls/{pr_number}/files")
        return [ChangedFile.model_validate(item) for item in items]

    @rate_limited()
    async def list_review_comments(self, repo: str, pr_number: int) -> list[ExistingReviewComment]:
        items = await self._get_paginated(f"{self._repo_path(repo)}/pulls/{pr_number}/comments")
        return [ExistingReviewComment.model_validate(item) for item in items]

    @rate_limited()
    async def get_raw_file_content(self, repo: str, path: str, ref: str) -> str:
        """Fetch a file's raw text at a branch, tag or commit."""
        response = await self._request(
            "GET",
            f"{self._repo_path(repo)}/contents/{quote(path)}",
            params={"ref": ref},
            accept=GITHUB_RAW_MEDIA_TYPE,
        )
        return response.text

    @rate_limited()
    async def list_directory(self, repo: str, ref: str, path: str = "") -> list[str]:
        """Return the entry names of a repository directory at `ref`."""
        url = f"{self._repo_path(repo)}/contents"
        if path:
            url = f"{url}/{quote(path)}"
        response = await self._request("GET", url, params={"ref": ref})
        entries = response.json()
        if not isinstance(entries, list):
            raise GitHubAPIError(f"{path or '/'} in {repo} is not a directory")
        return [entry["name"] for entry in entries if isinstance(entry, dict) and "name" in entry]

    async def create_review(self, repo: str, pr_number: int, payload: dict[str, Any]) -> dict[str, Any]:
        """Post a review with all of its inline comments in one call. Not retried."""
        response = await self._request(
            "POST", f"{self._repo_path(repo)}/pulls/{pr_number}/reviews", json=payload
        )
        logger.info(
            "Posted review",
            repo=repo,
            pr_number=pr_number,
            comment_count=len(payload.get("comments", [])),
        )
        return response.json()

    async def create_commit_status(
        self, repo: str, sha: str, state: str, description: str, context: str
    ) -> dict[str, Any]:
        """Set a commit status. Not retried."""
        response = await self._request(
            "POST",
            f"{self._repo_path(repo)}/statuses/{sha}",
            json={"state": state, "description": description, "context": context},
        )
        logger.info("Set commit status", repo=repo, sha=sha, state=state)
        return response.json()
