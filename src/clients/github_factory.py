"""Factory for creating the GitHub client from environment configuration."""

from src.clients.github import GitHubClient
from src.utils.config import (
    get_github_api_url,
    get_github_owner,
    get_github_timeout_seconds,
    get_github_token,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)


def get_github_client() -> GitHubClient:
    """Build a GitHubClient from GITHUB_TOKEN, GITHUB_OWNER and GITHUB_API_URL.

    Raises:
        ValueError: If the token or owner is not configured
    """
    owner = get_github_owner()
    base_url = get_github_api_url()
    logger.debug("Creating GitHub client", owner=owner, base_url=base_url)
    return GitHubClient(
        token=get_github_token(),
        owner=owner,
        base_url=base_url,
        timeout=get_github_timeout_seconds(),
    )
