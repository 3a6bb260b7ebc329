"""Configuration utility for the lint reviewer.

This module provides centralized configuration management with:
- Environment variables as the only source
- Type-safe access to configuration values
"""

import os
from typing import Any

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_SOURCE_SUFFIXES = (".js", ".jsx")
DEFAULT_DEDUP_KEY = ("position", "body")


def parse_config_value(value: str) -> str | bool | int | float:
    if value.lower() == "true":
        return True
    elif value.lower() == "false":
        return False
    else:
        # Try to parse as a number
        try:
            return int(value)
        except ValueError:
            try:
                return float(value)
            except ValueError:
                # Return as string
                return value


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a configuration value from environment variables.

    Args:
        key: Configuration key name (e.g., "GITHUB_TOKEN")
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    env_value = os.environ.get(key)
    if env_value is not None:
        return parse_config_value(env_value)

    return default


def get_config_value_str(key: str) -> str | None:
    """
    Get a configuration value from environment variables. But sometimes you just want a string.
    """
    return os.environ.get(key)


def require_config_value(key: str) -> str:
    value = os.environ.get(key)
    if value is None:
        raise ValueError(f"Environment variable {key} is required")
    return value


def _get_csv_config(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = get_config_value_str(key)
    if not raw:
        return default
    items = tuple(item.strip() for item in raw.split(",") if item.strip())
    return items or default


def get_lint_reviewer_environment() -> str:
    """Get the deployment environment from env var."""
    return get_config_value_str("LINT_REVIEWER_ENVIRONMENT") or "local"


def get_github_token() -> str:
    """Get the GitHub bearer credential.

    Raises:
        ValueError: If GITHUB_TOKEN is not configured
    """
    return require_config_value("GITHUB_TOKEN")


def get_github_owner() -> str:
    """Get the repository owner that every handled event must belong to.

    Raises:
        ValueError: If GITHUB_OWNER is not configured
    """
    return require_config_value("GITHUB_OWNER")


def get_github_api_url() -> str:
    return (get_config_value_str("GITHUB_API_URL") or DEFAULT_GITHUB_API_URL).rstrip("/")


def get_github_timeout_seconds() -> float:
    return float(get_config_value("GITHUB_TIMEOUT_SECONDS", 30))


def get_github_webhook_secret() -> str | None:
    """Get the webhook signing secret. Unset disables signature verification."""
    return get_config_value_str("GITHUB_WEBHOOK_SECRET") or None


def get_port() -> int:
    return int(get_config_value("PORT", 5000))


def get_eslint_binary() -> str:
    return get_config_value_str("ESLINT_BINARY") or "eslint"


def get_lint_timeout_seconds() -> float:
    return float(get_config_value("LINT_TIMEOUT_SECONDS", 30))


def get_lint_max_concurrent_files() -> int:
    return max(1, int(get_config_value("LINT_MAX_CONCURRENT_FILES", 8)))


def get_lint_source_suffixes() -> tuple[str, ...]:
    """Get the file suffixes that are linted, e.g. LINT_SOURCE_SUFFIXES=".js,.jsx,.mjs"."""
    return _get_csv_config("LINT_SOURCE_SUFFIXES", DEFAULT_SOURCE_SUFFIXES)


def get_lint_status_context() -> str:
    return get_config_value_str("LINT_STATUS_CONTEXT") or "lint-reviewer"


def get_lint_dedup_key() -> tuple[str, ...]:
    """Get the comment fields compared when suppressing duplicates.

    Defaults to position and body. Set LINT_DEDUP_KEY="path,position,body" to also
    compare file paths.
    """
    return _get_csv_config("LINT_DEDUP_KEY", DEFAULT_DEDUP_KEY)
