"""Error handling utilities for isolating per-item failures."""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import TypedDict

import structlog

# Support both standard Logger and structlog BoundLogger
LoggerType = logging.Logger | structlog.BoundLogger


class ErrorCounter(TypedDict, total=False):
    """Counter dict for tracking success/failure counts."""

    successful: int
    failed: int


@contextmanager
def record_exception_and_ignore(
    logger: LoggerType, context: str, counter: ErrorCounter
) -> Generator[None]:
    """Context manager that records both successes and failures.

    On success: increments counter["successful"]
    On exception: logs a warning with the error, increments counter["failed"], continues execution

    Args:
        logger: Logger instance to use for failure logging
        context: Description of what operation failed (e.g. "Failed to lint src/app.js")
        counter: Dict to track success/failure counts (will be modified in-place)

    Example:
        counter = {}
        with record_exception_and_ignore(logger, f"Failed to lint {path}", counter):
            comments.extend(await lint_file(path))

        logger.info(f"Linted files: {counter.get('successful', 0)} ok, {counter.get('failed', 0)} failed")
    """
    try:
        yield
        counter["successful"] = counter.get("successful", 0) + 1
    except Exception as e:
        logger.warning(f"{context}: {type(e).__name__}: {e}")
        counter["failed"] = counter.get("failed", 0) + 1
