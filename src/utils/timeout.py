"""
Timeout utilities for outbound I/O (GitHub calls, linter subprocesses).
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from src.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class OperationTimeoutError(Exception):
    """Timeout exception with context."""

    def __init__(self, operation: str, timeout: float, details: str = ""):
        self.operation = operation
        self.timeout = timeout
        self.details = details
        super().__init__(
            f"{operation} timed out after {timeout}s{f': {details}' if details else ''}"
        )


async def with_timeout(coro: Awaitable[T], timeout: float, operation_name: str) -> T:
    """
    Await an operation with a timeout.

    Args:
        coro: Awaitable to run
        timeout: Timeout in seconds
        operation_name: Description of the operation for error messages

    Returns:
        Result of the operation

    Raises:
        OperationTimeoutError: If the operation times out
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError:
        logger.error(f"Operation '{operation_name}' timed out after {timeout}s")
        raise OperationTimeoutError(operation_name, timeout)
