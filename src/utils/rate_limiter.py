import asyncio
import functools

from src.utils.logging import get_logger

logger = get_logger(__name__)


class RateLimitedError(Exception):
    """Exception to indicate a function was rate limited."""

    def __init__(self, retry_after: float | None = None, message: str = "Rate limited"):
        self.retry_after = retry_after
        super().__init__(message)


def _handle_rate_limit_error(
    e: RateLimitedError, attempt: int, max_retries: int, base_delay: float, max_delay: float, func_name: str
) -> float:
    """Handle a rate limit error - calculate delay and log. Re-raises once retries run out."""
    if attempt >= max_retries - 1:
        logger.error(f"Max retries reached for {func_name}")
        raise e

    # Use server-provided retry_after or exponential backoff
    delay = e.retry_after if e.retry_after else base_delay * (2**attempt)
    delay_source = "server says" if e.retry_after else "calculated delay"

    if delay > max_delay:
        logger.error(f"Rate limited for {delay}s ({delay_source}), longer than {max_delay}s; giving up")
        raise e

    logger.warning(
        f"Rate limited, {delay_source} wait {delay} seconds before retry {attempt + 1}/{max_retries}",
        function=func_name,
    )
    return delay


def rate_limited(max_retries: int = 3, base_delay: float = 1.0, max_delay: float = 60.0):
    """
    Decorator adding exponential backoff retry for rate limiting to a coroutine function.
    The decorated function should raise RateLimitedError when rate limited.

    Args:
        max_retries: Maximum number of attempts
        base_delay: Base delay in seconds for exponential backoff
        max_delay: Longest single wait we are willing to sleep before giving up

    Usage:
        @rate_limited()
        async def api_call():
            response = await client.get(url)
            if response.status_code == 429:
                raise RateLimitedError(retry_after=parse_retry_after(response))
            return response
    """

    def decorator(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except RateLimitedError as e:
                    delay = _handle_rate_limit_error(
                        e, attempt, max_retries, base_delay, max_delay, func.__name__
                    )
                    await asyncio.sleep(delay)

            raise RuntimeError(f"Unexpected exit from retry loop in {func.__name__}")

        return async_wrapper

    return decorator
