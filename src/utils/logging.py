"""Lint reviewer logging config

## Setup

Logging is automatically configured when this module is imported. It uses structlog for structured logging. Logs are
pretty-printed in local env (LINT_REVIEWER_ENVIRONMENT='local') and are JSON-formatted in other envs.

Example usage:

```
from src.utils.logging import get_logger

logger = get_logger(__name__)
logger.info("Review posted", repo="web-app", pr_number=12)
```

## Log context

Wrap a unit of work in LogContext to include its identifiers in every log message emitted inside it, across awaits:

```
from src.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

with LogContext(repo="web-app", pr_number=12):
    logger.info("Assembling review")  # Includes repo and pr_number
```

The values are removed again when the block exits, even on error.

### Standard logging integration

We configure Python's standard `logging` module to route through structlog. This means that library code using
`logging.getLogger()` (httpx, uvicorn) will automatically include context and be formatted correctly for the env.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import structlog
import structlog.contextvars

from src.utils.config import get_lint_reviewer_environment


def _is_local_environment() -> bool:
    """Check if we're running in a local development environment."""
    return get_lint_reviewer_environment() == "local"


def _get_log_renderer() -> structlog.types.Processor:
    """Get the appropriate console renderer based on environment.

    Can be overridden with LOG_RENDERER environment variable:
    - 'console': Force ConsoleRenderer (human-readable with colors)
    - 'json': Force JSONRenderer (structured JSON output)

    Returns:
        ConsoleRenderer for local dev, JSONRenderer otherwise
    """
    log_renderer = os.getenv("LOG_RENDERER", "").lower()
    if log_renderer == "console":
        use_console = True
    elif log_renderer == "json":
        use_console = False
    else:
        use_console = _is_local_environment()

    if use_console:
        return structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=0,
            force_colors=False,
            repr_native_str=False,
            exception_formatter=structlog.dev.plain_traceback,
            sort_keys=True,
            event_key="message",
        )
    else:
        return structlog.processors.JSONRenderer()


def configure_logging() -> None:
    """Configure structlog with environment-appropriate settings using built-in contextvars.

    Local development: Human-readable console output with colors
    Deployed: JSON format for log aggregation
    """
    common_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.contextvars.merge_contextvars,
        structlog.processors.EventRenamer("message"),
        structlog.stdlib.filter_by_level,  # Must come after add_log_level
    ]

    structlog.configure(
        processors=common_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # filter_by_level expects a structlog logger, so stdlib records skip it
    foreign_processors = [p for p in common_processors if p != structlog.stdlib.filter_by_level]
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_get_log_renderer(),
            foreign_pre_chain=foreign_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(stream_handler)

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    numeric_log_level = getattr(logging, log_level, logging.INFO)
    root_logger.setLevel(numeric_log_level)

    if numeric_log_level <= logging.DEBUG:
        for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
            uvicorn_logger = logging.getLogger(logger_name)
            if uvicorn_logger.level > numeric_log_level:
                uvicorn_logger.setLevel(numeric_log_level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(numeric_log_level, logging.WARNING))


configure_logging()


# Binds values for the duration of a with block
LogContext = structlog.contextvars.bound_contextvars


def get_logger(name: str, **kwargs: Any) -> structlog.BoundLogger:
    """Get a logger instance. Wrapper around structlog.get_logger for convenience.

    Args:
        name: Logger name (usually __name__ from the calling module)
    """
    return structlog.get_logger(name, **kwargs)


def get_uvicorn_log_config() -> dict[str, Any]:
    """Get Uvicorn logging configuration that matches our structlog format.

    Returns:
        Dictionary containing Uvicorn logging configuration
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processor": _get_log_renderer(),
                "foreign_pre_chain": [
                    structlog.stdlib.add_log_level,
                    structlog.stdlib.add_logger_name,
                    structlog.processors.TimeStamper(fmt="iso"),
                    structlog.processors.EventRenamer("message"),
                ],
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            },
        },
    }
