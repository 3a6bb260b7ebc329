"""Tests for the structlog setup and per-event log context."""

from __future__ import annotations

import json
import logging
import os
from io import StringIO
from unittest.mock import patch

import structlog

from src.utils.logging import (
    LogContext,
    _get_log_renderer,
    _is_local_environment,
    configure_logging,
    get_logger,
    get_uvicorn_log_config,
)


class TestEnvironmentDetection:
    def test_is_local_environment(self):
        with patch.dict(os.environ, {"LINT_REVIEWER_ENVIRONMENT": "local"}):
            assert _is_local_environment() is True

        with patch.dict(os.environ, {"LINT_REVIEWER_ENVIRONMENT": "production"}):
            assert _is_local_environment() is False

    def test_renderer_follows_environment(self):
        with patch.dict(os.environ, {"LINT_REVIEWER_ENVIRONMENT": "local", "LOG_RENDERER": ""}):
            assert isinstance(_get_log_renderer(), structlog.dev.ConsoleRenderer)

        with patch.dict(os.environ, {"LINT_REVIEWER_ENVIRONMENT": "production", "LOG_RENDERER": ""}):
            assert isinstance(_get_log_renderer(), structlog.processors.JSONRenderer)

    def test_log_renderer_override(self):
        with patch.dict(os.environ, {"LINT_REVIEWER_ENVIRONMENT": "local", "LOG_RENDERER": "json"}):
            assert isinstance(_get_log_renderer(), structlog.processors.JSONRenderer)

    def test_uvicorn_config_uses_structlog_formatter(self):
        config = get_uvicorn_log_config()

        assert config["formatters"]["default"]["()"] is structlog.stdlib.ProcessorFormatter
        assert config["loggers"]["uvicorn.access"]["handlers"] == ["default"]


@patch("src.utils.logging._is_local_environment", return_value=False)
class TestLogOutput:
    def setup_method(self):
        structlog.contextvars.clear_contextvars()
        self.log_stream = StringIO()
        self.handler = logging.StreamHandler(self.log_stream)

    def teardown_method(self):
        structlog.contextvars.clear_contextvars()
        logging.getLogger().removeHandler(self.handler)

    def _capture_json_logs(self):
        """Configure JSON logging and point the root handler's formatter at our stream."""
        with patch.dict(os.environ, {"LOG_RENDERER": ""}):
            configure_logging()

        root_logger = logging.getLogger()
        self.handler.setFormatter(root_logger.handlers[0].formatter)
        root_logger.handlers.clear()
        root_logger.addHandler(self.handler)

    def _logged(self) -> list[dict]:
        output = self.log_stream.getvalue().strip()
        return [json.loads(line) for line in output.split("\n") if line.strip()]

    def test_context_appears_in_json_logs(self, _):
        self._capture_json_logs()

        with LogContext(repo="web", pr_number=7):
            get_logger(__name__).info("Assembling review", file_count=3)

        (log_data,) = self._logged()
        assert log_data["repo"] == "web"
        assert log_data["pr_number"] == 7
        assert log_data["file_count"] == 3
        assert "Assembling review" in str(log_data)

    def test_log_context_is_scoped(self, _):
        self._capture_json_logs()
        logger = get_logger(__name__)

        with LogContext(repo="web", head_sha="abc"):
            logger.info("Inside")
        logger.info("After")

        inside, after = self._logged()
        assert inside["head_sha"] == "abc"
        assert "head_sha" not in after

    def test_log_context_is_cleaned_up_on_exception(self, _):
        self._capture_json_logs()
        logger = get_logger(__name__)

        try:
            with LogContext(pr_number=7):
                raise ValueError("boom")
        except ValueError:
            pass
        logger.info("After")

        (after,) = self._logged()
        assert "pr_number" not in after

    def test_stdlib_loggers_route_through_structlog(self, _):
        self._capture_json_logs()

        with LogContext(repo="web"):
            logging.getLogger("some.library").warning("from stdlib")

        (log_data,) = self._logged()
        assert "from stdlib" in str(log_data)
        assert log_data["repo"] == "web"
