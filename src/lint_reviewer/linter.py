"""Linters the reviewer can run against file contents.

A linter is built per event from that event's LintConfig and passed explicitly to
the review pipeline, so configurations never leak between repositories.
"""

import asyncio
import json
import os
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from src.lint_reviewer.exceptions import LinterError
from src.lint_reviewer.lint_config import LintConfig
from src.utils.logging import get_logger
from src.utils.timeout import OperationTimeoutError, with_timeout

logger = get_logger(__name__)

SEVERITY_WARNING = 1
SEVERITY_ERROR = 2

# eslint exits 0 when clean and 1 when it found problems; anything else is a crash
_ESLINT_OK_EXIT_CODES = (0, 1)


@dataclass(frozen=True)
class LintFinding:
    """One diagnostic, keyed by 1-based line number in the linted content."""

    line: int
    message: str
    rule_id: str | None = None
    severity: int = SEVERITY_ERROR

    def comment_body(self) -> str:
        if self.rule_id:
            return f"{self.message} ({self.rule_id})"
        return self.message


class Linter(Protocol):
    """Interface for a configured linter."""

    def is_ignored(self, path: str) -> bool:
        """Whether the repository's ignore patterns exclude `path`."""
        ...

    async def lint(self, path: str, content: str) -> list[LintFinding]:
        """Lint file content and return findings in the order the linter reports them."""
        ...


LinterFactory = Callable[[LintConfig], Linter]


def parse_eslint_report(output: str) -> list[LintFinding]:
    """Parse `eslint --format json` output for a single stdin file.

    Raises:
        LinterError: If the output is not an eslint JSON report
    """
    try:
        report = json.loads(output)
    except json.JSONDecodeError as e:
        raise LinterError(f"Could not decode eslint output: {e}") from e

    if not isinstance(report, list):
        raise LinterError("eslint report is not a list of results")

    findings: list[LintFinding] = []
    for result in report:
        messages: list[dict[str, Any]] = result.get("messages", []) if isinstance(result, dict) else []
        for message in messages:
            line = message.get("line")
            # Fatal parse errors may carry no line; there is nothing to position them on
            if not isinstance(line, int):
                continue
            findings.append(
                LintFinding(
                    line=line,
                    message=str(message.get("message", "")).strip(),
                    rule_id=message.get("ruleId"),
                    severity=int(message.get("severity", SEVERITY_ERROR)),
                )
            )
    return findings


class ESLintLinter:
    """Runs the eslint CLI on file content passed over stdin."""

    def __init__(self, config: LintConfig, binary: str = "eslint", timeout: float = 30.0):
        self.config = config
        self.binary = binary
        self.timeout = timeout

    def is_ignored(self, path: str) -> bool:
        return self.config.ignore_patterns.is_ignored(path)

    def _build_command(self, config_path: Path, path: str) -> list[str]:
        return [
            self.binary,
            "--no-eslintrc",
            "--config",
            str(config_path),
            "--stdin",
            "--stdin-filename",
            path,
            "--format",
            "json",
        ]

    async def lint(self, path: str, content: str) -> list[LintFinding]:
        options = {k: v for k, v in self.config.options.items() if k != "ignorePatterns"}

        with tempfile.TemporaryDirectory(prefix="lint-reviewer-") as workdir:
            config_path = Path(workdir) / "eslintrc.json"
            config_path.write_text(json.dumps(options), encoding="utf-8")

            try:
                process = await asyncio.create_subprocess_exec(
                    *self._build_command(config_path, path),
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=workdir,
                    env={**os.environ, "ESLINT_USE_FLAT_CONFIG": "false"},
                )
            except OSError as e:
                raise LinterError(f"Could not start {self.binary}: {e}") from e

            try:
                stdout, stderr = await with_timeout(
                    process.communicate(content.encode("utf-8")),
                    self.timeout,
                    f"eslint {path}",
                )
            except OperationTimeoutError as e:
                process.kill()
                await process.wait()
                raise LinterError(str(e)) from e

        if process.returncode not in _ESLINT_OK_EXIT_CODES:
            error_msg = stderr.decode(errors="replace").strip() if stderr else "Unknown error"
            raise LinterError(f"eslint exited with {process.returncode} for {path}: {error_msg}")

        findings = parse_eslint_report(stdout.decode("utf-8", errors="replace"))
        logger.debug("Linted file", path=path, finding_count=len(findings))
        return findings


def build_eslint_linter_factory(binary: str = "eslint", timeout: float = 30.0) -> LinterFactory:
    """Return a factory that builds a fresh ESLintLinter for each event's config."""

    def factory(config: LintConfig) -> Linter:
        return ESLintLinter(config, binary=binary, timeout=timeout)

    return factory
