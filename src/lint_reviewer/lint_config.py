"""Lint configuration discovery for a repository branch.

The configuration is read from the repository root at the pull request's head
branch. Script configs (`.eslintrc.js`, `.eslintrc.cjs`) are never fetched or
evaluated: they would run repository-controlled code inside this service. Only
structured configs are used, by fixed precedence, and at most one is selected.
"""

import fnmatch
import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import yaml

from src.clients.github import GitHubClient
from src.lint_reviewer.exceptions import LintConfigError
from src.utils.logging import get_logger

logger = get_logger(__name__)

SCRIPT_CONFIG_FILENAMES = (".eslintrc.js", ".eslintrc.cjs")
STRUCTURED_CONFIG_FILENAMES = (".eslintrc.json", ".eslintrc.yaml", ".eslintrc.yml")
LEGACY_CONFIG_FILENAME = ".eslintrc"
CONFIG_FILENAMES = (*STRUCTURED_CONFIG_FILENAMES, LEGACY_CONFIG_FILENAME)
IGNORE_FILENAME = ".eslintignore"


def _match_segments(pattern: Sequence[str], parts: Sequence[str]) -> bool:
    """Match path segments one by one. `*` stays inside a segment, `**` spans any number."""
    if not pattern:
        return not parts
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        return any(_match_segments(rest, parts[i:]) for i in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0], head) and _match_segments(rest, parts[1:])


@dataclass(frozen=True)
class IgnoreRule:
    pattern: str
    negated: bool = False
    directory_only: bool = False
    anchored: bool = False

    @classmethod
    def parse(cls, line: str) -> "IgnoreRule | None":
        line = line.strip()
        if not line or line.startswith("#"):
            return None

        negated = line.startswith("!")
        if negated:
            line = line[1:]
        directory_only = line.endswith("/")
        line = line.rstrip("/")
        anchored = "/" in line
        line = line.lstrip("/")
        if not line:
            return None
        return cls(pattern=line, negated=negated, directory_only=directory_only, anchored=anchored)

    def matches(self, path: str) -> bool:
        parts = path.strip("/").split("/")
        # Parent directories first, then the file itself
        targets = [parts[:i] for i in range(1, len(parts))]
        if not self.directory_only:
            targets.append(parts)

        if not self.anchored:
            return any(fnmatch.fnmatchcase(target[-1], self.pattern) for target in targets)

        pattern_parts = self.pattern.split("/")
        return any(_match_segments(pattern_parts, target) for target in targets)


@dataclass(frozen=True)
class IgnorePatterns:
    """`.eslintignore`-style patterns. The last matching rule wins, `!` re-includes."""

    rules: tuple[IgnoreRule, ...] = ()

    @classmethod
    def parse(cls, lines: Iterable[str]) -> "IgnorePatterns":
        rules = (IgnoreRule.parse(line) for line in lines)
        return cls(rules=tuple(rule for rule in rules if rule is not None))

    def __add__(self, other: "IgnorePatterns") -> "IgnorePatterns":
        return IgnorePatterns(rules=self.rules + other.rules)

    def is_ignored(self, path: str) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(path):
                ignored = not rule.negated
        return ignored


@dataclass(frozen=True)
class LintConfig:
    """A repository's lint configuration, immutable for one review cycle."""

    filename: str
    options: Mapping[str, Any]
    ignore_patterns: IgnorePatterns = field(default_factory=IgnorePatterns)


def select_config_filename(names: Iterable[str]) -> str | None:
    """Pick the configuration file to use from a directory listing."""
    available = set(names)

    skipped_scripts = [name for name in SCRIPT_CONFIG_FILENAMES if name in available]
    if skipped_scripts:
        logger.warning(
            "Ignoring script lint config; only JSON/YAML configs are supported",
            filenames=skipped_scripts,
        )

    for name in CONFIG_FILENAMES:
        if name in available:
            return name
    return None


def _load_structured(filename: str, text: str) -> Any:
    if filename.endswith(".json"):
        return json.loads(text)
    if filename.endswith((".yaml", ".yml")):
        return yaml.safe_load(text)

    # Legacy .eslintrc may hold either JSON or YAML
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return yaml.safe_load(text)


def parse_lint_config(filename: str, text: str) -> dict[str, Any]:
    """Parse a structured lint config.

    Raises:
        LintConfigError: If the text is not valid JSON/YAML or is not a mapping
    """
    try:
        data = _load_structured(filename, text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LintConfigError(filename, str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise LintConfigError(filename, f"expected a mapping, got {type(data).__name__}")
    return data


def build_lint_config(filename: str, text: str, ignore_text: str | None = None) -> LintConfig:
    """Build a LintConfig from raw config text and an optional ignore file."""
    options = parse_lint_config(filename, text)

    config_patterns = options.get("ignorePatterns") or []
    if isinstance(config_patterns, str):
        config_patterns = [config_patterns]
    if not isinstance(config_patterns, list):
        raise LintConfigError(filename, "ignorePatterns must be a string or a list")

    ignore_patterns = IgnorePatterns.parse(str(p) for p in config_patterns)
    if ignore_text:
        ignore_patterns = ignore_patterns + IgnorePatterns.parse(ignore_text.splitlines())

    return LintConfig(filename=filename, options=options, ignore_patterns=ignore_patterns)


async def resolve_lint_config(client: GitHubClient, repo: str, ref: str) -> LintConfig | None:
    """Find and load the lint configuration at the root of `repo` on `ref`.

    Returns:
        The configuration, or None when the repository has no recognized config file

    Raises:
        LintConfigError: If the selected config file cannot be parsed
    """
    names = await client.list_directory(repo, ref)
    filename = select_config_filename(names)
    if filename is None:
        logger.debug("No lint config found", repo=repo, ref=ref)
        return None

    text = await client.get_raw_file_content(repo, filename, ref)
    ignore_text = None
    if IGNORE_FILENAME in names:
        ignore_text = await client.get_raw_file_content(repo, IGNORE_FILENAME, ref)

    config = build_lint_config(filename, text, ignore_text)
    logger.info(
        "Resolved lint config",
        repo=repo,
        ref=ref,
        filename=filename,
        ignore_rules=len(config.ignore_patterns.rules),
    )
    return config
