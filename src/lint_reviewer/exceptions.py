"""
Custom exceptions for the lint reviewer.
"""


class MalformedHunkError(ValueError):
    """A hunk header in a file's patch has no parseable `+N` new-file start line."""

    def __init__(self, header: str):
        self.header = header
        super().__init__(f"Malformed hunk header: {header!r}")


class LintConfigError(ValueError):
    """A lint configuration or ignore file could not be parsed."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Invalid lint config {filename}: {reason}")


class LinterError(RuntimeError):
    """The linter crashed, timed out, or produced output we could not read."""


class ReviewAssemblyError(RuntimeError):
    """Every lintable file in a pull request failed, so there is no review to publish."""

    def __init__(self, failed_files: int):
        self.failed_files = failed_files
        super().__init__(f"All {failed_files} lintable file(s) failed")
