"""Map new-file line numbers to GitHub review-comment positions.

GitHub's pull request review API places inline comments by `position`: the
1-indexed offset of a line within a file's `patch` text (the `patch` field of
`GET /pulls/{n}/files`), counted from the line after the first `@@` header.

Only added lines are mapped, since those are the only lines the author touched.
"""

import re

from src.lint_reviewer.exceptions import MalformedHunkError

_HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(?P<new_start>\d+)(?:,\d+)? @@")


def parse_new_start(header: str) -> int:
    """Return the new-file start line `c` of a `@@ -a,b +c,d @@` header."""
    match = _HUNK_HEADER_RE.match(header)
    if not match:
        raise MalformedHunkError(header)
    return int(match.group("new_start"))


def build_position_map(patch: str | None) -> dict[int, int]:
    """Return map: new-file line number -> diff position, for added lines only.

    Removed lines take a position slot but don't advance the new-file line counter.
    Hunk headers after the first take a position slot too; positions are never reset
    between hunks of the same file. A patch with no hunks (binary files) maps nothing.

    Raises:
        MalformedHunkError: If a hunk header has no `+N` start line
    """
    position_map: dict[int, int] = {}
    if not patch:
        return position_map

    original_line = 0
    diff_pos = 0
    seen_header = False

    for line in patch.split("\n"):
        if not seen_header and not line.startswith("@@"):
            # No hunk yet, so there is nothing to position against
            continue

        # Removed lines and "\ No newline at end of file" markers exist only in the diff
        if line.startswith(("-", "\\")):
            diff_pos += 1
            continue

        if seen_header:
            diff_pos += 1

        if line.startswith("@@"):
            original_line = parse_new_start(line) - 1
            seen_header = True
            continue

        original_line += 1

        if line.startswith("+"):
            position_map[original_line] = diff_pos

    return position_map
