"""
Validation of commit message headers against Conventional Commits.

Only the first line of a message is checked. A header with an invalid
structure yields a single diagnostic; length limits are only checked
once the structure is valid.
"""

from __future__ import annotations

import re
from typing import List


COMMIT_TYPES = (
    "feat",
    "fix",
    "build",
    "chore",
    "ci",
    "cd",
    "docs",
    "perf",
    "refactor",
    "revert",
    "style",
    "test",
    "security",
)

MIN_HEADER_LENGTH = 10
MAX_HEADER_LENGTH = 72

_HEADER_PATTERN = re.compile(
    r"^(?:{types})(?:\([a-z0-9-]+\))?(?:!)?: .+$".format(types="|".join(COMMIT_TYPES))
)


def _structure_issue(header: str) -> str:
    if ": " not in header:
        return "Missing ': ' separator between type/scope and description"
    if not any(header.startswith(commit_type) for commit_type in COMMIT_TYPES):
        return f"Commit type must be one of: {', '.join(COMMIT_TYPES)}"
    if "(" in header and ")" not in header:
        return "Unclosed scope parenthesis"
    if ")" in header and "(" not in header:
        return "Unopened scope parenthesis"
    if "()" in header:
        return "Empty scope parenthesis"
    return "Commit message format should be: <type>(<scope>): <description>"


def check_message_format(message: str) -> List[str]:
    """Return the list of problems found in ``message``.

    An empty list means the message is a valid Conventional Commit.
    """
    stripped = message.strip()
    header = stripped.splitlines()[0] if stripped else ""

    if not _HEADER_PATTERN.match(header):
        return [_structure_issue(header)]

    issues: List[str] = []
    length = len(header)
    if length < MIN_HEADER_LENGTH:
        issues.append(
            f"Commit message is too short (got {length} characters, minimum is {MIN_HEADER_LENGTH})"
        )
    if length > MAX_HEADER_LENGTH:
        issues.append(
            f"First line of commit message is too long (got {length} characters, maximum is {MAX_HEADER_LENGTH})"
        )
    return issues
