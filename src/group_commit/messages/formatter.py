"""
Conventional Commit message synthesis.

:func:`format_message` renders a message from its parts with no
escaping, wrapping or trimming. :func:`build_group_message` combines it
with the per-group defaults and any caller override.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from group_commit.grouping.group_model import ChangeGroup, GroupOverride


DEFAULT_COMMIT_TYPES: Dict[ChangeGroup, str] = {
    ChangeGroup.DOCS: "docs",
    ChangeGroup.TESTS: "test",
    ChangeGroup.CI: "ci",
    ChangeGroup.DEPS: "chore",
    ChangeGroup.BUILD: "build",
    ChangeGroup.CHORE: "chore",
    # No semantic inference is attempted for general code.
    ChangeGroup.CODE: "chore",
}

DEFAULT_SHORT_SUMMARIES: Dict[ChangeGroup, str] = {
    ChangeGroup.DOCS: "update docs",
    ChangeGroup.TESTS: "update tests",
    ChangeGroup.CI: "update CI",
    ChangeGroup.DEPS: "update dependencies",
    ChangeGroup.BUILD: "update build config",
    ChangeGroup.CHORE: "misc maintenance",
    ChangeGroup.CODE: "update code",
}


def format_message(
    commit_type: str,
    short: str,
    scope: Optional[str] = None,
    long: Optional[str] = None,
    breaking: bool = False,
) -> str:
    """Render a Conventional Commit message.

    The header is ``<type>(<scope>)<!>: <short>``; the scope part is
    omitted when ``scope`` is empty and ``!`` is only added for breaking
    changes. A non-empty ``long`` is appended after one blank line and
    the message always ends with a single newline.

    >>> format_message("docs", "update docs")
    'docs: update docs\\n'
    >>> format_message("feat", "add new API", "core", "This introduces a new API.", True)
    'feat(core)!: add new API\\n\\nThis introduces a new API.\\n'
    """
    scope_part = f"({scope})" if scope else ""
    bang = "!" if breaking else ""
    header = f"{commit_type}{scope_part}{bang}: {short}"
    if long:
        return f"{header}\n\n{long}\n"
    return f"{header}\n"


def default_commit_type(group: ChangeGroup) -> str:
    return DEFAULT_COMMIT_TYPES[group]


def default_short_summary(group: ChangeGroup) -> str:
    return DEFAULT_SHORT_SUMMARIES[group]


def build_group_message(
    group: ChangeGroup, override: Optional[GroupOverride] = None
) -> Tuple[str, str]:
    """Return ``(commit_type, message)`` for ``group``.

    Each field of ``override`` replaces the corresponding default only
    when it is non-empty.
    """
    override = override or GroupOverride()
    commit_type = override.commit_type or default_commit_type(group)
    short = override.short or default_short_summary(group)
    message = format_message(commit_type, short, scope=override.scope, long=override.long)
    return commit_type, message
