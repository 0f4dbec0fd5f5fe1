"""
Data models for grouped commits.

A :class:`GroupPlan` describes one cluster of pending changes together
with the commit message proposed for it. Applying a plan produces one
:class:`CommitRecord` per group, and the whole invocation is summarised
by an :class:`OrchestrationResult`.

All models serialise through ``to_dict`` into plain JSON-ready
structures. Optional fields that do not apply are omitted rather than
emitted as ``null``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ChangeGroup(str, Enum):
    """Semantic category of a changed file.

    The declaration order is significant: plans list their groups in
    exactly this order.
    """

    DOCS = "docs"
    TESTS = "tests"
    CI = "ci"
    DEPS = "deps"
    BUILD = "build"
    CHORE = "chore"
    CODE = "code"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class GroupOverride:
    """Caller-supplied replacement for parts of a group's commit message.

    Attributes
    ----------
    commit_type : str, optional
        Conventional Commit type to use instead of the group default.
    scope : str, optional
        Scope placed in parentheses after the type.
    short : str, optional
        Short summary replacing the group default.
    long : str, optional
        Message body.
    """

    commit_type: Optional[str] = None
    scope: Optional[str] = None
    short: Optional[str] = None
    long: Optional[str] = None

    FIELDS = ("commit_type", "scope", "short", "long")


@dataclass(frozen=True)
class GroupPlan:
    """One non-empty cluster of pending changes and its proposed commit."""

    name: ChangeGroup
    commit_type: str
    files: List[str]
    suggested_message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "commit_type": self.commit_type,
            "files": list(self.files),
            "suggested_message": self.suggested_message,
        }


@dataclass(frozen=True)
class CommitRecord:
    """Outcome of committing a single :class:`GroupPlan`.

    ``sha`` is only set for successful commits and ``error`` only for
    failed ones. A successful commit whose id could not be resolved
    carries no ``sha``.
    """

    group: ChangeGroup
    message: str
    ok: bool
    sha: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def succeeded(cls, plan: GroupPlan, sha: Optional[str]) -> "CommitRecord":
        return cls(group=plan.name, message=plan.suggested_message, ok=True, sha=sha)

    @classmethod
    def failed(cls, plan: GroupPlan, error: str) -> "CommitRecord":
        return cls(group=plan.name, message=plan.suggested_message, ok=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "group": self.group.value,
            "message": self.message,
            "ok": self.ok,
        }
        if self.ok:
            if self.sha is not None:
                data["sha"] = self.sha
        elif self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class OrchestrationResult:
    """Top-level result of a grouped-commit invocation.

    Attributes
    ----------
    ok : bool
        True for plan-only runs, or when every step of an apply run
        succeeded.
    groups : List[GroupPlan]
        The plan, in group declaration order.
    commits : List[CommitRecord], optional
        Present only for apply runs.
    pushed : bool, optional
        Present only when a push was requested during an apply run.
    errors : List[str]
        Accumulated failure descriptions. Omitted from the serialised
        form when empty.
    """

    ok: bool
    groups: List[GroupPlan]
    commits: Optional[List[CommitRecord]] = None
    pushed: Optional[bool] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "ok": self.ok,
            "groups": [group.to_dict() for group in self.groups],
        }
        if self.commits is not None:
            data["commits"] = [record.to_dict() for record in self.commits]
        if self.pushed is not None:
            data["pushed"] = self.pushed
        if self.errors:
            data["errors"] = list(self.errors)
        return data

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)
