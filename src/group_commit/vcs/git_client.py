"""
Git client implementation for group_commit.

This module wraps the git commands the orchestrator depends on: listing
pending changes, staging, committing and pushing. Listing changes raises
:class:`GitError` on failure because no plan can be built without it.
The mutating commands never raise for git failures; they return a
structured outcome so that the caller can record the failure and carry
on with the next group.

A missing git binary and a command exceeding the configured timeout are
reported as failed outcomes with the conventional exit codes 127 and
124 respectively.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from group_commit.config.loader import GitSettings


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


class GitError(Exception):
    """Raised when listing the pending changes fails."""

    pass


@dataclass(frozen=True)
class GitRunResult:
    """Captured outcome of a single git invocation."""

    code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.code == 0

    @property
    def detail(self) -> str:
        """Diagnostic text, preferring stderr over stdout."""
        return self.stderr.strip() or self.stdout.strip()


@dataclass(frozen=True)
class CommitOutcome:
    """Outcome of a commit; ``sha`` is set only on success."""

    ok: bool
    raw: GitRunResult
    sha: Optional[str] = None


@dataclass(frozen=True)
class ChangeSet:
    """Pending changes split by index state.

    ``all`` holds the staged files followed by the unstaged ones (when
    requested), without duplicates.
    """

    staged: List[str] = field(default_factory=list)
    unstaged: List[str] = field(default_factory=list)
    all: List[str] = field(default_factory=list)


def _split_null_list(output: str) -> List[str]:
    if not output:
        return []
    # Output of ``-z`` may or may not carry a trailing NUL.
    return [entry for entry in output.split("\0") if entry]


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path, settings: Optional[GitSettings] = None) -> None:
        self.repo_root = Path(repo_root)
        self.settings = settings or GitSettings()

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                # reached filesystem root
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Command execution
    # ------------------------------------------------------------------
    def _run(self, args: Sequence[str]) -> GitRunResult:
        """Run a git command in the repository root and capture its output."""
        full_cmd = [self.settings.binary, *args]
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            proc = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",  # Replace invalid characters instead of failing
                timeout=self.settings.timeout,
            )
        except FileNotFoundError as exc:
            message = f'Failed to spawn git binary ("{self.settings.binary}"): {exc.strerror or exc}'
            logger.error(message)
            return GitRunResult(code=EXIT_NOT_FOUND, stderr=message)
        except subprocess.TimeoutExpired:
            message = f"git {' '.join(args[:1])} timed out after {self.settings.timeout} seconds"
            logger.error(message)
            return GitRunResult(code=EXIT_TIMEOUT, stderr=message)

        result = GitRunResult(code=proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or "")
        if not result.ok:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
        return result

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------
    def list_changed_files(self, include_unstaged: bool = True) -> ChangeSet:
        """List files with pending changes.

        Rename detection is disabled so that a renamed file shows up as a
        deletion of its old path plus an addition of its new one.

        Parameters
        ----------
        include_unstaged : bool
            Whether unstaged changes are merged into ``ChangeSet.all``.
            Staged changes are always included.

        Raises
        ------
        GitError
            If either ``git diff`` invocation fails.
        """
        staged_res = self._run(["diff", "--name-only", "--no-renames", "--cached", "-z"])
        if not staged_res.ok:
            raise GitError(f"Failed to list staged changes: {staged_res.detail}")
        unstaged_res = self._run(["diff", "--name-only", "--no-renames", "-z"])
        if not unstaged_res.ok:
            raise GitError(f"Failed to list unstaged changes: {unstaged_res.detail}")

        staged = _split_null_list(staged_res.stdout)
        unstaged = _split_null_list(unstaged_res.stdout)
        merged = staged + (unstaged if include_unstaged else [])
        return ChangeSet(staged=staged, unstaged=unstaged, all=list(dict.fromkeys(merged)))

    # ------------------------------------------------------------------
    # Staging, committing, pushing
    # ------------------------------------------------------------------
    def stage_files(self, files: Sequence[str]) -> GitRunResult:
        """Stage the given files; an empty list is a successful no-op.

        Files missing from the working tree are staged as deletions with
        ``git rm --cached``, which also succeeds when the deletion is
        already staged (e.g. the old path of ``git mv``).
        """
        if not files:
            return GitRunResult(code=0)
        present = [f for f in files if (self.repo_root / f).exists() or (self.repo_root / f).is_symlink()]
        missing = [f for f in files if f not in present]
        result = GitRunResult(code=0)
        if present:
            result = self._run(["add", "--", *present])
            if not result.ok:
                return result
        if missing:
            result = self._run(["rm", "--cached", "--ignore-unmatch", "--quiet", "--", *missing])
        return result

    def commit(
        self,
        message: str,
        signoff: bool = False,
        paths: Optional[Sequence[str]] = None,
    ) -> CommitOutcome:
        """Create a commit with the given message.

        Parameters
        ----------
        message : str
            Full commit message; multi-line messages are supported.
        signoff : bool
            Add a ``Signed-off-by`` trailer.
        paths : Sequence[str], optional
            Restrict the commit to these paths. Other staged content stays
            staged and is not part of the commit.
        """
        args = ["commit", "-m", message]
        if signoff:
            args.append("-s")
        if paths:
            args.extend(["--", *paths])
        result = self._run(args)
        if not result.ok:
            return CommitOutcome(ok=False, raw=result)
        sha_res = self._run(["rev-parse", "HEAD"])
        sha = sha_res.stdout.strip() if sha_res.ok else None
        return CommitOutcome(ok=True, raw=result, sha=sha)

    def push(self) -> GitRunResult:
        """Push the current branch to its configured upstream."""
        return self._run(["push"])
