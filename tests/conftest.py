from pathlib import Path
from typing import Dict, List, Optional

import pytest

from group_commit.vcs.git_client import ChangeSet, CommitOutcome, GitError, GitRunResult


class FakeGitClient:
    """In-memory stand-in for GitClient that records every call.

    ``commit_failures`` and ``stage_failures`` map the first file of a
    group to the error text that the corresponding git command reports.
    """

    def __init__(self, staged=None, unstaged=None):
        self.staged: List[str] = list(staged or [])
        self.unstaged: List[str] = list(unstaged or [])
        self.list_error: Optional[str] = None
        self.stage_failures: Dict[str, str] = {}
        self.commit_failures: Dict[str, str] = {}
        self.push_error: Optional[str] = None
        self.calls: List[tuple] = []
        self._next_sha = 0

    def list_changed_files(self, include_unstaged=True):
        self.calls.append(("list", include_unstaged))
        if self.list_error is not None:
            raise GitError(self.list_error)
        merged = self.staged + (self.unstaged if include_unstaged else [])
        return ChangeSet(staged=self.staged, unstaged=self.unstaged, all=list(dict.fromkeys(merged)))

    def stage_files(self, files):
        self.calls.append(("stage", list(files)))
        error = self.stage_failures.get(files[0]) if files else None
        if error is not None:
            return GitRunResult(code=1, stderr=error)
        return GitRunResult(code=0)

    def commit(self, message, signoff=False, paths=None):
        self.calls.append(("commit", message, signoff, list(paths) if paths else None))
        key = paths[0] if paths else None
        error = self.commit_failures.get(key) if key else None
        if error is not None:
            return CommitOutcome(ok=False, raw=GitRunResult(code=1, stderr=error))
        self._next_sha += 1
        return CommitOutcome(ok=True, raw=GitRunResult(code=0), sha=f"sha{self._next_sha}")

    def push(self):
        self.calls.append(("push",))
        if self.push_error is not None:
            return GitRunResult(code=1, stderr=self.push_error)
        return GitRunResult(code=0)

    def mutating_calls(self):
        return [call for call in self.calls if call[0] in ("stage", "commit", "push")]


@pytest.fixture
def fake_git():
    return FakeGitClient


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    (tmp_path / ".git").mkdir()
    return tmp_path
