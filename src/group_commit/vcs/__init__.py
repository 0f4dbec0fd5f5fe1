"""
Version control system (VCS) integration.

This package contains the Git client used to list pending changes and
to stage, commit and push them.
"""

from .git_client import ChangeSet, CommitOutcome, GitClient, GitError, GitRunResult  # noqa: F401
