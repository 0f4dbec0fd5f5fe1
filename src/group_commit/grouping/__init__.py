"""
Grouping of pending changes.

This package classifies changed files into change groups and holds the
data models describing plans and their outcomes. See
:mod:`group_commit.grouping.change_classifier` and
:mod:`group_commit.grouping.group_model` for details.
"""

from .change_classifier import classify_file  # noqa: F401
from .group_model import (  # noqa: F401
    ChangeGroup,
    CommitRecord,
    GroupOverride,
    GroupPlan,
    OrchestrationResult,
)
