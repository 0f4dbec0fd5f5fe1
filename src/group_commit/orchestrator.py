"""
Planning and applying grouped commits.

The :class:`GroupedCommitOrchestrator` turns the pending changes of a
repository into one proposed commit per change group and, when the
caller explicitly authorises it, creates those commits one group at a
time.

An invocation moves through the following states::

    Enumerating -> Classifying -> PlanBuilt -> PlanOnly-Done
                                            -> Applying -> Applied

Groups are applied strictly in plan order. A group whose staging or
commit fails is recorded as failed and the next group is attempted;
commits that already succeeded are never rolled back. At most one push
is attempted after all groups have been processed.

Only the failure to list pending changes is raised (as
:class:`~group_commit.vcs.git_client.GitError`). Every later git failure
is reported through the returned :class:`OrchestrationResult`.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from group_commit.config.loader import CommitGroupedChangesOptions, GitSettings
from group_commit.grouping.change_classifier import classify_file
from group_commit.grouping.group_model import (
    ChangeGroup,
    CommitRecord,
    GroupPlan,
    OrchestrationResult,
)
from group_commit.llm.commit_message_suggester import CommitMessageSuggester
from group_commit.messages.formatter import build_group_message
from group_commit.vcs.git_client import GitClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class GroupedCommitOrchestrator:
    """Plan and apply one commit per change group.

    Parameters
    ----------
    git_client
        Object providing ``list_changed_files``, ``stage_files``,
        ``commit`` and ``push`` with the semantics of
        :class:`~group_commit.vcs.git_client.GitClient`.
    suggester : CommitMessageSuggester, optional
        When given, asked for a better message for every group that has
        no caller override.
    """

    def __init__(self, git_client, suggester: Optional[CommitMessageSuggester] = None) -> None:
        self.git_client = git_client
        self.suggester = suggester

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------
    def _enumerate(self, options: CommitGroupedChangesOptions) -> List[str]:
        changes = self.git_client.list_changed_files(options.include_unstaged)
        # Keep first-seen order; the client is expected to deduplicate already.
        return list(dict.fromkeys(changes.all))

    def _classify(self, files: List[str]) -> Dict[ChangeGroup, List[str]]:
        buckets: Dict[ChangeGroup, List[str]] = {group: [] for group in ChangeGroup}
        for file_path in files:
            buckets[classify_file(file_path)].append(file_path)
        return buckets

    def _build_plan(
        self, buckets: Dict[ChangeGroup, List[str]], options: CommitGroupedChangesOptions
    ) -> List[GroupPlan]:
        plans: List[GroupPlan] = []
        for group in ChangeGroup:
            files = buckets[group]
            if not files:
                continue
            override = options.group_overrides.get(group)
            commit_type, message = build_group_message(group, override)
            if override is None and self.suggester is not None:
                suggestion = self.suggester.suggest(group, commit_type, files)
                if suggestion is not None:
                    commit_type, message = suggestion
            plans.append(
                GroupPlan(name=group, commit_type=commit_type, files=files, suggested_message=message)
            )
        return plans

    def plan(self, options: CommitGroupedChangesOptions) -> List[GroupPlan]:
        """Enumerate, classify and build the plan without touching the index."""
        files = self._enumerate(options)
        logger.debug("Found %d changed file(s)", len(files))
        plans = self._build_plan(self._classify(files), options)
        logger.debug("Planned %d group(s): %s", len(plans), ", ".join(p.name.value for p in plans))
        return plans

    # ------------------------------------------------------------------
    # Applying
    # ------------------------------------------------------------------
    def _apply_group(
        self, plan: GroupPlan, options: CommitGroupedChangesOptions, errors: List[str]
    ) -> CommitRecord:
        name = plan.name.value
        if options.auto_stage:
            staged = self.git_client.stage_files(plan.files)
            if not staged.ok:
                error = f"git add failed for group {name}: {staged.detail}"
                logger.warning(error)
                errors.append(error)
                return CommitRecord.failed(plan, error)

        # With auto-staging the index may also hold files of later groups;
        # restricting the commit to this group's paths keeps them out.
        paths = plan.files if options.auto_stage else None
        outcome = self.git_client.commit(plan.suggested_message, signoff=options.signoff, paths=paths)
        if not outcome.ok:
            detail = outcome.raw.detail
            error = f"commit failed for group {name}: {detail}"
            logger.warning(error)
            errors.append(error)
            return CommitRecord.failed(plan, detail)

        if outcome.sha is None:
            logger.warning("Committed group %s but could not resolve the new commit id", name)
        else:
            logger.info("Committed group %s as %s", name, outcome.sha)
        return CommitRecord.succeeded(plan, outcome.sha)

    def apply(
        self, plans: List[GroupPlan], options: CommitGroupedChangesOptions
    ) -> OrchestrationResult:
        """Commit every group of ``plans`` in order, then push if requested."""
        errors: List[str] = []
        commits = [self._apply_group(plan, options, errors) for plan in plans]

        pushed: Optional[bool] = None
        if options.push:
            push_res = self.git_client.push()
            pushed = push_res.ok
            if not pushed:
                error = f"git push failed: {push_res.detail}"
                logger.warning(error)
                errors.append(error)

        return OrchestrationResult(
            ok=not errors, groups=plans, commits=commits, pushed=pushed, errors=errors
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def run(self, options: CommitGroupedChangesOptions) -> OrchestrationResult:
        """Plan and, when authorised, apply grouped commits.

        Raises
        ------
        ConfigError
            If ``options`` is malformed. Raised before the repository is
            accessed.
        GitError
            If the pending changes cannot be listed.
        """
        options.validate()
        plans = self.plan(options)
        if not options.applies:
            return OrchestrationResult(ok=True, groups=plans)
        return self.apply(plans, options)


def commit_grouped_changes(
    options: CommitGroupedChangesOptions,
    git_settings: Optional[GitSettings] = None,
    suggester: Optional[CommitMessageSuggester] = None,
) -> OrchestrationResult:
    """Group the pending changes of ``options.repo_path`` and optionally commit them.

    This is the single entry point for callers that do not need to
    substitute the git client.
    """
    options.validate()
    client = GitClient(options.repo_path, settings=git_settings or GitSettings())
    return GroupedCommitOrchestrator(client, suggester=suggester).run(options)
