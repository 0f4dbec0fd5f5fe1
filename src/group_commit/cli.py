"""
Command line interface for the group_commit tool.

This module defines the ``main`` click group used as the entry point of
the ``group-commit`` command. ``plan`` and ``apply`` drive the grouped
commit orchestrator; ``format-message`` and ``lint-message`` expose the
message helpers on their own.

``plan`` never mutates the repository. ``apply`` only does so when
``--yes`` is given; without it the command reports the plan instead.
Results are printed as JSON by default so that other tools can consume
them, or as a human-readable summary with ``--output text``.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from group_commit import __version__
from group_commit.config.loader import (
    CommitGroupedChangesOptions,
    ConfigError,
    GitSettings,
    load_config,
    parse_group_overrides,
)
from group_commit.grouping.group_model import GroupOverride, OrchestrationResult
from group_commit.llm.commit_message_suggester import CommitMessageSuggester
from group_commit.messages.formatter import format_message
from group_commit.messages.linter import check_message_format
from group_commit.orchestrator import GroupedCommitOrchestrator
from group_commit.vcs.git_client import GitClient, GitError

# Create a module-level logger. Attach a null handler and disable
# propagation so that library use stays silent; ``_configure_logging``
# re-enables propagation when the CLI runs.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_NO_REPO = 3
EXIT_NO_CHANGES = 4
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_LINT_FAILURE = 7


# ---------------------------------------------------------------------------
# Status display utilities
# ---------------------------------------------------------------------------

def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=False)


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✓ {message}", err=False)


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    prefix = "  " * indent
    click.echo(f"{prefix}⚠ {message}", err=False)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


def print_summary_box(title: str, items: List[str]):
    """Print a formatted summary box."""
    max_width = max(len(title), max(len(item) for item in items) if items else 0)
    box_width = min(max_width + 4, 60)

    click.echo(f"\n┌{'─' * box_width}┐")
    click.echo(f"│ {title.ljust(box_width - 2)}│")
    click.echo(f"├{'─' * box_width}┤")
    for item in items:
        click.echo(f"│ {item.ljust(box_width - 2)}│")
    click.echo(f"└{'─' * box_width}┘")


def _configure_logging(verbose: bool) -> None:
    # Use force=True so handlers are reconfigured on repeated invocations (tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    for name, candidate in logging.root.manager.loggerDict.items():
        if name.startswith("group_commit") and isinstance(candidate, logging.Logger):
            candidate.propagate = True


# ---------------------------------------------------------------------------
# Option handling
# ---------------------------------------------------------------------------

def parse_override_args(values: Tuple[str, ...]) -> Dict[str, Dict[str, str]]:
    """Parse ``GROUP.FIELD=VALUE`` arguments into a nested mapping.

    Raises
    ------
    click.BadParameter
        If an argument does not have the expected shape.
    """
    overrides: Dict[str, Dict[str, str]] = {}
    for raw in values:
        target, sep, value = raw.partition("=")
        group, dot, field_name = target.partition(".")
        if not sep or not dot or not group or not field_name:
            raise click.BadParameter(
                f"'{raw}' is not of the form GROUP.FIELD=VALUE", param_hint="--override"
            )
        overrides.setdefault(group, {})[field_name] = value
    return overrides


def merge_overrides(
    base: Dict[Any, GroupOverride], extra: Dict[str, Dict[str, str]]
) -> Dict[str, Dict[str, Optional[str]]]:
    """Overlay command line override fields on those from the config file."""
    merged: Dict[str, Dict[str, Optional[str]]] = {
        group.value: {k: v for k, v in asdict(override).items() if v is not None}
        for group, override in base.items()
    }
    for group, fields in extra.items():
        merged.setdefault(group, {}).update(fields)
    return merged


def resolve_repo_root(repo_path: Optional[str]) -> Path:
    """Return the repository root for ``repo_path`` or the working directory."""
    start = Path(repo_path) if repo_path else Path.cwd()
    root = GitClient.find_repo_root(start)
    if root is None:
        print_error(f"No Git repository found at or above: {start}")
        raise click.exceptions.Exit(EXIT_NO_REPO)
    return root


def _emit_text(result: OrchestrationResult, applied: bool) -> None:
    if not result.groups:
        print_warning("No changes detected to commit.")
        return

    click.echo(f"\n📋 {len(result.groups)} commit group{'s' if len(result.groups) != 1 else ''}:")
    for plan in result.groups:
        click.echo(f"\n🏷️  {click.style(plan.name.value, fg='cyan', bold=True)} ({len(plan.files)} file(s))")
        for file_path in plan.files:
            click.echo(f"   • {file_path}")
        click.echo(f"   💬 {plan.suggested_message.splitlines()[0]}")

    if not applied:
        print_info("Plan only; nothing was committed.")
        return

    items: List[str] = []
    for record in result.commits or []:
        if record.ok:
            items.append(f"✓ {record.group.value}: {(record.sha or '')[:12]}")
        else:
            items.append(f"✗ {record.group.value}: failed")
    if result.pushed is not None:
        items.append("✓ Pushed" if result.pushed else "✗ Push failed")
    print_summary_box("Summary", items)
    for error in result.errors:
        print_error(error, indent=1)


def _run_orchestrator(
    repo_path: Optional[str],
    include_unstaged: bool,
    overrides: Tuple[str, ...],
    ai: bool,
    output: str,
    dry_run: bool,
    confirm: bool,
    auto_stage: bool = True,
    push: bool = False,
    signoff: bool = False,
) -> None:
    repo_root = resolve_repo_root(repo_path)
    logger.debug("Repository root: %s", repo_root)

    try:
        config = load_config(repo_root)
        group_overrides = parse_group_overrides(
            merge_overrides(config["group_overrides"], parse_override_args(overrides))
        )
        git_settings = GitSettings.from_env()
        options = CommitGroupedChangesOptions(
            repo_path=repo_root,
            include_unstaged=include_unstaged,
            auto_stage=auto_stage,
            dry_run=dry_run,
            push=push,
            signoff=signoff,
            confirm=confirm,
            group_overrides=group_overrides,
        )
        options.validate()
    except ConfigError as exc:
        print_error(f"Configuration error: {exc}")
        raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

    suggester: Optional[CommitMessageSuggester] = None
    if ai:
        if not config["ai"]:
            print_error("--ai requires an 'ai' section in the repository configuration file.")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
        suggester = CommitMessageSuggester.from_config(config["ai"])

    orchestrator = GroupedCommitOrchestrator(GitClient(repo_root, settings=git_settings), suggester)
    try:
        result = orchestrator.run(options)
    except GitError as exc:
        print_error(f"VCS error: {exc}")
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)

    if output == "json":
        click.echo(result.to_json())
    else:
        _emit_text(result, options.applies)
        if not result.groups:
            raise click.exceptions.Exit(EXIT_NO_CHANGES)

    if not result.ok:
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)
    raise click.exceptions.Exit(EXIT_SUCCESS)


def _guarded(run, **kwargs) -> None:
    """Call ``run`` and map unexpected exceptions to EXIT_GENERIC_ERROR."""
    ctx = click.get_current_context(silent=True)
    try:
        run(**kwargs)
    except (click.exceptions.Exit, click.ClickException):
        # Click handles its own exit and usage exceptions
        raise
    except Exception as exc:
        logger.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

_common_options = [
    click.option("--repo-path", type=click.Path(file_okay=False), help="Repository to operate on (default: current directory)."),
    click.option(
        "--include-unstaged/--staged-only",
        default=True,
        show_default=True,
        help="Include unstaged changes in addition to staged ones.",
    ),
    click.option("--override", "overrides", multiple=True, metavar="GROUP.FIELD=VALUE", help="Override commit_type, scope, short or long for a group."),
    click.option("--ai", is_flag=True, help="Ask the configured LLM for better messages."),
    click.option("--output", type=click.Choice(["json", "text"]), default="json", show_default=True),
]


def common_options(func):
    for option in reversed(_common_options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="group-commit")
def main(verbose: bool) -> None:
    """Group pending changes into conventional commits."""
    _configure_logging(verbose)


@main.command()
@common_options
def plan(repo_path, include_unstaged, overrides, ai, output) -> None:
    """Show the proposed commit groups without changing anything."""
    _guarded(
        _run_orchestrator,
        repo_path=repo_path,
        include_unstaged=include_unstaged,
        overrides=overrides,
        ai=ai,
        output=output,
        dry_run=True,
        confirm=False,
    )


@main.command()
@common_options
@click.option("--auto-stage/--no-auto-stage", default=True, show_default=True, help="Stage each group's files before committing it.")
@click.option("--push", is_flag=True, help="Push once after all groups are committed.")
@click.option("--signoff", is_flag=True, help="Add a Signed-off-by trailer to each commit.")
@click.option("--yes", "yes", is_flag=True, help="Confirm that the repository may be modified.")
def apply(repo_path, include_unstaged, overrides, ai, output, auto_stage, push, signoff, yes) -> None:
    """Commit each change group separately (requires --yes)."""
    if not yes and output == "text":
        print_warning("--yes not given; showing the plan without committing.")
    _guarded(
        _run_orchestrator,
        repo_path=repo_path,
        include_unstaged=include_unstaged,
        overrides=overrides,
        ai=ai,
        output=output,
        dry_run=False,
        confirm=yes,
        auto_stage=auto_stage,
        push=push,
        signoff=signoff,
    )


@main.command("format-message")
@click.option("--type", "commit_type", required=True, help="Commit type, e.g. feat or fix.")
@click.option("--short", required=True, help="Short description.")
@click.option("--scope", default=None)
@click.option("--long", default=None, help="Message body.")
@click.option("--breaking", is_flag=True, help="Mark the change as breaking.")
def format_message_command(commit_type, short, scope, long, breaking) -> None:
    """Print a conventional commit message built from its parts."""
    click.echo(format_message(commit_type, short, scope=scope, long=long, breaking=breaking), nl=False)


@main.command("lint-message")
@click.option("--message", required=True, help="Commit message to validate.")
@click.option("--output", type=click.Choice(["json", "text"]), default="text", show_default=True)
def lint_message_command(message, output) -> None:
    """Check a commit message against the conventional commit rules."""
    issues = check_message_format(message)
    if output == "json":
        click.echo(json.dumps({"ok": not issues, "issues": issues}))
    elif issues:
        for issue in issues:
            print_error(issue)
    else:
        print_success("Commit message is valid")
    if issues:
        raise click.exceptions.Exit(EXIT_LINT_FAILURE)
