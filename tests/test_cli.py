import json

import click
import pytest
from click.testing import CliRunner

import group_commit.cli as cli
from group_commit import __version__


def install_git(monkeypatch, git, root):
    """Make the CLI use ``git`` for the repository found at ``root``."""

    class FakeGitClientFactory:
        @staticmethod
        def find_repo_root(start):
            return root

        def __new__(cls, repo_root, settings=None):
            return git

    monkeypatch.setattr(cli, "GitClient", FakeGitClientFactory)


def json_payload(output: str):
    # Log lines may share the captured output with the JSON document.
    return json.loads(next(line for line in output.splitlines() if line.startswith("{")))


def test_plan_prints_json_and_never_mutates(monkeypatch, fake_git, repo_dir):
    git = fake_git(staged=["README.md", "src/app.ts"])
    install_git(monkeypatch, git, repo_dir)

    result = CliRunner().invoke(cli.main, ["plan"])

    assert result.exit_code == cli.EXIT_SUCCESS, result.output
    data = json_payload(result.output)
    assert data["ok"] is True
    assert [group["name"] for group in data["groups"]] == ["docs", "code"]
    assert "commits" not in data
    assert git.mutating_calls() == []


def test_plan_text_output(monkeypatch, fake_git, repo_dir):
    install_git(monkeypatch, fake_git(staged=["README.md"]), repo_dir)
    result = CliRunner().invoke(cli.main, ["plan", "--output", "text"])
    assert result.exit_code == cli.EXIT_SUCCESS
    assert "README.md" in result.output
    assert "docs: update docs" in result.output
    assert "Plan only" in result.output


def test_no_changes(monkeypatch, fake_git, repo_dir):
    install_git(monkeypatch, fake_git(), repo_dir)
    text = CliRunner().invoke(cli.main, ["plan", "--output", "text"])
    assert text.exit_code == cli.EXIT_NO_CHANGES
    as_json = CliRunner().invoke(cli.main, ["plan"])
    assert as_json.exit_code == cli.EXIT_SUCCESS
    assert json_payload(as_json.output) == {"ok": True, "groups": []}


def test_apply_without_yes_only_plans(monkeypatch, fake_git, repo_dir):
    git = fake_git(staged=["README.md"])
    install_git(monkeypatch, git, repo_dir)
    result = CliRunner().invoke(cli.main, ["apply", "--push"])
    assert result.exit_code == cli.EXIT_SUCCESS
    assert "commits" not in json_payload(result.output)
    assert git.mutating_calls() == []


def test_apply_with_yes_commits_and_pushes(monkeypatch, fake_git, repo_dir):
    git = fake_git(staged=["README.md", "src/app.ts"])
    install_git(monkeypatch, git, repo_dir)

    result = CliRunner().invoke(cli.main, ["apply", "--yes", "--push", "--signoff"])

    assert result.exit_code == cli.EXIT_SUCCESS, result.output
    data = json_payload(result.output)
    assert data["pushed"] is True
    assert [commit["sha"] for commit in data["commits"]] == ["sha1", "sha2"]
    assert ("commit", "docs: update docs\n", True, ["README.md"]) in git.calls


def test_apply_failure_exits_with_vcs_code(monkeypatch, fake_git, repo_dir):
    git = fake_git(staged=["README.md", "src/app.ts"])
    git.commit_failures["README.md"] = "hook failed"
    install_git(monkeypatch, git, repo_dir)

    result = CliRunner().invoke(cli.main, ["apply", "--yes"])

    assert result.exit_code == cli.EXIT_VCS_FAILURE
    data = json_payload(result.output)
    assert data["ok"] is False
    assert data["errors"] == ["commit failed for group docs: hook failed"]
    assert [commit["ok"] for commit in data["commits"]] == [False, True]


def test_apply_text_summary(monkeypatch, fake_git, repo_dir):
    git = fake_git(staged=["README.md"])
    git.push_error = "rejected"
    install_git(monkeypatch, git, repo_dir)
    result = CliRunner().invoke(cli.main, ["apply", "--yes", "--push", "--output", "text"])
    assert result.exit_code == cli.EXIT_VCS_FAILURE
    assert "Summary" in result.output
    assert "Push failed" in result.output


def test_no_repository(monkeypatch, fake_git):
    install_git(monkeypatch, fake_git(), None)
    result = CliRunner().invoke(cli.main, ["plan"])
    assert result.exit_code == cli.EXIT_NO_REPO


def test_invalid_config_file(monkeypatch, fake_git, repo_dir):
    (repo_dir / ".group_commit.json").write_text("{broken", encoding="utf-8")
    git = fake_git(staged=["README.md"])
    install_git(monkeypatch, git, repo_dir)
    result = CliRunner().invoke(cli.main, ["plan"])
    assert result.exit_code == cli.EXIT_CONFIG_ERROR
    assert git.calls == []


def test_overrides_from_config_and_command_line(monkeypatch, fake_git, repo_dir):
    config = {"group_overrides": {"code": {"commit_type": "feat", "scope": "ui"}}}
    (repo_dir / ".group_commit.json").write_text(json.dumps(config), encoding="utf-8")
    install_git(monkeypatch, fake_git(staged=["src/app.ts"]), repo_dir)

    result = CliRunner().invoke(cli.main, ["plan", "--override", "code.short=add dark mode"])

    assert result.exit_code == cli.EXIT_SUCCESS, result.output
    group = json_payload(result.output)["groups"][0]
    assert group["commit_type"] == "feat"
    assert group["suggested_message"] == "feat(ui): add dark mode\n"


@pytest.mark.parametrize(
    "override, exit_code",
    [("nonsense", 2), ("misc.short=x", cli.EXIT_CONFIG_ERROR), ("code.title=x", cli.EXIT_CONFIG_ERROR)],
)
def test_bad_overrides(monkeypatch, fake_git, repo_dir, override, exit_code):
    install_git(monkeypatch, fake_git(staged=["src/app.ts"]), repo_dir)
    result = CliRunner().invoke(cli.main, ["plan", "--override", override])
    assert result.exit_code == exit_code


def test_ai_requires_configuration(monkeypatch, fake_git, repo_dir):
    install_git(monkeypatch, fake_git(staged=["src/app.ts"]), repo_dir)
    result = CliRunner().invoke(cli.main, ["plan", "--ai"])
    assert result.exit_code == cli.EXIT_CONFIG_ERROR


def test_enumeration_failure(monkeypatch, fake_git, repo_dir):
    git = fake_git()
    git.list_error = "fatal: bad revision"
    install_git(monkeypatch, git, repo_dir)
    result = CliRunner().invoke(cli.main, ["plan"])
    assert result.exit_code == cli.EXIT_VCS_FAILURE


def test_unexpected_error_maps_to_generic_exit(monkeypatch, fake_git, repo_dir):
    git = fake_git()

    def broken(include_unstaged=True):
        raise RuntimeError("boom")

    git.list_changed_files = broken
    install_git(monkeypatch, git, repo_dir)
    result = CliRunner().invoke(cli.main, ["plan"])
    assert result.exit_code == cli.EXIT_GENERIC_ERROR


def test_format_message_command():
    result = CliRunner().invoke(
        cli.main,
        ["format-message", "--type", "feat", "--short", "add new API", "--scope", "core",
         "--long", "This introduces a new API.", "--breaking"],
    )
    assert result.exit_code == 0
    assert result.output == "feat(core)!: add new API\n\nThis introduces a new API.\n"


def test_lint_message_command():
    ok = CliRunner().invoke(cli.main, ["lint-message", "--message", "fix(api): handle empty body"])
    assert ok.exit_code == cli.EXIT_SUCCESS
    bad = CliRunner().invoke(cli.main, ["lint-message", "--message", "did stuff", "--output", "json"])
    assert bad.exit_code == cli.EXIT_LINT_FAILURE
    data = json_payload(bad.output)
    assert data["ok"] is False
    assert len(data["issues"]) == 1


def test_version():
    result = CliRunner().invoke(cli.main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_parse_override_args():
    assert cli.parse_override_args(("docs.short=fix typos", "docs.scope=readme")) == {
        "docs": {"short": "fix typos", "scope": "readme"}
    }
    with pytest.raises(click.BadParameter):
        cli.parse_override_args(("docs=fix",))
