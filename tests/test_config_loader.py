import json
from pathlib import Path

import pytest

from group_commit.config.loader import (
    CONFIG_FILE_NAME,
    DEFAULT_GIT_TIMEOUT,
    CommitGroupedChangesOptions,
    ConfigError,
    GitSettings,
    load_config,
    parse_group_overrides,
)
from group_commit.grouping.group_model import ChangeGroup, GroupOverride


def write_config(tmp_path: Path, data) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text(json.dumps(data), encoding="utf-8")


def test_missing_config_file_yields_defaults(tmp_path):
    assert load_config(tmp_path) == {"group_overrides": {}, "ai": None}


def test_invalid_json_raises(tmp_path):
    (tmp_path / CONFIG_FILE_NAME).write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_non_object_config_raises(tmp_path):
    write_config(tmp_path, ["a"])
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_overrides_and_ai_section(tmp_path):
    write_config(
        tmp_path,
        {
            "group_overrides": {"code": {"commit_type": "feat", "scope": "core"}},
            "ai": {"base_url": "http://localhost", "port": 11434, "model": "llama3", "temperature": 0.5},
        },
    )
    config = load_config(tmp_path)
    assert config["group_overrides"] == {ChangeGroup.CODE: GroupOverride(commit_type="feat", scope="core")}
    assert config["ai"]["model"] == "llama3"
    assert config["ai"]["temperature"] == 0.5


@pytest.mark.parametrize(
    "ai",
    [
        {"port": 11434, "model": "m"},
        {"base_url": "http://localhost", "port": "11434", "model": "m"},
        {"base_url": "http://localhost", "port": True, "model": "m"},
        {"base_url": "http://localhost", "port": 1, "model": "m", "max_tokens": "many"},
        {"base_url": "http://localhost", "port": 1, "model": "m", "allow_sensitive": "yes"},
        "localhost",
    ],
)
def test_invalid_ai_section_raises(tmp_path, ai):
    write_config(tmp_path, {"ai": ai})
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_parse_group_overrides_rejects_bad_input():
    assert parse_group_overrides(None) == {}
    assert parse_group_overrides({"docs": None}) == {}
    with pytest.raises(ConfigError, match="Unknown group"):
        parse_group_overrides({"feature": {"short": "x"}})
    with pytest.raises(ConfigError, match="Unknown override fields"):
        parse_group_overrides({"docs": {"summary": "x"}})
    with pytest.raises(ConfigError, match="must be a string"):
        parse_group_overrides({"docs": {"short": 3}})
    with pytest.raises(ConfigError):
        parse_group_overrides(["docs"])


def test_options_defaults_and_apply_gate():
    options = CommitGroupedChangesOptions(repo_path=Path("/repo"))
    assert (options.include_unstaged, options.auto_stage, options.dry_run) == (True, True, True)
    assert (options.push, options.signoff, options.confirm) == (False, False, False)
    assert options.applies is False
    assert CommitGroupedChangesOptions(repo_path=Path("/repo"), dry_run=False).applies is False
    assert CommitGroupedChangesOptions(repo_path=Path("/repo"), confirm=True).applies is False
    assert CommitGroupedChangesOptions(repo_path=Path("/repo"), dry_run=False, confirm=True).applies is True


def test_options_from_mapping():
    options = CommitGroupedChangesOptions.from_mapping(
        {
            "repo_path": "/repo",
            "dry_run": False,
            "confirm": True,
            "push": None,
            "group_overrides": {"ci": {"short": "pin actions"}},
        }
    )
    assert options.repo_path == Path("/repo")
    assert options.applies is True
    assert options.push is False
    assert options.group_overrides[ChangeGroup.CI].short == "pin actions"


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"repo_path": ""},
        {"repo_path": "/repo", "dry_run": "false"},
        {"repo_path": "/repo", "dryRun": False},
        {"repo_path": "/repo", "group_overrides": {"misc": {}}},
    ],
)
def test_options_from_mapping_rejects_malformed_input(data):
    with pytest.raises(ConfigError):
        CommitGroupedChangesOptions.from_mapping(data)


def test_git_settings_from_env():
    assert GitSettings.from_env({}) == GitSettings(binary="git", timeout=DEFAULT_GIT_TIMEOUT)
    assert GitSettings().timeout == 120.0
    settings = GitSettings.from_env({"GROUP_COMMIT_GIT_BIN": "/usr/bin/git", "GROUP_COMMIT_GIT_TIMEOUT": "2.5"})
    assert settings == GitSettings(binary="/usr/bin/git", timeout=2.5)
    with pytest.raises(ConfigError):
        GitSettings.from_env({"GROUP_COMMIT_GIT_TIMEOUT": "soon"})
    with pytest.raises(ConfigError):
        GitSettings.from_env({"GROUP_COMMIT_GIT_TIMEOUT": "0"})


@pytest.mark.parametrize("overrides", [None, [("docs", GroupOverride())], {"docs": GroupOverride()}])
def test_validate_rejects_malformed_overrides(overrides):
    options = CommitGroupedChangesOptions(repo_path=Path("/repo"), group_overrides=overrides)
    with pytest.raises(ConfigError):
        options.validate()
