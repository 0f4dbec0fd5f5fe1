"""
Configuration for group_commit.

Three pieces of configuration exist:

* :class:`CommitGroupedChangesOptions` is the per-invocation options
  object accepted by the orchestrator. It is validated before any
  repository access happens.
* :class:`GitSettings` selects the ``git`` binary and an optional
  per-command timeout. It is the only place where environment variables
  are consulted, and it is passed explicitly to the git client.
* :func:`load_config` reads the optional ``.group_commit.json`` file in
  the repository root, which may hold default group overrides and the
  settings for AI message suggestions.

Malformed input of any kind raises :class:`ConfigError`.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from group_commit.grouping.group_model import ChangeGroup, GroupOverride


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings in environments
# where logging has not been configured. The CLI configures logging
# explicitly when it runs.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


CONFIG_FILE_NAME = ".group_commit.json"

ENV_GIT_BIN = "GROUP_COMMIT_GIT_BIN"
ENV_GIT_TIMEOUT = "GROUP_COMMIT_GIT_TIMEOUT"
DEFAULT_GIT_TIMEOUT = 120.0

_BOOL_OPTIONS = (
    "include_unstaged",
    "auto_stage",
    "dry_run",
    "push",
    "signoff",
    "confirm",
)


class ConfigError(Exception):
    """Raised when options or the configuration file are malformed."""

    pass


# ---------------------------------------------------------------------------
# Git settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GitSettings:
    """How git is invoked.

    Attributes
    ----------
    binary : str
        Name or path of the git executable.
    timeout : float, optional
        Seconds after which a single git command is abandoned. Defaults
        to :data:`DEFAULT_GIT_TIMEOUT`; ``None`` waits indefinitely.
    """

    binary: str = "git"
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GitSettings":
        env = os.environ if environ is None else environ
        binary = env.get(ENV_GIT_BIN) or "git"
        raw_timeout = env.get(ENV_GIT_TIMEOUT)
        timeout: Optional[float] = DEFAULT_GIT_TIMEOUT
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                raise ConfigError(f"'{ENV_GIT_TIMEOUT}' must be a number") from exc
            if timeout <= 0:
                raise ConfigError(f"'{ENV_GIT_TIMEOUT}' must be positive")
        return cls(binary=binary, timeout=timeout)


# ---------------------------------------------------------------------------
# Group overrides
# ---------------------------------------------------------------------------

def parse_group_overrides(data: Any) -> Dict[ChangeGroup, GroupOverride]:
    """Validate a mapping of group name to override fields.

    Raises
    ------
    ConfigError
        If ``data`` is not a mapping, names an unknown group or field, or
        holds non-string values.
    """
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError("'group_overrides' must be an object")

    overrides: Dict[ChangeGroup, GroupOverride] = {}
    for key, fields in data.items():
        try:
            group = ChangeGroup(key)
        except ValueError:
            valid = ", ".join(g.value for g in ChangeGroup)
            raise ConfigError(
                f"Unknown group '{key}' in group_overrides (expected one of: {valid})"
            ) from None
        if fields is None:
            continue
        if not isinstance(fields, Mapping):
            raise ConfigError(f"Override for group '{key}' must be an object")
        unknown = [name for name in fields if name not in GroupOverride.FIELDS]
        if unknown:
            raise ConfigError(f"Unknown override fields for group '{key}': {', '.join(unknown)}")
        for name, value in fields.items():
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"Override field '{key}.{name}' must be a string")
        overrides[group] = GroupOverride(**fields)
    return overrides


# ---------------------------------------------------------------------------
# Invocation options
# ---------------------------------------------------------------------------

@dataclass
class CommitGroupedChangesOptions:
    """Options for one grouped-commit invocation.

    The repository is only mutated when ``dry_run`` is False *and*
    ``confirm`` is True. Every other combination produces a plan only.
    """

    repo_path: Path
    include_unstaged: bool = True
    auto_stage: bool = True
    dry_run: bool = True
    push: bool = False
    signoff: bool = False
    confirm: bool = False
    group_overrides: Dict[ChangeGroup, GroupOverride] = field(default_factory=dict)

    @property
    def applies(self) -> bool:
        """True when this invocation is allowed to mutate the repository."""
        return self.dry_run is False and self.confirm is True

    def validate(self) -> None:
        if not str(self.repo_path):
            raise ConfigError("'repo_path' must not be empty")
        for name in _BOOL_OPTIONS:
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"'{name}' must be a boolean")
        if not isinstance(self.group_overrides, dict):
            raise ConfigError("'group_overrides' must be a mapping")
        for group, override in self.group_overrides.items():
            if not isinstance(group, ChangeGroup) or not isinstance(override, GroupOverride):
                raise ConfigError("'group_overrides' must map ChangeGroup to GroupOverride")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CommitGroupedChangesOptions":
        """Build options from a snake_case payload, applying defaults.

        Keys that are missing or ``None`` take their default values.
        """
        if not isinstance(data, Mapping):
            raise ConfigError("Options must be an object")
        known = {"repo_path", "group_overrides", *_BOOL_OPTIONS}
        unknown = sorted(key for key in data if key not in known)
        if unknown:
            raise ConfigError(f"Unknown options: {', '.join(unknown)}")

        repo_path = data.get("repo_path")
        if not isinstance(repo_path, (str, Path)) or not str(repo_path):
            raise ConfigError("'repo_path' is required and must be a non-empty string")

        kwargs: Dict[str, Any] = {}
        for name in _BOOL_OPTIONS:
            value = data.get(name)
            if value is None:
                continue
            if not isinstance(value, bool):
                raise ConfigError(f"'{name}' must be a boolean")
            kwargs[name] = value

        options = cls(
            repo_path=Path(repo_path),
            group_overrides=parse_group_overrides(data.get("group_overrides")),
            **kwargs,
        )
        options.validate()
        return options


# ---------------------------------------------------------------------------
# Repository configuration file
# ---------------------------------------------------------------------------

def _validate_ai_section(ai: Any) -> Dict[str, Any]:
    if not isinstance(ai, Mapping):
        raise ConfigError("'ai' must be an object")
    required_keys = ["base_url", "port", "model"]
    missing = [key for key in required_keys if key not in ai]
    if missing:
        raise ConfigError(f"Missing required ai configuration keys: {', '.join(missing)}")
    if not isinstance(ai.get("base_url"), str):
        raise ConfigError("'ai.base_url' must be a string")
    if not isinstance(ai.get("port"), int) or isinstance(ai.get("port"), bool):
        raise ConfigError("'ai.port' must be an integer")
    if not isinstance(ai.get("model"), str):
        raise ConfigError("'ai.model' must be a string")
    if "request_timeout" in ai and not isinstance(ai["request_timeout"], (int, float)):
        raise ConfigError("'ai.request_timeout' must be a number")
    if "max_tokens" in ai and not isinstance(ai["max_tokens"], int):
        raise ConfigError("'ai.max_tokens' must be an integer")
    if "temperature" in ai and not isinstance(ai["temperature"], (int, float)):
        raise ConfigError("'ai.temperature' must be a number")
    if "allow_sensitive" in ai and not isinstance(ai["allow_sensitive"], bool):
        raise ConfigError("'ai.allow_sensitive' must be a boolean")
    if "file_limit" in ai and not isinstance(ai["file_limit"], int):
        raise ConfigError("'ai.file_limit' must be an integer")
    if "system_prompt" in ai and not isinstance(ai["system_prompt"], str):
        raise ConfigError("'ai.system_prompt' must be a string")
    if "json_mode" in ai and not isinstance(ai["json_mode"], bool):
        raise ConfigError("'ai.json_mode' must be a boolean")
    return dict(ai)


def load_config(repo_root: Path) -> Dict[str, Any]:
    """Load the optional ``.group_commit.json`` from ``repo_root``.

    Returns
    -------
    Dict[str, Any]
        A dictionary with the keys ``group_overrides`` (a mapping of
        :class:`ChangeGroup` to :class:`GroupOverride`) and ``ai`` (the
        validated AI settings, or ``None`` when not configured). A missing
        file yields empty settings.

    Raises
    ------
    ConfigError
        If the file cannot be read, is not valid JSON, or holds values of
        the wrong type.
    """
    config_path = Path(repo_root) / CONFIG_FILE_NAME
    if not config_path.exists():
        logger.debug("No configuration file at %s; using defaults", config_path)
        return {"group_overrides": {}, "ai": None}

    try:
        content = config_path.read_text(encoding="utf-8")
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {config_path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path.name} must contain a JSON object")

    overrides = parse_group_overrides(data.get("group_overrides"))
    ai = _validate_ai_section(data["ai"]) if data.get("ai") is not None else None

    logger.debug("Loaded configuration from: %s", config_path)
    return {"group_overrides": overrides, "ai": ai}
