"""
Rules for classifying changed files into change groups.

Classification looks at the repository-relative path only. The rules
live in :data:`CLASSIFICATION_RULES`, an ordered table of
``(predicate, group)`` pairs evaluated top to bottom; the first matching
predicate decides the group. The order encodes precedence, so a
markdown file below ``.github/`` is CI configuration, not documentation.
Anything no rule claims falls back to :attr:`ChangeGroup.CODE`.
"""

from __future__ import annotations

import re
from typing import Callable, List, Tuple

from group_commit.grouping.group_model import ChangeGroup


Predicate = Callable[[str], bool]

CI_PREFIXES = (".github/", ".gitlab/", ".circleci/")

DOCS_PREFIXES = ("docs/",)

TESTS_PREFIXES = ("tests/",)

CHORE_PREFIXES = (".vscode/",)

LOCKFILES = frozenset(
    {
        "package-lock.json",
        "npm-shrinkwrap.json",
        "pnpm-lock.yaml",
        "yarn.lock",
        "Cargo.lock",
    }
)

BUILD_FILES = frozenset(
    {
        "Cargo.toml",
        "build.rs",
        "package.json",
        "tsconfig.json",
        "rollup.config.js",
        "rollup.config.cjs",
        "rollup.config.mjs",
    }
)

CHORE_FILES = frozenset({".editorconfig", ".gitignore", ".npmrc"})

_README_ANY_DEPTH = re.compile(r"^README\.md$", re.IGNORECASE)
_README_ROOT = re.compile(r"^README(\.[^/]+)?$", re.IGNORECASE)
_MARKDOWN = re.compile(r"\.mdx?$", re.IGNORECASE)
_JS_TEST = re.compile(r"\.(test|spec)\.[jt]s$", re.IGNORECASE)
_RUST_TEST = re.compile(r"_test\.rs$", re.IGNORECASE)
_ESLINT_CONFIG = re.compile(r"^eslint\.(json|js|cjs|yml|yaml|config\.js)$")
_ESLINTRC = re.compile(r"^\.eslintrc(\..*)?$")
_VITE_CONFIG = re.compile(r"^vite\.(config\.)?\w+$")


def normalize_path(file_path: str) -> str:
    """Strip any leading ``./`` segments from ``file_path``."""
    path = file_path
    while path.startswith("./"):
        path = path[2:]
    return path


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def is_ci_config(path: str) -> bool:
    return path.startswith(CI_PREFIXES)


def is_documentation(path: str) -> bool:
    if path.startswith(DOCS_PREFIXES):
        return True
    if _README_ANY_DEPTH.match(_basename(path)):
        return True
    if "/" not in path and _README_ROOT.match(path):
        return True
    return bool(_MARKDOWN.search(path))


def is_test(path: str) -> bool:
    if path.startswith(TESTS_PREFIXES):
        return True
    return bool(_JS_TEST.search(path) or _RUST_TEST.search(path))


def is_lockfile(path: str) -> bool:
    return _basename(path) in LOCKFILES


def is_build_config(path: str) -> bool:
    name = _basename(path)
    if name in BUILD_FILES:
        return True
    return bool(
        _ESLINT_CONFIG.match(name) or _ESLINTRC.match(name) or _VITE_CONFIG.match(name)
    )


def is_chore(path: str) -> bool:
    if path.startswith(CHORE_PREFIXES):
        return True
    return _basename(path) in CHORE_FILES


CLASSIFICATION_RULES: List[Tuple[Predicate, ChangeGroup]] = [
    (is_ci_config, ChangeGroup.CI),
    (is_documentation, ChangeGroup.DOCS),
    (is_test, ChangeGroup.TESTS),
    (is_lockfile, ChangeGroup.DEPS),
    (is_build_config, ChangeGroup.BUILD),
    (is_chore, ChangeGroup.CHORE),
]


def classify_file(file_path: str) -> ChangeGroup:
    """Classify a changed file into exactly one :class:`ChangeGroup`.

    Parameters
    ----------
    file_path : str
        Path to the changed file relative to the repository root, using
        ``/`` as separator. A leading ``./`` is ignored.

    Returns
    -------
    ChangeGroup
        The group of the first rule in :data:`CLASSIFICATION_RULES` that
        matches, or :attr:`ChangeGroup.CODE` when none does.
    """
    path = normalize_path(file_path)
    for predicate, group in CLASSIFICATION_RULES:
        if predicate(path):
            return group
    return ChangeGroup.CODE
