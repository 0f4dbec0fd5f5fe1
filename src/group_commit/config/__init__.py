"""
Configuration for group_commit.

Provides the invocation options object, the git settings and a loader
for the optional per-repository configuration file. See
:mod:`group_commit.config.loader` for implementation details.
"""

from .loader import (  # noqa: F401
    CommitGroupedChangesOptions,
    ConfigError,
    GitSettings,
    load_config,
    parse_group_overrides,
)
