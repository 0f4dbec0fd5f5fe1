"""
Commit message synthesis and validation.

See :mod:`group_commit.messages.formatter` for building messages and
:mod:`group_commit.messages.linter` for checking them.
"""

from .formatter import build_group_message, format_message  # noqa: F401
from .linter import check_message_format  # noqa: F401
