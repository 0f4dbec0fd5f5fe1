#!/usr/bin/env python
"""
Thin wrapper script to invoke the group_commit CLI.

Running ``python group_commit_cli.py`` is equivalent to running the
``group-commit`` console script installed via ``pyproject.toml``.
"""

from group_commit.cli import main


if __name__ == "__main__":
    main(prog_name="group-commit")
