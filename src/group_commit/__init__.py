"""
Top-level package for group_commit.

This package exposes the main CLI entry point via the
``group_commit.cli`` module and the grouped commit workflow via
``group_commit.orchestrator``.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
