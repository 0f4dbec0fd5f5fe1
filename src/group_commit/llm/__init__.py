"""
Language model integration for group_commit.

This package contains the :class:`OllamaClient` for communicating with
an Ollama LLM server and the :class:`CommitMessageSuggester` which uses
it to propose better commit messages for change groups.
"""

from .ollama_client import OllamaClient, LLMError  # noqa: F401
from .commit_message_suggester import CommitMessageSuggester  # noqa: F401
