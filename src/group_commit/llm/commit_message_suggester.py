"""
AI-assisted commit message suggestions.

The :class:`CommitMessageSuggester` asks an LLM (via
:class:`OllamaClient`) for a better message for one change group. The
model is expected to answer with a JSON object of the form::

    {"commit_type": "...", "short": "...", "scope": "...",
     "long": "...", "message": "..."}

where every field is optional. A complete ``message`` wins; otherwise a
message is synthesised from the individual fields, falling back to the
group defaults. The candidate must pass
:func:`~group_commit.messages.linter.check_message_format`.

Suggestions never fail an invocation: any LLM, parsing or lint problem
is logged and ``None`` is returned so that the caller keeps its default
message.
"""

from __future__ import annotations

import json
import logging
from textwrap import dedent
from typing import Any, Dict, List, Optional, Tuple

from group_commit.grouping.group_model import ChangeGroup
from group_commit.llm.ollama_client import LLMError, OllamaClient
from group_commit.messages.formatter import default_short_summary, format_message
from group_commit.messages.linter import check_message_format


logger = logging.getLogger(__name__)
# Attach a null handler to prevent logging errors when no handlers are
# configured on the root logger. Logs will propagate when configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


DEFAULT_SYSTEM_PROMPT = dedent(
    """
    You are a commit message assistant. Generate conventional commit messages.
    Return a JSON object with the fields "commit_type", "short", "scope", "long"
    and "message". If "message" is present, it must be a full commit message
    whose first line is formatted as '<type>(<scope>): <short>' (scope optional).
    """
).strip()

DEFAULT_FILE_LIMIT = 20


class CommitMessageSuggester:
    """Suggest commit messages for change groups using an LLM.

    Parameters
    ----------
    ollama_client : OllamaClient
        Client used to talk to the model.
    system_prompt : str, optional
        Replaces :data:`DEFAULT_SYSTEM_PROMPT`.
    json_mode : bool
        Ask for a JSON answer. When False the first non-empty line of the
        answer is used as the message header.
    allow_sensitive : bool
        Include file names in the prompt. Off by default so that no
        repository content leaves the machine.
    file_limit : int
        Maximum number of file names included when ``allow_sensitive``.
    """

    def __init__(
        self,
        ollama_client: OllamaClient,
        system_prompt: Optional[str] = None,
        json_mode: bool = True,
        allow_sensitive: bool = False,
        file_limit: int = DEFAULT_FILE_LIMIT,
    ) -> None:
        self.ollama_client = ollama_client
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.json_mode = json_mode
        self.allow_sensitive = allow_sensitive
        self.file_limit = file_limit

    @classmethod
    def from_config(cls, ai: Dict[str, Any]) -> "CommitMessageSuggester":
        """Build a suggester from the validated ``ai`` configuration section."""
        client = OllamaClient(
            base_url=ai["base_url"],
            port=ai["port"],
            model=ai["model"],
            request_timeout=float(ai.get("request_timeout", 20)),
            max_tokens=ai.get("max_tokens", 256),
            temperature=ai.get("temperature", 0.2),
        )
        return cls(
            client,
            system_prompt=ai.get("system_prompt"),
            json_mode=ai.get("json_mode", True),
            allow_sensitive=ai.get("allow_sensitive", False),
            file_limit=ai.get("file_limit", DEFAULT_FILE_LIMIT),
        )

    def _build_user_prompt(self, group: ChangeGroup, commit_type: str, files: List[str]) -> str:
        header = (
            f"Group: {group.value}\n"
            f"Default type: {commit_type}\n"
            f"Default short: {default_short_summary(group)}\n"
        )
        if not self.allow_sensitive:
            return header + (
                "Without revealing code or filenames, suggest a better short "
                "description if needed. Return JSON."
            )
        preview = files[: self.file_limit]
        if len(files) > self.file_limit:
            preview = preview + ["..."]
        return header + (
            "Files (truncated):\n- "
            + "\n- ".join(preview)
            + "\nReturn a JSON object with fields: commit_type, short, scope, long, message."
        )

    def _message_from_json(self, text: str, group: ChangeGroup, commit_type: str) -> str:
        data = json.loads(text.strip())
        if not isinstance(data, dict):
            raise ValueError("suggestion is not a JSON object")
        message = data.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
        return format_message(
            data.get("commit_type") or commit_type,
            data.get("short") or default_short_summary(group),
            scope=data.get("scope") or None,
            long=data.get("long") or None,
        )

    def suggest(
        self, group: ChangeGroup, commit_type: str, files: List[str]
    ) -> Optional[Tuple[str, str]]:
        """Return ``(commit_type, message)`` suggested for ``group``, or ``None``.

        The returned type is the one found in the suggested header.
        """
        user_prompt = self._build_user_prompt(group, commit_type, files)
        try:
            text = self.ollama_client.chat(self.system_prompt, user_prompt, json_mode=self.json_mode)
        except LLMError as exc:
            logger.warning("AI suggestion failed for group '%s': %s; keeping default.", group.value, exc)
            return None

        if self.json_mode:
            try:
                candidate = self._message_from_json(text, group, commit_type)
            except ValueError as exc:
                logger.warning(
                    "AI suggestion for group '%s' is not valid JSON: %s; keeping default.",
                    group.value,
                    exc,
                )
                return None
        else:
            lines = [line.strip() for line in text.splitlines() if line.strip()]
            if not lines:
                logger.warning("AI suggestion for group '%s' is empty; keeping default.", group.value)
                return None
            candidate = lines[0]

        issues = check_message_format(candidate)
        if issues:
            logger.warning(
                "AI suggestion for group '%s' failed lint: %s; keeping default.",
                group.value,
                "; ".join(issues),
            )
            return None
        if not candidate.endswith("\n"):
            candidate += "\n"
        suggested_type = candidate.split(":", 1)[0].split("(", 1)[0].rstrip("!")
        return suggested_type, candidate
