"""
Client for interacting with an Ollama LLM server.

This client wraps HTTP requests to the Ollama REST API. It sends a
system/user conversation to the ``/api/chat`` endpoint. On error
conditions (HTTP errors, timeouts, unexpected payloads), a
:class:`LLMError` is raised.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests


logger = logging.getLogger(__name__)
# Attach a null handler to avoid errors when the root logger is missing a
# stream. Messages will still propagate to the root logger if configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class LLMError(Exception):
    """Raised when communication with the LLM server fails."""

    pass


_THINKING_PATTERNS = [
    r"<think>.*?</think>",
    r"<thinking>.*?</thinking>",
    r"<thought>.*?</thought>",
    r"<reasoning>.*?</reasoning>",
]


def strip_thinking_tags(text: str) -> str:
    """Remove reasoning blocks such as ``<think>...</think>`` from ``text``.

    >>> strip_thinking_tags("<think>reasoning...</think>Answer")
    'Answer'
    """
    result = text
    for pattern in _THINKING_PATTERNS:
        result = re.sub(pattern, "", result, flags=re.DOTALL | re.IGNORECASE)
    return result.strip()


@dataclass
class OllamaClient:
    """Client for interacting with an Ollama server.

    Parameters
    ----------
    base_url : str
        Base URL of the Ollama server, e.g. ``"http://localhost"``.
    port : int
        Port number of the Ollama server, e.g. ``11434``.
    model : str
        Name of the model to use for generation, e.g. ``"llama3.2"``.
    request_timeout : float, optional
        Timeout in seconds for HTTP requests. Defaults to 20 seconds.
    max_tokens : int, optional
        Maximum number of tokens to generate, sent as ``num_predict``.
    temperature : float, optional
        Sampling temperature.
    """

    base_url: str
    port: int
    model: str
    request_timeout: float = 20.0
    max_tokens: Optional[int] = 256
    temperature: Optional[float] = 0.2

    def _endpoint(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}:{self.port}{path}"

    def _options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        if self.max_tokens is not None:
            options["num_predict"] = self.max_tokens
        if self.temperature is not None:
            options["temperature"] = self.temperature
        return options

    def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug("Sending request to LLM at %s with payload: %s", url, payload)
        try:
            response = requests.post(url, json=payload, timeout=self.request_timeout)
        except requests.RequestException as exc:
            logger.error("Failed to connect to LLM: %s", exc)
            raise LLMError(str(exc)) from exc
        if response.status_code != 200:
            logger.error(
                "LLM returned non-200 status %s: %s", response.status_code, response.text
            )
            raise LLMError(f"LLM returned status {response.status_code}: {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Failed to parse LLM response: %s", exc)
            raise LLMError("Failed to parse LLM response") from exc
        if not isinstance(data, dict):
            raise LLMError("Unexpected response structure from LLM")
        return data

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        # Older servers answer in 'response' instead of 'message.content'.
        if "response" in data:
            return strip_thinking_tags(str(data.get("response", "")).strip())
        if "message" in data and isinstance(data["message"], dict):
            return strip_thinking_tags(str(data["message"].get("content", "")).strip())
        raise LLMError("Unexpected response structure from LLM")

    def chat(self, system_prompt: str, user_prompt: str, json_mode: bool = True) -> str:
        """Run a two-message conversation and return the assistant's reply.

        In ``json_mode`` the server is asked to answer with a JSON object.

        Raises
        ------
        LLMError
            If the request fails or the server returns an error.
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "stream": False,
        }
        if json_mode:
            payload["format"] = "json"
        options = self._options()
        if options:
            payload["options"] = options
        return self._extract_text(self._post(self._endpoint("/api/chat"), payload))
