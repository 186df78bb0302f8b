"""
Base completion client abstraction.
The session talks to this interface, so tests and alternative endpoints
can stand in for the real HTTP client.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Sequence

from chatgpt_cli.storage.models import Message

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    """
    Outcome of a completion call that reached the provider.

    ok=True   answer, prompt_tokens and completion_tokens are set.
    ok=False  the provider returned a structured error; `error` holds its message.

    Transport failures and unreadable responses are raised, never returned.
    """
    ok: bool
    answer: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    error: str = ""
    status_code: int = 200
    latency_ms: float = 0.0


class BaseClient(abc.ABC):
    """Abstract base for chat-completion clients."""

    def __init__(self, url: str, api_key: str, timeout: float = 120):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    @abc.abstractmethod
    def complete(
        self,
        model: str,
        messages: Sequence[Message],
        timeout: float | None = None,
    ) -> CompletionResult:
        """
        Send one chat-completion request.
        Returns a CompletionResult, or raises TransportError /
        UnexpectedResponseShapeError.
        """
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} url={self.url!r} timeout={self.timeout}>"
