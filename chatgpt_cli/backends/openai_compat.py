"""
OpenAI-compatible chat-completion client.

Posts {model, messages} to a single chat-completions URL and reads back
either a completion or a provider error object. The URL is used exactly as
configured (OPENAI_API_BASE), so any endpoint speaking the OpenAI format works.

Three failure modes stay apart:
  - provider error   the body carries {"error": {"message": ...}}  -> CompletionResult(ok=False)
  - transport error  no usable HTTP exchange (connect, timeout)     -> TransportError
  - unexpected shape an answer we can't read                       -> UnexpectedResponseShapeError
"""

from __future__ import annotations

import logging
import time
from typing import Sequence

import httpx

from chatgpt_cli.backends.base import BaseClient, CompletionResult
from chatgpt_cli.errors import TransportError, UnexpectedResponseShapeError
from chatgpt_cli.storage.models import Message

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.openai.com/v1/chat/completions/"


def _require(value, kind: type, where: str):
    # bool is an int subclass; never a token count
    if not isinstance(value, kind) or isinstance(value, bool):
        raise UnexpectedResponseShapeError(
            f"Response field {where} should be {kind.__name__}, "
            f"got {type(value).__name__}"
        )
    if kind is int and value < 0:
        raise UnexpectedResponseShapeError(f"Response field {where} is negative: {value}")
    return value


class OpenAICompatibleClient(BaseClient):
    """Client for a single OpenAI-style /chat/completions endpoint."""

    def __init__(self, url: str = DEFAULT_API_BASE, api_key: str = "", timeout: float = 120):
        super().__init__(url, api_key, timeout)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def complete(
        self,
        model: str,
        messages: Sequence[Message],
        timeout: float | None = None,
    ) -> CompletionResult:
        """Send the request and parse the reply. No retries."""
        timeout = self.timeout if timeout is None else timeout
        body = {
            "model": model,
            "messages": [m.to_openai_format() for m in messages],
        }

        t0 = time.monotonic()
        try:
            with httpx.Client(timeout=timeout) as client:
                resp = client.post(self.url, json=body, headers=self._headers())
        except httpx.TimeoutException as e:
            latency = (time.monotonic() - t0) * 1000
            logger.warning("Request to %s timed out after %.0fms", self.url, latency)
            raise TransportError(f"Timeout after {timeout}s talking to {self.url}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Request to %s failed: %s", self.url, e)
            raise TransportError(f"Request to {self.url} failed: {e}") from e

        latency = (time.monotonic() - t0) * 1000
        logger.info(
            "POST %s -> HTTP %d in %.0fms (%d messages, model=%s)",
            self.url, resp.status_code, latency, len(messages), model,
        )
        return self.parse_response(resp, latency)

    @staticmethod
    def parse_response(resp: httpx.Response, latency_ms: float = 0.0) -> CompletionResult:
        """
        Turn an HTTP response into a CompletionResult.

        A provider error object wins regardless of HTTP status. Every other
        field is required: nothing is defaulted.
        """
        try:
            data = resp.json()
        except ValueError as e:
            raise UnexpectedResponseShapeError(
                f"HTTP {resp.status_code}: body is not JSON: {resp.text[:200]!r}"
            ) from e

        if not isinstance(data, dict):
            raise UnexpectedResponseShapeError(
                f"HTTP {resp.status_code}: expected a JSON object, got {type(data).__name__}"
            )

        error = data.get("error")
        if isinstance(error, dict):
            message = _require(error.get("message"), str, "error.message")
            logger.info("Provider returned an error (HTTP %d): %s", resp.status_code, message)
            return CompletionResult(
                ok=False,
                error=message,
                status_code=resp.status_code,
                latency_ms=latency_ms,
            )

        try:
            answer = data["choices"][0]["message"]["content"]
            usage = data["usage"]
            prompt_tokens = usage["prompt_tokens"]
            completion_tokens = usage["completion_tokens"]
        except (KeyError, IndexError, TypeError) as e:
            raise UnexpectedResponseShapeError(
                f"HTTP {resp.status_code}: response is missing {e}"
            ) from e

        return CompletionResult(
            ok=True,
            answer=_require(answer, str, "choices[0].message.content"),
            prompt_tokens=_require(prompt_tokens, int, "usage.prompt_tokens"),
            completion_tokens=_require(completion_tokens, int, "usage.completion_tokens"),
            status_code=resp.status_code,
            latency_ms=latency_ms,
        )
