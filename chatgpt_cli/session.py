"""
Session driver: one prompt, one answer, one log update.

    load log -> select window -> request -> print -> append -> persist

Strictly sequential. Any AskError raised along the way propagates to the
caller untouched; the log is only written after a successful completion.
A provider error is printed and reported as a non-ok outcome, with the
log left alone.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TextIO

from chatgpt_cli.backends.base import BaseClient
from chatgpt_cli.config import Config
from chatgpt_cli.history import build_messages
from chatgpt_cli.storage.log_store import LogStore

logger = logging.getLogger(__name__)


@dataclass
class SessionOutcome:
    ok: bool
    answer: str = ""
    error: str = ""
    entries_written: int = 0


class Session:
    """Runs a single exchange against the configured endpoint."""

    def __init__(
        self,
        config: Config,
        client: BaseClient,
        store: LogStore,
        out: TextIO | None = None,
        on_wait=None,
    ):
        self.config = config
        self.client = client
        self.store = store
        self.out = out or sys.stdout
        # Optional context-manager factory wrapped around the network call
        self.on_wait = on_wait

    def _request(self, messages):
        if self.on_wait is None:
            return self.client.complete(
                self.config.model, messages, timeout=self.config.request_timeout
            )
        with self.on_wait():
            return self.client.complete(
                self.config.model, messages, timeout=self.config.request_timeout
            )

    def run(self, prompt: str) -> SessionOutcome:
        entries = self.store.load()
        messages = build_messages(entries, prompt, self.config.token_budget)
        logger.debug(
            "Sending %d messages (%d from history) to %s",
            len(messages), len(messages) - 1, self.config.model,
        )

        result = self._request(messages)

        if not result.ok:
            print(result.error, file=self.out)
            logger.info("Provider error, log left untouched: %s", result.error)
            return SessionOutcome(ok=False, error=result.error)

        print(result.answer, file=self.out)

        entries = LogStore.append(entries, "user", prompt, result.prompt_tokens)
        entries = LogStore.append(entries, "assistant", result.answer, result.completion_tokens)
        self.store.persist(entries)
        logger.info(
            "Logged exchange: prompt %d tokens, answer %d tokens",
            result.prompt_tokens, result.completion_tokens,
        )
        return SessionOutcome(ok=True, answer=result.answer, entries_written=2)
