"""
Rolling history window: what of the log goes out with the next request.

Scans the log newest to oldest and keeps every entry that still fits the
token budget. An entry that doesn't fit is skipped, not a stopping point:
one oversized turn shouldn't hide the smaller turns before it. The new
prompt is appended after the window and never counts against the budget.

Windowing only shapes the request. The stored log is never modified here.
"""
from __future__ import annotations

import logging
from typing import Sequence

from chatgpt_cli.storage.models import LogEntry, Message

logger = logging.getLogger(__name__)

MAX_HISTORY_TOKENS = 2000


def select_window(entries: Sequence[LogEntry], budget: int = MAX_HISTORY_TOKENS) -> list[Message]:
    """Most recent entries whose tokens sum to <= budget, oldest first."""
    total = 0
    picked: list[Message] = []
    for entry in reversed(entries):
        if total + entry.tokens > budget:
            continue
        total += entry.tokens
        picked.append(entry.to_message())
    picked.reverse()

    logger.debug(
        "history window: %d of %d entries, %d/%d tokens",
        len(picked), len(entries), total, budget,
    )
    return picked


def build_messages(
    entries: Sequence[LogEntry],
    prompt: str,
    budget: int = MAX_HISTORY_TOKENS,
) -> list[Message]:
    """The history window followed by the new user prompt."""
    messages = select_window(entries, budget)
    messages.append(Message(role="user", content=prompt))
    return messages
