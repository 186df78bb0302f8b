"""
Tests for the rolling history window.
Run with: pytest tests/test_history.py
"""

import pytest

from chatgpt_cli.history import MAX_HISTORY_TOKENS, build_messages, select_window
from chatgpt_cli.storage.models import Message

from conftest import make_entries


def _contents(messages):
    return [m.content for m in messages]


# ---------------------------------------------------------------------------
# select_window
# ---------------------------------------------------------------------------

def test_empty_log_gives_empty_window():
    assert select_window([], 2000) == []


def test_everything_fits():
    """A small log is sent whole, oldest first."""
    entries = make_entries(10, 20, 30)
    window = select_window(entries, 2000)
    assert _contents(window) == ["turn 0", "turn 1", "turn 2"]
    assert [m.role for m in window] == ["user", "assistant", "user"]


def test_keeps_most_recent_within_budget():
    """Oldest entries fall off once the budget is used up."""
    entries = make_entries(500, 500, 500, 500, 500)
    window = select_window(entries, 1600)
    assert _contents(window) == ["turn 2", "turn 3", "turn 4"]


def test_budget_is_inclusive():
    entries = make_entries(1000, 1000)
    assert len(select_window(entries, 2000)) == 2
    assert len(select_window(entries, 1999)) == 1


def test_oversized_entry_skipped_scan_continues():
    """
    Three recent entries sum to 1800, the 4th-most-recent alone is 2200.
    It is skipped and older entries that still fit are picked up.
    """
    entries = make_entries(200, 50, 2200, 600, 600, 600)
    window = select_window(entries, 2000)
    assert _contents(window) == ["turn 1", "turn 3", "turn 4", "turn 5"]
    assert "turn 2" not in _contents(window)
    # 200 no longer fits after 1800 + 50
    assert "turn 0" not in _contents(window)


def test_gap_in_the_middle_keeps_order():
    entries = make_entries(100, 1900, 100, 1850)
    window = select_window(entries, 2000)
    # newest 1850, 100 -> 1950; 1900 skipped; 100 no longer fits (2050)
    assert _contents(window) == ["turn 2", "turn 3"]


def test_zero_token_entries_always_included():
    entries = make_entries(0, 2000, 0, 0)
    window = select_window(entries, 2000)
    assert _contents(window) == ["turn 0", "turn 1", "turn 2", "turn 3"]


def test_zero_budget_still_takes_zero_token_entries():
    entries = make_entries(5, 0, 7)
    assert _contents(select_window(entries, 0)) == ["turn 1"]


def test_window_never_exceeds_budget():
    """Across a spread of logs and budgets the window stays under budget."""
    counts = [7, 300, 1200, 0, 45, 2500, 999, 1, 640, 333, 1800, 12]
    entries = make_entries(*counts)
    by_content = {e.content: e.tokens for e in entries}
    for budget in (0, 1, 50, 500, 1000, 2000, 2500, 10_000):
        window = select_window(entries, budget)
        assert sum(by_content[m.content] for m in window) <= budget
        # chronological order preserved
        positions = [int(m.content.split()[1]) for m in window]
        assert positions == sorted(positions)


def test_window_does_not_touch_log():
    entries = make_entries(3000, 10)
    before = list(entries)
    select_window(entries, 2000)
    assert entries == before


# ---------------------------------------------------------------------------
# build_messages
# ---------------------------------------------------------------------------

def test_empty_log_sends_only_prompt():
    messages = build_messages([], "hello", 2000)
    assert messages == [Message(role="user", content="hello")]
    assert [m.to_openai_format() for m in messages] == [{"role": "user", "content": "hello"}]


def test_prompt_appended_last():
    entries = make_entries(10, 20)
    messages = build_messages(entries, "next question", 2000)
    assert _contents(messages) == ["turn 0", "turn 1", "next question"]
    assert messages[-1].role == "user"


def test_prompt_never_truncated():
    """Budget applies to history only."""
    huge = "word " * 50_000
    messages = build_messages(make_entries(2000), huge, 2000)
    assert messages[-1].content == huge
    assert len(messages) == 2


def test_default_budget():
    assert MAX_HISTORY_TOKENS == 2000
    entries = make_entries(1500, 600)
    assert _contents(build_messages(entries, "p")) == ["turn 1", "p"]
