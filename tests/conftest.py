"""
Shared fixtures for the ask test suite.
"""

import pytest

from chatgpt_cli.storage.models import LogEntry


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Environment with no ask-related variables and no user config file."""
    for var in (
        "OPENAI_API_KEY",
        "OPENAI_API_BASE",
        "CHATGPT_CLI_MODEL",
        "CHATGPT_CLI_REQUEST_TIMEOUT_SECS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("chatgpt_cli.config.DEFAULT_CONFIG_PATH", tmp_path / "no-config.yaml")
    monkeypatch.setattr("chatgpt_cli.config.DEFAULT_LOG_PATH", tmp_path / "home" / ".ask" / "ask_log.json")
    monkeypatch.setattr("chatgpt_cli.config.load_env_file", lambda path=None: None)
    return monkeypatch


def make_entries(*token_counts, role_cycle=("user", "assistant")):
    """Build a log whose entries carry the given token counts, oldest first."""
    return [
        LogEntry(
            role=role_cycle[i % len(role_cycle)],
            content=f"turn {i}",
            tokens=n,
            timestamp=f"2026-01-01T00:00:{i:02d}+00:00",
        )
        for i, n in enumerate(token_counts)
    ]
