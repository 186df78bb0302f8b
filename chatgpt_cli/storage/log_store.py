"""
JSON file storage for the conversation log.

The log is logically append-only, physically a single JSON array that is
read whole at session start and rewritten whole at session end. The
rewrite is a plain overwrite, not a transactional write: a crash mid-write
can leave a truncated file, which the next load() reports as LogReadError.

No locking. Two sessions running at once against the same path race, and
the last writer's copy wins.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from chatgpt_cli.errors import LogReadError, LogWriteError
from chatgpt_cli.storage.models import ROLES, LogEntry

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = Path.home() / ".ask" / "ask_log.json"


class LogStore:
    """Reads and writes the per-user conversation log."""

    def __init__(self, log_path: str | Path = DEFAULT_LOG_PATH):
        self.log_path = Path(log_path).expanduser()

    def _ensure_dir(self):
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LogWriteError(
                f"Cannot create log directory {self.log_path.parent}: {e}"
            ) from e

    def load(self) -> list[LogEntry]:
        """
        Return every entry in the log, oldest first.
        A missing or empty file is an empty log, not an error.
        """
        self._ensure_dir()
        if not self.log_path.exists():
            logger.debug("No log at %s, starting fresh", self.log_path)
            return []

        try:
            text = self.log_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LogReadError(f"Cannot read log {self.log_path}: {e}") from e

        if not text.strip():
            return []

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise LogReadError(f"Log {self.log_path} is not valid JSON: {e}") from e

        if not isinstance(raw, list):
            raise LogReadError(
                f"Log {self.log_path} should hold a JSON array, "
                f"found {type(raw).__name__}"
            )

        entries = []
        for i, item in enumerate(raw):
            try:
                entries.append(LogEntry.from_dict(item))
            except ValueError as e:
                raise LogReadError(f"Log {self.log_path}, entry {i}: {e}") from e

        logger.debug("Loaded %d entries from %s", len(entries), self.log_path)
        return entries

    def persist(self, entries: list[LogEntry]):
        """Overwrite the log file with the full sequence of entries."""
        self._ensure_dir()
        data = [e.to_dict() for e in entries]
        try:
            # Encode before opening: a failure must not truncate the old log
            payload = json.dumps(data, ensure_ascii=False).encode("utf-8")
            self.log_path.write_bytes(payload)
        except (OSError, ValueError) as e:
            raise LogWriteError(f"Cannot write log {self.log_path}: {e}") from e
        logger.debug("Persisted %d entries to %s", len(entries), self.log_path)

    @staticmethod
    def append(entries: list[LogEntry], role: str, content: str, tokens: int) -> list[LogEntry]:
        """Return a new list with a freshly timestamped entry at the end."""
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role!r}")
        return entries + [LogEntry(role=role, content=content, tokens=tokens)]
