"""
Data models for the conversation log.
These define the shape of data on disk and on the wire.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone

ROLES = ("user", "assistant", "system")

_FIELDS = {
    "timestamp": str,
    "role": str,
    "content": str,
    "tokens": int,
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Message:
    """A role + content pair, the unit sent to the completion endpoint."""
    role: str
    content: str

    def to_openai_format(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class LogEntry:
    """One historical turn in the conversation log."""
    role: str = ""           # "user", "assistant", "system"
    content: str = ""
    tokens: int = 0          # As reported by the provider
    timestamp: str = field(default_factory=_now)

    def __post_init__(self):
        if self.tokens < 0:
            raise ValueError(f"tokens must be >= 0, got {self.tokens}")

    def to_message(self) -> Message:
        return Message(role=self.role, content=self.content)

    def to_dict(self) -> dict:
        """On-disk representation. Key order is stable."""
        return {
            "timestamp": self.timestamp,
            "role": self.role,
            "content": self.content,
            "tokens": self.tokens,
        }

    @classmethod
    def from_dict(cls, data) -> "LogEntry":
        """
        Build an entry from its on-disk dict.
        Raises ValueError if any field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")
        for name, expected in _FIELDS.items():
            if name not in data:
                raise ValueError(f"missing field '{name}'")
            value = data[name]
            # bool is an int subclass; it is not a token count
            if not isinstance(value, expected) or isinstance(value, bool):
                raise ValueError(
                    f"field '{name}' should be {expected.__name__}, "
                    f"got {type(value).__name__}"
                )
        return cls(
            role=data["role"],
            content=data["content"],
            tokens=data["tokens"],
            timestamp=data["timestamp"],
        )
