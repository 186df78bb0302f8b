"""
Error taxonomy for the ask client.

Everything the CLI treats as fatal derives from AskError. Provider-side
failures are not exceptions: they come back as a CompletionResult with
ok=False so the caller decides what they mean.
"""

from __future__ import annotations


class AskError(Exception):
    """Base class for fatal errors raised by the client."""


class StartupConfigError(AskError):
    """Configuration is missing or unusable (e.g. no OPENAI_API_KEY)."""


class LogReadError(AskError):
    """The persisted conversation log exists but cannot be read or parsed."""


class LogWriteError(AskError):
    """The conversation log could not be written."""


class TransportError(AskError):
    """The request never produced a response (connection failure, timeout)."""


class UnexpectedResponseShapeError(AskError):
    """The endpoint answered, but not in a shape we know how to read."""
