"""
Chat-completion clients.
"""
from chatgpt_cli.backends.base import BaseClient, CompletionResult
from chatgpt_cli.backends.openai_compat import OpenAICompatibleClient

__all__ = [
    "BaseClient",
    "CompletionResult",
    "OpenAICompatibleClient",
]
