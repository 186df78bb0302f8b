from chatgpt_cli.storage.models import LogEntry, Message
from chatgpt_cli.storage.log_store import LogStore

__all__ = ["LogEntry", "Message", "LogStore"]
