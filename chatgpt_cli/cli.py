#!/usr/bin/env python3
"""
ask: talk to a chat-completion API from the shell, with memory.

    ask what is the capital of france
    ask -m gpt-4 and of spain?

Every exchange is appended to ~/.ask/ask_log.json. The most recent turns
that fit a 2000-token budget are sent along with each new prompt.

Environment:
    OPENAI_API_KEY                     required
    OPENAI_API_BASE                    chat-completions URL
    CHATGPT_CLI_MODEL                  model when --model is not given
    CHATGPT_CLI_REQUEST_TIMEOUT_SECS   request timeout (default 120)
"""

import argparse
import logging
import sys
from contextlib import nullcontext
from pathlib import Path

from rich.console import Console

from chatgpt_cli import __version__
from chatgpt_cli.errors import AskError, StartupConfigError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _setup_logging(level: str = "WARNING", log_file: str | None = None):
    level = getattr(logging, level.upper(), logging.WARNING)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(path))
        except OSError as e:
            raise StartupConfigError(f"Cannot open debug log {path}: {e}") from e

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def _waiting(console: Console | None = None):
    """Spinner on stderr while the request is in flight, if a person is watching."""
    console = console or Console(stderr=True)
    if not console.is_terminal:
        return nullcontext()
    return console.status("Waiting for the model...", spinner="dots")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ask",
        description="Send a prompt to a chat-completion API and keep the conversation.",
        epilog=(
            "Options may appear anywhere among the prompt words.\n"
            "Example: 'ask -m gpt-4 explain monads briefly'"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V", action="version",
        version=f"ask {__version__}",
    )
    parser.add_argument("--model", "-m", default=None,
                        help="Model to use (default: $CHATGPT_CLI_MODEL or gpt-3.5-turbo)")
    parser.add_argument("--log-path", default=None,
                        help="Conversation log file (default: ~/.ask/ask_log.json)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging on stderr")
    parser.add_argument("prompt", nargs="+", help="The prompt to send")
    return parser


def main(argv: list[str] | None = None) -> int:
    from chatgpt_cli.backends.openai_compat import OpenAICompatibleClient
    from chatgpt_cli.config import Config, load_env_file
    from chatgpt_cli.session import Session
    from chatgpt_cli.storage.log_store import LogStore

    args = build_parser().parse_intermixed_args(argv)
    prompt = " ".join(args.prompt)

    load_env_file()

    try:
        cfg = Config.load(model_override=args.model, log_path_override=args.log_path)
        _setup_logging("DEBUG" if args.verbose else cfg.log_level, cfg.debug_log_file)
        for warning in cfg.warnings:
            logger.warning("%s", warning)
        logger.debug("Config: %r", cfg)

        client = OpenAICompatibleClient(
            url=cfg.api_base,
            api_key=cfg.api_key,
            timeout=cfg.request_timeout,
        )
        session = Session(cfg, client, LogStore(cfg.log_path), on_wait=_waiting)
        session.run(prompt)
    except AskError as e:
        logger.debug("Fatal: %s", e, exc_info=True)
        print(f"  ✗  {e}", file=sys.stderr)
        return EXIT_FATAL

    # A provider error is still a clean exit: the message was shown to the user
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
