"""
Config loader for ask.

Built once at startup by the CLI and passed down explicitly; nothing here
caches state between calls.

Sources, lowest precedence first:
  1. built-in defaults
  2. ~/.ask/config.yaml (optional, ${ENV_VAR} references are resolved)
  3. environment variables (a .env next to the executable is loaded first)
  4. command-line flags (passed in as overrides)
"""

import logging
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

from chatgpt_cli.backends.openai_compat import DEFAULT_API_BASE
from chatgpt_cli.errors import StartupConfigError
from chatgpt_cli.history import MAX_HISTORY_TOKENS
from chatgpt_cli.storage.log_store import DEFAULT_LOG_PATH

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TIMEOUT_SECS = 120
DEFAULT_CONFIG_PATH = Path.home() / ".ask" / "config.yaml"

ENV_API_KEY = "OPENAI_API_KEY"
ENV_API_BASE = "OPENAI_API_BASE"
ENV_MODEL = "CHATGPT_CLI_MODEL"
ENV_TIMEOUT = "CHATGPT_CLI_REQUEST_TIMEOUT_SECS"


def _resolve_env_vars(value: str, env) -> str:
    """Replace ${ENV_VAR} patterns with actual environment variable values."""
    def replacer(match):
        return env.get(match.group(1), "")
    return re.sub(r"\$\{(\w+)\}", replacer, value)


def _walk_and_resolve(obj, env):
    """Recursively resolve env vars in all string values."""
    if isinstance(obj, dict):
        return {k: _walk_and_resolve(v, env) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_walk_and_resolve(v, env) for v in obj]
    elif isinstance(obj, str):
        return _resolve_env_vars(obj, env)
    return obj


def load_env_file(path: Path | None = None) -> Path:
    """
    Load a .env file into os.environ without overriding existing values.
    Defaults to the .env beside the running executable, or ./.env if the
    executable's location can't be determined.
    """
    if path is None:
        try:
            path = Path(sys.argv[0]).resolve().parent / ".env"
        except (OSError, IndexError) as e:
            logger.debug("Cannot locate executable (%s), using ./.env", e)
            path = Path(".env")
    load_dotenv(path, override=False)
    return path


def load_yaml_config(path: Path, env=None) -> dict:
    """Read the optional YAML config. A missing file is an empty config."""
    env = os.environ if env is None else env
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise StartupConfigError(f"Cannot read config {path}: {e}") from e
    if not isinstance(raw, dict):
        raise StartupConfigError(f"Config {path} should be a mapping")
    return _walk_and_resolve(raw, env)


def _parse_timeout(raw, source: str, warnings: list[str]) -> int:
    # Warnings are collected, not logged: logging isn't configured yet
    if isinstance(raw, bool):
        raw = str(raw)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        warnings.append(
            f"Ignoring {source}={raw!r} (not an integer), using {DEFAULT_TIMEOUT_SECS}s"
        )
        return DEFAULT_TIMEOUT_SECS
    if value <= 0:
        warnings.append(f"Ignoring {source}={raw!r} (must be positive), using {DEFAULT_TIMEOUT_SECS}s")
        return DEFAULT_TIMEOUT_SECS
    return value


def _typed(cfg: dict, key: str, kind, where: str = ""):
    """cfg[key] if present and of the given type, else StartupConfigError."""
    value = cfg.get(key)
    if value is None:
        return None
    if not isinstance(value, kind):
        raise StartupConfigError(
            f"{where}{key} must be {kind.__name__}, got {type(value).__name__}: {value!r}"
        )
    return value


@dataclass(frozen=True)
class Config:
    api_key: str
    api_base: str = DEFAULT_API_BASE
    model: str = DEFAULT_MODEL
    request_timeout: int = DEFAULT_TIMEOUT_SECS
    token_budget: int = MAX_HISTORY_TOKENS
    log_path: Path = DEFAULT_LOG_PATH
    log_level: str = "WARNING"
    debug_log_file: str | None = None
    # Problems worth a warning once logging is set up
    warnings: tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def load(
        cls,
        model_override: str | None = None,
        log_path_override: str | None = None,
        env=None,
        config_path: Path | None = None,
    ) -> "Config":
        """
        Assemble the config from all sources.
        Raises StartupConfigError when OPENAI_API_KEY is missing or a
        config.yaml value has the wrong type.
        """
        env = os.environ if env is None else env
        file_cfg = load_yaml_config(config_path or DEFAULT_CONFIG_PATH, env)
        warnings: list[str] = []

        api_key = env.get(ENV_API_KEY, "")
        if not api_key:
            raise StartupConfigError(f"{ENV_API_KEY} not set")

        model = (
            model_override
            or env.get(ENV_MODEL)
            or _typed(file_cfg, "model", str)
            or DEFAULT_MODEL
        )
        api_base = env.get(ENV_API_BASE) or _typed(file_cfg, "api_base", str) or DEFAULT_API_BASE

        if env.get(ENV_TIMEOUT) is not None:
            timeout = _parse_timeout(env[ENV_TIMEOUT], ENV_TIMEOUT, warnings)
        elif file_cfg.get("request_timeout") is not None:
            timeout = _parse_timeout(file_cfg["request_timeout"], "request_timeout", warnings)
        else:
            timeout = DEFAULT_TIMEOUT_SECS

        raw_budget = file_cfg.get("token_budget", MAX_HISTORY_TOKENS)
        if isinstance(raw_budget, bool):
            raise StartupConfigError(f"token_budget must be an integer, got {raw_budget!r}")
        try:
            token_budget = int(raw_budget)
        except (TypeError, ValueError) as e:
            raise StartupConfigError(f"token_budget must be an integer: {e}") from e
        if token_budget < 0:
            raise StartupConfigError("token_budget must be >= 0")

        log_path = Path(
            log_path_override or _typed(file_cfg, "log_path", str) or DEFAULT_LOG_PATH
        ).expanduser()

        log_cfg = _typed(file_cfg, "logging", dict) or {}
        log_level = _typed(log_cfg, "level", str, "logging.") or "WARNING"
        return cls(
            api_key=api_key,
            api_base=api_base,
            model=model,
            request_timeout=timeout,
            token_budget=token_budget,
            log_path=log_path,
            log_level=log_level.upper(),
            debug_log_file=_typed(log_cfg, "file", str, "logging."),
            warnings=tuple(warnings),
        )

    def __repr__(self) -> str:
        # Never print the key
        return (
            f"<Config model={self.model!r} api_base={self.api_base!r} "
            f"timeout={self.request_timeout} budget={self.token_budget} "
            f"log_path={str(self.log_path)!r}>"
        )
