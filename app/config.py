"""
Runtime configuration read from environment variables.

All settings have defaults suitable for local development; see
load_settings() for the variable names.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, TypeVar

EMBEDDING_BACKENDS = ("ollama", "sentence-transformers")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

T = TypeVar("T")


class ConfigError(ValueError):
    """An environment variable holds a value that cannot be used."""

    def __init__(self, variable: str, value: str, expected: str) -> None:
        super().__init__(f"Invalid value for {variable}: {value!r} (expected {expected})")
        self.variable = variable
        self.value = value


@dataclass(frozen=True)
class Settings:
    db_path: Path = Path("data/catalog.db")
    embedding_backend: str = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "nomic-embed-text"
    ollama_timeout_s: float = 30.0
    sentence_transformer_model: str = "all-MiniLM-L6-v2"
    log_level: str = "INFO"
    seed_batch_size: int = 50
    seed_max_retries: int = 3
    seed_retry_base_delay_s: float = 1.0


def _read(
    env: Mapping[str, str],
    variable: str,
    default: T,
    parse: Callable[[str], T],
    expected: str,
    check: Optional[Callable[[T], bool]] = None,
) -> T:
    raw = env.get(variable)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = parse(raw.strip())
    except ValueError:
        raise ConfigError(variable, raw, expected) from None
    if check is not None and not check(value):
        raise ConfigError(variable, raw, expected)
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Raises:
        ConfigError: If a variable is malformed or out of range
    """
    env = os.environ if env is None else env
    defaults = Settings()

    return Settings(
        db_path=_read(env, "DB_PATH", defaults.db_path, Path, "a file path"),
        embedding_backend=_read(
            env,
            "EMBEDDING_BACKEND",
            defaults.embedding_backend,
            str.lower,
            f"one of {', '.join(EMBEDDING_BACKENDS)}",
            lambda v: v in EMBEDDING_BACKENDS,
        ),
        ollama_base_url=_read(
            env, "OLLAMA_BASE_URL", defaults.ollama_base_url, str, "a URL"
        ),
        ollama_model=_read(env, "OLLAMA_MODEL", defaults.ollama_model, str, "a model name"),
        ollama_timeout_s=_read(
            env,
            "OLLAMA_TIMEOUT_S",
            defaults.ollama_timeout_s,
            float,
            "a positive number of seconds",
            lambda v: v > 0,
        ),
        sentence_transformer_model=_read(
            env,
            "SENTENCE_TRANSFORMER_MODEL",
            defaults.sentence_transformer_model,
            str,
            "a model name",
        ),
        log_level=_read(
            env,
            "LOG_LEVEL",
            defaults.log_level,
            str.upper,
            f"one of {', '.join(LOG_LEVELS)}",
            lambda v: v in LOG_LEVELS,
        ),
        seed_batch_size=_read(
            env,
            "SEED_BATCH_SIZE",
            defaults.seed_batch_size,
            int,
            "a positive integer",
            lambda v: v > 0,
        ),
        seed_max_retries=_read(
            env,
            "SEED_MAX_RETRIES",
            defaults.seed_max_retries,
            int,
            "a positive integer",
            lambda v: v > 0,
        ),
        seed_retry_base_delay_s=_read(
            env,
            "SEED_RETRY_BASE_DELAY_S",
            defaults.seed_retry_base_delay_s,
            float,
            "a non-negative number of seconds",
            lambda v: v >= 0,
        ),
    )
