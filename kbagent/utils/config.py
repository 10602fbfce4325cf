"""
Configuration Management
========================

Centralized configuration for the turn runner. All environment variables
are read and typed here:

1. See all configuration options in one place
2. Get type-safe access to configuration values
3. Fail fast if required configuration is missing

Usage:
    from kbagent.utils.config import get_config

    config = get_config()
    print(config.openai.model)
    print(config.thread.context_window_limit)
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _required(name: str) -> str:
    """
    Get a required environment variable.

    Args:
        name: The environment variable name

    Returns:
        The value of the environment variable

    Raises:
        ValueError: If the variable is not set
    """
    value = os.getenv(name)
    if not value:
        raise ValueError(
            f"Missing required environment variable: {name}\n"
            f"Please ensure {name} is set in your .env file."
        )
    return value


def _optional(name: str, default: str) -> str:
    """Get an optional environment variable with a default."""
    return os.getenv(name, default)


def _optional_int(name: str, default: int) -> int:
    """
    Get an optional integer environment variable.

    Args:
        name: The environment variable name
        default: Default value if not set or invalid

    Returns:
        The integer value or the default
    """
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"Warning: {name} is not a valid integer, using default: {default}", file=sys.stderr)
        return default


def _optional_float(name: str, default: float) -> float:
    """Get an optional float environment variable."""
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        print(f"Warning: {name} is not a valid number, using default: {default}", file=sys.stderr)
        return default


# ==============================================================================
# Configuration Dataclasses
# ==============================================================================

@dataclass(frozen=True)
class OpenAIConfig:
    """OpenAI API configuration."""
    api_key: str           # sk-... API key
    model: str             # Fallback model when an agent names none
    embedding_model: str   # Default model for knowledge base embeddings


@dataclass(frozen=True)
class ThreadConfig:
    """Thread history and context window configuration."""
    history_limit: int          # Prior messages kept before assembling
    context_window_limit: int   # Max messages sent to the model
    store_path: Path            # JSON file backing the thread store


@dataclass(frozen=True)
class KnowledgeConfig:
    """Knowledge base storage configuration."""
    directory: Path      # One sub-directory per knowledge base
    default_top_k: int   # Results returned when the model omits k


@dataclass(frozen=True)
class ToolConfig:
    """Tool execution configuration."""
    http_timeout_seconds: float  # Timeout for declared HTTP tools
    max_iterations: int          # Tool rounds per inference call


@dataclass(frozen=True)
class Config:
    """
    Root configuration object.

    Access via:
        config = get_config()
        config.openai.api_key
        config.knowledge.directory
    """
    openai: OpenAIConfig
    thread: ThreadConfig
    knowledge: KnowledgeConfig
    tools: ToolConfig
    log_level: str


def load_config() -> Config:
    """
    Load and validate all configuration from environment.

    Returns:
        Config: The validated configuration

    Raises:
        ValueError: If required configuration is missing
    """
    load_dotenv()

    # Relative data paths resolve against the working directory
    data_dir = Path(_optional("DATA_DIR", "data"))

    return Config(
        openai=OpenAIConfig(
            api_key=_required("OPENAI_API_KEY"),
            model=_optional("OPENAI_MODEL", "gpt-4o-mini"),
            embedding_model=_optional("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small"),
        ),
        thread=ThreadConfig(
            history_limit=_optional_int("THREAD_HISTORY_LIMIT", 9),
            context_window_limit=_optional_int("CONTEXT_WINDOW_LIMIT", 10),
            store_path=data_dir / _optional("STORE_FILE", "threads.json"),
        ),
        knowledge=KnowledgeConfig(
            directory=data_dir / _optional("KNOWLEDGE_DIR", "knowledge"),
            default_top_k=_optional_int("KNOWLEDGE_DEFAULT_TOP_K", 2),
        ),
        tools=ToolConfig(
            http_timeout_seconds=_optional_float("TOOL_HTTP_TIMEOUT_SECONDS", 30.0),
            max_iterations=_optional_int("MAX_TOOL_ITERATIONS", 10),
        ),
        log_level=_optional("LOG_LEVEL", "info"),
    )


# ==============================================================================
# Singleton Pattern
# ==============================================================================

_config_instance: Config | None = None


def get_config() -> Config:
    """
    Get the singleton configuration instance.

    The configuration is loaded on first access and cached for subsequent calls.

    Returns:
        Config: The application configuration
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config()
    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration so the next access reloads it."""
    global _config_instance
    _config_instance = None
