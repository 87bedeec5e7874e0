# Copyright (c) 2025 Microsoft Corporation.
# Licensed under the MIT License

"""
Config services for chat history storage, loaded from config.yaml.

The directory holding config.yaml is taken from CHAT_HISTORY_CONFIG_DIR and
defaults to the config folder next to this module. Values may name
environment variables (keys ending in _env), which are resolved after
loading .env.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class ChatHistoryStorageConfig:
    """Where and how session documents are stored."""

    type: str = "memory"
    enabled: bool = True
    endpoint: str | None = None
    api_key: str | None = None
    auth_method: str = "api_key"
    database_name: str | None = None
    container_name: str | None = None
    ttl_seconds: int | None = None
    optimistic_concurrency: bool = False


@dataclass
class AppConfig:
    """Top-level configuration."""

    config_directory: str = ""
    chat_history: ChatHistoryStorageConfig | None = None
    log_level: str = "INFO"


# =============================================================================
# Module-Level Helper Functions
# =============================================================================


def _get_config_directory() -> str:
    """
    Get the configuration directory from environment variable or use default.
    Default is the config folder at the same level as config.py.
    """
    config_dir = os.getenv("CHAT_HISTORY_CONFIG_DIR")
    if config_dir:
        config_dir = os.path.expanduser(os.path.expandvars(config_dir))
        if not os.path.exists(config_dir):
            logger.warning(
                f"Configured config directory {config_dir} does not exist. Using default."
            )
            config_dir = None

    if not config_dir:
        current_dir = os.path.dirname(os.path.abspath(__file__))
        config_dir = os.path.join(current_dir, "config")

    return os.path.abspath(config_dir)


def _resolve(section: dict, key: str, default: Any = None) -> Any:
    """Read key from section, or from the environment variable named by key_env."""
    env_key = f"{key}_env"
    if env_key in section:
        return os.getenv(section[env_key], default)
    return section.get(key, default)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _as_optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _load_chat_history_storage(data: dict) -> ChatHistoryStorageConfig:
    """Load chat history storage configuration from config dict."""
    if "chat_history" not in data:
        return ChatHistoryStorageConfig(type="memory", enabled=False)

    section = data["chat_history"]
    if not isinstance(section, dict):
        raise ValueError("chat_history must be a mapping")

    return ChatHistoryStorageConfig(
        type=section.get("type", "memory"),
        enabled=_as_bool(_resolve(section, "enabled", True)),
        endpoint=_resolve(section, "endpoint"),
        api_key=_resolve(section, "api_key"),
        auth_method=section.get("auth_method", "api_key"),
        database_name=_resolve(section, "database_name"),
        container_name=_resolve(section, "container_name"),
        ttl_seconds=_as_optional_int(_resolve(section, "ttl_seconds")),
        optimistic_concurrency=_as_bool(
            _resolve(section, "optimistic_concurrency", False)
        ),
    )


def load_config() -> AppConfig:
    """
    Load configuration from config.yaml and return an AppConfig instance.

    Falls back to defaults (chat history storage disabled) when no config
    file exists.
    """
    load_dotenv()

    config_directory = _get_config_directory()
    config_path = os.path.join(config_directory, "config.yaml")

    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        return AppConfig(
            config_directory=config_directory,
            chat_history=_load_chat_history_storage(data),
            log_level=str(data.get("log_level", "INFO")).upper(),
        )

    # No config file - return defaults
    return AppConfig(
        config_directory=config_directory,
        chat_history=ChatHistoryStorageConfig(type="memory", enabled=False),
    )


# Module-private static config - None until initialize_config() is called
_STATIC_CONFIG: AppConfig | None = None


def initialize_config() -> AppConfig:
    """
    Initialize the static configuration from files.

    Call once at application startup; get_config() returns the result.
    """
    global _STATIC_CONFIG
    _STATIC_CONFIG = load_config()
    return _STATIC_CONFIG


def get_config() -> AppConfig:
    """Get the configuration loaded by initialize_config()."""
    if _STATIC_CONFIG is None:
        raise RuntimeError(
            "Configuration not initialized. Call initialize_config() at startup."
        )
    return _STATIC_CONFIG
