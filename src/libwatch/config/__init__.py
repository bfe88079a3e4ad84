"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, env_int, optional_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .push import PushConfig, get_push_config
from .steam import SteamConfig, get_steam_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "PushConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SteamConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_float",
    "env_int",
    "get_database_config",
    "get_push_config",
    "get_steam_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env",
    "require_env_vars",
]
