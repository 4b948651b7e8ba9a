"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .remote import WEB_APP_URL_ENV, RemoteStoreConfig, get_remote_store_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "WEB_APP_URL_ENV",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "RemoteStoreConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "env_float",
    "get_database_config",
    "get_remote_store_config",
    "get_storage_config",
    "get_sync_config",
    "require_env_var",
    "require_env_vars",
]
