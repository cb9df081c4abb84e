"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .importing import ImportConfig, get_import_config
from .instagram import InstagramConfig, get_instagram_config
from .logging import configure_logging
from .storage import (
    BlobStoreConfig,
    DatabaseConfig,
    StorageConfig,
    get_blob_store_config,
    get_database_config,
    get_storage_config,
)

__all__ = [
    "BlobStoreConfig",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "ImportConfig",
    "InstagramConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "env_float",
    "get_blob_store_config",
    "get_database_config",
    "get_import_config",
    "get_instagram_config",
    "get_storage_config",
    "require_env_var",
    "require_env_vars",
]
