"""Application configuration helpers."""

from __future__ import annotations

from .editorial import EditorialConfig, get_editorial_config, load_critical_fields
from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .extraction import ExtractionConfig, get_extraction_config
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .publishing import (
    CachePurgeConfig,
    SearchConfig,
    get_cache_purge_config,
    get_search_config,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CachePurgeConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "EditorialConfig",
    "ExtractionConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SearchConfig",
    "StorageConfig",
    "configure_logging",
    "get_cache_purge_config",
    "get_database_config",
    "get_editorial_config",
    "get_extraction_config",
    "get_search_config",
    "get_storage_config",
    "load_critical_fields",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
