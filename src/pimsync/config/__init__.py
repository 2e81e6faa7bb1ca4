"""Application configuration helpers."""

from __future__ import annotations

from .env import get_env, get_env_flag, get_env_int, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import OAuthCredentials, RateLimit, ResilienceConfig, RetryPolicy
from .pim import (
    GLOBAL_SETTINGS_SERVICE,
    NOTIFICATION_SERVICE,
    PIM_SERVICE,
    PimConfig,
    get_pim_config,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "GLOBAL_SETTINGS_SERVICE",
    "NOTIFICATION_SERVICE",
    "PIM_SERVICE",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "OAuthCredentials",
    "PimConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "get_database_config",
    "get_env",
    "get_env_flag",
    "get_env_int",
    "get_pim_config",
    "get_storage_config",
    "require_env_vars",
]
