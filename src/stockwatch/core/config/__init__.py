"""Configuration loading and validation."""

from .models import (
    # Enums
    SourceStrategy,
    RunStatus,
    # Config models
    AppConfig,
    SourceConfig,
    FetchConfig,
    PushConfig,
    DatabaseConfig,
    LoggingConfig,
    # Defaults
    DEFAULT_USER_AGENT,
    EXPO_PUSH_URL,
)
from .loader import (
    ConfigError,
    load_app_config,
    load_source_config,
    load_all_source_configs,
    validate_source_config_file,
)

__all__ = [
    # Enums
    "SourceStrategy",
    "RunStatus",
    # Config models
    "AppConfig",
    "SourceConfig",
    "FetchConfig",
    "PushConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "DEFAULT_USER_AGENT",
    "EXPO_PUSH_URL",
    # Loaders
    "ConfigError",
    "load_app_config",
    "load_source_config",
    "load_all_source_configs",
    "validate_source_config_file",
]
