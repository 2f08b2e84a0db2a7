"""Configuration module."""

from deferq.config.loader import get_default_config, load_config
from deferq.config.models import (
    ConfigError,
    DeferqConfig,
    LoggingConfig,
    QueueConfig,
)
from deferq.config.paths import (
    get_config_path,
    get_deferq_home,
    get_logs_path,
    get_spool_path,
)

__all__ = [
    "ConfigError",
    "DeferqConfig",
    "LoggingConfig",
    "QueueConfig",
    "get_config_path",
    "get_default_config",
    "get_deferq_home",
    "get_logs_path",
    "get_spool_path",
    "load_config",
]
