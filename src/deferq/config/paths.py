"""Centralized path management for deferq.

All state (config, spool directory, logs) is stored under a single base
directory. The base directory can be overridden with the DEFERQ_HOME
environment variable.

Default locations:
- Linux/macOS: ~/.deferq
- Windows: %USERPROFILE%\\.deferq
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "DEFERQ_HOME"


@lru_cache(maxsize=1)
def get_deferq_home() -> Path:
    """Get the base directory for all deferq data.

    Resolution order:
    1. DEFERQ_HOME environment variable (if set)
    2. Platform default (~/.deferq)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".deferq"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_deferq_home() / "config.toml"


def get_spool_path() -> Path:
    """Get the default storage directory for scheduled entries."""
    return get_deferq_home() / "spool"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_deferq_home() / "logs"
