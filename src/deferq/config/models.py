"""Configuration models using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from deferq.config.paths import get_spool_path


class QueueConfig(BaseModel):
    """Configuration for the schedule queue."""

    storage_dir: Path = Field(default_factory=get_spool_path)
    # Seconds between trigger loop ticks
    poll_interval: float = Field(default=1.0, gt=0)
    # File extension for stored entries, without the dot
    extension: str = "msg"
    # Acknowledgments are routed under f"{ack_prefix}{message_id}"
    ack_prefix: str = "TAG:"
    ack_tag: str = "ack-cache"

    @field_validator("extension")
    @classmethod
    def _check_extension(cls, value: str) -> str:
        value = value.lstrip(".")
        if not value or not value.isalnum():
            raise ValueError("extension must be a non-empty alphanumeric string")
        return value


class LoggingConfig(BaseModel):
    """Configuration for logging output."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    use_rich: bool = False
    log_to_file: bool = False


class ConfigError(Exception):
    """Configuration error."""

    pass


class DeferqConfig(BaseModel):
    """Root configuration model."""

    queue: QueueConfig = Field(default_factory=QueueConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
