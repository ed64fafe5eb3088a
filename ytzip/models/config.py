"""
Pydantic model for server configuration.
Provides robust validation for all settings.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ServerConfig(BaseModel):
    """A validated configuration model for the service."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Network
    host: str = "0.0.0.0"
    port: int = 4000

    # Archive jobs
    max_playlist_items: int = 100
    concurrency: int = 4
    max_pending_entries: int = 2
    max_item_bytes: int = 4 * 1024**3
    item_timeout: float = 900.0
    staging_dir: Optional[str] = None

    # Rate limiting of the archive endpoint
    rate_limit_max: int = 5
    rate_limit_window: float = 600.0

    log_level: str = "INFO"

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("Port must be between 1 and 65535.")
        return v

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Ensures a reasonable number of simultaneous fetches."""
        if v < 1 or v > 32:
            raise ValueError("Concurrency must be between 1 and 32.")
        return v

    @field_validator("max_playlist_items")
    @classmethod
    def validate_max_items(cls, v: int) -> int:
        if v < 1 or v > 5000:
            raise ValueError("Max playlist items must be between 1 and 5000.")
        return v

    @field_validator("max_pending_entries")
    @classmethod
    def validate_pending(cls, v: int) -> int:
        if v < 1 or v > 64:
            raise ValueError("Max pending entries must be between 1 and 64.")
        return v

    @field_validator("max_item_bytes", "rate_limit_max")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be greater than zero.")
        return v

    @field_validator("item_timeout", "rate_limit_window")
    @classmethod
    def validate_positive_float(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Value must be greater than zero.")
        return v

    @field_validator("staging_dir")
    @classmethod
    def validate_staging_dir(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of {', '.join(LOG_LEVELS)}.")
        return level

    @model_validator(mode="after")
    def validate_staged_file_budget(self) -> "ServerConfig":
        """Keeps the number of staged files per job within a sane bound."""
        if self.concurrency + self.max_pending_entries > 64:
            raise ValueError(
                "concurrency + max_pending_entries must not exceed 64 staged files."
            )
        return self

    @classmethod
    def get_setting_keys(cls) -> set[str]:
        """Returns all keys that may appear in an INI file or the environment."""
        return set(cls.model_fields)
