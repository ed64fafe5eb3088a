"""
Loads server configuration from an optional INI file, the environment
(including a .env file) and command line overrides, then validates it.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from dotenv import load_dotenv
from pydantic import ValidationError

from ytzip.exceptions import ConfigurationError
from ytzip.models.config import ServerConfig

log = logging.getLogger(__name__)

# Environment variable -> config field
ENV_KEYS = {
    "HOST": "host",
    "PORT": "port",
    "CONCURRENCY": "concurrency",
    "MAX_PLAYLIST_ITEMS": "max_playlist_items",
    "MAX_PENDING_ENTRIES": "max_pending_entries",
    "MAX_ITEM_BYTES": "max_item_bytes",
    "ITEM_TIMEOUT": "item_timeout",
    "STAGING_DIR": "staging_dir",
    "RATE_LIMIT_MAX": "rate_limit_max",
    "RATE_LIMIT_WINDOW": "rate_limit_window",
    "LOG_LEVEL": "log_level",
}


class ConfigManager:
    """Resolves the effective ServerConfig. Later sources override earlier ones."""

    def __init__(
        self,
        config_file_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
        load_env_file: bool = True,
    ):
        self.config_file_path = config_file_path
        self._environ = environ
        self._load_env_file = load_env_file
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ServerConfig:
        """
        Builds the configuration from the INI file, the environment and CLI options.

        Raises:
            ConfigurationError: If the file cannot be parsed or validation fails.
        """
        settings: dict[str, Any] = {}
        settings.update(self._get_file_settings())
        settings.update(self._get_env_settings())
        if cli_options:
            settings.update({k: v for k, v in cli_options.items() if v is not None})

        try:
            return ServerConfig(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def _get_file_settings(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        if self.config_file_path is None:
            return {}
        if not self.config_file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'."
            )
        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

        known_keys = ServerConfig.get_setting_keys()
        section = self._parser["DEFAULT"]
        settings = {}
        for key, value in section.items():
            if key not in known_keys:
                log.warning(f"[yellow]Ignoring unknown config key '{key}'.[/yellow]")
                continue
            settings[key] = value
        return settings

    def _get_env_settings(self) -> dict[str, Any]:
        if self._environ is None:
            if self._load_env_file:
                load_dotenv()
            environ: Mapping[str, str] = os.environ
        else:
            environ = self._environ
        return {
            field: environ[name]
            for name, field in ENV_KEYS.items()
            if environ.get(name, "").strip()
        }
