"""Settings - configuration manager for queue fetchers.

Settings are read from an optional config dict, an optional JSON file and
environment variables (``.env`` files included), then handed to
``RedisFetcher.from_settings``.

Configuration hierarchy:
- fetcher: Fetcher settings
  - batch_size: Max items per fetch (default 1000)
  - script_path: Optional path to a custom Lua extract script
  - timeout: Optional default deadline in seconds for a fetch

Environment variables follow the naming convention:
QUEUE_FETCHER__<section>__<key>
Example: QUEUE_FETCHER__FETCHER__BATCH_SIZE=250
"""

import json
import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)
load_dotenv()

SECTIONS = ("fetcher",)


class Settings:
    """Configuration manager for queue fetchers.

    Each instance keeps its own isolated configuration state. Loading is
    lazy: the first read triggers :meth:`load`.
    """

    ENV_PREFIX = "QUEUE_FETCHER"
    ENV_SEPARATOR = "__"

    def __init__(self, config_path: str | None = None):
        """Initialize the settings manager.

        Args:
            config_path: Path to JSON configuration file. If None, only
                        environment variables will be used.
        """
        self._config_path = config_path
        self._config = self.default_config()
        self._base_config: dict[str, Any] | None = None
        self._loaded = False
        logger.debug("Settings instance created with config_path=%s", config_path)

    @staticmethod
    def default_config() -> dict[str, Any]:
        """Return a new default config dict each time."""
        return {"fetcher": {}}

    def load(self, config: dict[str, Any] | None = None) -> None:
        """Load configuration from a config dict, a JSON file and the environment.

        Args:
            config: Optional config dict to use as base.

        Priority (highest to lowest):
        1. Environment variables
        2. JSON file
        3. Provided config (if any)
        4. Default values
        """
        if self._loaded:
            logger.debug("Configuration already loaded, skipping reload")
            return

        self._config = self.default_config()

        if config is not None:
            self._base_config = deepcopy(config)
        if self._base_config is not None:
            self._merge_sections(self._base_config, source="config")

        if self._config_path:
            self._load_from_json()

        self._load_from_env()

        self._loaded = True
        logger.info("Configuration loaded successfully")
        logger.debug("Final fetcher config keys=%s", list(self._config["fetcher"].keys()))

    def _load_from_json(self) -> None:
        """Load configuration from JSON file."""
        config_file = Path(self._config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s", self._config_path)
            return

        try:
            with open(config_file, encoding="utf-8") as f:
                json_config = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in config file %s: %s", self._config_path, e)
            raise ValueError(f"Invalid JSON configuration file: {e}") from e

        if not isinstance(json_config, dict):
            raise ValueError("Configuration must be a JSON object")

        self._merge_sections(json_config, source="JSON")
        logger.info("Loaded configuration from JSON: %s", self._config_path)

    def _merge_sections(self, config: dict[str, Any], *, source: str) -> None:
        """Validate and merge known sections of ``config`` into the current state."""
        if not isinstance(config, dict):
            raise ValueError(f"Configuration from {source} must be a dict")

        for section in SECTIONS:
            if section not in config:
                continue
            if not isinstance(config[section], dict):
                raise ValueError(f"'{section}' section must be an object")
            self._config[section].update(deepcopy(config[section]))

    def _load_from_env(self) -> None:
        """Load configuration from environment variables.

        Examples:
        - QUEUE_FETCHER__FETCHER__BATCH_SIZE=500
        - QUEUE_FETCHER__FETCHER__SCRIPT_PATH=/etc/fetcher/pop.lua
        """
        prefix = f"{self.ENV_PREFIX}{self.ENV_SEPARATOR}"

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(prefix):
                continue

            key_path = env_key[len(prefix) :].split(self.ENV_SEPARATOR)
            if len(key_path) != 2:
                logger.warning("Invalid env var format: %s", env_key)
                continue

            section, key = key_path[0].lower(), key_path[1].lower()
            if section not in SECTIONS:
                logger.warning("Invalid section in env var %s: %s", env_key, section)
                continue

            self._config[section][key] = self._parse_env_value(env_value)
            logger.debug("Set from env: %s", env_key)

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """Parse as JSON (numbers, booleans, null), falling back to the raw string."""
        try:
            return json.loads(value)
        except (json.JSONDecodeError, ValueError):
            return value

    def get_fetcher_config(self, key: str | None = None, default: Any = None) -> Any:
        """Get fetcher configuration.

        Args:
            key: Specific configuration key. If None, returns the whole section.
            default: Default value if key not found.
        """
        if not self._loaded:
            self.load()

        if key is None:
            return deepcopy(self._config["fetcher"])

        return self._config["fetcher"].get(key, default)

    def set_fetcher_config(self, key: str, value: Any) -> None:
        """Set fetcher configuration (runtime only, not persisted)."""
        if not self._loaded:
            self.load()

        self._config["fetcher"][key] = value
        logger.debug("Set fetcher config: %s = %s", key, value)

    def get_all_config(self) -> dict[str, Any]:
        """Get a deep copy of the complete configuration."""
        if not self._loaded:
            self.load()

        return deepcopy(self._config)

    def reload(self) -> None:
        """Reload configuration, keeping the config dict given to the first load."""
        self._loaded = False
        self.load()
        logger.info("Configuration reloaded")

    @property
    def config_path(self) -> str | None:
        return self._config_path

    @property
    def is_loaded(self) -> bool:
        return self._loaded


ConfigManager = Settings
