# src/imgaudit/managers/config_manager.py
import json
import logging
from typing import Any, Dict, Optional

from imgaudit.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    A singleton class to manage the application's configuration.
    It loads settings from settings.json and allows for in-memory modifications.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self._config: Dict[str, Any] = {}
        self.reset()
        logger.debug("ConfigManager initialized.")

    def get_all(self) -> Dict[str, Any]:
        """Returns the entire current configuration dictionary."""
        return self._config

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """
        Safely retrieves a nested value from the configuration.
        e.g., 'audit.workers'.
        """
        value = self._config
        for key in key_path.split('.'):
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
        return value if value is not None else default

    def set_nested(self, key_path: str, value: Any) -> bool:
        """
        Sets a nested value in the in-memory configuration.
        The new value is cast to the type of the existing one when possible.
        """
        keys = key_path.split('.')
        d = self._config
        for key in keys[:-1]:
            d = d.setdefault(key, {})
            if not isinstance(d, dict):
                logger.error("Cannot set value: '%s' is not a dictionary.", key)
                return False

        original_value = d.get(keys[-1])
        if isinstance(original_value, bool) and isinstance(value, str):
            value = value.strip().lower() in ("1", "true", "yes", "on")
        elif original_value is not None:
            try:
                value = type(original_value)(value)
            except (ValueError, TypeError):
                logger.warning(
                    "Could not cast new value for '%s' to type %s. Storing as given.",
                    key_path, type(original_value).__name__
                )

        d[keys[-1]] = value
        logger.info("Configuration updated: %s = %s", key_path, value)
        return True

    def reset(self):
        """Resets the in-memory configuration from the settings.json file."""
        config_path = PathUtils.get_settings_file()
        if not config_path.exists():
            logger.warning("settings.json not found at %s. Using empty config.", config_path)
            self._config = {}
            return
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                self._config = json.load(f)
            logger.debug("Configuration has been (re)loaded from %s.", config_path)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load settings.json: %s", e, exc_info=True)
            self._config = {}


# The global singleton instance used by the application.
config_manager = ConfigManager()
