"""Configuration manager for loading, saving, and managing meshroute settings."""
import json
import logging
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Optional, Dict, Any, Union

from ..exceptions import ConfigurationError
from .settings import ApplicationSettings, PathingSettings

logger = logging.getLogger(__name__)


class ConfigManager:
    """Centralized configuration manager for meshroute."""

    DEFAULT_CONFIG_PATHS = [
        "meshroute.json",
        "config/meshroute.json",
        "~/.meshroute/config.json",
    ]

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file.
                        If None, the default locations are searched. A missing
                        file leaves the defaults in place; nothing is written
                        until save() is called.
        """
        self.config_path: Optional[Path] = None
        self.settings: ApplicationSettings = ApplicationSettings()

        if config_path:
            self.config_path = Path(config_path).expanduser().resolve()
        else:
            self.config_path = self._find_config_file()

        if self.config_path and self.config_path.exists():
            self.load()

    def _find_config_file(self) -> Optional[Path]:
        """Find existing configuration file in default locations."""
        for path_str in self.DEFAULT_CONFIG_PATHS:
            path = Path(path_str).expanduser().resolve()
            if path.exists():
                logger.info(f"Found existing config file: {path}")
                return path

        default_path = Path(self.DEFAULT_CONFIG_PATHS[0]).expanduser().resolve()
        logger.debug(f"No existing config found, defaults in use (save target: {default_path})")
        return default_path

    def load(self, config_path: Optional[Union[str, Path]] = None) -> bool:
        """Load configuration from file.

        Args:
            config_path: Optional path to load from. Uses instance path if None.

        Returns:
            True if loaded successfully, False otherwise.
        """
        path = Path(config_path).expanduser().resolve() if config_path else self.config_path

        if not path or not path.exists():
            logger.warning(f"Configuration file not found: {path}")
            return False

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load configuration from {path}: {e}")
            return False

        self._update_settings_from_dict(config_data)

        errors = self.validate()
        if any(error_list for error_list in errors.values()):
            logger.warning("Configuration validation errors found:")
            for category, error_list in errors.items():
                for error in error_list:
                    logger.warning(f"  {category}: {error}")

        logger.info(f"Configuration loaded from: {path}")
        return True

    def save(self, config_path: Optional[Union[str, Path]] = None) -> bool:
        """Save configuration to file.

        Args:
            config_path: Optional path to save to. Uses instance path if None.

        Returns:
            True if saved successfully, False otherwise.
        """
        path = Path(config_path).expanduser().resolve() if config_path else self.config_path

        if not path:
            logger.error("No configuration path specified")
            return False

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            config_data = asdict(self.settings)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(config_data, f, indent=2, ensure_ascii=False)

            logger.info(f"Configuration saved to: {path}")
            return True

        except OSError as e:
            logger.error(f"Failed to save configuration to {path}: {e}")
            return False

    def _update_settings_from_dict(self, config_data: Dict[str, Any]):
        """Update settings from dictionary data."""
        def update_dataclass(obj, data):
            if not isinstance(data, dict):
                return

            for key, value in data.items():
                if not hasattr(obj, key):
                    logger.warning(f"Ignoring unknown setting: {key}")
                    continue
                attr = getattr(obj, key)
                if is_dataclass(attr):
                    update_dataclass(attr, value)
                else:
                    setattr(obj, key, value)

        update_dataclass(self.settings, config_data)

    def get_settings(self) -> ApplicationSettings:
        """Get current application settings."""
        return self.settings

    def get_pathing_settings(self) -> PathingSettings:
        """Get pathing solver settings, raising if they are invalid."""
        errors = self.settings.pathing.validate()
        if errors:
            raise ConfigurationError(
                "Invalid pathing settings: " + "; ".join(errors),
                error_code="PATHING_SETTINGS",
                details={"errors": errors},
            )
        return self.settings.pathing

    def update_pathing_settings(self, **kwargs):
        """Update pathing settings."""
        for key, value in kwargs.items():
            if hasattr(self.settings.pathing, key):
                setattr(self.settings.pathing, key, value)
            else:
                logger.warning(f"Unknown pathing setting: {key}")

    def update_logging_settings(self, **kwargs):
        """Update logging settings."""
        for key, value in kwargs.items():
            if hasattr(self.settings.logging, key):
                setattr(self.settings.logging, key, value)
            else:
                logger.warning(f"Unknown logging setting: {key}")

    def validate(self) -> Dict[str, Any]:
        """Validate current settings."""
        return self.settings.validate()

    def reset_to_defaults(self):
        """Reset all settings to defaults."""
        self.settings = ApplicationSettings()
        logger.info("Settings reset to defaults")

    def reset_category_to_defaults(self, category: str):
        """Reset a specific category to defaults."""
        if category == "pathing":
            self.settings.pathing = ApplicationSettings().pathing
        elif category == "logging":
            self.settings.logging = ApplicationSettings().logging
        else:
            logger.warning(f"Unknown settings category: {category}")
            return

        logger.info(f"Reset {category} settings to defaults")

    def get_config_info(self) -> Dict[str, Any]:
        """Get information about current configuration."""
        return {
            "config_path": str(self.config_path) if self.config_path else None,
            "config_exists": self.config_path.exists() if self.config_path else False,
            "version": self.settings.version,
            "config_version": self.settings.config_version,
            "validation_errors": self.validate()
        }


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def initialize_config(config_path: Optional[Union[str, Path]] = None) -> ConfigManager:
    """Initialize the global configuration manager with optional custom path."""
    global _config_manager
    _config_manager = ConfigManager(config_path)
    return _config_manager
