"""Configuration management."""
from .config_manager import ConfigManager, get_config, initialize_config
from .settings import PathingSettings, LoggingSettings, ApplicationSettings

__all__ = [
    'ConfigManager', 'get_config', 'initialize_config',
    'PathingSettings', 'LoggingSettings', 'ApplicationSettings'
]
