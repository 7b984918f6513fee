"""Configuration management."""
from devsetup.config.loader import ConfigLoader, load_project_config
from devsetup.models.config import ConfigError, ConfigNotFoundError, ConfigValidationError

__all__ = [
    'ConfigError',
    'ConfigLoader',
    'ConfigNotFoundError',
    'ConfigValidationError',
    'load_project_config',
]
