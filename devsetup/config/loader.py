"""YAML configuration loader."""
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from devsetup.config.validator import ProjectConfigValidator
from devsetup.core.logger import get_logger
from devsetup.models.config import (
    ConfigNotFoundError,
    ConfigValidationError,
    DatabaseEngine,
    FailurePolicy,
    FeatureFlags,
    NodePackageManager,
    ProjectConfig,
    PythonPackageManager,
    RedisMode,
    ServiceOptions,
    ToolVersions,
)

logger = get_logger(__name__)

DEFAULT_CONFIG_NAME = "project.yml"


class ConfigLoader:
    """Loads and validates a devsetup project file."""

    def __init__(self, config_path: str = DEFAULT_CONFIG_NAME):
        self.config_path = Path(config_path)
        self.raw_config: Optional[Dict[str, Any]] = None
        self.validator = ProjectConfigValidator()

    def load(self) -> ProjectConfig:
        """Load, validate and freeze the configuration.

        Raises:
            ConfigNotFoundError: If the file is missing or unreadable
            ConfigValidationError: If the file is not valid YAML or fails validation
        """
        if not self.config_path.is_file():
            raise ConfigNotFoundError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self.raw_config = yaml.safe_load(f)
        except OSError as exc:
            raise ConfigNotFoundError(f"Cannot read {self.config_path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ConfigValidationError(f"{self.config_path} is not valid UTF-8: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"Failed to parse YAML in {self.config_path}: {exc}") from exc

        if not self.raw_config:
            raise ConfigValidationError(f"Config file is empty: {self.config_path}")

        self.validator.validate(self.raw_config)

        config = self._build(self.raw_config)
        logger.debug(f"Loaded configuration for '{config.name}' from {self.config_path}")
        return config

    def _build(self, raw: Dict[str, Any]) -> ProjectConfig:
        project = raw.get('project') or {}
        versions = {k: str(v) for k, v in (raw.get('versions') or {}).items()}
        managers = raw.get('package_managers') or {}
        extras = raw.get('extras') or {}
        services = dict(raw.get('services') or {})
        features = raw.get('features') or {}
        policy = raw.get('policy') or {}

        if 'redis_mode' in services:
            services['redis_mode'] = RedisMode(services['redis_mode'])
        services['compose_services'] = tuple(services.get('compose_services') or ())

        return ProjectConfig(
            name=project['name'],
            root=self.config_path.resolve().parent,
            backend_dir=project.get('backend_dir', 'backend'),
            frontend_dir=project.get('frontend_dir', 'frontend'),
            versions=ToolVersions(**versions),
            python_pm=PythonPackageManager(managers.get('python', 'uv')),
            node_pm=NodePackageManager(managers.get('node', 'pnpm')),
            python_extras=tuple(extras.get('python') or ()),
            node_extras=tuple(extras.get('node') or ()),
            database_engine=DatabaseEngine((raw.get('database') or {}).get('engine', 'local')),
            services=ServiceOptions(**services),
            features=FeatureFlags(**features),
            optional_failures=FailurePolicy(policy.get('optional_failures', 'continue')),
        )


def load_project_config(path) -> ProjectConfig:
    """Shortcut for ``ConfigLoader(path).load()``."""
    return ConfigLoader(path).load()
