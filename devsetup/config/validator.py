"""Configuration validation logic."""
import re
from pathlib import PurePosixPath
from typing import Any, Dict, List

from devsetup.core.versions import LATEST, is_valid_version
from devsetup.models.config import (
    COMPOSE_SERVICES,
    ConfigValidationError,
    DatabaseEngine,
    FailurePolicy,
    NodePackageManager,
    PythonPackageManager,
    RedisMode,
)

# section -> key -> expected type (or tuple of enum values)
SCHEMA: Dict[str, Dict[str, Any]] = {
    'project': {'name': str, 'backend_dir': str, 'frontend_dir': str},
    'versions': {'python': str, 'node': str, 'django': str, 'nextjs': str, 'postgres': str},
    'package_managers': {
        'python': tuple(m.value for m in PythonPackageManager),
        'node': tuple(m.value for m in NodePackageManager),
    },
    'extras': {'python': list, 'node': list},
    'database': {'engine': tuple(e.value for e in DatabaseEngine)},
    'services': {
        'docker': bool,
        'docker_compose': bool,
        'neon_cli': bool,
        'redis': bool,
        'redis_mode': tuple(m.value for m in RedisMode),
        'just': bool,
        'ruff': bool,
        'compose_services': list,
    },
    'features': {
        'containers': bool,
        'task_queue': bool,
        'ci': bool,
        'precommit': bool,
        'env_file': bool,
        'git': bool,
        'task_runner': bool,
    },
    'policy': {'optional_failures': tuple(p.value for p in FailurePolicy)},
}

PROJECT_NAME_RE = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]*$')


class ProjectConfigValidator:
    """Validates the raw YAML document before it becomes a ProjectConfig."""

    def validate(self, config: Any) -> None:
        """Validate a parsed configuration document.

        Raises:
            ConfigValidationError: If validation fails
        """
        if not isinstance(config, dict):
            raise ConfigValidationError("Configuration must be a mapping of sections")

        errors: List[str] = []
        errors.extend(self._validate_structure(config))

        # Semantic checks only make sense on a structurally sound document
        if not errors:
            errors.extend(self._validate_project(config.get('project') or {}))
            errors.extend(self._validate_versions(config.get('versions', {})))
            errors.extend(self._validate_lists(config))

        if errors:
            error_msg = "Configuration validation failed:\n  " + "\n  ".join(errors)
            raise ConfigValidationError(error_msg)

    def _validate_structure(self, config: Dict[str, Any]) -> List[str]:
        errors = []

        if 'project' not in config:
            errors.append("Missing required section 'project'")

        for section, values in config.items():
            if section not in SCHEMA:
                errors.append(f"Unknown section '{section}'")
                continue
            if values is None:
                continue
            if not isinstance(values, dict):
                errors.append(f"Section '{section}' must be a mapping")
                continue

            for key, value in values.items():
                expected = SCHEMA[section].get(key)
                if expected is None:
                    errors.append(f"Unknown key '{section}.{key}'")
                elif isinstance(expected, tuple):
                    if value not in expected:
                        errors.append(
                            f"'{section}.{key}' must be one of {', '.join(expected)} (got {value!r})"
                        )
                elif section == 'versions' and isinstance(value, float):
                    # YAML reads 3.10 as 3.1
                    errors.append(
                        f"'versions.{key}' must be quoted (YAML reads {value!r} as a number)"
                    )
                elif section == 'versions' and isinstance(value, int) and not isinstance(value, bool):
                    continue
                elif not isinstance(value, expected):
                    errors.append(f"'{section}.{key}' must be of type {expected.__name__}")

        return errors

    def _validate_project(self, project: Dict[str, Any]) -> List[str]:
        errors = []

        name = project.get('name')
        if not name:
            errors.append("'project.name' is required")
        elif not PROJECT_NAME_RE.match(name):
            errors.append(
                f"'project.name' {name!r} may only contain letters, digits, '-' and '_'"
            )

        dirs = {}
        for key, default in (('backend_dir', 'backend'), ('frontend_dir', 'frontend')):
            value = project.get(key, default)
            path = PurePosixPath(value)
            if not value or value in ('.', './'):
                errors.append(f"'project.{key}' must name a subdirectory")
            elif path.is_absolute():
                errors.append(f"'project.{key}' must be relative to the project root")
            elif '..' in path.parts:
                errors.append(f"'project.{key}' must not leave the project root")
            dirs[key] = path

        if dirs.get('backend_dir') is not None and dirs.get('backend_dir') == dirs.get('frontend_dir'):
            errors.append("'project.backend_dir' and 'project.frontend_dir' must differ")

        return errors

    def _validate_versions(self, versions: Dict[str, Any]) -> List[str]:
        errors = []
        for key, value in (versions or {}).items():
            text = str(value)
            if text != LATEST and not is_valid_version(text):
                errors.append(
                    f"'versions.{key}' must be a dotted version or '{LATEST}' (got {text!r})"
                )
        return errors

    def _validate_lists(self, config: Dict[str, Any]) -> List[str]:
        errors = []

        for key, packages in ((config.get('extras') or {}).items()):
            for package in packages:
                if not isinstance(package, str) or not package.strip():
                    errors.append(f"'extras.{key}' entries must be non-empty strings")
                    break

        services = (config.get('services') or {}).get('compose_services') or []
        for service in services:
            if service not in COMPOSE_SERVICES:
                errors.append(
                    f"Unknown compose service '{service}' "
                    f"(supported: {', '.join(COMPOSE_SERVICES)})"
                )

        return errors
