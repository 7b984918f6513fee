"""Project configuration model and configuration errors."""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Tuple


class ConfigError(Exception):
    """Base class for fatal configuration problems."""
    pass


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist or cannot be read."""
    pass


class ConfigValidationError(ConfigError):
    """Raised when the configuration file is malformed."""
    pass


class PythonPackageManager(str, Enum):
    UV = "uv"
    PIP = "pip"


class NodePackageManager(str, Enum):
    PNPM = "pnpm"
    NPM = "npm"
    YARN = "yarn"


class RedisMode(str, Enum):
    DOCKER = "docker"  # provided by docker-compose.yml
    LOCAL = "local"  # installed through the host package manager


class DatabaseEngine(str, Enum):
    LOCAL = "local"
    NEON = "neon"


class FailurePolicy(str, Enum):
    """What a failed optional step does to the rest of the run."""
    CONTINUE = "continue"
    ABORT_PHASE = "abort-phase"
    ABORT_RUN = "abort-run"


COMPOSE_SERVICES = ("postgres", "redis", "mailhog", "minio")


@dataclass(frozen=True)
class ToolVersions:
    """Minimum versions; "latest" accepts whatever is installed."""
    python: str = "3.12"
    node: str = "latest"
    django: str = "latest"
    nextjs: str = "latest"
    postgres: str = "16"


@dataclass(frozen=True)
class ServiceOptions:
    docker: bool = False
    docker_compose: bool = False
    neon_cli: bool = False
    redis: bool = False
    redis_mode: RedisMode = RedisMode.DOCKER
    just: bool = False
    ruff: bool = False
    compose_services: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FeatureFlags:
    """One switch per optional generated subsystem."""
    containers: bool = False
    task_queue: bool = False
    ci: bool = False
    precommit: bool = False
    env_file: bool = False
    git: bool = False
    task_runner: bool = False


@dataclass(frozen=True)
class ProjectConfig:
    """Immutable project configuration, loaded once per run.

    ``root`` is the directory holding the configuration file; every
    generated path is relative to it.
    """
    name: str
    root: Path
    backend_dir: str = "backend"
    frontend_dir: str = "frontend"
    versions: ToolVersions = field(default_factory=ToolVersions)
    python_pm: PythonPackageManager = PythonPackageManager.UV
    node_pm: NodePackageManager = NodePackageManager.PNPM
    python_extras: Tuple[str, ...] = ()
    node_extras: Tuple[str, ...] = ()
    database_engine: DatabaseEngine = DatabaseEngine.LOCAL
    services: ServiceOptions = field(default_factory=ServiceOptions)
    features: FeatureFlags = field(default_factory=FeatureFlags)
    optional_failures: FailurePolicy = FailurePolicy.CONTINUE

    @property
    def backend_path(self) -> Path:
        return self.root / self.backend_dir

    @property
    def frontend_path(self) -> Path:
        return self.root / self.frontend_dir

    def has_compose_service(self, service: str) -> bool:
        return service in self.services.compose_services
