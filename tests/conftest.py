"""Shared test fixtures for devsetup tests."""
import copy
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest
import yaml

from devsetup.core.config import reset_settings
from devsetup.core.orchestrator import Provisioner
from devsetup.core.shell import CommandResult
from devsetup.models.config import FeatureFlags, ProjectConfig, ServiceOptions
from devsetup.models.state import ExecutionMode, OSFamily, PlatformInfo

DEBIAN = PlatformInfo(OSFamily.DEBIAN, "Linux")

# A workstation that already has everything a full config asks for
PROVISIONED_TOOLS = {
    "apt": "2.7.14",
    "python3": "3.12.3",
    "node": "22.4.0",
    "npm": "10.8.1",
    "git": "2.43.0",
    "uv": "0.4.18",
    "pnpm": "9.12.0",
    "docker": "27.0.3",
    "compose": "2.27.1",
    "neonctl": "2.1.0",
    "redis-cli": "7.2.4",
    "just": "1.36.0",
    "ruff": "0.6.9",
}


class FakeHost:
    """Stands in for ``run_cmd`` and ``which``.

    Records every command, answers ``--version`` probes from ``tools`` and
    simulates the side effects of installers and scaffolders.

    Attributes:
        tools: tool name -> version currently "installed"
        commands: every argv run, in order
        install_effects: substring of a command -> (tool, version) it installs
        fail_on: substrings that make a matching command exit with status 1
    """

    def __init__(self, tools: Optional[Dict[str, str]] = None):
        self.tools: Dict[str, str] = dict(tools or {})
        self.commands: List[List[str]] = []
        self.install_effects: Dict[str, Tuple[str, str]] = {}
        self.fail_on: Set[str] = set()

    def which(self, name: str) -> Optional[str]:
        return f"/usr/bin/{name}" if name in self.tools and name != "compose" else None

    def run(self, argv, cwd=None, timeout=None, env=None) -> CommandResult:
        argv = [str(part) for part in argv]
        self.commands.append(argv)
        line = " ".join(argv)

        for needle in self.fail_on:
            if needle in line:
                return CommandResult(1, "", f"simulated failure: {needle}")

        if argv[:2] == ["docker", "compose"]:
            if "docker" in self.tools and "compose" in self.tools:
                return CommandResult(0, self.tools["compose"] + "\n")
            return CommandResult(1, "", "docker: 'compose' is not a docker command.")

        if len(argv) == 2 and argv[1] == "--version":
            if argv[0] not in self.tools:
                raise FileNotFoundError(argv[0])
            return CommandResult(0, f"{argv[0]} {self.tools[argv[0]]}\n")

        for needle, (tool, version) in self.install_effects.items():
            if needle in line:
                self.tools[tool] = version

        if argv[:2] == ["uv", "init"] and cwd is not None:
            (Path(cwd) / "pyproject.toml").write_text("[project]\nname = \"backend\"\n")
        if argv[:2] == ["git", "init"] and cwd is not None:
            (Path(cwd) / ".git").mkdir(exist_ok=True)
        if argv[-2:] == ["pip", "freeze"]:
            return CommandResult(0, "Django==5.1.2\n")
        for index, part in enumerate(argv):
            if part.startswith("create-next-app") and cwd is not None:
                target = Path(cwd) / argv[index + 1]
                target.mkdir(parents=True, exist_ok=True)
                (target / "package.json").write_text("{}\n")

        return CommandResult(0)

    def ran(self, needle: str) -> bool:
        return any(needle in " ".join(argv) for argv in self.commands)

    def mutating_commands(self) -> List[List[str]]:
        """Commands other than version probes."""
        return [
            argv for argv in self.commands
            if not (len(argv) == 2 and argv[1] == "--version") and argv[:2] != ["docker", "compose"]
        ]


FULL_CONFIG = {
    "project": {"name": "myapp", "backend_dir": "backend", "frontend_dir": "frontend"},
    "versions": {"python": "3.12", "node": "20", "django": "5.1", "nextjs": "15", "postgres": "16"},
    "package_managers": {"python": "uv", "node": "pnpm"},
    "extras": {"python": ["djangorestframework"], "node": []},
    "database": {"engine": "local"},
    "services": {
        "docker": True,
        "docker_compose": True,
        "neon_cli": False,
        "redis": True,
        "redis_mode": "docker",
        "just": True,
        "ruff": True,
        "compose_services": ["postgres", "redis", "mailhog"],
    },
    "features": {
        "containers": True,
        "task_queue": True,
        "ci": True,
        "precommit": True,
        "env_file": True,
        "git": True,
        "task_runner": True,
    },
}


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Isolate runtime settings from the developer's environment."""
    for name in ("DEVSETUP_COMMAND_TIMEOUT", "DEVSETUP_INSTALL_TIMEOUT",
                 "DEVSETUP_SCAFFOLD_TIMEOUT", "DEVSETUP_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def host():
    """Fully provisioned fake workstation."""
    return FakeHost(PROVISIONED_TOOLS)


@pytest.fixture
def bare_host():
    """Fresh Debian box: only apt is installed."""
    return FakeHost({"apt": "2.7.14"})


@pytest.fixture
def write_config(tmp_path):
    """Write a YAML config into tmp_path and return its path."""
    def _write(data, name: str = "project.yml") -> Path:
        path = tmp_path / name
        if isinstance(data, str):
            path.write_text(data)
        else:
            path.write_text(yaml.safe_dump(data, sort_keys=False))
        return path
    return _write


@pytest.fixture
def make_config(tmp_path):
    """Build a ProjectConfig rooted at tmp_path."""
    def _make(features: Optional[dict] = None, services: Optional[dict] = None, **overrides) -> ProjectConfig:
        fields = {"name": "myapp", "root": tmp_path}
        fields.update(overrides)
        if features is not None:
            fields["features"] = FeatureFlags(**features)
        if services is not None:
            fields["services"] = ServiceOptions(**services)
        return ProjectConfig(**fields)
    return _make


@pytest.fixture
def full_config():
    """Every service and feature enabled."""
    return copy.deepcopy(FULL_CONFIG)


@pytest.fixture
def all_features():
    return dict(FULL_CONFIG["features"])


@pytest.fixture
def provisioner_factory():
    """Provisioner wired to a FakeHost on Debian."""
    def _factory(config: ProjectConfig, fake: FakeHost, mode: ExecutionMode = ExecutionMode.NORMAL,
                 platform: PlatformInfo = DEBIAN, config_name: str = "project.yml") -> Provisioner:
        return Provisioner(
            config,
            mode=mode,
            platform=platform,
            run_cmd=fake.run,
            which=fake.which,
            config_name=config_name,
            is_root=False,
        )
    return _factory


def snapshot_tree(root: Path) -> Dict[str, str]:
    """Relative path -> content (or "<dir>") for everything under root."""
    tree = {}
    for path in sorted(root.rglob("*")):
        key = str(path.relative_to(root))
        tree[key] = "<dir>" if path.is_dir() else path.read_text()
    return tree


@pytest.fixture
def tree():
    return snapshot_tree


@pytest.fixture
def new_host():
    """Factory for FakeHost instances with custom tools."""
    return FakeHost
