"""Capability probing: is a tool installed, and which version."""
import subprocess
from typing import Callable, Dict, List, Optional, Tuple

from devsetup.core.config import get_settings
from devsetup.core.logger import get_logger
from devsetup.core.shell import CommandResult, command_exists, run_command
from devsetup.core.versions import extract_version
from devsetup.models.config import ProjectConfig
from devsetup.models.state import ToolStatus

logger = get_logger(__name__)

# tool -> (executable that must be on PATH, version command)
VERSION_COMMANDS: Dict[str, Tuple[str, List[str]]] = {
    "python3": ("python3", ["python3", "--version"]),
    "node": ("node", ["node", "--version"]),
    "git": ("git", ["git", "--version"]),
    "uv": ("uv", ["uv", "--version"]),
    "pnpm": ("pnpm", ["pnpm", "--version"]),
    "npm": ("npm", ["npm", "--version"]),
    "yarn": ("yarn", ["yarn", "--version"]),
    "pip": ("pip", ["pip", "--version"]),
    "brew": ("brew", ["brew", "--version"]),
    "docker": ("docker", ["docker", "--version"]),
    "compose": ("docker", ["docker", "compose", "version", "--short"]),
    "neonctl": ("neonctl", ["neonctl", "--version"]),
    "redis-cli": ("redis-cli", ["redis-cli", "--version"]),
    "just": ("just", ["just", "--version"]),
    "ruff": ("ruff", ["ruff", "--version"]),
}

SERVICE_TOOLS = ("docker", "compose", "neonctl", "redis-cli", "just", "ruff")

# tools whose presence is decided by the version command, not by PATH lookup
SUBCOMMAND_TOOLS = {"compose"}


def core_tools_for(config: ProjectConfig) -> Tuple[str, ...]:
    """Interpreters, git and the package managers the project uses."""
    return ("python3", "node", "git", config.python_pm.value, config.node_pm.value)


class CapabilityProbe:
    """Answers "is X installed and at which version" against the live host.

    Results are never cached: installs earlier in a run change the answer.
    """

    def __init__(self, run_cmd: Callable[..., CommandResult] = None, which=None, timeout: Optional[int] = None):
        self.run_cmd = run_cmd or run_command
        self.which = which or command_exists
        self.timeout = timeout if timeout is not None else get_settings().command_timeout

    def probe(self, tool: str) -> ToolStatus:
        """Probe a tool. Absence is a normal outcome, never an exception."""
        executable, version_cmd = VERSION_COMMANDS.get(tool, (tool, [tool, "--version"]))

        if not self.which(executable):
            return ToolStatus(tool, installed=False)

        result = self._run(version_cmd)
        if tool in SUBCOMMAND_TOOLS and (result is None or not result.ok):
            return ToolStatus(tool, installed=False)
        if result is None:
            return ToolStatus(tool, installed=True, version="unknown")

        version = extract_version(result.output) or "unknown"
        logger.debug(f"Probed {tool}: {version}")
        return ToolStatus(tool, installed=True, version=version)

    def exists(self, tool: str) -> bool:
        return self.probe(tool).installed

    def probe_many(self, tools) -> List[ToolStatus]:
        return [self.probe(tool) for tool in tools]

    def _run(self, argv: List[str]) -> Optional[CommandResult]:
        try:
            return self.run_cmd(argv, timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug(f"Version probe {' '.join(argv)} failed: {exc}")
            return None
