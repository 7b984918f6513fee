"""Installer dispatcher.

Routes "install capability X" to the host's package manager through one
table keyed by (platform family, capability). Platform-independent routes
(npm -g, uv tool, install scripts) are keyed by ``ANY``.
"""
import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from devsetup.core.config import get_settings
from devsetup.core.errors import (
    ExternalToolError,
    ManualActionRequired,
    MissingPrerequisiteError,
    StepError,
    UnsupportedPlatformError,
)
from devsetup.core.logger import get_logger
from devsetup.core.shell import CommandResult, command_exists, format_command, run_command
from devsetup.models.state import OSFamily, PlatformInfo

logger = get_logger(__name__)

ANY = None

PACKAGE_MANAGER_COMMANDS: Dict[OSFamily, Tuple[str, ...]] = {
    OSFamily.DEBIAN: ("sudo", "apt-get", "install", "-y"),
    OSFamily.FEDORA: ("sudo", "dnf", "install", "-y"),
    OSFamily.ARCH: ("sudo", "pacman", "-S", "--noconfirm"),
    OSFamily.MACOS: ("brew", "install"),
}

REFRESH_COMMANDS: Dict[OSFamily, Tuple[str, ...]] = {
    OSFamily.DEBIAN: ("sudo", "apt-get", "update", "-qq"),
}

# install scripts download from the network; only they are retried on timeout
SCRIPT_ATTEMPTS = 3
SCRIPT_RETRY_DELAY = 2.0


@dataclass(frozen=True)
class InstallStrategy:
    """One way of installing a capability.

    Runs in order: index refresh, ``script``, native ``packages``, ``commands``.
    Placeholders like ``{python}`` and ``{node_major}`` are filled from the
    resolved versions.
    """
    packages: Tuple[str, ...] = ()
    script: str = ""
    commands: Tuple[Tuple[str, ...], ...] = ()
    requires: Optional[str] = None
    refresh: bool = False
    manual: str = ""
    notice: str = ""
    path_additions: Tuple[str, ...] = ()


DOCKER_DEBIAN_SCRIPT = """\
set -e
sudo apt-get update -qq
sudo apt-get install -y ca-certificates curl
sudo install -m 0755 -d /etc/apt/keyrings
sudo curl -fsSL https://download.docker.com/linux/ubuntu/gpg -o /etc/apt/keyrings/docker.asc
sudo chmod a+r /etc/apt/keyrings/docker.asc
echo "deb [arch=$(dpkg --print-architecture) signed-by=/etc/apt/keyrings/docker.asc] https://download.docker.com/linux/ubuntu $(. /etc/os-release && echo "$VERSION_CODENAME") stable" | sudo tee /etc/apt/sources.list.d/docker.list > /dev/null
sudo apt-get update -qq
sudo apt-get install -y docker-ce docker-ce-cli containerd.io docker-buildx-plugin docker-compose-plugin
if ! id -nG "$USER" | grep -qw docker; then sudo usermod -aG docker "$USER"; fi
"""

DOCKER_FEDORA_SCRIPT = """\
set -e
sudo dnf install -y dnf-plugins-core
sudo dnf config-manager --add-repo https://download.docker.com/linux/fedora/docker-ce.repo
sudo dnf install -y docker-ce docker-ce-cli containerd.io docker-compose-plugin
sudo systemctl start docker
sudo systemctl enable docker
"""

INSTALL_TABLE: Dict[Tuple[Optional[OSFamily], str], List[InstallStrategy]] = {
    (OSFamily.DEBIAN, "python"): [InstallStrategy(packages=("python3", "python3-venv"), refresh=True)],
    (OSFamily.FEDORA, "python"): [InstallStrategy(packages=("python3",))],
    (OSFamily.ARCH, "python"): [InstallStrategy(packages=("python",))],
    (OSFamily.MACOS, "python"): [InstallStrategy(packages=("python@{python}",))],

    (OSFamily.DEBIAN, "node"): [InstallStrategy(
        script="curl -fsSL https://deb.nodesource.com/setup_{node_major}.x | sudo -E bash -",
        packages=("nodejs",),
    )],
    (OSFamily.FEDORA, "node"): [InstallStrategy(
        script="curl -fsSL https://rpm.nodesource.com/setup_{node_major}.x | sudo bash -",
        packages=("nodejs",),
    )],
    (OSFamily.ARCH, "node"): [InstallStrategy(packages=("nodejs", "npm"))],
    (OSFamily.MACOS, "node"): [InstallStrategy(packages=("node",))],

    (ANY, "uv"): [InstallStrategy(
        script="curl -LsSf https://astral.sh/uv/install.sh | sh",
        path_additions=("~/.local/bin",),
    )],
    (ANY, "pnpm"): [InstallStrategy(commands=(("npm", "install", "-g", "pnpm"),), requires="npm")],
    (ANY, "yarn"): [InstallStrategy(commands=(("npm", "install", "-g", "yarn"),), requires="npm")],

    (OSFamily.DEBIAN, "docker"): [InstallStrategy(
        script=DOCKER_DEBIAN_SCRIPT,
        notice="Added your user to the docker group. Log out and back in before using docker without sudo.",
    )],
    (OSFamily.FEDORA, "docker"): [InstallStrategy(script=DOCKER_FEDORA_SCRIPT)],
    (OSFamily.ARCH, "docker"): [InstallStrategy(
        packages=("docker", "docker-compose"),
        commands=(("sudo", "systemctl", "start", "docker"), ("sudo", "systemctl", "enable", "docker")),
    )],
    (OSFamily.MACOS, "docker"): [InstallStrategy(
        manual="Install Docker Desktop manually: https://docker.com/products/docker-desktop",
    )],

    (ANY, "neonctl"): [InstallStrategy(commands=(("npm", "install", "-g", "neonctl"),), requires="npm")],

    (OSFamily.DEBIAN, "redis"): [InstallStrategy(packages=("redis-server",))],
    (OSFamily.FEDORA, "redis"): [InstallStrategy(packages=("redis",))],
    (OSFamily.ARCH, "redis"): [InstallStrategy(packages=("redis",))],
    (OSFamily.MACOS, "redis"): [InstallStrategy(packages=("redis",))],

    (OSFamily.DEBIAN, "just"): [InstallStrategy(
        script="curl -sSf https://just.systems/install.sh | sudo bash -s -- --to /usr/local/bin",
    )],
    (OSFamily.FEDORA, "just"): [InstallStrategy(packages=("just",))],
    (OSFamily.ARCH, "just"): [InstallStrategy(packages=("just",))],
    (OSFamily.MACOS, "just"): [InstallStrategy(packages=("just",))],

    (ANY, "ruff"): [
        InstallStrategy(commands=(("uv", "tool", "install", "ruff"),), requires="uv"),
        InstallStrategy(commands=(("pip", "install", "ruff"),), requires="pip"),
    ],
}


class InstallerDispatcher:
    """Installs capabilities with the strategy registered for the host platform."""

    def __init__(
        self,
        run_cmd: Callable[..., CommandResult] = None,
        which: Callable[[str], Optional[str]] = None,
        timeout: Optional[int] = None,
        is_root: Optional[bool] = None,
        table: Optional[Mapping] = None,
        retry_delay: float = SCRIPT_RETRY_DELAY,
    ):
        self.run_cmd = run_cmd or run_command
        self.which = which or command_exists
        self.timeout = timeout if timeout is not None else get_settings().install_timeout
        if is_root is None:
            is_root = hasattr(os, "geteuid") and os.geteuid() == 0
        self.is_root = is_root
        self.table = table if table is not None else INSTALL_TABLE
        self.retry_delay = retry_delay

    # -----------------------------
    #  Public API
    # -----------------------------
    def install_package(self, platform: PlatformInfo, package: str) -> bool:
        """Install one native package with the platform package manager.

        Public entry point for a single package outside a capability route
        (capabilities go through ``install``). Failures are logged and
        reported as False instead of raised.
        """
        try:
            self._run_all(self._package_commands(platform.family, (package,)), package)
        except StepError as exc:
            logger.error(f"Installing {package} failed: {exc}")
            return False
        return True

    def install(self, platform: PlatformInfo, capability: str, versions: Mapping[str, str]) -> bool:
        """Install ``capability`` or raise a StepError describing why not."""
        strategy = self.select(platform, capability)
        commands = self._render(platform.family, strategy, versions)

        logger.info(f"Installing {capability}...")
        self._run_all(commands, capability)

        for addition in strategy.path_additions:
            self._extend_path(addition)
        if strategy.notice:
            logger.warning(strategy.notice)
        return True

    def describe(self, platform: PlatformInfo, capability: str, versions: Mapping[str, str]) -> str:
        """Commands ``install`` would run, joined for display."""
        strategy = self.select(platform, capability)
        commands = self._render(platform.family, strategy, versions)
        return " && ".join(format_command(argv) for argv in commands)

    def select(self, platform: PlatformInfo, capability: str) -> InstallStrategy:
        """Pick the first strategy whose prerequisite is available.

        Raises:
            UnsupportedPlatformError: No route for this platform
            ManualActionRequired: Only a manual route exists
            MissingPrerequisiteError: Routes exist but their prerequisites are absent
        """
        strategies = self.table.get((platform.family, capability)) or self.table.get((ANY, capability))
        if not strategies:
            raise UnsupportedPlatformError(
                f"No installer for '{capability}' on platform '{platform.family.value}'",
                hint=f"Install {capability} manually and re-run",
            )

        missing = []
        for strategy in strategies:
            if strategy.manual:
                raise ManualActionRequired(f"{capability} cannot be installed automatically", hint=strategy.manual)
            if strategy.requires and not self.which(strategy.requires):
                missing.append(strategy.requires)
                continue
            if strategy.packages and platform.family == OSFamily.MACOS and not self.which("brew"):
                raise MissingPrerequisiteError("Homebrew not found", hint="Install it from https://brew.sh")
            return strategy

        raise MissingPrerequisiteError(
            f"Installing {capability} requires {' or '.join(missing)}",
        )

    # -----------------------------
    #  Helpers
    # -----------------------------
    def _render(self, family: OSFamily, strategy: InstallStrategy, versions: Mapping[str, str]) -> List[List[str]]:
        commands: List[List[str]] = []
        if strategy.refresh and family in REFRESH_COMMANDS:
            commands.append(self._privileged(REFRESH_COMMANDS[family]))
        if strategy.script:
            script = strategy.script.format(**versions)
            if self.is_root:
                script = script.replace("sudo -E ", "").replace("sudo ", "")
            commands.append(["bash", "-c", script])
        if strategy.packages:
            packages = tuple(package.format(**versions) for package in strategy.packages)
            commands.extend(self._package_commands(family, packages))
        for argv in strategy.commands:
            commands.append(self._privileged(tuple(part.format(**versions) for part in argv)))
        return commands

    def _package_commands(self, family: OSFamily, packages: Sequence[str]) -> List[List[str]]:
        base = PACKAGE_MANAGER_COMMANDS.get(family)
        if base is None:
            raise UnsupportedPlatformError(
                f"Cannot install {', '.join(packages)} on platform '{family.value}'"
            )
        return [self._privileged(base) + list(packages)]

    def _privileged(self, argv: Sequence[str]) -> List[str]:
        argv = list(argv)
        if self.is_root and argv and argv[0] == "sudo":
            return argv[1:]
        return argv

    def _run_all(self, commands: List[List[str]], label: str) -> None:
        for argv in commands:
            script = argv[0] == "bash"
            display = "bash -c <install script>" if script else format_command(argv)
            logger.debug(f"Running: {display}")
            try:
                if script:
                    result = self._run_script(argv, label)
                else:
                    result = self.run_cmd(argv, timeout=self.timeout)
            except FileNotFoundError as exc:
                raise MissingPrerequisiteError(f"'{argv[0]}' is not installed") from exc
            except subprocess.TimeoutExpired as exc:
                raise ExternalToolError(f"{display} timed out after {self.timeout}s") from exc
            if not result.ok:
                raise ExternalToolError(
                    f"{display} exited with status {result.returncode}",
                    hint=result.tail() or None,
                )

    def _run_script(self, argv: List[str], label: str) -> CommandResult:
        """Run an install script, retrying timeouts with exponential backoff."""
        delay = self.retry_delay
        for attempt in range(1, SCRIPT_ATTEMPTS + 1):
            try:
                return self.run_cmd(argv, timeout=self.timeout)
            except subprocess.TimeoutExpired:
                if attempt == SCRIPT_ATTEMPTS:
                    logger.error(f"{label} install script timed out {SCRIPT_ATTEMPTS} times")
                    raise
                logger.warning(
                    f"{label} install script timed out (attempt {attempt}/{SCRIPT_ATTEMPTS}), "
                    f"retrying in {delay:.1f}s"
                )
                time.sleep(delay)
                delay *= 2

    @staticmethod
    def _extend_path(addition: str) -> None:
        directory = str(Path(addition).expanduser())
        current = os.environ.get("PATH", "")
        if directory not in current.split(os.pathsep):
            os.environ["PATH"] = directory + os.pathsep + current
            logger.debug(f"Added {directory} to PATH")
