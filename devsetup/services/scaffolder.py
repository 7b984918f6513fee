"""Backend (Django) and frontend (Next.js) project scaffolding.

Scaffolding is delegated to the stack's own tools (uv/pip, create-next-app);
this module only decides which commands to run and whether they succeeded.
"""
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from devsetup.core.config import get_settings
from devsetup.core.logger import get_logger
from devsetup.core.shell import CommandResult, command_exists, format_command, run_command
from devsetup.core.versions import resolve_install_version
from devsetup.models.config import NodePackageManager, ProjectConfig, PythonPackageManager

logger = get_logger(__name__)

# How each node package manager runs a one-off package
DLX_COMMANDS = {
    NodePackageManager.PNPM: ["pnpm", "dlx"],
    NodePackageManager.NPM: ["npx", "--yes"],
    NodePackageManager.YARN: ["yarn", "dlx"],
}

DEV_DEPENDENCY_COMMANDS = {
    NodePackageManager.PNPM: ["pnpm", "add", "-D"],
    NodePackageManager.NPM: ["npm", "install", "-D"],
    NodePackageManager.YARN: ["yarn", "add", "-D"],
}

NEXT_APP_FLAGS = [
    "--typescript", "--tailwind", "--eslint", "--app", "--src-dir",
    "--import-alias", "@/*",
]

VENV_PYTHON = ".venv/bin/python"


class ScaffoldError(Exception):
    """A scaffolding command failed."""
    pass


class ProjectScaffolder:
    """Initializes the backend and frontend projects, once."""

    def __init__(self, run_cmd: Callable[..., CommandResult] = None, which=None, timeout: Optional[int] = None):
        self.run_cmd = run_cmd or run_command
        self.which = which or command_exists
        self.timeout = timeout if timeout is not None else get_settings().scaffold_timeout
        self.last_error: Optional[str] = None

    # -----------------------------
    #  Markers
    # -----------------------------
    @staticmethod
    def backend_marker(config: ProjectConfig) -> Path:
        if config.python_pm == PythonPackageManager.PIP:
            return config.backend_path / "requirements.txt"
        return config.backend_path / "pyproject.toml"

    @staticmethod
    def frontend_marker(config: ProjectConfig) -> Path:
        return config.frontend_path / "package.json"

    def backend_ready(self, config: ProjectConfig) -> bool:
        return self.backend_marker(config).exists()

    def frontend_ready(self, config: ProjectConfig) -> bool:
        return self.frontend_marker(config).exists()

    # -----------------------------
    #  Backend
    # -----------------------------
    def backend_commands(self, config: ProjectConfig) -> List[List[str]]:
        django = self._django_requirement(config)
        if config.python_pm == PythonPackageManager.UV:
            return [
                ["uv", "init", "--python", resolve_install_version("python", config.versions.python)],
                ["uv", "add", django],
            ]
        return [
            ["python3", "-m", "venv", ".venv"],
            [VENV_PYTHON, "-m", "pip", "install", "--upgrade", "pip"],
            [VENV_PYTHON, "-m", "pip", "install", django],
        ]

    def extra_backend_commands(self, config: ProjectConfig) -> List[List[str]]:
        if config.python_pm == PythonPackageManager.UV:
            return [["uv", "add", package] for package in config.python_extras]
        return [[VENV_PYTHON, "-m", "pip", "install", package] for package in config.python_extras]

    def describe_backend(self, config: ProjectConfig) -> str:
        commands = self.backend_commands(config) + self.extra_backend_commands(config)
        rendered = " && ".join(format_command(argv) for argv in commands)
        if config.python_pm == PythonPackageManager.PIP:
            rendered += f" && {VENV_PYTHON} -m pip freeze > requirements.txt"
        return f"(cd {config.backend_dir} && {rendered})"

    def scaffold_backend(self, config: ProjectConfig) -> bool:
        """Create the Django project in ``backend_dir``. Returns False on failure."""
        self.last_error = None
        workdir = config.backend_path
        logger.info(f"Setting up backend in {config.backend_dir} (Django {config.versions.django})")
        workdir.mkdir(parents=True, exist_ok=True)

        commands = self.backend_commands(config)
        try:
            if config.python_pm == PythonPackageManager.UV:
                # uv init refuses to run inside an existing project; that is fine
                self._run(commands[0], workdir, tolerate=True)
                self._run(commands[1], workdir)
            else:
                for argv in commands:
                    self._run(argv, workdir)
        except ScaffoldError as exc:
            return self._fail(f"Backend setup failed: {exc}")

        for argv in self.extra_backend_commands(config):
            try:
                self._run(argv, workdir)
                logger.info(f"  + {argv[-1]}")
            except ScaffoldError as exc:
                logger.warning(f"  ⚠ {argv[-1]} failed: {exc}")

        if config.python_pm == PythonPackageManager.PIP:
            try:
                frozen = self._run([VENV_PYTHON, "-m", "pip", "freeze"], workdir)
            except ScaffoldError as exc:
                return self._fail(f"Backend setup failed: {exc}")
            (workdir / "requirements.txt").write_text(frozen.stdout)

        logger.info(f"✓ Backend ready (Django {config.versions.django})")
        return True

    # -----------------------------
    #  Frontend
    # -----------------------------
    def frontend_command(self, config: ProjectConfig) -> List[str]:
        version = resolve_install_version("nextjs", config.versions.nextjs)
        package = f"create-next-app@{version}"
        return (
            DLX_COMMANDS[config.node_pm]
            + [package, config.frontend_dir]
            + NEXT_APP_FLAGS
            + [f"--use-{config.node_pm.value}"]
        )

    def extra_frontend_command(self, config: ProjectConfig) -> Optional[List[str]]:
        if not config.node_extras:
            return None
        return DEV_DEPENDENCY_COMMANDS[config.node_pm] + list(config.node_extras)

    def describe_frontend(self, config: ProjectConfig) -> str:
        rendered = format_command(self.frontend_command(config))
        extras = self.extra_frontend_command(config)
        if extras:
            rendered += f" && (cd {config.frontend_dir} && {format_command(extras)})"
        return rendered

    def scaffold_frontend(self, config: ProjectConfig) -> bool:
        """Create the Next.js project in ``frontend_dir``. Returns False on failure."""
        self.last_error = None
        argv = self.frontend_command(config)
        logger.info(f"Setting up frontend in {config.frontend_dir} (Next.js {config.versions.nextjs})")

        if not self.which(argv[0]):
            return self._fail(f"'{argv[0]}' is required to create the frontend")

        try:
            self._run(argv, config.root)
        except ScaffoldError as exc:
            return self._fail(f"Next.js setup failed: {exc}")

        extras = self.extra_frontend_command(config)
        if extras:
            try:
                self._run(extras, config.frontend_path)
            except ScaffoldError as exc:
                logger.warning(f"⚠ Installing frontend extras failed: {exc}")

        logger.info(f"✓ Frontend ready (Next.js {config.versions.nextjs})")
        return True

    # -----------------------------
    #  Helpers
    # -----------------------------
    def _django_requirement(self, config: ProjectConfig) -> str:
        version = resolve_install_version("django", config.versions.django)
        return f"django=={version}.*"

    def _run(self, argv: List[str], cwd: Path, tolerate: bool = False) -> CommandResult:
        logger.debug(f"Running in {cwd}: {format_command(argv)}")
        try:
            result = self.run_cmd(argv, cwd=cwd, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise ScaffoldError(f"'{argv[0]}' is not installed") from exc
        except subprocess.TimeoutExpired as exc:
            raise ScaffoldError(f"{format_command(argv)} timed out") from exc

        if not result.ok and not tolerate:
            detail = result.tail()
            message = f"{format_command(argv)} exited with status {result.returncode}"
            raise ScaffoldError(f"{message}: {detail}" if detail else message)
        if not result.ok:
            logger.debug(f"Ignoring failure of {format_command(argv)}")
        return result

    def _fail(self, message: str) -> bool:
        self.last_error = message
        logger.debug(message)
        return False
