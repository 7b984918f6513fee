"""Builds the fixed phase list for a project configuration.

Phase order encodes dependencies: tools before services (npm-installed CLIs
need node), services before scaffolding, scaffolding before the artifacts
that live inside the scaffolded directories.
"""
import subprocess
from typing import Callable, Dict, List, Optional

from devsetup.core.errors import ExternalToolError, MissingPrerequisiteError
from devsetup.core.planner import ActionStep, Phase
from devsetup.core.shell import CommandResult, run_command
from devsetup.core.versions import LATEST, major, resolve_install_version, satisfies
from devsetup.discovery.probe import CapabilityProbe
from devsetup.generators.artifacts import ArtifactGenerator
from devsetup.models.config import NodePackageManager, ProjectConfig, PythonPackageManager, RedisMode
from devsetup.models.state import PlatformInfo
from devsetup.services.installer import InstallerDispatcher
from devsetup.services.scaffolder import ProjectScaffolder

ARTIFACT_PHASE_KEYS = ("compose", "backend_dockerfile", "celery", "ci")
CONFIGURATION_PHASE_KEYS = ("env", "env_example", "gitignore", "precommit", "task_runner")


class PhaseBuilder:
    """Turns a ProjectConfig into phases of idempotent steps.

    Steps for disabled features are left out of the plan entirely, so a
    report only ever lists work the configuration asked for.
    """

    def __init__(
        self,
        config: ProjectConfig,
        platform: PlatformInfo,
        probe: CapabilityProbe,
        installer: InstallerDispatcher,
        scaffolder: ProjectScaffolder,
        generator: ArtifactGenerator,
        run_cmd: Callable[..., CommandResult] = None,
    ):
        self.config = config
        self.platform = platform
        self.probe = probe
        self.installer = installer
        self.scaffolder = scaffolder
        self.generator = generator
        self.run_cmd = run_cmd or run_command

    def build(self) -> List[Phase]:
        return [
            Phase("tools", "Core tools", self.tool_steps()),
            Phase("services", "Services & tools", self.service_steps()),
            Phase("scaffold", "Project scaffolding", self.scaffold_steps()),
            Phase("artifacts", "Containers & CI", self._artifact_steps(ARTIFACT_PHASE_KEYS)),
            Phase("configuration", "Project configuration", self.configuration_steps()),
        ]

    # -----------------------------
    #  Phases
    # -----------------------------
    def tool_steps(self) -> List[ActionStep]:
        versions = self.config.versions
        steps = [
            self._tool_step("python", "python3", "python", versions.python),
            self._tool_step("node", "node", "node", versions.node),
        ]
        if self.config.python_pm == PythonPackageManager.UV:
            steps.append(self._tool_step("uv", "uv", "uv"))
        if self.config.node_pm != NodePackageManager.NPM:
            name = self.config.node_pm.value
            steps.append(self._tool_step(name, name, name))
        return steps

    def service_steps(self) -> List[ActionStep]:
        services = self.config.services
        steps = []
        if services.docker:
            steps.append(self._tool_step("docker", "docker", "docker"))
        if services.docker_compose:
            steps.append(ActionStep(
                name="docker-compose",
                check=lambda: self.probe.exists("compose"),
                detail=lambda: self._version_of("compose"),
                optional=True,
                advisory="docker compose plugin not found (it ships with Docker Desktop and docker-compose-plugin)",
            ))
        if services.neon_cli:
            steps.append(self._tool_step("neonctl", "neonctl", "neonctl"))
        if services.redis:
            if services.redis_mode == RedisMode.LOCAL:
                steps.append(self._tool_step("redis", "redis-cli", "redis"))
            else:
                steps.append(ActionStep(
                    name="redis",
                    check=lambda: True,
                    detail=lambda: "provided by docker-compose.yml",
                ))
        if services.just:
            steps.append(self._tool_step("just", "just", "just"))
        if services.ruff:
            steps.append(self._tool_step("ruff", "ruff", "ruff", optional=True))
        return steps

    def scaffold_steps(self) -> List[ActionStep]:
        config = self.config
        return [
            ActionStep(
                name="backend",
                check=lambda: self.scaffolder.backend_ready(config),
                effect=lambda: self._scaffold(self.scaffolder.scaffold_backend),
                describe=lambda: self.scaffolder.describe_backend(config),
                detail=lambda: f"{config.backend_dir}/ already initialized",
            ),
            ActionStep(
                name="frontend",
                check=lambda: self.scaffolder.frontend_ready(config),
                effect=lambda: self._scaffold(self.scaffolder.scaffold_frontend),
                describe=lambda: self.scaffolder.describe_frontend(config),
                detail=lambda: f"{config.frontend_dir}/ already initialized",
            ),
        ]

    def configuration_steps(self) -> List[ActionStep]:
        steps = self._artifact_steps(CONFIGURATION_PHASE_KEYS[:2])
        if self.config.features.git:
            git_dir = self.config.root / ".git"
            steps.append(ActionStep(
                name="git",
                check=git_dir.exists,
                effect=self._git_init,
                describe=lambda: f"git init {self.config.root}",
                detail=lambda: "repository already initialized",
            ))
        steps.extend(self._artifact_steps(CONFIGURATION_PHASE_KEYS[2:]))
        return steps

    # -----------------------------
    #  Step factories
    # -----------------------------
    def _tool_step(self, name: str, tool: str, capability: str, minimum: str = LATEST,
                   optional: bool = False) -> ActionStep:
        def check() -> bool:
            status = self.probe.probe(tool)
            return status.installed and satisfies(status.version, minimum)

        def describe() -> str:
            # prerequisites installed earlier in a dry-run do not exist yet;
            # platform and manual-action errors still fail the step
            try:
                return self.installer.describe(self.platform, capability, self._install_versions())
            except MissingPrerequisiteError as exc:
                return f"install {capability} ({exc})"

        return ActionStep(
            name=name,
            check=check,
            effect=lambda: self.installer.install(self.platform, capability, self._install_versions()),
            describe=describe,
            detail=lambda: self._version_of(tool),
            optional=optional,
        )

    def _artifact_steps(self, keys) -> List[ActionStep]:
        enabled = {artifact.key: artifact for artifact in self.generator.artifacts()}
        steps = []
        for key in keys:
            artifact = enabled.get(key)
            if artifact is None:
                continue
            steps.append(ActionStep(
                name=artifact.key,
                check=lambda a=artifact: self.generator.exists(a),
                effect=lambda a=artifact: self.generator.generate(a),
                describe=lambda a=artifact: self.generator.describe(a),
                detail=lambda a=artifact: f"{a.path} already exists",
            ))
        return steps

    # -----------------------------
    #  Effects
    # -----------------------------
    def _install_versions(self) -> Dict[str, str]:
        versions = self.config.versions
        return {
            "python": resolve_install_version("python", versions.python),
            "node_major": major(resolve_install_version("node", versions.node)),
        }

    def _version_of(self, tool: str) -> str:
        status = self.probe.probe(tool)
        return status.describe()

    def _scaffold(self, action: Callable[[ProjectConfig], bool]) -> None:
        if not action(self.config):
            raise ExternalToolError(self.scaffolder.last_error or "scaffolding failed")

    def _git_init(self) -> None:
        argv = ["git", "init"]
        try:
            result: Optional[CommandResult] = self.run_cmd(argv, cwd=self.config.root)
        except FileNotFoundError as exc:
            raise MissingPrerequisiteError("'git' is not installed") from exc
        except subprocess.TimeoutExpired as exc:
            raise ExternalToolError("git init timed out") from exc
        if not result.ok:
            raise ExternalToolError(f"git init exited with status {result.returncode}", hint=result.tail() or None)


def build_phases(config: ProjectConfig, platform: PlatformInfo, probe: CapabilityProbe,
                 installer: InstallerDispatcher, scaffolder: ProjectScaffolder,
                 generator: ArtifactGenerator, run_cmd=None) -> List[Phase]:
    return PhaseBuilder(config, platform, probe, installer, scaffolder, generator, run_cmd).build()
