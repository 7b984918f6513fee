"""Tests for the phase list built from a configuration."""
from devsetup.core.phases import build_phases
from devsetup.discovery.probe import CapabilityProbe
from devsetup.generators.artifacts import ArtifactGenerator
from devsetup.models.config import NodePackageManager, PythonPackageManager, RedisMode, ToolVersions
from devsetup.models.state import OSFamily, PlatformInfo
from devsetup.services.installer import InstallerDispatcher
from devsetup.services.scaffolder import ProjectScaffolder

DEBIAN = PlatformInfo(OSFamily.DEBIAN, "Linux")


def phases_for(config, fake):
    return build_phases(
        config,
        DEBIAN,
        CapabilityProbe(run_cmd=fake.run, which=fake.which),
        InstallerDispatcher(run_cmd=fake.run, which=fake.which, is_root=False),
        ProjectScaffolder(run_cmd=fake.run, which=fake.which),
        ArtifactGenerator(config),
        run_cmd=fake.run,
    )


def step_names(phases):
    return {phase.name: [step.name for step in phase.steps] for phase in phases}


class TestBuildPhases:

    def test_fixed_phase_order(self, host, make_config):
        assert [p.name for p in phases_for(make_config(), host)] == [
            "tools", "services", "scaffold", "artifacts", "configuration",
        ]

    def test_minimal_plan(self, host, make_config):
        assert step_names(phases_for(make_config(), host)) == {
            "tools": ["python", "node", "uv", "pnpm"],
            "services": [],
            "scaffold": ["backend", "frontend"],
            "artifacts": [],
            "configuration": [],
        }

    def test_full_plan(self, host, make_config, all_features):
        services = {"docker": True, "docker_compose": True, "neon_cli": True, "redis": True,
                    "just": True, "ruff": True}
        names = step_names(phases_for(make_config(features=all_features, services=services), host))

        assert names["services"] == ["docker", "docker-compose", "neonctl", "redis", "just", "ruff"]
        assert names["artifacts"] == ["compose", "backend_dockerfile", "celery", "ci"]
        assert names["configuration"] == [
            "env", "env_example", "git", "gitignore", "precommit", "task_runner",
        ]

    def test_package_manager_steps(self, host, make_config):
        config = make_config(python_pm=PythonPackageManager.PIP, node_pm=NodePackageManager.NPM)
        assert step_names(phases_for(config, host))["tools"] == ["python", "node"]

        config = make_config(node_pm=NodePackageManager.YARN)
        assert step_names(phases_for(config, host))["tools"][-1] == "yarn"

    def test_tool_step_checks_minimum_version(self, new_host, make_config):
        fake = new_host({"apt": "2.7.14", "python3": "3.10.12"})
        tools = phases_for(make_config(versions=ToolVersions(python="3.12")), fake)[0]
        python = tools.steps[0]

        assert python.check() is False
        fake.tools["python3"] = "3.12.1"
        assert python.check() is True
        assert python.detail() == "3.12.1"

    def test_tool_step_description(self, bare_host, make_config):
        python = phases_for(make_config(), bare_host)[0].steps[0]
        assert "apt-get install -y python3" in python.description()

    def test_description_survives_missing_prerequisite(self, bare_host, make_config):
        pnpm = phases_for(make_config(), bare_host)[0].steps[-1]
        assert pnpm.description().startswith("install pnpm (")

    def test_redis_in_docker_mode_is_satisfied(self, bare_host, make_config):
        services = phases_for(make_config(services={"redis": True}), bare_host)[1]
        redis = services.steps[0]

        assert redis.check() is True
        assert redis.detail() == "provided by docker-compose.yml"

    def test_local_redis_is_installed(self, bare_host, make_config):
        config = make_config(services={"redis": True, "redis_mode": RedisMode.LOCAL})
        redis = phases_for(config, bare_host)[1].steps[0]

        assert redis.check() is False
        assert "redis-server" in redis.description()

    def test_compose_check_is_advisory(self, new_host, make_config):
        fake = new_host({"docker": "27.0.3"})
        compose = phases_for(make_config(services={"docker_compose": True}), fake)[1].steps[0]

        assert compose.effect is None
        assert compose.optional
        assert compose.check() is False

    def test_git_step_runs_git_init(self, host, make_config, tmp_path):
        git = phases_for(make_config(features={"git": True}), host)[4].steps[0]

        assert git.check() is False
        git.effect()
        assert ["git", "init"] in host.commands
        assert git.check() is True
        assert (tmp_path / ".git").is_dir()
