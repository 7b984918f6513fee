"""Tests for project configuration loading and validation."""
import dataclasses

import pytest

from devsetup.config.loader import ConfigLoader, load_project_config
from devsetup.config.validator import ProjectConfigValidator
from devsetup.core.config import RuntimeSettings
from devsetup.models.config import (
    ConfigNotFoundError,
    ConfigValidationError,
    DatabaseEngine,
    FailurePolicy,
    NodePackageManager,
    PythonPackageManager,
    RedisMode,
)

class TestConfigLoader:

    def test_minimal_config_uses_defaults(self, write_config, tmp_path):
        config = load_project_config(write_config({"project": {"name": "myapp"}}))

        assert config.name == "myapp"
        assert config.root == tmp_path.resolve()
        assert config.backend_dir == "backend"
        assert config.frontend_dir == "frontend"
        assert config.python_pm == PythonPackageManager.UV
        assert config.node_pm == NodePackageManager.PNPM
        assert config.versions.python == "3.12"
        assert config.versions.node == "latest"
        assert config.database_engine == DatabaseEngine.LOCAL
        assert config.optional_failures == FailurePolicy.CONTINUE
        assert not any(vars(config.features).values())

    def test_full_config(self, write_config, full_config, tmp_path):
        config = load_project_config(write_config(full_config))

        assert config.backend_path == tmp_path.resolve() / "backend"
        assert config.services.redis_mode == RedisMode.DOCKER
        assert config.services.compose_services == ("postgres", "redis", "mailhog")
        assert config.python_extras == ("djangorestframework",)
        assert config.features.task_runner is True
        assert config.has_compose_service("mailhog")
        assert not config.has_compose_service("minio")

    def test_integer_versions_become_strings(self, write_config):
        config = load_project_config(write_config("project:\n  name: app\nversions:\n  node: 20\n"))
        assert config.versions.node == "20"

    def test_unquoted_decimal_version_is_rejected(self, write_config):
        # YAML reads 3.10 as the float 3.1
        with pytest.raises(ConfigValidationError, match="versions.python' must be quoted"):
            load_project_config(write_config("project:\n  name: app\nversions:\n  python: 3.10\n"))

    def test_quoted_decimal_version_is_kept(self, write_config):
        config = load_project_config(write_config("project:\n  name: app\nversions:\n  python: \"3.10\"\n"))
        assert config.versions.python == "3.10"

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "project.yml"
        path.write_bytes(b"project:\n  name: \xff\xfe\n")
        with pytest.raises(ConfigValidationError):
            load_project_config(path)

    def test_config_is_immutable(self, write_config):
        config = load_project_config(write_config({"project": {"name": "myapp"}}))
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.name = "other"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFoundError, match="not found"):
            ConfigLoader(str(tmp_path / "missing.yml")).load()

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigValidationError, match="Failed to parse YAML"):
            load_project_config(write_config("project: [unclosed\n"))

    def test_empty_file(self, write_config):
        with pytest.raises(ConfigValidationError, match="empty"):
            load_project_config(write_config(""))

    def test_policy(self, write_config):
        path = write_config({"project": {"name": "app"}, "policy": {"optional_failures": "abort-run"}})
        assert load_project_config(path).optional_failures == FailurePolicy.ABORT_RUN


class TestProjectConfigValidator:

    def validate(self, document):
        ProjectConfigValidator().validate(document)

    def test_valid(self, full_config):
        self.validate(full_config)

    def test_not_a_mapping(self):
        with pytest.raises(ConfigValidationError, match="mapping"):
            self.validate(["project"])

    def test_missing_project_section(self):
        with pytest.raises(ConfigValidationError, match="Missing required section 'project'"):
            self.validate({"features": {"ci": True}})

    def test_unknown_section_and_key(self):
        with pytest.raises(ConfigValidationError) as exc:
            self.validate({"project": {"name": "app", "colour": "blue"}, "plugins": {}})
        message = str(exc.value)
        assert "Unknown section 'plugins'" in message
        assert "Unknown key 'project.colour'" in message

    def test_bad_enum_value(self):
        with pytest.raises(ConfigValidationError, match="package_managers.node"):
            self.validate({"project": {"name": "app"}, "package_managers": {"node": "bun"}})

    def test_bool_flags_must_be_booleans(self):
        with pytest.raises(ConfigValidationError, match="features.ci"):
            self.validate({"project": {"name": "app"}, "features": {"ci": "yes"}})

    def test_bool_is_not_a_version(self):
        with pytest.raises(ConfigValidationError, match="versions.python"):
            self.validate({"project": {"name": "app"}, "versions": {"python": True}})

    def test_bad_version(self):
        with pytest.raises(ConfigValidationError, match="dotted version"):
            self.validate({"project": {"name": "app"}, "versions": {"node": "newest"}})

    @pytest.mark.parametrize("name", ["my app", "-app", "app/../x"])
    def test_bad_project_name(self, name):
        with pytest.raises(ConfigValidationError, match="project.name"):
            self.validate({"project": {"name": name}})

    @pytest.mark.parametrize("directory,fragment", [
        ("/srv/backend", "relative"),
        ("../backend", "must not leave"),
        (".", "subdirectory"),
    ])
    def test_bad_directories(self, directory, fragment):
        with pytest.raises(ConfigValidationError, match=fragment):
            self.validate({"project": {"name": "app", "backend_dir": directory}})

    def test_directories_must_differ(self):
        with pytest.raises(ConfigValidationError, match="must differ"):
            self.validate({"project": {"name": "app", "backend_dir": "web", "frontend_dir": "web"}})

    def test_unknown_compose_service(self):
        with pytest.raises(ConfigValidationError, match="Unknown compose service 'kafka'"):
            self.validate({"project": {"name": "app"}, "services": {"compose_services": ["kafka"]}})

    def test_empty_extra(self):
        with pytest.raises(ConfigValidationError, match="extras.python"):
            self.validate({"project": {"name": "app"}, "extras": {"python": [""]}})

    def test_collects_all_errors(self):
        with pytest.raises(ConfigValidationError) as exc:
            self.validate({"project": {"name": "app"}, "features": {"ci": 1, "git": "no"}})
        assert "features.ci" in str(exc.value)
        assert "features.git" in str(exc.value)


class TestRuntimeSettings:

    def test_defaults(self):
        settings = RuntimeSettings.from_env()
        assert settings.command_timeout == 5
        assert settings.install_timeout == 900

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DEVSETUP_INSTALL_TIMEOUT", "60")
        assert RuntimeSettings.from_env().install_timeout == 60
