"""devsetup runtime settings."""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class RuntimeSettings:
    """Process-level knobs that are not part of the project configuration.

    Attributes:
        command_timeout: Timeout in seconds for version probes (default: 5)
        install_timeout: Timeout in seconds for a single installer command (default: 900)
        scaffold_timeout: Timeout in seconds for a single scaffolding command (default: 900)
    """

    command_timeout: int = 5
    install_timeout: int = 900  # package downloads can be slow
    scaffold_timeout: int = 900

    @classmethod
    def from_env(cls) -> "RuntimeSettings":
        """Create settings from environment variables.

        Environment variables:
            DEVSETUP_COMMAND_TIMEOUT: Probe timeout in seconds
            DEVSETUP_INSTALL_TIMEOUT: Installer timeout in seconds
            DEVSETUP_SCAFFOLD_TIMEOUT: Scaffolder timeout in seconds
        """
        return cls(
            command_timeout=int(os.getenv("DEVSETUP_COMMAND_TIMEOUT", cls.command_timeout)),
            install_timeout=int(os.getenv("DEVSETUP_INSTALL_TIMEOUT", cls.install_timeout)),
            scaffold_timeout=int(os.getenv("DEVSETUP_SCAFFOLD_TIMEOUT", cls.scaffold_timeout)),
        )


_settings: Optional[RuntimeSettings] = None


def get_settings() -> RuntimeSettings:
    """Return the process-wide settings, reading the environment on first use."""
    global _settings
    if _settings is None:
        _settings = RuntimeSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings (used by tests that change the environment)."""
    global _settings
    _settings = None
