"""Runtime state models: platform, probed tools, execution mode, step outcomes."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OSFamily(str, Enum):
    """Host family; selects the installer strategy."""
    DEBIAN = "debian"
    FEDORA = "fedora"
    ARCH = "arch"
    MACOS = "macos"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PlatformInfo:
    family: OSFamily
    system: str = ""

    @property
    def supported(self) -> bool:
        return self.family != OSFamily.UNKNOWN


@dataclass(frozen=True)
class ToolStatus:
    """Result of probing one tool. Never cached between steps."""
    name: str
    installed: bool
    version: Optional[str] = None

    def describe(self) -> str:
        if not self.installed:
            return "not installed"
        return self.version or "unknown"


class ExecutionMode(str, Enum):
    NORMAL = "normal"
    DRY_RUN = "dry-run"
    CHECK_ONLY = "check-only"


class StepOutcome(str, Enum):
    SKIPPED = "skipped-already-satisfied"
    APPLIED = "applied"
    DRY_RUN = "applied-in-dry-run"
    FAILED = "failed"
