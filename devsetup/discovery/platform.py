"""Host platform detection."""
import platform as _platform
from typing import Callable, Optional

from devsetup.core.logger import get_logger
from devsetup.core.shell import command_exists
from devsetup.models.state import OSFamily, PlatformInfo

logger = get_logger(__name__)

# Linux distributions are told apart by their package manager, first hit wins
LINUX_PACKAGE_MANAGERS = (
    ("apt", OSFamily.DEBIAN),
    ("dnf", OSFamily.FEDORA),
    ("pacman", OSFamily.ARCH),
)


def detect_platform(
    system: Optional[str] = None,
    which: Optional[Callable[[str], Optional[str]]] = None,
) -> PlatformInfo:
    """Identify the host OS family.

    Args:
        system: Override for ``platform.system()`` (tests)
        which: Override for PATH lookups (tests)
    """
    system = system if system is not None else _platform.system()
    which = which or command_exists

    if system == "Darwin":
        info = PlatformInfo(OSFamily.MACOS, system)
    elif system == "Linux":
        family = OSFamily.UNKNOWN
        for manager, candidate in LINUX_PACKAGE_MANAGERS:
            if which(manager):
                family = candidate
                break
        info = PlatformInfo(family, system)
    else:
        info = PlatformInfo(OSFamily.UNKNOWN, system)

    if not info.supported:
        logger.warning(f"No known package manager on this host ({system or 'unknown system'})")
    return info
