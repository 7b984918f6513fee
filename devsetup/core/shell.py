"""Thin wrappers around subprocess used by probes, installers and scaffolders.

Every component that touches the host takes ``run_cmd`` and ``which``
callables so tests can substitute a fake host.
"""
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union


@dataclass
class CommandResult:
    """Outcome of a finished external command."""
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr combined (several tools print versions to stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def tail(self, lines: int = 5) -> str:
        """Last few lines of output for error messages."""
        text = self.stderr.strip() or self.stdout.strip()
        return "\n".join(text.splitlines()[-lines:])


def run_command(
    argv: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run a command to completion and capture its output.

    Raises:
        FileNotFoundError: If the executable does not exist
        subprocess.TimeoutExpired: If the command exceeds ``timeout``
    """
    result = subprocess.run(
        list(argv),
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True,
        text=True,
        timeout=timeout,
        env=dict(env) if env is not None else None,
    )
    return CommandResult(result.returncode, result.stdout or "", result.stderr or "")


def command_exists(name: str) -> Optional[str]:
    """Return the resolved path of ``name`` on PATH, or None."""
    return shutil.which(name)


def format_command(argv: Sequence[str]) -> str:
    """Render argv as a copy-pasteable shell string."""
    return " ".join(shlex.quote(part) for part in argv)
