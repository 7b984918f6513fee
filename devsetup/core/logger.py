"""Unified logging for devsetup with console and file output."""
import logging
import tempfile
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()

LOG_DIR = Path.home() / ".devsetup"
LOG_FILE = LOG_DIR / "devsetup.log"

_file_logging_configured = False


def setup_file_logging(log_file: str = None, verbose: bool = False):
    """Set up file logging for devsetup runs.

    Args:
        log_file: Path to log file (defaults to ~/.devsetup/devsetup.log)
        verbose: Enable debug-level logging

    Note:
        Falls back to the system temp directory if the home directory
        is not writable.
    """
    global _file_logging_configured

    if _file_logging_configured:
        return

    target_log_file = Path(log_file) if log_file else LOG_FILE

    try:
        target_log_file.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target_log_file = Path(tempfile.gettempdir()) / "devsetup.log"

    root_logger = logging.getLogger("devsetup")
    file_handler = logging.FileHandler(target_log_file)
    file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.addHandler(file_handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    _file_logging_configured = True

    root_logger.info(f"devsetup logging initialized: {target_log_file}")


def set_verbose(verbose: bool) -> None:
    """Switch every devsetup console logger to DEBUG (or back to INFO)."""
    level = logging.DEBUG if verbose else logging.INFO
    for name, candidate in logging.root.manager.loggerDict.items():
        if name.startswith("devsetup") and isinstance(candidate, logging.Logger):
            if any(isinstance(h, RichHandler) for h in candidate.handlers):
                candidate.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance with console output.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger with Rich console handler
    """
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger
