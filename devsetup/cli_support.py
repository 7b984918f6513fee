"""Shared utilities for the devsetup CLI."""
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from devsetup.config.loader import DEFAULT_CONFIG_NAME

CONFIG_ENV_VAR = "DEVSETUP_CONFIG"


def find_config(config_path: Optional[str] = None) -> str:
    """Locate the project configuration file.

    Resolution order: explicit ``--config`` option, the DEVSETUP_CONFIG
    environment variable, then ``./project.yml``.
    """
    if config_path:
        return config_path

    if env_config := os.environ.get(CONFIG_ENV_VAR):
        return env_config

    return str(Path.cwd() / DEFAULT_CONFIG_NAME)


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI runs."""
    from devsetup.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)


def confirm_action(message: str) -> bool:
    """Prompt user for confirmation. Declining is the default."""
    return typer.confirm(message, default=False)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Print an error and exit.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    console.print(f"[cyan]{prefix}[/cyan] {message}")
