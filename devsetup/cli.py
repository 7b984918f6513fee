#!/usr/bin/env python3
"""devsetup CLI - Reproducible Django + Next.js workstation and project setup."""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from devsetup.cli_support import (
    confirm_action,
    find_config,
    handle_cli_error,
    print_error,
    setup_file_logging,
)
from devsetup.config.loader import load_project_config
from devsetup.core.logger import get_logger, set_verbose
from devsetup.core.orchestrator import Provisioner
from devsetup.models.config import ConfigError, ProjectConfig
from devsetup.models.state import ExecutionMode

app = typer.Typer(
    name="devsetup",
    help="""devsetup - Set up a Django + Next.js project from one YAML file

Installs missing tools, scaffolds backend and frontend, and writes the
project files (compose, CI, .env, justfile, ...). Safe to re-run.

Quick start:
  devsetup --check       # Show what is installed and what is missing
  devsetup --dry-run     # Show what would be done
  devsetup               # Do it
""",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()
logger = get_logger(__name__)


def create_provisioner(config: ProjectConfig, mode: ExecutionMode, config_name: str) -> Provisioner:
    return Provisioner(config, mode=mode, config_name=config_name)


@app.command()
def main(
    dry_run: bool = typer.Option(False, "--dry-run", help="Show every action without executing it"),
    check: bool = typer.Option(False, "--check", help="Only print the status report"),
    clean: bool = typer.Option(False, "--clean", help="Delete generated files and scaffolded directories"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to project.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write the log to this file"),
):
    """Provision the tools and files the project configuration asks for."""
    if sum((dry_run, check, clean)) > 1:
        print_error(console, "Use only one of --dry-run/--check/--clean")
        raise typer.Exit(2)

    if log_file:
        setup_file_logging(log_file=log_file, verbose=verbose)
    set_verbose(verbose)

    config_file = find_config(config)
    try:
        project = load_project_config(config_file)
    except ConfigError as e:
        handle_cli_error(e, console, verbose=verbose)

    if dry_run:
        mode = ExecutionMode.DRY_RUN
    elif check:
        mode = ExecutionMode.CHECK_ONLY
    else:
        mode = ExecutionMode.NORMAL

    provisioner = create_provisioner(project, mode, Path(config_file).name)

    if clean:
        provisioner.clean(confirm=confirm_action)
        return

    report = provisioner.run()
    if report.failed:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
