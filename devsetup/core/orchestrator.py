"""Provisioning run orchestration."""
from typing import Callable, List, Optional

from devsetup.cli_support import print_error, print_info, print_success, print_warning
from devsetup.config.loader import DEFAULT_CONFIG_NAME
from devsetup.core.cleaner import CleanOperator
from devsetup.core.executor import ExecutionController
from devsetup.core.logger import console
from devsetup.core.phases import build_phases
from devsetup.core.planner import ActionPlanner, PlanReport
from devsetup.discovery.platform import detect_platform
from devsetup.discovery.probe import CapabilityProbe
from devsetup.generators.artifacts import ArtifactGenerator
from devsetup.models.config import DatabaseEngine, ProjectConfig
from devsetup.models.state import ExecutionMode, PlatformInfo, StepOutcome
from devsetup.reporting.status import StatusReporter
from devsetup.services.installer import InstallerDispatcher
from devsetup.services.scaffolder import ProjectScaffolder


class Provisioner:
    """Wires every component for one run against one project.

    ``run_cmd`` and ``which`` are shared by every component that touches
    the host, so a single fake can stand in for the whole system in tests.
    """

    def __init__(
        self,
        config: ProjectConfig,
        mode: ExecutionMode = ExecutionMode.NORMAL,
        platform: Optional[PlatformInfo] = None,
        run_cmd: Callable = None,
        which: Callable = None,
        config_name: str = DEFAULT_CONFIG_NAME,
        is_root: Optional[bool] = None,
    ):
        self.config = config
        self.platform = platform or detect_platform(which=which)
        self.controller = ExecutionController(mode)
        self.probe = CapabilityProbe(run_cmd=run_cmd, which=which)
        self.installer = InstallerDispatcher(run_cmd=run_cmd, which=which, is_root=is_root)
        self.scaffolder = ProjectScaffolder(run_cmd=run_cmd, which=which)
        self.generator = ArtifactGenerator(config, config_name=config_name)
        self.planner = ActionPlanner(self.controller, optional_failures=config.optional_failures)
        self.reporter = StatusReporter(config, self.probe, self.generator, platform=self.platform)
        self.run_cmd = run_cmd

    @property
    def mode(self) -> ExecutionMode:
        return self.controller.mode

    def run(self) -> PlanReport:
        """Status, phases, status again, next steps.

        In check-only mode the run stops after the first status report and
        returns an empty report.
        """
        console.print(f"\n[bold]🚀 {self.config.name}[/bold] [dim]({self.mode.value})[/dim]")
        self.reporter.report()

        if self.controller.check_only:
            print_info(console, "Check-only mode: no changes made")
            return PlanReport()

        if self.controller.dry_run:
            print_warning(console, "Dry-run mode: nothing will be changed")

        phases = build_phases(
            self.config, self.platform, self.probe, self.installer,
            self.scaffolder, self.generator, run_cmd=self.run_cmd,
        )
        report = self.planner.run(phases)

        self.reporter.report()
        self.summarize(report)
        if not report.failed and not self.controller.dry_run:
            self.print_next_steps()
        return report

    def clean(self, confirm: Callable[[str], bool] = None) -> bool:
        return CleanOperator(self.config, self.generator, confirm=confirm).clean()

    def summarize(self, report: PlanReport) -> None:
        counts = report.counts()
        console.print(
            f"\n[bold]Summary:[/bold] "
            f"{counts[StepOutcome.APPLIED]} applied, "
            f"{counts[StepOutcome.SKIPPED]} already satisfied, "
            f"{counts[StepOutcome.DRY_RUN]} simulated, "
            f"{counts[StepOutcome.FAILED]} failed"
        )
        for warning in report.warnings:
            print_warning(console, f"{warning.phase}/{warning.step}: {warning.detail}")

        if report.failed:
            failed = report.failed_step
            where = f"{failed.phase}/{failed.step}" if failed else "unknown step"
            print_error(console, f"Setup failed at {where}")
        elif self.controller.dry_run:
            print_success(console, "Dry-run complete")
        else:
            print_success(console, "Setup complete")

    def next_steps(self) -> List[str]:
        features = self.config.features
        steps = []
        if features.env_file:
            steps.append("Edit .env and fill in your secrets")
        if features.containers and features.task_runner:
            steps.append("just up       start the Docker services")
        elif features.containers:
            steps.append("docker compose up -d")
        if features.task_runner:
            steps.append("just migrate  apply database migrations")
            steps.append("just dev      start backend and frontend")
        if self.config.services.neon_cli or self.config.database_engine == DatabaseEngine.NEON:
            steps.append("neonctl auth  log in to Neon")
        return steps

    def print_next_steps(self) -> None:
        steps = self.next_steps()
        if not steps:
            return
        console.print("\n[bold]Next steps:[/bold]")
        for index, step in enumerate(steps, start=1):
            console.print(f"  {index}. {step}")
