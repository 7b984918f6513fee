"""Read-only status report: installed tools and project structure.

Runs before and after every provisioning pass and is the whole of a
``--check`` run, so nothing here may mutate the host or the project.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from devsetup.core.logger import console as default_console
from devsetup.discovery.probe import SERVICE_TOOLS, CapabilityProbe, core_tools_for
from devsetup.generators.artifacts import ArtifactGenerator
from devsetup.models.config import ProjectConfig
from devsetup.models.state import PlatformInfo, ToolStatus
from devsetup.services.scaffolder import ProjectScaffolder


@dataclass(frozen=True)
class StructureEntry:
    label: str
    path: str
    present: bool


@dataclass
class StatusSnapshot:
    platform: Optional[PlatformInfo] = None
    core_tools: List[ToolStatus] = field(default_factory=list)
    service_tools: List[ToolStatus] = field(default_factory=list)
    structure: List[StructureEntry] = field(default_factory=list)

    def tool(self, name: str) -> Optional[ToolStatus]:
        for status in self.core_tools + self.service_tools:
            if status.name == name:
                return status
        return None

    def missing_paths(self) -> List[str]:
        return [entry.path for entry in self.structure if not entry.present]


class StatusReporter:
    """Collects and prints the tool and project status tables."""

    def __init__(self, config: ProjectConfig, probe: CapabilityProbe, generator: ArtifactGenerator,
                 platform: Optional[PlatformInfo] = None, console: Optional[Console] = None):
        self.config = config
        self.probe = probe
        self.generator = generator
        self.platform = platform
        self.console = console or default_console

    def snapshot(self) -> StatusSnapshot:
        config = self.config
        structure = [
            StructureEntry(
                "Backend",
                str(ProjectScaffolder.backend_marker(config).relative_to(config.root)),
                ProjectScaffolder.backend_marker(config).exists(),
            ),
            StructureEntry(
                "Frontend",
                str(ProjectScaffolder.frontend_marker(config).relative_to(config.root)),
                ProjectScaffolder.frontend_marker(config).exists(),
            ),
        ]
        for artifact in self.generator.catalog():
            structure.append(StructureEntry(artifact.key, artifact.path, self.generator.exists(artifact)))

        return StatusSnapshot(
            platform=self.platform,
            core_tools=self.probe.probe_many(core_tools_for(config)),
            service_tools=self.probe.probe_many(SERVICE_TOOLS),
            structure=structure,
        )

    def render(self, snapshot: StatusSnapshot) -> None:
        self.console.print(f"\n[bold cyan]📋 Status: {self.config.name}[/bold cyan]")
        if snapshot.platform is not None:
            self.console.print(f"[dim]Platform: {snapshot.platform.family.value} ({snapshot.platform.system})[/dim]")

        tools = Table(title="🔧 Tools", show_header=True)
        tools.add_column("Tool", style="cyan")
        tools.add_column("Status")
        tools.add_column("Version", style="blue")
        self._add_tool_rows(tools, snapshot.core_tools)
        tools.add_section()
        self._add_tool_rows(tools, snapshot.service_tools)
        self.console.print(tools)

        structure = Table(title="📁 Project Structure", show_header=True)
        structure.add_column("Item", style="cyan")
        structure.add_column("Path")
        structure.add_column("Status")
        for entry in snapshot.structure:
            status = "[green]✓ configured[/green]" if entry.present else "[dim]✗ missing[/dim]"
            structure.add_row(entry.label, entry.path, status)
        self.console.print(structure)

    def report(self) -> StatusSnapshot:
        snapshot = self.snapshot()
        self.render(snapshot)
        return snapshot

    @staticmethod
    def _add_tool_rows(table: Table, statuses: List[ToolStatus]) -> None:
        for status in statuses:
            marker = "[green]✓[/green]" if status.installed else "[red]✗[/red]"
            version = status.version if status.installed else "-"
            table.add_row(status.name, marker, version or "unknown")
