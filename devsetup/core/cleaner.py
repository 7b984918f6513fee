"""Clean operator: removes everything a full run can create.

The target list is the scaffolded directories plus every artifact path the
generator knows about, independent of feature flags, so a clean after any
run leaves the project root as it was (apart from ``.git``, which is never
touched).
"""
import shutil
from pathlib import Path
from typing import Callable, List, Optional

import typer

from devsetup.core.logger import console, get_logger
from devsetup.generators.artifacts import ArtifactGenerator
from devsetup.models.config import ProjectConfig

logger = get_logger(__name__)

PROTECTED_NAMES = {".git"}


class CleanOperator:
    """Lists, confirms and removes generated files and scaffolded directories."""

    def __init__(self, config: ProjectConfig, generator: ArtifactGenerator,
                 confirm: Optional[Callable[[str], bool]] = None):
        self.config = config
        self.generator = generator
        self.confirm = confirm or (lambda message: typer.confirm(message, default=False))

    def targets(self) -> List[Path]:
        """Every path a run can produce, directories first, without duplicates."""
        root = self.config.root
        candidates = [self.config.backend_path, self.config.frontend_path] + self.generator.all_paths()

        targets: List[Path] = []
        for path in candidates:
            if path.name in PROTECTED_NAMES or path == root:
                continue
            if any(path == t or t in path.parents for t in targets):
                continue
            targets.append(path)
        return targets

    def existing_targets(self) -> List[Path]:
        return [path for path in self.targets() if path.exists() or path.is_symlink()]

    def clean(self) -> bool:
        """Remove existing targets after confirmation.

        Returns:
            True if anything was removed, False if there was nothing to do
            or the user declined.
        """
        existing = self.existing_targets()
        if not existing:
            console.print("[dim]Nothing to clean[/dim]")
            return False

        console.print("\n[bold yellow]The following will be deleted:[/bold yellow]")
        for path in existing:
            suffix = "/" if path.is_dir() and not path.is_symlink() else ""
            console.print(f"  - {path.relative_to(self.config.root)}{suffix}")

        if not self.confirm("Continue?"):
            console.print("[dim]Aborted, nothing deleted[/dim]")
            return False

        for path in existing:
            self._remove(path)
            self._prune_parents(path)

        logger.info("✓ Clean complete")
        return True

    def _remove(self, path: Path) -> None:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
        logger.info(f"Removed {path.relative_to(self.config.root)}")

    def _prune_parents(self, path: Path) -> None:
        """Remove directories left empty by the removal, stopping at the root."""
        root = self.config.root
        parent = path.parent
        while parent != root and root in parent.parents:
            if not parent.is_dir() or any(parent.iterdir()):
                break
            parent.rmdir()
            logger.debug(f"Removed empty directory {parent.relative_to(root)}")
            parent = parent.parent
