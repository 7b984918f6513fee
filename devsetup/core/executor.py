"""Execution mode controller.

Every mutating action goes through ``ExecutionController.execute`` so a
dry-run can report exactly what a normal run would do without touching the
host.
"""
from dataclasses import dataclass
from typing import Any, Callable, List

from devsetup.core.logger import get_logger
from devsetup.models.state import ExecutionMode, StepOutcome

logger = get_logger(__name__)


@dataclass(frozen=True)
class PlannedAction:
    """Journal entry for a mutation that was executed or simulated."""
    step: str
    description: str
    simulated: bool


class ExecutionController:
    """Runs, simulates or refuses mutations depending on the run mode."""

    def __init__(self, mode: ExecutionMode = ExecutionMode.NORMAL):
        self._mode = mode
        self.planned: List[PlannedAction] = []

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def dry_run(self) -> bool:
        return self._mode == ExecutionMode.DRY_RUN

    @property
    def check_only(self) -> bool:
        return self._mode == ExecutionMode.CHECK_ONLY

    def execute(self, step: str, description: str, action: Callable[[], Any]) -> StepOutcome:
        """Perform ``action`` or, in dry-run mode, only log it.

        Exceptions raised by ``action`` propagate to the caller, which owns
        the failure policy.

        Raises:
            RuntimeError: If called in check-only mode
        """
        if self.check_only:
            raise RuntimeError(f"Refusing to execute '{step}' in check-only mode")

        if self.dry_run:
            self.planned.append(PlannedAction(step, description, simulated=True))
            logger.info(f"[DRY-RUN] Would execute: {description}")
            return StepOutcome.DRY_RUN

        self.planned.append(PlannedAction(step, description, simulated=False))
        logger.debug(f"Executing: {description}")
        action()
        return StepOutcome.APPLIED

    def planned_steps(self) -> List[str]:
        return [entry.step for entry in self.planned]
