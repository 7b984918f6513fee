"""Phased action planner.

A run is an ordered list of phases, each an ordered list of steps. Steps
carry their own precondition, so skip logic and failure policy live here as
data instead of being spread across install functions.
"""
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from devsetup.core.errors import ManualActionRequired, StepError, UnsupportedPlatformError
from devsetup.core.executor import ExecutionController
from devsetup.core.logger import console, get_logger
from devsetup.models.config import FailurePolicy
from devsetup.models.state import StepOutcome

logger = get_logger(__name__)


@dataclass
class ActionStep:
    """One idempotent unit of work.

    Attributes:
        name: Short identifier shown in logs and reports
        check: Returns True when the step is already satisfied; evaluated
            at execution time, never ahead of it
        effect: Mutation to perform; raises StepError on failure. None
            marks an advisory step that can only pass or warn.
        describe: Human description of the mutation, used for dry-run logs
        detail: Optional message for the already-satisfied case (e.g. version)
        optional: Failure follows the configured optional-failure policy
    """
    name: str
    check: Callable[[], bool]
    effect: Optional[Callable[[], None]] = None
    describe: Optional[Callable[[], str]] = None
    detail: Optional[Callable[[], str]] = None
    optional: bool = False
    advisory: str = ""

    def description(self) -> str:
        return self.describe() if self.describe else self.name


@dataclass
class Phase:
    name: str
    title: str
    steps: List[ActionStep] = field(default_factory=list)


class FailureAction(Enum):
    CONTINUE = "continue"
    ABORT_PHASE = "abort-phase"
    ABORT_RUN = "abort-run"


@dataclass
class StepResult:
    phase: str
    step: str
    outcome: StepOutcome
    detail: str = ""
    error: Optional[Exception] = None
    soft: bool = False


@dataclass
class PlanReport:
    """Everything a run did, in order."""
    results: List[StepResult] = field(default_factory=list)
    aborted_phases: List[str] = field(default_factory=list)
    aborted: bool = False
    failed_step: Optional[StepResult] = None

    def add(self, result: StepResult) -> None:
        self.results.append(result)

    @property
    def failed(self) -> bool:
        """True when the run stopped early or a phase was cut short."""
        return self.aborted or bool(self.aborted_phases)

    @property
    def warnings(self) -> List[StepResult]:
        return [r for r in self.results if r.outcome == StepOutcome.FAILED and r.soft]

    def counts(self) -> Counter:
        return Counter(result.outcome for result in self.results)

    def outcomes(self) -> dict:
        """Map of ``phase/step`` to outcome, handy for assertions and summaries."""
        return {f"{r.phase}/{r.step}": r.outcome for r in self.results}

    def steps_with(self, outcome: StepOutcome) -> List[str]:
        return [r.step for r in self.results if r.outcome == outcome]


class ActionPlanner:
    """Executes phases in order with a fixed failure policy.

    - Hard failures (external tool errors, missing prerequisites) abort the run.
    - Unsupported platform errors abort the current phase only.
    - Manual-action errors are warnings.
    - Optional steps follow ``optional_failures``.
    """

    def __init__(
        self,
        controller: ExecutionController,
        optional_failures: FailurePolicy = FailurePolicy.CONTINUE,
    ):
        self.controller = controller
        self.optional_failures = optional_failures

    def run(self, phases: Sequence[Phase]) -> PlanReport:
        report = PlanReport()

        for index, phase in enumerate(phases, start=1):
            console.print(f"\n[bold blue]━━━ Phase {index}: {phase.title} ━━━[/bold blue]")
            if not phase.steps:
                console.print("[dim]Nothing configured for this phase[/dim]")
                continue

            for step in phase.steps:
                result = self._run_step(phase, step)
                report.add(result)
                if result.outcome != StepOutcome.FAILED:
                    continue

                action = self._failure_action(step, result.error)
                self._log_failure(phase, step, result.error, soft=action == FailureAction.CONTINUE)
                if action == FailureAction.CONTINUE:
                    result.soft = True
                    continue

                if report.failed_step is None:
                    report.failed_step = result
                if action == FailureAction.ABORT_RUN:
                    report.aborted = True
                    logger.error(
                        f"Aborting run after failed step '{phase.name}/{step.name}'"
                    )
                    return report

                report.aborted_phases.append(phase.name)
                logger.error(f"Skipping the rest of phase '{phase.name}'")
                break

        return report

    def _run_step(self, phase: Phase, step: ActionStep) -> StepResult:
        if step.check():
            detail = step.detail() if step.detail else "already satisfied"
            logger.info(f"✓ {step.name}: {detail}")
            return StepResult(phase.name, step.name, StepOutcome.SKIPPED, detail)

        try:
            if step.effect is None:
                raise StepError(step.advisory or f"{step.name} is not available")
            outcome = self.controller.execute(step.name, step.description(), step.effect)
        except (StepError, OSError) as exc:
            return StepResult(phase.name, step.name, StepOutcome.FAILED, str(exc), error=exc)

        if outcome == StepOutcome.APPLIED:
            logger.info(f"✓ {step.name}: done")
        return StepResult(phase.name, step.name, outcome)

    def _failure_action(self, step: ActionStep, error: Optional[Exception]) -> FailureAction:
        if isinstance(error, ManualActionRequired):
            return FailureAction.CONTINUE
        if step.optional or step.effect is None:
            return FailureAction(self.optional_failures.value)
        if isinstance(error, UnsupportedPlatformError):
            return FailureAction.ABORT_PHASE
        return FailureAction.ABORT_RUN

    def _log_failure(self, phase: Phase, step: ActionStep, exc: Exception, soft: bool) -> None:
        log = logger.warning if soft else logger.error
        log(f"✗ {phase.name}/{step.name}: {exc}")
        hint = getattr(exc, "hint", None)
        if hint:
            log(f"  → {hint}")
