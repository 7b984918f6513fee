"""Step failure taxonomy.

Each error is raised at a step boundary and carries enough context for the
planner to decide between skipping the rest of a phase and aborting the run.
"""
from typing import Optional


class StepError(Exception):
    """Base class for failures inside a provisioning step."""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint


class ExternalToolError(StepError):
    """An installer, scaffolder or helper command exited non-zero or timed out."""
    pass


class MissingPrerequisiteError(StepError):
    """A tool needed to perform the action (npm, brew, ...) is not installed."""
    pass


class UnsupportedPlatformError(StepError):
    """No installer strategy exists for this platform."""
    pass


class ManualActionRequired(StepError):
    """The platform only offers a manual installation path."""
    pass
