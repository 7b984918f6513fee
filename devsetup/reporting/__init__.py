"""Status reporting."""
from devsetup.reporting.status import StatusReporter, StatusSnapshot

__all__ = ["StatusReporter", "StatusSnapshot"]
