"""Data models for devsetup."""
from devsetup.models.config import (
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    FeatureFlags,
    ProjectConfig,
    ServiceOptions,
    ToolVersions,
)
from devsetup.models.state import (
    ExecutionMode,
    OSFamily,
    PlatformInfo,
    StepOutcome,
    ToolStatus,
)

__all__ = [
    'ConfigError',
    'ConfigNotFoundError',
    'ConfigValidationError',
    'ExecutionMode',
    'FeatureFlags',
    'OSFamily',
    'PlatformInfo',
    'ProjectConfig',
    'ServiceOptions',
    'StepOutcome',
    'ToolStatus',
    'ToolVersions',
]
