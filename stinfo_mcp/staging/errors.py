from __future__ import annotations


class StagingError(RuntimeError):
    """Base class for failures of the staging computation."""

    kind = "staging"


class ConfigurationError(StagingError):
    kind = "configuration"


class TopologyError(ConfigurationError):
    kind = "topology"


class InvariantViolation(StagingError):
    """Internal consistency check failed; indicates a simulator defect."""

    kind = "invariant"


class SnapshotError(StagingError):
    kind = "snapshot"

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = list(errors or [])
