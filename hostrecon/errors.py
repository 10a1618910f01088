from __future__ import annotations

from typing import Any, Sequence


class ReconError(RuntimeError):
    """Base class for every failure that aborts a reconciliation run."""


class ConfigurationError(ReconError, ValueError):
    """Raised for bad paths, missing keys or oversized identifiers."""


class SourceUnavailableError(ReconError):
    """Raised when the vault extract or the service inventory cannot be read."""


class ReconIntegrityError(ReconError):
    """Raised when staged data or query results cannot be trusted."""


class StagingError(ReconIntegrityError):
    """Raised when the staging store rejects a schema, load or query."""


class DuplicateServiceKeyError(ReconIntegrityError):
    """Raised when the service feed repeats a master key."""

    def __init__(self, keys: Sequence[str]) -> None:
        self.keys = list(keys)
        shown = ", ".join(self.keys[:10])
        more = f" (+{len(self.keys) - 10} more)" if len(self.keys) > 10 else ""
        super().__init__(f"Duplicate service FQDN in inventory feed: {shown}{more}")


class ReportCollisionError(ReconIntegrityError):
    """Raised when a run would overwrite reports that already exist."""

    def __init__(self, paths: Sequence[Any]) -> None:
        self.paths = [str(path) for path in paths]
        super().__init__(f"Reports already exist for this run id: {', '.join(self.paths)}")


class InvariantViolation(ReconIntegrityError):
    """Raised when classified results fail an integrity check."""

    def __init__(self, message: str, results: Sequence[Any]) -> None:
        super().__init__(message)
        self.results = list(results)


__all__ = [
    "ConfigurationError",
    "DuplicateServiceKeyError",
    "InvariantViolation",
    "ReconError",
    "ReconIntegrityError",
    "ReportCollisionError",
    "SourceUnavailableError",
    "StagingError",
]
