"""
Host inventory reconciliation between a credential-vault export and a
directory/CMDB service feed.

Both datasets are normalized into canonical records, staged into a transient
SQLite store through SQLAlchemy and joined there; the ``recon`` package
drives a complete run on top of these building blocks.
"""

from .errors import (
    ConfigurationError,
    DuplicateServiceKeyError,
    InvariantViolation,
    ReconError,
    ReconIntegrityError,
    SourceUnavailableError,
    StagingError,
)
from .records import ReconciliationRow, ServiceRecord, VaultRecord

__all__ = [
    "ConfigurationError",
    "DuplicateServiceKeyError",
    "InvariantViolation",
    "ReconError",
    "ReconIntegrityError",
    "ReconciliationRow",
    "ServiceRecord",
    "SourceUnavailableError",
    "StagingError",
    "VaultRecord",
]
