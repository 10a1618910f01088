from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from hostrecon.records import ReconciliationRow


@dataclass
class ReconCheckResult:
    status: str
    check_type: str | None = None
    check_name: str | None = None
    detail: Any = None

    @property
    def passed(self) -> bool:
        return (self.status or "").lower() == "pass"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "check_type": self.check_type,
            "check_name": self.check_name,
            "status": self.status,
            "detail": self.detail,
        }


@dataclass
class ReconRunSummary:
    total: int
    passed: int
    failed: int
    errors: int

    @classmethod
    def from_results(cls, results: Iterable[ReconCheckResult]) -> "ReconRunSummary":
        total = passed = failed = errors = 0
        for result in results:
            total += 1
            status = (result.status or "").lower()
            if status == "pass":
                passed += 1
            elif status == "error":
                errors += 1
            else:
                failed += 1
        return cls(total=total, passed=passed, failed=failed, errors=errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
        }


@dataclass
class StagedInventory:
    """Source-row identities that were actually loaded into the staging store."""

    vault_rows: List[int] = field(default_factory=list)
    service_rows: List[int] = field(default_factory=list)


@dataclass
class ClassifiedResults:
    matched: List[ReconciliationRow]
    service_only: List[ReconciliationRow]
    vault_only: List[ReconciliationRow]
    all_records: List[ReconciliationRow]

    def report_sets(self) -> Dict[str, List[ReconciliationRow]]:
        return {
            "Matched": self.matched,
            "ServiceOnly": self.service_only,
            "VaultOnly": self.vault_only,
            "AllRecords": self.all_records,
        }

    def counts(self) -> Dict[str, int]:
        return {label: len(rows) for label, rows in self.report_sets().items()}


@dataclass
class RunOutcome:
    run_id: str
    counts: Dict[str, int]
    reports: Dict[str, Path]
    checks: List[ReconCheckResult]
    timings: Dict[str, float]
    staging_store: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "status": "completed",
            "run_id": self.run_id,
            "counts": dict(self.counts),
            "reports": {label: str(path) for label, path in self.reports.items()},
            "summary": ReconRunSummary.from_results(self.checks).to_dict(),
            "checks": [result.to_dict() for result in self.checks],
            "timings": {stage: round(seconds, 4) for stage, seconds in self.timings.items()},
        }
        if self.staging_store is not None:
            payload["staging_store"] = str(self.staging_store)
        return payload
