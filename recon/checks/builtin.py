from __future__ import annotations

from collections import Counter
from itertools import combinations
from typing import Any, Dict, List, Set, Tuple

from ..results import ReconCheckResult
from .base import ReconCheck

_SAMPLE = 20


class DisjointnessCheck(ReconCheck):
    """Matched, service-only and vault-only share no (vault row, service row) pair."""

    _TYPE = "disjointness"
    required = True

    def _execute(self) -> ReconCheckResult:
        sets = {
            "matched": {row.identity for row in self.results.matched},
            "service_only": {row.identity for row in self.results.service_only},
            "vault_only": {row.identity for row in self.results.vault_only},
        }
        overlaps: Dict[str, List[Tuple[Any, Any]]] = {}
        for (left_name, left), (right_name, right) in combinations(sets.items(), 2):
            shared = left & right
            if shared:
                overlaps[f"{left_name}&{right_name}"] = sorted(shared, key=repr)[:_SAMPLE]
        if overlaps:
            return ReconCheckResult(status="fail", detail={"overlaps": overlaps})
        return ReconCheckResult(status="pass", detail={"overlaps": {}})


class CompletenessCheck(ReconCheck):
    """The all-records set is exactly the three classified sets."""

    _TYPE = "completeness"
    required = True

    def _execute(self) -> ReconCheckResult:
        expected = len(self.results.matched) + len(self.results.service_only) + len(self.results.vault_only)
        actual = len(self.results.all_records)
        detail = {"expected": expected, "actual": actual}
        return ReconCheckResult(status="pass" if expected == actual else "fail", detail=detail)


class CoverageCheck(ReconCheck):
    """Every staged row lands in exactly one category; a vault row matches at most once."""

    _TYPE = "coverage"

    def _execute(self) -> ReconCheckResult:
        categories = {
            "matched": self.results.matched,
            "service_only": self.results.service_only,
            "vault_only": self.results.vault_only,
        }
        vault_seen: Dict[int, Set[str]] = {}
        service_seen: Dict[int, Set[str]] = {}
        vault_matches: Counter = Counter()
        for name, rows in categories.items():
            for row in rows:
                if row.vault_row is not None:
                    vault_seen.setdefault(row.vault_row, set()).add(name)
                    if name == "matched":
                        vault_matches[row.vault_row] += 1
                if row.service_row is not None:
                    service_seen.setdefault(row.service_row, set()).add(name)

        detail: Dict[str, Any] = {}
        missing_vault = sorted(set(self.staged.vault_rows) - set(vault_seen))
        missing_service = sorted(set(self.staged.service_rows) - set(service_seen))
        if missing_vault:
            detail["missing_vault_rows"] = missing_vault[:_SAMPLE]
        if missing_service:
            detail["missing_service_rows"] = missing_service[:_SAMPLE]
        split_vault = sorted(row for row, names in vault_seen.items() if len(names) > 1)
        split_service = sorted(row for row, names in service_seen.items() if len(names) > 1)
        if split_vault:
            detail["vault_rows_in_several_categories"] = split_vault[:_SAMPLE]
        if split_service:
            detail["service_rows_in_several_categories"] = split_service[:_SAMPLE]
        repeated = sorted(row for row, count in vault_matches.items() if count > 1)
        if repeated:
            detail["vault_rows_matched_more_than_once"] = repeated[:_SAMPLE]
        unknown_vault = sorted(set(vault_seen) - set(self.staged.vault_rows))
        unknown_service = sorted(set(service_seen) - set(self.staged.service_rows))
        if unknown_vault:
            detail["unknown_vault_rows"] = unknown_vault[:_SAMPLE]
        if unknown_service:
            detail["unknown_service_rows"] = unknown_service[:_SAMPLE]
        if detail:
            return ReconCheckResult(status="fail", detail=detail)
        return ReconCheckResult(
            status="pass",
            detail={"vault_rows": len(self.staged.vault_rows), "service_rows": len(self.staged.service_rows)},
        )


class KeyConsistencyCheck(ReconCheck):
    """No unmatched vault address equals an unmatched service FQDN."""

    _TYPE = "key_consistency"

    def _execute(self) -> ReconCheckResult:
        vault_keys = {row.address for row in self.results.vault_only if row.address}
        service_keys = {row.fqdn for row in self.results.service_only if row.fqdn}
        missed = sorted(vault_keys & service_keys)
        if missed:
            return ReconCheckResult(
                status="fail",
                detail={"unmatched_equal_keys": missed[:_SAMPLE], "unmatched_equal_keys_total": len(missed)},
            )
        return ReconCheckResult(status="pass", detail={"unmatched_equal_keys": []})
