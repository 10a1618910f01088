from __future__ import annotations

from typing import List

from hostrecon.planner import PlannedResults
from hostrecon.query.plan import QueryResult
from hostrecon.records import ReconciliationRow

from .results import ClassifiedResults


def _rows(result: QueryResult) -> List[ReconciliationRow]:
    return [ReconciliationRow.from_mapping(record) for record in result.to_dicts()]


def classify(planned: PlannedResults) -> ClassifiedResults:
    """Convert the three query results into report rows.

    The three sets are disjoint by construction, so the all-records set is a
    plain concatenation; the integrity checks verify that assumption.
    """

    matched = _rows(planned.matched)
    service_only = _rows(planned.service_only)
    vault_only = _rows(planned.vault_only)
    return ClassifiedResults(
        matched=matched,
        service_only=service_only,
        vault_only=vault_only,
        all_records=[*matched, *service_only, *vault_only],
    )


__all__ = ["classify"]
