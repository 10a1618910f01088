"""
Join planning for the staged vault and service tables.

The staging engine supports inner and left joins only, so the outer join is
emulated with two one-directional left joins, each filtered to the rows whose
joined key is ``NULL`` (anti-join).  Both halves use exactly the same
predicate; together with the inner join they partition every staged row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .common import PrintLogger, emit_log
from .query.plan import JoinItem, OrderItem, QueryPlan, QueryResult, SelectItem
from .records import SERVICE_FIELDS, VAULT_FIELDS
from .staging import SERVICE_TABLE, VAULT_TABLE, StagingStore

VAULT_ALIAS = "v"
SERVICE_ALIAS = "s"
MATCH_PREDICATE = f"{SERVICE_ALIAS}.fqdn = {VAULT_ALIAS}.address"


def _row_selects() -> List[SelectItem]:
    selects = [SelectItem(expression=f"{VAULT_ALIAS}.{name}", alias=name) for name in VAULT_FIELDS]
    selects.extend(SelectItem(expression=f"{SERVICE_ALIAS}.{name}", alias=name) for name in SERVICE_FIELDS)
    selects.append(SelectItem(expression=f"{VAULT_ALIAS}.row_id", alias="vault_row"))
    selects.append(SelectItem(expression=f"{SERVICE_ALIAS}.row_id", alias="service_row"))
    return selects


@dataclass
class PlannedResults:
    matched: QueryResult
    service_only: QueryResult
    vault_only: QueryResult


class JoinPlanner:
    """Builds and runs the matched, service-only and vault-only queries."""

    def __init__(self, logger: Optional[PrintLogger] = None) -> None:
        self.logger = logger

    def matched_plan(self) -> QueryPlan:
        return QueryPlan(
            selects=_row_selects(),
            source=SERVICE_TABLE,
            source_alias=SERVICE_ALIAS,
            joins=[JoinItem(table=VAULT_TABLE, alias=VAULT_ALIAS, on=MATCH_PREDICATE, kind="INNER")],
            order_by=[OrderItem(f"{SERVICE_ALIAS}.fqdn"), OrderItem(f"{VAULT_ALIAS}.row_id")],
        )

    def service_only_plan(self) -> QueryPlan:
        return QueryPlan(
            selects=_row_selects(),
            source=SERVICE_TABLE,
            source_alias=SERVICE_ALIAS,
            joins=[JoinItem(table=VAULT_TABLE, alias=VAULT_ALIAS, on=MATCH_PREDICATE, kind="LEFT")],
            filters=[f"{VAULT_ALIAS}.address IS NULL"],
            order_by=[OrderItem(f"{SERVICE_ALIAS}.fqdn")],
        )

    def vault_only_plan(self) -> QueryPlan:
        return QueryPlan(
            selects=_row_selects(),
            source=VAULT_TABLE,
            source_alias=VAULT_ALIAS,
            joins=[JoinItem(table=SERVICE_TABLE, alias=SERVICE_ALIAS, on=MATCH_PREDICATE, kind="LEFT")],
            filters=[f"{SERVICE_ALIAS}.fqdn IS NULL"],
            order_by=[OrderItem(f"{VAULT_ALIAS}.address"), OrderItem(f"{VAULT_ALIAS}.row_id")],
        )

    def execute(self, store: StagingStore) -> PlannedResults:
        matched = store.query(self.matched_plan())
        service_only = store.query(self.service_only_plan())
        vault_only = store.query(self.vault_only_plan())
        emit_log(
            level="INFO",
            msg="join_queries_complete",
            matched=len(matched),
            service_only=len(service_only),
            vault_only=len(vault_only),
            logger=self.logger,
        )
        return PlannedResults(matched=matched, service_only=service_only, vault_only=vault_only)


__all__ = ["JoinPlanner", "MATCH_PREDICATE", "PlannedResults"]
