from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

# The staging engine class only guarantees these; RIGHT/FULL joins are built from LEFT joins.
SUPPORTED_JOINS = ("INNER", "LEFT")


@dataclass(frozen=True)
class SelectItem:
    expression: str
    alias: Optional[str] = None

    def render(self) -> str:
        return f"{self.expression} AS {self.alias}" if self.alias else self.expression


@dataclass(frozen=True)
class OrderItem:
    expression: str

    def render(self) -> str:
        return self.expression


@dataclass(frozen=True)
class JoinItem:
    table: str
    on: str
    kind: str = "INNER"
    alias: Optional[str] = None

    def __post_init__(self) -> None:
        kind = self.kind.strip().upper()
        if kind not in SUPPORTED_JOINS:
            raise ValueError(f"Unsupported join type '{self.kind}'; expected one of {', '.join(SUPPORTED_JOINS)}")
        if not self.on or not self.on.strip():
            raise ValueError(f"Join on {self.table} requires a predicate")
        object.__setattr__(self, "kind", kind)

    def render(self) -> str:
        target = f"{self.table} AS {self.alias}" if self.alias else self.table
        return f"{self.kind} JOIN {target} ON {self.on}"


@dataclass(frozen=True)
class QueryPlan:
    selects: Sequence[SelectItem]
    source: Optional[str] = None
    source_alias: Optional[str] = None
    joins: Sequence[JoinItem] = field(default_factory=list)
    filters: Sequence[str] = field(default_factory=list)
    order_by: Sequence[OrderItem] = field(default_factory=list)

    def render(self) -> str:
        if not self.source:
            raise ValueError("QueryPlan requires a source table to render")
        selects = self.selects or (SelectItem(expression="*"),)
        select_clause = ", ".join(sel.render() for sel in selects)
        from_clause = f"{self.source} AS {self.source_alias}" if self.source_alias else self.source
        join_clause = ""
        if self.joins:
            join_clause = " " + " ".join(join.render() for join in self.joins)
        where_clause = ""
        if self.filters:
            where_clause = " WHERE " + " AND ".join(f"({expr})" for expr in self.filters)
        order_clause = ""
        if self.order_by:
            order_clause = " ORDER BY " + ", ".join(order.render() for order in self.order_by)
        return f"SELECT {select_clause} FROM {from_clause}{join_clause}{where_clause}{order_clause}"


@dataclass
class ResultRow:
    values: Dict[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)


@dataclass
class QueryResult:
    rows: List[ResultRow]

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "QueryResult":
        return cls(rows=[ResultRow(values=dict(record)) for record in records])

    def __len__(self) -> int:
        return len(self.rows)

    def scalar(self, alias: Optional[str] = None) -> Any:
        if not self.rows:
            return None
        first = self.rows[0].values
        if alias:
            if alias in first:
                return first[alias]
            lowered = alias.lower()
            for key, value in first.items():
                if key.lower() == lowered:
                    return value
            return None
        if len(first) != 1:
            raise ValueError("Scalar access requires alias when multiple columns are present")
        return next(iter(first.values()))

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [dict(row.values) for row in self.rows]
