from __future__ import annotations

import os
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy import Column, Integer, MetaData, Table, Text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .common import PrintLogger, emit_log
from .errors import DuplicateServiceKeyError, StagingError
from .query.plan import QueryPlan, QueryResult, SelectItem
from .records import ServiceRecord, VaultRecord
from .tools.sqlalchemy import SQLAlchemyTool

VAULT_TABLE = "vault"
SERVICE_TABLE = "service"
_KEY_COLUMNS = {VAULT_TABLE: "address", SERVICE_TABLE: "fqdn"}

StagedRecord = Union[VaultRecord, ServiceRecord]


def build_metadata() -> MetaData:
    metadata = MetaData()
    # No primary key: the same address may be managed by several accounts.
    Table(
        VAULT_TABLE,
        metadata,
        Column("row_id", Integer, nullable=False, unique=True),
        Column("source_row", Integer),
        Column("safe", Text),
        Column("policy_id", Text),
        Column("address", Text, index=True),
        Column("username", Text),
        Column("last_accessed", Text),
        Column("last_accessed_by", Text),
        Column("change_failure", Text),
        Column("verification_failure", Text),
        Column("failure_reason", Text),
    )
    # NULL (empty) FQDNs never match, so they are not keys and may repeat.
    Table(
        SERVICE_TABLE,
        metadata,
        Column("fqdn", Text, primary_key=True, nullable=True),
        Column("row_id", Integer, nullable=False, unique=True),
        Column("source_row", Integer),
        Column("business_segment", Text),
        Column("domain", Text),
        Column("os_description", Text),
        Column("os_type", Text),
        Column("site_code", Text),
        Column("support_env", Text),
        Column("support_stage", Text),
    )
    return metadata


def staging_path(output_dir: Path, run_id: str) -> Path:
    return Path(output_dir) / f"Staging_{run_id}.sqlite"


class StagingStore:
    """Ephemeral SQLite store holding one table per source dataset for a single run."""

    def __init__(self, path: Path, tool: SQLAlchemyTool, logger: Optional[PrintLogger] = None) -> None:
        self.path = Path(path)
        self.tool = tool
        self.logger = logger
        self.metadata = build_metadata()
        self._disposed = False

    @classmethod
    def open(
        cls,
        output_dir: Path,
        run_id: str,
        *,
        cfg: Optional[Dict[str, Any]] = None,
        logger: Optional[PrintLogger] = None,
    ) -> "StagingStore":
        path = staging_path(output_dir, run_id)
        if path.exists():
            raise StagingError(f"Staging store already exists for run {run_id}: {path}")
        tool = SQLAlchemyTool.from_config(cfg or {}, path)
        emit_log(level="DEBUG", msg="staging_opened", path=str(path), logger=logger)
        return cls(path, tool, logger)

    def _table(self, table_name: str) -> Table:
        table = self.metadata.tables.get(table_name)
        if table is None:
            raise StagingError(f"Unknown staging table: {table_name}")
        return table

    def create_schema(self) -> None:
        try:
            self.metadata.create_all(self.tool.engine)
        except SQLAlchemyError as exc:
            raise StagingError(f"Failed to create staging schema at {self.path}: {exc}") from exc
        emit_log(level="INFO", msg="staging_schema_created", tables=sorted(self.metadata.tables), logger=self.logger)

    def bulk_load(self, table_name: str, rows: Iterable[StagedRecord]) -> int:
        """Insert every row in one transaction; any failure leaves the table empty.

        Each row gets a dense 1-based ``row_id`` in load order. That id, not the
        caller's ``source_row``, is the identity the integrity checks rely on.
        """

        table = self._table(table_name)
        key_column = _KEY_COLUMNS[table_name]
        payload: List[Dict[str, Any]] = []
        for position, record in enumerate(rows, start=1):
            values = record.to_row()
            values["row_id"] = position
            if not values.get(key_column):
                values[key_column] = None
            payload.append(values)
        try:
            loaded = self.tool.execute_many(table.insert(), payload)
        except IntegrityError as exc:
            if table_name == SERVICE_TABLE:
                duplicates = _duplicate_keys(payload, key_column)
                if duplicates:
                    raise DuplicateServiceKeyError(duplicates) from exc
            raise StagingError(f"Failed to load staging table {table_name}: {exc}") from exc
        except SQLAlchemyError as exc:
            raise StagingError(f"Failed to load staging table {table_name}: {exc}") from exc
        emit_log(level="INFO", msg="staging_loaded", table=table_name, rows=loaded, logger=self.logger)
        return loaded

    def query(self, plan: Union[QueryPlan, str]) -> QueryResult:
        sql = plan.render() if isinstance(plan, QueryPlan) else plan
        try:
            records = self.tool.query(sql)
        except SQLAlchemyError as exc:
            raise StagingError(f"Staging query failed: {exc}") from exc
        return QueryResult.from_records(records)

    def count(self, table_name: str) -> int:
        self._table(table_name)
        plan = QueryPlan(selects=[SelectItem(expression="COUNT(1)", alias="row_count")], source=table_name)
        return int(self.query(plan).scalar("row_count") or 0)

    def row_ids(self, table_name: str) -> List[int]:
        self._table(table_name)
        plan = QueryPlan(selects=[SelectItem(expression="row_id")], source=table_name)
        return [int(row.get("row_id")) for row in self.query(plan).rows]

    def dispose(self, retain: bool = False) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.tool.stop()
        if retain:
            emit_log(level="INFO", msg="staging_retained", path=str(self.path), logger=self.logger)
            return
        for suffix in ("", "-journal", "-wal", "-shm"):
            candidate = Path(f"{self.path}{suffix}")
            if candidate.exists():
                os.remove(candidate)
        emit_log(level="DEBUG", msg="staging_disposed", path=str(self.path), logger=self.logger)


def _duplicate_keys(rows: Sequence[Dict[str, Any]], key_column: str) -> List[str]:
    counts = Counter(row[key_column] for row in rows if row.get(key_column))
    return sorted(key for key, count in counts.items() if count > 1)


__all__ = ["SERVICE_TABLE", "StagingStore", "VAULT_TABLE", "build_metadata", "staging_path"]
