from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

try:
    from sqlalchemy import create_engine, text
    from sqlalchemy.engine import Engine
    from sqlalchemy.sql.expression import Executable
except ImportError as exc:  # pragma: no cover - dependency guard
    raise RuntimeError("Staging support requires the 'sqlalchemy' package") from exc


class SQLAlchemyTool:
    """Thin execution wrapper around a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def query(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        if not sql:
            raise ValueError("SQLAlchemyTool.query requires SQL text")
        with self._engine.connect() as conn:
            result = conn.execute(text(sql), params or {})
            return [dict(row._mapping) for row in result]

    def execute_many(self, statement: Executable, rows: Sequence[Dict[str, Any]]) -> int:
        """Run ``statement`` for every row inside a single transaction."""

        if not rows:
            return 0
        with self._engine.begin() as conn:
            conn.execute(statement, list(rows))
        return len(rows)

    @classmethod
    def for_sqlite_file(cls, path: Path, options: Optional[Dict[str, Any]] = None) -> "SQLAlchemyTool":
        engine = create_engine(f"sqlite:///{Path(path).resolve()}", **(options or {}))
        return cls(engine)

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], path: Path) -> "SQLAlchemyTool":
        runtime = cfg.get("runtime", {})
        sa_cfg = dict(runtime.get("sqlalchemy") or {})
        sa_cfg.pop("url", None)
        return cls.for_sqlite_file(path, sa_cfg)

    def stop(self) -> None:
        if self._engine:
            self._engine.dispose()
