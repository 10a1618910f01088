from __future__ import annotations

import csv
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .common import PrintLogger, emit_log
from .errors import ReportCollisionError
from .records import REPORT_COLUMNS, ReconciliationRow

REPORT_LABELS: Tuple[str, ...] = ("Matched", "ServiceOnly", "VaultOnly", "AllRecords")


def report_name(run_id: str, label: str) -> str:
    if label not in REPORT_LABELS:
        raise ValueError(f"Unknown report label: {label}")
    return f"Report_{run_id}_{label}.csv"


class ReportEmitter:
    """Write classified row sets as CSV files, never leaving a half-written report behind."""

    def __init__(self, output_dir: Path, logger: Optional[PrintLogger] = None) -> None:
        self.output_dir = Path(output_dir)
        self.logger = logger

    def report_paths(self, run_id: str) -> Dict[str, Path]:
        return {label: self.output_dir / report_name(run_id, label) for label in REPORT_LABELS}

    def ensure_available(self, run_id: str) -> None:
        """Refuse a run id whose reports are already on disk; prior output is never replaced."""

        existing = [path for path in self.report_paths(run_id).values() if path.exists()]
        if existing:
            raise ReportCollisionError(existing)

    def _write_temp(self, final_path: Path, rows: Iterable[ReconciliationRow]) -> Tuple[Path, int]:
        handle = tempfile.NamedTemporaryFile(
            mode="w",
            newline="",
            encoding="utf-8",
            dir=str(final_path.parent),
            prefix=f".{final_path.stem}.",
            suffix=".partial",
            delete=False,
        )
        temp_path = Path(handle.name)
        count = 0
        try:
            with handle:
                writer = csv.writer(handle)
                writer.writerow(REPORT_COLUMNS)
                for row in rows:
                    writer.writerow(row.report_values())
                    count += 1
        except BaseException:
            _discard(temp_path)
            raise
        return temp_path, count

    def emit_one(self, path: Path, rows: Iterable[ReconciliationRow]) -> int:
        path = Path(path)
        temp_path, count = self._write_temp(path, rows)
        try:
            os.replace(temp_path, path)
        except BaseException:
            _discard(temp_path)
            raise
        return count

    def emit(self, run_id: str, results: Mapping[str, Sequence[ReconciliationRow]]) -> Dict[str, Path]:
        """Write every labelled set; final names appear only once all files are complete."""

        missing = [label for label in REPORT_LABELS if label not in results]
        if missing:
            raise ValueError(f"Missing report sets: {', '.join(missing)}")
        self.ensure_available(run_id)
        final_paths = self.report_paths(run_id)
        staged: List[Tuple[str, Path, Path, int]] = []
        try:
            for label in REPORT_LABELS:
                final_path = final_paths[label]
                temp_path, count = self._write_temp(final_path, results[label])
                staged.append((label, temp_path, final_path, count))
            written: Dict[str, Path] = {}
            for label, temp_path, final_path, count in staged:
                os.replace(temp_path, final_path)
                written[label] = final_path
                emit_log(level="INFO", msg="report_written", label=label, path=str(final_path), rows=count, logger=self.logger)
        except BaseException:
            for _, temp_path, final_path, _ in staged:
                _discard(temp_path)
                _discard(final_path)
            raise
        return written


def _discard(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


__all__ = ["REPORT_LABELS", "ReportEmitter", "report_name"]
