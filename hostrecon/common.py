from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional, TextIO


def make_run_id(now: Optional[datetime] = None) -> str:
    """Filesystem-safe ISO-8601 timestamp used to key every artifact of a run."""

    moment = now or datetime.now()
    return moment.replace(microsecond=0).isoformat().replace(":", "-")


class PrintLogger:
    """Emit one JSON object per event to stdout and, optionally, a log file."""

    def __init__(
        self,
        job_name: str = "host_recon",
        file_path: Optional[str] = None,
        level: str = "INFO",
        run_id: Optional[str] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        self.job_name = job_name
        self.file_path = file_path
        self.run_id = run_id
        self.stream = stream
        self.threshold = self._level_number(level)

    @staticmethod
    def _level_number(level: str) -> int:
        value = logging.getLevelName(str(level).upper())
        if not isinstance(value, int):
            raise ValueError(f"Unknown log level: {level}")
        return value

    def bind(self, run_id: str) -> "PrintLogger":
        return PrintLogger(
            job_name=self.job_name,
            file_path=self.file_path,
            level=logging.getLevelName(self.threshold),
            run_id=run_id,
            stream=self.stream,
        )

    def log(self, level: str, msg: str, **fields: Any) -> None:
        level = "WARN" if level.upper() == "WARNING" else level.upper()
        if self._level_number(level) < self.threshold:
            return
        record: Dict[str, Any] = {
            "ts": datetime.now().astimezone().isoformat(timespec="seconds"),
            "level": level,
            "job": self.job_name,
        }
        if self.run_id:
            record["run_id"] = self.run_id
        record["msg"] = msg
        record.update(fields)
        line = json.dumps(record, default=str)
        print(line, file=self.stream or sys.stdout, flush=True)
        if self.file_path:
            with open(self.file_path, "a", encoding="utf-8") as handle:
                handle.write(line + "\n")

    def debug(self, msg: str, **fields: Any) -> None:
        self.log("DEBUG", msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self.log("INFO", msg, **fields)

    def warn(self, msg: str, **fields: Any) -> None:
        self.log("WARN", msg, **fields)

    warning = warn

    def error(self, msg: str, **fields: Any) -> None:
        self.log("ERROR", msg, **fields)


def emit_log(*, level: str, msg: str, logger: Optional[PrintLogger], **fields: Any) -> None:
    if logger is None:
        return
    getattr(logger, level.lower(), logger.info)(msg, **fields)


__all__ = ["PrintLogger", "emit_log", "make_run_id"]
