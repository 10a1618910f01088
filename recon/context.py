from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from hostrecon.common import PrintLogger, make_run_id


@dataclass(frozen=True)
class RunContext:
    """Per-run identity and settings handed explicitly to every stage."""

    run_id: str
    output_dir: Path
    retain_store: bool
    started_at: datetime
    logger: PrintLogger

    @classmethod
    def start(
        cls,
        output_dir: Path,
        *,
        logger: PrintLogger,
        retain_store: bool = False,
        now: Optional[datetime] = None,
    ) -> "RunContext":
        started_at = now or datetime.now()
        run_id = make_run_id(started_at)
        return cls(
            run_id=run_id,
            output_dir=Path(output_dir),
            retain_store=retain_store,
            started_at=started_at,
            logger=logger.bind(run_id),
        )
