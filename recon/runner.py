from __future__ import annotations

import time
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Type

from hostrecon.common import PrintLogger, emit_log
from hostrecon.config import ReconConfig
from hostrecon.errors import ConfigurationError, InvariantViolation
from hostrecon.planner import JoinPlanner
from hostrecon.records import ServiceRecord, VaultRecord
from hostrecon.reports import ReportEmitter
from hostrecon.sources import (
    InventoryClient,
    JsonFileInventoryClient,
    fetch_service_records,
    read_vault_extract,
    require_file,
    validate_support_group,
)
from hostrecon.staging import SERVICE_TABLE, VAULT_TABLE, StagingStore

from .checks import ReconCheck, registry
from .classifier import classify
from .context import RunContext
from .results import ClassifiedResults, ReconCheckResult, RunOutcome, StagedInventory


@contextmanager
def _timed(timings: Dict[str, float], stage: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    finally:
        timings[stage] = timings.get(stage, 0.0) + (time.perf_counter() - started)


def resolve_checks(selected_checks: Optional[Iterable[str]] = None) -> List[Type[ReconCheck]]:
    """Registered checks to run; disjointness and completeness always run.

    Unknown check names raise ``ConfigurationError`` instead of being skipped.
    """

    available = registry.all()
    if not selected_checks:
        return list(available.values())
    wanted = {check_type for check_type, check_cls in available.items() if check_cls.required}
    for entry in selected_checks:
        name = str(entry).strip()
        if not name:
            continue
        check_cls = registry.get(name)
        if check_cls is None:
            raise ConfigurationError(
                f"Unknown integrity check: {name}; expected one of {', '.join(sorted(available))}"
            )
        wanted.add(check_cls.type_name())
    return [check_cls for check_type, check_cls in available.items() if check_type in wanted]


def run_checks(
    results: ClassifiedResults,
    staged: StagedInventory,
    *,
    selected_checks: Optional[Iterable[str]] = None,
) -> List[ReconCheckResult]:
    return [check_cls(results, staged).run() for check_cls in resolve_checks(selected_checks)]


def reconcile(
    context: RunContext,
    vault_records: Sequence[VaultRecord],
    service_records: Sequence[ServiceRecord],
    *,
    cfg: Optional[Dict[str, Any]] = None,
    selected_checks: Optional[Iterable[str]] = None,
    timings: Optional[Dict[str, float]] = None,
) -> RunOutcome:
    """Stage, join, classify, verify and report one batch of normalized records."""

    logger = context.logger
    timings = timings if timings is not None else {}
    selected_checks = list(selected_checks) if selected_checks else None
    resolve_checks(selected_checks)
    emitter = ReportEmitter(context.output_dir, logger)
    emitter.ensure_available(context.run_id)
    store = StagingStore.open(context.output_dir, context.run_id, cfg=cfg, logger=logger)
    try:
        with _timed(timings, "stage"):
            store.create_schema()
            store.bulk_load(VAULT_TABLE, vault_records)
            store.bulk_load(SERVICE_TABLE, service_records)
            staged = StagedInventory(
                vault_rows=store.row_ids(VAULT_TABLE),
                service_rows=store.row_ids(SERVICE_TABLE),
            )
        with _timed(timings, "join"):
            planned = JoinPlanner(logger).execute(store)
        with _timed(timings, "classify"):
            results = classify(planned)
            checks = run_checks(results, staged, selected_checks=selected_checks)
        failed = [check for check in checks if not check.passed]
        if failed:
            for check in failed:
                emit_log(
                    level="ERROR",
                    msg="integrity_check_failed",
                    check=check.check_name,
                    status=check.status,
                    detail=check.detail,
                    logger=logger,
                )
            names = ", ".join(str(check.check_name) for check in failed)
            raise InvariantViolation(f"Integrity checks failed for run {context.run_id}: {names}", checks)
        with _timed(timings, "report"):
            reports = emitter.emit(context.run_id, results.report_sets())
    finally:
        store.dispose(retain=context.retain_store)
    return RunOutcome(
        run_id=context.run_id,
        counts=results.counts(),
        reports=reports,
        checks=checks,
        timings=timings,
        staging_store=store.path if context.retain_store else None,
    )


def run_reconciliation(
    config: ReconConfig,
    *,
    logger: PrintLogger,
    client: Optional[InventoryClient] = None,
    selected_checks: Optional[Iterable[str]] = None,
    now: Optional[datetime] = None,
) -> RunOutcome:
    """Validate inputs, acquire both datasets and reconcile them under a fresh run id."""

    validate_support_group(config.support_group)
    selected_checks = list(selected_checks) if selected_checks else None
    resolve_checks(selected_checks)
    if not config.output_dir.is_dir():
        raise ConfigurationError(f"Output directory does not exist or is not a directory: {config.output_dir}")
    require_file(config.vault_extract, "Vault extract")
    if client is None:
        if config.service_records is None:
            raise ConfigurationError("service.records_path is required when no inventory client is supplied")
        client = JsonFileInventoryClient(config.service_records)

    context = RunContext.start(config.output_dir, logger=logger, retain_store=config.retain_store, now=now)
    emit_log(
        level="INFO",
        msg="run_start",
        vault_extract=str(config.vault_extract),
        support_group=config.support_group,
        output_dir=str(config.output_dir),
        logger=context.logger,
    )
    timings: Dict[str, float] = {}
    with _timed(timings, "acquire"):
        vault_records = read_vault_extract(
            config.vault_extract,
            delimiter=config.delimiter,
            encoding=config.encoding,
            logger=context.logger,
        )
        service_records = fetch_service_records(client, config.support_group, logger=context.logger)
    outcome = reconcile(
        context,
        vault_records,
        service_records,
        cfg=config.engine_config(),
        selected_checks=selected_checks,
        timings=timings,
    )
    emit_log(level="INFO", msg="run_end", counts=outcome.counts, timings=outcome.timings, logger=context.logger)
    return outcome


__all__ = ["reconcile", "resolve_checks", "run_checks", "run_reconciliation"]
