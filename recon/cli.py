from __future__ import annotations

import argparse
import json
from typing import Any, Dict, List, Optional

from hostrecon.common import PrintLogger
from hostrecon.config import ReconConfig, load_config
from hostrecon.errors import ReconError

from .runner import run_reconciliation


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="recon")
    parser.add_argument("--config", required=True, help="Path to reconciliation configuration file")
    parser.add_argument("--vault-extract", help="Override vault.extract_path", default=None)
    parser.add_argument("--service-file", help="Override service.records_path (saved inventory response)", default=None)
    parser.add_argument("--support-group", help="Override service.support_group (max 50 characters)", default=None)
    parser.add_argument("--output-dir", help="Override runtime.output_dir", default=None)
    parser.add_argument("--delimiter", help="Override vault.delimiter", default=None)
    parser.add_argument(
        "--retain-store",
        action="store_true",
        default=False,
        help="Keep the staging SQLite file in the output directory after the run",
    )
    parser.add_argument(
        "--checks",
        help="Comma separated integrity check types to execute (default: all; disjointness and completeness always run)",
        default=None,
    )
    parser.add_argument(
        "--output-json",
        help="Optional path to write the run summary as JSON",
        default=None,
    )
    return parser.parse_args(argv)


def apply_overrides(cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    merged = {key: dict(value) if isinstance(value, dict) else value for key, value in cfg.items()}
    runtime = merged.setdefault("runtime", {})
    vault = merged.setdefault("vault", {})
    service = merged.setdefault("service", {})
    if args.vault_extract:
        vault["extract_path"] = args.vault_extract
    if args.delimiter:
        vault["delimiter"] = args.delimiter
    if args.service_file:
        service["records_path"] = args.service_file
    if args.support_group is not None:
        service["support_group"] = args.support_group
    if args.output_dir:
        runtime["output_dir"] = args.output_dir
    if args.retain_store:
        runtime["retain_store"] = True
    return merged


def _write_payload(payload: Dict[str, Any], output_json: Optional[str]) -> None:
    if output_json:
        with open(output_json, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, sort_keys=True)
    else:
        print(json.dumps(payload, indent=2, sort_keys=True))


def run_cli(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logger = PrintLogger(job_name="host_recon")
    try:
        cfg = apply_overrides(load_config(args.config), args)
        config = ReconConfig.from_config(cfg)
        logger = PrintLogger(job_name=config.job_name, file_path=config.log_file, level=config.log_level)
        selected_checks = None
        if args.checks:
            selected_checks = {entry.strip().lower() for entry in args.checks.split(",") if entry.strip()}
        outcome = run_reconciliation(config, logger=logger, selected_checks=selected_checks)
    except ReconError as exc:
        logger.error("run_failed", error_type=type(exc).__name__, error=str(exc))
        _write_payload({"status": "error", "error_type": type(exc).__name__, "error": str(exc)}, args.output_json)
        raise SystemExit(1)
    _write_payload(outcome.to_dict(), args.output_json)


__all__ = ["apply_overrides", "parse_args", "run_cli"]
