from __future__ import annotations

import codecs
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigurationError
from .sources import validate_support_group


def load_config(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            cfg = json.load(handle)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Config file {path} is not valid JSON: {exc}") from exc
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return cfg


def validate_config(cfg: Dict[str, Any]) -> None:
    for key in ["runtime", "vault", "service"]:
        if key not in cfg:
            raise ConfigurationError(f"Missing config key: {key}")
        if not isinstance(cfg[key], dict):
            raise ConfigurationError(f"{key} must be an object")
    runtime = cfg["runtime"]
    if not runtime.get("output_dir"):
        raise ConfigurationError("Missing runtime.output_dir")
    output_dir = Path(runtime["output_dir"])
    if not output_dir.exists():
        raise ConfigurationError(f"runtime.output_dir does not exist: {output_dir}")
    if not output_dir.is_dir():
        raise ConfigurationError(f"runtime.output_dir is not a directory: {output_dir}")
    logging_cfg = runtime.get("logging")
    if logging_cfg is not None and not isinstance(logging_cfg, dict):
        raise ConfigurationError("runtime.logging must be an object when provided")
    level = (logging_cfg or {}).get("level", "INFO")
    if not isinstance(logging.getLevelName(str(level).upper()), int):
        raise ConfigurationError(f"runtime.logging.level is not a known log level: {level!r}")
    sa_cfg = runtime.get("sqlalchemy")
    if sa_cfg is not None and not isinstance(sa_cfg, dict):
        raise ConfigurationError("runtime.sqlalchemy must be an object when provided")

    vault = cfg["vault"]
    if not vault.get("extract_path"):
        raise ConfigurationError("Missing vault.extract_path")
    delimiter = vault.get("delimiter", ",")
    if not isinstance(delimiter, str) or len(delimiter) != 1:
        raise ConfigurationError(f"vault.delimiter must be a single character, got {delimiter!r}")
    encoding = vault.get("encoding", "utf-8-sig")
    try:
        codecs.lookup(str(encoding))
    except LookupError as exc:
        raise ConfigurationError(f"vault.encoding is not a known text encoding: {encoding!r}") from exc

    service = cfg["service"]
    validate_support_group(service.get("support_group"))


@dataclass(frozen=True)
class ReconConfig:
    output_dir: Path
    vault_extract: Path
    support_group: str
    service_records: Optional[Path] = None
    delimiter: str = ","
    encoding: str = "utf-8-sig"
    retain_store: bool = False
    job_name: str = "host_recon"
    log_file: Optional[str] = None
    log_level: str = "INFO"
    sqlalchemy: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_config(cfg: Dict[str, Any]) -> "ReconConfig":
        validate_config(cfg)
        runtime = cfg["runtime"]
        vault = cfg["vault"]
        service = cfg["service"]
        records_path = service.get("records_path")
        return ReconConfig(
            output_dir=Path(runtime["output_dir"]),
            vault_extract=Path(vault["extract_path"]),
            support_group=service["support_group"],
            service_records=Path(records_path) if records_path else None,
            delimiter=vault.get("delimiter", ","),
            encoding=vault.get("encoding", "utf-8-sig"),
            retain_store=bool(runtime.get("retain_store", False)),
            job_name=str(runtime.get("job_name", "host_recon")),
            log_file=runtime.get("log_file"),
            log_level=str((runtime.get("logging") or {}).get("level", "INFO")),
            sqlalchemy=dict(runtime.get("sqlalchemy") or {}),
        )

    def engine_config(self) -> Dict[str, Any]:
        return {"runtime": {"sqlalchemy": dict(self.sqlalchemy)}}


__all__ = ["ReconConfig", "load_config", "validate_config"]
