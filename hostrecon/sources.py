from __future__ import annotations

import abc
import csv
import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from .common import PrintLogger, emit_log
from .errors import ConfigurationError, SourceUnavailableError
from .normalizer import normalize_service_row, normalize_vault_row
from .records import ServiceRecord, VaultRecord

MAX_SUPPORT_GROUP_LENGTH = 50


def validate_support_group(support_group: Any) -> str:
    if not isinstance(support_group, str) or not support_group.strip():
        raise ConfigurationError("service.support_group must be a non-empty string")
    if len(support_group) > MAX_SUPPORT_GROUP_LENGTH:
        raise ConfigurationError(
            f"service.support_group '{support_group}' is {len(support_group)} characters; "
            f"maximum is {MAX_SUPPORT_GROUP_LENGTH}"
        )
    return support_group


def require_file(path: Path, what: str) -> Path:
    path = Path(path)
    if not path.exists():
        raise SourceUnavailableError(f"{what} not found: {path}")
    if not path.is_file():
        raise SourceUnavailableError(f"{what} is not a regular file: {path}")
    return path


def read_vault_extract(
    path: Path,
    *,
    delimiter: str = ",",
    encoding: str = "utf-8-sig",
    logger: Optional[PrintLogger] = None,
) -> List[VaultRecord]:
    """Read the delimited vault extract; the header row names the columns."""

    path = require_file(path, "Vault extract")
    records: List[VaultRecord] = []
    try:
        with path.open("r", newline="", encoding=encoding) as handle:
            reader = csv.DictReader(handle, delimiter=delimiter)
            for position, raw in enumerate(reader, start=1):
                records.append(normalize_vault_row(raw, source_row=position))
    except (OSError, LookupError, UnicodeDecodeError, csv.Error) as exc:
        raise SourceUnavailableError(f"Failed to read vault extract {path}: {exc}") from exc
    emit_log(level="INFO", msg="vault_extract_read", path=str(path), rows=len(records), logger=logger)
    return records


class InventoryClient(abc.ABC):
    """Source of already-deserialized service records for a support group."""

    @abc.abstractmethod
    def fetch(self, support_group: str) -> Sequence[Any]:
        ...


class StaticInventoryClient(InventoryClient):
    def __init__(self, records: Iterable[Any]) -> None:
        self._records = list(records)

    def fetch(self, support_group: str) -> Sequence[Any]:
        return list(self._records)


class JsonFileInventoryClient(InventoryClient):
    """Replays a saved inventory response: a JSON array, or an object with a ``records`` array."""

    def __init__(self, path: Path, encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self.encoding = encoding

    def fetch(self, support_group: str) -> Sequence[Any]:
        path = require_file(self.path, "Service inventory file")
        with path.open("r", encoding=self.encoding) as handle:
            payload = json.load(handle)
        if isinstance(payload, dict):
            payload = payload.get("records")
        if not isinstance(payload, list):
            raise SourceUnavailableError(f"Service inventory file {path} does not hold a list of records")
        return payload


def fetch_service_records(
    client: InventoryClient,
    support_group: str,
    *,
    logger: Optional[PrintLogger] = None,
) -> List[ServiceRecord]:
    support_group = validate_support_group(support_group)
    try:
        raw_records = client.fetch(support_group)
    except SourceUnavailableError:
        raise
    except Exception as exc:
        raise SourceUnavailableError(f"Inventory request for support group '{support_group}' failed: {exc}") from exc
    if raw_records is None:
        raise SourceUnavailableError(f"Inventory request for support group '{support_group}' returned no result")
    records = [normalize_service_row(raw, source_row=position) for position, raw in enumerate(raw_records, start=1)]
    emit_log(level="INFO", msg="service_records_fetched", support_group=support_group, rows=len(records), logger=logger)
    return records


__all__ = [
    "InventoryClient",
    "JsonFileInventoryClient",
    "MAX_SUPPORT_GROUP_LENGTH",
    "StaticInventoryClient",
    "fetch_service_records",
    "read_vault_extract",
    "require_file",
    "validate_support_group",
]
