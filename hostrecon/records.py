from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class VaultRecord:
    """One managed account row from the vault export."""

    safe: str = ""
    policy_id: str = ""
    address: str = ""
    username: str = ""
    last_accessed: str = ""
    last_accessed_by: str = ""
    change_failure: str = ""
    verification_failure: str = ""
    failure_reason: str = ""
    source_row: Optional[int] = None

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ServiceRecord:
    """One host known to the directory service for a support group."""

    fqdn: str = ""
    business_segment: str = ""
    domain: str = ""
    os_description: str = ""
    os_type: str = ""
    site_code: str = ""
    support_env: str = ""
    support_stage: str = ""
    source_row: Optional[int] = None

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


def _report_fields(cls) -> Tuple[str, ...]:
    return tuple(f.name for f in fields(cls) if f.name != "source_row")


VAULT_FIELDS: Tuple[str, ...] = _report_fields(VaultRecord)
SERVICE_FIELDS: Tuple[str, ...] = _report_fields(ServiceRecord)
REPORT_COLUMNS: Tuple[str, ...] = VAULT_FIELDS + SERVICE_FIELDS


@dataclass(frozen=True)
class ReconciliationRow:
    """Vault fields followed by service fields; the absent side is all ``None``."""

    safe: Optional[str] = None
    policy_id: Optional[str] = None
    address: Optional[str] = None
    username: Optional[str] = None
    last_accessed: Optional[str] = None
    last_accessed_by: Optional[str] = None
    change_failure: Optional[str] = None
    verification_failure: Optional[str] = None
    failure_reason: Optional[str] = None
    fqdn: Optional[str] = None
    business_segment: Optional[str] = None
    domain: Optional[str] = None
    os_description: Optional[str] = None
    os_type: Optional[str] = None
    site_code: Optional[str] = None
    support_env: Optional[str] = None
    support_stage: Optional[str] = None
    vault_row: Optional[int] = None
    service_row: Optional[int] = None

    @classmethod
    def from_mapping(cls, values: Dict[str, Any]) -> "ReconciliationRow":
        lowered = {str(k).lower(): v for k, v in values.items()}
        kwargs = {name: lowered.get(name) for name in REPORT_COLUMNS}
        kwargs["vault_row"] = _as_int(lowered.get("vault_row"))
        kwargs["service_row"] = _as_int(lowered.get("service_row"))
        return cls(**kwargs)

    @property
    def has_vault(self) -> bool:
        return self.vault_row is not None

    @property
    def has_service(self) -> bool:
        return self.service_row is not None

    @property
    def identity(self) -> Tuple[Optional[int], Optional[int]]:
        return (self.vault_row, self.service_row)

    def report_values(self) -> Tuple[str, ...]:
        return tuple("" if getattr(self, name) is None else str(getattr(self, name)) for name in REPORT_COLUMNS)


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


__all__ = [
    "REPORT_COLUMNS",
    "ReconciliationRow",
    "SERVICE_FIELDS",
    "ServiceRecord",
    "VAULT_FIELDS",
    "VaultRecord",
]
