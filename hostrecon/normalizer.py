"""
Map each source's native row shape onto the canonical record types.

Vault rows arrive keyed by the export's column headers, which differ between
product versions.  Service rows arrive as deserialized RPC payloads, either as
mappings or as attribute objects.  Both are reduced to plain strings; only the
join keys are altered (case-folded), everything else passes through as-is.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from .records import ServiceRecord, VaultRecord

VAULT_COLUMN_ALIASES: Dict[str, Sequence[str]] = {
    "safe": ("Safe", "Safe Name", "safe"),
    "policy_id": ("Policy ID", "PolicyID", "Platform ID", "policy_id"),
    "address": ("Target system address", "Target System Address", "Address", "address"),
    "username": ("Target system user name", "Target System User Name", "Username", "User Name", "username"),
    "last_accessed": ("Last accessed date", "Last Accessed Date", "Last accessed", "last_accessed"),
    "last_accessed_by": ("Last accessed by", "Last Accessed By", "last_accessed_by"),
    "change_failure": ("Change failure", "Change Failure", "change_failure"),
    "verification_failure": ("Verification failure", "Verification Failure", "verification_failure"),
    "failure_reason": ("Failure reason", "Failure Reason", "failure_reason"),
}

SERVICE_FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "fqdn": ("fqdn", "FQDN", "fullyQualifiedDomainName"),
    "business_segment": ("business_segment", "businessSegmentDescription", "businessSegment"),
    "domain": ("domain", "domainName"),
    "os_description": ("os_description", "osDescription"),
    "os_type": ("os_type", "osType"),
    "site_code": ("site_code", "siteCode"),
    "support_env": ("support_env", "supportEnvironmentDescription", "supportEnvironment"),
    "support_stage": ("support_stage", "supportStageDescription", "supportStage"),
}


def fold_key(value: Any) -> str:
    """Case-fold a join key.  ``fold_key(fold_key(x)) == fold_key(x)``."""

    if value is None:
        return ""
    return str(value).lower()


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _extract_value(source: Any, *keys: str) -> Any:
    if isinstance(source, Mapping):
        for key in keys:
            if key in source:
                return source[key]
        folded = {str(k).strip().casefold(): k for k in source.keys()}
        for key in keys:
            match = folded.get(key.strip().casefold())
            if match is not None:
                return source[match]
        return None
    for key in keys:
        if hasattr(source, key):
            return getattr(source, key)
    return None


def normalize_vault_row(raw: Any, source_row: Optional[int] = None) -> VaultRecord:
    values = {name: _as_text(_extract_value(raw, *aliases)) for name, aliases in VAULT_COLUMN_ALIASES.items()}
    values["address"] = fold_key(values["address"])
    return VaultRecord(source_row=source_row, **values)


def normalize_service_row(raw: Any, source_row: Optional[int] = None) -> ServiceRecord:
    values = {name: _as_text(_extract_value(raw, *aliases)) for name, aliases in SERVICE_FIELD_ALIASES.items()}
    values["fqdn"] = fold_key(values["fqdn"])
    return ServiceRecord(source_row=source_row, **values)


__all__ = [
    "SERVICE_FIELD_ALIASES",
    "VAULT_COLUMN_ALIASES",
    "fold_key",
    "normalize_service_row",
    "normalize_vault_row",
]
