import csv
import io
from datetime import datetime

import pytest

from hostrecon.common import PrintLogger
from hostrecon.errors import DuplicateServiceKeyError, ReportCollisionError
from hostrecon.normalizer import normalize_service_row, normalize_vault_row
from hostrecon.records import REPORT_COLUMNS
from hostrecon.staging import staging_path
from recon.context import RunContext
from recon.runner import reconcile


def _context(tmp_path, retain=False):
    logger = PrintLogger(job_name="test", stream=io.StringIO())
    return RunContext.start(tmp_path, logger=logger, retain_store=retain, now=datetime(2024, 5, 6, 7, 8, 9))


def _vault(*addresses):
    return [normalize_vault_row({"Address": address, "Username": f"user{idx}"}, source_row=idx) for idx, address in enumerate(addresses, start=1)]


def _service(*fqdns):
    return [normalize_service_row({"fqdn": fqdn, "osType": "Linux"}, source_row=idx) for idx, fqdn in enumerate(fqdns, start=1)]


def _read_report(path):
    with open(path, newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


def test_case_differences_still_match(tmp_path):
    ctx = _context(tmp_path)

    outcome = reconcile(ctx, _vault("Host1.Example.com"), _service("host1.example.com"))

    assert outcome.counts == {"Matched": 1, "ServiceOnly": 0, "VaultOnly": 0, "AllRecords": 1}
    matched = _read_report(outcome.reports["Matched"])
    assert matched[0] == list(REPORT_COLUMNS)
    row = dict(zip(matched[0], matched[1]))
    assert row["address"] == "host1.example.com"
    assert row["fqdn"] == "host1.example.com"
    assert row["os_type"] == "Linux"


def test_orphan_vault_row_is_vault_only(tmp_path):
    ctx = _context(tmp_path)

    outcome = reconcile(ctx, _vault("orphan.example.com"), _service())

    assert outcome.counts == {"Matched": 0, "ServiceOnly": 0, "VaultOnly": 1, "AllRecords": 1}
    vault_only = _read_report(outcome.reports["VaultOnly"])
    row = dict(zip(vault_only[0], vault_only[1]))
    assert row["address"] == "orphan.example.com"
    assert row["fqdn"] == ""
    assert len(vault_only[1]) == len(REPORT_COLUMNS)


def test_empty_vault_input_lists_every_service_row(tmp_path):
    ctx = _context(tmp_path)

    outcome = reconcile(ctx, [], _service("b.example.com", "a.example.com"))

    assert outcome.counts == {"Matched": 0, "ServiceOnly": 2, "VaultOnly": 0, "AllRecords": 2}
    service_only = _read_report(outcome.reports["ServiceOnly"])
    assert [dict(zip(service_only[0], row))["fqdn"] for row in service_only[1:]] == ["a.example.com", "b.example.com"]
    assert len(_read_report(outcome.reports["AllRecords"])) == 3


def test_duplicate_vault_addresses_are_not_deduplicated(tmp_path):
    ctx = _context(tmp_path)

    outcome = reconcile(ctx, _vault("web.example.com", "WEB.example.com", "db.example.com"), _service("web.example.com"))

    assert outcome.counts["Matched"] == 2
    assert outcome.counts["VaultOnly"] == 1
    assert outcome.counts["AllRecords"] == 3


def test_every_input_row_lands_in_exactly_one_category(tmp_path):
    ctx = _context(tmp_path)
    vault = _vault("a.example.com", "b.example.com", "", "c.example.com", "A.EXAMPLE.COM")
    service = _service("a.example.com", "c.example.com", "d.example.com", "")

    outcome = reconcile(ctx, vault, service)

    counts = outcome.counts
    assert counts["AllRecords"] == counts["Matched"] + counts["ServiceOnly"] + counts["VaultOnly"]
    assert counts == {"Matched": 3, "ServiceOnly": 2, "VaultOnly": 2, "AllRecords": 7}
    assert all(check.passed for check in outcome.checks)


def test_empty_keys_never_match_each_other(tmp_path):
    ctx = _context(tmp_path)

    outcome = reconcile(ctx, _vault(""), _service(""))

    assert outcome.counts == {"Matched": 0, "ServiceOnly": 1, "VaultOnly": 1, "AllRecords": 2}


def test_duplicate_service_key_aborts_before_reports(tmp_path):
    ctx = _context(tmp_path)

    with pytest.raises(DuplicateServiceKeyError):
        reconcile(ctx, _vault("a.example.com"), _service("A.example.com", "a.example.com"))

    assert not list(tmp_path.glob("Report_*"))
    assert not staging_path(tmp_path, ctx.run_id).exists()


def test_retained_store_outlives_the_run(tmp_path):
    ctx = _context(tmp_path, retain=True)

    outcome = reconcile(ctx, _vault("a.example.com"), _service("a.example.com"))

    assert outcome.staging_store == staging_path(tmp_path, "2024-05-06T07-08-09")
    assert outcome.staging_store.exists()
    assert outcome.to_dict()["staging_store"] == str(outcome.staging_store)


def test_report_names_use_run_timestamp(tmp_path):
    ctx = _context(tmp_path)

    outcome = reconcile(ctx, _vault("a.example.com"), _service("a.example.com"))

    names = sorted(path.name for path in outcome.reports.values())
    assert names == [
        "Report_2024-05-06T07-08-09_AllRecords.csv",
        "Report_2024-05-06T07-08-09_Matched.csv",
        "Report_2024-05-06T07-08-09_ServiceOnly.csv",
        "Report_2024-05-06T07-08-09_VaultOnly.csv",
    ]
    assert not list(tmp_path.glob("*.partial"))
    assert not list(tmp_path.glob("Staging_*"))


def test_records_without_source_rows_reconcile(tmp_path):
    ctx = _context(tmp_path)
    vault = [normalize_vault_row({"Address": "orphan.example.com"}), normalize_vault_row({"Address": "shared.example.com"})]
    service = [normalize_service_row({"fqdn": "lonely.example.com"}), normalize_service_row({"fqdn": "SHARED.example.com"})]

    outcome = reconcile(ctx, vault, service)

    assert outcome.counts == {"Matched": 1, "ServiceOnly": 1, "VaultOnly": 1, "AllRecords": 3}
    assert all(check.passed for check in outcome.checks)
    coverage = next(check for check in outcome.checks if check.check_type == "coverage")
    assert coverage.detail == {"vault_rows": 2, "service_rows": 2}


def test_second_run_with_same_id_keeps_first_reports(tmp_path):
    first = reconcile(_context(tmp_path), _vault("a.example.com"), _service("a.example.com"))
    before = _read_report(first.reports["Matched"])

    with pytest.raises(ReportCollisionError) as exc:
        reconcile(_context(tmp_path), _vault("b.example.com"), _service("b.example.com"))

    assert "Report_2024-05-06T07-08-09_" in str(exc.value)
    assert _read_report(first.reports["Matched"]) == before
    assert not list(tmp_path.glob("Staging_*"))
    assert not list(tmp_path.glob("*.partial"))
