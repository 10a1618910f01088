import csv
import io
import json

import pytest

from hostrecon.common import PrintLogger
from hostrecon.config import ReconConfig, validate_config
from hostrecon.errors import ConfigurationError, SourceUnavailableError
from hostrecon.sources import InventoryClient, StaticInventoryClient, fetch_service_records, validate_support_group
from recon.cli import run_cli
from recon.runner import run_reconciliation

VAULT_HEADER = [
    "Safe",
    "Policy ID",
    "Target system address",
    "Target system user name",
    "Last accessed date",
    "Last accessed by",
    "Change failure",
    "Verification failure",
    "Failure reason",
]


class _FailingClient(InventoryClient):
    def fetch(self, support_group):
        raise TimeoutError("directory service did not answer")


def _write_vault(path, addresses):
    with open(path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(VAULT_HEADER)
        for idx, address in enumerate(addresses, start=1):
            writer.writerow([f"SAFE{idx}", "UnixSSH", address, "root", "", "", "", "", ""])


def _cfg(tmp_path, **service):
    out = tmp_path / "out"
    out.mkdir(exist_ok=True)
    vault = tmp_path / "vault.csv"
    if not vault.exists():
        _write_vault(vault, ["Host1.Example.com", "orphan.example.com"])
    service_cfg = {"support_group": "UNIX-OPS"}
    service_cfg.update(service)
    return {
        "runtime": {"output_dir": str(out), "job_name": "test_recon"},
        "vault": {"extract_path": str(vault)},
        "service": service_cfg,
    }


def _logger():
    return PrintLogger(job_name="test", stream=io.StringIO())


def test_support_group_length_is_limited():
    assert validate_support_group("x" * 50) == "x" * 50
    with pytest.raises(ConfigurationError) as exc:
        validate_support_group("y" * 51)
    assert "51 characters" in str(exc.value)
    with pytest.raises(ConfigurationError):
        validate_support_group("")


def test_validate_config_names_missing_output_dir(tmp_path):
    cfg = _cfg(tmp_path)
    cfg["runtime"]["output_dir"] = str(tmp_path / "nowhere")

    with pytest.raises(ConfigurationError) as exc:
        validate_config(cfg)

    assert "nowhere" in str(exc.value)


def test_validate_config_rejects_multi_character_delimiter(tmp_path):
    cfg = _cfg(tmp_path)
    cfg["vault"]["delimiter"] = ";;"

    with pytest.raises(ConfigurationError):
        validate_config(cfg)


def test_run_reconciliation_end_to_end(tmp_path):
    config = ReconConfig.from_config(_cfg(tmp_path))
    client = StaticInventoryClient([{"fqdn": "host1.example.com"}, {"fqdn": "lonely.example.com"}])

    outcome = run_reconciliation(config, logger=_logger(), client=client)

    assert outcome.counts == {"Matched": 1, "ServiceOnly": 1, "VaultOnly": 1, "AllRecords": 3}
    assert set(outcome.timings) == {"acquire", "stage", "join", "classify", "report"}
    assert all(path.exists() for path in outcome.reports.values())


def test_missing_vault_extract_fails_before_any_output(tmp_path):
    cfg = _cfg(tmp_path)
    cfg["vault"]["extract_path"] = str(tmp_path / "absent.csv")
    config = ReconConfig.from_config(cfg)

    with pytest.raises(SourceUnavailableError) as exc:
        run_reconciliation(config, logger=_logger(), client=StaticInventoryClient([]))

    assert "absent.csv" in str(exc.value)
    assert list((tmp_path / "out").iterdir()) == []


def test_inventory_failure_is_fatal(tmp_path):
    config = ReconConfig.from_config(_cfg(tmp_path))

    with pytest.raises(SourceUnavailableError) as exc:
        run_reconciliation(config, logger=_logger(), client=_FailingClient())

    assert "UNIX-OPS" in str(exc.value)
    assert list((tmp_path / "out").iterdir()) == []


def test_fetch_rejects_missing_result():
    class _NoneClient(InventoryClient):
        def fetch(self, support_group):
            return None

    with pytest.raises(SourceUnavailableError):
        fetch_service_records(_NoneClient(), "UNIX-OPS")


def test_cli_writes_summary_json(tmp_path, capsys):
    service_file = tmp_path / "service.json"
    service_file.write_text(json.dumps({"records": [{"fqdn": "HOST1.example.com", "osType": "Linux"}]}))
    cfg_path = tmp_path / "cfg.json"
    cfg_path.write_text(json.dumps(_cfg(tmp_path, records_path=str(service_file))))
    summary_path = tmp_path / "summary.json"

    run_cli(["--config", str(cfg_path), "--output-json", str(summary_path), "--retain-store"])

    summary = json.loads(summary_path.read_text())
    assert summary["status"] == "completed"
    assert summary["counts"] == {"Matched": 1, "ServiceOnly": 0, "VaultOnly": 1, "AllRecords": 2}
    assert summary["summary"]["failed"] == 0
    assert summary["staging_store"].endswith(".sqlite")
    captured = capsys.readouterr()
    assert "run_end" in captured.out


def test_cli_oversized_support_group_exits_nonzero(tmp_path):
    cfg_path = tmp_path / "cfg.json"
    cfg_path.write_text(json.dumps(_cfg(tmp_path, records_path=str(tmp_path / "service.json"))))
    summary_path = tmp_path / "summary.json"

    with pytest.raises(SystemExit) as exc:
        run_cli(["--config", str(cfg_path), "--support-group", "Z" * 60, "--output-json", str(summary_path)])

    assert exc.value.code == 1
    payload = json.loads(summary_path.read_text())
    assert payload["error_type"] == "ConfigurationError"
    assert "Z" * 60 in payload["error"]
    assert list((tmp_path / "out").iterdir()) == []


@pytest.mark.parametrize(
    "section, key, value",
    [("runtime", "logging", {"level": "CHATTY"}), ("vault", "encoding", "no-such-codec")],
)
def test_validate_config_rejects_unknown_level_and_encoding(tmp_path, section, key, value):
    cfg = _cfg(tmp_path)
    cfg[section][key] = value

    with pytest.raises(ConfigurationError) as exc:
        validate_config(cfg)

    assert f"{section}." in str(exc.value)


def test_cli_unknown_check_exits_nonzero_before_output(tmp_path):
    cfg_path = tmp_path / "cfg.json"
    cfg_path.write_text(json.dumps(_cfg(tmp_path, records_path=str(tmp_path / "service.json"))))
    summary_path = tmp_path / "summary.json"

    with pytest.raises(SystemExit) as exc:
        run_cli(["--config", str(cfg_path), "--checks", "disjointnes", "--output-json", str(summary_path)])

    assert exc.value.code == 1
    payload = json.loads(summary_path.read_text())
    assert payload["error_type"] == "ConfigurationError"
    assert list((tmp_path / "out").iterdir()) == []
