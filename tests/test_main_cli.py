# tests/test_main_cli.py
import logging
from logging.handlers import RotatingFileHandler

import pytest

import main as cli
from src.core.finance import InvalidParametersError
from tests.utils import app_payload, write_json


@pytest.fixture(autouse=True)
def _restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


def test_cli_writes_report_from_config(tmp_path, capsys):
    cfg = write_json(tmp_path / "scenario.json", app_payload())
    out = tmp_path / "report.md"
    assert cli.main(["--config", str(cfg), "--out", str(out)]) == 0
    text = out.read_text(encoding="utf-8")
    assert "## Loan Amortization" in text
    assert "## Monte Carlo Projection (50 trials)" in text
    assert "Report written to" in capsys.readouterr().out


def test_cli_seeded_runs_match(tmp_path):
    cfg = write_json(tmp_path / "scenario.json", app_payload())
    a, b = tmp_path / "a.md", tmp_path / "b.md"
    cli.main(["--config", str(cfg), "--out", str(a), "--seed", "3", "--workers", "2"])
    cli.main(["--config", str(cfg), "--out", str(b), "--seed", "3", "--workers", "2"])
    assert a.read_text(encoding="utf-8") == b.read_text(encoding="utf-8")


@pytest.mark.slow
def test_cli_sample_scenario(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert cli.main(["--out", "sample.md", "--seed", "1"]) == 0
    text = (tmp_path / "sample.md").read_text(encoding="utf-8")
    assert "## Refinance Impact" in text
    assert "## Retirement Readiness" in text


def test_cli_log_file(tmp_path):
    cfg = write_json(tmp_path / "scenario.json", app_payload())
    log_file = tmp_path / "logs" / "tvm.log"
    cli.main(
        [
            "--config",
            str(cfg),
            "--out",
            str(tmp_path / "r.md"),
            "--log-level",
            "DEBUG",
            "--log-file",
            str(log_file),
        ]
    )
    assert "running scenario" in log_file.read_text(encoding="utf-8")
    assert not any(isinstance(h, RotatingFileHandler) for h in logging.getLogger().handlers)


def test_cli_propagates_invalid_inputs(tmp_path, capsys):
    payload = app_payload()
    payload["inputs"]["cash_flows"] = {"cash_flows": [100, 200]}
    cfg = write_json(tmp_path / "bad.json", payload)
    with pytest.raises(InvalidParametersError):
        cli.main(["--config", str(cfg), "--out", str(tmp_path / "r.md")])
    assert "Error during scenario evaluation" in capsys.readouterr().out


def test_build_sample_inputs_covers_every_section():
    inputs = cli.build_sample_inputs()
    assert None not in (inputs.loan, inputs.refinance, inputs.cash_flows, inputs.simulation, inputs.retirement, inputs.tax)
