# tests/test_inputs_loader.py
import json

import pytest

from src.inputs.inputs import AppInputs, InputsLoader, RunOptions, load_inputs
from tests.utils import app_payload, make_scenario_inputs, scenario_payload, write_json


def test_load_bare_scenario(tmp_path):
    p = write_json(tmp_path / "scenario.json", scenario_payload())
    cfg = InputsLoader().load(p)
    assert isinstance(cfg, AppInputs)
    assert cfg.inputs.loan.principal == 20_000
    assert cfg.inputs.tax.filing_status == "married"
    assert cfg.run == RunOptions()


def test_load_structured_scenario(tmp_path):
    p = write_json(tmp_path / "app.json", app_payload(workers=3, out="out/r.md", log_level="info"))
    cfg = load_inputs(p)
    assert cfg.run.seed == 42
    assert cfg.run.workers == 3
    assert cfg.run.out == "out/r.md"
    assert cfg.run.log_level == "INFO"


def test_load_json_string():
    cfg = InputsLoader().load_json(json.dumps(scenario_payload()))
    assert cfg.inputs.simulation.trials == 50


def test_env_overrides(tmp_path, monkeypatch):
    p = write_json(tmp_path / "app.json", app_payload())
    monkeypatch.setenv("TVM_SEED", "7")
    monkeypatch.setenv("TVM_WORKERS", "4")
    monkeypatch.setenv("TVM_OUT", "env.md")
    monkeypatch.setenv("TVM_LOG_LEVEL", "debug")
    cfg = InputsLoader().load(p)
    assert cfg.run.seed == 7
    assert cfg.run.workers == 4
    assert cfg.run.out == "env.md"
    assert cfg.run.log_level == "DEBUG"


def test_bad_env_values_are_ignored(tmp_path, monkeypatch):
    p = write_json(tmp_path / "app.json", app_payload())
    monkeypatch.setenv("TVM_SEED", "not-a-number")
    monkeypatch.setenv("TVM_LOG_LEVEL", "chatty")
    cfg = InputsLoader().load(p)
    assert cfg.run.seed == 42
    assert cfg.run.log_level == "WARNING"


def test_custom_env_prefix(tmp_path, monkeypatch):
    p = write_json(tmp_path / "app.json", app_payload())
    monkeypatch.setenv("ACME_SEED", "9")
    assert InputsLoader(env_prefix="ACME_").load(p).run.seed == 9


def test_from_inputs_applies_env(monkeypatch):
    monkeypatch.setenv("TVM_WORKERS", "2")
    cfg = InputsLoader().from_inputs(make_scenario_inputs(with_simulation=False))
    assert cfg.run.workers == 2
    assert cfg.inputs.simulation is None


def test_with_overrides_returns_new_instance(tmp_path):
    loader = InputsLoader()
    cfg = loader.load(write_json(tmp_path / "app.json", app_payload()))
    assert loader.with_overrides(cfg) is cfg

    updated = loader.with_overrides(cfg, seed=1, workers=8, out="x.md", log_level="error")
    assert (updated.run.seed, updated.run.workers, updated.run.out, updated.run.log_level) == (1, 8, "x.md", "ERROR")
    assert cfg.run.seed == 42


def test_with_overrides_revalidates(tmp_path):
    loader = InputsLoader()
    cfg = loader.load(write_json(tmp_path / "app.json", app_payload()))
    with pytest.raises(ValueError):
        loader.with_overrides(cfg, workers=0)


def test_invalid_payloads(tmp_path):
    loader = InputsLoader()
    with pytest.raises(ValueError):
        loader.load_json("{not json")
    with pytest.raises(ValueError):
        loader.load_json("[1, 2]")
    with pytest.raises(ValueError):
        loader.load_json(json.dumps({"loan": {"principal": -5, "annual_rate_percent": 5, "term_years": 30}}))

    txt = tmp_path / "scenario.txt"
    txt.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError):
        loader.load(txt)


def test_missing_files(tmp_path, monkeypatch):
    with pytest.raises(FileNotFoundError):
        InputsLoader().load(tmp_path / "nope.json")

    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        InputsLoader().load()


def test_default_search_finds_config_json(tmp_path, monkeypatch):
    write_json(tmp_path / "config.json", scenario_payload())
    monkeypatch.chdir(tmp_path)
    assert InputsLoader().load().inputs.loan is not None
