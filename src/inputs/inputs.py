# src/inputs/inputs.py
"""
Inputs loader for the time-value-of-money engine.

Goals
-----
- Deterministic, file-first inputs with validation via Pydantic.
- Accept either a bare ScenarioInputs object or a structured shape that also
  carries run options (seed, workers, output path, log level).
- Minimal environment-variable overrides for CI/CLI convenience.

Supported JSON shapes
---------------------
1) Bare (root = ScenarioInputs)
   {
     "loan": {"principal": 200000, "annual_rate_percent": 6, "term_years": 30},
     "cash_flows": {"cash_flows": [-1000, 300, 400, 500]}
   }

2) Structured (root = AppInputs)
   {
     "inputs": { ... ScenarioInputs ... },
     "run": {"seed": 42, "workers": 2, "out": "tvm_report.md", "log_level": "INFO"}
   }

Environment overrides (optional)
--------------------------------
- TVM_SEED       -> AppInputs.run.seed (int)
- TVM_WORKERS    -> AppInputs.run.workers (int)
- TVM_OUT        -> AppInputs.run.out
- TVM_LOG_LEVEL  -> AppInputs.run.log_level

Notes
-----
- This module *does not* hit the network; all inputs are local.
- Numeric range checks live in the pydantic models and the engine, not here.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, Field, ValidationError, field_validator

from src.schemas.models import ScenarioInputs

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# ----------------------------
# Pydantic models for structured inputs
# ----------------------------


class RunOptions(BaseModel):
    """Runtime (non-financial) options controlling a scenario run."""

    out: str = Field("tvm_report.md", description="Path to write the Markdown report.")
    seed: int | None = Field(None, description="Seed for the Monte Carlo random stream; None for a fresh unseeded stream.")
    workers: int = Field(1, ge=1, le=64, description="Thread-pool workers for Monte Carlo trials.")
    log_level: str = Field("WARNING", description="Root logging level for the CLI.")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {v!r}")
        return level


class AppInputs(BaseModel):
    """
    Full input payload.

    Attributes:
        inputs: The validated ScenarioInputs evaluated by the engine.
        run:    Non-financial, runtime options for the current execution.
    """

    inputs: ScenarioInputs
    run: RunOptions = RunOptions()


# ----------------------------
# Loader
# ----------------------------


@dataclass(frozen=True)
class InputsLoader:
    """
    File-first inputs loader with light env overrides.

    Default search (when path=None):
        1) ./data/sample/scenario.json
        2) ./config.json
    """

    env_prefix: str = "TVM_"

    # ---------- Public API ----------

    def load(self, path: str | Path | None = None) -> AppInputs:
        """Load inputs from a JSON file (path). If path is None, try defaults."""
        p = self._resolve_path(path)
        raw = self._read_json_file(p)
        cfg = self._parse_root(self._maybe_wrap_bare(raw))
        return self._apply_env_overrides(cfg)

    def load_json(self, text: str) -> AppInputs:
        """Load inputs from a JSON string (bare or structured shape)."""
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON payload: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError("Inputs JSON root must be an object")
        cfg = self._parse_root(self._maybe_wrap_bare(raw))
        return self._apply_env_overrides(cfg)

    def from_inputs(self, inputs: ScenarioInputs) -> AppInputs:
        """Wrap in-memory ScenarioInputs with default run options (env overrides applied)."""
        return self._apply_env_overrides(AppInputs(inputs=inputs))

    def with_overrides(
        self,
        cfg: AppInputs,
        *,
        out: str | None = None,
        seed: int | None = None,
        workers: int | None = None,
        log_level: str | None = None,
    ) -> AppInputs:
        """
        Return a *new* AppInputs with provided non-null overrides applied to RunOptions.
        Does not mutate the original instance.
        """
        updates: dict[str, Any] = {}
        if out is not None:
            updates["out"] = out
        if seed is not None:
            updates["seed"] = seed
        if workers is not None:
            updates["workers"] = workers
        if log_level is not None:
            updates["log_level"] = log_level

        if not updates:
            return cfg
        return self._replace_run(cfg, updates)

    # ---------- Internals ----------

    def _resolve_path(self, path: str | Path | None) -> Path:
        if path is not None:
            p = Path(path)
            if not p.exists():
                raise FileNotFoundError(f"Inputs file not found: {p}")
            return p

        for candidate in (Path("data/sample/scenario.json"), Path("config.json")):
            if candidate.exists():
                return candidate
        raise FileNotFoundError(
            "No inputs path provided and no default inputs found. Looked for ./data/sample/scenario.json and ./config.json."
        )

    def _read_json_file(self, p: Path) -> dict[str, Any]:
        if p.suffix.lower() != ".json":
            raise ValueError(f"Unsupported inputs format for {p.name}; only .json is supported.")
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {p}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Inputs JSON root in {p} must be an object")
        return cast(dict[str, Any], data)

    def _maybe_wrap_bare(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Accept a bare ScenarioInputs root by wrapping it into the structured shape."""
        if "inputs" in raw:
            return raw
        return {"inputs": raw}

    def _parse_root(self, data: dict[str, Any]) -> AppInputs:
        try:
            return AppInputs.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Inputs validation failed:\n{e}") from e

    def _replace_run(self, cfg: AppInputs, updates: dict[str, Any]) -> AppInputs:
        # re-validate so overrides obey the same constraints as file values
        try:
            run_new = RunOptions.model_validate({**cfg.run.model_dump(), **updates})
        except ValidationError as e:
            raise ValueError(f"Invalid run option override:\n{e}") from e
        return cfg.model_copy(update={"run": run_new})

    def _apply_env_overrides(self, cfg: AppInputs) -> AppInputs:
        """Apply light, optional overrides from environment variables to run options."""
        prefix = self.env_prefix
        updates: dict[str, Any] = {}

        out = os.getenv(f"{prefix}OUT")
        if out:
            updates["out"] = out

        for key in ("SEED", "WORKERS"):
            value = os.getenv(f"{prefix}{key}")
            if value:
                try:
                    updates[key.lower()] = int(value)
                except ValueError:
                    # Ignore bad value; keep the validated setting
                    logging.getLogger(__name__).warning("ignoring non-integer %s%s=%r", prefix, key, value)

        log_level = os.getenv(f"{prefix}LOG_LEVEL")
        if log_level and log_level.strip().upper() in _LOG_LEVELS:
            updates["log_level"] = log_level.strip().upper()

        if not updates:
            return cfg
        return self._replace_run(cfg, updates)


# ----------------------------
# Convenience function
# ----------------------------


def load_inputs(path: str | Path | None = None) -> AppInputs:
    """Convenience wrapper for one-shot callers."""
    return InputsLoader().load(path)
