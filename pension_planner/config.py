"""Reference tables used by the projection and scoring engines.

The engine never reads module-level globals for country rules or score
benchmarks.  Everything lives in an :class:`EngineConfig` which is built from
the JSON files shipped in ``pension_planner/data`` and handed to the entry
points explicitly.  Callers may build their own config (for example with
different benchmark thresholds) and pass it in instead.

Example
-------

>>> cfg = default_config()
>>> cfg.countries["israel"]["pensionTax"]
0.15
>>> cfg.risk_multiplier("aggressive")
1.15
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

_DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data"


def _load_json(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def scenario_multiplier(risk_scenarios: Mapping[str, Mapping[str, Any]], risk_tolerance: Optional[str]) -> float:
    """Return multiplier for ``risk_tolerance``; unknown tolerances map to 1.0."""
    scenario = risk_scenarios.get(risk_tolerance or "moderate")
    if not scenario:
        return 1.0
    return float(scenario.get("multiplier", 1.0))


@dataclass(frozen=True)
class EngineConfig:
    """Read-only lookup tables for one engine instance."""

    countries: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    risk_scenarios: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    return_scenarios: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    historical_returns: Dict[str, Dict[str, float]] = field(default_factory=dict)
    score_factors: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    score_interpretation: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    peer_benchmarks: Dict[str, Dict[str, float]] = field(default_factory=dict)
    country_factors: Dict[str, Dict[str, float]] = field(default_factory=dict)
    age_based_targets: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    risk_profiles: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    stress_scenarios: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    simulation: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def risk_multiplier(self, risk_tolerance: Optional[str]) -> float:
        return scenario_multiplier(self.risk_scenarios, risk_tolerance)

    def benchmarks(self, factor: str) -> Dict[str, float]:
        return dict(self.score_factors.get(factor, {}).get("benchmarks", {}))

    def weight(self, factor: str) -> float:
        return float(self.score_factors.get(factor, {}).get("weight", 0.0))


def load_config(data_dir: Optional[Path] = None) -> EngineConfig:
    """Build an :class:`EngineConfig` from a directory of JSON tables.

    Parameters
    ----------
    data_dir : Path, optional
        Directory holding ``countries.json``, ``risk_scenarios.json``,
        ``return_scenarios.json``, ``historical_returns.json``,
        ``score_factors.json``, ``stress_scenarios.json`` and
        ``simulation.json``.  Defaults to the tables shipped with the
        package.

    Returns
    -------
    EngineConfig
        The parsed tables.
    """
    d = Path(data_dir) if data_dir is not None else _DEFAULT_DATA_DIR
    scoring = _load_json(d / "score_factors.json")
    return EngineConfig(
        countries=_load_json(d / "countries.json"),
        risk_scenarios=_load_json(d / "risk_scenarios.json"),
        return_scenarios=_load_json(d / "return_scenarios.json"),
        historical_returns=_load_json(d / "historical_returns.json"),
        score_factors=scoring.get("factors", {}),
        score_interpretation=scoring.get("interpretation", {}),
        peer_benchmarks=scoring.get("peerBenchmarks", {}),
        country_factors=scoring.get("countryFactors", {}),
        # JSON object keys are strings; ages are compared numerically
        age_based_targets={int(k): v for k, v in scoring.get("ageBasedTargets", {}).items()},
        risk_profiles=scoring.get("riskProfiles", {}),
        stress_scenarios=_load_json(d / "stress_scenarios.json"),
        simulation=_load_json(d / "simulation.json"),
    )


@lru_cache(maxsize=1)
def default_config() -> EngineConfig:
    """Return the packaged configuration, loaded once per process."""
    return load_config()


__all__ = ["EngineConfig", "load_config", "default_config", "scenario_multiplier"]
