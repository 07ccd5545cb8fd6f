"""Return and risk-adjustment utilities.

All returns are expressed as annual percentages (``6.5`` means 6.5 %).  The
risk multipliers and market scenarios come from the packaged JSON tables in
``data/``; pass an :class:`~pension_planner.config.EngineConfig` to use
different ones.

Example
-------

>>> round(get_adjusted_return(8.0, "conservative"), 2)
6.8

>>> allocs = [{"name": "S&P 500", "allocation": 60, "historicalReturn": 10},
...           {"name": "Government Bonds", "allocation": 40, "historicalReturn": 4}]
>>> round(calculate_weighted_return(allocs, 20), 2)
7.6
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from ..config import EngineConfig, default_config, scenario_multiplier
from .fields import to_number

logger = logging.getLogger(__name__)

ReturnAdjuster = Callable[[Mapping[str, Any]], Dict[str, Any]]

_RETURN_KEYS = ("average", "mean", "expectedReturn")

# Lowest return each asset class may glide down to; crypto is never adjusted.
_GLIDE_PATH_FLOORS = {
    "pensionReturn": 3.0,
    "trainingFundReturn": 2.5,
    "personalPortfolioReturn": 4.0,
    "realEstateReturn": 3.0,
}


def get_adjusted_return(
    base_return: float,
    risk_tolerance: Optional[str],
    risk_scenarios: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> float:
    """Scale ``base_return`` by the multiplier of ``risk_tolerance``.

    Unknown or missing tolerances leave the return unchanged.
    """
    base = to_number(base_return) or 0.0
    table = risk_scenarios if risk_scenarios is not None else default_config().risk_scenarios
    return base * scenario_multiplier(table, risk_tolerance)


def get_net_return(gross_return: float, fee: float) -> float:
    return gross_return - fee


def _lookup_return(name: Optional[str], historical_returns: Optional[Mapping[str, Any]]) -> Optional[float]:
    if not name or not historical_returns or name not in historical_returns:
        return None
    entry = historical_returns[name]
    if isinstance(entry, Mapping):
        for key in _RETURN_KEYS:
            value = to_number(entry.get(key))
            if value is not None:
                return value
        return None
    return to_number(entry)


def _entry_fields(entry: Any):
    if isinstance(entry, Mapping):
        name = entry.get("name") or entry.get("assetClass") or entry.get("type")
        weight = entry.get("allocation", entry.get("percentage", entry.get("weight")))
        fallback = entry.get("historicalReturn", entry.get("historical_return"))
    else:
        # AllocationEntry or anything shaped like it
        name = getattr(entry, "name", None)
        weight = getattr(entry, "allocation", None)
        fallback = getattr(entry, "historical_return", None)
    return name, to_number(weight), to_number(fallback)


def calculate_weighted_return(
    allocations: Iterable[Any],
    years: float = 0,
    historical_returns: Optional[Mapping[str, Any]] = None,
) -> float:
    """Blend an allocation list into a single annual return.

    Parameters
    ----------
    allocations : iterable
        Entries with a name, an allocation percentage and a fallback
        historical return.  Mappings (camelCase or snake_case) and
        :class:`~pension_planner.calculators.work_periods.AllocationEntry`
        instances are both accepted.
    years : float
        Planning horizon.  Accepted so callers can pass it through; it does
        not change the blend.
    historical_returns : mapping, optional
        Asset name to return, either a number or a mapping with an
        ``average``/``mean``/``expectedReturn`` key.  Takes precedence over
        the entry's own historical return.

    Returns
    -------
    float
        ``sum(allocation_i / 100 * r_i)``.  When the allocations add up to a
        positive total other than 100 the blend is normalised by that total.
        An empty or invalid list yields ``0.0``.
    """
    if allocations is None or isinstance(allocations, (str, bytes, Mapping)):
        logger.warning("Allocation list is not a sequence: %r", allocations)
        return 0.0
    entries = list(allocations)
    if not entries:
        logger.warning("Empty allocation list, weighted return is 0")
        return 0.0

    weighted = 0.0
    total = 0.0
    for entry in entries:
        name, weight, fallback = _entry_fields(entry)
        if weight is None:
            logger.warning("Skipping allocation entry without a weight: %r", entry)
            continue
        r = _lookup_return(name, historical_returns)
        if r is None:
            r = fallback or 0.0
        weighted += weight / 100 * r
        total += weight

    if total > 0 and abs(total - 100) > 1e-9:
        logger.info("Allocations sum to %.2f%%, normalising to 100%%", total)
        return weighted * 100 / total
    return weighted


def returns_for_horizon(table_by_horizon: Mapping[str, Mapping[str, Any]], years: float) -> Dict[str, Any]:
    """Pick the horizon-keyed return table closest to ``years``.

    ``table_by_horizon`` maps horizons in years (``"5"``, ``"10"``, ...) to
    asset return tables.  Ties go to the shorter horizon.
    """
    keyed = []
    for key, table in table_by_horizon.items():
        horizon = to_number(key)
        if horizon is not None:
            keyed.append((horizon, table))
    if not keyed:
        return {}
    keyed.sort(key=lambda kv: kv[0])
    _, best = min(keyed, key=lambda kv: abs(kv[0] - years))
    return dict(best)


def apply_return_scenario(
    inputs: Mapping[str, Any],
    scenario_name: str,
    config: Optional[EngineConfig] = None,
) -> Dict[str, Any]:
    """Return a copy of ``inputs`` with a market scenario's returns applied.

    Unknown scenario names fall back to ``moderate``.  The ``custom`` scenario
    keeps the caller's own returns and only tags the record.
    """
    cfg = config or default_config()
    scenario = cfg.return_scenarios.get(scenario_name)
    if scenario is None:
        scenario_name = "moderate"
        scenario = cfg.return_scenarios.get("moderate", {})

    enriched = dict(inputs)
    enriched["returnScenario"] = scenario_name
    returns = scenario.get("returns")
    if not returns:
        return enriched

    enriched.update(returns)
    periods = inputs.get("workPeriods")
    if isinstance(periods, list):
        enriched["workPeriods"] = [
            {**p, "pensionReturn": returns["pensionReturn"]} if isinstance(p, Mapping) else p
            for p in periods
        ]
    return enriched


def glide_path_factor(years_to_retirement: float) -> float:
    if years_to_retirement >= 30:
        return 1.0
    if years_to_retirement >= 20:
        return 0.95
    if years_to_retirement >= 10:
        return 0.90
    if years_to_retirement >= 5:
        return 0.85
    return 0.80


def time_based_returns(base_returns: Mapping[str, Any], years_to_retirement: float) -> Dict[str, float]:
    """Scale returns down as retirement approaches.

    Each asset class keeps a floor return; crypto is passed through.
    """
    factor = glide_path_factor(years_to_retirement)
    out: Dict[str, float] = {}
    for key, floor in _GLIDE_PATH_FLOORS.items():
        value = to_number(base_returns.get(key))
        if value is not None:
            out[key] = max(floor, value * factor)
    crypto = to_number(base_returns.get("cryptoReturn"))
    if crypto is not None:
        out["cryptoReturn"] = crypto
    out["adjustmentFactor"] = factor
    return out


def scenario_adjuster(scenario_name: str, config: Optional[EngineConfig] = None, glide_path: bool = False) -> ReturnAdjuster:
    """Build a return-adjustment hook for :func:`calculate_retirement`."""

    def adjust(inputs: Mapping[str, Any]) -> Dict[str, Any]:
        enriched = apply_return_scenario(inputs, scenario_name, config)
        if glide_path:
            years = (to_number(enriched.get("retirementAge")) or 0) - (to_number(enriched.get("currentAge")) or 0)
            adjusted = time_based_returns(enriched, years)
            adjusted.pop("adjustmentFactor")
            enriched.update(adjusted)
        return enriched

    return adjust


__all__ = [
    "ReturnAdjuster",
    "apply_return_scenario",
    "calculate_weighted_return",
    "get_adjusted_return",
    "get_net_return",
    "glide_path_factor",
    "returns_for_horizon",
    "scenario_adjuster",
    "time_based_returns",
]
