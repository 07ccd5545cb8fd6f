"""Stress tests: re-run the projection under adverse market conditions.

Each scenario in ``data/stress_scenarios.json`` describes a shock as a set of
percentage-point changes:

* ``incomeReduction`` – salaries and pension contributions shrink by this
  percentage.
* ``portfolioDecline`` – subtracted from the personal portfolio return, half of
  it from pension returns and one and a half times it from crypto.
* ``realEstateDecline`` – subtracted from the real estate return.
* ``inflationIncrease`` – added to the inflation rate.

Shocked returns never go below zero.  The stressed projection is compared
with an unshocked baseline.

Example
-------

>>> inputs = {"currentAge": 40, "retirementAge": 67, "currentSavings": 100000,
...           "personalPortfolio": 50000, "personalPortfolioReturn": 7}
>>> periods = [{"country": "israel", "startAge": 40, "endAge": 67,
...             "monthlyContribution": 2000, "salary": 15000, "pensionReturn": 6}]
>>> result = run_stress_test("financial_crisis_2008", inputs, periods)
>>> result.savings_impact < 0
True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..config import EngineConfig, default_config
from .fields import FIELD_ALIASES, PARTNER_FIELD_ALIASES, to_number
from .income import DEFAULT_INFLATION
from .projection import ProjectionResult, calculate_retirement
from .work_periods import WorkPeriod, coerce_periods

logger = logging.getLogger(__name__)

STRESS_RECOMMENDATIONS = (
    "Increase emergency fund to cover 6-12 months",
    "Consider diversifying to safer investments",
    "Explore additional income opportunities",
    "Reduce non-essential expenses",
)

# Record-level income fields scaled by the income shock
_INCOME_KEYS = (
    FIELD_ALIASES["monthly_salary"]
    + FIELD_ALIASES["pension_contribution"]
    + PARTNER_FIELD_ALIASES["monthly_salary"]
    + PARTNER_FIELD_ALIASES["pension_contribution"]
)


def _shock(value: Any, decline: float) -> Optional[float]:
    number = to_number(value)
    if number is None:
        return None
    return max(0.0, number - decline)


def stressed_inputs(inputs: Mapping[str, Any], scenario: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a shocked copy of ``inputs``; the original is left untouched."""
    portfolio_decline = float(scenario.get("portfolioDecline", 0.0))
    income_factor = 1 - float(scenario.get("incomeReduction", 0.0)) / 100

    record = dict(inputs)
    inflation = to_number(inputs.get("inflationRate"))
    base_inflation = DEFAULT_INFLATION if inflation is None else inflation
    record["inflationRate"] = base_inflation + float(scenario.get("inflationIncrease", 0.0))

    declines = {
        "personalPortfolioReturn": portfolio_decline,
        "partnerPersonalPortfolioReturn": portfolio_decline,
        "realEstateReturn": float(scenario.get("realEstateDecline", 0.0)),
        "cryptoReturn": portfolio_decline * 1.5,
        "pensionReturn": portfolio_decline / 2,
        "partnerPensionReturn": portfolio_decline / 2,
    }
    for key, decline in declines.items():
        shocked = _shock(inputs.get(key), decline)
        if shocked is not None:
            record[key] = shocked

    for key in _INCOME_KEYS:
        value = to_number(inputs.get(key))
        if value is not None:
            record[key] = value * income_factor
    return record


def stressed_periods(periods: Iterable[Any], scenario: Mapping[str, Any]) -> List[WorkPeriod]:
    """Apply the income and pension return shocks to each work period."""
    income_factor = 1 - float(scenario.get("incomeReduction", 0.0)) / 100
    pension_decline = float(scenario.get("portfolioDecline", 0.0)) / 2
    return [
        replace(
            p,
            salary=p.salary * income_factor,
            monthly_contribution=p.monthly_contribution * income_factor,
            pension_return=max(0.0, p.pension_return - pension_decline),
        )
        for p in coerce_periods(periods)
    ]


@dataclass(frozen=True)
class StressTestResult:
    scenario_id: str
    scenario: Dict[str, Any]
    baseline: ProjectionResult
    stressed: ProjectionResult
    recommendations: List[str] = field(default_factory=list)

    @property
    def baseline_total(self) -> float:
        return self.baseline.combined_totals()["total_savings"]

    @property
    def stressed_total(self) -> float:
        return self.stressed.combined_totals()["total_savings"]

    @property
    def savings_impact(self) -> float:
        return self.stressed_total - self.baseline_total

    @property
    def savings_impact_pct(self) -> float:
        if self.baseline_total == 0:
            return 0.0
        return self.savings_impact / self.baseline_total * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenarioId": self.scenario_id,
            "scenario": dict(self.scenario),
            "baseline": self.baseline.to_dict(),
            "stressedResults": self.stressed.to_dict(),
            "savingsImpact": self.savings_impact,
            "savingsImpactPct": self.savings_impact_pct,
            "recommendations": list(self.recommendations),
        }


def _recommendations(stressed: ProjectionResult) -> List[str]:
    recs = []
    income = stressed.income
    if income is not None and income.target_monthly_income > 0 and not income.achieves_target:
        recs.append(f"Retirement income would fall {abs(income.target_gap):,.0f} per month short of target")
    recs.extend(STRESS_RECOMMENDATIONS)
    return recs


def _run(
    scenario_id: str,
    scenario: Mapping[str, Any],
    inputs: Mapping[str, Any],
    periods: List[WorkPeriod],
    partner_periods: List[WorkPeriod],
    baseline: ProjectionResult,
    projection_kwargs: Dict[str, Any],
) -> Optional[StressTestResult]:
    logger.info("Running stress scenario %s", scenario_id)
    stressed = calculate_retirement(
        stressed_inputs(inputs, scenario),
        stressed_periods(periods, scenario),
        partner_work_periods=stressed_periods(partner_periods, scenario),
        **projection_kwargs,
    )
    if stressed is None:
        return None
    return StressTestResult(
        scenario_id=scenario_id,
        scenario=dict(scenario),
        baseline=baseline,
        stressed=stressed,
        recommendations=_recommendations(stressed),
    )


def _prepare(inputs, work_periods, partner_work_periods, config, projection_kwargs):
    periods = coerce_periods(work_periods) or coerce_periods(inputs.get("workPeriods"))
    partner_periods = coerce_periods(partner_work_periods)
    baseline = calculate_retirement(
        inputs, periods, partner_work_periods=partner_periods, config=config, **projection_kwargs
    )
    return periods, partner_periods, baseline


def run_stress_test(
    scenario_id: str,
    inputs: Mapping[str, Any],
    work_periods: Iterable[Any] = (),
    partner_work_periods: Iterable[Any] = (),
    config: Optional[EngineConfig] = None,
    **projection_kwargs: Any,
) -> Optional[StressTestResult]:
    """Project ``inputs`` under one named stress scenario.

    Parameters
    ----------
    scenario_id : str
        Key in ``config.stress_scenarios``, e.g. ``"covid_pandemic"``.
    inputs : mapping
        The household input record.  Never mutated.
    work_periods, partner_work_periods : iterable
        As for :func:`~pension_planner.calculators.projection.calculate_retirement`.
    config : EngineConfig, optional
        Reference tables; defaults to the packaged configuration.
    **projection_kwargs
        Passed through to ``calculate_retirement`` (allocations, historical
        returns, training fund contribution).

    Returns
    -------
    StressTestResult or None
        ``None`` when the horizon is not positive.

    Raises
    ------
    ValueError
        If ``scenario_id`` is not a known scenario.
    """
    cfg = config or default_config()
    scenario = cfg.stress_scenarios.get(scenario_id)
    if scenario is None:
        raise ValueError(f"unknown stress scenario: {scenario_id!r}")
    periods, partner_periods, baseline = _prepare(inputs, work_periods, partner_work_periods, cfg, projection_kwargs)
    if baseline is None:
        return None
    return _run(scenario_id, scenario, inputs, periods, partner_periods, baseline, {**projection_kwargs, "config": cfg})


def run_all_stress_tests(
    inputs: Mapping[str, Any],
    work_periods: Iterable[Any] = (),
    partner_work_periods: Iterable[Any] = (),
    config: Optional[EngineConfig] = None,
    **projection_kwargs: Any,
) -> Dict[str, StressTestResult]:
    """Run every configured scenario against one shared baseline."""
    cfg = config or default_config()
    periods, partner_periods, baseline = _prepare(inputs, work_periods, partner_work_periods, cfg, projection_kwargs)
    if baseline is None:
        return {}
    stressed_kwargs = {**projection_kwargs, "config": cfg}
    results = {}
    for scenario_id, scenario in cfg.stress_scenarios.items():
        result = _run(scenario_id, scenario, inputs, periods, partner_periods, baseline, stressed_kwargs)
        if result is not None:
            results[scenario_id] = result
    return results


__all__ = [
    "STRESS_RECOMMENDATIONS",
    "StressTestResult",
    "run_all_stress_tests",
    "run_stress_test",
    "stressed_inputs",
    "stressed_periods",
]
