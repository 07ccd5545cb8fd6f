"""Tests for the Monte Carlo simulation engine."""

import copy
from dataclasses import replace

import pytest

from pension_planner.calculators import monte_carlo
from pension_planner.config import default_config


def _build_simple_inputs() -> dict:
    return {
        "currentAge": 57,
        "retirementAge": 67,
        "currentSavings": 100000.0,
        "monthlyContribution": 1000.0,
        "personalPortfolio": 20000.0,
        "targetMonthlyIncome": 500.0,
    }


def _flat_config():
    """Config whose assets never move, so paths are deterministic."""
    cfg = default_config()
    simulation = copy.deepcopy(cfg.simulation)
    for asset in simulation["assets"].values():
        asset["expectedReturn"] = 0.0
        asset["volatility"] = 0.0
    return replace(cfg, simulation=simulation)


def test_repeatability_with_seed():
    """Simulations should be repeatable when the same seed is provided."""
    inputs = _build_simple_inputs()
    result1 = monte_carlo.simulate(inputs, n_paths=10, seed=12345)
    result2 = monte_carlo.simulate(inputs, n_paths=10, seed=12345)
    assert result1["success_probability"] == result2["success_probability"]
    assert result1["percentiles"] == result2["percentiles"]


def test_success_probability_requires_positive_terminal():
    """A plan ending with zero savings should count as failure."""
    inputs = {"currentAge": 57, "retirementAge": 67, "targetMonthlyIncome": 1000.0}
    result = monte_carlo.simulate(inputs, n_paths=5, seed=1)
    assert result["success_probability"] == 0.0
    assert result["median_terminal"] == 0.0
    assert result["risk_metrics"]["shortfall_probability"] == 1.0
    assert result["risk_metrics"]["average_shortfall"] == pytest.approx(1.0)


def test_flat_returns_accumulate_contributions_only():
    result = monte_carlo.simulate(_build_simple_inputs(), n_paths=3, seed=3, config=_flat_config())
    assert result["median_terminal"] == pytest.approx(120000 + 1000 * 120)
    assert result["percentiles"]["p10"] == result["percentiles"]["p90"]
    assert result["statistics"]["drawdown"]["max"] == 0.0
    # 240k * 4% / 12 = 800 a month against a 500 target
    assert result["success_probability"] == 1.0


def test_contributions_stop_at_retirement():
    result = monte_carlo.simulate(
        _build_simple_inputs(), n_paths=2, projection_years=15, seed=3, config=_flat_config()
    )
    p50 = result["percentiles"]["p50"]
    assert len(p50) == 16
    assert p50[10] == pytest.approx(p50[-1])


def test_percentile_shapes_and_ordering():
    result = monte_carlo.simulate(_build_simple_inputs(), n_paths=50, seed=7)
    assert result["ages"] == list(range(57, 68))
    for key in ("p10", "p50", "p90"):
        assert len(result["percentiles"][key]) == len(result["ages"])
    for low, mid, high in zip(*(result["percentiles"][k] for k in ("p10", "p50", "p90"))):
        assert low <= mid <= high
    assert 0.0 <= result["success_probability"] <= 1.0
    assert sum(result["regime_frequency"].values()) == pytest.approx(1.0)
    assert set(result["regime_frequency"]) <= set(default_config().simulation["economicScenarios"])


def test_no_target_skips_success_metrics():
    inputs = _build_simple_inputs()
    del inputs["targetMonthlyIncome"]
    result = monte_carlo.simulate(inputs, n_paths=5, seed=2)
    assert result["success_probability"] is None
    assert result["risk_metrics"]["shortfall_probability"] is None


def test_target_from_replacement_ratio():
    inputs = _build_simple_inputs()
    del inputs["targetMonthlyIncome"]
    inputs.update({"currentMonthlySalary": 10000, "targetReplacement": 70})
    result = monte_carlo.simulate(inputs, n_paths=5, seed=2)
    assert result["target_monthly_income"] == pytest.approx(7000)


@pytest.mark.parametrize("retirement_age", [57, 50])
def test_no_horizon_returns_none(retirement_age):
    inputs = _build_simple_inputs()
    inputs["retirementAge"] = retirement_age
    assert monte_carlo.simulate(inputs, n_paths=5, seed=1) is None


def test_risk_recommendations():
    low = monte_carlo.risk_recommendations(0.5, 0.1, 0.0)
    assert [r["type"] for r in low] == ["low_success_probability"]
    assert low[0]["description"].startswith("Only 50%")

    assert [r["type"] for r in monte_carlo.risk_recommendations(0.95, 0.5, 0.3)] == [
        "high_success_probability",
        "high_drawdown_risk",
        "shortfall_risk",
    ]
    assert monte_carlo.risk_recommendations(None, 0.0, 0.0) == []
