import copy
import logging
import math

import pytest

from pension_planner.calculators.returns import (
    apply_return_scenario,
    calculate_weighted_return,
    get_adjusted_return,
    get_net_return,
    returns_for_horizon,
    scenario_adjuster,
    time_based_returns,
)
from pension_planner.calculators.work_periods import AllocationEntry


def _allocations():
    return [
        {"name": "S&P 500", "allocation": 60, "historicalReturn": 10},
        {"name": "Government Bonds", "allocation": 40, "historicalReturn": 4},
    ]


@pytest.mark.parametrize(
    "risk,expected",
    [("conservative", 6.8), ("moderate", 8.0), ("aggressive", 9.2), (None, 8.0), ("unknown", 8.0)],
)
def test_adjusted_return(risk, expected):
    assert math.isclose(get_adjusted_return(8.0, risk), expected, rel_tol=1e-9)


def test_net_return():
    assert get_net_return(6.5, 0.5) == 6.0


def test_weighted_return_uses_fallback_returns():
    assert calculate_weighted_return(_allocations(), 20) == pytest.approx(7.6)


def test_weighted_return_prefers_historical_table():
    table = {"S&P 500": 12.0, "Government Bonds": {"average": 5.0}}
    assert calculate_weighted_return(_allocations(), 20, table) == pytest.approx(0.6 * 12 + 0.4 * 5)


def test_weighted_return_normalises_partial_allocations():
    allocs = [
        {"name": "S&P 500", "allocation": 30, "historicalReturn": 10},
        {"name": "Government Bonds", "allocation": 20, "historicalReturn": 4},
    ]
    assert calculate_weighted_return(allocs) == pytest.approx(7.6)


def test_weighted_return_accepts_allocation_entries():
    entries = [AllocationEntry("S&P 500", 60, 10), AllocationEntry("Government Bonds", 40, 4)]
    assert calculate_weighted_return(entries) == pytest.approx(7.6)


@pytest.mark.parametrize("allocs", [[], None, "S&P 500", {"name": "S&P 500"}])
def test_weighted_return_invalid_is_zero(allocs, caplog):
    with caplog.at_level(logging.WARNING):
        assert calculate_weighted_return(allocs) == 0.0
    assert caplog.records


def test_returns_for_horizon_picks_closest():
    table = {"5": {"a": 1}, "10": {"a": 2}, "20": {"a": 3}}
    assert returns_for_horizon(table, 9) == {"a": 2}
    assert returns_for_horizon(table, 40) == {"a": 3}
    # ties go to the shorter horizon
    assert returns_for_horizon(table, 7.5) == {"a": 1}


def test_apply_return_scenario_does_not_mutate_inputs():
    inputs = {"currentAge": 30, "workPeriods": [{"country": "israel", "pensionReturn": 4}]}
    before = copy.deepcopy(inputs)
    out = apply_return_scenario(inputs, "aggressive")
    assert inputs == before
    assert out["pensionReturn"] == 8.5
    assert out["workPeriods"][0]["pensionReturn"] == 8.5
    assert out["returnScenario"] == "aggressive"


def test_unknown_scenario_falls_back_to_moderate():
    out = apply_return_scenario({}, "heroic")
    assert out["returnScenario"] == "moderate"
    assert out["pensionReturn"] == 7.0


def test_custom_scenario_only_tags():
    out = apply_return_scenario({"pensionReturn": 3.3}, "custom")
    assert out == {"pensionReturn": 3.3, "returnScenario": "custom"}


def test_time_based_returns_glide_path():
    out = time_based_returns({"pensionReturn": 7.0, "cryptoReturn": 15.0}, 3)
    assert out["adjustmentFactor"] == 0.8
    assert out["pensionReturn"] == pytest.approx(5.6)
    assert out["cryptoReturn"] == 15.0


def test_time_based_returns_respects_floor():
    out = time_based_returns({"pensionReturn": 3.5, "trainingFundReturn": 2.0}, 0)
    assert out["pensionReturn"] == 3.0
    assert out["trainingFundReturn"] == 2.5


def test_scenario_adjuster_with_glide_path():
    adjust = scenario_adjuster("aggressive", glide_path=True)
    out = adjust({"currentAge": 60, "retirementAge": 67})
    # seven years out scales returns by 0.85
    assert out["pensionReturn"] == pytest.approx(8.5 * 0.85)
    assert "adjustmentFactor" not in out
