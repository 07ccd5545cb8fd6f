import math

import pytest

from pension_planner.health.readiness import calculate_readiness_score, projected_savings, score_category


@pytest.mark.parametrize("retirement_age", [35, 30])
def test_no_horizon_returns_none(retirement_age):
    assert calculate_readiness_score(35, retirement_age, 100000, 1000, 10000) is None


def test_reference_household():
    r = calculate_readiness_score(35, 67, 200_000, 3_000, 30_000)
    assert r.factors == {
        "savingsRate": 70.0,
        "timeHorizon": 100.0,
        "currentSavings": 100.0,
        "retirementGoal": 60.0,
        "riskManagement": 90.0,
    }
    assert r.score == 82
    assert r.category == "good"
    assert r.target_savings == 30_000 * 12 * 25
    assert r.shortfall == pytest.approx(r.target_savings - r.projected_savings)
    assert [rec["type"] for rec in r.recommendations] == ["timeline", "risk"]
    assert r.recommendations[0]["text"] == "Consider delaying retirement by 2 years"


def test_projection_formula():
    expected = 10000 * 1.07 ** 10 + 100 * ((1 + 0.07 / 12) ** 120 - 1) / (0.07 / 12)
    assert math.isclose(projected_savings(10000, 100, 10), expected, rel_tol=1e-12)


def test_no_target_is_neutral():
    r = calculate_readiness_score(25, 65, 0, 0, 0)
    assert r.factors["savingsRate"] == 50
    assert r.factors["retirementGoal"] == 50
    assert r.factors["currentSavings"] == 50


def test_low_savings_recommendations():
    r = calculate_readiness_score(40, 67, 10_000, 500, 30_000)
    texts = [rec["text"] for rec in r.recommendations]
    assert texts[0] == "Increase savings rate by 12%"
    assert "Explore ways to increase current income" in texts
    assert texts[-1] == "Diversify investments across asset classes"


def test_critical_score():
    r = calculate_readiness_score(64, 66, 0, 0, 10_000)
    assert r.score == 6
    assert r.category == "critical"
    assert r.label == "Immediate Action Required"
    assert r.to_dict()["label"] == "Immediate Action Required"


@pytest.mark.parametrize(
    "score,category",
    [(95, "excellent"), (90, "excellent"), (75, "good"), (60, "fair"), (40, "poor"), (39, "critical")],
)
def test_score_category(score, category):
    assert score_category(score) == category


@pytest.mark.parametrize(
    "args",
    [
        (40, 67, -100_000, 1_000, 10_000),
        (30, 65, 50_000, -2_000, 8_000),
        (50, 51, 1e12, 1e9, 1),
        (26, 90, -1e9, -1e6, -5_000),
    ],
)
def test_factors_are_clamped(args):
    r = calculate_readiness_score(*args)
    assert all(0 <= value <= 100 for value in r.factors.values())
    assert 0 <= r.score <= 100


def test_negative_savings_scores_zero():
    r = calculate_readiness_score(40, 67, -100_000, 1_000, 10_000)
    assert r.factors["currentSavings"] == 0
