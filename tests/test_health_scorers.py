"""Tests for the per-factor financial health scorers."""

import pytest

from pension_planner.health.scorers import (
    SCORERS,
    age_based_target,
    calculate_debt_management_score,
    calculate_diversification_score,
    calculate_emergency_fund_score,
    calculate_retirement_readiness_score,
    calculate_risk_alignment_score,
    calculate_savings_rate_score,
    calculate_tax_efficiency_score,
    calculate_time_horizon_score,
    recommended_allocation,
)


def test_emergency_fund_six_months():
    res = calculate_emergency_fund_score(
        {"emergencyFund": 60000, "currentMonthlyExpenses": 10000},
        benchmarks={"poor": 1, "fair": 3, "good": 6, "excellent": 12},
    )
    assert res["score"] == pytest.approx(75)
    assert res["details"]["status"] == "good"
    assert res["details"]["monthsCovered"] == 6.0
    assert res["details"]["shortfall"] == 0


@pytest.mark.parametrize("stability,expected", [("unstable", 65), ("contract", 65), ("government", 80), ("stable", 75)])
def test_emergency_fund_job_stability(stability, expected):
    inputs = {"emergencyFund": 60000, "currentMonthlyExpenses": 10000, "jobStability": stability}
    assert calculate_emergency_fund_score(inputs)["score"] == pytest.approx(expected)


def test_emergency_fund_without_expenses_is_neutral():
    res = calculate_emergency_fund_score({"emergencyFund": 60000})
    assert res["score"] == 50
    assert res["details"]["insufficientData"] is True
    assert res["details"]["status"] == "fair"


def test_debt_to_income_far_beyond_poor():
    res = calculate_debt_management_score({"totalDebt": 600000, "currentMonthlySalary": 10000})
    assert res["score"] == 0
    assert res["details"]["status"] == "critical"
    assert res["details"]["debtToIncomeRatio"] == 5.0
    assert res["details"]["hasHighInterestDebt"] is False


@pytest.mark.parametrize("inputs", [{"totalDebt": 0, "currentMonthlySalary": 10000}, {"currentMonthlySalary": 10000}, {}])
def test_zero_debt_is_excellent(inputs):
    res = calculate_debt_management_score(inputs)
    assert res["score"] == 100
    assert res["details"]["status"] == "excellent"


def test_absent_debt_is_flagged():
    assert calculate_debt_management_score({})["details"]["debtReported"] is False
    assert calculate_debt_management_score({"totalDebt": 0})["details"]["debtReported"] is True


def test_high_interest_debt_penalty():
    inputs = {"totalDebt": 12000, "highInterestDebt": 5000, "currentMonthlySalary": 10000}
    res = calculate_debt_management_score(inputs)
    assert res["score"] == pytest.approx(95)
    assert res["details"]["hasHighInterestDebt"] is True


def test_debt_without_income_is_neutral():
    res = calculate_debt_management_score({"totalDebt": 50000})
    assert res["score"] == 50
    assert res["details"]["insufficientData"] is True


@pytest.mark.parametrize(
    "expenses,score,status",
    [(8000, 100, "excellent"), (8500, 75, "good"), (9000, 50, "fair"), (9500, 25, "poor"), (10000, 0, "critical")],
)
def test_savings_rate(expenses, score, status):
    res = calculate_savings_rate_score({"currentMonthlySalary": 10000, "currentMonthlyExpenses": expenses})
    assert res["score"] == pytest.approx(score)
    assert res["details"]["status"] == status


def test_savings_rate_couple_combines_income():
    inputs = {"planningType": "couple", "partner1Salary": 10000, "partner2Salary": 10000,
              "currentMonthlyExpenses": 17000}
    res = calculate_savings_rate_score(inputs)
    assert res["details"]["monthlyIncome"] == 20000
    assert res["details"]["savingsRate"] == 15.0


def test_savings_rate_without_income_is_neutral():
    res = calculate_savings_rate_score({"currentMonthlyExpenses": 5000})
    assert res["score"] == 50
    assert res["details"]["insufficientData"] is True


def test_retirement_readiness_on_target():
    inputs = {"currentAge": 40, "currentMonthlySalary": 10000, "currentSavings": 360000}
    res = calculate_retirement_readiness_score(inputs)
    assert res["score"] == pytest.approx(75)
    assert res["details"]["ageTarget"] == "3x annual income"


def test_retirement_readiness_young_bonus():
    inputs = {"currentAge": 30, "currentMonthlySalary": 10000, "currentSavings": 60000,
              "currentTrainingFund": 40000, "personalPortfolio": 20000}
    res = calculate_retirement_readiness_score(inputs)
    assert res["details"]["totalSavings"] == 120000
    assert res["score"] == pytest.approx(80)


def test_age_target_below_table():
    assert age_based_target(22)["target"] == 0.25
    assert age_based_target(67)["target"] == 11.0


@pytest.mark.parametrize(
    "age,retirement_age,score,urgency",
    [(30, 67, 100, "low"), (50, 67, 67.5, "medium"), (60, 67, 35, "high"), (70, 67, 0, "high")],
)
def test_time_horizon(age, retirement_age, score, urgency):
    res = calculate_time_horizon_score({"currentAge": age, "retirementAge": retirement_age})
    assert res["score"] == pytest.approx(score)
    assert res["details"]["urgency"] == urgency


def test_recommended_allocation_bounded_by_profile():
    assert recommended_allocation(40, "moderate") == {"equity": 60, "bonds": 40, "other": 0}
    assert recommended_allocation(70, "conservative")["equity"] == 30
    assert recommended_allocation(25, "veryAggressive")["equity"] == 80
    assert recommended_allocation(25, "made-up")["equity"] == 60


def test_risk_alignment():
    aligned = calculate_risk_alignment_score({"currentAge": 40, "equityPercentage": 60, "bondPercentage": 40})
    assert aligned["score"] == 100
    assert aligned["details"]["status"] == "excellent"

    skewed = calculate_risk_alignment_score({"currentAge": 40, "equityPercentage": 80, "bondPercentage": 20})
    assert skewed["score"] == 60
    assert skewed["details"]["status"] == "poor"


def test_diversification():
    inputs = {"equityPercentage": 60, "bondPercentage": 30, "currentRealEstate": 100000, "currentCrypto": 5000}
    res = calculate_diversification_score(inputs)
    assert res["details"]["assetClassCount"] == 4
    assert res["score"] == 100

    single = calculate_diversification_score({"equityPercentage": 100, "internationalPercentage": 30})
    assert single["details"]["assetClasses"] == ["stocks"]
    assert single["score"] == pytest.approx(30)

    assert calculate_diversification_score({})["score"] == 0


def test_tax_efficiency():
    high = calculate_tax_efficiency_score(
        {"currentSavings": 800000, "currentTrainingFund": 100000, "personalPortfolio": 100000}
    )
    assert high["score"] == 100
    assert high["details"]["taxEfficiencyPercentage"] == 90

    mixed = {"currentSavings": 600000, "personalPortfolio": 400000}
    assert calculate_tax_efficiency_score(mixed)["score"] == pytest.approx(55)
    assert calculate_tax_efficiency_score({**mixed, "country": "usa"})["score"] == pytest.approx(58)

    maxed = {**mixed, "pensionContributionRate": 18.5, "trainingFundContributionRate": 7.5}
    res = calculate_tax_efficiency_score(maxed)
    assert res["score"] == pytest.approx(60)
    assert res["details"]["isMaximizingContributions"] is True


def test_tax_efficiency_without_savings_is_neutral():
    assert calculate_tax_efficiency_score({})["details"]["insufficientData"] is True


@pytest.mark.parametrize("factor", sorted(SCORERS))
@pytest.mark.parametrize(
    "inputs",
    [
        {},
        {"currentAge": 25, "retirementAge": 90, "currentMonthlySalary": 1e9, "currentMonthlyExpenses": 0,
         "currentSavings": 1e12, "emergencyFund": 1e12, "jobStability": "government",
         "equityPercentage": 100, "internationalPercentage": 100, "pensionContributionRate": 30,
         "trainingFundContributionRate": 10, "country": "USA"},
        {"currentAge": 90, "retirementAge": 60, "currentMonthlySalary": 1, "currentMonthlyExpenses": 1e9,
         "totalDebt": 1e12, "highInterestDebt": 1e12, "emergencyFund": -5, "jobStability": "unstable"},
    ],
)
def test_scores_are_clamped(factor, inputs):
    res = SCORERS[factor](inputs)
    assert 0 <= res["score"] <= 100
    assert "status" in res["details"]
