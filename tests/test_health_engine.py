"""Tests for the aggregate financial health score."""

import pytest

from pension_planner.health.engine import (
    calculate_financial_health_score,
    generate_improvement_suggestions,
    get_peer_comparison,
    score_interpretation,
    validate_financial_inputs,
)


def _healthy_inputs():
    return {
        "currentAge": 30,
        "retirementAge": 67,
        "currentMonthlySalary": 20000,
        "currentMonthlyExpenses": 12000,
        "currentSavings": 300000,
        "currentTrainingFund": 60000,
        "emergencyFund": 96000,
        "equityPercentage": 60,
        "bondPercentage": 40,
        "currentRealEstate": 100000,
        "currentCrypto": 10000,
    }


def test_healthy_household_scores_top_marks():
    result = calculate_financial_health_score(_healthy_inputs())
    assert result["score"] == 100
    assert result["interpretation"]["level"] == "excellent"
    assert result["zeroScoreFactors"] == []
    assert [s["title"] for s in result["suggestions"]] == ["Keep up the excellent work!"]
    assert result["peerComparison"]["comparison"] == "Above Top 25%"
    assert result["peerComparison"]["userPercentile"] == 99
    assert result["validation"]["isValid"]
    assert result["metadata"]["planningType"] == "single"


def test_result_shape():
    result = calculate_financial_health_score({"currentAge": 45, "currentMonthlySalary": 15000})
    assert isinstance(result["score"], int)
    assert 0 <= result["score"] <= 100
    assert set(result["scoreBreakdown"]) == {
        "savingsRate",
        "retirementReadiness",
        "timeHorizon",
        "riskAlignment",
        "diversification",
        "taxEfficiency",
        "emergencyFund",
        "debtManagement",
    }


def test_empty_record_is_scored_not_rejected():
    result = calculate_financial_health_score({})
    assert not result["validation"]["isValid"]
    assert [f["factor"] for f in result["zeroScoreFactors"]] == ["diversification"]
    assert result["zeroScoreFactors"][0]["name"] == "Portfolio Diversification"
    assert result["scoreBreakdown"]["savingsRate"]["details"]["insufficientData"]


def test_couple_metadata():
    inputs = {"planningType": "couple", "currentAge": 40, "partner1Salary": 10000, "partner2Salary": 8000}
    result = calculate_financial_health_score(inputs)
    assert result["metadata"]["planningType"] == "couple"
    assert result["scoreBreakdown"]["savingsRate"]["details"]["monthlyIncome"] == 18000


@pytest.mark.parametrize(
    "score,level",
    [(100, "excellent"), (85, "excellent"), (84, "good"), (70, "good"), (50, "fair"), (49, "poor"), (0, "poor")],
)
def test_interpretation(score, level):
    assert score_interpretation(score)["level"] == level


@pytest.mark.parametrize(
    "age,group", [(22, "20-29"), (30, "30-39"), (45, "40-49"), (59.5, "50-59"), (60, "60+"), (80, "60+")]
)
def test_peer_age_groups(age, group):
    assert get_peer_comparison({"currentAge": age}, 50)["ageGroup"] == group


@pytest.mark.parametrize(
    "score,percentile,comparison",
    [(27.5, 25, "Below Average"), (55, 50, "Above Average"), (60, 56, "Above Average"), (75, 75, "Above Top 25%")],
)
def test_peer_percentile(score, percentile, comparison):
    peer = get_peer_comparison({"currentAge": 35}, score)
    assert peer["userPercentile"] == percentile
    assert peer["comparison"] == comparison


def test_peer_percentile_floor():
    assert get_peer_comparison({"currentAge": 35}, 0)["userPercentile"] == 1


def test_suggestions_ordered_by_weighted_shortfall():
    breakdown = {
        "savingsRate": {"score": 40, "details": {"savingsRate": 5}},
        "debtManagement": {"score": 0, "details": {"hasHighInterestDebt": True}},
        "emergencyFund": {"score": 60, "details": {"monthsCovered": 2.0}},
        "diversification": {"score": 90, "details": {"assetClassCount": 4}},
    }
    suggestions = generate_improvement_suggestions(breakdown)
    assert [s["category"] for s in suggestions] == ["savingsRate", "debtManagement", "emergencyFund"]
    assert [s["priority"] for s in suggestions] == ["medium", "high", "low"]
    assert "at least 10%" in suggestions[0]["description"]
    assert suggestions[1]["description"] == "Focus on eliminating high-interest debt first."
    assert "2.0 months" in suggestions[2]["description"]


def test_only_top_three_are_considered():
    breakdown = {
        "savingsRate": {"score": 80, "details": {}},
        "debtManagement": {"score": 0, "details": {}},
        "diversification": {"score": 95, "details": {}},
        "riskAlignment": {"score": 99, "details": {}},
    }
    suggestions = generate_improvement_suggestions(breakdown)
    assert [s["category"] for s in suggestions] == ["debtManagement"]


def test_validation_errors_and_warnings():
    result = validate_financial_inputs({"currentAge": 70, "retirementAge": 67, "currentMonthlySalary": 10000})
    assert result["isValid"]
    assert result["warnings"]
    assert result["summary"]["validationLevel"] == "partial"

    result = validate_financial_inputs({"currentAge": 40, "currentMonthlySalary": -1})
    assert not result["isValid"]
    assert result["errors"] == ["currentMonthlySalary cannot be negative"]
    assert result["criticalMissing"] == []
    assert result["summary"]["validationLevel"] == "invalid"


def test_validation_completeness():
    inputs = {"currentAge": 40, "partner1Salary": 9000, "emergencyFund": 0, "personalPortfolio": 1000}
    result = validate_financial_inputs(inputs)
    assert result["criticalMissing"] == []
    assert result["summary"]["dataCompleteness"] == 40
    assert result["summary"]["validationLevel"] == "complete"


def test_validation_never_raises_on_garbage():
    result = validate_financial_inputs({"currentAge": "old", "retirementAge": None, "currentMonthlySalary": [1]})
    assert not result["isValid"]
    assert result["criticalMissing"] == ["Current age is required", "Monthly income is required"]
