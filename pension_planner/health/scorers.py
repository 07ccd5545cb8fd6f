"""Financial health sub-scores.

Each scorer reads the raw input record (summing both partners where that
makes sense), derives one ratio, maps it onto the benchmark tiers from
``score_factors.json`` and applies at most a couple of bonuses or penalties.
Every scorer returns ``{"score": float, "details": {...}}`` with the score
clamped to ``[0, 100]`` and ``details["status"]`` set to the tier name.

When the ratio's denominator is zero (no income, no expenses, no savings)
the scorer returns a neutral 50 with ``details["insufficientData"] = True``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..calculators.fields import FIELD_ALIASES, find_field_value, get_field_value
from ..config import EngineConfig, default_config
from .benchmarks import clamp, score_higher_is_better, score_lower_is_better

logger = logging.getLogger(__name__)

ScoreResult = Dict[str, Any]

NEUTRAL_SCORE = 50.0

# Wizard country names to the keys used by the country factor table
_COUNTRY_CODES = {
    "israel": "ISR",
    "usa": "USA",
    "us": "USA",
    "uk": "GBR",
    "germany": "EUR",
    "france": "EUR",
}


def _benchmarks(factor: str, benchmarks: Optional[Mapping[str, float]], config: Optional[EngineConfig]) -> Mapping[str, float]:
    if benchmarks is not None:
        return benchmarks
    return (config or default_config()).benchmarks(factor)


def _result(score: float, details: Dict[str, Any]) -> ScoreResult:
    return {"score": clamp(score), "details": details}


def _neutral(factor: str, details: Dict[str, Any]) -> ScoreResult:
    logger.debug("Not enough data to score %s, using neutral score", factor)
    details.update({"status": "fair", "insufficientData": True})
    return _result(NEUTRAL_SCORE, details)


def _combined(inputs: Mapping[str, Any], concept_or_names, default: float = 0.0) -> float:
    names = FIELD_ALIASES[concept_or_names] if isinstance(concept_or_names, str) else concept_or_names
    return get_field_value(inputs, names, combine_partners=True, default=default)


def _age(inputs: Mapping[str, Any], default: float = 30.0) -> float:
    return get_field_value(inputs, ["currentAge", "age"], default=default, allow_zero=False)


def calculate_savings_rate_score(inputs, benchmarks=None, config=None) -> ScoreResult:
    """Share of monthly income left after expenses."""
    income = _combined(inputs, "monthly_salary")
    expenses = _combined(inputs, "monthly_expenses")
    details = {"monthlyIncome": income, "monthlyExpenses": expenses, "monthlySavings": income - expenses}
    if income <= 0:
        return _neutral("savingsRate", details)

    bench = _benchmarks("savingsRate", benchmarks, config)
    rate = (income - expenses) / income * 100
    score, status = score_higher_is_better(rate, bench)
    if rate > 30:
        score = min(100.0, score + 5)

    details.update({
        "savingsRate": round(rate, 1),
        "status": status,
        "recommendation": _savings_rate_recommendation(rate, bench),
    })
    return _result(score, details)


def _savings_rate_recommendation(rate: float, bench: Mapping[str, float]) -> str:
    if rate >= bench["excellent"]:
        return "Excellent savings rate! Keep up the great work."
    if rate >= bench["good"]:
        return "Good savings rate. Consider increasing to reach excellent status."
    if rate >= bench["fair"]:
        return "Fair savings rate. Try to increase savings by reducing expenses."
    return "Low savings rate. Focus on budgeting and expense reduction."


def age_based_target(age: float, config: Optional[EngineConfig] = None) -> Dict[str, Any]:
    """Savings target, as a multiple of annual income, for ``age``."""
    targets = (config or default_config()).age_based_targets
    for threshold in sorted(targets, reverse=True):
        if age >= threshold:
            return dict(targets[threshold])
    return {"target": 0.25, "label": "0.25x annual income"}


def calculate_retirement_readiness_score(inputs, benchmarks=None, config=None) -> ScoreResult:
    """Current savings against an age-appropriate multiple of income."""
    age = _age(inputs)
    annual_income = _combined(inputs, "monthly_salary") * 12
    pension = _combined(inputs, "pension_savings")
    training = _combined(inputs, "training_fund")
    portfolio = _combined(inputs, "personal_portfolio")
    total = pension + training + portfolio

    target = age_based_target(age, config)
    target_savings = annual_income * float(target["target"])
    details = {
        "currentAge": age,
        "annualIncome": annual_income,
        "totalSavings": total,
        "targetSavings": target_savings,
        "ageTarget": target["label"],
        "breakdown": {"pension": pension, "trainingFund": training, "portfolio": portfolio},
    }
    if target_savings <= 0:
        return _neutral("retirementReadiness", details)

    ratio = total / target_savings
    score, status = score_higher_is_better(ratio, _benchmarks("retirementReadiness", benchmarks, config))
    if age < 35:
        score = min(100.0, score + 5)
    details.update({"readinessRatio": round(ratio, 2), "status": status})
    return _result(score, details)


def calculate_time_horizon_score(inputs, benchmarks=None, config=None) -> ScoreResult:
    age = _age(inputs)
    retirement_age = get_field_value(inputs, ["retirementAge", "targetRetirementAge"], default=67.0, allow_zero=False)
    years = max(0.0, retirement_age - age)
    score, status = score_higher_is_better(years, _benchmarks("timeHorizon", benchmarks, config))
    if years < 10:
        urgency = "high"
    elif years < 20:
        urgency = "medium"
    else:
        urgency = "low"
    return _result(score, {
        "currentAge": age,
        "retirementAge": retirement_age,
        "yearsToRetirement": years,
        "status": status,
        "urgency": urgency,
    })


def recommended_allocation(age: float, risk_profile: str, config: Optional[EngineConfig] = None) -> Dict[str, float]:
    """Age-based equity/bond split bounded by the risk profile's ranges."""
    profiles = (config or default_config()).risk_profiles
    profile = profiles.get(risk_profile) or profiles["moderate"]
    equity = clamp(max(20.0, 100 - age), profile["equityRange"]["min"], profile["equityRange"]["max"])
    bonds = min(100 - equity, profile["bondRange"]["max"])
    return {"equity": equity, "bonds": bonds, "other": 100 - equity - bonds}


def calculate_risk_alignment_score(inputs, benchmarks=None, config=None) -> ScoreResult:
    """How closely the equity/bond split matches the recommended one."""
    age = _age(inputs)
    profile = str(
        inputs.get("riskProfile") or inputs.get("investmentRiskProfile") or inputs.get("riskTolerance") or "moderate"
    )
    equity = get_field_value(inputs, ["equityPercentage", "stocksPercentage", "equityAllocation"], default=60.0)
    bonds = get_field_value(inputs, ["bondPercentage", "bondsPercentage", "bondAllocation"], default=40.0)

    recommended = recommended_allocation(age, profile, config)
    diff = (abs(equity - recommended["equity"]) + abs(bonds - recommended["bonds"])) / 2
    score = max(0.0, 100 - diff * 2)

    bench = _benchmarks("riskAlignment", benchmarks, config)
    if score >= bench["excellent"]:
        status = "excellent"
    elif score >= bench["good"]:
        status = "good"
    elif score >= bench["fair"]:
        status = "fair"
    elif score >= bench["poor"]:
        status = "poor"
    else:
        status = "critical"

    return _result(score, {
        "currentAge": age,
        "riskProfile": profile,
        "actualAllocation": {"equity": equity, "bonds": bonds},
        "recommendedAllocation": recommended,
        "alignmentDifference": diff,
        "status": status,
    })


def calculate_diversification_score(inputs, benchmarks=None, config=None) -> ScoreResult:
    """Number of asset classes with a meaningful share."""
    classes: List[str] = []
    equity = get_field_value(inputs, ["equityPercentage", "stocksPercentage", "equityAllocation", "stocks"])
    bonds = get_field_value(inputs, ["bondPercentage", "bondsPercentage", "bondAllocation", "bonds"])
    real_estate = _combined(inputs, "real_estate")
    crypto = _combined(inputs, "crypto")
    commodities = get_field_value(inputs, ["commoditiesPercentage", "goldPercentage", "commodities"])
    cash = get_field_value(inputs, ["cashPercentage", "cashAllocation", "cash"])
    international = get_field_value(inputs, ["internationalPercentage", "internationalAllocation"])

    if equity > 5:
        classes.append("stocks")
    if bonds > 5:
        classes.append("bonds")
    if real_estate > 0:
        classes.append("realEstate")
    if crypto > 0:
        classes.append("crypto")
    if commodities > 5:
        classes.append("commodities")
    if cash > 5:
        classes.append("cash")

    score, status = score_higher_is_better(len(classes), _benchmarks("diversification", benchmarks, config))
    if international > 20:
        score = min(100.0, score + 5)

    return _result(score, {
        "assetClassCount": len(classes),
        "assetClasses": classes,
        "allocations": {
            "equity": equity,
            "bonds": bonds,
            "realEstate": real_estate > 0,
            "crypto": crypto > 0,
            "commodities": commodities,
            "cash": cash,
            "international": international,
        },
        "status": status,
    })


def calculate_tax_efficiency_score(inputs, benchmarks=None, config=None) -> ScoreResult:
    """Share of savings held in tax-advantaged pension and training fund accounts."""
    cfg = config or default_config()
    raw_country = str(inputs.get("country") or inputs.get("taxCountry") or "ISR")
    country = _COUNTRY_CODES.get(raw_country.lower(), raw_country)
    factor = cfg.country_factors.get(country) or cfg.country_factors.get("ISR", {})

    pension = _combined(inputs, "pension_savings")
    training = _combined(inputs, "training_fund")
    taxable = _combined(inputs, "personal_portfolio")
    total = pension + training + taxable
    details = {
        "totalSavings": total,
        "taxAdvantaged": pension + training,
        "country": country,
        "breakdown": {"pension": pension, "trainingFund": training, "taxable": taxable},
    }
    if total <= 0:
        return _neutral("taxEfficiency", details)

    efficiency = (pension + training) / total * 100
    score, status = score_higher_is_better(efficiency, _benchmarks("taxEfficiency", benchmarks, config))
    score = min(100.0, score + float(factor.get("taxAdvantageBonus", 0)))

    pension_rate = get_field_value(inputs, ["pensionContributionRate", "pensionRate"])
    training_rate = get_field_value(inputs, ["trainingFundContributionRate", "trainingRate"])
    maximising = pension_rate >= 15 and training_rate >= 7.5
    if maximising:
        score = min(100.0, score + 5)

    details.update({
        "taxEfficiencyPercentage": round(efficiency),
        "isMaximizingContributions": maximising,
        "status": status,
    })
    return _result(score, details)


def calculate_emergency_fund_score(inputs, benchmarks=None, config=None) -> ScoreResult:
    """Months of expenses the emergency fund covers."""
    fund = _combined(inputs, "emergency_fund")
    expenses = _combined(inputs, "monthly_expenses")
    stability = str(inputs.get("jobStability") or inputs.get("employmentStability") or "stable")
    details = {"emergencyFund": fund, "monthlyExpenses": expenses, "jobStability": stability}
    if expenses <= 0:
        return _neutral("emergencyFund", details)

    bench = _benchmarks("emergencyFund", benchmarks, config)
    months = fund / expenses
    score, status = score_higher_is_better(months, bench)
    if stability in ("unstable", "contract"):
        score = max(0.0, score - 10)
    elif stability in ("veryStable", "government"):
        score = min(100.0, score + 5)

    details.update({
        "monthsCovered": round(months, 1),
        "targetMonths": bench["good"],
        "shortfall": max(0.0, bench["good"] * expenses - fund),
        "status": status,
    })
    return _result(score, details)


def calculate_debt_management_score(inputs, benchmarks=None, config=None) -> ScoreResult:
    """Debt-to-annual-income ratio with a penalty for high-interest debt.

    A household with no debt scores 100 regardless of income.  When no debt
    field is present at all the debt is taken as zero and
    ``details["debtReported"]`` is ``False``.
    """
    income = _combined(inputs, "monthly_salary")
    reported = find_field_value(inputs, FIELD_ALIASES["total_debt"], combine_partners=True)
    debt = reported or 0.0
    high_interest = _combined(inputs, "high_interest_debt")
    details = {
        "totalDebt": debt,
        "debtReported": reported is not None,
        "highInterestDebt": high_interest,
        "hasHighInterestDebt": high_interest > 0,
        "monthlyIncome": income,
        "annualIncome": income * 12,
        "monthlyDebtPayments": _combined(inputs, ["monthlyDebtPayments", "debtPayments"]),
    }
    if debt == 0:
        details.update({"debtToIncomeRatio": 0.0, "status": "excellent"})
        return _result(100.0, details)
    if income <= 0:
        return _neutral("debtManagement", details)

    ratio = debt / (income * 12)
    score, status = score_lower_is_better(ratio, _benchmarks("debtManagement", benchmarks, config))
    if high_interest > 0:
        score = max(0.0, score - min(30.0, high_interest / income * 10))

    details.update({"debtToIncomeRatio": round(ratio, 2), "status": status})
    return _result(score, details)


SCORERS = {
    "savingsRate": calculate_savings_rate_score,
    "retirementReadiness": calculate_retirement_readiness_score,
    "timeHorizon": calculate_time_horizon_score,
    "riskAlignment": calculate_risk_alignment_score,
    "diversification": calculate_diversification_score,
    "taxEfficiency": calculate_tax_efficiency_score,
    "emergencyFund": calculate_emergency_fund_score,
    "debtManagement": calculate_debt_management_score,
}


__all__ = [
    "SCORERS",
    "age_based_target",
    "calculate_debt_management_score",
    "calculate_diversification_score",
    "calculate_emergency_fund_score",
    "calculate_retirement_readiness_score",
    "calculate_risk_alignment_score",
    "calculate_savings_rate_score",
    "calculate_tax_efficiency_score",
    "calculate_time_horizon_score",
    "recommended_allocation",
]
