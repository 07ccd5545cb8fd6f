"""Aggregate financial health score.

``calculate_financial_health_score`` runs every sub-scorer in
:mod:`pension_planner.health.scorers`, combines them with the factor weights
from ``score_factors.json`` and adds the interpretation, an age-group peer
comparison and up to three improvement suggestions.

Example
-------

>>> result = calculate_financial_health_score({"currentAge": 35, "currentMonthlySalary": 20000,
...                                            "currentMonthlyExpenses": 14000})
>>> 0 <= result["score"] <= 100
True
>>> result["peerComparison"]["ageGroup"]
'30-39'
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..calculators.fields import get_field_value, to_number
from ..config import EngineConfig, default_config
from .benchmarks import clamp
from .scorers import SCORERS

logger = logging.getLogger(__name__)

_INCOME_FIELDS = ("currentMonthlySalary", "monthlySalary", "partner1Salary", "partner2Salary")
_NON_NEGATIVE_FIELDS = (
    "currentAge",
    "retirementAge",
    "currentMonthlySalary",
    "currentMonthlyExpenses",
    "currentPensionSavings",
)
_OPTIONAL_FIELDS = ("emergencyFund", "personalPortfolio", "currentTrainingFund", "equityPercentage", "bondPercentage")

_SUGGESTION_THRESHOLD = 70
_MAX_SUGGESTIONS = 3


def _present(value: Any) -> bool:
    return value is not None and value != ""


def validate_financial_inputs(inputs: Mapping[str, Any]) -> Dict[str, Any]:
    """Check an input record for missing, negative and inconsistent values.

    Never raises.  ``isValid`` is ``False`` when there are errors or a
    critical field (age, income) is missing; warnings alone keep the record
    valid.
    """
    errors: List[str] = []
    warnings: List[str] = []
    critical_missing: List[str] = []

    if not to_number(inputs.get("currentAge")) and not to_number(inputs.get("age")):
        critical_missing.append("Current age is required")
    if not any(to_number(inputs.get(name)) for name in _INCOME_FIELDS):
        critical_missing.append("Monthly income is required")

    for name in _NON_NEGATIVE_FIELDS:
        value = to_number(inputs.get(name))
        if value is not None and value < 0:
            errors.append(f"{name} cannot be negative")

    current_age = get_field_value(inputs, ["currentAge", "age"])
    retirement_age = get_field_value(inputs, ["retirementAge"], default=67.0, allow_zero=False)
    if current_age > 0 and retirement_age > 0 and current_age >= retirement_age:
        warnings.append("Current age is greater than or equal to retirement age")

    filled = sum(1 for name in _OPTIONAL_FIELDS if _present(inputs.get(name)))
    completeness = round(filled / len(_OPTIONAL_FIELDS) * 100)

    if errors:
        level = "invalid"
    elif warnings:
        level = "partial"
    else:
        level = "complete"

    return {
        "isValid": not errors and not critical_missing,
        "errors": errors,
        "warnings": warnings,
        "criticalMissing": critical_missing,
        "recommendations": ["Review and correct any warnings for more accurate results"] if warnings else [],
        "summary": {
            "errorCount": len(errors),
            "warningCount": len(warnings),
            "hasRequiredFields": not critical_missing,
            "hasCompleteData": not warnings,
            "dataCompleteness": completeness,
            "validationLevel": level,
        },
    }


def score_interpretation(score: float, config: Optional[EngineConfig] = None) -> Dict[str, Any]:
    """Label for an aggregate score, highest matching ``min`` wins."""
    table = (config or default_config()).score_interpretation
    for level, entry in sorted(table.items(), key=lambda kv: kv[1].get("min", 0), reverse=True):
        if score >= entry.get("min", 0):
            return {"level": level, **entry}
    return {"level": "poor", "min": 0, "label": "Needs Improvement"}


def age_group(age: float) -> str:
    if age < 30:
        return "20-29"
    if age < 40:
        return "30-39"
    if age < 50:
        return "40-49"
    if age < 60:
        return "50-59"
    return "60+"


def _percentile(score: float, average: float, top_quartile: float) -> float:
    if score >= top_quartile:
        return min(99.0, 75 + (score - top_quartile) / (100 - top_quartile) * 24)
    if score >= average:
        return 50 + (score - average) / (top_quartile - average) * 25
    return max(1.0, score / average * 50)


def get_peer_comparison(inputs: Mapping[str, Any], total_score: float, config: Optional[EngineConfig] = None) -> Dict[str, Any]:
    """Place ``total_score`` against the benchmark for the member's age group."""
    cfg = config or default_config()
    age = get_field_value(inputs, ["currentAge", "age"], default=30.0, allow_zero=False)
    group = age_group(age)
    bench = cfg.peer_benchmarks[group]
    average = float(bench["averageScore"])
    top = float(bench["topQuartile"])

    if total_score >= top:
        comparison = "Above Top 25%"
    elif total_score >= average:
        comparison = "Above Average"
    else:
        comparison = "Below Average"

    return {
        "ageGroup": group,
        "averageScore": average,
        "topQuartileScore": top,
        "userPercentile": round(_percentile(total_score, average, top)),
        "comparison": comparison,
    }


def _factor_suggestion(factor: str, details: Mapping[str, Any], config: EngineConfig) -> Dict[str, str]:
    if factor == "savingsRate":
        if details.get("savingsRate", 0) < 10:
            text = "Try to save at least 10% of your income. Start by reducing discretionary expenses."
        else:
            text = "Aim for 15-20% savings rate by optimizing your budget."
        return {
            "title": "Increase your savings rate",
            "description": text,
            "impact": "Each 5% increase in savings rate can reduce retirement age by 3-5 years.",
        }
    if factor == "retirementReadiness":
        return {
            "title": "Boost retirement savings",
            "description": "You're behind on age-appropriate savings targets. Consider increasing contributions.",
            "impact": "Catching up now will significantly improve your retirement lifestyle.",
        }
    if factor == "timeHorizon":
        return {
            "title": "Limited time to retirement",
            "description": "With limited years until retirement, maximize contributions and consider working longer.",
            "impact": "Each additional year of work can increase retirement income by 5-8%.",
        }
    if factor == "emergencyFund":
        return {
            "title": "Build emergency reserves",
            "description": f"You have {details.get('monthsCovered', 0)} months of expenses saved. "
                           "Target 6 months minimum.",
            "impact": "Adequate emergency fund prevents retirement savings withdrawals during crises.",
        }
    if factor == "debtManagement":
        if details.get("hasHighInterestDebt"):
            text = "Focus on eliminating high-interest debt first."
        else:
            text = "Work on reducing overall debt to improve cash flow."
        return {
            "title": "Reduce debt burden",
            "description": text,
            "impact": "Eliminating debt frees up money for retirement savings.",
        }
    if factor == "taxEfficiency":
        return {
            "title": "Optimize tax strategies",
            "description": "Maximize contributions to tax-advantaged accounts like pension and training funds.",
            "impact": "Tax savings can add 10-20% to your retirement nest egg.",
        }
    if factor == "diversification":
        return {
            "title": "Diversify investments",
            "description": f"You have {details.get('assetClassCount', 1)} asset classes. "
                           "Add more for better risk management.",
            "impact": "Proper diversification can reduce portfolio volatility by 20-30%.",
        }
    if factor == "riskAlignment":
        return {
            "title": "Align risk with age",
            "description": "Your portfolio allocation doesn't match your age and risk profile.",
            "impact": "Proper alignment protects wealth while ensuring growth.",
        }
    name = config.score_factors.get(factor, {}).get("name", factor)
    return {
        "title": f"Improve {name}",
        "description": "Focus on improving this aspect of your financial health.",
        "impact": "This will contribute to your overall financial wellbeing.",
    }


def generate_improvement_suggestions(
    score_breakdown: Mapping[str, Mapping[str, Any]], config: Optional[EngineConfig] = None
) -> List[Dict[str, str]]:
    """Suggestions for the weakest factors, most costly first.

    Factors are ranked by ``(100 - score) * weight``.  Of the top three, those
    scoring under 70 get a suggestion; if none do a single low-priority
    "keep it up" entry is returned.
    """
    cfg = config or default_config()
    ranked = sorted(
        score_breakdown.items(),
        key=lambda kv: (100 - kv[1]["score"]) * cfg.weight(kv[0]),
        reverse=True,
    )

    suggestions = []
    for factor, result in ranked[:_MAX_SUGGESTIONS]:
        score = result["score"]
        if score >= _SUGGESTION_THRESHOLD:
            continue
        if score < 25:
            priority = "high"
        elif score < 50:
            priority = "medium"
        else:
            priority = "low"
        suggestions.append({
            "priority": priority,
            "category": factor,
            **_factor_suggestion(factor, result.get("details", {}), cfg),
        })

    if not suggestions:
        suggestions.append({
            "priority": "low",
            "category": "general",
            "title": "Keep up the excellent work!",
            "description": "Your financial health is in great shape. Continue your current habits.",
            "impact": "Maintaining your current trajectory will ensure long-term financial success.",
        })
    return suggestions


def calculate_financial_health_score(inputs: Mapping[str, Any], config: Optional[EngineConfig] = None) -> Dict[str, Any]:
    """Weighted 0-100 financial health score for a household.

    Parameters
    ----------
    inputs : mapping
        The household input record.  Partner fields are summed where a
        factor depends on household totals.
    config : EngineConfig, optional
        Benchmarks, weights and peer tables.  Defaults to the packaged ones.

    Returns
    -------
    dict
        ``score`` (rounded integer), ``interpretation``, ``scoreBreakdown``
        (one ScoreResult per factor), ``peerComparison``, ``suggestions``,
        ``validation``, ``zeroScoreFactors`` and ``metadata``.
    """
    cfg = config or default_config()
    validation = validate_financial_inputs(inputs)
    if not validation["isValid"]:
        logger.warning("Scoring incomplete inputs: %s", validation["criticalMissing"] + validation["errors"])

    breakdown = {factor: scorer(inputs, config=cfg) for factor, scorer in SCORERS.items()}

    weighted = 0.0
    total_weight = 0.0
    zero_factors = []
    for factor, result in breakdown.items():
        weight = cfg.weight(factor)
        weighted += result["score"] * weight
        total_weight += weight
        if result["score"] == 0:
            meta = cfg.score_factors.get(factor, {})
            zero_factors.append({
                "factor": factor,
                "name": meta.get("name", factor),
                "weight": weight,
                "description": meta.get("description", ""),
            })

    score = int(round(clamp(weighted / total_weight))) if total_weight > 0 else 0

    return {
        "score": score,
        "interpretation": score_interpretation(score, cfg),
        "scoreBreakdown": breakdown,
        "peerComparison": get_peer_comparison(inputs, score, cfg),
        "suggestions": generate_improvement_suggestions(breakdown, cfg),
        "validation": validation,
        "zeroScoreFactors": zero_factors,
        "metadata": {"planningType": inputs.get("planningType") or "single"},
    }


__all__ = [
    "age_group",
    "calculate_financial_health_score",
    "generate_improvement_suggestions",
    "get_peer_comparison",
    "score_interpretation",
    "validate_financial_inputs",
]
