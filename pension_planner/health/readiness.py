"""Quick retirement readiness score.

A lighter alternative to the full financial health score.  It needs only five
numbers and projects savings with a flat 7% return: annual compounding on the
current balance and monthly compounding on contributions.  The target is 25
times the annual target income.

Example
-------

>>> r = calculate_readiness_score(35, 67, 200_000, 3_000, 30_000)
>>> r.category
'good'
>>> r.recommendations[-1]["type"]
'risk'
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .benchmarks import clamp

PROJECTION_RETURN = 0.07
TARGET_INCOME_MULTIPLE = 25
ESTIMATED_ANNUAL_INCOME = 60_000

WEIGHTS = {
    "savingsRate": 0.3,
    "timeHorizon": 0.2,
    "currentSavings": 0.2,
    "retirementGoal": 0.2,
    "riskManagement": 0.1,
}

CATEGORY_LABELS = {
    "excellent": "Excellent",
    "good": "Good",
    "fair": "Fair",
    "poor": "Needs Improvement",
    "critical": "Immediate Action Required",
}


@dataclass(frozen=True)
class ReadinessScore:
    score: int
    category: str
    factors: Dict[str, float]
    projected_savings: float
    target_savings: float
    recommendations: List[Dict[str, str]] = field(default_factory=list)

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self.category]

    @property
    def shortfall(self) -> float:
        return max(0.0, self.target_savings - self.projected_savings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "category": self.category,
            "label": self.label,
            "factors": dict(self.factors),
            "projectedTotalSavings": self.projected_savings,
            "targetSavings": self.target_savings,
            "shortfall": self.shortfall,
            "recommendations": [dict(r) for r in self.recommendations],
        }


def _savings_rate_score(monthly_contribution: float, target_monthly_income: float) -> float:
    if target_monthly_income == 0:
        return 50.0
    rate = monthly_contribution / target_monthly_income
    if rate >= 0.2:
        return 100.0
    if rate >= 0.15:
        return 85.0
    if rate >= 0.10:
        return 70.0
    if rate >= 0.05:
        return 50.0
    return max(0.0, rate * 1000)


def _time_horizon_score(years: float) -> float:
    if years >= 30:
        return 100.0
    if years >= 20:
        return 85.0
    if years >= 15:
        return 70.0
    if years >= 10:
        return 50.0
    if years >= 5:
        return 25.0
    return 10.0


def _current_savings_score(savings: float, age: float) -> float:
    target = max(0.0, (age - 25) / 5) * ESTIMATED_ANNUAL_INCOME
    if target == 0:
        return 50.0
    return clamp(savings / target * 100)


def _retirement_goal_score(projected: float, target: float) -> float:
    if target == 0:
        return 50.0
    ratio = projected / target
    if ratio >= 1.2:
        return 100.0
    if ratio >= 1.0:
        return 90.0
    if ratio >= 0.8:
        return 75.0
    if ratio >= 0.6:
        return 60.0
    if ratio >= 0.4:
        return 40.0
    return max(0.0, ratio * 100)


def _risk_management_score(years: float) -> float:
    if years > 20:
        return 90.0
    if years > 10:
        return 75.0
    if years > 5:
        return 60.0
    return 40.0


def score_category(score: float) -> str:
    if score >= 90:
        return "excellent"
    if score >= 75:
        return "good"
    if score >= 60:
        return "fair"
    if score >= 40:
        return "poor"
    return "critical"


def _recommendations(score: int, factors: Dict[str, float]) -> List[Dict[str, str]]:
    recs = []
    if factors["savingsRate"] < 70:
        increase = math.ceil((70 - factors["savingsRate"]) / 10) * 2
        recs.append({"type": "savings", "priority": "high", "text": f"Increase savings rate by {increase}%"})
    if factors["retirementGoal"] < 80:
        delay = math.ceil((100 - factors["retirementGoal"]) / 20)
        recs.append({
            "type": "timeline",
            "priority": "medium",
            "text": f"Consider delaying retirement by {delay} years",
        })
    if factors["currentSavings"] < 50:
        recs.append({"type": "income", "priority": "high", "text": "Explore ways to increase current income"})
    if score < 60:
        recs.append({"type": "expenses", "priority": "medium", "text": "Reduce retirement expenses by 10-20%"})
    recs.append({"type": "risk", "priority": "low", "text": "Diversify investments across asset classes"})
    return recs


def projected_savings(current_savings: float, monthly_contribution: float, years: float) -> float:
    monthly_rate = PROJECTION_RETURN / 12
    grown = current_savings * (1 + PROJECTION_RETURN) ** years
    contributions = monthly_contribution * ((1 + monthly_rate) ** (years * 12) - 1) / monthly_rate
    return grown + contributions


def calculate_readiness_score(
    current_age: float,
    retirement_age: float,
    current_savings: float = 0.0,
    monthly_contribution: float = 0.0,
    target_monthly_income: float = 0.0,
) -> Optional[ReadinessScore]:
    """Score how ready someone is to retire on ``target_monthly_income``.

    Parameters
    ----------
    current_age, retirement_age : float
        Ages in years.
    current_savings : float
        Total savings today.
    monthly_contribution : float
        Amount saved each month until retirement.
    target_monthly_income : float
        Desired income in retirement.  ``0`` means no target, which scores the
        goal-dependent factors at a neutral 50.

    Returns
    -------
    ReadinessScore or None
        ``None`` when ``retirement_age`` is not after ``current_age``.
    """
    years = retirement_age - current_age
    if years <= 0:
        return None

    current_savings = current_savings or 0.0
    monthly_contribution = monthly_contribution or 0.0
    target_monthly_income = target_monthly_income or 0.0

    target = target_monthly_income * 12 * TARGET_INCOME_MULTIPLE
    projected = projected_savings(current_savings, monthly_contribution, years)

    factors = {
        "savingsRate": _savings_rate_score(monthly_contribution, target_monthly_income),
        "timeHorizon": _time_horizon_score(years),
        "currentSavings": _current_savings_score(current_savings, current_age),
        "retirementGoal": _retirement_goal_score(projected, target),
        "riskManagement": _risk_management_score(years),
    }
    factors = {name: clamp(value) for name, value in factors.items()}
    total = sum(factors[k] * WEIGHTS[k] for k in WEIGHTS)
    score = int(round(clamp(total)))

    return ReadinessScore(
        score=score,
        category=score_category(score),
        factors=factors,
        projected_savings=projected,
        target_savings=target,
        recommendations=_recommendations(score, factors),
    )


__all__ = ["ReadinessScore", "calculate_readiness_score", "projected_savings", "score_category"]
