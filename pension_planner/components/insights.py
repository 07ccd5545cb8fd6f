from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..calculators.projection import ProjectionResult

logger = logging.getLogger(__name__)


def _openai_insight(prompt: str) -> str | None:
    """Attempt to query OpenAI for an insight. Returns None on failure."""
    try:
        from openai import OpenAI  # type: ignore
        client = OpenAI()
        resp = client.responses.create(model="gpt-4o-mini", input=prompt)
        text = getattr(resp, "output_text", None)
        if text:
            return text.strip()
    except Exception:
        logger.debug("OpenAI insight unavailable, using rule-based text", exc_info=True)
        return None
    return None


def generate_insights(
    projection: Optional[ProjectionResult],
    health: Optional[Mapping[str, Any]] = None,
    simulation: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return a short insight about a projection and its health score.

    Attempts to use OpenAI when the optional ``openai`` package and an API key
    are available; otherwise falls back to a rule-based summary of total
    projected savings, whether the income target is met, the overall health
    category and the top suggestion.  A Monte Carlo result from
    :func:`~pension_planner.calculators.monte_carlo.simulate` adds the odds
    of reaching the income target.
    """
    total = projection.combined_totals()["total_savings"] if projection is not None else 0.0
    income = projection.income if projection is not None else None
    health = health or {}
    score = health.get("score")
    label = health.get("interpretation", {}).get("label")
    suggestions = health.get("suggestions") or []
    top = suggestions[0]["title"] if suggestions else None
    success = (simulation or {}).get("success_probability")

    facts = [f"Projected savings at retirement: {total:,.0f}."]
    if income is not None:
        facts.append(
            f"Net monthly retirement income {income.total_net_income:,.0f} "
            f"against a target of {income.target_monthly_income:,.0f}."
        )
    if score is not None:
        facts.append(f"Financial health score {score}/100 ({label}).")
    if success is not None:
        facts.append(f"Success probability: {success * 100:.1f}%.")

    prompt = (
        "You are a retirement planning assistant. Provide a concise insight "
        "(one or two sentences) about this household's plan. " + " ".join(facts)
    )
    text = _openai_insight(prompt)
    if text:
        return text

    parts = [f"You are projected to have {total:,.0f} saved at retirement."]
    if income is not None:
        if income.target_monthly_income <= 0:
            parts.append("No retirement income target is set.")
        elif income.achieves_target:
            parts.append("Your projected income meets your retirement target.")
        else:
            parts.append(f"You are {abs(income.target_gap):,.0f} per month short of your income target.")
    if score is not None:
        parts.append(f"Your financial health is {str(label).lower()} ({score}/100).")
    if success is not None:
        if success >= 0.85:
            outlook = "high chance of success"
        elif success >= 0.6:
            outlook = "moderate chance of success"
        else:
            outlook = "plan may be at risk"
        parts.append(f"Simulated outlook: {outlook} ({success * 100:.0f}% of paths reach the target).")
    if top and top != "Keep up the excellent work!":
        parts.append(f"Top priority: {top.lower()}.")
    return " ".join(parts)


__all__ = ["generate_insights"]
