"""Year-by-year savings schedule.

Builds a :class:`pandas.DataFrame` with one row per year between today and
retirement.  Non-pension categories are evaluated on a numpy grid with the
same closed form as :func:`~pension_planner.calculators.growth.future_value`,
and the pension is re-accumulated through the work periods up to each age,
so the final row always matches :func:`calculate_retirement`.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd

from ..config import EngineConfig, default_config
from .fields import PersonInputs, get_field_value, person_inputs
from .growth import ZERO_RATE_EPSILON
from .income import DEFAULT_INFLATION
from .projection import allocation_returns, training_fund_contribution
from .returns import get_adjusted_return, get_net_return
from .work_periods import WorkPeriod, accumulate_pension, coerce_periods, sort_periods

SCHEDULE_COLUMNS = [
    "year",
    "age",
    "pension",
    "training_fund",
    "personal_portfolio",
    "crypto",
    "real_estate",
    "total",
    "total_real",
    "contributions",
]


def _fv_curve(balance: float, monthly: float, annual_pct: float, offsets: np.ndarray) -> np.ndarray:
    months = offsets * 12
    r = annual_pct / 100 / 12
    factor = np.power(1 + r, months)
    if abs(r) < ZERO_RATE_EPSILON:
        return balance * factor + monthly * months
    return balance * factor + monthly * (factor - 1) / r


def _offsets(years: float) -> np.ndarray:
    whole = np.arange(0, int(np.floor(years)) + 1, dtype=float)
    if years > whole[-1]:
        whole = np.append(whole, years)
    return whole


def _pension_monthly_at(person: PersonInputs, periods: Optional[List[WorkPeriod]], age: float) -> float:
    if periods is None:
        return person.pension_contribution * (1 - person.pension_deposit_fee / 100)
    for p in periods:
        if p.start_age <= age < p.end_age:
            return p.monthly_contribution * (1 - p.pension_deposit_fee / 100)
    return 0.0


def _person_frame(
    person: PersonInputs,
    periods: Iterable[WorkPeriod],
    config: EngineConfig,
    pension_allocation_return: float,
    training_allocation_return: float,
    inflation: float,
    offsets: np.ndarray,
    monthly_training_fund_contribution: float = 0.0,
) -> pd.DataFrame:
    risk = person.risk_tolerance
    scenarios = config.risk_scenarios
    ordered = sort_periods(periods)
    horizon = person.years_to_retirement
    # Balances stay flat once this member has retired
    t = np.minimum(offsets, max(horizon, 0.0))

    pension_base = person.pension_return if person.pension_return is not None else pension_allocation_return
    pension_return = get_adjusted_return(pension_base, risk, scenarios)
    # Unknown countries contribute nothing
    known = [p for p in ordered if p.country in config.countries]
    if ordered:
        pension = np.array([
            accumulate_pension(person.pension_savings, known, person.current_age, person.current_age + y,
                               risk, config.countries, scenarios)[0]
            for y in t
        ])
    else:
        net = person.pension_contribution * (1 - person.pension_deposit_fee / 100)
        pension = _fv_curve(person.pension_savings, net, get_net_return(pension_return, person.pension_annual_fee), t)

    training_base = (
        person.training_fund_return if person.training_fund_return is not None else training_allocation_return
    )
    tf_contribution = training_fund_contribution(person, ordered, monthly_training_fund_contribution)
    training = _fv_curve(
        person.training_fund, tf_contribution,
        get_net_return(get_adjusted_return(training_base, risk, scenarios), person.training_fund_fee), t,
    )
    portfolio = _fv_curve(
        person.personal_portfolio * (1 - person.portfolio_tax_rate / 100), person.portfolio_contribution,
        get_adjusted_return(person.portfolio_return, risk, scenarios), t,
    )
    crypto = _fv_curve(person.crypto, person.crypto_contribution,
                       get_adjusted_return(person.crypto_return, risk, scenarios), t)
    real_estate = _fv_curve(person.real_estate, person.real_estate_contribution,
                            get_adjusted_return(person.real_estate_return, risk, scenarios), t)

    monthly_other = tf_contribution + person.portfolio_contribution + person.crypto_contribution \
        + person.real_estate_contribution
    contributions = np.array([
        0.0 if i == 0 else 12 * (t[i] - t[i - 1]) * (
            _pension_monthly_at(person, known if ordered else None, person.current_age + t[i - 1]) + monthly_other
        )
        for i in range(len(t))
    ])

    total = pension + training + portfolio + crypto + real_estate
    frame = pd.DataFrame({
        "year": offsets,
        "age": person.current_age + offsets,
        "pension": pension,
        "training_fund": training,
        "personal_portfolio": portfolio,
        "crypto": crypto,
        "real_estate": real_estate,
        "total": total,
        "total_real": total / np.power(1 + inflation / 100, offsets),
        "contributions": contributions,
    })
    return frame


def savings_schedule(
    inputs: Mapping[str, Any],
    work_periods: Iterable[Any] = (),
    partner_work_periods: Iterable[Any] = (),
    pension_allocation: Iterable[Any] = (),
    training_fund_allocation: Iterable[Any] = (),
    historical_returns: Optional[Mapping[str, Any]] = None,
    monthly_training_fund_contribution: float = 0.0,
    config: Optional[EngineConfig] = None,
) -> pd.DataFrame:
    """Project balances year by year until the primary member retires.

    Parameters
    ----------
    inputs : mapping
        The household input record.
    work_periods, partner_work_periods : iterable
        Work periods as accepted by :func:`calculate_retirement`.
    pension_allocation, training_fund_allocation : iterable
        Allocation lists for the fallback returns.
    historical_returns : mapping, optional
        Asset return table.
    monthly_training_fund_contribution : float, optional
        Primary member's training fund deposit.
    config : EngineConfig, optional
        Reference tables.

    Returns
    -------
    pandas.DataFrame
        Columns from :data:`SCHEDULE_COLUMNS`.  In couple planning with
        partner work periods the frame also has ``partner_total`` and
        ``combined_total``.  Empty when the horizon is not positive.
    """
    cfg = config or default_config()
    primary = person_inputs(inputs, "primary")
    years = primary.years_to_retirement
    if years <= 0:
        return pd.DataFrame(columns=SCHEDULE_COLUMNS)

    pension_return, training_return = allocation_returns(
        pension_allocation, training_fund_allocation, historical_returns, years, cfg
    )
    inflation = get_field_value(inputs, ["inflationRate"], default=DEFAULT_INFLATION)
    offsets = _offsets(years)
    periods = coerce_periods(work_periods) or coerce_periods(inputs.get("workPeriods"))

    frame = _person_frame(primary, periods, cfg, pension_return, training_return, inflation, offsets,
                          monthly_training_fund_contribution)

    partner_periods = coerce_periods(partner_work_periods)
    if inputs.get("partnerPlanningEnabled") and partner_periods:
        partner = person_inputs(inputs, "partner")
        if partner.years_to_retirement > 0:
            partner_frame = _person_frame(partner, partner_periods, cfg, pension_return, training_return,
                                          inflation, offsets)
            frame["partner_total"] = partner_frame["total"].to_numpy()
            frame["combined_total"] = frame["total"] + frame["partner_total"]
            frame["combined_total_real"] = frame["combined_total"] / np.power(1 + inflation / 100, offsets)

    return frame


__all__ = ["SCHEDULE_COLUMNS", "savings_schedule"]
