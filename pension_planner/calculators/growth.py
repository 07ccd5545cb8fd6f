"""Compound growth for the individual savings categories.

Every category uses the same two-term model with monthly compounding::

    existing      = balance * (1 + r) ** months
    contributions = monthly * ((1 + r) ** months - 1) / r
    final         = existing + contributions

where ``r`` is the annual return divided by 1200 and ``months = years * 12``.

Example
-------

>>> res = future_value(100000, 1000, 6.0, 10)
>>> round(res.contribution_growth)
163879
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .fields import PersonInputs
from .returns import get_adjusted_return, get_net_return

# Below this monthly rate the annuity closed form is replaced by plain summation.
ZERO_RATE_EPSILON = 1e-12


@dataclass(frozen=True)
class GrowthResult:
    existing_growth: float
    contribution_growth: float
    final_balance: float


def future_value(balance: float, monthly_contribution: float, annual_return_pct: float, years: float) -> GrowthResult:
    """Grow ``balance`` and a stream of monthly contributions for ``years``.

    Parameters
    ----------
    balance : float
        Balance at the start of the horizon.
    monthly_contribution : float
        Amount added at the end of every month.
    annual_return_pct : float
        Annual return in percent.
    years : float
        Length of the horizon.  Non-positive horizons return ``balance``
        unchanged.

    Returns
    -------
    GrowthResult
        The grown balance, the accumulated contributions and their sum.
    """
    if years <= 0:
        return GrowthResult(balance, 0.0, balance)
    months = years * 12
    r = annual_return_pct / 100 / 12
    factor = (1 + r) ** months
    existing = balance * factor
    if abs(r) < ZERO_RATE_EPSILON:
        contributions = monthly_contribution * months
    else:
        contributions = monthly_contribution * (factor - 1) / r
    return GrowthResult(existing, contributions, existing + contributions)


@dataclass(frozen=True)
class RealEstateGrowth:
    growth: GrowthResult
    rental_income: float

    @property
    def final_balance(self) -> float:
        return self.growth.final_balance


def grow_training_fund(
    person: PersonInputs,
    annual_return_pct: float,
    years: float,
    monthly_contribution: Optional[float] = None,
    risk_scenarios=None,
) -> GrowthResult:
    """Training fund growth, net of the management fee."""
    adjusted = get_adjusted_return(annual_return_pct, person.risk_tolerance, risk_scenarios)
    contribution = person.training_fund_contribution if monthly_contribution is None else monthly_contribution
    return future_value(person.training_fund, contribution, get_net_return(adjusted, person.training_fund_fee), years)


def grow_personal_portfolio(person: PersonInputs, years: float, risk_scenarios=None) -> GrowthResult:
    # Only the existing balance is haircut; contributions are taxed on withdrawal.
    after_tax = person.personal_portfolio * (1 - person.portfolio_tax_rate / 100)
    adjusted = get_adjusted_return(person.portfolio_return, person.risk_tolerance, risk_scenarios)
    return future_value(after_tax, person.portfolio_contribution, adjusted, years)


def grow_crypto(person: PersonInputs, years: float, risk_scenarios=None) -> GrowthResult:
    adjusted = get_adjusted_return(person.crypto_return, person.risk_tolerance, risk_scenarios)
    return future_value(person.crypto, person.crypto_contribution, adjusted, years)


def grow_real_estate(person: PersonInputs, years: float, risk_scenarios=None) -> RealEstateGrowth:
    adjusted = get_adjusted_return(person.real_estate_return, person.risk_tolerance, risk_scenarios)
    growth = future_value(person.real_estate, person.real_estate_contribution, adjusted, years)
    rental = growth.final_balance * (person.rental_yield / 100) / 12
    return RealEstateGrowth(growth, rental)


__all__ = [
    "GrowthResult",
    "RealEstateGrowth",
    "ZERO_RATE_EPSILON",
    "future_value",
    "grow_crypto",
    "grow_personal_portfolio",
    "grow_real_estate",
    "grow_training_fund",
]
