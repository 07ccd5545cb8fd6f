"""Pension accumulation across employment periods.

A household member may work under several pension regimes over a career
(say, ten years in Israel then fifteen in the UK).  Each :class:`WorkPeriod`
carries its own return, fees and contribution; :func:`accumulate_pension`
walks them in age order and carries the balance from one to the next.  Only
the part of a period between the member's current age and retirement age
counts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .fields import to_number
from .growth import future_value
from .returns import get_adjusted_return, get_net_return

logger = logging.getLogger(__name__)


def _num(mapping: Mapping[str, Any], *keys: str, default: float = 0.0) -> float:
    for key in keys:
        value = to_number(mapping.get(key))
        if value is not None:
            return value
    return default


@dataclass(frozen=True)
class WorkPeriod:
    country: str
    start_age: float
    end_age: float
    monthly_contribution: float = 0.0
    salary: float = 0.0
    pension_return: float = 0.0
    pension_deposit_fee: float = 0.0
    pension_annual_fee: float = 0.0
    monthly_training_fund: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "WorkPeriod":
        """Build a period from a camelCase or snake_case mapping."""
        return cls(
            country=str(data.get("country") or ""),
            start_age=_num(data, "startAge", "start_age"),
            end_age=_num(data, "endAge", "end_age"),
            monthly_contribution=_num(data, "monthlyContribution", "monthly_contribution"),
            salary=_num(data, "salary"),
            pension_return=_num(data, "pensionReturn", "pension_return"),
            pension_deposit_fee=_num(data, "pensionDepositFee", "pension_deposit_fee"),
            pension_annual_fee=_num(data, "pensionAnnualFee", "pension_annual_fee"),
            monthly_training_fund=_num(data, "monthlyTrainingFund", "monthly_training_fund"),
        )

    def overlap_years(self, current_age: float, retirement_age: float) -> float:
        return max(0.0, min(self.end_age, retirement_age) - max(self.start_age, current_age))


@dataclass(frozen=True)
class AllocationEntry:
    name: str
    allocation: float
    historical_return: float = 0.0


@dataclass(frozen=True)
class PeriodResult:
    country: str
    country_name: str
    flag: str
    years: float
    contributions: float
    net_contributions: float
    growth: float
    pension_return: float
    pension_deposit_fee: float
    pension_annual_fee: float
    pension_effective_return: float
    monthly_training_fund: float

    def to_dict(self) -> dict:
        return {
            "country": self.country,
            "countryName": self.country_name,
            "flag": self.flag,
            "years": self.years,
            "contributions": self.contributions,
            "netContributions": self.net_contributions,
            "growth": self.growth,
            "pensionReturn": self.pension_return,
            "pensionDepositFee": self.pension_deposit_fee,
            "pensionAnnualFee": self.pension_annual_fee,
            "pensionEffectiveReturn": self.pension_effective_return,
            "monthlyTrainingFund": self.monthly_training_fund,
        }


def coerce_periods(periods: Optional[Iterable[Any]]) -> List[WorkPeriod]:
    """Accept ``WorkPeriod`` instances or raw mappings; drop anything else."""
    out: List[WorkPeriod] = []
    if periods is None or isinstance(periods, (str, bytes, Mapping)):
        return out
    for p in periods:
        if isinstance(p, WorkPeriod):
            out.append(p)
        elif isinstance(p, Mapping):
            out.append(WorkPeriod.from_mapping(p))
        else:
            logger.warning("Ignoring work period of unsupported type %s", type(p).__name__)
    return out


def sort_periods(periods: Iterable[WorkPeriod]) -> List[WorkPeriod]:
    return sorted(periods, key=lambda p: (p.start_age, p.end_age))


def accumulate_pension(
    starting_balance: float,
    periods: Iterable[WorkPeriod],
    current_age: float,
    retirement_age: float,
    risk_tolerance: Optional[str],
    countries: Mapping[str, Mapping[str, Any]],
    risk_scenarios: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> Tuple[float, List[PeriodResult]]:
    """Grow a pension balance across work periods.

    Parameters
    ----------
    starting_balance : float
        Pension savings today.
    periods : iterable of WorkPeriod
        In any order; they are sorted by start age first.
    current_age, retirement_age : float
        Bounds of the accumulation window.
    risk_tolerance : str, optional
        Scales each period's pension return.
    countries : mapping
        Country code to metadata (``name``, ``flag``).  Periods whose
        country is missing are skipped with a warning.
    risk_scenarios : mapping, optional
        Risk multipliers, defaults to the packaged table.

    Returns
    -------
    tuple
        The final balance and one :class:`PeriodResult` per active period.
    """
    balance = starting_balance
    results: List[PeriodResult] = []

    for period in sort_periods(periods):
        country = countries.get(period.country) if period.country else None
        if not country:
            logger.warning("Skipping work period %s-%s with unknown country %r",
                           period.start_age, period.end_age, period.country)
            continue

        years = period.overlap_years(current_age, retirement_age)
        if years <= 0:
            continue

        adjusted = get_adjusted_return(period.pension_return, risk_tolerance, risk_scenarios)
        effective = get_net_return(adjusted, period.pension_annual_fee)
        net_monthly = period.monthly_contribution * (1 - period.pension_deposit_fee / 100)
        grown = future_value(balance, net_monthly, effective, years)
        months = years * 12

        results.append(PeriodResult(
            country=period.country,
            country_name=str(country.get("name", period.country)),
            flag=str(country.get("flag", "")),
            years=years,
            contributions=period.monthly_contribution * months,
            net_contributions=net_monthly * months,
            growth=grown.final_balance - balance,
            pension_return=adjusted,
            pension_deposit_fee=period.pension_deposit_fee,
            pension_annual_fee=period.pension_annual_fee,
            pension_effective_return=effective,
            monthly_training_fund=period.monthly_training_fund,
        ))
        balance = grown.final_balance

    return balance, results


__all__ = [
    "AllocationEntry",
    "PeriodResult",
    "WorkPeriod",
    "accumulate_pension",
    "coerce_periods",
    "sort_periods",
]
