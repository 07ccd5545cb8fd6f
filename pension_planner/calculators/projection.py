"""Household retirement projection.

:func:`calculate_retirement` is the entry point.  It runs one parameterised
projection per household member (:func:`project_person`) and hands the
balances to an income calculator.

Example
-------

>>> inputs = {"currentAge": 40, "retirementAge": 67, "currentSavings": 100000,
...           "riskTolerance": "moderate", "targetReplacement": 70}
>>> periods = [{"country": "israel", "startAge": 40, "endAge": 67,
...             "monthlyContribution": 2000, "salary": 15000, "pensionReturn": 6}]
>>> result = calculate_retirement(inputs, periods)
>>> result.total_pension_savings > 100000
True
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import EngineConfig, default_config
from .fields import PersonInputs, person_inputs
from .growth import future_value, grow_crypto, grow_personal_portfolio, grow_real_estate, grow_training_fund
from .income import RetirementIncome, calculate_retirement_income
from .returns import ReturnAdjuster, calculate_weighted_return, get_adjusted_return, get_net_return, returns_for_horizon
from .work_periods import PeriodResult, WorkPeriod, accumulate_pension, coerce_periods, sort_periods

logger = logging.getLogger(__name__)

DEFAULT_PENSION_ALLOCATION = ({"name": "Mixed Portfolio", "allocation": 100, "historicalReturn": 6.5},)
DEFAULT_TRAINING_FUND_ALLOCATION = ({"name": "Conservative Portfolio", "allocation": 100, "historicalReturn": 5.5},)

IncomeCalculator = Callable[..., RetirementIncome]


class ProjectionError(enum.Enum):
    INCOME_MODULE_UNAVAILABLE = "income_module_unavailable"


@dataclass(frozen=True)
class PersonProjection:
    """Balances at retirement for one household member."""

    total_pension_savings: float
    training_fund_value: float
    personal_portfolio_value: float
    current_crypto: float
    current_real_estate: float
    real_estate_rental_income: float
    years_to_retirement: float
    pension_return: float
    training_fund_return: float
    training_fund_net_return: float
    period_results: List[PeriodResult] = field(default_factory=list)

    @property
    def total_savings(self) -> float:
        return (
            self.total_pension_savings + self.training_fund_value + self.personal_portfolio_value
            + self.current_crypto + self.current_real_estate
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPensionSavings": self.total_pension_savings,
            "trainingFundValue": self.training_fund_value,
            "personalPortfolioValue": self.personal_portfolio_value,
            "currentCrypto": self.current_crypto,
            "currentRealEstate": self.current_real_estate,
            "realEstateRentalIncome": self.real_estate_rental_income,
            "yearsToRetirement": self.years_to_retirement,
            "pensionReturn": self.pension_return,
            "trainingFundReturn": self.training_fund_return,
            "trainingFundNetReturn": self.training_fund_net_return,
            "periodResults": [r.to_dict() for r in self.period_results],
        }


_CATEGORIES = (
    "total_pension_savings",
    "training_fund_value",
    "personal_portfolio_value",
    "current_crypto",
    "current_real_estate",
)


@dataclass(frozen=True)
class ProjectionResult:
    primary: PersonProjection
    partner_results: Optional[PersonProjection] = None
    income: Optional[RetirementIncome] = None
    error: Optional[ProjectionError] = None

    @property
    def is_partial(self) -> bool:
        return self.error is not None

    @property
    def total_pension_savings(self) -> float:
        return self.primary.total_pension_savings

    @property
    def training_fund_value(self) -> float:
        return self.primary.training_fund_value

    @property
    def personal_portfolio_value(self) -> float:
        return self.primary.personal_portfolio_value

    @property
    def current_crypto(self) -> float:
        return self.primary.current_crypto

    @property
    def current_real_estate(self) -> float:
        return self.primary.current_real_estate

    @property
    def period_results(self) -> List[PeriodResult]:
        return self.primary.period_results

    def combined_totals(self) -> Dict[str, float]:
        """Sum each balance category over both household members."""
        totals = {name: getattr(self.primary, name) for name in _CATEGORIES}
        if self.partner_results is not None:
            for name in _CATEGORIES:
                totals[name] += getattr(self.partner_results, name)
        totals["total_savings"] = sum(totals[name] for name in _CATEGORIES)
        return totals

    def to_dict(self) -> Dict[str, Any]:
        out = self.primary.to_dict()
        out["partnerResults"] = self.partner_results.to_dict() if self.partner_results else None
        out["income"] = self.income.to_dict() if self.income else None
        out["error"] = self.error.value if self.error else None
        return out


def training_fund_contribution(person: PersonInputs, periods: Sequence[WorkPeriod], explicit: float) -> float:
    """Average monthly training fund deposit over the whole horizon.

    An explicit deposit is only paid while a work period is active, so gaps
    between periods dilute it.  Without periods it applies to every month.
    """
    years = person.years_to_retirement
    if explicit:
        if not periods or years <= 0:
            return explicit
        covered = sum(p.overlap_years(person.current_age, person.retirement_age) for p in periods)
        return explicit * min(covered, years) / years
    if person.training_fund_contribution:
        return person.training_fund_contribution
    # Time-weighted average of the per-period training fund deposits
    if not periods or years <= 0:
        return 0.0
    weighted = sum(
        p.monthly_training_fund * p.overlap_years(person.current_age, person.retirement_age) for p in periods
    )
    return weighted / years


def project_person(
    person: PersonInputs,
    periods: Iterable[WorkPeriod],
    config: EngineConfig,
    pension_allocation_return: float,
    training_fund_allocation_return: float,
    monthly_training_fund_contribution: float = 0.0,
) -> PersonProjection:
    """Project one household member's balances to retirement.

    Parameters
    ----------
    person : PersonInputs
        Normalised inputs for the member.
    periods : iterable of WorkPeriod
        The member's work periods.  When empty the pension grows over the
        whole horizon with the record-level return, fees and contribution.
    config : EngineConfig
        Country and risk tables.
    pension_allocation_return, training_fund_allocation_return : float
        Weighted allocation returns, used when the record has no explicit
        pension or training fund return.
    monthly_training_fund_contribution : float, optional
        Overrides the training fund deposit resolved from the record.
    """
    years = person.years_to_retirement
    risk = person.risk_tolerance
    scenarios = config.risk_scenarios
    ordered = sort_periods(periods)

    pension_base = person.pension_return if person.pension_return is not None else pension_allocation_return
    pension_return = get_adjusted_return(pension_base, risk, scenarios)
    if ordered:
        pension, period_results = accumulate_pension(
            person.pension_savings, ordered, person.current_age, person.retirement_age,
            risk, config.countries, scenarios,
        )
    else:
        net_contribution = person.pension_contribution * (1 - person.pension_deposit_fee / 100)
        pension = future_value(
            person.pension_savings, net_contribution, get_net_return(pension_return, person.pension_annual_fee), years
        ).final_balance
        period_results = []

    training_base = (
        person.training_fund_return if person.training_fund_return is not None else training_fund_allocation_return
    )
    training = grow_training_fund(
        person, training_base, years,
        monthly_contribution=training_fund_contribution(person, ordered, monthly_training_fund_contribution),
        risk_scenarios=scenarios,
    )
    training_return = get_adjusted_return(training_base, risk, scenarios)

    portfolio = grow_personal_portfolio(person, years, scenarios)
    crypto = grow_crypto(person, years, scenarios)
    real_estate = grow_real_estate(person, years, scenarios)

    return PersonProjection(
        total_pension_savings=pension,
        training_fund_value=training.final_balance,
        personal_portfolio_value=portfolio.final_balance,
        current_crypto=crypto.final_balance,
        current_real_estate=real_estate.final_balance,
        real_estate_rental_income=real_estate.rental_income,
        years_to_retirement=years,
        pension_return=pension_return,
        training_fund_return=training_return,
        training_fund_net_return=get_net_return(training_return, person.training_fund_fee),
        period_results=period_results,
    )


def _allocation_or_default(allocation: Any, default: Sequence[Mapping[str, Any]]) -> Sequence[Any]:
    if allocation is None or isinstance(allocation, (str, bytes, Mapping)):
        return default
    entries = list(allocation)
    return entries if entries else default


def allocation_returns(
    pension_allocation: Any,
    training_fund_allocation: Any,
    historical_returns: Optional[Mapping[str, Any]],
    years: float,
    config: EngineConfig,
) -> Tuple[float, float]:
    """Weighted pension and training fund returns, with default portfolios."""
    if historical_returns is None:
        historical_returns = returns_for_horizon(config.historical_returns, years)
    pension = calculate_weighted_return(
        _allocation_or_default(pension_allocation, DEFAULT_PENSION_ALLOCATION), years, historical_returns
    )
    training = calculate_weighted_return(
        _allocation_or_default(training_fund_allocation, DEFAULT_TRAINING_FUND_ALLOCATION), years, historical_returns
    )
    return pension, training


def calculate_retirement(
    inputs: Mapping[str, Any],
    work_periods: Iterable[Any] = (),
    pension_allocation: Iterable[Any] = (),
    training_fund_allocation: Iterable[Any] = (),
    historical_returns: Optional[Mapping[str, Any]] = None,
    monthly_training_fund_contribution: float = 0.0,
    partner_work_periods: Iterable[Any] = (),
    config: Optional[EngineConfig] = None,
    return_adjuster: Optional[ReturnAdjuster] = None,
    income_calculator: Optional[IncomeCalculator] = calculate_retirement_income,
) -> Optional[ProjectionResult]:
    """Project a household's savings to retirement.

    Parameters
    ----------
    inputs : mapping
        The household input record.  Never mutated.
    work_periods : iterable
        Primary member's :class:`WorkPeriod` objects or mappings.  When empty,
        ``inputs["workPeriods"]`` is used if present.
    pension_allocation, training_fund_allocation : iterable
        Allocation entries blended into the fallback pension and training
        fund returns.  Empty lists use a single default portfolio.
    historical_returns : mapping, optional
        Asset name to return.  Defaults to the packaged table for the
        horizon closest to the years to retirement.
    monthly_training_fund_contribution : float, optional
        Primary member's training fund deposit.
    partner_work_periods : iterable
        Partner's work periods; the partner is projected only when
        ``partnerPlanningEnabled`` is set and this is non-empty.
    config : EngineConfig, optional
        Reference tables; defaults to the packaged configuration.
    return_adjuster : callable, optional
        Hook returning an enriched copy of ``inputs`` (for example from
        :func:`~pension_planner.calculators.returns.scenario_adjuster`).
        Failures are logged and the original record is used.
    income_calculator : callable or None
        Turns balances into income.  ``None`` yields a partial result tagged
        with :attr:`ProjectionError.INCOME_MODULE_UNAVAILABLE`.

    Returns
    -------
    ProjectionResult or None
        ``None`` when the retirement age is not after the current age.
    """
    cfg = config or default_config()

    primary_inputs = person_inputs(inputs, "primary")
    years = primary_inputs.years_to_retirement
    if years <= 0:
        logger.info("Retirement age %s is not after current age %s", primary_inputs.retirement_age, primary_inputs.current_age)
        return None

    record: Mapping[str, Any] = inputs
    if return_adjuster is not None:
        try:
            record = return_adjuster(inputs)
        except Exception:
            logger.warning("Return adjustment failed, using original inputs", exc_info=True)
            record = inputs
        primary_inputs = person_inputs(record, "primary")

    pension_allocation_return, training_allocation_return = allocation_returns(
        pension_allocation, training_fund_allocation, historical_returns, years, cfg
    )

    periods = coerce_periods(work_periods) or coerce_periods(record.get("workPeriods"))
    primary = project_person(
        primary_inputs, periods, cfg, pension_allocation_return, training_allocation_return,
        monthly_training_fund_contribution,
    )

    partner: Optional[PersonProjection] = None
    partner_periods = coerce_periods(partner_work_periods)
    if record.get("partnerPlanningEnabled") and partner_periods:
        partner_inputs = person_inputs(record, "partner")
        if partner_inputs.years_to_retirement > 0:
            partner = project_person(
                partner_inputs, partner_periods, cfg, pension_allocation_return, training_allocation_return,
            )
        else:
            logger.info("Partner has no years to retirement, skipping partner projection")

    if income_calculator is None:
        return ProjectionResult(primary, partner, None, ProjectionError.INCOME_MODULE_UNAVAILABLE)

    income = income_calculator(record, primary, partner, sort_periods(periods), cfg)
    return ProjectionResult(primary, partner, income)


__all__ = [
    "DEFAULT_PENSION_ALLOCATION",
    "DEFAULT_TRAINING_FUND_ALLOCATION",
    "PersonProjection",
    "ProjectionError",
    "ProjectionResult",
    "allocation_returns",
    "calculate_retirement",
    "project_person",
    "training_fund_contribution",
]
