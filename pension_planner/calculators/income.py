"""Turn projected balances into a monthly retirement income.

Withdrawal rates are fixed: 4 % a year from the pension, the personal
portfolio, crypto and real estate, and 5 % from the training fund.  Pension
income is taxed at the average of the work-period countries' pension tax
rates, weighted by how much each period grew the balance.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Sequence

from ..config import EngineConfig, default_config
from .fields import FIELD_ALIASES, get_field_value, is_couple, to_number
from .work_periods import WorkPeriod

if TYPE_CHECKING:
    from .projection import PersonProjection

logger = logging.getLogger(__name__)

PENSION_WITHDRAWAL_RATE = 0.04
TRAINING_FUND_WITHDRAWAL_RATE = 0.05
ASSET_WITHDRAWAL_RATE = 0.04
DEFAULT_PENSION_TAX = 0.25
DEFAULT_PORTFOLIO_TAX = 25.0
DEFAULT_INFLATION = 2.5

_RSU_PAYOUTS_PER_YEAR = {"monthly": 12, "quarterly": 4, "yearly": 1, "annual": 1}


def safe_round(value: float, decimals: int = 0) -> float:
    """Round ``value``, mapping NaN and infinities to 0."""
    if value is None or math.isnan(value) or math.isinf(value):
        return 0.0
    return float(round(value, decimals))


def _monthly(balance: float, rate: float) -> float:
    return balance * rate / 12


def _num(inputs: Mapping[str, Any], *names: str, default: float = 0.0) -> float:
    return get_field_value(inputs, names, default=default)


def _rsu_annual(units: Any, price: Any, frequency: Any) -> float:
    u = to_number(units) or 0.0
    p = to_number(price) or 0.0
    return u * p * _RSU_PAYOUTS_PER_YEAR.get(str(frequency or "quarterly"), 0)


def additional_monthly_income(inputs: Mapping[str, Any], prefix: str = "") -> Dict[str, float]:
    """Gross monthly income from bonus, RSUs, freelance work, rent and dividends.

    ``prefix`` selects a partner's fields, e.g. ``"partner1"``.
    """

    def key(name: str) -> str:
        return prefix + name[:1].upper() + name[1:] if prefix else name

    rsu = _rsu_annual(inputs.get(key("rsuUnits")), inputs.get(key("rsuCurrentStockPrice")), inputs.get(key("rsuFrequency")))
    # Legacy records only carry a quarterly grant value
    rsu_monthly = rsu / 12 if rsu > 0 else _num(inputs, key("quarterlyRSU")) / 3
    out = {
        "bonus": _num(inputs, key("annualBonus")) / 12,
        "rsu": rsu_monthly,
        "freelance": _num(inputs, key("freelanceIncome")),
        "rental": _num(inputs, key("rentalIncome")),
        "dividend": _num(inputs, key("dividendIncome")),
    }
    return out


def weighted_pension_tax(
    period_results: Sequence[Any],
    periods: Sequence[WorkPeriod],
    countries: Mapping[str, Mapping[str, Any]],
) -> float:
    """Pension tax rate (a fraction) weighted by each period's growth."""
    weighted = 0.0
    total = 0.0
    for result in period_results:
        country = countries.get(result.country)
        if not country:
            logger.warning("No country data for period result %r", result.country)
            continue
        weighted += float(country.get("pensionTax", 0.0)) * result.growth
        total += result.growth
    if total > 0:
        return weighted / total
    if periods and periods[0].country in countries:
        return float(countries[periods[0].country].get("pensionTax", DEFAULT_PENSION_TAX))
    return DEFAULT_PENSION_TAX


def readiness_from_income_ratio(total_income: float, target_income: float) -> int:
    if not target_income:
        return 50
    ratio = total_income / target_income
    if ratio >= 1.2:
        return 100
    if ratio >= 1.0:
        return 90
    if ratio >= 0.8:
        return 70
    if ratio >= 0.6:
        return 50
    if ratio >= 0.4:
        return 30
    return 20


@dataclass(frozen=True)
class RetirementIncome:
    monthly_pension: float
    monthly_training_fund_income: float
    monthly_personal_portfolio_income: float
    monthly_crypto_income: float
    monthly_real_estate_income: float
    real_estate_rental_income: float
    pension_tax: float
    personal_portfolio_tax: float
    crypto_tax: float
    real_estate_tax: float
    net_pension: float
    net_training_fund_income: float
    net_personal_portfolio_income: float
    net_crypto_income: float
    net_real_estate_income: float
    social_security: float
    individual_net_income: float
    partner_net_income: float
    partner_social_security: float
    additional_income_total: float
    partner_additional_income: float
    total_net_income: float
    weighted_tax_rate: float
    base_expenses: float
    future_monthly_expenses: float
    remaining_after_expenses: float
    inflation_adjusted_income: float
    target_monthly_income: float
    target_gap: float
    achieves_target: bool
    readiness_score: int
    is_joint_planning: bool

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for name, value in asdict(self).items():
            head, *rest = name.split("_")
            out[head + "".join(part.title() for part in rest)] = value
        return out


def calculate_retirement_income(
    inputs: Mapping[str, Any],
    primary: "PersonProjection",
    partner: Optional["PersonProjection"] = None,
    periods: Sequence[WorkPeriod] = (),
    config: Optional[EngineConfig] = None,
) -> RetirementIncome:
    """Compute the household's monthly retirement income.

    Parameters
    ----------
    inputs : mapping
        The (possibly scenario-adjusted) input record.
    primary : PersonProjection
        Balances at retirement for the primary member.
    partner : PersonProjection, optional
        The partner's balances when couple planning produced them.
    periods : sequence of WorkPeriod
        The primary member's work periods sorted by start age.  The last one
        sets the final salary and the social security country.
    config : EngineConfig, optional
        Country tables; defaults to the packaged ones.

    Returns
    -------
    RetirementIncome
        Money values rounded to whole units.
    """
    cfg = config or default_config()
    countries = cfg.countries
    years = primary.years_to_retirement

    monthly_pension = _monthly(primary.total_pension_savings, PENSION_WITHDRAWAL_RATE)
    monthly_training = _monthly(primary.training_fund_value, TRAINING_FUND_WITHDRAWAL_RATE)
    monthly_portfolio = _monthly(primary.personal_portfolio_value, ASSET_WITHDRAWAL_RATE)
    monthly_crypto = _monthly(primary.current_crypto, ASSET_WITHDRAWAL_RATE)
    monthly_real_estate = _monthly(primary.current_real_estate, ASSET_WITHDRAWAL_RATE)

    portfolio_tax_rate = _num(inputs, "personalPortfolioTaxRate", "portfolioTaxRate", default=DEFAULT_PORTFOLIO_TAX)
    portfolio_tax = monthly_portfolio * portfolio_tax_rate / 100
    crypto_tax = monthly_crypto * _num(inputs, "cryptoTaxRate") / 100
    real_estate_tax = monthly_real_estate * _num(inputs, "realEstateTaxRate") / 100

    net_portfolio = monthly_portfolio - portfolio_tax
    net_crypto = monthly_crypto - crypto_tax
    net_real_estate = monthly_real_estate - real_estate_tax + primary.real_estate_rental_income

    tax_rate = weighted_pension_tax(primary.period_results, periods, countries)
    pension_tax = monthly_pension * tax_rate
    net_pension = monthly_pension - pension_tax

    last_country = countries.get(periods[-1].country) if periods else None
    social_security = float(last_country.get("socialSecurity", 0.0)) if last_country else 0.0

    partner_net = 0.0
    partner_social_security = 0.0
    if partner is not None:
        p_pension = _monthly(partner.total_pension_savings, PENSION_WITHDRAWAL_RATE)
        p_training = _monthly(partner.training_fund_value, TRAINING_FUND_WITHDRAWAL_RATE)
        p_portfolio = _monthly(partner.personal_portfolio_value, ASSET_WITHDRAWAL_RATE)
        p_assets = _monthly(partner.current_crypto + partner.current_real_estate, ASSET_WITHDRAWAL_RATE)
        p_tax_rate = _num(inputs, "partnerPersonalPortfolioTaxRate", default=DEFAULT_PORTFOLIO_TAX)
        p_countries = [r.country for r in partner.period_results if r.country in countries]
        p_country = countries[p_countries[-1]] if p_countries else last_country
        partner_social_security = float(p_country.get("socialSecurity", 0.0)) if p_country else 0.0
        partner_net = (
            p_pension * (1 - tax_rate)
            + p_training
            + p_portfolio * (1 - p_tax_rate / 100)
            + p_assets
            + partner.real_estate_rental_income
            + partner_social_security
        )

    additional_total = sum(additional_monthly_income(inputs).values())
    partner_additional = 0.0
    if is_couple(inputs):
        partner_additional = sum(additional_monthly_income(inputs, "partner1").values()) + sum(
            additional_monthly_income(inputs, "partner2").values()
        )

    individual_net = (
        net_pension + monthly_training + social_security + net_portfolio
        + net_crypto + net_real_estate + additional_total
    )
    total_net = individual_net + partner_net + partner_additional

    inflation = _num(inputs, "inflationRate", default=DEFAULT_INFLATION)
    joint = _num(inputs, "jointMonthlyExpenses")
    if inputs.get("partnerPlanningEnabled") and joint > 0:
        base_expenses = joint
    else:
        base_expenses = get_field_value(inputs, FIELD_ALIASES["monthly_expenses"])
    growth = (1 + inflation / 100) ** years
    future_expenses = base_expenses * growth
    remaining = total_net - future_expenses

    final_salary = periods[-1].salary if periods else 0.0
    target = final_salary * _num(inputs, "targetReplacement") / 100

    return RetirementIncome(
        monthly_pension=safe_round(monthly_pension),
        monthly_training_fund_income=safe_round(monthly_training),
        monthly_personal_portfolio_income=safe_round(monthly_portfolio),
        monthly_crypto_income=safe_round(monthly_crypto),
        monthly_real_estate_income=safe_round(monthly_real_estate),
        real_estate_rental_income=safe_round(primary.real_estate_rental_income),
        pension_tax=safe_round(pension_tax),
        personal_portfolio_tax=safe_round(portfolio_tax),
        crypto_tax=safe_round(crypto_tax),
        real_estate_tax=safe_round(real_estate_tax),
        net_pension=safe_round(net_pension),
        net_training_fund_income=safe_round(monthly_training),
        net_personal_portfolio_income=safe_round(net_portfolio),
        net_crypto_income=safe_round(net_crypto),
        net_real_estate_income=safe_round(net_real_estate),
        social_security=social_security,
        individual_net_income=safe_round(individual_net),
        partner_net_income=safe_round(partner_net),
        partner_social_security=partner_social_security,
        additional_income_total=safe_round(additional_total),
        partner_additional_income=safe_round(partner_additional),
        total_net_income=safe_round(total_net),
        weighted_tax_rate=safe_round(tax_rate * 100, 2),
        base_expenses=safe_round(base_expenses),
        future_monthly_expenses=safe_round(future_expenses),
        remaining_after_expenses=safe_round(remaining),
        inflation_adjusted_income=safe_round(total_net / growth, 2),
        target_monthly_income=safe_round(target),
        target_gap=safe_round(target - total_net),
        achieves_target=target > 0 and total_net >= target,
        readiness_score=readiness_from_income_ratio(total_net, target),
        is_joint_planning=bool(inputs.get("partnerPlanningEnabled")),
    )


__all__ = [
    "RetirementIncome",
    "additional_monthly_income",
    "calculate_retirement_income",
    "readiness_from_income_ratio",
    "safe_round",
    "weighted_pension_tax",
]
