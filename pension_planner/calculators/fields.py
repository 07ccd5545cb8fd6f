"""Field resolution for loosely-typed household input records.

Input records come straight from the planning wizard and use a number of
legacy names for the same concept (``currentSavings``, ``pensionSavings`` and
``currentPensionSavings`` all mean the pension balance today).  This module
keeps every alias chain in one ordered table, :data:`FIELD_ALIASES`, and
offers two ways of reading a record:

* :func:`get_field_value` – try a list of names and return a number,
  optionally summing the two partners of a couple.  It never raises and never
  returns ``NaN``.
* :func:`person_inputs` – normalise a record once into a :class:`PersonInputs`
  value for either the primary member or the partner.  The growth calculators
  consume this instead of probing aliases themselves.

Example
-------

>>> get_field_value({"pensionSavings": 50000}, FIELD_ALIASES["pension_savings"])
50000.0

>>> couple = {"planningType": "couple", "partner1Salary": 12000, "partner2Salary": 9000}
>>> get_field_value(couple, ["salary"], combine_partners=True)
21000.0
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# Ordered alias chains: the first name that resolves wins.
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "pension_savings": (
        "currentSavings", "pensionSavings", "currentPensionSavings",
        "retirementSavings", "currentRetirementSavings",
    ),
    "training_fund": ("currentTrainingFund", "trainingFund", "trainingFundValue"),
    "personal_portfolio": ("currentPersonalPortfolio", "personalPortfolio", "portfolioValue"),
    "crypto": ("currentCrypto", "crypto", "cryptoValue", "currentCryptoFiatValue"),
    "real_estate": ("currentRealEstate", "realEstate", "realEstateValue"),
    "monthly_salary": ("currentMonthlySalary", "monthlySalary", "monthlyIncome", "currentSalary"),
    "monthly_expenses": ("currentMonthlyExpenses", "monthlyExpenses", "expenses"),
    "pension_contribution": ("monthlyContribution", "pensionContribution", "monthlyPensionContribution"),
    "training_fund_contribution": ("monthlyTrainingFundContribution", "trainingFundContribution", "trainingFundMonthly"),
    "portfolio_contribution": ("personalPortfolioMonthly", "personalSavings"),
    "portfolio_tax_rate": ("personalPortfolioTaxRate", "portfolioTaxRate"),
    "emergency_fund": ("emergencyFund", "emergencySavings", "cashSavings"),
    "total_debt": ("totalDebt", "currentDebt", "debt"),
    "high_interest_debt": ("highInterestDebt", "creditCardDebt"),
}

# Partner-only names for the same concepts, used when projecting the partner.
PARTNER_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "pension_savings": ("partnerCurrentSavings", "partner2CurrentSavings", "partner2CurrentPension"),
    "training_fund": ("partnerCurrentTrainingFund", "partner2CurrentTrainingFund"),
    "personal_portfolio": ("partnerCurrentPersonalPortfolio", "partner2CurrentPersonalPortfolio", "partner2PersonalPortfolio"),
    "crypto": ("partnerCurrentCrypto", "partner2CurrentCrypto", "partner2Crypto"),
    "real_estate": ("partnerCurrentRealEstate", "partner2CurrentRealEstate", "partner2RealEstate"),
    "monthly_salary": ("partnerSalary", "partner2Salary"),
    "pension_contribution": ("partnerMonthlyContribution", "partner2MonthlyContribution"),
    "training_fund_contribution": ("partnerMonthlyTrainingFundContribution", "partner2TrainingFundMonthly"),
    "portfolio_contribution": ("partnerPersonalPortfolioMonthly", "partner2PersonalPortfolioMonthly", "partner2PersonalSavings"),
    "portfolio_tax_rate": ("partnerPersonalPortfolioTaxRate", "partner2PortfolioTaxRate"),
}


def to_number(value: Any) -> Optional[float]:
    """Coerce ``value`` to a finite float, or ``None`` if it is not numeric.

    Any real number is accepted, so numpy scalars from a DataFrame row
    resolve the same as Python ints and floats.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def is_couple(inputs: Mapping[str, Any]) -> bool:
    return inputs.get("planningType") == "couple" or bool(inputs.get("partnerPlanningEnabled"))


def _capitalise(name: str) -> str:
    return name[:1].upper() + name[1:]


# Per-partner field suffixes the wizard writes for some single-person names,
# e.g. ``partner1Salary`` rather than ``partner1CurrentMonthlySalary``.
_PARTNER_SUFFIXES: Dict[str, Tuple[str, ...]] = {
    "currentMonthlySalary": ("Salary",),
    "monthlySalary": ("Salary",),
    "monthlyIncome": ("Salary",),
    "currentSalary": ("Salary",),
    "currentSavings": ("CurrentPension", "CurrentSavings"),
    "pensionSavings": ("CurrentPension", "CurrentSavings"),
    "currentPensionSavings": ("CurrentPension", "CurrentSavings"),
    "personalPortfolio": ("PersonalPortfolio", "CurrentPersonalPortfolio"),
    "currentPersonalPortfolio": ("PersonalPortfolio", "CurrentPersonalPortfolio"),
    "currentRealEstate": ("RealEstate", "CurrentRealEstate"),
    "currentCrypto": ("Crypto", "CurrentCrypto"),
    "currentMonthlyExpenses": ("Expenses", "MonthlyExpenses"),
}


def _partner_variants(names: Sequence[str], member: int) -> List[str]:
    out: List[str] = []
    for name in names:
        cap = _capitalise(name)
        out.extend([f"partner{member}{cap}", f"partner{member}_{name}"])
        if member == 2:
            out.append(f"partner{cap}")
        out.extend(f"partner{member}{suffix}" for suffix in _PARTNER_SUFFIXES.get(name, ()))
    return out


def _first_valid(inputs: Mapping[str, Any], names: Iterable[str], allow_zero: bool) -> Tuple[Optional[float], Optional[str]]:
    for name in names:
        number = to_number(inputs.get(name))
        if number is None:
            continue
        if number == 0 and not allow_zero:
            continue
        return number, name
    return None, None


def find_field_value(
    inputs: Mapping[str, Any],
    names: Sequence[str],
    *,
    combine_partners: bool = False,
    allow_zero: bool = True,
) -> Optional[float]:
    """Like :func:`get_field_value` but return ``None`` when nothing resolved.

    This keeps "field absent" distinguishable from "field explicitly zero".
    """
    if isinstance(names, str):
        names = [names]
    if not inputs:
        return None

    if is_couple(inputs):
        if combine_partners:
            p1, p1_name = _first_valid(inputs, _partner_variants(names, 1), allow_zero)
            p2, p2_name = _first_valid(inputs, _partner_variants(names, 2), allow_zero)
            if p1 is not None or p2 is not None:
                total = (p1 or 0.0) + (p2 or 0.0)
                logger.debug("Combined %s from %s=%s and %s=%s", names[0], p1_name, p1, p2_name, p2)
                return total
        value, name = _first_valid(inputs, names, allow_zero)
    else:
        single = [n for n in names if "partner" not in n.lower() and "spouse" not in n.lower()]
        value, name = _first_valid(inputs, single or names, allow_zero)

    if value is not None:
        logger.debug("Resolved %s via %s", names[0], name)
    return value


def get_field_value(
    inputs: Mapping[str, Any],
    names: Sequence[str],
    *,
    default: float = 0.0,
    combine_partners: bool = False,
    allow_zero: bool = True,
) -> float:
    """Resolve a numeric value for a concept from a loosely-typed record.

    Parameters
    ----------
    inputs : mapping
        The raw input record.
    names : sequence of str
        Candidate field names, tried in order.  The first present, numeric
        value wins.
    default : float, optional
        Returned when no candidate resolves (default 0).
    combine_partners : bool, optional
        In couple mode, sum the ``partner1<Field>`` and ``partner2<Field>``
        variants.  Falls back to the single-person names when neither partner
        field is present.
    allow_zero : bool, optional
        When ``False`` an explicit zero is treated as missing and the next
        alias is tried.

    Returns
    -------
    float
        The resolved value, never ``NaN``.
    """
    value = find_field_value(inputs, names, combine_partners=combine_partners, allow_zero=allow_zero)
    return default if value is None else value


@dataclass(frozen=True)
class PersonInputs:
    """One household member's inputs after alias resolution."""

    current_age: float
    retirement_age: float
    risk_tolerance: str
    pension_savings: float
    training_fund: float
    personal_portfolio: float
    crypto: float
    real_estate: float
    monthly_salary: float
    pension_contribution: float
    training_fund_contribution: float
    portfolio_contribution: float
    crypto_contribution: float
    real_estate_contribution: float
    pension_return: Optional[float]
    pension_annual_fee: float
    pension_deposit_fee: float
    training_fund_return: Optional[float]
    training_fund_fee: float
    portfolio_return: float
    portfolio_tax_rate: float
    crypto_return: float
    real_estate_return: float
    rental_yield: float

    @property
    def years_to_retirement(self) -> float:
        return self.retirement_age - self.current_age


def _pick(inputs: Mapping[str, Any], *names: str, default: float = 0.0) -> float:
    return get_field_value(inputs, names, default=default)


def _maybe(inputs: Mapping[str, Any], *names: str) -> Optional[float]:
    value, _ = _first_valid(inputs, names, True)
    return value


def person_inputs(inputs: Mapping[str, Any], role: str = "primary") -> PersonInputs:
    """Normalise ``inputs`` for the primary member or the partner.

    Both members read shared assumptions (returns, fees, yields) from the
    same record; the partner prefers ``partner``-prefixed overrides where the
    wizard provides them.
    """
    if role not in ("primary", "partner"):
        raise ValueError(f"unknown role: {role!r}")

    if role == "primary":
        aliases = FIELD_ALIASES
        current_age = _pick(inputs, "currentAge", "age")
        retirement_age = _pick(inputs, "retirementAge", "targetRetirementAge")
        risk = inputs.get("riskTolerance") or "moderate"
        portfolio_return = _pick(inputs, "personalPortfolioReturn")
        salary = get_field_value(inputs, aliases["monthly_salary"])
    else:
        aliases = {**FIELD_ALIASES, **PARTNER_FIELD_ALIASES}
        current_age = _pick(inputs, "partnerCurrentAge", "partner2Age")
        retirement_age = _pick(inputs, "partnerRetirementAge", "partner2RetirementAge")
        risk = inputs.get("partnerRiskTolerance") or inputs.get("riskTolerance") or "moderate"
        portfolio_return = _pick(inputs, "partnerPersonalPortfolioReturn", "personalPortfolioReturn")
        salary = _pick(inputs, *PARTNER_FIELD_ALIASES["monthly_salary"])

    def resolve(concept: str, default: float = 0.0) -> float:
        # Partner concepts never fall back to the primary member's balances.
        return _pick(inputs, *aliases[concept], default=default)

    prefix = "partner" if role == "partner" else ""

    def shared(name: str, default: float = 0.0) -> float:
        if prefix:
            return _pick(inputs, prefix + _capitalise(name), name, default=default)
        return _pick(inputs, name, default=default)

    def shared_optional(name: str) -> Optional[float]:
        if prefix:
            return _maybe(inputs, prefix + _capitalise(name), name)
        return _maybe(inputs, name)

    pension_contribution = _maybe(inputs, *aliases["pension_contribution"])
    if pension_contribution is None:
        # Derive from payroll rates when no explicit amount is given
        employee = shared_optional("employeePensionRate")
        employer = shared_optional("employerPensionRate")
        if employee is not None or employer is not None:
            pension_contribution = salary * ((employee or 0.0) + (employer or 0.0)) / 100

    return PersonInputs(
        current_age=current_age,
        retirement_age=retirement_age,
        risk_tolerance=str(risk),
        pension_savings=resolve("pension_savings"),
        training_fund=resolve("training_fund"),
        personal_portfolio=resolve("personal_portfolio"),
        crypto=resolve("crypto"),
        real_estate=resolve("real_estate"),
        monthly_salary=salary,
        pension_contribution=pension_contribution or 0.0,
        training_fund_contribution=resolve("training_fund_contribution"),
        portfolio_contribution=resolve("portfolio_contribution"),
        crypto_contribution=shared("cryptoMonthly"),
        real_estate_contribution=shared("realEstateMonthly"),
        pension_return=shared_optional("pensionReturn"),
        pension_annual_fee=shared("pensionAnnualFee"),
        pension_deposit_fee=shared("pensionDepositFee"),
        training_fund_return=shared_optional("trainingFundReturn"),
        training_fund_fee=shared("trainingFundManagementFee"),
        portfolio_return=portfolio_return,
        portfolio_tax_rate=resolve("portfolio_tax_rate", default=25.0),
        crypto_return=shared("cryptoReturn"),
        real_estate_return=shared("realEstateReturn"),
        rental_yield=shared("realEstateRentalYield"),
    )


__all__ = [
    "FIELD_ALIASES",
    "PARTNER_FIELD_ALIASES",
    "PersonInputs",
    "find_field_value",
    "get_field_value",
    "is_couple",
    "person_inputs",
    "to_number",
]
