"""Monte Carlo simulation of retirement savings.

Each path walks the household's five balances (pension, training fund,
personal portfolio, real estate, crypto) forward one year at a time.  Every
year draws an economic regime (recession, expansion, boom, stagflation) from
``data/simulation.json``.  The regime scales that year's randomly drawn asset
returns and inflation.  Contributions are added while the member is still
working.

At the end of a path the balance is turned into income with the 4% rule and
deflated by the simulated inflation.  The path succeeds when that real
monthly income reaches the target.

Example
-------

>>> inputs = {"currentAge": 40, "retirementAge": 67, "currentSavings": 200000,
...           "monthlyContribution": 2000, "targetMonthlyIncome": 5000}
>>> res = simulate(inputs, n_paths=50, seed=7)
>>> 0.0 <= res["success_probability"] <= 1.0
True
>>> len(res["ages"]) == 28
True
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from ..config import EngineConfig, default_config
from .fields import PersonInputs, find_field_value, person_inputs, to_number
from .income import DEFAULT_INFLATION

logger = logging.getLogger(__name__)

WITHDRAWAL_RATE = 0.04
ASSETS = ("pension", "training_fund", "personal_portfolio", "real_estate", "crypto")

# Which regime multiplier applies to each balance
_CYCLE = {
    "pension": "stock",
    "training_fund": "bond",
    "personal_portfolio": "stock",
    "real_estate": "realEstate",
    "crypto": "stock",
}


def _draw_return(mean: float, stdev: float, rng: np.random.Generator) -> float:
    return rng.normal(loc=mean, scale=stdev)


def _draw_lognormal_return(mean: float, stdev: float, rng: np.random.Generator) -> float:
    """Percentage return whose gross growth factor is lognormal."""
    if mean <= -100:
        return -100.0
    log_mean = np.log1p(mean / 100) - (stdev / 100) ** 2 / 2
    return float(np.expm1(rng.normal(loc=log_mean, scale=stdev / 100)) * 100)


def _draw_regime(regimes: Mapping[str, Mapping[str, Any]], rng: np.random.Generator) -> str:
    names = list(regimes)
    weights = np.array([float(regimes[n].get("probability", 0.0)) for n in names])
    if weights.sum() <= 0:
        return "expansion"
    return str(rng.choice(names, p=weights / weights.sum()))


def _expected_returns(inputs: Mapping[str, Any], person: PersonInputs, assets: Mapping[str, Any]) -> Dict[str, float]:
    def pick(value: Optional[float], key: str) -> float:
        return value if value else float(assets[key]["expectedReturn"])

    return {
        "pension": pick(person.pension_return, "pension"),
        "training_fund": pick(person.training_fund_return, "trainingFund"),
        "real_estate": pick(person.real_estate_return, "realEstate"),
        "crypto": pick(person.crypto_return, "crypto"),
        "inflation": pick(to_number(inputs.get("inflationRate")), "inflation"),
    }


def _annual_contributions(person: PersonInputs) -> Dict[str, float]:
    return {
        "pension": person.pension_contribution * (1 - person.pension_deposit_fee / 100) * 12,
        "training_fund": person.training_fund_contribution * 12,
        "personal_portfolio": person.portfolio_contribution * 12,
        "real_estate": person.real_estate_contribution * 12,
        "crypto": person.crypto_contribution * 12,
    }


def _stock_share(inputs: Mapping[str, Any]) -> float:
    share = find_field_value(inputs, ["stockPercentage", "equityPercentage"])
    return min(max((60.0 if share is None else share) / 100, 0.0), 1.0)


def simulate_path(
    inputs: Mapping[str, Any],
    years: int,
    rng: np.random.Generator,
    config: Optional[EngineConfig] = None,
) -> Dict[str, Any]:
    """Simulate one path of ``years`` annual steps.

    Returns the nominal and real total per year (index 0 is today), the
    regime drawn each year and the path's worst peak-to-trough drawdown.
    """
    cfg = config or default_config()
    assets = cfg.simulation["assets"]
    regimes = cfg.simulation["economicScenarios"]
    person = person_inputs(inputs)
    working_years = person.years_to_retirement
    expected = _expected_returns(inputs, person, assets)
    contributions = _annual_contributions(person)
    stock_share = _stock_share(inputs)

    balances = {
        "pension": person.pension_savings,
        "training_fund": person.training_fund,
        "personal_portfolio": person.personal_portfolio,
        "real_estate": person.real_estate,
        "crypto": person.crypto,
    }
    total = sum(balances.values())
    nominal = [total]
    real = [total]
    regime_path: List[str] = []
    peak = total
    max_drawdown = 0.0
    price_level = 1.0

    for year in range(1, years + 1):
        name = _draw_regime(regimes, rng)
        regime = regimes.get(name, {})
        regime_path.append(name)
        multipliers = {
            "stock": float(regime.get("stockReturnMultiplier", 1.0)),
            "bond": float(regime.get("bondReturnMultiplier", 1.0)),
            "realEstate": float(regime.get("realEstateReturnMultiplier", 1.0)),
        }

        inflation = max(0.0, _draw_return(expected["inflation"], assets["inflation"]["volatility"], rng)
                        * float(regime.get("inflationMultiplier", 1.0))) / 100
        price_level *= 1 + inflation

        draws = {
            "pension": _draw_return(expected["pension"], assets["pension"]["volatility"], rng),
            "training_fund": _draw_return(expected["training_fund"], assets["trainingFund"]["volatility"], rng),
            "personal_portfolio": (
                _draw_return(assets["stocks"]["expectedReturn"], assets["stocks"]["volatility"], rng) * stock_share
                + _draw_return(assets["bonds"]["expectedReturn"], assets["bonds"]["volatility"], rng)
                * (1 - stock_share)
            ),
            "real_estate": _draw_return(expected["real_estate"], assets["realEstate"]["volatility"], rng),
            "crypto": _draw_lognormal_return(expected["crypto"], assets["crypto"]["volatility"], rng),
        }
        for name in ASSETS:
            balances[name] *= 1 + draws[name] * multipliers[_CYCLE[name]] / 100
            if year <= working_years:
                balances[name] += contributions[name]

        total = sum(balances.values())
        nominal.append(total)
        real.append(total / price_level)
        peak = max(peak, total)
        if peak > 0:
            max_drawdown = max(max_drawdown, (peak - total) / peak)

    return {
        "nominal": np.array(nominal),
        "real": np.array(real),
        "regimes": regime_path,
        "max_drawdown": max_drawdown,
        "price_level": price_level,
    }


def _target_income(inputs: Mapping[str, Any], target_monthly_income: Optional[float]) -> float:
    if target_monthly_income is not None:
        return target_monthly_income
    explicit = find_field_value(inputs, ["targetMonthlyIncome", "targetIncome"])
    if explicit is not None:
        return explicit
    salary = person_inputs(inputs).monthly_salary
    replacement = find_field_value(inputs, ["targetReplacement"])
    return salary * (replacement or 0.0) / 100


def _summary(values: np.ndarray) -> Dict[str, float]:
    return {
        "mean": float(np.mean(values)),
        "median": float(np.median(values)),
        "std": float(np.std(values)),
        "min": float(np.min(values)),
        "max": float(np.max(values)),
        "p10": float(np.percentile(values, 10)),
        "p25": float(np.percentile(values, 25)),
        "p75": float(np.percentile(values, 75)),
        "p90": float(np.percentile(values, 90)),
    }


def risk_recommendations(success_probability: Optional[float], drawdown_p90: float, average_shortfall: float) -> List[Dict[str, Any]]:
    recs = []
    if success_probability is not None and success_probability < 0.7:
        recs.append({
            "type": "low_success_probability",
            "priority": "high",
            "title": "Low Retirement Success Probability",
            "description": f"Only {round(success_probability * 100)}% chance of meeting retirement income goals",
            "actions": [
                "Increase monthly savings contributions",
                "Consider working 2-3 additional years",
                "Consider higher-return investments",
                "Review and reduce retirement expense targets",
            ],
        })
    elif success_probability is not None and success_probability > 0.9:
        recs.append({
            "type": "high_success_probability",
            "priority": "low",
            "title": "High Retirement Success Probability",
            "description": f"{round(success_probability * 100)}% chance of exceeding retirement goals",
            "actions": [
                "Consider reducing portfolio risk",
                "You may be able to retire earlier",
                "Consider upgrading retirement lifestyle plans",
            ],
        })
    if drawdown_p90 > 0.4:
        recs.append({
            "type": "high_drawdown_risk",
            "priority": "medium",
            "title": "High Portfolio Drawdown Risk",
            "description": f"10% of paths see a portfolio decline of {round(drawdown_p90 * 100)}% or more",
            "actions": [
                "Improve portfolio diversification",
                "Consider reducing bond allocation during accumulation",
                "Add alternative investments for stability",
            ],
        })
    if average_shortfall > 0.2:
        recs.append({
            "type": "shortfall_risk",
            "priority": "high",
            "title": "Significant Shortfall Risk",
            "description": f"Average income shortfall of {round(average_shortfall * 100)}% in worst scenarios",
            "actions": [
                "Review retirement income targets",
                "Significantly boost monthly savings",
                "Optimize asset allocation for better risk-adjusted returns",
            ],
        })
    return recs


def simulate(
    inputs: Mapping[str, Any],
    n_paths: int = 1000,
    projection_years: Optional[int] = None,
    seed: int | None = None,
    target_monthly_income: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> Optional[Dict[str, Any]]:
    """Run ``n_paths`` simulated paths and summarise the outcomes.

    Parameters
    ----------
    inputs : mapping
        The household input record (primary member only).
    n_paths : int
        Number of simulated paths.
    projection_years : int, optional
        Years to simulate.  Defaults to the whole years to retirement;
        contributions stop at retirement either way.
    seed : int, optional
        Seed for :func:`numpy.random.default_rng`; equal seeds give equal
        results.
    target_monthly_income : float, optional
        Real monthly income a path must reach to count as a success.
        Defaults to ``targetMonthlyIncome`` in ``inputs``, else salary times
        ``targetReplacement``.  Without a target no success metrics are
        computed.
    config : EngineConfig, optional
        Reference tables; defaults to the packaged configuration.

    Returns
    -------
    dict or None
        ``None`` when the horizon is not positive.
    """
    cfg = config or default_config()
    person = person_inputs(inputs)
    horizon = person.years_to_retirement
    years = int(np.ceil(horizon)) if projection_years is None else int(projection_years)
    if horizon <= 0 or years <= 0:
        logger.info("Nothing to simulate: %s years to retirement", horizon)
        return None

    rng = np.random.default_rng(seed)
    paths = [simulate_path(inputs, years, rng, cfg) for _ in range(n_paths)]
    logger.debug("Simulated %d paths over %d years", n_paths, years)

    stacked = np.vstack([p["nominal"] for p in paths])  # n_paths x (years + 1)
    terminal = stacked[:, -1]
    real_income = np.array([p["nominal"][-1] * WITHDRAWAL_RATE / 12 / p["price_level"] for p in paths])
    drawdowns = np.array([p["max_drawdown"] for p in paths])

    target = _target_income(inputs, target_monthly_income)
    if target > 0:
        shortfall = np.maximum(0.0, target - real_income) / target
        success_probability: Optional[float] = float(np.mean(real_income >= target))
        positive = shortfall[shortfall > 0]
        average_shortfall = float(np.mean(positive)) if positive.size else 0.0
        worst_shortfall = float(np.max(positive)) if positive.size else 0.0
    else:
        success_probability = None
        average_shortfall = worst_shortfall = 0.0

    tail = np.sort(real_income)[: int(n_paths * 0.05)]
    regimes = [r for p in paths for r in p["regimes"]]
    regime_frequency = {name: regimes.count(name) / len(regimes) for name in sorted(set(regimes))}
    drawdown_p90 = float(np.percentile(drawdowns, 90))

    return {
        "ages": [person.current_age + y for y in range(years + 1)],
        "success_probability": success_probability,
        "percentiles": {
            "p10": np.percentile(stacked, 10, axis=0).tolist(),
            "p50": np.percentile(stacked, 50, axis=0).tolist(),
            "p90": np.percentile(stacked, 90, axis=0).tolist(),
        },
        "median_terminal": float(np.median(terminal)),
        "target_monthly_income": target,
        "statistics": {
            "portfolio": _summary(terminal),
            "income": _summary(real_income),
            "drawdown": {**_summary(drawdowns), "p95": float(np.percentile(drawdowns, 95))},
        },
        "risk_metrics": {
            "success_probability": success_probability,
            "shortfall_probability": None if success_probability is None else 1 - success_probability,
            "average_shortfall": average_shortfall,
            "worst_case_shortfall": worst_shortfall,
            "value_at_risk": {
                "var95": float(np.percentile(terminal, 5)),
                "var99": float(np.percentile(terminal, 1)),
            },
            "expected_shortfall": float(np.mean(tail)) if tail.size else 0.0,
        },
        "regime_frequency": regime_frequency,
        "recommendations": risk_recommendations(success_probability, drawdown_p90, average_shortfall),
    }


__all__ = ["ASSETS", "WITHDRAWAL_RATE", "risk_recommendations", "simulate", "simulate_path"]
