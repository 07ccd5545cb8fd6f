"""Household retirement projection and financial health engine.

Projects pension, training fund, portfolio, crypto and real estate balances
to retirement for one person or a couple, estimates the resulting monthly
income and scores overall financial health.

Example
-------

>>> from pension_planner import calculate_retirement
>>> result = calculate_retirement({"currentAge": 40, "retirementAge": 67, "currentSavings": 100000})
>>> result.total_pension_savings > 100000
True
"""

from .calculators.projection import ProjectionResult, calculate_retirement
from .calculators.monte_carlo import simulate
from .calculators.schedule import savings_schedule
from .calculators.stress import run_all_stress_tests, run_stress_test
from .config import EngineConfig, default_config, load_config
from .health import calculate_financial_health_score, calculate_readiness_score

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "ProjectionResult",
    "calculate_financial_health_score",
    "calculate_readiness_score",
    "calculate_retirement",
    "default_config",
    "load_config",
    "run_all_stress_tests",
    "run_stress_test",
    "savings_schedule",
    "simulate",
]
