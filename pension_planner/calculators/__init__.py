"""Projection calculators for the retirement planner.

The `calculators` package contains small, focused modules that each implement
one step of the savings projection:

* ``fields`` – alias-aware lookup of numeric values in loosely-typed input records.
* ``returns`` – risk-adjusted, weighted and scenario-based return assumptions.
* ``growth`` – compound growth of a balance plus monthly contributions.
* ``work_periods`` – pension accumulation across employment periods and countries.
* ``projection`` – the household projection entry point, ``calculate_retirement``.
* ``income`` – monthly retirement income, taxes and target comparison.
* ``schedule`` – year-by-year balances as a pandas DataFrame.
* ``stress`` – the projection re-run under historical market shocks.
* ``monte_carlo`` – randomised paths with economic regimes and success odds.

Each module exposes a few public functions with clear parameters and returns.  See
individual docstrings for details.
"""

from . import fields, returns, growth, work_periods, projection, income, schedule, stress, monte_carlo  # noqa: F401

__all__ = [
    "fields",
    "returns",
    "growth",
    "work_periods",
    "projection",
    "income",
    "schedule",
    "stress",
    "monte_carlo",
]
