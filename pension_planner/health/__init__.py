"""Financial health scoring.

* ``benchmarks`` – map a ratio onto a 0-100 score through five benchmark tiers.
* ``scorers`` – the eight per-factor sub-scores.
* ``engine`` – weighted aggregate score, peer comparison and suggestions.
* ``readiness`` – a quick five-factor retirement readiness score.
"""

from .engine import (
    calculate_financial_health_score,
    generate_improvement_suggestions,
    get_peer_comparison,
    validate_financial_inputs,
)
from .readiness import calculate_readiness_score

__all__ = [
    "calculate_financial_health_score",
    "calculate_readiness_score",
    "generate_improvement_suggestions",
    "get_peer_comparison",
    "validate_financial_inputs",
]
