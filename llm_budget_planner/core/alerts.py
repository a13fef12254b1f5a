"""
Budget alerts and remediation suggestions.

Classifies budget utilization against alert thresholds:

1. utilization >= critical - RED, spend is at or over budget
2. utilization >= warn - AMBER, spend is approaching budget
3. otherwise - GREEN
"""

from dataclasses import dataclass
from enum import Enum

from .pricing import round_half_up

DEFAULT_WARN_THRESHOLD = 0.8
DEFAULT_CRITICAL_THRESHOLD = 1.0


class AlertStatus(Enum):
    """Budget status in order of severity."""
    GREEN = "GREEN"
    AMBER = "AMBER"
    RED = "RED"

    @property
    def severity(self) -> int:
        """Rank used to pick the most severe status."""
        return _SEVERITY[self]


_SEVERITY = {
    AlertStatus.GREEN: 0,
    AlertStatus.AMBER: 1,
    AlertStatus.RED: 2,
}


@dataclass(frozen=True)
class AlertThresholds:
    """Utilization fractions at which alerts are raised."""
    warn: float = DEFAULT_WARN_THRESHOLD
    critical: float = DEFAULT_CRITICAL_THRESHOLD


def calculate_utilization(final_cost: float, monthly_budget: float) -> float:
    """Ratio of cost to budget, 0 when there is no budget."""
    if monthly_budget > 0:
        return final_cost / monthly_budget
    return 0.0


def classify_status(utilization: float, thresholds: AlertThresholds) -> AlertStatus:
    """Classify utilization into GREEN, AMBER or RED."""
    if utilization >= thresholds.critical:
        return AlertStatus.RED
    if utilization >= thresholds.warn:
        return AlertStatus.AMBER
    return AlertStatus.GREEN


def build_suggestion(
    status: AlertStatus,
    final_cost: float,
    monthly_budget: float,
    thresholds: AlertThresholds,
    currency: str,
) -> str:
    """Build remediation text for environments in AMBER or RED.

    Args:
        status: Classified budget status
        final_cost: Final monthly cost
        monthly_budget: Monthly budget amount
        thresholds: Alert thresholds of the environment
        currency: Currency the cost is expressed in

    Returns:
        Suggestion text, empty for GREEN
    """
    if status == AlertStatus.GREEN:
        return ""

    suggestion = ""
    shortfall = final_cost - monthly_budget
    if shortfall > 0:
        suggestion = f"Budget shortfall of {currency} {round_half_up(shortfall, 2)}. "

    # Aim for just under the warning threshold
    target_cost = monthly_budget * thresholds.warn
    percent_to_reduce = (final_cost - target_cost) / final_cost if final_cost > 0 else 0.0

    if percent_to_reduce > 0:
        suggestion += (
            f"To reach safety (sub-{round_half_up(thresholds.warn * 100)}%), "
            f"reduce token usage by ~{round_half_up(percent_to_reduce * 100)}% or raise budget."
        )
    return suggestion
