"""
Per-environment cost evaluation.

Projects an environment's usage profile onto its assigned plan and
packages token volumes, costs and budget status.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from .alerts import (
    AlertStatus,
    AlertThresholds,
    build_suggestion,
    calculate_utilization,
    classify_status,
)
from .pricing import VendorPlan, resolve_cost
from .token_counter import effective_tokens_per_request, split_monthly_tokens

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SAVINGS_FACTOR = 0.8
DEFAULT_COMPLETION_SHARE = 0.4
UNASSIGNED_PLAN_ERROR = "No valid plan assigned."


@dataclass(frozen=True)
class Environment:
    """Usage profile of a deployment environment."""
    id: str
    env_name: str
    requests_per_day: float
    avg_tokens_per_request: float
    context_tokens: float
    cache_hit_rate: float
    days_per_month: int
    budget_currency: str
    monthly_budget: float
    cache_savings_factor: float = DEFAULT_CACHE_SAVINGS_FACTOR
    completion_share: float = DEFAULT_COMPLETION_SHARE
    alert_thresholds: AlertThresholds = field(default_factory=AlertThresholds)


@dataclass(frozen=True)
class EnvironmentResult:
    """Monthly projection for an environment with a valid plan.

    `currency` is the plan currency and `budget_currency` the budget's;
    they may differ and are never converted.
    """
    env_id: str
    env_name: str
    plan_name: str
    currency: str
    budget: float
    budget_currency: str
    monthly_tokens: float
    prompt_tokens: float
    completion_tokens: float
    raw_cost: float
    cost_after_free_tier: float
    final_cost: float
    utilization: float
    status: AlertStatus
    suggestion: str

    is_error = False

    @property
    def currency_mismatch(self) -> bool:
        """True when the plan is priced in another currency than the budget."""
        return self.currency != self.budget_currency


@dataclass(frozen=True)
class UnassignedPlanResult:
    """Marker for an environment without a resolvable plan."""
    env_id: str
    env_name: str
    error: str = UNASSIGNED_PLAN_ERROR

    is_error = True
    status = "N/A"


EvaluationResult = Union[EnvironmentResult, UnassignedPlanResult]


def evaluate_environment(env: Environment, plan: Optional[VendorPlan]) -> EvaluationResult:
    """Evaluate monthly tokens, costs and budget status for one environment.

    Args:
        env: Environment usage profile
        plan: Assigned plan, or None when unassigned or deleted

    Returns:
        EnvironmentResult, or UnassignedPlanResult when there is no plan
    """
    if plan is None:
        logger.warning("Environment %s (%s) has no valid plan assigned", env.id, env.env_name)
        return UnassignedPlanResult(env_id=env.id, env_name=env.env_name)

    per_request = effective_tokens_per_request(
        env.avg_tokens_per_request,
        env.context_tokens,
        env.cache_hit_rate,
        env.cache_savings_factor,
    )
    monthly_tokens = env.requests_per_day * per_request * env.days_per_month
    usage = split_monthly_tokens(monthly_tokens, env.completion_share)

    cost = resolve_cost(usage.prompt_tokens, usage.completion_tokens, plan)

    utilization = calculate_utilization(cost.final_cost, env.monthly_budget)
    status = classify_status(utilization, env.alert_thresholds)
    suggestion = build_suggestion(
        status,
        cost.final_cost,
        env.monthly_budget,
        env.alert_thresholds,
        plan.currency,
    )

    logger.debug(
        "Evaluated %s: %.0f tokens/month, final cost %.4f %s, status %s",
        env.id, monthly_tokens, cost.final_cost, plan.currency, status.value
    )
    return EnvironmentResult(
        env_id=env.id,
        env_name=env.env_name,
        plan_name=plan.display_name,
        currency=plan.currency,
        budget=env.monthly_budget,
        budget_currency=env.budget_currency,
        monthly_tokens=monthly_tokens,
        prompt_tokens=usage.prompt_tokens,
        completion_tokens=usage.completion_tokens,
        raw_cost=cost.raw_cost,
        cost_after_free_tier=cost.cost_after_free_tier,
        final_cost=cost.final_cost,
        utilization=utilization,
        status=status,
        suggestion=suggestion,
    )
