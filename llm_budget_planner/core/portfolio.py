"""
Portfolio aggregation across environments.

Evaluates every environment against its assigned plan and sums the
results into portfolio totals. This module is read-only and
deterministic: the same inputs always give the same result.

Totals are a naive numeric sum. Environments priced or budgeted in
different currencies are added together without conversion, so mixed
currency totals are indicative only.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Sequence

from .alerts import AlertStatus
from .evaluator import Environment, EvaluationResult, evaluate_environment
from .pricing import VendorPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioTotals:
    """Sums over every environment with a valid plan."""
    total_tokens: float = 0.0
    prompt_tokens: float = 0.0
    completion_tokens: float = 0.0
    raw_cost: float = 0.0
    final_cost: float = 0.0
    budget: float = 0.0
    currencies: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def mixed_currency(self) -> bool:
        """True when the cost and budget sums mix currencies."""
        return len(self.currencies) > 1


@dataclass(frozen=True)
class PortfolioResult:
    """Per-environment results, in input order, and their totals."""
    per_env: List[EvaluationResult]
    totals: PortfolioTotals

    @property
    def overall_status(self) -> AlertStatus:
        """Most severe status among environments with a valid plan."""
        statuses = [r.status for r in self.per_env if not r.is_error]
        return max(statuses, key=lambda s: s.severity, default=AlertStatus.GREEN)


def aggregate(
    environments: Sequence[Environment],
    plans: Sequence[VendorPlan],
    assignment: Mapping[str, str],
) -> PortfolioResult:
    """Evaluate all environments and sum portfolio totals.

    Args:
        environments: Environments to evaluate, in presentation order
        plans: Available vendor plans
        assignment: Environment id to plan id; missing or "" means unassigned

    Returns:
        PortfolioResult with per-environment results and totals
    """
    plans_by_id: Dict[str, VendorPlan] = {plan.id: plan for plan in plans}

    results: List[EvaluationResult] = []
    total_tokens = prompt_tokens = completion_tokens = 0.0
    raw_cost = final_cost = budget = 0.0
    currencies = set()

    for env in environments:
        plan = plans_by_id.get(assignment.get(env.id, ""))
        result = evaluate_environment(env, plan)
        results.append(result)

        if result.is_error:
            continue

        total_tokens += result.monthly_tokens
        prompt_tokens += result.prompt_tokens
        completion_tokens += result.completion_tokens
        raw_cost += result.raw_cost
        final_cost += result.final_cost
        budget += result.budget
        currencies.update((result.currency, result.budget_currency))

    totals = PortfolioTotals(
        total_tokens=total_tokens,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        raw_cost=raw_cost,
        final_cost=final_cost,
        budget=budget,
        currencies=frozenset(currencies),
    )
    if totals.mixed_currency:
        logger.info(
            "Portfolio totals mix currencies %s; sums are indicative only",
            ", ".join(sorted(totals.currencies))
        )
    return PortfolioResult(per_env=results, totals=totals)
