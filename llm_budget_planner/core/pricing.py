"""
Vendor plan pricing.

Resolves token volumes into costs, applying free-tier allowances and
monthly commit credits with overage billing.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from .token_counter import TokenUsage

logger = logging.getLogger(__name__)

DEFAULT_OVERAGE_MULTIPLIER = 1.0


@dataclass(frozen=True)
class VendorPlan:
    """Pricing terms for a vendor offering."""
    id: str
    vendor: str
    plan: str
    currency: str
    price_prompt_per_1k: float  # Cost per 1K prompt tokens
    price_completion_per_1k: float  # Cost per 1K completion tokens
    monthly_commit_credit: float = 0.0  # 0 = no commit
    free_tier_tokens: float = 0.0  # 0 = no free tier
    overage_multiplier: float = DEFAULT_OVERAGE_MULTIPLIER

    @property
    def display_name(self) -> str:
        """Vendor and plan name, as shown in reports."""
        return f"{self.vendor} - {self.plan}"


@dataclass(frozen=True)
class CostResult:
    """Costs for one usage volume under one plan."""
    raw_cost: float  # Without free tier or commit
    cost_after_free_tier: float
    final_cost: float

    @property
    def free_tier_savings(self) -> float:
        """Amount saved by the free tier allowance."""
        return self.raw_cost - self.cost_after_free_tier


def round_half_up(value: float, places: int = 0) -> Decimal:
    """Round for display, with exact ties rounded away from zero.

    Args:
        value: Number to round
        places: Decimal places to keep

    Returns:
        Rounded Decimal, formatted with exactly `places` decimals by str()
    """
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def _token_cost(usage: TokenUsage, plan: VendorPlan) -> float:
    return (
        usage.prompt_tokens / 1000 * plan.price_prompt_per_1k
        + usage.completion_tokens / 1000 * plan.price_completion_per_1k
    )


def apply_free_tier(usage: TokenUsage, free_tier_tokens: float) -> TokenUsage:
    """Remove free tokens pro-rata from both prompt and completion volumes.

    Args:
        usage: Token volumes before the allowance
        free_tier_tokens: Tokens billed at zero cost

    Returns:
        Billable token volumes
    """
    total = usage.total_tokens
    if free_tier_tokens <= 0 or total <= 0:
        return usage

    # Share of tokens that are *not* free
    billable_ratio = max(0.0, total - free_tier_tokens) / total
    return TokenUsage(
        prompt_tokens=usage.prompt_tokens * billable_ratio,
        completion_tokens=usage.completion_tokens * billable_ratio,
    )


def apply_commit(cost: float, plan: VendorPlan) -> float:
    """Blend a cost with the plan's monthly commit credit.

    Cost up to the commit is billed as-is; anything beyond it is billed
    as overage at the plan's multiplier. An explicit multiplier of 0
    bills overage at zero.
    """
    commit = plan.monthly_commit_credit
    if commit <= 0:
        return cost

    overage_amount = max(0.0, cost - commit)
    overage_cost = overage_amount * plan.overage_multiplier
    return min(cost, commit) + overage_cost


def resolve_cost(prompt_tokens: float, completion_tokens: float, plan: VendorPlan) -> CostResult:
    """Calculate raw, free-tier adjusted and final cost for a usage volume.

    Args:
        prompt_tokens: Prompt tokens (not in 1K units)
        completion_tokens: Completion tokens (not in 1K units)
        plan: Vendor plan to price against

    Returns:
        CostResult with all three cost figures
    """
    usage = TokenUsage(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)

    raw_cost = _token_cost(usage, plan)
    cost_after_free_tier = _token_cost(apply_free_tier(usage, plan.free_tier_tokens), plan)
    final_cost = apply_commit(cost_after_free_tier, plan)

    logger.debug(
        "Resolved cost for %s: raw=%.6f after_free_tier=%.6f final=%.6f",
        plan.id, raw_cost, cost_after_free_tier, final_cost
    )
    return CostResult(
        raw_cost=raw_cost,
        cost_after_free_tier=cost_after_free_tier,
        final_cost=final_cost,
    )
