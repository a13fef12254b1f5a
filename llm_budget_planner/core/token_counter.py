"""
Token volume estimation.

Turns per-request usage profiles into monthly token volumes.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenUsage:
    """Prompt/completion token volumes for cost calculation.

    Counts are projections, so they may be fractional.
    """
    prompt_tokens: float
    completion_tokens: float

    @property
    def total_tokens(self) -> float:
        """Total tokens (prompt + completion)."""
        return self.prompt_tokens + self.completion_tokens


def effective_tokens_per_request(
    avg_tokens_per_request: float,
    context_tokens: float,
    cache_hit_rate: float,
    cache_savings_factor: float,
) -> float:
    """Average tokens plus the cache-discounted share of context tokens."""
    return avg_tokens_per_request + context_tokens * (1 - cache_hit_rate * cache_savings_factor)


def split_monthly_tokens(monthly_tokens: float, completion_share: float) -> TokenUsage:
    """Split a monthly volume into prompt and completion shares."""
    return TokenUsage(
        prompt_tokens=monthly_tokens * (1 - completion_share),
        completion_tokens=monthly_tokens * completion_share,
    )
