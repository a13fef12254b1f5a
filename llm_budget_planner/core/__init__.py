"""
Core modules for LLM Budget Planner.

This package contains the pure cost engine: token projection, plan
pricing, budget alerts and portfolio aggregation.
"""

from .portfolio import aggregate
from .pricing import resolve_cost

__all__ = ["aggregate", "resolve_cost"]
