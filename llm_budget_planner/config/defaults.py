"""
Default planner data.

The seed scenario used for a fresh or reset store, and the templates
for newly added plans and environments.
"""

import dataclasses

from llm_budget_planner.core.alerts import AlertThresholds
from llm_budget_planner.core.evaluator import Environment
from llm_budget_planner.core.pricing import VendorPlan

from .loader import PlannerConfig

DEFAULT_CONFIG = PlannerConfig(
    vendor_plans=(
        VendorPlan(
            id="plan_1",
            vendor="OpenAI",
            plan="Test-Plan",
            currency="EUR",
            price_prompt_per_1k=0.002,
            price_completion_per_1k=0.006,
        ),
        VendorPlan(
            id="plan_2",
            vendor="Anthropic",
            plan="Opus",
            currency="USD",
            price_prompt_per_1k=0.015,
            price_completion_per_1k=0.075,
        ),
    ),
    environments=(
        Environment(
            id="env_1",
            env_name="Production",
            requests_per_day=100,
            avg_tokens_per_request=1000,
            context_tokens=200,
            cache_hit_rate=0.5,
            cache_savings_factor=0.8,
            completion_share=0.4,
            days_per_month=30,
            budget_currency="EUR",
            monthly_budget=20,
        ),
        Environment(
            id="env_2",
            env_name="Staging",
            requests_per_day=50,
            avg_tokens_per_request=2000,
            context_tokens=1000,
            cache_hit_rate=0.1,
            cache_savings_factor=0.8,
            completion_share=0.3,
            days_per_month=22,  # Work days
            budget_currency="USD",
            monthly_budget=50,
        ),
    ),
    plan_assignment={
        "env_1": "plan_1",
        "env_2": "plan_2",
    },
)


def default_config() -> PlannerConfig:
    """Copy of the seed scenario that callers are free to modify."""
    return dataclasses.replace(
        DEFAULT_CONFIG,
        plan_assignment=dict(DEFAULT_CONFIG.plan_assignment),
    )


def new_vendor_plan(plan_id: str) -> VendorPlan:
    """Template for a plan added by the user."""
    return VendorPlan(
        id=plan_id,
        vendor="Other",
        plan="New Plan",
        currency="USD",
        price_prompt_per_1k=0.01,
        price_completion_per_1k=0.03,
    )


def new_environment(env_id: str) -> Environment:
    """Template for an environment added by the user."""
    return Environment(
        id=env_id,
        env_name="New Environment",
        requests_per_day=10,
        avg_tokens_per_request=1000,
        context_tokens=500,
        cache_hit_rate=0.0,
        days_per_month=30,
        budget_currency="USD",
        monthly_budget=10,
        alert_thresholds=AlertThresholds(),
    )
