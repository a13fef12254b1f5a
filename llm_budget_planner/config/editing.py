"""
Configuration edit operations.

Every operation takes a PlannerConfig and returns a new one; the input
is never modified. Field updates are typed and validated against the
field schema, with numeric values clamped to their allowed range.
"""

import dataclasses
import logging
import uuid
from typing import Any, Dict, Mapping, Optional

from llm_budget_planner.core.alerts import AlertThresholds
from llm_budget_planner.core.evaluator import Environment
from llm_budget_planner.core.pricing import VendorPlan

from .defaults import new_environment, new_vendor_plan
from .loader import PlannerConfig, parse_alert_thresholds
from .schema import ENVIRONMENT_FIELDS, PLAN_FIELDS, THRESHOLD_FIELDS, FieldSpec, coerce_value

logger = logging.getLogger(__name__)


def _new_id(prefix: str, existing) -> str:
    while True:
        candidate = f"{prefix}_{uuid.uuid4().hex[:8]}"
        if candidate not in existing:
            return candidate


def _validated_changes(
    changes: Dict[str, Any],
    fields: Dict[str, FieldSpec],
    record_type: str,
) -> Dict[str, Any]:
    unknown = set(changes) - set(fields)
    if unknown:
        raise ValueError(f"Unknown {record_type} fields: {unknown}")
    return {
        name: coerce_value(fields[name], name, value, clamp=True)
        for name, value in changes.items()
    }


def _require_plan(config: PlannerConfig, plan_id: str) -> VendorPlan:
    plan = config.get_plan(plan_id)
    if plan is None:
        raise ValueError(f"Unknown vendor plan: {plan_id}")
    return plan


def _require_environment(config: PlannerConfig, env_id: str) -> Environment:
    env = config.get_environment(env_id)
    if env is None:
        raise ValueError(f"Unknown environment: {env_id}")
    return env


def add_vendor_plan(config: PlannerConfig, plan: Optional[VendorPlan] = None) -> PlannerConfig:
    """Append a vendor plan, using the new-plan template when none is given.

    The added plan always receives a fresh unique id.
    """
    existing = {p.id for p in config.vendor_plans}
    plan_id = _new_id("plan", existing)
    plan = dataclasses.replace(plan, id=plan_id) if plan else new_vendor_plan(plan_id)
    logger.info("Added vendor plan %s", plan_id)
    return dataclasses.replace(config, vendor_plans=config.vendor_plans + (plan,))


def delete_vendor_plan(config: PlannerConfig, plan_id: str) -> PlannerConfig:
    """Delete a vendor plan and unassign it from every environment."""
    _require_plan(config, plan_id)
    plan_assignment = {
        env_id: ("" if assigned == plan_id else assigned)
        for env_id, assigned in config.plan_assignment.items()
    }
    logger.info("Deleted vendor plan %s", plan_id)
    return dataclasses.replace(
        config,
        vendor_plans=tuple(p for p in config.vendor_plans if p.id != plan_id),
        plan_assignment=plan_assignment,
    )


def add_environment(config: PlannerConfig, env: Optional[Environment] = None) -> PlannerConfig:
    """Append an environment, using the new-environment template when none is given."""
    existing = {e.id for e in config.environments}
    env_id = _new_id("env", existing)
    env = dataclasses.replace(env, id=env_id) if env else new_environment(env_id)
    logger.info("Added environment %s", env_id)
    return dataclasses.replace(config, environments=config.environments + (env,))


def delete_environment(config: PlannerConfig, env_id: str) -> PlannerConfig:
    """Delete an environment together with its plan assignment."""
    _require_environment(config, env_id)
    plan_assignment = dict(config.plan_assignment)
    plan_assignment.pop(env_id, None)
    logger.info("Deleted environment %s", env_id)
    return dataclasses.replace(
        config,
        environments=tuple(e for e in config.environments if e.id != env_id),
        plan_assignment=plan_assignment,
    )


def assign_plan(config: PlannerConfig, env_id: str, plan_id: str) -> PlannerConfig:
    """Assign a plan to an environment; an empty plan id unassigns it."""
    _require_environment(config, env_id)
    if plan_id:
        _require_plan(config, plan_id)
    plan_assignment = dict(config.plan_assignment)
    plan_assignment[env_id] = plan_id
    return dataclasses.replace(config, plan_assignment=plan_assignment)


def update_vendor_plan(config: PlannerConfig, plan_id: str, changes: Mapping[str, Any]) -> PlannerConfig:
    """Update fields of a vendor plan.

    Args:
        config: Current configuration
        plan_id: Plan to update
        changes: Field name to new value; numbers may be given as strings

    Returns:
        New configuration with the updated plan

    Raises:
        ValueError: If the plan or a field is unknown, or a value is invalid
    """
    plan = _require_plan(config, plan_id)
    values = _validated_changes(dict(changes), PLAN_FIELDS, "vendor plan")
    updated = dataclasses.replace(plan, **values)
    return dataclasses.replace(
        config,
        vendor_plans=tuple(updated if p.id == plan_id else p for p in config.vendor_plans),
    )


def update_environment(config: PlannerConfig, env_id: str, changes: Mapping[str, Any]) -> PlannerConfig:
    """Update fields of an environment.

    `alert_thresholds` accepts AlertThresholds or a {warn, critical}
    mapping; `warn` and `critical` may also be set on their own. Threshold
    values not given are kept.

    Raises:
        ValueError: If the environment or a field is unknown, or a value is invalid
    """
    env = _require_environment(config, env_id)

    changes = dict(changes)
    thresholds = changes.pop('alert_thresholds', None)
    threshold_changes = {name: changes.pop(name) for name in THRESHOLD_FIELDS if name in changes}
    values = _validated_changes(changes, ENVIRONMENT_FIELDS, "environment")

    if thresholds is not None or threshold_changes:
        if thresholds is None:
            thresholds = {}
        elif isinstance(thresholds, AlertThresholds):
            thresholds = dataclasses.asdict(thresholds)
        elif not isinstance(thresholds, dict):
            raise ValueError("'alert_thresholds' must be a dictionary")
        merged = {**dataclasses.asdict(env.alert_thresholds), **thresholds, **threshold_changes}
        values['alert_thresholds'] = parse_alert_thresholds(merged, "alert_thresholds", clamp=True)

    updated = dataclasses.replace(env, **values)
    return dataclasses.replace(
        config,
        environments=tuple(updated if e.id == env_id else e for e in config.environments),
    )
