"""
Configuration management and loading.

Handles planner configuration: vendor plans, environments and plan
assignments, read from YAML files or plain data.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from llm_budget_planner.core.alerts import AlertThresholds
from llm_budget_planner.core.evaluator import Environment
from llm_budget_planner.core.pricing import VendorPlan

from .schema import ENVIRONMENT_FIELDS, PLAN_FIELDS, THRESHOLD_FIELDS, FieldSpec, coerce_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannerConfig:
    """Complete planner configuration, passed by value to the cost engine."""
    vendor_plans: Tuple[VendorPlan, ...] = ()
    environments: Tuple[Environment, ...] = ()
    plan_assignment: Dict[str, str] = field(default_factory=dict)

    def get_plan(self, plan_id: str) -> Optional[VendorPlan]:
        """Get a plan by id, or None if it does not exist."""
        for plan in self.vendor_plans:
            if plan.id == plan_id:
                return plan
        return None

    def get_environment(self, env_id: str) -> Optional[Environment]:
        """Get an environment by id, or None if it does not exist."""
        for env in self.environments:
            if env.id == env_id:
                return env
        return None


def load_planner_config(path: str) -> PlannerConfig:
    """Load and validate planner configuration from a YAML file.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated PlannerConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Planner config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")

    config = parse_planner_config(raw_config)
    logger.info(
        "Loaded %d plans and %d environments from %s",
        len(config.vendor_plans), len(config.environments), path
    )
    return config


def parse_planner_config(raw_config: Any) -> PlannerConfig:
    """Validate plain configuration data and build a PlannerConfig.

    Optional fields left out (or null) get their documented defaults.

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'vendor_plans', 'environments', 'plan_assignment'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    for key in ('vendor_plans', 'environments'):
        if key not in raw_config:
            raise ValueError(f"Missing required '{key}' section")
        if not isinstance(raw_config[key], list):
            raise ValueError(f"'{key}' must be a list")

    plans = tuple(
        _parse_plan(data, f"vendor_plans[{i}]")
        for i, data in enumerate(raw_config['vendor_plans'])
    )
    _check_unique_ids(plans, "vendor_plans")

    environments = tuple(
        _parse_environment(data, f"environments[{i}]")
        for i, data in enumerate(raw_config['environments'])
    )
    _check_unique_ids(environments, "environments")

    assignment_data = raw_config.get('plan_assignment') or {}
    if not isinstance(assignment_data, dict):
        raise ValueError("'plan_assignment' must be a dictionary")

    env_ids = {env.id for env in environments}
    plan_assignment = {}
    for env_id, plan_id in assignment_data.items():
        if env_id not in env_ids:
            raise ValueError(f"'plan_assignment' references unknown environment: {env_id}")
        if plan_id is None:
            plan_id = ""
        if not isinstance(plan_id, str):
            raise ValueError(f"Plan assigned to '{env_id}' must be a string")
        plan_assignment[env_id] = plan_id

    return PlannerConfig(
        vendor_plans=plans,
        environments=environments,
        plan_assignment=plan_assignment
    )


def config_to_dict(config: PlannerConfig) -> Dict[str, Any]:
    """Convert a PlannerConfig to plain data accepted by parse_planner_config."""
    return {
        'vendor_plans': [dataclasses.asdict(plan) for plan in config.vendor_plans],
        'environments': [dataclasses.asdict(env) for env in config.environments],
        'plan_assignment': dict(config.plan_assignment),
    }


def _parse_fields(data: Any, fields: Dict[str, FieldSpec], path: str, extra_keys=()) -> Dict[str, Any]:
    """Validate a record against its field schema.

    Returns:
        Keyword arguments for the record's constructor; omitted optional
        fields are left out so the dataclass defaults apply.
    """
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a dictionary")

    allowed_keys = set(fields) | set(extra_keys)
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    values = {}
    for name, spec in fields.items():
        value = data.get(name)
        if value is None:
            if spec.required:
                raise ValueError(f"Missing required '{name}' in {path}")
            continue
        values[name] = coerce_value(spec, f"{path}.{name}", value)
    return values


def _parse_id(data: Dict[str, Any], path: str) -> str:
    record_id = data.get('id')
    if not isinstance(record_id, str) or not record_id.strip():
        raise ValueError(f"'id' in {path} must be a non-empty string")
    return record_id


def _parse_plan(data: Any, path: str) -> VendorPlan:
    values = _parse_fields(data, PLAN_FIELDS, path, extra_keys=('id',))
    return VendorPlan(id=_parse_id(data, path), **values)


def _parse_environment(data: Any, path: str) -> Environment:
    values = _parse_fields(data, ENVIRONMENT_FIELDS, path, extra_keys=('id', 'alert_thresholds'))

    thresholds_data = data.get('alert_thresholds')
    if thresholds_data is not None:
        values['alert_thresholds'] = parse_alert_thresholds(
            thresholds_data, f"{path}.alert_thresholds"
        )
    return Environment(id=_parse_id(data, path), **values)


def parse_alert_thresholds(data: Any, path: str, clamp: bool = False) -> AlertThresholds:
    """Parse a {warn, critical} mapping into AlertThresholds."""
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a dictionary")

    unknown_keys = set(data.keys()) - set(THRESHOLD_FIELDS)
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    values = {
        name: coerce_value(spec, f"{path}.{name}", data[name], clamp=clamp)
        for name, spec in THRESHOLD_FIELDS.items()
        if data.get(name) is not None
    }
    return AlertThresholds(**values)


def _check_unique_ids(records, section: str) -> None:
    seen = set()
    for record in records:
        if record.id in seen:
            raise ValueError(f"Duplicate id in {section}: {record.id}")
        seen.add(record.id)
