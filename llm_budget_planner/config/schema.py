"""
Field schema for vendor plans and environments.

Shared by the configuration loader (strict) and the edit operations
(clamping), so both agree on types and ranges.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class FieldSpec:
    """Type and allowed range of an editable field."""
    kind: type
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    required: bool = True


PLAN_FIELDS: Dict[str, FieldSpec] = {
    "vendor": FieldSpec(str),
    "plan": FieldSpec(str),
    "currency": FieldSpec(str),
    "price_prompt_per_1k": FieldSpec(float, minimum=0),
    "price_completion_per_1k": FieldSpec(float, minimum=0),
    "monthly_commit_credit": FieldSpec(float, minimum=0, required=False),
    "free_tier_tokens": FieldSpec(float, minimum=0, required=False),
    "overage_multiplier": FieldSpec(float, minimum=0, required=False),
}

ENVIRONMENT_FIELDS: Dict[str, FieldSpec] = {
    "env_name": FieldSpec(str),
    "requests_per_day": FieldSpec(float, minimum=0),
    "avg_tokens_per_request": FieldSpec(float, minimum=0),
    "context_tokens": FieldSpec(float, minimum=0),
    "cache_hit_rate": FieldSpec(float, minimum=0, maximum=1),
    "cache_savings_factor": FieldSpec(float, minimum=0, maximum=1, required=False),
    "completion_share": FieldSpec(float, minimum=0, maximum=1, required=False),
    "days_per_month": FieldSpec(int, minimum=1, maximum=31),
    "budget_currency": FieldSpec(str),
    "monthly_budget": FieldSpec(float, minimum=0),
}

THRESHOLD_FIELDS: Dict[str, FieldSpec] = {
    "warn": FieldSpec(float, minimum=0, required=False),
    "critical": FieldSpec(float, minimum=0, required=False),
}


def coerce_value(spec: FieldSpec, name: str, value: Any, clamp: bool = False) -> Any:
    """Convert a raw value to the field's type and check its range.

    Args:
        spec: Field specification
        name: Field path for error messages
        value: Raw value (numbers may be given as strings)
        clamp: Clamp out-of-range numbers to the bounds instead of failing

    Returns:
        Converted value

    Raises:
        ValueError: If the value has the wrong type or is out of range
    """
    if spec.kind is str:
        if not isinstance(value, str):
            raise ValueError(f"'{name}' must be a string")
        return value

    if isinstance(value, bool):
        raise ValueError(f"'{name}' must be a number")
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            raise ValueError(f"'{name}' must be a number, got {value!r}")
    if not isinstance(value, (int, float)) or math.isnan(value):
        raise ValueError(f"'{name}' must be a number")

    if spec.minimum is not None and value < spec.minimum:
        if not clamp:
            raise ValueError(f"'{name}' must be >= {spec.minimum}")
        value = spec.minimum
    if spec.maximum is not None and value > spec.maximum:
        if not clamp:
            raise ValueError(f"'{name}' must be <= {spec.maximum}")
        value = spec.maximum

    if spec.kind is int:
        if value != int(value):
            raise ValueError(f"'{name}' must be a whole number")
        return int(value)
    return float(value)
