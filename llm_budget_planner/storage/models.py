"""
Data models for storage layer.

Defines the stored planner state record.
"""

from dataclasses import dataclass
from datetime import datetime

STATE_KEY = "llmBudgetPlannerState"


@dataclass(frozen=True)
class StateRecord:
    """Stored snapshot of the planner configuration.

    The payload is the configuration as JSON text, replaced as a whole
    on every save.
    """
    state_key: str
    payload: str
    updated_at: datetime
