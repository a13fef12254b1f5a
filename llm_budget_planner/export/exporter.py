"""
Result export.

Renders portfolio results as CSV and configuration plus results as JSON.
"""

import dataclasses
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from llm_budget_planner.config.loader import PlannerConfig, config_to_dict
from llm_budget_planner.core.portfolio import PortfolioResult
from llm_budget_planner.core.pricing import round_half_up

CSV_FILENAME = "llm-budget-results.csv"
JSON_FILENAME = "llm-budget-config.json"
TOOL_NAME = "LLM Budget Planner"

CSV_HEADERS = [
    "Environment", "Status", "Plan",
    "Final Cost", "Currency", "Budget", "Budget Currency", "Utilization %",
    "Total Tokens", "Prompt Tokens", "Completion Tokens", "Raw Cost",
    "Suggestion",
]


def _quote(text: str) -> str:
    """Quote a text column, doubling embedded quotes."""
    escaped = text.replace('"', '""')
    return f'"{escaped}"'


def results_to_csv(portfolio: PortfolioResult) -> str:
    """Render per-environment results as CSV.

    Environments without a valid plan are left out. Free-text columns
    (environment, plan, suggestion) are always quoted.

    Args:
        portfolio: Aggregated results

    Returns:
        CSV text with CRLF line endings, empty when there are no environments
    """
    if not portfolio.per_env:
        return ""

    lines = [",".join(CSV_HEADERS)]
    for res in portfolio.per_env:
        if res.is_error:
            continue
        row = [
            _quote(res.env_name),
            res.status.value,
            _quote(res.plan_name),
            str(round_half_up(res.final_cost, 2)),
            res.currency,
            str(round_half_up(res.budget, 2)),
            res.budget_currency,
            str(round_half_up(res.utilization * 100, 2)),
            str(round_half_up(res.monthly_tokens)),
            str(round_half_up(res.prompt_tokens)),
            str(round_half_up(res.completion_tokens)),
            str(round_half_up(res.raw_cost, 2)),
            _quote(res.suggestion),
        ]
        lines.append(",".join(row))
    return "".join(line + "\r\n" for line in lines)


def results_to_dict(portfolio: PortfolioResult) -> Dict[str, Any]:
    """Convert portfolio results to JSON-ready data."""
    per_env = []
    for res in portfolio.per_env:
        if res.is_error:
            per_env.append({
                "env_id": res.env_id,
                "env_name": res.env_name,
                "error": res.error,
                "status": res.status,
            })
            continue
        data = dataclasses.asdict(res)
        data["status"] = res.status.value
        per_env.append(data)

    totals = dataclasses.asdict(portfolio.totals)
    totals["currencies"] = sorted(portfolio.totals.currencies)
    return {"perEnv": per_env, "totals": totals}


def export_json(
    config: PlannerConfig,
    portfolio: PortfolioResult,
    exported_at: Optional[datetime] = None,
) -> str:
    """Render configuration and results as an indented JSON document.

    Args:
        config: Configuration the results were computed from
        portfolio: Aggregated results
        exported_at: Export timestamp, defaults to now (UTC)

    Returns:
        JSON text
    """
    exported_at = exported_at or datetime.now(timezone.utc)
    data = {
        "metadata": {
            "exported_at": exported_at.isoformat(),
            "tool": TOOL_NAME,
        },
        "config": config_to_dict(config),
        "results": results_to_dict(portfolio),
    }
    return json.dumps(data, indent=2)
