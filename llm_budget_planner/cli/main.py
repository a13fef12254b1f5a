"""
CLI interface for LLM Budget Planner.

Provides command-line access to the planner store, reports and exports.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from llm_budget_planner.config import editing
from llm_budget_planner.config.loader import PlannerConfig, load_planner_config
from llm_budget_planner.core.alerts import AlertStatus
from llm_budget_planner.core.portfolio import PortfolioResult, aggregate
from llm_budget_planner.export.exporter import (
    CSV_FILENAME,
    JSON_FILENAME,
    export_json,
    results_to_csv,
)
from llm_budget_planner.storage.db import DEFAULT_DB_PATH
from llm_budget_planner.storage.repository import ConfigRepository

app = typer.Typer()
console = Console()

# Exit codes - AMBER is non-failing (0)
EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

DB_OPTION = typer.Option(DEFAULT_DB_PATH, "--db", help="Path to the planner database")
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Read configuration from a YAML file instead of the database"
)


class LogLevel(str, Enum):
    """Accepted --log-level values."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    log_level: LogLevel = typer.Option(
        LogLevel.WARNING,
        "--log-level",
        case_sensitive=False,
        help="Logging level"
    )
):
    """LLM Budget Planner CLI."""
    logging.basicConfig(
        level=log_level.value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if ctx.invoked_subcommand is None:
        console.print("LLM Budget Planner - Use --help to see available commands")


def _load_config(db: str, config_path: Optional[str]) -> PlannerConfig:
    if config_path:
        return load_planner_config(config_path)
    return ConfigRepository(db).load()


def _calculate(config: PlannerConfig) -> PortfolioResult:
    return aggregate(config.environments, config.vendor_plans, config.plan_assignment)


def _edit(db: str, operation, *args, **kwargs) -> None:
    """Apply an edit operation to the stored configuration and save it."""
    repository = ConfigRepository(db)
    try:
        config = operation(repository.load(), *args, **kwargs)
        repository.save(config)
    except ValueError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print("[green]✓[/] Configuration updated")


@app.command()
def init(db: str = DB_OPTION):
    """Initialize the planner database with the default scenario."""
    try:
        repository = ConfigRepository(db)
        repository.initialize_schema()
        if repository.get_record() is None:
            repository.save(repository.load())
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def reset(db: str = DB_OPTION):
    """Reset all plans and environments to the default scenario."""
    ConfigRepository(db).reset()
    console.print("[green]✓[/] Configuration reset to defaults")


@app.command()
def report(
    db: str = DB_OPTION,
    config_path: Optional[str] = CONFIG_OPTION,
    enforced: bool = typer.Option(
        False,
        "--enforced",
        "-e",
        help="Exit with error code if any environment is over budget (RED)"
    )
):
    """
    Report projected monthly cost and budget status per environment.

    Costs are projections from the configured usage profiles. Totals are
    a naive sum and may mix currencies.
    """
    try:
        result = _calculate(_load_config(db, config_path))
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if not result.per_env:
        console.print("\n[bold yellow]No environments configured[/]")
        console.print("Run `llm-budget-planner add-env` to add one.\n")
        sys.exit(EXIT_CODE_PASS)

    _display_report(result)

    if enforced and result.overall_status == AlertStatus.RED:
        sys.exit(EXIT_CODE_FAIL)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def export(
    fmt: str = typer.Option("csv", "--format", "-f", help="Export format: csv or json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file path"),
    db: str = DB_OPTION,
    config_path: Optional[str] = CONFIG_OPTION
):
    """Export results as CSV, or configuration and results as JSON."""
    fmt = fmt.lower()
    if fmt not in ("csv", "json"):
        console.print(f"[red]Error:[/] Unsupported format: {fmt}")
        sys.exit(EXIT_CODE_FAIL)

    try:
        config = _load_config(db, config_path)
        result = _calculate(config)
        if fmt == "csv":
            content = results_to_csv(result)
            path = Path(output or CSV_FILENAME)
        else:
            content = export_json(config, result)
            path = Path(output or JSON_FILENAME)
        path.write_text(content, encoding="utf-8", newline="")
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"[green]✓[/] Exported {fmt.upper()} to {path}")


@app.command("add-plan")
def add_plan(db: str = DB_OPTION):
    """Add a vendor plan from the default template."""
    _edit(db, editing.add_vendor_plan)


@app.command("add-env")
def add_env(db: str = DB_OPTION):
    """Add an environment from the default template."""
    _edit(db, editing.add_environment)


@app.command("delete-plan")
def delete_plan(plan_id: str, db: str = DB_OPTION):
    """Delete a vendor plan and unassign it from all environments."""
    _edit(db, editing.delete_vendor_plan, plan_id)


@app.command("delete-env")
def delete_env(env_id: str, db: str = DB_OPTION):
    """Delete an environment and its plan assignment."""
    _edit(db, editing.delete_environment, env_id)


@app.command()
def assign(env_id: str, plan_id: str, db: str = DB_OPTION):
    """Assign a plan to an environment ("" to unassign)."""
    _edit(db, editing.assign_plan, env_id, plan_id)


@app.command("set-plan")
def set_plan(plan_id: str, field: str, value: str, db: str = DB_OPTION):
    """Set one field of a vendor plan."""
    _edit(db, editing.update_vendor_plan, plan_id, {field: value})


@app.command("set-env")
def set_env(env_id: str, field: str, value: str, db: str = DB_OPTION):
    """Set one field of an environment (`warn` and `critical` set alert thresholds)."""
    _edit(db, editing.update_environment, env_id, {field: value})


def _format_money(amount: float, currency: str) -> str:
    """Format an amount with its currency code."""
    return f"{currency} {amount:,.2f}"


def _format_tokens(tokens: float) -> str:
    return f"{tokens:,.0f}"


_STATUS_STYLES = {
    AlertStatus.GREEN: "green",
    AlertStatus.AMBER: "yellow",
    AlertStatus.RED: "red",
}


def _display_report(result: PortfolioResult):
    """Display per-environment results, totals and suggestions."""
    console.print("\n[bold]LLM Budget Report[/bold]")
    console.print("-" * 40)

    table = Table()
    table.add_column("Environment")
    table.add_column("Status")
    table.add_column("Final Cost / Month", justify="right")
    table.add_column("Budget", justify="right")
    table.add_column("Utilization", justify="right")
    table.add_column("Tokens / Month", justify="right")
    table.add_column("Raw Cost", justify="right")

    for res in result.per_env:
        if res.is_error:
            table.add_row(res.env_name, f"[red]{res.error}[/]", "", "", "", "", "")
            continue

        budget = _format_money(res.budget, res.budget_currency)
        if res.currency_mismatch:
            budget += " [red](currency mismatch)[/]"
        style = _STATUS_STYLES[res.status]
        table.add_row(
            f"{res.env_name}\n[dim]{res.plan_name}[/]",
            f"[{style}]{res.status.value}[/]",
            _format_money(res.final_cost, res.currency),
            budget,
            f"{res.utilization * 100:.1f}%",
            _format_tokens(res.monthly_tokens),
            _format_money(res.raw_cost, res.currency),
        )

    totals = result.totals
    table.add_row(
        "[bold]Total[/]",
        "",
        f"{totals.final_cost:,.2f}*",
        f"{totals.budget:,.2f}*",
        "",
        _format_tokens(totals.total_tokens),
        f"{totals.raw_cost:,.2f}*",
    )
    console.print(table)
    console.print("[dim]*Totals are a naive sum and may mix currencies.[/]")

    for res in result.per_env:
        if not res.is_error and res.suggestion:
            console.print(f"\n[bold]{res.env_name}:[/bold] {res.suggestion}")

    console.print(f"\nOverall status: {result.overall_status.value}")


if __name__ == "__main__":
    app()
