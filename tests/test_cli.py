"""
Tests for the CLI interface.
"""
import csv
import io
import json
import os

import pytest
import yaml
from typer.testing import CliRunner

from llm_budget_planner.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from llm_budget_planner.config import editing
from llm_budget_planner.config.defaults import DEFAULT_CONFIG
from llm_budget_planner.config.loader import config_to_dict
from llm_budget_planner.storage.repository import ConfigRepository

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path):
    """Path to a fresh planner database."""
    return str(tmp_path / "planner.db")


class TestCLI:
    """Test CLI commands."""

    def test_init_seeds_defaults(self, db_path):
        result = runner.invoke(app, ["init", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Database initialized successfully" in result.output
        assert ConfigRepository(db_path).get_record() is not None

    def test_init_keeps_existing_state(self, db_path):
        repository = ConfigRepository(db_path)
        repository.save(editing.delete_environment(DEFAULT_CONFIG, "env_2"))

        result = runner.invoke(app, ["init", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert len(repository.load().environments) == 1

    def test_report_default_scenario(self, db_path):
        result = runner.invoke(app, ["report", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "LLM Budget Report" in result.output
        assert "Overall status: RED" in result.output
        assert "may mix currencies" in result.output

    def test_report_enforced_fails_on_red(self, db_path):
        result = runner.invoke(app, ["report", "--db", db_path, "--enforced"])
        assert result.exit_code == EXIT_CODE_FAIL

    def test_report_enforced_passes_on_amber(self, db_path):
        """AMBER is a non-failing warning."""
        config = editing.delete_environment(DEFAULT_CONFIG, "env_2")
        ConfigRepository(db_path).save(
            editing.update_environment(config, "env_1", {"monthly_budget": 15})
        )

        result = runner.invoke(app, ["report", "--db", db_path, "--enforced"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Overall status: AMBER" in result.output

    def test_report_from_yaml(self, tmp_path, db_path):
        data = config_to_dict(editing.delete_environment(DEFAULT_CONFIG, "env_2"))
        config_path = tmp_path / "planner.yaml"
        config_path.write_text(yaml.dump(data), encoding="utf-8")

        result = runner.invoke(app, ["report", "--db", db_path, "--config", str(config_path)])

        assert result.exit_code == EXIT_CODE_PASS
        assert "Overall status: GREEN" in result.output

    def test_report_missing_yaml(self, tmp_path, db_path):
        missing = str(tmp_path / "missing.yaml")
        result = runner.invoke(app, ["report", "--db", db_path, "--config", missing])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error" in result.output

    def test_report_no_environments(self, db_path):
        config = editing.delete_environment(
            editing.delete_environment(DEFAULT_CONFIG, "env_1"), "env_2"
        )
        ConfigRepository(db_path).save(config)

        result = runner.invoke(app, ["report", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert "No environments configured" in result.output

    def test_export_csv(self, tmp_path, db_path):
        output = str(tmp_path / "results.csv")
        result = runner.invoke(app, ["export", "--db", db_path, "--output", output])

        assert result.exit_code == EXIT_CODE_PASS
        with open(output, encoding="utf-8", newline="") as f:
            rows = list(csv.reader(io.StringIO(f.read())))
        assert rows[0][0] == "Environment"
        assert len(rows) == 3

    def test_export_json(self, tmp_path, db_path):
        output = str(tmp_path / "config.json")
        result = runner.invoke(app, ["export", "--format", "json", "--db", db_path, "-o", output])

        assert result.exit_code == EXIT_CODE_PASS
        with open(output, encoding="utf-8") as f:
            data = json.load(f)
        assert data["metadata"]["tool"] == "LLM Budget Planner"
        assert len(data["results"]["perEnv"]) == 2

    def test_export_unknown_format(self, tmp_path, db_path):
        result = runner.invoke(app, ["export", "--format", "xml", "--db", db_path])
        assert result.exit_code == EXIT_CODE_FAIL
        assert not os.path.exists("llm-budget-results.xml")


class TestEditCommands:
    """Test commands that change the stored configuration."""

    def test_set_plan(self, db_path):
        result = runner.invoke(app, ["set-plan", "plan_1", "price_prompt_per_1k", "0.004", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        plan = ConfigRepository(db_path).load().get_plan("plan_1")
        assert plan.price_prompt_per_1k == 0.004

    def test_set_env_invalid_field(self, db_path):
        result = runner.invoke(app, ["set-env", "env_1", "region", "eu", "--db", db_path])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown environment fields" in result.output

    def test_delete_plan_and_report(self, db_path):
        result = runner.invoke(app, ["delete-plan", "plan_2", "--db", db_path])
        assert result.exit_code == EXIT_CODE_PASS

        config = ConfigRepository(db_path).load()
        assert config.plan_assignment["env_2"] == ""

        result = runner.invoke(app, ["report", "--db", db_path, "--enforced"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Overall status: GREEN" in result.output

    def test_add_and_delete_environment(self, db_path):
        runner.invoke(app, ["add-env", "--db", db_path])
        config = ConfigRepository(db_path).load()
        assert len(config.environments) == 3

        new_id = config.environments[-1].id
        result = runner.invoke(app, ["delete-env", new_id, "--db", db_path])
        assert result.exit_code == EXIT_CODE_PASS
        assert len(ConfigRepository(db_path).load().environments) == 2

    def test_add_plan_and_assign(self, db_path):
        runner.invoke(app, ["add-plan", "--db", db_path])
        plan_id = ConfigRepository(db_path).load().vendor_plans[-1].id

        result = runner.invoke(app, ["assign", "env_1", plan_id, "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert ConfigRepository(db_path).load().plan_assignment["env_1"] == plan_id

    def test_assign_unknown_plan(self, db_path):
        result = runner.invoke(app, ["assign", "env_1", "plan_9", "--db", db_path])
        assert result.exit_code == EXIT_CODE_FAIL

    def test_reset(self, db_path):
        runner.invoke(app, ["delete-env", "env_1", "--db", db_path])
        result = runner.invoke(app, ["reset", "--db", db_path])

        assert result.exit_code == EXIT_CODE_PASS
        assert ConfigRepository(db_path).load() == DEFAULT_CONFIG

    def test_set_plan_field_named_like_parameter(self, db_path):
        """A field name matching an internal argument is rejected cleanly."""
        result = runner.invoke(app, ["set-plan", "plan_1", "plan_id", "x", "--db", db_path])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown vendor plan fields" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_set_env_thresholds(self, db_path):
        result = runner.invoke(app, ["set-env", "env_1", "critical", "1.2", "--db", db_path])
        assert result.exit_code == EXIT_CODE_PASS

        result = runner.invoke(app, ["set-env", "env_1", "warn", "0.6", "--db", db_path])
        assert result.exit_code == EXIT_CODE_PASS

        thresholds = ConfigRepository(db_path).load().get_environment("env_1").alert_thresholds
        assert thresholds.warn == 0.6
        assert thresholds.critical == 1.2


class TestLogLevel:
    """Test the global --log-level option."""

    def test_lowercase_level_accepted(self, db_path):
        result = runner.invoke(app, ["--log-level", "debug", "report", "--db", db_path])
        assert result.exit_code == EXIT_CODE_PASS

    def test_unknown_level_is_usage_error(self, db_path):
        result = runner.invoke(app, ["--log-level", "nope", "report", "--db", db_path])

        assert result.exit_code == 2
        assert "Traceback" not in result.output
        assert not isinstance(result.exception, ValueError)
