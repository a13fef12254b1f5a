"""
Unit tests for storage layer.

Tests schema creation, saving, loading and fallback to defaults.
"""

import logging
import os
import tempfile

import pytest

from llm_budget_planner.config import editing
from llm_budget_planner.config.defaults import DEFAULT_CONFIG
from llm_budget_planner.storage.db import get_connection
from llm_budget_planner.storage.models import STATE_KEY
from llm_budget_planner.storage.repository import ConfigRepository


@pytest.fixture
def repository():
    """Repository backed by a temporary database."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield ConfigRepository(os.path.join(temp_dir, "test.db"))


def _write_payload(db_path: str, payload: str) -> None:
    conn = get_connection(db_path)
    try:
        conn.execute(
            "INSERT OR REPLACE INTO planner_state (state_key, payload, updated_at) VALUES (?, ?, ?)",
            (STATE_KEY, payload, "2024-01-01T12:00:00")
        )
        conn.commit()
    finally:
        conn.close()


class TestStorageSchema:
    """Test database schema creation and structure."""

    def test_schema_creation(self, repository):
        """Verify table is created correctly."""
        repository.initialize_schema()

        conn = get_connection(repository.db_path)
        try:
            cursor = conn.execute("PRAGMA table_info(planner_state)")
            column_names = [col[1] for col in cursor.fetchall()]
            assert column_names == ['state_key', 'payload', 'updated_at']
        finally:
            conn.close()

    def test_initialize_is_idempotent(self, repository):
        repository.initialize_schema()
        repository.initialize_schema()
        assert repository.get_record() is None


class TestLoadAndSave:
    """Test configuration persistence."""

    def test_load_without_table_returns_defaults(self, repository):
        assert repository.get_record() is None
        assert repository.load() == DEFAULT_CONFIG

    def test_save_then_load(self, repository):
        config = editing.update_environment(DEFAULT_CONFIG, "env_1", {"monthly_budget": 99})
        config = editing.delete_vendor_plan(config, "plan_2")
        repository.save(config)

        loaded = repository.load()
        assert loaded == config
        assert loaded.get_environment("env_1").monthly_budget == 99
        assert loaded.plan_assignment["env_2"] == ""

    def test_save_replaces_snapshot(self, repository):
        repository.save(DEFAULT_CONFIG)
        repository.save(editing.delete_environment(DEFAULT_CONFIG, "env_2"))

        conn = get_connection(repository.db_path)
        try:
            count = conn.execute("SELECT COUNT(*) FROM planner_state").fetchone()[0]
        finally:
            conn.close()
        assert count == 1
        assert len(repository.load().environments) == 1

    def test_record_fields(self, repository):
        repository.save(DEFAULT_CONFIG)
        record = repository.get_record()
        assert record.state_key == STATE_KEY
        assert '"vendor_plans"' in record.payload
        assert record.updated_at is not None

    def test_reset(self, repository):
        repository.save(editing.delete_environment(DEFAULT_CONFIG, "env_1"))
        assert repository.reset() == DEFAULT_CONFIG
        assert repository.load() == DEFAULT_CONFIG


class TestCorruptState:
    """Test fallback when stored state is unusable."""

    def test_invalid_json_falls_back(self, repository, caplog):
        repository.initialize_schema()
        _write_payload(repository.db_path, "{not json")

        with caplog.at_level(logging.ERROR):
            assert repository.load() == DEFAULT_CONFIG
        assert "Failed to load stored planner state" in caplog.text

    def test_missing_sections_fall_back(self, repository):
        repository.initialize_schema()
        _write_payload(repository.db_path, '{"vendor_plans": []}')
        assert repository.load() == DEFAULT_CONFIG


class TestDefaultIsolation:
    """Test that loaded defaults never share state with the seed scenario."""

    def test_loaded_assignment_is_a_copy(self, repository):
        config = repository.load()
        config.plan_assignment["env_1"] = "plan_2"

        assert DEFAULT_CONFIG.plan_assignment["env_1"] == "plan_1"
        assert repository.load().plan_assignment["env_1"] == "plan_1"

    def test_reset_assignment_is_a_copy(self, repository):
        config = repository.reset()
        config.plan_assignment.clear()

        assert DEFAULT_CONFIG.plan_assignment == {"env_1": "plan_1", "env_2": "plan_2"}
