"""
Repository pattern for data access.

Loads and saves the planner configuration in the local SQLite store.
"""

import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from llm_budget_planner.config.defaults import default_config
from llm_budget_planner.config.loader import PlannerConfig, config_to_dict, parse_planner_config

from .db import DEFAULT_DB_PATH, get_connection
from .models import STATE_KEY, StateRecord

logger = logging.getLogger(__name__)


class ConfigRepository:
    """Repository for the stored planner configuration.

    The whole configuration is kept as one JSON snapshot. Reads never
    fail on bad data: a missing or unreadable snapshot yields the
    default scenario.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def initialize_schema(self) -> None:
        """Create the planner_state table if it doesn't exist."""
        conn = get_connection(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS planner_state (
                    state_key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def get_record(self) -> Optional[StateRecord]:
        """Get the stored snapshot, or None if nothing has been saved."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT state_key, payload, updated_at FROM planner_state WHERE state_key = ?",
                (STATE_KEY,)
            )
            row = cursor.fetchone()
        except sqlite3.OperationalError as e:
            if "no such table" in str(e).lower():
                return None
            raise
        finally:
            conn.close()

        if row is None:
            return None
        return StateRecord(
            state_key=row[0],
            payload=row[1],
            updated_at=datetime.fromisoformat(row[2])
        )

    def load(self) -> PlannerConfig:
        """Load the stored configuration.

        Returns:
            The stored configuration, or the default scenario when nothing
            is stored or the stored snapshot is invalid
        """
        record = self.get_record()
        if record is None:
            return default_config()

        try:
            return parse_planner_config(json.loads(record.payload))
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.error("Failed to load stored planner state, using defaults: %s", e)
            return default_config()

    def save(self, config: PlannerConfig) -> None:
        """Replace the stored configuration atomically.

        Args:
            config: Configuration to store
        """
        payload = json.dumps(config_to_dict(config))
        self.initialize_schema()
        conn = get_connection(self.db_path)
        try:
            conn.execute("""
                INSERT OR REPLACE INTO planner_state (state_key, payload, updated_at)
                VALUES (?, ?, ?)
            """, (STATE_KEY, payload, datetime.now().isoformat()))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.debug("Saved planner state to %s", self.db_path)

    def reset(self) -> PlannerConfig:
        """Replace the stored configuration with the default scenario."""
        config = default_config()
        self.save(config)
        logger.info("Reset planner state in %s to defaults", self.db_path)
        return config
