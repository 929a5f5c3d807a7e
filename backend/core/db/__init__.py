"""
Database module - Repository pattern implementation

This module provides:
1. Individual Repository classes for each collection (users, habits, logs, events, sessions)
2. Unified DatabaseManager that aggregates all repositories
3. Global get_db() and switch_database() functions for easy access
"""

import sqlite3
from pathlib import Path
from typing import Dict, Optional

from core.context import Clock
from core.logger import get_logger
from core.sqls import schema

from .base import BaseRepository
from .events import EventsRepository
from .habit_logs import HabitLogsRepository
from .habits import HabitsRepository
from .planning_sessions import PlanningSessionsRepository
from .users import UsersRepository

logger = get_logger(__name__)


class DatabaseManager:
    """
    Unified database manager that provides access to all repositories

    Example:
        db = get_db()
        habits = await db.habits.list_active(user_id)
        await db.habit_logs.upsert(habit_id, user_id, "2024-01-03", True)
    """

    def __init__(self, db_path: Path, clock: Optional[Clock] = None):
        """
        Initialize DatabaseManager with all repositories

        Args:
            db_path: Path to SQLite database file
            clock: Clock used for record timestamps (system clock by default)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._initialize_database()

        self.users = UsersRepository(self.db_path, clock)
        self.habits = HabitsRepository(self.db_path, clock)
        self.habit_logs = HabitLogsRepository(self.db_path, clock)
        self.events = EventsRepository(self.db_path, clock)
        self.planning_sessions = PlanningSessionsRepository(self.db_path, clock)

        logger.debug(f"✓ DatabaseManager initialized with path: {self.db_path}")

    def _initialize_database(self):
        """Create all tables and indexes if they do not exist yet"""
        try:
            conn = sqlite3.connect(str(self.db_path))
            try:
                cursor = conn.cursor()
                for table_sql in schema.ALL_TABLES:
                    cursor.execute(table_sql)
                for index_sql in schema.ALL_INDEXES:
                    cursor.execute(index_sql)
                conn.commit()
            finally:
                conn.close()

            logger.debug(
                f"✓ Database schema initialized: {len(schema.ALL_TABLES)} tables, "
                f"{len(schema.ALL_INDEXES)} indexes"
            )
        except Exception as e:
            logger.error(f"Failed to initialize database schema: {e}", exc_info=True)
            raise

    def get_table_counts(self) -> Dict[str, int]:
        """Return row counts for every table"""
        counts: Dict[str, int] = {}
        tables = ("users", "habits", "habit_logs", "calendar_events", "planning_sessions")
        conn = sqlite3.connect(str(self.db_path))
        try:
            for table in tables:
                counts[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        finally:
            conn.close()
        return counts


# Global database manager instance
_db_manager: Optional[DatabaseManager] = None


def get_db() -> DatabaseManager:
    """
    Get global DatabaseManager instance

    The database path is read from config.toml (database.path),
    or defaults to ~/.config/day-planner/planner.db
    """
    global _db_manager

    if _db_manager is None:
        from core.settings import get_settings

        db_path = get_settings().get_database_path()
        _db_manager = DatabaseManager(db_path)
        logger.debug(f"✓ Global DatabaseManager initialized: {db_path}")

    return _db_manager


def switch_database(new_db_path: str, clock: Optional[Clock] = None) -> bool:
    """
    Switch the global database to a new path at runtime

    Returns:
        True if switch successful, False otherwise
    """
    global _db_manager

    try:
        new_path = Path(new_db_path)

        if _db_manager is not None and _db_manager.db_path.resolve() == new_path.resolve():
            logger.debug(f"New path is same as current, no switch needed: {new_db_path}")
            return True

        _db_manager = DatabaseManager(new_path, clock)
        logger.debug(f"✓ Database switched to: {new_db_path}")
        return True

    except Exception as e:
        logger.error(f"Failed to switch database: {e}", exc_info=True)
        return False


__all__ = [
    "BaseRepository",
    "UsersRepository",
    "HabitsRepository",
    "HabitLogsRepository",
    "EventsRepository",
    "PlanningSessionsRepository",
    "DatabaseManager",
    "get_db",
    "switch_database",
]
