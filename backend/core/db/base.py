"""
Base repository class for database operations
Provides common database connection and utility methods
"""

import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from core.context import Clock, SystemClock, now_millis
from core.logger import get_logger

logger = get_logger(__name__)


class BaseRepository:
    """
    Base repository class providing common database operations

    All repository classes should inherit from this base class
    to ensure consistent database connection handling and error management.
    """

    def __init__(self, db_path: Path, clock: Optional[Clock] = None):
        """
        Initialize repository with database path

        Args:
            db_path: Path to SQLite database file
            clock: Clock used for created_at / updated_at stamps
        """
        self.db_path = db_path
        self.clock = clock or SystemClock()
        logger.debug(f"Initialized {self.__class__.__name__} with db_path: {db_path}")

    @contextmanager
    def _get_conn(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get database connection with Row factory for dict-like access

        Example:
            with self._get_conn() as conn:
                cursor = conn.execute("SELECT * FROM table")
                rows = cursor.fetchall()
        """
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=30.0,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Connection that commits on success and rolls back on any exception

        Example:
            with self._transaction() as conn:
                conn.execute("DELETE FROM a WHERE ...")
                conn.execute("DELETE FROM b WHERE ...")
        """
        with self._get_conn() as conn:
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def _now(self) -> int:
        return now_millis(self.clock)

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    def _row_to_dict(self, row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
        """
        Convert SQLite Row to dictionary

        Returns:
            Dictionary representation of the row, or None if row is None
        """
        if row is None:
            return None
        return dict(row)

    def _rows_to_dicts(self, rows: List[sqlite3.Row]) -> List[Dict[str, Any]]:
        """Convert list of SQLite Rows to list of dictionaries"""
        return [dict(row) for row in rows]

    def _update_columns(
        self,
        table: str,
        columns: Dict[str, Any],
        key_value: str,
        key_column: str = "id",
    ) -> int:
        """
        Run one UPDATE setting the given columns on rows matching key_column

        Column names come from repository allow-lists, never from callers.

        Returns:
            Number of rows updated (0 when columns is empty)
        """
        if not columns:
            return 0
        assignments = ", ".join(f"{column} = ?" for column in columns)
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET {assignments} WHERE {key_column} = ?",
                (*columns.values(), key_value),
            )
            conn.commit()
            return cursor.rowcount
