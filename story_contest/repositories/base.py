"""
Base Repository - Story Contest Platform
story_contest/repositories/base.py

Base repository class with SQLAlchemy connection management and common utilities.
"""

import json
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from story_contest.core.exceptions import (
    DatabaseConnectionException,
    DuplicateEntityException,
    RepositoryException,
)
from story_contest.services.database import get_engine


class BaseRepository:
    """Base repository with SQLAlchemy connection management."""

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine or get_engine()

    @contextmanager
    def transaction(self, conn: Optional[Connection] = None) -> Generator[Connection, None, None]:
        """
        Context manager for a transaction. Commits on exit, rolls back on error.

        When `conn` is given the caller already owns a transaction and it is
        reused as-is.
        """
        if conn is not None:
            yield conn
            return
        try:
            new_conn = self.engine.connect()
        except OperationalError as e:
            raise DatabaseConnectionException(f"Failed to connect to database: {e.orig}")
        try:
            with new_conn.begin():
                yield new_conn
        except OperationalError as e:
            raise RepositoryException(f"Database error: {e.orig}")
        finally:
            new_conn.close()

    def execute_query(
        self,
        sql: str,
        params: Optional[Dict[str, Any]] = None,
        fetch_one: bool = False,
        fetch_all: bool = False,
        conn: Optional[Connection] = None,
    ) -> Optional[Any]:
        """
        Execute a SQL query with error handling.

        Args:
            sql: SQL query string with named (:param) placeholders
            params: Query parameters
            fetch_one: Return single row as dict
            fetch_all: Return all rows as dicts
            conn: Connection of an enclosing transaction; when omitted the
                statement runs in its own committed transaction

        Returns:
            Query results, or the affected row count
        """
        with self.transaction(conn) as active:
            try:
                result = active.execute(text(sql), params or {})

                if fetch_one:
                    row = result.mappings().first()
                    return dict(row) if row is not None else None
                elif fetch_all:
                    return [dict(row) for row in result.mappings().all()]

                return result.rowcount

            except IntegrityError as e:
                error_msg = str(e.orig).upper()
                if "UNIQUE" in error_msg or "DUPLICATE" in error_msg:
                    raise DuplicateEntityException(str(e.orig))
                raise RepositoryException(f"Integrity error: {e.orig}")
            except OperationalError as e:
                raise RepositoryException(f"Database error: {e.orig}")
            except DBAPIError as e:
                raise RepositoryException(f"Query error: {e.orig}")

    def to_db_timestamp(self, dt: Optional[datetime]) -> Optional[str]:
        """Serialize to a fixed-width UTC ISO string so values sort lexically."""
        dt = self.normalize_timestamp(dt)
        return dt.isoformat(timespec="microseconds") if dt else None

    def from_db_timestamp(self, value: Any) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return self.normalize_timestamp(value)
        return self.normalize_timestamp(datetime.fromisoformat(value))

    def normalize_timestamp(self, dt: Optional[datetime]) -> Optional[datetime]:
        """Ensure timestamp is UTC-aware."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    def to_json(self, value: Any) -> str:
        return json.dumps(value, sort_keys=True)

    def from_json(self, value: Optional[str]) -> Any:
        return json.loads(value) if value else None

    def build_update_query(
        self,
        table_name: str,
        update_data: Dict[str, Any],
        where_column: str,
        where_value: Any,
        additional_set: Optional[Dict[str, Any]] = None,
    ) -> tuple[str, Dict[str, Any]]:
        """
        Build a dynamic UPDATE query.

        Args:
            table_name: Name of the table
            update_data: Dictionary of column -> value to update
            where_column: Column name for WHERE clause
            where_value: Value for WHERE clause
            additional_set: Additional SET clauses (e.g., updated_at)

        Returns:
            Tuple of (sql_string, params_dict)
        """
        set_clauses: List[str] = []
        params: Dict[str, Any] = {}

        columns = dict(update_data)
        if additional_set:
            columns.update(additional_set)

        for column, value in columns.items():
            set_clauses.append(f"{column} = :{column}")
            params[column] = value

        params["where_value"] = where_value

        sql = f"""
            UPDATE {table_name}
            SET {', '.join(set_clauses)}
            WHERE {where_column} = :where_value
        """

        return sql, params
