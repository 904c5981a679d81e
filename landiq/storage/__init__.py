"""Storage - database access, repositories and storage errors"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from landiq.infrastructure.database import db_transaction, get_db_connection


class StorageError(Exception):
    """Base exception for repository errors."""

    pass


class NotFoundError(StorageError):
    """Row does not exist (or is not visible to the caller)."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class IntegrityViolation(StorageError):
    """
    A write broke a database constraint.

    ``duplicate`` is True for unique-constraint clashes (HTTP 409); anything
    else (missing reference, failed check) maps to HTTP 400.
    """

    def __init__(self, message: str, duplicate: bool = False) -> None:
        super().__init__(message)
        self.duplicate = duplicate


def integrity_violation_from(error: sqlite3.IntegrityError) -> IntegrityViolation:
    text = str(error)
    if text.startswith("UNIQUE constraint failed"):
        fields = text.partition(":")[2].strip()
        return IntegrityViolation(f"Duplicate value for {fields}", duplicate=True)
    if text.startswith("FOREIGN KEY constraint failed"):
        return IntegrityViolation("Referenced record does not exist")
    return IntegrityViolation(text)


class BaseRepository:
    """Base class for database repositories with common query helpers."""

    def __init__(self, table_name: str) -> None:
        if not isinstance(table_name, str) or not table_name.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {table_name}")
        self.table_name = table_name

    @contextmanager
    def _get_conn(self) -> Generator[sqlite3.Connection, None, None]:
        with get_db_connection() as conn:
            yield conn

    def query_one(self, query: str, params: tuple[Any, ...] | None = None) -> sqlite3.Row | None:
        with self._get_conn() as conn:
            return conn.execute(query, params or ()).fetchone()

    def query_all(self, query: str, params: tuple[Any, ...] | None = None) -> list[sqlite3.Row]:
        with self._get_conn() as conn:
            return conn.execute(query, params or ()).fetchall()

    def execute(self, query: str, params: tuple[Any, ...] | dict[str, Any] | None = None) -> int:
        """
        Execute a write query (INSERT, UPDATE, DELETE)

        Returns:
            Number of rows affected

        Raises:
            IntegrityViolation: If the write breaks a constraint

        Side Effects:
            - Commits transaction automatically (via db_transaction)
            - Rolls back on error
        """
        try:
            with db_transaction() as conn:
                cursor = conn.execute(query, params or ())
                return cursor.rowcount
        except sqlite3.IntegrityError as e:
            raise integrity_violation_from(e) from e


__all__ = [
    "BaseRepository",
    "IntegrityViolation",
    "NotFoundError",
    "StorageError",
    "integrity_violation_from",
]
