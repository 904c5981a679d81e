"""SQLite access for Land iQ

Every table lives in one SQLite file (landiq/data/landiq.db, or LANDIQ_DB_PATH).
Repositories borrow connections through get_db_connection() and write
through db_transaction(); writes that may collide with another writer are
wrapped in @retry_on_db_lock().
"""

from __future__ import annotations

import atexit
import os
import random
import sqlite3
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from functools import lru_cache, wraps
from pathlib import Path
from queue import Empty, Full, Queue
from threading import Lock
from typing import Any, TypeVar

from landiq.config import (
    DB_CONNECT_TIMEOUT,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_JITTER,
    DB_RETRY_MAX,
    DB_RETRY_MAX_DELAY,
)
from landiq.observability.logging import get_logger
from landiq.observability.telemetry import counter, log_event

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "landiq.db"

logger = get_logger(__name__)


def is_lock_error(error: sqlite3.OperationalError) -> bool:
    """SQLITE_BUSY / SQLITE_LOCKED surface as OperationalError with these words."""
    text = str(error).lower()
    return "locked" in text or "busy" in text


def backoff_delay(attempt: int, base: float, cap: float, jitter: float = DB_RETRY_JITTER) -> float:
    """Exponential delay for a zero-based attempt, capped, plus up to ``jitter`` of itself."""
    delay = min(base * (2**attempt), cap)
    return delay + random.uniform(0, delay * jitter)


def retry_on_db_lock(
    max_retries: int = DB_RETRY_MAX,
    base_delay: float = DB_RETRY_BASE_DELAY,
    max_delay: float = DB_RETRY_MAX_DELAY,
) -> Callable[[F], F]:
    """
    Retry a repository write while the database is locked by another writer.

    Other OperationalErrors propagate on the first failure; the lock error
    itself propagates once ``max_retries`` retries are used up.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except sqlite3.OperationalError as e:
                    if not is_lock_error(e):
                        raise
                    if attempt >= max_retries:
                        counter("database.lock_retry_exhausted")
                        logger.error("%s gave up after %d lock retries", func.__qualname__, attempt)
                        raise

                    delay = backoff_delay(attempt, base_delay, max_delay)
                    attempt += 1
                    logger.warning(
                        "Database locked in %s (retry %d/%d in %.2fs)",
                        func.__qualname__,
                        attempt,
                        max_retries,
                        delay,
                    )
                    time.sleep(delay)

        return wrapper  # type: ignore[return-value]

    return decorator


class ConnectionPool:
    """
    Bounded pool of SQLite connections, opened lazily up to ``size``.

    Connections use WAL journaling, enforce foreign keys (the cascades and
    SET NULL rules depend on it) and return sqlite3.Row rows.
    """

    def __init__(self, db_path: Path, size: int = DB_POOL_SIZE) -> None:
        self.db_path = db_path
        self.size = size
        self._idle: Queue[sqlite3.Connection] = Queue(maxsize=size)
        self._opened = 0
        self._lock = Lock()
        self.closed = False

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=DB_CONNECT_TIMEOUT, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        return conn

    def acquire(self) -> sqlite3.Connection:
        """
        Raises:
            RuntimeError: If the pool is closed, or no connection frees up
                within DB_POOL_TIMEOUT seconds
        """
        if self.closed:
            raise RuntimeError("Connection pool has been closed")

        try:
            return self._idle.get_nowait()
        except Empty:
            pass

        with self._lock:
            can_open = self._opened < self.size
            if can_open:
                self._opened += 1
        if can_open:
            try:
                return self._open()
            except sqlite3.Error:
                with self._lock:
                    self._opened -= 1
                raise

        try:
            return self._idle.get(timeout=DB_POOL_TIMEOUT)
        except Empty:
            log_event("database.pool_exhausted", pool_size=self.size)
            raise RuntimeError(
                f"No database connection free after {DB_POOL_TIMEOUT}s (pool_size={self.size})"
            ) from None

    def release(self, conn: sqlite3.Connection) -> None:
        if self.closed:
            conn.close()
            return
        try:
            self._idle.put_nowait(conn)
        except Full:
            conn.close()

    def close(self) -> None:
        self.closed = True
        while True:
            try:
                self._idle.get_nowait().close()
            except Empty:
                break

    def status(self) -> dict[str, Any]:
        idle = self._idle.qsize()
        return {"size": self.size, "opened": self._opened, "idle": idle, "closed": self.closed}


def get_db_path() -> Path:
    if env_path := os.getenv("LANDIQ_DB_PATH"):
        return Path(env_path)
    return DEFAULT_DB_PATH


@lru_cache(maxsize=1)
def get_pool() -> ConnectionPool:
    pool = ConnectionPool(get_db_path())
    atexit.register(pool.close)
    return pool


def reset_pool() -> None:
    """Close and forget the pool, so the next call picks up LANDIQ_DB_PATH again."""
    if get_pool.cache_info().currsize:
        get_pool().close()
    get_pool.cache_clear()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Borrow a pooled connection for reads.

    Raises:
        FileNotFoundError: If the database file doesn't exist (run init_database first)
    """
    db_path = get_db_path()
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}")

    pool = get_pool()
    conn = pool.acquire()
    try:
        yield conn
    finally:
        pool.release(conn)


@contextmanager
def db_transaction() -> Generator[sqlite3.Connection, None, None]:
    """Borrow a connection; commit when the block succeeds, roll back otherwise."""
    with get_db_connection() as conn:
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise


def init_database() -> None:
    from landiq.infrastructure.database_schema import init_database as _init_database

    _init_database(get_db_path())


def validate_schema() -> bool:
    """
    Raises:
        ValueError: If a table or column is missing
    """
    from landiq.infrastructure.database_schema import validate_schema as _validate_schema

    with get_db_connection() as conn:
        return _validate_schema(conn)
