"""
Database schema initialization for Land iQ.

Contains the SQL schema and initialization logic, kept apart from database.py
so the pool module stays small.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from landiq.observability.logging import get_logger

logger = get_logger(__name__)


def init_database(db_path: Path) -> None:
    """
    Initialize database with schema (idempotent)

    Safe to run multiple times - uses CREATE TABLE IF NOT EXISTS.

    Args:
        db_path: Path to the database file

    Side Effects:
    - Creates the parent directory if needed
    - Creates tables and indexes if they don't exist
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)

    conn.executescript("""
        CREATE TABLE IF NOT EXISTS groups (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            icon TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS categories (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            group_id TEXT NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            source_link TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS people (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            organisation TEXT NOT NULL DEFAULT '',
            role TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS allocations (
            id TEXT PRIMARY KEY,
            category_id TEXT NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
            person_id TEXT NOT NULL REFERENCES people(id) ON DELETE CASCADE,
            is_lead INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category_id TEXT NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
            hours_per_week REAL NOT NULL DEFAULT 0,
            source_link TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS responsibilities (
            id TEXT PRIMARY KEY,
            description TEXT NOT NULL,
            task_id TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            assigned_person_id TEXT REFERENCES people(id) ON DELETE SET NULL,
            estimated_weekly_hours REAL NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS task_allocations (
            id TEXT PRIMARY KEY,
            task_id TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            person_id TEXT NOT NULL REFERENCES people(id) ON DELETE CASCADE,
            is_lead INTEGER NOT NULL DEFAULT 0,
            estimated_weekly_hours REAL NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            UNIQUE(task_id, person_id)
        );

        CREATE TABLE IF NOT EXISTS workflow_tools (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            icon TEXT,
            category TEXT NOT NULL DEFAULT 'general',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS workflows (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            task_id TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            flow_data TEXT NOT NULL DEFAULT '[]',
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS leave (
            id TEXT PRIMARY KEY,
            person_id TEXT NOT NULL REFERENCES people(id) ON DELETE CASCADE,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            leave_type TEXT NOT NULL DEFAULT 'annual'
                CHECK (leave_type IN ('annual', 'sick', 'personal', 'other')),
            description TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL,
            CHECK (end_date >= start_date)
        );

        CREATE TABLE IF NOT EXISTS comments (
            id TEXT PRIMARY KEY,
            parent_type TEXT NOT NULL CHECK (parent_type IN ('task', 'responsibility')),
            parent_id TEXT NOT NULL,
            author_id TEXT NOT NULL,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS notifications (
            id TEXT PRIMARY KEY,
            recipient_id TEXT NOT NULL REFERENCES people(id) ON DELETE CASCADE,
            type TEXT NOT NULL,
            payload TEXT NOT NULL DEFAULT '{}',
            read INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS messages (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            author_email TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS user_roles (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            role TEXT NOT NULL CHECK (role IN ('admin', 'readonly')),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS activity_logs (
            id TEXT PRIMARY KEY,
            user_email TEXT NOT NULL,
            action TEXT NOT NULL,
            entity_type TEXT NOT NULL,
            entity_id TEXT,
            entity_name TEXT,
            metadata TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_categories_group ON categories(group_id);
        CREATE INDEX IF NOT EXISTS idx_allocations_category ON allocations(category_id);
        CREATE INDEX IF NOT EXISTS idx_tasks_category ON tasks(category_id);
        CREATE INDEX IF NOT EXISTS idx_responsibilities_task ON responsibilities(task_id);
        CREATE INDEX IF NOT EXISTS idx_leave_person ON leave(person_id);

        CREATE INDEX IF NOT EXISTS idx_comments_parent
        ON comments(parent_type, parent_id);

        CREATE INDEX IF NOT EXISTS idx_notifications_recipient
        ON notifications(recipient_id, read);

        CREATE INDEX IF NOT EXISTS idx_messages_created ON messages(created_at);
        CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_logs(created_at);
    """)

    conn.commit()
    conn.close()

    logger.info("Database initialized: %s", db_path)


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Validate database has expected schema

    Raises:
        ValueError: If tables or columns are missing
    """
    required_tables = {
        "groups": ["id", "name"],
        "categories": ["id", "name", "group_id"],
        "people": ["id", "name", "email"],
        "allocations": ["id", "category_id", "person_id", "is_lead"],
        "tasks": ["id", "name", "category_id", "hours_per_week"],
        "responsibilities": ["id", "task_id", "assigned_person_id"],
        "task_allocations": ["id", "task_id", "person_id"],
        "workflow_tools": ["id", "name", "category"],
        "workflows": ["id", "task_id", "flow_data"],
        "leave": ["id", "person_id", "start_date", "end_date", "leave_type"],
        "comments": ["id", "parent_type", "parent_id", "author_id"],
        "notifications": ["id", "recipient_id", "payload", "read"],
        "messages": ["id", "user_id", "content"],
        "user_roles": ["id", "email", "role"],
        "activity_logs": ["id", "user_email", "action", "entity_type"],
    }

    cursor = conn.cursor()

    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    existing_tables = {row[0] for row in cursor.fetchall()}

    missing_tables = set(required_tables.keys()) - existing_tables
    if missing_tables:
        raise ValueError(f"Database missing tables: {missing_tables}")

    for table, required_cols in required_tables.items():
        # Identifiers can't be bound as parameters; names come from the dict above
        cursor.execute(f"PRAGMA table_info({table})")
        existing_cols = {row[1] for row in cursor.fetchall()}

        missing_cols = set(required_cols) - existing_cols
        if missing_cols:
            raise ValueError(f"Table '{table}' missing columns: {missing_cols}")

    return True
