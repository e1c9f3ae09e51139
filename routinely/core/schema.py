"""SQLite schema (code-first approach)."""

import logging

from routinely.core import db_client


logger = logging.getLogger(__name__)


# Table name -> CREATE TABLE statement. Ordered so referenced tables come first.
TABLE_SCHEMAS: dict[str, str] = {
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            image TEXT,
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "roles": """
        CREATE TABLE IF NOT EXISTS roles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id),
            type TEXT NOT NULL CHECK (type IN ('PARENT', 'TEACHER')),
            status TEXT NOT NULL DEFAULT 'ACTIVE',
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "persons": """
        CREATE TABLE IF NOT EXISTS persons (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            role_id INTEGER NOT NULL REFERENCES roles(id),
            name TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'ACTIVE',
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "groups": """
        CREATE TABLE IF NOT EXISTS groups (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            role_id INTEGER NOT NULL REFERENCES roles(id),
            name TEXT NOT NULL,
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "routines": """
        CREATE TABLE IF NOT EXISTS routines (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            role_id INTEGER NOT NULL REFERENCES roles(id),
            group_id INTEGER REFERENCES groups(id),
            name TEXT NOT NULL,
            type TEXT NOT NULL DEFAULT 'REGULAR',
            status TEXT NOT NULL DEFAULT 'ACTIVE',
            visibility TEXT NOT NULL DEFAULT 'ALWAYS',
            visible_days TEXT NOT NULL DEFAULT '[]',
            start_date TEXT,
            end_date TEXT,
            is_teacher_only INTEGER NOT NULL DEFAULT 0,
            is_protected INTEGER NOT NULL DEFAULT 0,
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            routine_id INTEGER NOT NULL REFERENCES routines(id),
            name TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'ACTIVE',
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "conditions": """
        CREATE TABLE IF NOT EXISTS conditions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            routine_id INTEGER NOT NULL REFERENCES routines(id),
            operator TEXT NOT NULL,
            value TEXT,
            target_task_id INTEGER REFERENCES tasks(id),
            target_routine_id INTEGER REFERENCES routines(id),
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "co_parents": """
        CREATE TABLE IF NOT EXISTS co_parents (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            primary_role_id INTEGER NOT NULL REFERENCES roles(id),
            co_parent_role_id INTEGER NOT NULL REFERENCES roles(id),
            permissions TEXT NOT NULL,
            person_ids TEXT NOT NULL DEFAULT '[]',
            status TEXT NOT NULL DEFAULT 'ACTIVE',
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "co_teachers": """
        CREATE TABLE IF NOT EXISTS co_teachers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            group_id INTEGER NOT NULL REFERENCES groups(id),
            teacher_role_id INTEGER NOT NULL REFERENCES roles(id),
            co_teacher_role_id INTEGER NOT NULL REFERENCES roles(id),
            permissions TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'ACTIVE',
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "person_sharing_connections": """
        CREATE TABLE IF NOT EXISTS person_sharing_connections (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_role_id INTEGER NOT NULL REFERENCES roles(id),
            owner_person_id INTEGER,
            shared_with_role_id INTEGER NOT NULL REFERENCES roles(id),
            share_type TEXT NOT NULL DEFAULT 'PERSON',
            permissions TEXT NOT NULL DEFAULT 'VIEW',
            status TEXT NOT NULL DEFAULT 'ACTIVE',
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "visibility_overrides": """
        CREATE TABLE IF NOT EXISTS visibility_overrides (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            routine_id INTEGER NOT NULL REFERENCES routines(id),
            duration INTEGER NOT NULL,
            expires_at TEXT NOT NULL,
            created TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "task_completions": """
        CREATE TABLE IF NOT EXISTS task_completions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            task_id INTEGER NOT NULL REFERENCES tasks(id),
            person_id INTEGER NOT NULL REFERENCES persons(id),
            completed_at TEXT NOT NULL,
            value TEXT
        )
    """,
}

INDEXES: list[str] = [
    "CREATE INDEX IF NOT EXISTS idx_persons_role ON persons (role_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_conditions_routine ON conditions (routine_id)",
    "CREATE INDEX IF NOT EXISTS idx_co_parents_primary ON co_parents (primary_role_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_co_teachers_group ON co_teachers (group_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_sharing_person ON person_sharing_connections (owner_person_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_sharing_target ON person_sharing_connections (shared_with_role_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_overrides_routine ON visibility_overrides (routine_id)",
    "CREATE INDEX IF NOT EXISTS idx_completions_person ON task_completions (person_id, completed_at)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes if they do not exist."""
    conn = await db_client.get_connection(db_path=db_path)

    for table_name, ddl in TABLE_SCHEMAS.items():
        await conn.execute(ddl)
        logger.debug("Ensured table", extra={"table": table_name})

    for index_sql in INDEXES:
        await conn.execute(index_sql)

    await conn.commit()
    logger.info("Database schema initialized", extra={"tables": len(TABLE_SCHEMAS)})
