import os
from typing import Callable

from psycopg import Connection, connect
from psycopg.rows import dict_row

# connect to postgres DB
def get_connection():
    database_url = os.getenv("DATABASE_URL", "").strip()
    if not database_url:
        raise RuntimeError("DATABASE_URL is required")
    conn = connect(database_url, row_factory=dict_row)
    return conn

# durable key/value rows backing the extraction cache
def _migration_001_health_log_kv(conn: Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS health_log_kv (
            key TEXT PRIMARY KEY,
            value BYTEA NOT NULL,
            updated_at TEXT
        )
        """
    )


def _apply_migrations(conn: Connection) -> None:
    migrations: list[Callable[[Connection], None]] = [
        _migration_001_health_log_kv,
    ]
    for migration in migrations:
        migration(conn)


def initialize_database(conn: Connection | None = None) -> None:
    owns_connection = conn is None
    if conn is None:
        conn = get_connection()
    try:
        _apply_migrations(conn)
        conn.commit()
    finally:
        if owns_connection:
            conn.close()
