from __future__ import annotations

import api.db


_TEST_TABLES = ("health_log_kv",)


def reset_test_database() -> None:
    conn = api.db.get_connection()
    try:
        api.db.initialize_database(conn)
        for table in _TEST_TABLES:
            conn.execute(f"TRUNCATE TABLE {table}")
        conn.commit()
    finally:
        conn.close()
