# durable key/value stores used to persist the extraction cache
# file store for local runs, postgres store when DATABASE_URL points at a shared database

from __future__ import annotations

import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from api.db import get_connection, initialize_database

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class FileKeyValueStore:
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = _UNSAFE_KEY_CHARS.sub("_", key).strip("._") or "default"
        return self.directory / f"{safe_key}.json"

    def read(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def write(self, key: str, value: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        # write-then-rename; readers never see a partial file
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class PostgresKeyValueStore:
    def __init__(self, connection_factory=get_connection) -> None:
        self._connection_factory = connection_factory
        self._initialized = False

    def _connect(self):
        conn = self._connection_factory()
        if not self._initialized:
            initialize_database(conn)
            self._initialized = True
        return conn

    def read(self, key: str) -> bytes | None:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT value FROM health_log_kv WHERE key = %s",
                (key,),
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return bytes(row["value"])

    def write(self, key: str, value: bytes) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO health_log_kv (key, value, updated_at)
                VALUES (%s, %s, %s)
                ON CONFLICT (key) DO UPDATE
                SET value = EXCLUDED.value, updated_at = EXCLUDED.updated_at
                """,
                (key, value, datetime.now(tz=timezone.utc).isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
