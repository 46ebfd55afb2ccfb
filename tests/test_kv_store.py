from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from api.repositories.kv_store import FileKeyValueStore, PostgresKeyValueStore


class _FakeCursor:
    def __init__(self, row) -> None:
        self._row = row

    def fetchone(self):
        return self._row


class _FakeConnection:
    def __init__(self, rows: dict[str, bytes]) -> None:
        self.rows = rows
        self.statements: list[str] = []
        self.commits = 0
        self.closed = False

    def execute(self, query: str, params: tuple = ()):
        self.statements.append(" ".join(query.split()))
        if query.lstrip().startswith("SELECT"):
            value = self.rows.get(params[0])
            return _FakeCursor(None if value is None else {"value": memoryview(value)})
        if query.lstrip().startswith("INSERT"):
            self.rows[params[0]] = params[1]
        return _FakeCursor(None)

    def commit(self) -> None:
        self.commits += 1

    def close(self) -> None:
        self.closed = True


class FileKeyValueStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.directory = Path(self._tmpdir.name) / "cache"

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_read_missing_key_returns_none(self) -> None:
        self.assertIsNone(FileKeyValueStore(self.directory).read("extraction-cache"))

    def test_write_then_read(self) -> None:
        store = FileKeyValueStore(self.directory)
        store.write("extraction-cache", b'{"version": 1}')
        store.write("extraction-cache", b'{"version": 2}')
        self.assertEqual(store.read("extraction-cache"), b'{"version": 2}')
        self.assertEqual(sorted(p.name for p in self.directory.iterdir()), ["extraction-cache.json"])

    def test_unsafe_key_stays_inside_directory(self) -> None:
        store = FileKeyValueStore(self.directory)
        store.write("../escape/key", b"x")
        written = list(self.directory.iterdir())
        self.assertEqual(len(written), 1)
        self.assertEqual(written[0].parent, self.directory)
        self.assertEqual(store.read("../escape/key"), b"x")


class PostgresKeyValueStoreTests(unittest.TestCase):
    def test_round_trip_through_connection(self) -> None:
        rows: dict[str, bytes] = {}
        connections: list[_FakeConnection] = []

        def factory() -> _FakeConnection:
            conn = _FakeConnection(rows)
            connections.append(conn)
            return conn

        store = PostgresKeyValueStore(connection_factory=factory)
        self.assertIsNone(store.read("extraction-cache"))
        store.write("extraction-cache", b"payload")
        self.assertEqual(store.read("extraction-cache"), b"payload")

        self.assertEqual(len(connections), 3)
        self.assertTrue(all(conn.closed for conn in connections))
        # table is created once per store, on first use
        creates = [s for conn in connections for s in conn.statements if s.startswith("CREATE TABLE")]
        self.assertEqual(len(creates), 1)
        self.assertTrue(any("ON CONFLICT (key) DO UPDATE" in s for s in connections[1].statements))


if __name__ == "__main__":
    unittest.main()
