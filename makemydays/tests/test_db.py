from __future__ import annotations

from typing import List

import pytest

from makemydays.core import db


class FakeCursor:
    def __init__(self, statements: List[str]) -> None:
        self._statements = statements

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, statement: str) -> None:
        self._statements.append(" ".join(statement.split()))


class FakeConnection:
    def __init__(self) -> None:
        self.statements: List[str] = []
        self.committed = False

    def cursor(self):
        return FakeCursor(self.statements)

    def commit(self) -> None:
        self.committed = True


def test_ensure_application_tables_creates_document_tables():
    connection = FakeConnection()

    db.ensure_application_tables(connection)

    assert connection.committed
    for table in ("events", "bookings", "users"):
        assert any(s.startswith(f"CREATE TABLE IF NOT EXISTS {table} (") for s in connection.statements)
    assert any("bookings_user_idx" in s for s in connection.statements)


def test_ensure_application_tables_installs_commit_function():
    connection = FakeConnection()

    db.ensure_application_tables(connection)

    function = [s for s in connection.statements if "FUNCTION commit_documents" in s]
    assert len(function) == 1
    assert "ERRCODE = '40001'" in function[0]
    assert "IF target NOT IN ('events', 'bookings', 'users')" in function[0]
    assert "WHERE id = $1 AND revision = $4" in function[0]


def test_get_connection_requires_dsn(monkeypatch):
    monkeypatch.delenv("SUPABASE_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError):
        db.get_connection()
