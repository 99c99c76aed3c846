"""Tests for journal_website.backend.database."""

import os
import sqlite3

import pytest

from journal_website.backend.database import MIGRATIONS, Database
from journal_website.backend.domain import StoreError


class TestMigrate:
    def test_fresh_database(self, tmp_path):
        db = Database(os.path.join(tmp_path, "fresh.db"))
        assert db.schema_version() == 0
        assert db.migrate() == len(MIGRATIONS)
        with db.connection() as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert {"users", "sessions", "entries"} <= tables

    def test_idempotent(self, database):
        assert database.migrate() == len(MIGRATIONS)
        assert database.schema_version() == len(MIGRATIONS)


class TestConnection:
    def test_commits_on_success(self, database, owners):
        with database.connection() as conn:
            conn.execute("DELETE FROM users WHERE id=?", (owners[0],))
        with database.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 1

    def test_rolls_back_on_error(self, database, owners):
        with pytest.raises(RuntimeError):
            with database.connection() as conn:
                conn.execute("DELETE FROM users")
                raise RuntimeError("boom")
        with database.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 2

    def test_sqlite_errors_become_store_errors(self, database):
        with pytest.raises(StoreError) as info:
            with database.connection() as conn:
                conn.execute("SELECT * FROM no_such_table")
        assert isinstance(info.value.__cause__, sqlite3.Error)

    def test_unopenable_path(self, tmp_path):
        db = Database(os.path.join(tmp_path, "missing", "dir", "journal.db"))
        with pytest.raises(StoreError):
            db.migrate()
