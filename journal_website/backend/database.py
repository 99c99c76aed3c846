"""
SQLite access for the journal backend.

Connections are opened per call through ``Database.connection()`` and are
committed, rolled back and closed there, so no caller ever holds one across
two requests. The schema is built from an ordered list of additive steps
tracked in ``PRAGMA user_version``.
"""

import contextlib
import sqlite3
from typing import Iterator, List

from loguru import logger

from .domain import StoreError

MIGRATIONS: List[List[str]] = [
    # 1: accounts and sessions
    [
        """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            password_hash TEXT NOT NULL,
            created_time TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS sessions (
            token TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            created_time TEXT NOT NULL,
            expires_time TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
        )
        """,
    ],
    # 2: entries
    [
        """
        CREATE TABLE IF NOT EXISTS entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id TEXT REFERENCES users (id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            created_time TEXT NOT NULL,
            updated_time TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_entries_owner_id ON entries(owner_id)",
    ],
    # 3: session lookup by account, used on logout-everywhere and cleanup
    [
        "CREATE INDEX IF NOT EXISTS idx_sessions_user_id ON sessions(user_id)",
    ],
]


class Database:
    """Opens scoped connections to one SQLite file."""

    def __init__(self, path: str = "journal.db", timeout: float = 5.0):
        self.path = path
        self.timeout = timeout

    @contextlib.contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """
        Yield a connection inside a transaction.

        Commits when the block exits normally and rolls back otherwise.
        ``sqlite3.Error`` is re-raised as StoreError; other exceptions
        propagate unchanged.
        """
        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout, check_same_thread=False)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {self.path}: {e}") from e
        try:
            conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"Database error: {e}") from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def schema_version(self) -> int:
        with self.connection() as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    def migrate(self) -> int:
        """Apply pending schema steps and return the resulting version."""
        with self.connection() as conn:
            # WAL is persistent per file, so setting it once here is enough
            conn.execute("PRAGMA journal_mode=WAL;")
            current = conn.execute("PRAGMA user_version").fetchone()[0]
            for version, statements in enumerate(MIGRATIONS, start=1):
                if version <= current:
                    continue
                for statement in statements:
                    conn.execute(statement)
                conn.execute(f"PRAGMA user_version = {version}")
                logger.info("Applied schema migration {} to {}", version, self.path)
            return max(current, len(MIGRATIONS))
