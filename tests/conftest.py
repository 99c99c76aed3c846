"""Shared test fixtures for the journal backend."""

import os

import pytest
from fastapi.testclient import TestClient

from journal_website.backend.config import Settings
from journal_website.backend.database import Database
from journal_website.backend.main import create_app
from journal_website.backend.services import AuthService
from journal_website.backend.stores import JsonFileEntryStore, MemoryEntryStore, SQLiteEntryStore

OWNER_A = "usr_alice"
OWNER_B = "usr_bob"


@pytest.fixture
def database(tmp_path):
    db = Database(os.path.join(tmp_path, "journal.db"))
    db.migrate()
    return db


@pytest.fixture
def owners(database):
    """Two bare account rows, enough to satisfy the entries foreign key."""
    with database.connection() as conn:
        for owner in (OWNER_A, OWNER_B):
            conn.execute(
                "INSERT INTO users (id, email, name, password_hash, created_time) VALUES (?, ?, ?, ?, ?)",
                (owner, f"{owner}@example.com", owner, "x", "2024-01-01T00:00:00+00:00"),
            )
    return OWNER_A, OWNER_B


@pytest.fixture(params=["sqlite", "memory", "json"])
def store(request, tmp_path, database, owners):
    if request.param == "sqlite":
        return SQLiteEntryStore(database)
    if request.param == "memory":
        return MemoryEntryStore()
    return JsonFileEntryStore(os.path.join(tmp_path, "entries.json"))


@pytest.fixture
def auth(database):
    return AuthService(database)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_path=os.path.join(tmp_path, "journal.db"),
        json_path=os.path.join(tmp_path, "entries.json"),
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def signed_in_client(app, email, password="secret123", name="Test User"):
    """A fresh client registered and logged in as ``email``; auth rides on the cookie."""
    c = TestClient(app)
    assert c.post("/api/auth/register", json={"email": email, "password": password, "name": name}).status_code == 201
    assert c.post("/api/auth/login", json={"email": email, "password": password}).status_code == 200
    return c


@pytest.fixture
def alice(app):
    with signed_in_client(app, "alice@example.com", name="Alice") as c:
        yield c


@pytest.fixture
def bob(app):
    with signed_in_client(app, "bob@example.com", name="Bob") as c:
        yield c
