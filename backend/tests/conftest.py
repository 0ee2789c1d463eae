"""
Shared pytest fixtures for backend tests.
Uses a temp-file SQLite database for isolation and a fake extraction
service so no test talks to the real model.
"""
import pytest
import sqlite3
import sys
import os
from datetime import datetime, timedelta, timezone

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
import database

KST = timezone(timedelta(hours=9))
# Tuesday morning in Seoul; 2024-06-10T23:30:00Z
FIXED_NOW = datetime(2024, 6, 11, 8, 30, tzinfo=KST)
TEST_JWT_SECRET = "test-secret-key-with-at-least-32-bytes"


class FakeExtractor:
    """Records prompts and returns a canned object or raises a canned error."""

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else {}
        self.error = error
        self.calls = []

    async def extract(self, prompt, schema):
        self.calls.append((prompt, schema))
        if self.error is not None:
            raise self.error
        return dict(self.result)


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def test_db(monkeypatch, tmp_path):
    """
    Create an isolated test database for each test.
    Uses a temp file (not :memory:) because database.py opens new connections per operation.
    """
    db_path = str(tmp_path / "test.db")
    monkeypatch.setattr(database, "DATABASE_PATH", db_path)

    # Create tables directly (skip alembic for tests)
    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE categories (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL UNIQUE
        );

        INSERT INTO categories (id, name) VALUES (1, '업무'), (2, '개인'), (3, '건강'), (4, '학습');

        CREATE TABLE todos (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT,
            due_date TEXT,
            priority TEXT NOT NULL DEFAULT 'medium',
            category_id INTEGER REFERENCES categories(id),
            is_completed INTEGER DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            completed_at TEXT
        );
    """)
    conn.commit()
    conn.close()

    yield db_path


@pytest.fixture
def auth_secret(monkeypatch):
    monkeypatch.setattr(config, "AUTH_JWT_SECRET", TEST_JWT_SECRET)
    return TEST_JWT_SECRET


@pytest.fixture
def auth_headers(auth_secret):
    """Build Authorization headers for a given user id."""
    from auth import create_access_token

    def _headers(user_id="user-1"):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


@pytest.fixture
def app_client(test_db, auth_secret, fake_extractor, monkeypatch):
    """
    Create a test client for the FastAPI app.
    Mocks init_db to skip alembic migrations and pins the clock.
    """
    from fastapi.testclient import TestClient
    import main

    # Skip alembic in tests - tables already created by test_db fixture
    monkeypatch.setattr(main, "init_db", lambda: None)
    monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "test-key")

    main.app.dependency_overrides[main.get_extractor] = lambda: fake_extractor
    main.app.dependency_overrides[main.get_now] = lambda: FIXED_NOW
    try:
        with TestClient(main.app) as client:
            yield client
    finally:
        main.app.dependency_overrides.clear()
