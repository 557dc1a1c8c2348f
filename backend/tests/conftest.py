"""Core test fixtures.

Provides reusable fixtures for Flask test client, database cleanup,
API mocking, fake mailboxes and test data loading.

CRITICAL: All tests use an in-memory SQLite database. DATABASE_URL is forced
before any application module is imported, so tests never touch the
PostgreSQL database configured in .env.
"""

import os
import tempfile
from pathlib import Path

import pytest
import responses
from cryptography.fernet import Fernet
from flask import Flask
from sqlalchemy import text

# CRITICAL: Set test mode BEFORE importing database modules
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="order_tracker_logs_")
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture(scope="session")
def test_engine():
    """Create all tables on the in-memory test database.

    Yields:
        Engine: SQLAlchemy engine used by the application
    """
    from database import engine, init_db

    if engine.url.get_backend_name() != "sqlite":
        raise RuntimeError(
            f"CRITICAL SAFETY VIOLATION: tests must run on SQLite, got '{engine.url.get_backend_name()}'"
        )

    init_db()
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    """Create a fresh database session for each test.

    Yields:
        Session: SQLAlchemy session bound to the test database
    """
    from database import SessionLocal

    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clean_db(db_session):
    """Clean database state for each test.

    Deletes all rows from every application table.

    Returns:
        Session: Clean database session
    """
    for table in ("tracked_orders", "mailbox_connections"):
        db_session.execute(text(f"DELETE FROM {table}"))
    db_session.commit()

    return db_session


# ============================================================================
# FLASK TEST CLIENT FIXTURES
# ============================================================================


@pytest.fixture(scope="session")
def app(test_engine) -> Flask:
    """Flask app with test configuration.

    Returns:
        Flask: Configured Flask application instance
    """
    from app import app as flask_app

    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app: Flask, clean_db):
    """Flask test client against a clean database.

    Example:
        def test_health_endpoint(client):
            response = client.get('/api/health')
            assert response.status_code == 200
    """
    return app.test_client()


# ============================================================================
# API MOCKING FIXTURES
# ============================================================================


@pytest.fixture
def mock_responses():
    """Enable HTTP request mocking.

    Yields:
        RequestsMock: HTTP request mocking context manager
    """
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def no_sleep(monkeypatch):
    """Disable rate-limit and backoff sleeps in the Gmail client."""
    from order_mail import gmail_client

    monkeypatch.setattr(gmail_client.time, "sleep", lambda seconds: None)


class FakeMailbox:
    """In-memory mailbox collaborator.

    Args:
        messages: RawMessage objects, fetchable by id
        search_results: query -> list of message ids (default: all, for any query)
        failing_queries: queries whose search raises
        missing_ids: ids whose fetch returns None
    """

    def __init__(self, messages=(), search_results=None, failing_queries=(), missing_ids=()):
        from order_mail.parsing import MessageRef

        self._ref_cls = MessageRef
        self.messages = {message.id: message for message in messages}
        self.search_results = search_results
        self.failing_queries = set(failing_queries)
        self.missing_ids = set(missing_ids)
        self.searched = []
        self.fetched = []

    def search(self, query, max_results=50):
        self.searched.append(query)
        if query in self.failing_queries:
            raise ConnectionError(f"search failed: {query}")

        if self.search_results is None:
            ids = list(self.messages)
        else:
            ids = self.search_results.get(query, [])
        return [self._ref_cls(id=message_id) for message_id in ids[:max_results]]

    def fetch(self, ref):
        self.fetched.append(ref.id)
        if ref.id in self.missing_ids:
            return None
        return self.messages.get(ref.id)


@pytest.fixture
def fake_mailbox():
    """Factory for in-memory mailboxes."""
    return FakeMailbox


# ============================================================================
# TEST DATA HELPERS
# ============================================================================


def _read_email_fixture(fixture_name: str) -> str:
    file_path = FIXTURES_DIR / "sample_emails" / fixture_name
    if not file_path.exists():
        raise FileNotFoundError(f"Email fixture not found: {file_path}")

    with open(file_path, encoding="utf-8") as f:
        return f.read()


@pytest.fixture
def load_email_fixture():
    """Load email HTML fixture from fixtures/sample_emails.

    Example:
        def test_parse(load_email_fixture):
            html = load_email_fixture('tiktok_shipped.html')
    """
    return _read_email_fixture
