# backend/database/base.py
"""
SQLAlchemy Base and Engine Configuration

Provides the declarative base for all models and engine factory.

CRITICAL SAFETY: When TESTING=true, this module ONLY connects to the test
database (order_tracker_test) unless DATABASE_URL points elsewhere explicitly.
"""

import logging
import os
from contextlib import contextmanager

from dotenv import load_dotenv
from sqlalchemy import URL, create_engine, make_url
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import OperationalError, TimeoutError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

load_dotenv(override=False)

logger = logging.getLogger(__name__)

# ============================================================================
# CRITICAL: TEST DATABASE SAFETY CHECK
# ============================================================================
IS_TESTING = os.getenv("TESTING", "").lower() in ("true", "1", "yes")
PRODUCTION_DB_NAME = "order_tracker"
TEST_DB_NAME = os.getenv("POSTGRES_TEST_DB", "order_tracker_test")

db_name = os.getenv("POSTGRES_DB", PRODUCTION_DB_NAME)

if IS_TESTING:
    if db_name == PRODUCTION_DB_NAME:
        db_name = TEST_DB_NAME
        logger.warning(
            f"TESTING=true but POSTGRES_DB was production. Forcing test database: {db_name}"
        )
    elif db_name != TEST_DB_NAME:
        logger.warning(f"TESTING=true with custom database: {db_name}")


def build_database_url() -> URL:
    """DATABASE_URL if set, otherwise PostgreSQL from POSTGRES_* variables."""
    explicit_url = os.getenv("DATABASE_URL")
    if explicit_url:
        return make_url(explicit_url)

    # URL.create avoids password exposure in logs
    return URL.create(
        "postgresql",
        username=os.getenv("POSTGRES_USER", "order_tracker"),
        password=os.getenv("POSTGRES_PASSWORD", "order_tracker_password"),
        host=os.getenv("POSTGRES_HOST", "localhost"),
        port=int(os.getenv("POSTGRES_PORT", "5432")),
        database=db_name,
    )


def build_engine(url: URL):
    """Create the engine, with a single shared connection for SQLite."""
    if url.get_backend_name() == "sqlite":
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=False,
        )

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=10,
        max_overflow=0,
        pool_pre_ping=True,  # Verify connections before use
        echo=False,  # Set to True for SQL logging during development
        hide_parameters=True,  # Redact password in logs
    )


DATABASE_URL = build_database_url()

# Declarative base for all models
Base = declarative_base()

engine = build_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_session():
    """Get a new SQLAlchemy session (context manager)."""
    try:
        db = SessionLocal()
    except TimeoutError:
        logger.error("Connection pool exhausted (all connections in use)")
        raise
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise

    try:
        yield db
    except Exception as e:
        logger.error(f"Session error: {e}")
        db.rollback()  # Explicit rollback on error
        raise
    finally:
        db.close()


def dialect_insert(session, model):
    """INSERT construct with ON CONFLICT support for the bound dialect."""
    if session.get_bind().dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)


def init_db():
    """Create all tables that do not exist yet."""
    # Register models on Base.metadata
    from database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")
