# backend/database/models/__init__.py
"""SQLAlchemy models for all database tables."""

from .mailbox import MailboxConnection
from .order import TrackedOrder

__all__ = [
    "MailboxConnection",
    "TrackedOrder",
]
