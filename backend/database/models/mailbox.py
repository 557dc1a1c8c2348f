"""
Mailbox integration models.

Maps to:
- mailbox_connections table - One OAuth mailbox connection per owner
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from database.base import Base


class MailboxConnection(Base):
    """OAuth connections to the mail provider (encrypted tokens)."""

    __tablename__ = "mailbox_connections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, unique=True, default=1)
    email_address = Column(String(255), nullable=False)
    access_token = Column(Text, nullable=False)  # Encrypted
    refresh_token = Column(Text, nullable=True)  # Encrypted
    token_expires_at = Column(DateTime(timezone=True), nullable=True)
    connection_status = Column(
        String(20), nullable=False, default="active", server_default="active"
    )
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "connection_status IN ('active', 'expired', 'revoked', 'error')",
            name="ck_mailbox_conn_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<MailboxConnection(id={self.id}, email={self.email_address}, status={self.connection_status})>"
