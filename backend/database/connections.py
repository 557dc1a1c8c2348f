"""
Mailbox Connections - Database Operations

One connection per owner, holding encrypted OAuth tokens.
"""

from sqlalchemy import func

from .base import dialect_insert, get_session
from .models.mailbox import MailboxConnection


def _connection_to_dict(connection: MailboxConnection) -> dict:
    return {
        "id": connection.id,
        "user_id": connection.user_id,
        "email_address": connection.email_address,
        "access_token": connection.access_token,
        "refresh_token": connection.refresh_token,
        "token_expires_at": connection.token_expires_at,
        "connection_status": connection.connection_status,
        "last_synced_at": connection.last_synced_at,
        "created_at": connection.created_at,
    }


def save_mailbox_connection(
    user_id: int,
    email_address: str,
    access_token: str,
    refresh_token: str = None,
    token_expires_at=None,
) -> int:
    """
    Save or replace the mailbox connection for an owner.

    Args:
        user_id: Owner ID
        email_address: Connected mailbox address
        access_token: Encrypted access token
        refresh_token: Encrypted refresh token
        token_expires_at: Expiry timestamp (datetime or None)

    Returns:
        Connection ID
    """
    with get_session() as session:
        stmt = dialect_insert(session, MailboxConnection).values(
            user_id=user_id,
            email_address=email_address,
            access_token=access_token,
            refresh_token=refresh_token,
            token_expires_at=token_expires_at,
            connection_status="active",
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={
                "email_address": stmt.excluded.email_address,
                "access_token": stmt.excluded.access_token,
                "refresh_token": stmt.excluded.refresh_token,
                "token_expires_at": stmt.excluded.token_expires_at,
                "connection_status": "active",
                "updated_at": func.now(),
            },
        )
        session.execute(stmt)
        session.commit()

        connection = (
            session.query(MailboxConnection)
            .filter(MailboxConnection.user_id == user_id)
            .one()
        )
        return connection.id


def get_mailbox_connection(user_id: int) -> dict:
    """Get the active mailbox connection for an owner, or None."""
    with get_session() as session:
        connection = (
            session.query(MailboxConnection)
            .filter(
                MailboxConnection.user_id == user_id,
                MailboxConnection.connection_status == "active",
            )
            .first()
        )
        return _connection_to_dict(connection) if connection else None


def update_connection_last_synced(user_id: int) -> bool:
    """Stamp last_synced_at for an owner's connection."""
    with get_session() as session:
        updated = (
            session.query(MailboxConnection)
            .filter(MailboxConnection.user_id == user_id)
            .update({"last_synced_at": func.now()})
        )
        session.commit()
        return updated > 0


def delete_mailbox_connection(user_id: int) -> bool:
    """Remove an owner's connection. Orders already stored are kept."""
    with get_session() as session:
        deleted = (
            session.query(MailboxConnection)
            .filter(MailboxConnection.user_id == user_id)
            .delete()
        )
        session.commit()
        return deleted > 0
