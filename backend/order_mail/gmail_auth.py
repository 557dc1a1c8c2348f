"""
Gmail Credential Management

Per-owner token storage for the mailbox connection. Tokens are Fernet
encrypted at rest and only decrypted to build a mailbox session.

The interactive OAuth consent flow happens upstream; this module receives
already-issued tokens.
"""

import os
from datetime import datetime

import requests
from cryptography.fernet import Fernet, InvalidToken
from dotenv import load_dotenv

import database
from order_mail.gmail_client import GmailMailbox, build_gmail_service
from order_mail.logging_config import get_logger

# Load environment variables (Docker env vars take precedence)
load_dotenv(override=False)

logger = get_logger(__name__)

GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"

_cipher = None


def _get_cipher():
    """Fernet cipher from ENCRYPTION_KEY, or None when no key is configured."""
    global _cipher
    if _cipher is None:
        key = os.getenv("ENCRYPTION_KEY")
        if key:
            _cipher = Fernet(key)
    return _cipher


def encrypt_token(token: str) -> str:
    """Encrypt sensitive token for storage."""
    cipher = _get_cipher()
    if not cipher:
        logger.warning(
            "ENCRYPTION_KEY not set. Storing token unencrypted (NOT recommended for production)"
        )
        return token
    return cipher.encrypt(token.encode()).decode()


def decrypt_token(encrypted_token: str) -> str:
    """Decrypt stored token."""
    cipher = _get_cipher()
    if not cipher:
        logger.warning("ENCRYPTION_KEY not set. Assuming token is stored in plain text.")
        return encrypted_token

    try:
        if isinstance(encrypted_token, bytes):
            return cipher.decrypt(encrypted_token).decode()
        return cipher.decrypt(encrypted_token.encode()).decode()
    except InvalidToken:
        logger.error("Mailbox token decryption failed")
        raise


def save_gmail_connection(user_id: int, email_address: str, token_data: dict) -> dict:
    """
    Persist a mailbox connection for an owner.

    Args:
        user_id: Owner ID
        email_address: Connected Gmail address
        token_data: Dict with 'access_token', optional 'refresh_token' and
            'expires_at' (ISO timestamp)

    Returns:
        Dictionary with connection_id and status
    """
    if not token_data.get("access_token"):
        raise ValueError("access_token is required")

    expires_at = token_data.get("expires_at")
    if isinstance(expires_at, str):
        expires_at = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))

    connection_id = database.save_mailbox_connection(
        user_id=user_id,
        email_address=email_address,
        access_token=encrypt_token(token_data["access_token"]),
        refresh_token=(
            encrypt_token(token_data["refresh_token"])
            if token_data.get("refresh_token")
            else None
        ),
        token_expires_at=expires_at,
    )

    logger.info(
        f"Mailbox connection saved: id={connection_id}, email={email_address}",
        extra={"user_id": user_id},
    )

    return {
        "connection_id": connection_id,
        "status": "connected",
        "email_address": email_address,
    }


def get_gmail_credentials(user_id: int) -> tuple:
    """
    Decrypted (access_token, refresh_token) for an owner's connection.

    Raises:
        ValueError: If the owner has no active connection
    """
    connection = database.get_mailbox_connection(user_id)
    if not connection:
        raise ValueError(f"No mailbox connection for user {user_id}")

    access_token = decrypt_token(connection["access_token"])
    refresh_token = (
        decrypt_token(connection["refresh_token"])
        if connection.get("refresh_token")
        else None
    )
    return access_token, refresh_token


def build_mailbox_for_user(user_id: int) -> GmailMailbox:
    """Mailbox collaborator authenticated as the given owner."""
    access_token, refresh_token = get_gmail_credentials(user_id)
    return GmailMailbox(build_gmail_service(access_token, refresh_token))


def disconnect_gmail(user_id: int) -> dict:
    """
    Revoke (best effort) and delete an owner's mailbox connection.

    Stored orders are kept.
    """
    connection = database.get_mailbox_connection(user_id)
    if not connection:
        raise ValueError(f"No mailbox connection for user {user_id}")

    try:
        requests.post(
            GOOGLE_REVOKE_URL,
            params={"token": decrypt_token(connection["access_token"])},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=5,
        )
    except requests.RequestException as e:
        logger.warning(
            f"Failed to revoke token with Google (continuing): {e}",
            extra={"user_id": user_id},
        )

    database.delete_mailbox_connection(user_id)
    logger.info("Mailbox connection removed", extra={"user_id": user_id})

    return {"status": "disconnected", "user_id": user_id}
