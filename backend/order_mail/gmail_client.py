"""
Gmail API Client Module

Mailbox search/fetch for order notification emails over the Gmail REST API.
Includes rate limiting, retry with backoff, and MIME body decoding.
"""

import base64
import os
import time
from typing import Optional

import requests
from dotenv import load_dotenv
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials

from order_mail.logging_config import get_logger
from order_mail.parsing.models import MessageRef, RawMessage

# Load environment variables (Docker env vars take precedence)
load_dotenv(override=False)

logger = get_logger(__name__)

# Rate limiting configuration
RATE_LIMIT_DELAY = 0.1  # 100ms between requests (10 req/sec)
MAX_RETRIES = 3
BACKOFF_MULTIPLIER = 2
RETRYABLE_STATUS_CODES = (429, 500, 503)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"


def build_gmail_service(access_token: str, refresh_token: str = None) -> AuthorizedSession:
    """
    Build a Gmail API session with credentials.

    Args:
        access_token: Valid OAuth access token
        refresh_token: Optional refresh token for automatic refresh

    Returns:
        AuthorizedSession for Gmail API requests
    """
    credentials = Credentials(
        token=access_token,
        refresh_token=refresh_token,
        token_uri=GOOGLE_TOKEN_URL,
        client_id=os.getenv("GOOGLE_CLIENT_ID"),
        client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
    )
    return AuthorizedSession(credentials)


def fetch_with_backoff(
    session, method: str, url: str, max_retries: int = MAX_RETRIES, **kwargs
) -> dict:
    """
    Execute a Gmail API request with exponential backoff.

    Args:
        session: AuthorizedSession (or any requests.Session)
        method: HTTP method
        url: Full API URL
        max_retries: Maximum number of attempts
        **kwargs: Passed to session.request()

    Returns:
        Response JSON dict

    Raises:
        requests.HTTPError: Non-retryable status, or retries exhausted
        requests.RequestException: Connection failures after all retries
    """
    delay = 1
    last_error = None

    for attempt in range(max_retries):
        try:
            time.sleep(RATE_LIMIT_DELAY)

            response = session.request(method, url, timeout=60, **kwargs)
            response.raise_for_status()
            return response.json()

        except requests.HTTPError as e:
            last_error = e
            if e.response is None or e.response.status_code not in RETRYABLE_STATUS_CODES:
                raise
            logger.warning(
                f"Gmail API returned {e.response.status_code} "
                f"(attempt {attempt + 1}/{max_retries}), retrying in {delay}s"
            )
        except requests.RequestException as e:
            last_error = e
            logger.warning(
                f"Gmail API request failed (attempt {attempt + 1}/{max_retries}), "
                f"retrying in {delay}s: {e}"
            )

        if attempt < max_retries - 1:
            time.sleep(delay)
            delay *= BACKOFF_MULTIPLIER

    raise last_error


def list_messages(session, query: str, max_results: int = 50, page_token: str = None) -> dict:
    """
    List messages matching a Gmail search query (single page).

    Returns:
        Dictionary with 'messages' list and 'nextPageToken'
    """
    url = f"{GMAIL_API_BASE}/users/me/messages"
    params = {"q": query, "maxResults": min(max_results, 500)}
    if page_token:
        params["pageToken"] = page_token

    result = fetch_with_backoff(session, "GET", url, params=params)

    return {
        "messages": result.get("messages", []),
        "nextPageToken": result.get("nextPageToken"),
        "resultSizeEstimate": result.get("resultSizeEstimate", 0),
    }


def _decode_part_data(data: str) -> str:
    return base64.urlsafe_b64decode(data).decode("utf-8", errors="ignore")


def _collect_bodies(part: dict, bodies: dict):
    """Walk a MIME tree, keeping the last text/plain and text/html bodies seen."""
    mime_type = part.get("mimeType", "")
    data = part.get("body", {}).get("data")

    if data:
        if mime_type == "text/html":
            bodies["html"] = _decode_part_data(data)
        elif mime_type == "text/plain" or not mime_type.startswith("multipart/"):
            bodies["text"] = _decode_part_data(data)

    for child in part.get("parts", []):
        _collect_bodies(child, bodies)


def get_message_content(session, message_id: str) -> dict:
    """
    Fetch full email content including decoded bodies.

    Args:
        session: AuthorizedSession
        message_id: Gmail message ID

    Returns:
        Dictionary with headers of interest, snippet and text/html bodies
    """
    url = f"{GMAIL_API_BASE}/users/me/messages/{message_id}"
    message = fetch_with_backoff(session, "GET", url, params={"format": "full"})

    payload = message.get("payload", {})
    headers = {h["name"].lower(): h["value"] for h in payload.get("headers", [])}

    bodies = {"text": None, "html": None}
    _collect_bodies(payload, bodies)

    return {
        "message_id": message_id,
        "thread_id": message.get("threadId"),
        "subject": headers.get("subject", ""),
        "from": headers.get("from", ""),
        "date": headers.get("date", ""),
        "snippet": message.get("snippet", ""),
        "body_text": bodies["text"],
        "body_html": bodies["html"],
    }


class GmailMailbox:
    """Mailbox collaborator backed by one owner's Gmail session."""

    def __init__(self, session):
        self.session = session

    def search(self, query: str, max_results: int = 50) -> list[MessageRef]:
        """
        Search the mailbox. Errors propagate to the caller.

        Returns:
            Message references in Gmail's result order
        """
        result = list_messages(self.session, query, max_results=max_results)
        return [
            MessageRef(id=msg["id"], thread_id=msg.get("threadId"))
            for msg in result["messages"]
        ]

    def fetch(self, ref: MessageRef) -> Optional[RawMessage]:
        """
        Fetch one message.

        Returns:
            RawMessage, or None if the message could not be retrieved
        """
        try:
            content = get_message_content(self.session, ref.id)
        except requests.RequestException as e:
            logger.warning(f"Failed to fetch message: {e}", extra={"message_id": ref.id})
            return None

        body = " ".join(
            part for part in (content["body_text"], content["body_html"]) if part
        )

        return RawMessage(
            id=ref.id,
            sender=content["from"],
            subject=content["subject"],
            snippet=content["snippet"],
            body=body,
            date=content["date"],
        )

