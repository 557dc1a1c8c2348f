"""Integration tests for the Gmail mailbox client.

Tests critical integration points:
- Search result mapping to message references
- MIME body decoding for fetched messages
- Retry with exponential backoff on transient errors
- Failed fetches reported as missing, not raised
"""

import base64

import pytest
import requests
import responses
from requests import HTTPError

from order_mail.gmail_client import (
    GMAIL_API_BASE,
    GmailMailbox,
    fetch_with_backoff,
    get_message_content,
    list_messages,
)
from order_mail.parsing import MessageRef

MESSAGES_URL = f"{GMAIL_API_BASE}/users/me/messages"


def encode(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")


def full_message(message_id="msg-1"):
    return {
        "id": message_id,
        "threadId": "thread-1",
        "snippet": "Your order has shipped",
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": [
                {"name": "From", "value": "TikTok Shop <noreply@tiktokshop.com>"},
                {"name": "Subject", "value": "Your order has shipped!"},
                {"name": "Date", "value": "Mon, 15 Jan 2024 10:30:00 +0800"},
            ],
            "parts": [
                {"mimeType": "text/plain", "body": {"data": encode("Total Payment ₱217.43")}},
                {"mimeType": "text/html", "body": {"data": encode("<p>JT123456789012345</p>")}},
            ],
        },
    }


@pytest.fixture
def session():
    return requests.Session()


# ============================================================================
# SEARCH / FETCH
# ============================================================================


@responses.activate
def test_search_maps_message_refs(session, no_sleep):
    responses.add(
        responses.GET,
        MESSAGES_URL,
        json={"messages": [{"id": "a", "threadId": "t1"}, {"id": "b", "threadId": "t2"}]},
        status=200,
    )

    refs = GmailMailbox(session).search('from:"TikTok Shop"', max_results=10)

    assert refs == [MessageRef(id="a", thread_id="t1"), MessageRef(id="b", thread_id="t2")]
    request_url = responses.calls[0].request.url
    assert "maxResults=10" in request_url
    assert "TikTok" in request_url


@responses.activate
def test_search_with_no_hits(session, no_sleep):
    responses.add(responses.GET, MESSAGES_URL, json={"resultSizeEstimate": 0}, status=200)

    assert GmailMailbox(session).search("from:tiktokshop") == []


@responses.activate
def test_list_messages_caps_page_size(session, no_sleep):
    responses.add(responses.GET, MESSAGES_URL, json={"nextPageToken": "p2"}, status=200)

    result = list_messages(session, "q", max_results=1000, page_token="p1")

    assert result["nextPageToken"] == "p2"
    assert "maxResults=500" in responses.calls[0].request.url
    assert "pageToken=p1" in responses.calls[0].request.url


@responses.activate
def test_get_message_content_decodes_bodies(session, no_sleep):
    responses.add(responses.GET, f"{MESSAGES_URL}/msg-1", json=full_message(), status=200)

    content = get_message_content(session, "msg-1")

    assert content["from"] == "TikTok Shop <noreply@tiktokshop.com>"
    assert content["subject"] == "Your order has shipped!"
    assert content["body_text"] == "Total Payment ₱217.43"
    assert content["body_html"] == "<p>JT123456789012345</p>"
    assert content["thread_id"] == "thread-1"


@responses.activate
def test_fetch_builds_raw_message(session, no_sleep):
    responses.add(responses.GET, f"{MESSAGES_URL}/msg-1", json=full_message(), status=200)

    message = GmailMailbox(session).fetch(MessageRef(id="msg-1"))

    assert message.id == "msg-1"
    assert message.sender == "TikTok Shop <noreply@tiktokshop.com>"
    assert message.date == "Mon, 15 Jan 2024 10:30:00 +0800"
    assert message.snippet == "Your order has shipped"
    assert message.body == "Total Payment ₱217.43 <p>JT123456789012345</p>"


@responses.activate
def test_fetch_single_part_message(session, no_sleep):
    message = full_message()
    message["payload"] = {
        "mimeType": "text/html",
        "headers": message["payload"]["headers"],
        "body": {"data": encode("<b>Order Total: ₱99.00</b>")},
    }
    responses.add(responses.GET, f"{MESSAGES_URL}/msg-1", json=message, status=200)

    fetched = GmailMailbox(session).fetch(MessageRef(id="msg-1"))

    assert fetched.body == "<b>Order Total: ₱99.00</b>"


@responses.activate
def test_fetch_failure_returns_none(session, no_sleep):
    responses.add(responses.GET, f"{MESSAGES_URL}/gone", json={"error": "not found"}, status=404)

    assert GmailMailbox(session).fetch(MessageRef(id="gone")) is None


# ============================================================================
# RETRY / BACKOFF
# ============================================================================


@responses.activate
def test_retries_transient_errors(session, no_sleep):
    url = f"{MESSAGES_URL}/msg-1"
    responses.add(responses.GET, url, json={"error": "rate limited"}, status=429)
    responses.add(responses.GET, url, json={"error": "unavailable"}, status=503)
    responses.add(responses.GET, url, json={"id": "msg-1"}, status=200)

    result = fetch_with_backoff(session, "GET", url)

    assert result == {"id": "msg-1"}
    assert len(responses.calls) == 3


@responses.activate
def test_does_not_retry_client_errors(session, no_sleep):
    url = f"{MESSAGES_URL}/msg-1"
    responses.add(responses.GET, url, json={"error": "unauthorized"}, status=401)

    with pytest.raises(HTTPError):
        fetch_with_backoff(session, "GET", url)

    assert len(responses.calls) == 1


@responses.activate
def test_raises_after_retries_exhausted(session, no_sleep):
    url = f"{MESSAGES_URL}/msg-1"
    responses.add(responses.GET, url, json={"error": "server error"}, status=500)

    with pytest.raises(HTTPError):
        fetch_with_backoff(session, "GET", url, max_retries=3)

    assert len(responses.calls) == 3


@responses.activate
def test_retries_connection_errors(session, no_sleep):
    url = f"{MESSAGES_URL}/msg-1"
    responses.add(responses.GET, url, body=requests.ConnectionError("connection reset"))

    with pytest.raises(requests.ConnectionError):
        fetch_with_backoff(session, "GET", url, max_retries=2)

    assert len(responses.calls) == 2


@responses.activate
def test_backoff_delays_double(session, monkeypatch):
    from order_mail import gmail_client

    sleeps = []
    monkeypatch.setattr(gmail_client.time, "sleep", sleeps.append)
    url = f"{MESSAGES_URL}/msg-1"
    responses.add(responses.GET, url, status=503)

    with pytest.raises(HTTPError):
        fetch_with_backoff(session, "GET", url, max_retries=3)

    backoff_sleeps = [s for s in sleeps if s != gmail_client.RATE_LIMIT_DELAY]
    assert backoff_sleeps == [1, 2]
