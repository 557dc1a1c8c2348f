"""
Order Email Filtering

Decides whether a message is a shop order notification at all, and which
lifecycle status it announces. Only the sender and subject are consulted;
body content is never used for relevance.
"""

from typing import Optional

from .models import LifecycleStatus

DEFAULT_PLATFORM = "tiktok"

# Checked in order, first match wins
SUBJECT_STATUS_KEYWORDS = [
    (LifecycleStatus.ARRIVED, ("delivered", "received")),
    (LifecycleStatus.OUT_FOR_DELIVERY, ("out for delivery",)),
    (LifecycleStatus.SHIPPED, ("shipped", "on the way")),
]


def is_platform_email(sender: str, subject: str, platform: str = DEFAULT_PLATFORM) -> bool:
    """
    Check if an email comes from (or is about) the shop platform.

    Args:
        sender: From header
        subject: Subject line
        platform: Platform name, matched case-insensitively

    Returns:
        True if the platform name appears anywhere in sender + subject
    """
    combined = f"{sender or ''} {subject or ''}".lower()
    return platform.lower() in combined


def get_lifecycle_status(subject: str) -> LifecycleStatus:
    subject_lower = (subject or "").lower()
    for status, keywords in SUBJECT_STATUS_KEYWORDS:
        if any(keyword in subject_lower for keyword in keywords):
            return status
    return LifecycleStatus.ORDERED


def classify_message(
    sender: str, subject: str, platform: str = DEFAULT_PLATFORM
) -> tuple[bool, Optional[LifecycleStatus]]:
    """
    Classify a message by sender and subject.

    Returns:
        Tuple of (is_relevant, status); status is None when not relevant
    """
    if not is_platform_email(sender, subject, platform):
        return False, None
    return True, get_lifecycle_status(subject)
