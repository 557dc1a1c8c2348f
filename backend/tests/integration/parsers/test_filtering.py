"""Tests for platform relevance and lifecycle status classification."""

import pytest

from order_mail.parsing.filtering import (
    classify_message,
    get_lifecycle_status,
    is_platform_email,
)
from order_mail.parsing.models import LifecycleStatus


def test_is_platform_email_matches_sender():
    assert is_platform_email("TikTok Shop <noreply@shop.tiktok.com>", "Order update")


def test_is_platform_email_matches_subject_only():
    assert is_platform_email("orders@example.com", "Your TIKTOK order")


def test_is_platform_email_rejects_other_senders():
    assert not is_platform_email("Lazada <no-reply@lazada.com.ph>", "Your order has shipped")


def test_is_platform_email_ignores_body_and_uses_custom_platform():
    assert is_platform_email("Shopee <info@shopee.ph>", "Order shipped", platform="Shopee")
    assert not is_platform_email("Shopee <info@shopee.ph>", "Order shipped", platform="tiktok")


@pytest.mark.parametrize(
    "subject,expected",
    [
        ("Your package has been delivered", LifecycleStatus.ARRIVED),
        ("Order received by buyer", LifecycleStatus.ARRIVED),
        ("Your parcel is OUT FOR DELIVERY", LifecycleStatus.OUT_FOR_DELIVERY),
        ("Your order has shipped!", LifecycleStatus.SHIPPED),
        ("Your package is on the way", LifecycleStatus.SHIPPED),
        ("Thanks for your order", LifecycleStatus.ORDERED),
    ],
)
def test_get_lifecycle_status(subject, expected):
    assert get_lifecycle_status(subject) == expected


def test_get_lifecycle_status_first_match_wins():
    # "delivered" is checked before "shipped"
    assert get_lifecycle_status("Shipped and delivered") == LifecycleStatus.ARRIVED


def test_classify_message():
    assert classify_message("TikTok Shop", "Your order has shipped") == (
        True,
        LifecycleStatus.SHIPPED,
    )
    assert classify_message("Newsletter", "Weekly deals") == (False, None)
