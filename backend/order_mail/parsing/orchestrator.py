"""
Order Email Parser Orchestrator

Turns fetched messages into order records.
Flow per message: classify → normalize → extract fields → synthesize
Flow per batch: parse each message (one outcome per item) → dedup
"""

from datetime import datetime
from typing import Iterable, Optional

from order_mail.carriers import guess_carrier
from order_mail.logging_config import get_logger

from .filtering import DEFAULT_PLATFORM, classify_message
from .models import ExtractedOrder, LifecycleStatus, OrderOrigin, ParseOutcome, RawMessage
from .normalizer import combine_message_text
from .pattern_extraction import (
    extract_order_id,
    extract_quantity,
    extract_shop_name,
    extract_total_price,
    extract_tracking_number,
    extract_variant,
)
from .utilities import resolve_purchase_date

# Initialize logger
logger = get_logger(__name__)

DEFAULT_CATEGORY = "Fashion"

FALLBACK_ITEM_LABELS = {
    LifecycleStatus.ARRIVED: "Delivered Order",
    LifecycleStatus.SHIPPED: "Shipped Order",
}
DEFAULT_ITEM_LABEL = "New Order"

REASON_PARSED = "parsed"
REASON_NOT_RELEVANT = "not_relevant"
REASON_MISSING = "missing"


def build_item_label(order_id: str, status: LifecycleStatus) -> str:
    """
    Display label for an extracted order.

    Uses the tail of the platform order ID when there is one, otherwise a
    status-based placeholder.
    """
    if order_id:
        return f"Order #{order_id[-8:]}"
    return FALLBACK_ITEM_LABELS.get(status, DEFAULT_ITEM_LABEL)


def synthesize_order(
    message: RawMessage,
    platform: str = DEFAULT_PLATFORM,
    now: Optional[datetime] = None,
    category: str = DEFAULT_CATEGORY,
) -> Optional[ExtractedOrder]:
    """
    Build an order record from one fetched message.

    Args:
        message: Fetched email
        platform: Platform name used for relevance
        now: Synthesis time (defaults to the current time)
        category: Category assigned to extracted orders

    Returns:
        ExtractedOrder, or None if the message is not a platform email
    """
    is_relevant, status = classify_message(message.sender, message.subject, platform)
    if not is_relevant:
        return None

    now = now or datetime.now()
    text = combine_message_text(message.snippet, message.body)

    order_id = extract_order_id(text)
    tracking_number = extract_tracking_number(text)

    return ExtractedOrder(
        source_message_id=message.id,
        order_id=order_id,
        item_label=build_item_label(order_id, status),
        shop_name=extract_shop_name(text),
        variant=extract_variant(text),
        quantity=extract_quantity(text),
        amount=extract_total_price(text),
        category=category,
        purchase_date=resolve_purchase_date(message.date, now),
        status=status,
        tracking_number=tracking_number,
        carrier=guess_carrier(tracking_number),
        origin=OrderOrigin.EMAIL,
        extracted_at=now,
    )


def parse_messages(
    messages: Iterable[Optional[RawMessage]],
    platform: str = DEFAULT_PLATFORM,
    now: Optional[datetime] = None,
    category: str = DEFAULT_CATEGORY,
) -> list[ParseOutcome]:
    """
    Parse a batch of messages, one outcome per input item.

    A missing message (failed fetch) or a failing extraction never aborts the
    batch; it is recorded in the outcome's reason instead.
    """
    outcomes = []

    for message in messages:
        if message is None:
            outcomes.append(ParseOutcome(message_id=None, reason=REASON_MISSING))
            continue

        try:
            order = synthesize_order(message, platform=platform, now=now, category=category)
        except Exception as e:
            logger.error(
                f"Failed to parse message: {e}",
                extra={"message_id": message.id},
                exc_info=True,
            )
            outcomes.append(ParseOutcome(message_id=message.id, reason=f"error: {e}"))
            continue

        if order is None:
            logger.debug("Message is not a platform email", extra={"message_id": message.id})
            outcomes.append(ParseOutcome(message_id=message.id, reason=REASON_NOT_RELEVANT))
            continue

        logger.debug(
            f"Parsed {order.status.value} order",
            extra={"message_id": message.id, "order_id": order.order_id or None},
        )
        outcomes.append(ParseOutcome(message_id=message.id, reason=REASON_PARSED, order=order))

    return outcomes


def dedupe_orders(orders: Iterable[ExtractedOrder]) -> list[ExtractedOrder]:
    """
    Keep the first record per order, in iteration order.

    Records are the same order when they share a non-empty platform order ID.
    Without one, the source message ID is the key. A record whose source
    message was already seen is dropped either way.
    """
    seen_order_ids = set()
    seen_message_ids = set()
    unique = []

    for order in orders:
        if order.order_id and order.order_id in seen_order_ids:
            continue
        if order.source_message_id and order.source_message_id in seen_message_ids:
            continue

        if order.order_id:
            seen_order_ids.add(order.order_id)
        if order.source_message_id:
            seen_message_ids.add(order.source_message_id)
        unique.append(order)

    return unique


def parse_order_emails(
    messages: Iterable[Optional[RawMessage]],
    platform: str = DEFAULT_PLATFORM,
    now: Optional[datetime] = None,
    category: str = DEFAULT_CATEGORY,
) -> list[ExtractedOrder]:
    """
    Parse a batch of messages into deduplicated orders.

    Returns:
        Orders in message order, first occurrence kept per order
    """
    outcomes = parse_messages(messages, platform=platform, now=now, category=category)
    orders = [outcome.order for outcome in outcomes if outcome.parsed]

    unique = dedupe_orders(orders)
    if len(unique) < len(orders):
        logger.info(f"Dropped {len(orders) - len(unique)} duplicate order records")

    return unique
