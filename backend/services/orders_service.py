"""
Orders Service - Business Logic

Order tracking operations: listing, manual entry, status updates, spend
summary and mailbox sync. Separates business logic from HTTP routing concerns.
"""

import math
from datetime import date

import database
from order_mail import gmail_auth
from order_mail.carriers import CATEGORIES, guess_carrier
from order_mail.logging_config import get_logger
from order_mail.order_sync import sync_orders
from order_mail.parsing import STATUS_ORDER, LifecycleStatus
from tasks.order_tasks import sync_orders_task

logger = get_logger(__name__)

DEFAULT_MANUAL_CATEGORY = "Other"


class MailboxNotConnectedError(ValueError):
    """Raised when an owner has no active mailbox connection."""


class OrderNotFoundError(ValueError):
    """Raised when an owner has no order with the given ID."""


# ============================================================================
# ORDERS
# ============================================================================


def list_orders(user_id: int) -> list:
    return database.get_orders_by_owner(user_id)


def _parse_amount(value) -> float:
    try:
        amount = float(value if value not in (None, "") else 0)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")
    if not math.isfinite(amount):
        raise ValueError(f"Invalid amount: {value!r}")
    if amount < 0:
        raise ValueError("Amount must be non-negative")
    return amount


def _parse_quantity(value) -> int:
    try:
        quantity = int(value if value not in (None, "") else 1)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid quantity: {value!r}")
    if quantity <= 0:
        raise ValueError("Quantity must be positive")
    return quantity


def _parse_purchase_date(value) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid purchase_date (expected YYYY-MM-DD): {value!r}")


def create_manual_order(user_id: int, data: dict) -> dict:
    """
    Create a manually entered order.

    Args:
        user_id: Owner ID
        data: item_label (required), amount, quantity, category, status,
            purchase_date, shop_name, variant, tracking_number, carrier

    Returns:
        Created order dict

    Raises:
        ValueError: If any field is invalid
    """
    item_label = (data.get("item_label") or "").strip()
    if not item_label:
        raise ValueError("item_label is required")

    category = data.get("category") or DEFAULT_MANUAL_CATEGORY
    if category not in CATEGORIES:
        raise ValueError(f"Invalid category. Must be one of: {', '.join(CATEGORIES)}")

    status = LifecycleStatus.parse(data.get("status") or LifecycleStatus.ORDERED)

    tracking_number = (data.get("tracking_number") or "").strip()
    carrier = (data.get("carrier") or "").strip()
    if tracking_number and not carrier:
        carrier = guess_carrier(tracking_number)

    order = database.create_manual_order(
        user_id,
        {
            "item_label": item_label,
            "shop_name": (data.get("shop_name") or "").strip(),
            "variant": (data.get("variant") or "").strip(),
            "quantity": _parse_quantity(data.get("quantity")),
            "amount": _parse_amount(data.get("amount")),
            "category": category,
            "purchase_date": _parse_purchase_date(data.get("purchase_date")),
            "status": status.value,
            "tracking_number": tracking_number,
            "carrier": carrier,
        },
    )

    logger.info(
        f"Manual order created: {item_label}",
        extra={"user_id": user_id, "order_id": order["order_id"]},
    )
    return order


def update_status(user_id: int, order_pk: int, status: str) -> dict:
    """
    Change an order's lifecycle status.

    Raises:
        ValueError: Invalid status
        OrderNotFoundError: Unknown order
    """
    new_status = LifecycleStatus.parse(status)

    order = database.update_order_status(user_id, order_pk, new_status.value)
    if not order:
        raise OrderNotFoundError(f"Order {order_pk} not found")
    return order


def delete_order(user_id: int, order_pk: int) -> dict:
    if not database.delete_order(user_id, order_pk):
        raise OrderNotFoundError(f"Order {order_pk} not found")
    return {"success": True, "id": order_pk}


def get_order_summary(user_id: int, budget_limit: float = None) -> dict:
    """
    Spend and shipping summary for an owner's orders.

    Args:
        user_id: Owner ID
        budget_limit: Optional spending limit to measure against

    Returns:
        Totals, per-status counts, category breakdown and budget usage
    """
    orders = database.get_orders_by_owner(user_id)

    total_spent = sum(order["amount"] for order in orders)
    arrived = [o for o in orders if o["status"] == LifecycleStatus.ARRIVED.value]
    in_transit = [o for o in orders if o["status"] != LifecycleStatus.ARRIVED.value]

    status_counts = {status.value: 0 for status in STATUS_ORDER}
    for order in orders:
        if order["status"] in status_counts:
            status_counts[order["status"]] += 1

    categories = []
    for category in CATEGORIES:
        category_orders = [o for o in orders if o["category"] == category]
        if not category_orders:
            continue
        category_total = sum(o["amount"] for o in category_orders)
        categories.append(
            {
                "category": category,
                "count": len(category_orders),
                "total": round(category_total, 2),
                "percentage": round(category_total / total_spent * 100, 2) if total_spent > 0 else 0,
            }
        )
    categories.sort(key=lambda c: c["total"], reverse=True)

    summary = {
        "order_count": len(orders),
        "total_spent": round(total_spent, 2),
        "arrived_total": round(sum(o["amount"] for o in arrived), 2),
        "in_transit_count": len(in_transit),
        "in_transit_value": round(sum(o["amount"] for o in in_transit), 2),
        "status_counts": status_counts,
        "categories": categories,
    }

    if budget_limit is not None:
        if not math.isfinite(budget_limit) or budget_limit < 0:
            raise ValueError("budget_limit must be a non-negative number")
        used_pct = min(total_spent / budget_limit * 100, 100) if budget_limit > 0 else 0
        summary.update(
            {
                "budget_limit": budget_limit,
                "budget_remaining": round(budget_limit - total_spent, 2),
                "budget_used_pct": round(used_pct, 2),
            }
        )

    return summary


# ============================================================================
# MAILBOX
# ============================================================================


def get_connection(user_id: int) -> dict:
    """Connection status without token material."""
    connection = database.get_mailbox_connection(user_id)
    if not connection:
        return {"connected": False}

    last_synced_at = connection["last_synced_at"]
    return {
        "connected": True,
        "email_address": connection["email_address"],
        "connection_status": connection["connection_status"],
        "last_synced_at": last_synced_at.isoformat() if last_synced_at else None,
    }


def connect_mailbox(user_id: int, data: dict) -> dict:
    """
    Store tokens for an already-authorized mailbox.

    Raises:
        ValueError: If email_address or access_token is missing
    """
    email_address = (data.get("email_address") or "").strip()
    if not email_address:
        raise ValueError("email_address is required")

    return gmail_auth.save_gmail_connection(
        user_id,
        email_address,
        {
            "access_token": data.get("access_token"),
            "refresh_token": data.get("refresh_token"),
            "expires_at": data.get("expires_at"),
        },
    )


def disconnect_mailbox(user_id: int) -> dict:
    if not database.get_mailbox_connection(user_id):
        raise MailboxNotConnectedError("No mailbox connection found")
    return gmail_auth.disconnect_gmail(user_id)


# ============================================================================
# SYNC
# ============================================================================


def run_sync(user_id: int) -> dict:
    """
    Sync orders from the owner's mailbox now.

    Raises:
        MailboxNotConnectedError: If the owner has no mailbox connection
    """
    if not database.get_mailbox_connection(user_id):
        raise MailboxNotConnectedError("No mailbox connection found")

    mailbox = gmail_auth.build_mailbox_for_user(user_id)
    return sync_orders(user_id, mailbox)


def start_sync(user_id: int) -> dict:
    """
    Queue an order sync on the Celery worker.

    Returns:
        Job details dict with task_id and status
    """
    if not database.get_mailbox_connection(user_id):
        raise MailboxNotConnectedError("No mailbox connection found")

    task = sync_orders_task.delay(user_id)
    logger.info(f"Order sync queued: task_id={task.id}", extra={"user_id": user_id})

    return {"task_id": task.id, "status": "queued", "user_id": user_id}
