"""
Tracked Orders - Database Operations

Handles all database operations for tracked shop orders:
- Upsert of email-derived orders by (owner, order key)
- Manual order entry
- Owner queries, status updates and deletion
"""

import uuid

from sqlalchemy import func

from order_mail.carriers import get_tracking_url

from .base import dialect_insert, get_session
from .models.order import TrackedOrder

# Columns overwritten on every re-derivation of the same order key
UPSERT_FIELDS = (
    "source_message_id",
    "item_label",
    "shop_name",
    "variant",
    "quantity",
    "amount",
    "category",
    "purchase_date",
    "status",
    "tracking_number",
    "carrier",
    "extracted_at",
)

MANUAL_FIELDS = (
    "item_label",
    "shop_name",
    "variant",
    "quantity",
    "amount",
    "category",
    "purchase_date",
    "status",
    "tracking_number",
    "carrier",
)

EMAIL_ORIGIN = "email-derived"
MANUAL_ORIGIN = "manual"
MANUAL_KEY_PREFIX = "manual-"


def _isoformat(value):
    return value.isoformat() if value else None


def order_to_dict(order: TrackedOrder) -> dict:
    """Serialize a TrackedOrder row to a JSON-ready dict."""
    return {
        "id": order.id,
        "user_id": order.user_id,
        "order_id": order.order_id,
        "source_message_id": order.source_message_id,
        "item_label": order.item_label,
        "shop_name": order.shop_name or "",
        "variant": order.variant or "",
        "quantity": order.quantity,
        "amount": float(order.amount) if order.amount is not None else 0.0,
        "category": order.category,
        "purchase_date": _isoformat(order.purchase_date),
        "status": order.status,
        "tracking_number": order.tracking_number or "",
        "carrier": order.carrier or "",
        "tracking_url": get_tracking_url(order.carrier, order.tracking_number),
        "origin": order.origin,
        "extracted_at": _isoformat(order.extracted_at),
        "created_at": _isoformat(order.created_at),
        "updated_at": _isoformat(order.updated_at),
    }


# ============================================================================
# ORDER UPSERT / QUERY FUNCTIONS
# ============================================================================


def upsert_order(user_id: int, order_id: str, fields: dict) -> dict:
    """
    Insert or overwrite an email-derived order.

    Every extractable field is replaced (last write wins), origin is reset to
    email-derived and updated_at is bumped. The storage id and created_at of
    an existing row are left untouched.

    Args:
        user_id: Owner ID
        order_id: Order key (platform order ID or email-<message id>)
        fields: Column values, extra keys ignored

    Returns:
        The stored order as a dict
    """
    values = {name: fields.get(name) for name in UPSERT_FIELDS if name in fields}
    values["origin"] = EMAIL_ORIGIN

    with get_session() as session:
        stmt = dialect_insert(session, TrackedOrder).values(
            user_id=user_id, order_id=order_id, **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "order_id"],
            set_={
                **{name: stmt.excluded[name] for name in values},
                "updated_at": func.now(),
            },
        )
        session.execute(stmt)
        session.commit()

        order = (
            session.query(TrackedOrder)
            .filter(TrackedOrder.user_id == user_id, TrackedOrder.order_id == order_id)
            .one()
        )
        return order_to_dict(order)


def get_orders_by_owner(user_id: int) -> list:
    """All orders for an owner, newest purchase first."""
    with get_session() as session:
        orders = (
            session.query(TrackedOrder)
            .filter(TrackedOrder.user_id == user_id)
            .order_by(TrackedOrder.purchase_date.desc(), TrackedOrder.id.desc())
            .all()
        )
        return [order_to_dict(order) for order in orders]


def get_order_by_key(user_id: int, order_id: str) -> dict:
    """Get one order by its key, or None."""
    with get_session() as session:
        order = (
            session.query(TrackedOrder)
            .filter(TrackedOrder.user_id == user_id, TrackedOrder.order_id == order_id)
            .first()
        )
        return order_to_dict(order) if order else None


# ============================================================================
# MANUAL ORDER OPERATIONS
# ============================================================================


def create_manual_order(user_id: int, fields: dict) -> dict:
    """
    Store a manually entered order under a fresh `manual-<uuid>` key.

    Returns:
        The stored order as a dict
    """
    values = {name: fields[name] for name in MANUAL_FIELDS if name in fields}

    with get_session() as session:
        order = TrackedOrder(
            user_id=user_id,
            order_id=f"{MANUAL_KEY_PREFIX}{uuid.uuid4().hex}",
            origin=MANUAL_ORIGIN,
            **values,
        )
        session.add(order)
        session.commit()
        session.refresh(order)
        return order_to_dict(order)


def update_order_status(user_id: int, order_pk: int, status: str) -> dict:
    """
    Set the lifecycle status of one order.

    Returns:
        Updated order dict, or None if the owner has no such order
    """
    with get_session() as session:
        order = (
            session.query(TrackedOrder)
            .filter(TrackedOrder.id == order_pk, TrackedOrder.user_id == user_id)
            .first()
        )
        if not order:
            return None

        order.status = status
        session.commit()
        session.refresh(order)
        return order_to_dict(order)


def delete_order(user_id: int, order_pk: int) -> bool:
    """Delete one order. Returns False if the owner has no such order."""
    with get_session() as session:
        deleted = (
            session.query(TrackedOrder)
            .filter(TrackedOrder.id == order_pk, TrackedOrder.user_id == user_id)
            .delete()
        )
        session.commit()
        return deleted > 0
