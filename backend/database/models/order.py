"""
Order tracking models.

Maps to:
- tracked_orders table - Orders extracted from shop emails or entered manually
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from database.base import Base


class TrackedOrder(Base):
    """
    One order per (owner, order key).

    The key is the platform order ID, `email-<message id>` for emails without
    one, or `manual-<uuid>` for manual entries.
    """

    __tablename__ = "tracked_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, default=1)
    order_id = Column(String(64), nullable=False)
    source_message_id = Column(String(255), nullable=True)
    item_label = Column(String(255), nullable=False)
    shop_name = Column(String(255), nullable=True, default="")
    variant = Column(String(255), nullable=True, default="")
    quantity = Column(Integer, nullable=False, default=1, server_default="1")
    amount = Column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    category = Column(String(50), nullable=False, default="Fashion")
    purchase_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="Ordered")
    tracking_number = Column(String(100), nullable=True, default="")
    carrier = Column(String(100), nullable=True, default="")
    origin = Column(String(20), nullable=False, default="email-derived")
    extracted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "order_id", name="uq_tracked_orders_user_order"),
        CheckConstraint(
            "status IN ('Ordered', 'Shipped', 'Out for Delivery', 'Arrived')",
            name="ck_tracked_orders_status",
        ),
        CheckConstraint(
            "origin IN ('email-derived', 'manual')",
            name="ck_tracked_orders_origin",
        ),
        CheckConstraint("amount >= 0", name="ck_tracked_orders_amount"),
        Index("idx_tracked_orders_user_date", "user_id", "purchase_date"),
    )

    def __repr__(self) -> str:
        return f"<TrackedOrder(id={self.id}, order_id={self.order_id}, status={self.status})>"
