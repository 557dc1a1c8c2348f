"""
Order Email Data Types

Plain data types shared by the extraction pipeline:
- MessageRef / RawMessage: what the mailbox collaborator hands us
- LifecycleStatus / OrderOrigin: enumerated order attributes
- ExtractedOrder: the structured record synthesized from one email
- ParseOutcome: per-message result of a batch parse
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class LifecycleStatus(str, Enum):
    """Order lifecycle, in canonical progression order."""
    ORDERED = "Ordered"
    SHIPPED = "Shipped"
    OUT_FOR_DELIVERY = "Out for Delivery"
    ARRIVED = "Arrived"

    @property
    def rank(self) -> int:
        return STATUS_ORDER.index(self)

    @property
    def progress(self) -> float:
        """Fraction of the progression reached (0.0 for Ordered, 1.0 for Arrived)."""
        return self.rank / (len(STATUS_ORDER) - 1)

    def is_reached(self, current: "LifecycleStatus") -> bool:
        """True if an order currently at `current` has passed through this status."""
        return current.rank >= self.rank

    @classmethod
    def parse(cls, value) -> "LifecycleStatus":
        """Parse a status from its value or name ('Out for Delivery', 'OUT_FOR_DELIVERY')."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip()
        for status in cls:
            if text.lower() in (status.value.lower(), status.name.lower()):
                return status
        raise ValueError(
            f"Invalid status: {value!r}. Must be one of: {', '.join(s.value for s in cls)}"
        )


STATUS_ORDER = list(LifecycleStatus)


class OrderOrigin(str, Enum):
    EMAIL = "email-derived"
    MANUAL = "manual"


@dataclass(frozen=True)
class MessageRef:
    """Search hit returned by the mailbox collaborator."""
    id: str
    thread_id: Optional[str] = None


@dataclass(frozen=True)
class RawMessage:
    """A fetched email. Body may contain markup; date is the raw header value."""
    id: str
    sender: str = ""
    subject: str = ""
    snippet: str = ""
    body: str = ""
    date: str = ""


@dataclass
class ExtractedOrder:
    source_message_id: Optional[str]
    item_label: str
    status: LifecycleStatus
    purchase_date: date
    order_id: str = ""
    shop_name: str = ""
    variant: str = ""
    quantity: int = 1
    amount: float = 0.0
    category: str = "Fashion"
    tracking_number: str = ""
    carrier: str = ""
    origin: OrderOrigin = OrderOrigin.EMAIL
    extracted_at: datetime = field(default_factory=datetime.now)

    @property
    def identity_key(self) -> str:
        """Durable store key: the platform order ID, else one derived from the source email."""
        if self.order_id:
            return self.order_id
        return f"email-{self.source_message_id}"

    def to_fields(self) -> dict:
        """Column values for the order store (everything except the key)."""
        data = asdict(self)
        data.pop("order_id")
        data["status"] = self.status.value
        data["origin"] = self.origin.value
        return data


@dataclass
class ParseOutcome:
    """Result of parsing one batch item: an order, or the reason there is none."""
    message_id: Optional[str]
    reason: str
    order: Optional[ExtractedOrder] = None

    @property
    def parsed(self) -> bool:
        return self.order is not None
