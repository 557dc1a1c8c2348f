"""
Order Email Parser Package

Heuristic extraction of shop orders from notification emails.

Architecture:
- models: Shared data types (messages, statuses, extracted orders)
- normalizer: Markup/CSS stripping and whitespace normalization
- filtering: Platform relevance and lifecycle status from sender/subject
- pattern_extraction: Regex field extractors
- utilities: Send-date parsing
- orchestrator: Per-message synthesis, batch parsing and dedup

Public API:
- synthesize_order(message, platform) - Build one order from one message
- parse_messages(messages, platform) - One outcome per message
- parse_order_emails(messages, platform) - Deduplicated orders
"""

from .filtering import (
    DEFAULT_PLATFORM,
    classify_message,
    get_lifecycle_status,
    is_platform_email,
)
from .models import (
    STATUS_ORDER,
    ExtractedOrder,
    LifecycleStatus,
    MessageRef,
    OrderOrigin,
    ParseOutcome,
    RawMessage,
)
from .normalizer import (
    clean_text,
    combine_message_text,
)
from .orchestrator import (
    build_item_label,
    dedupe_orders,
    parse_messages,
    parse_order_emails,
    synthesize_order,
)
from .pattern_extraction import (
    extract_order_id,
    extract_quantity,
    extract_shop_name,
    extract_total_price,
    extract_tracking_number,
    extract_variant,
)
from .utilities import (
    parse_send_date,
    resolve_purchase_date,
)

__all__ = [
    # Orchestrator (primary API)
    "synthesize_order",
    "parse_messages",
    "parse_order_emails",
    "dedupe_orders",
    "build_item_label",
    # Data types
    "RawMessage",
    "MessageRef",
    "ExtractedOrder",
    "ParseOutcome",
    "LifecycleStatus",
    "OrderOrigin",
    "STATUS_ORDER",
    # Classification
    "DEFAULT_PLATFORM",
    "is_platform_email",
    "get_lifecycle_status",
    "classify_message",
    # Normalization
    "clean_text",
    "combine_message_text",
    # Field extraction
    "extract_order_id",
    "extract_tracking_number",
    "extract_shop_name",
    "extract_variant",
    "extract_total_price",
    "extract_quantity",
    # Dates
    "parse_send_date",
    "resolve_purchase_date",
]
