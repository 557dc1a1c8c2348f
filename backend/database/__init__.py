"""
Database Layer - Public API

This module provides the public interface for all database operations.
It imports and re-exports functions from domain-specific modules.

Usage:
    from database import upsert_order, get_orders_by_owner
    # or
    import database

Organization:
    - base.py: Engine, session factory and table creation
    - orders.py: Tracked order upsert, queries and user operations
    - connections.py: Per-owner mailbox connections
"""

from .base import (
    Base,
    SessionLocal,
    engine,
    get_session,
    init_db,
)
from .connections import (
    delete_mailbox_connection,
    get_mailbox_connection,
    save_mailbox_connection,
    update_connection_last_synced,
)
from .orders import (
    create_manual_order,
    delete_order,
    get_order_by_key,
    get_orders_by_owner,
    order_to_dict,
    update_order_status,
    upsert_order,
)

__all__ = [
    # Base
    'Base',
    'SessionLocal',
    'engine',
    'get_session',
    'init_db',
    # Orders
    'upsert_order',
    'get_orders_by_owner',
    'get_order_by_key',
    'create_manual_order',
    'update_order_status',
    'delete_order',
    'order_to_dict',
    # Mailbox connections
    'save_mailbox_connection',
    'get_mailbox_connection',
    'update_connection_last_synced',
    'delete_mailbox_connection',
]
