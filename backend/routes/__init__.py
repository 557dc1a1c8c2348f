"""Routes package for API endpoints."""

from routes.health import health_bp
from routes.mailbox import mailbox_bp
from routes.orders import orders_bp

__all__ = [
    "health_bp",
    "mailbox_bp",
    "orders_bp",
]
