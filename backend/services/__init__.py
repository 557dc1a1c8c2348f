"""
Services Package - Business Logic Layer

This package contains service modules that encapsulate business logic,
separating it from HTTP routing concerns.

Services can be called from:
- Flask routes (HTTP requests)
- Background tasks (Celery)
- Tests

Available services:
- orders_service: Order tracking, spend summary and mailbox sync
"""

from . import orders_service

__all__ = [
    'orders_service',
]
