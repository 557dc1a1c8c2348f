"""Celery tasks for shop order syncing."""

from celery_app import celery_app
from order_mail.gmail_auth import build_mailbox_for_user
from order_mail.logging_config import get_logger
from order_mail.order_sync import sync_orders

logger = get_logger(__name__)


@celery_app.task(bind=True, time_limit=600, soft_time_limit=540)
def sync_orders_task(self, user_id: int):
    """
    Celery task to sync an owner's shop orders in the background.

    Args:
        user_id: Owner ID

    Returns:
        dict: Sync statistics (the order list itself is not returned)
    """
    self.update_state(state="STARTED", meta={"status": "syncing", "user_id": user_id})

    try:
        mailbox = build_mailbox_for_user(user_id)
        result = sync_orders(user_id, mailbox)
    except Exception as e:
        logger.error(f"Order sync task failed: {e}", extra={"user_id": user_id}, exc_info=True)
        raise

    return {
        "status": "completed",
        "user_id": user_id,
        "emails_found": result["emails_found"],
        "emails_processed": result["emails_processed"],
        "parsed": result["parsed"],
        "skipped": result["skipped"],
        "order_count": len(result["orders"]),
    }
