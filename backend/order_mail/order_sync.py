"""
Order Sync Module

Pulls shop order emails from an owner's mailbox and reconciles the
extracted orders into the order store.

Flow: search (all queries) → cap → concurrent fetch → parse → dedup → upsert
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import database
from config import SyncConfig, load_sync_config
from order_mail.logging_config import get_logger
from order_mail.parsing import ExtractedOrder, MessageRef, dedupe_orders, parse_messages

logger = get_logger(__name__)

# Striped locks: writes for one (user_id, order key) always share a stripe
ORDER_LOCK_STRIPES = 64
_order_locks = [threading.Lock() for _ in range(ORDER_LOCK_STRIPES)]


def _get_order_lock(user_id: int, order_key: str) -> threading.Lock:
    return _order_locks[hash((user_id, order_key)) % ORDER_LOCK_STRIPES]


def reconcile_orders(user_id: int, orders: list[ExtractedOrder]) -> list:
    """
    Upsert extracted orders for an owner and return the owner's full order set.

    Each order is written under its identity key; an existing order with the
    same key is overwritten (including fields a user edited by hand). A failed
    write is logged and the remaining orders are still written.

    Args:
        user_id: Owner ID
        orders: Deduplicated extracted orders

    Returns:
        All stored orders for the owner (dicts)
    """
    for order in orders:
        key = order.identity_key
        try:
            with _get_order_lock(user_id, key):
                database.upsert_order(user_id, key, order.to_fields())
        except Exception as e:
            logger.error(
                f"Failed to store order: {e}",
                extra={
                    "user_id": user_id,
                    "order_id": key,
                    "message_id": order.source_message_id,
                },
                exc_info=True,
            )

    return database.get_orders_by_owner(user_id)


def search_messages(mailbox, config: SyncConfig, user_id: int = None) -> list[MessageRef]:
    """
    Run every configured query and union the hits by message ID.

    Order is first-seen across queries. A failing query is skipped; if every
    query fails, the last error is raised.
    """
    refs = []
    seen_ids = set()
    failures = 0
    last_error = None

    for query in config.search_queries:
        try:
            results = mailbox.search(query, config.max_results_per_query)
        except Exception as e:
            failures += 1
            last_error = e
            logger.warning(f"Mailbox search failed for {query!r}: {e}", extra={"user_id": user_id})
            continue

        for ref in results:
            if ref.id not in seen_ids:
                seen_ids.add(ref.id)
                refs.append(ref)

    if config.search_queries and failures == len(config.search_queries):
        raise last_error

    return refs


def fetch_messages(mailbox, refs: list[MessageRef], workers: int) -> list:
    """
    Fetch messages concurrently.

    Results come back in the order of `refs`, whatever order the fetches
    complete in. A failed fetch yields None.
    """
    if not refs:
        return []

    messages = []
    with ThreadPoolExecutor(max_workers=min(workers, len(refs))) as executor:
        futures = [executor.submit(mailbox.fetch, ref) for ref in refs]
        for ref, future in zip(refs, futures):
            try:
                messages.append(future.result())
            except Exception as e:
                logger.warning(f"Failed to fetch message: {e}", extra={"message_id": ref.id})
                messages.append(None)

    return messages


def sync_orders(user_id: int, mailbox, config: Optional[SyncConfig] = None) -> dict:
    """
    Sync shop orders for one owner.

    Args:
        user_id: Owner ID
        mailbox: Object with search(query, max_results) and fetch(ref)
        config: Sync settings (loaded from environment if None)

    Returns:
        Dictionary with the owner's orders and sync counts
    """
    config = config or load_sync_config()

    logger.info("Starting order sync", extra={"user_id": user_id})

    refs = search_messages(mailbox, config, user_id=user_id)
    emails_found = len(refs)

    if emails_found > config.max_messages_per_sync:
        logger.info(
            f"Found {emails_found} messages, processing first {config.max_messages_per_sync}",
            extra={"user_id": user_id},
        )
    refs = refs[: config.max_messages_per_sync]

    messages = fetch_messages(mailbox, refs, config.sync_workers)

    outcomes = parse_messages(
        messages, platform=config.platform_name, category=config.default_category
    )
    parsed_orders = [outcome.order for outcome in outcomes if outcome.parsed]
    orders = dedupe_orders(parsed_orders)

    stored = reconcile_orders(user_id, orders)
    database.update_connection_last_synced(user_id)

    skipped = len(outcomes) - len(parsed_orders)
    logger.info(
        f"Sync completed: {len(orders)} orders from {len(refs)} emails, {skipped} skipped",
        extra={"user_id": user_id},
    )

    return {
        "orders": stored,
        "emails_found": emails_found,
        "emails_processed": len(refs),
        "parsed": len(orders),
        "skipped": skipped,
        "message": f"Synced {len(orders)} orders from {len(refs)} emails",
    }
