"""Tests for mailbox search, fetch and order reconciliation."""

import binascii

import pytest

import database
from config import SyncConfig
from order_mail import order_sync
from order_mail.order_sync import fetch_messages, reconcile_orders, search_messages, sync_orders
from order_mail.parsing import MessageRef, RawMessage, synthesize_order

SENDER = "TikTok Shop <noreply@tiktokshop.com>"


def shop_message(message_id, subject="Your order has shipped!", body="", date="2024-01-15"):
    return RawMessage(id=message_id, sender=SENDER, subject=subject, body=body, date=date)


@pytest.fixture
def config():
    return SyncConfig(search_queries=["q1", "q2"], max_messages_per_sync=20, sync_workers=3)


@pytest.fixture
def connected_user(clean_db):
    database.save_mailbox_connection(1, "shopper@example.com", "encrypted-token")
    return 1


class TestSearchMessages:
    def test_union_in_first_seen_order(self, fake_mailbox, config):
        mailbox = fake_mailbox(search_results={"q1": ["a", "b"], "q2": ["b", "c", "a"]})

        refs = search_messages(mailbox, config)

        assert [ref.id for ref in refs] == ["a", "b", "c"]
        assert mailbox.searched == ["q1", "q2"]

    def test_failing_query_is_skipped(self, fake_mailbox, config):
        mailbox = fake_mailbox(search_results={"q2": ["c"]}, failing_queries=["q1"])

        refs = search_messages(mailbox, config)

        assert [ref.id for ref in refs] == ["c"]

    def test_all_queries_failing_raises(self, fake_mailbox, config):
        mailbox = fake_mailbox(failing_queries=["q1", "q2"])

        with pytest.raises(ConnectionError):
            search_messages(mailbox, config)


class TestFetchMessages:
    def test_results_follow_ref_order(self, fake_mailbox):
        messages = [shop_message(str(i)) for i in range(10)]
        mailbox = fake_mailbox(messages=messages, missing_ids=["3"])
        refs = [MessageRef(id=str(i)) for i in range(10)]

        fetched = fetch_messages(mailbox, refs, workers=4)

        assert fetched[3] is None
        assert [m.id for m in fetched if m] == [str(i) for i in range(10) if i != 3]

    def test_no_refs(self, fake_mailbox):
        assert fetch_messages(fake_mailbox(), [], workers=4) == []

    def test_fetch_error_yields_none(self, fake_mailbox):
        class BrokenFetchMailbox(fake_mailbox):
            def fetch(self, ref):
                if ref.id == "bad":
                    raise binascii.Error("Incorrect padding")
                return super().fetch(ref)

        mailbox = BrokenFetchMailbox(messages=[shop_message("good"), shop_message("bad")])
        refs = [MessageRef(id="bad"), MessageRef(id="good")]

        fetched = fetch_messages(mailbox, refs, workers=2)

        assert fetched[0] is None
        assert fetched[1].id == "good"


class TestReconcileOrders:
    def test_upsert_by_identity_key(self, clean_db):
        first = synthesize_order(shop_message("m1", body="Order 111111111111111111 Total ₱100.00"))
        again = synthesize_order(
            shop_message("m2", subject="Delivered!", body="Order 111111111111111111 Total ₱100.00")
        )

        stored = reconcile_orders(1, [first])
        stored_again = reconcile_orders(1, [again])

        assert len(stored) == len(stored_again) == 1
        assert stored_again[0]["id"] == stored[0]["id"]
        assert stored_again[0]["status"] == "Arrived"
        assert stored_again[0]["source_message_id"] == "m2"

    def test_resync_overwrites_user_edits(self, clean_db):
        order = synthesize_order(shop_message("m1", body="JT123456789012345"))
        stored = reconcile_orders(1, [order])
        database.update_order_status(1, stored[0]["id"], "Arrived")

        stored = reconcile_orders(1, [order])

        assert stored[0]["status"] == "Shipped"
        assert stored[0]["origin"] == "email-derived"

    def test_failed_write_does_not_stop_others(self, clean_db, monkeypatch):
        real_upsert = database.upsert_order

        def flaky_upsert(user_id, key, fields):
            if key == "email-bad":
                raise RuntimeError("write failed")
            return real_upsert(user_id, key, fields)

        monkeypatch.setattr(order_sync.database, "upsert_order", flaky_upsert)

        orders = [synthesize_order(shop_message(mid)) for mid in ("bad", "good")]
        stored = reconcile_orders(1, orders)

        assert [o["order_id"] for o in stored] == ["email-good"]

    def test_order_lock_is_stable_per_key(self):
        lock = order_sync._get_order_lock(1, "111111111111111111")

        assert order_sync._get_order_lock(1, "111111111111111111") is lock
        for i in range(500):
            order_sync._get_order_lock(1, f"email-m{i}")
        assert len(order_sync._order_locks) == order_sync.ORDER_LOCK_STRIPES

    def test_owners_are_isolated(self, clean_db):
        order = synthesize_order(shop_message("m1"))
        reconcile_orders(1, [order])
        reconcile_orders(2, [order])

        assert len(database.get_orders_by_owner(1)) == 1
        assert len(database.get_orders_by_owner(2)) == 1


class TestSyncOrders:
    def test_full_sync(self, fake_mailbox, config, connected_user):
        messages = [
            shop_message("m1", body="<p>Total Payment ₱217.43</p> JT123456789012345"),
            shop_message("m2", subject="Delivered", body="Order 222222222222222222"),
            RawMessage(id="m3", sender="news@example.com", subject="Weekly digest"),
        ]
        mailbox = fake_mailbox(messages=messages, missing_ids=["m4"])
        mailbox.messages["m4"] = None

        result = sync_orders(connected_user, mailbox, config)

        assert result["emails_found"] == 4
        assert result["emails_processed"] == 4
        assert result["parsed"] == 2
        assert result["skipped"] == 2
        assert result["message"] == "Synced 2 orders from 4 emails"
        assert {o["order_id"] for o in result["orders"]} == {
            "email-m1",
            "222222222222222222",
        }
        assert database.get_mailbox_connection(connected_user)["last_synced_at"] is not None

    def test_message_cap(self, fake_mailbox, connected_user):
        config = SyncConfig(search_queries=["q"], max_messages_per_sync=2, sync_workers=2)
        mailbox = fake_mailbox(messages=[shop_message(f"m{i}") for i in range(5)])

        result = sync_orders(connected_user, mailbox, config)

        assert result["emails_found"] == 5
        assert result["emails_processed"] == 2
        assert sorted(mailbox.fetched) == ["m0", "m1"]

    def test_duplicate_emails_for_one_order(self, fake_mailbox, config, connected_user):
        body = "Order 333333333333333333"
        mailbox = fake_mailbox(
            messages=[
                shop_message("m1", subject="Order confirmed", body=body),
                shop_message("m2", subject="Your order has shipped", body=body),
            ]
        )

        result = sync_orders(connected_user, mailbox, config)

        assert result["parsed"] == 1
        assert result["orders"][0]["status"] == "Ordered"
        assert result["orders"][0]["source_message_id"] == "m1"

    def test_fetch_error_does_not_abort_sync(self, fake_mailbox, config, connected_user):
        class BrokenFetchMailbox(fake_mailbox):
            def fetch(self, ref):
                if ref.id == "bad":
                    raise binascii.Error("Incorrect padding")
                return super().fetch(ref)

        mailbox = BrokenFetchMailbox(
            messages=[
                shop_message("good", body="Order 444444444444444444"),
                shop_message("bad", body="Order 555555555555555555"),
            ]
        )

        result = sync_orders(connected_user, mailbox, config)

        assert result["parsed"] == 1
        assert result["skipped"] == 1
        assert [o["order_id"] for o in database.get_orders_by_owner(connected_user)] == [
            "444444444444444444"
        ]
        assert database.get_mailbox_connection(connected_user)["last_synced_at"] is not None

    def test_search_failure_propagates(self, fake_mailbox, config, connected_user):
        mailbox = fake_mailbox(failing_queries=["q1", "q2"])

        with pytest.raises(ConnectionError):
            sync_orders(connected_user, mailbox, config)

        assert database.get_mailbox_connection(connected_user)["last_synced_at"] is None
