"""Tests for the notification feed loader."""

import asyncio
from unittest.mock import AsyncMock, patch

from connectup.exceptions import StoreError
from connectup.schemas.notifications import NotificationType
from connectup.services.feed_loader import load_feed, resolve_sender_names
from connectup.store import NOTIFICATIONS, SqlDocumentStore
from tests.factories import BASE_TIME, add_notification, add_user


class TrackingStore(SqlDocumentStore):
    """Records how many point reads are in flight at once."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.in_flight = 0
        self.max_in_flight = 0
        self.lookups = []

    async def get_by_id(self, collection, document_id):
        self.lookups.append(document_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.01)
        try:
            return await super().get_by_id(collection, document_id)
        finally:
            self.in_flight -= 1


class TestLoadFeed:
    """Feed contents, ordering and name enrichment."""

    async def test_returns_only_notifications_for_user_newest_first(self, store):
        await add_user(store, "bob", "Bob Builder")
        first = await add_notification(store, "alice", "bob", "like", minutes=1)
        second = await add_notification(store, "alice", "bob", "comment", minutes=5)
        third = await add_notification(store, "alice", "bob", "connect_request", minutes=3)
        await add_notification(store, "carol", "bob", "like", minutes=10)

        feed = await load_feed(store, "alice")

        assert feed.error is None
        assert feed.loading is False
        assert [n.id for n in feed.notifications] == [second, third, first]
        assert all(n.to_user_id == "alice" for n in feed.notifications)

    async def test_equal_timestamps_order_by_id(self, store):
        for notification_id in ("n-b", "n-c", "n-a"):
            await store.insert(NOTIFICATIONS, {
                "id": notification_id,
                "to_user_id": "alice",
                "from_user_id": "bob",
                "type": "like",
                "created_at": BASE_TIME,
            })

        feed = await load_feed(store, "alice")

        assert [n.id for n in feed.notifications] == ["n-c", "n-b", "n-a"]

    async def test_attaches_sender_names_with_id_fallback(self, store):
        await add_user(store, "bob", "Bob Builder")
        await add_user(store, "nameless", None)
        await add_notification(store, "alice", "bob", minutes=1)
        await add_notification(store, "alice", "ghost", minutes=2)
        await add_notification(store, "alice", "nameless", minutes=3)
        await add_notification(store, "alice", "bob", minutes=4)

        feed = await load_feed(store, "alice")

        names = [(n.from_user_id, n.from_user_name) for n in feed.notifications]
        assert names == [
            ("bob", "Bob Builder"),
            ("nameless", "nameless"),
            ("ghost", "ghost"),
            ("bob", "Bob Builder"),
        ]

    async def test_unknown_type_reads_as_unknown(self, store):
        await add_notification(store, "alice", "bob", "poke")

        feed = await load_feed(store, "alice")

        assert feed.notifications[0].type == NotificationType.UNKNOWN

    async def test_respects_limit(self, store):
        for minutes in range(5):
            await add_notification(store, "alice", "bob", "like", minutes=minutes)

        feed = await load_feed(store, "alice", limit=2)

        assert len(feed.notifications) == 2
        assert feed.notifications[0].created_at.minute == 4

    async def test_skips_without_current_user(self, store):
        with patch.object(store, "query_where", AsyncMock()) as query:
            feed = await load_feed(store, None)

        query.assert_not_called()
        assert feed.skipped is True
        assert feed.notifications == []
        assert feed.loading is False

    async def test_query_failure_gives_empty_feed_with_error(self, store):
        failure = StoreError("query", NOTIFICATIONS, RuntimeError("unavailable"))
        with patch.object(store, "query_where", AsyncMock(side_effect=failure)):
            feed = await load_feed(store, "alice")

        assert feed.notifications == []
        assert feed.loading is False
        assert "unavailable" in feed.error

    async def test_sender_lookup_failure_falls_back_to_id(self, store):
        await add_notification(store, "alice", "bob")

        with patch.object(store, "get_by_id", AsyncMock(side_effect=RuntimeError("timeout"))):
            feed = await load_feed(store, "alice")

        assert feed.error is None
        assert feed.notifications[0].from_user_name == "bob"


    async def test_malformed_documents_are_skipped(self, store, caplog):
        good = await add_notification(store, "alice", "bob", "like", minutes=2)
        await store.insert(NOTIFICATIONS, {"to_user_id": "alice", "type": "like", "created_at": BASE_TIME})

        feed = await load_feed(store, "alice")

        assert feed.error is None
        assert [n.id for n in feed.notifications] == [good]
        assert "Skipping malformed notification" in caplog.text

    async def test_document_missing_fields_is_skipped(self, store):
        documents = [
            {"id": "n-1", "to_user_id": "alice", "type": "like"},
            {"id": "n-2", "to_user_id": "alice", "from_user_id": "bob", "type": "like"},
        ]
        with patch.object(store, "query_where", AsyncMock(return_value=documents)):
            feed = await load_feed(store, "alice")

        assert [n.id for n in feed.notifications] == ["n-2"]

class TestResolveSenderNames:
    async def test_looks_up_each_sender_once_and_concurrently(self, session_factory):
        store = TrackingStore(session_factory)
        await add_user(store, "bob", "Bob")
        await add_user(store, "carol", "Carol")

        names = await resolve_sender_names(store, ["bob", "carol", "bob", "dave"])

        assert names == {"bob": "Bob", "carol": "Carol", "dave": "dave"}
        assert sorted(store.lookups) == ["bob", "carol", "dave"]
        assert store.max_in_flight == 3
