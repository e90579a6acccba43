"""Tests for the Firestore document store against a mocked async client."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.api_core.exceptions import AlreadyExists, NotFound, ServiceUnavailable

from connectup.exceptions import StoreError, WriteConflict
from connectup.store import CONNECTIONS, NOTIFICATIONS, Filter, OrderBy
from connectup.store.firestore_store import FirestoreDocumentStore


def snapshot(document_id, data, exists=True):
    snap = MagicMock()
    snap.id = document_id
    snap.exists = exists
    snap.to_dict.return_value = dict(data) if exists else None
    return snap


class AsyncStream:
    def __init__(self, items):
        self.items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.items:
            raise StopAsyncIteration
        return self.items.pop(0)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def firestore(client):
    return FirestoreDocumentStore(client=client)


class TestFirestoreReads:

    async def test_query_applies_filters_order_and_limit(self, firestore, client):
        query = client.collection.return_value
        query.where.return_value = query
        query.order_by.return_value = query
        query.limit.return_value = query
        query.stream.return_value = AsyncStream([snapshot("n-1", {"to_user_id": "alice"})])

        documents = await firestore.query_where(
            NOTIFICATIONS,
            [Filter("to_user_id", "==", "alice")],
            order_by=[OrderBy("created_at", descending=True), OrderBy("id", descending=True)],
            limit=10,
        )

        assert documents == [{"to_user_id": "alice", "id": "n-1"}]
        client.collection.assert_called_with(NOTIFICATIONS)
        assert query.where.call_count == 1
        assert query.order_by.call_args_list[1].args[0] == "__name__"
        query.limit.assert_called_once_with(10)

    async def test_get_by_id(self, firestore, client):
        document = client.collection.return_value.document.return_value
        document.get = AsyncMock(return_value=snapshot("bob", {"name": "Bob"}))

        assert await firestore.get_by_id("users", "bob") == {"name": "Bob", "id": "bob"}

    async def test_get_missing(self, firestore, client):
        document = client.collection.return_value.document.return_value
        document.get = AsyncMock(return_value=snapshot("ghost", {}, exists=False))

        assert await firestore.get_by_id("users", "ghost") is None

    async def test_backend_errors_become_store_errors(self, firestore, client):
        document = client.collection.return_value.document.return_value
        document.get = AsyncMock(side_effect=ServiceUnavailable("down"))

        with pytest.raises(StoreError):
            await firestore.get_by_id("users", "bob")


class TestFirestoreWrites:

    async def test_insert_returns_new_id(self, firestore, client):
        reference = MagicMock(id="c-1")
        client.collection.return_value.add = AsyncMock(return_value=(None, reference))

        assert await firestore.insert(CONNECTIONS, {"status": "pending"}) == "c-1"

    async def test_update_missing_document(self, firestore, client):
        document = client.collection.return_value.document.return_value
        document.update = AsyncMock(side_effect=NotFound("gone"))

        assert await firestore.update_fields(CONNECTIONS, "c-1", {"status": "friends"}) is False

    async def test_batch_uses_firestore_write_batch(self, firestore, client):
        write_batch = client.batch.return_value
        write_batch.commit = AsyncMock()
        new_reference = MagicMock(id="n-9")
        client.collection.return_value.document.side_effect = [MagicMock(), new_reference]

        batch = firestore.batch()
        batch.update(CONNECTIONS, "c-1", {"status": "friends"})
        batch.insert(NOTIFICATIONS, {"type": "connect_accepted"})
        written = await batch.commit()

        assert written == ["c-1", "n-9"]
        assert write_batch.update.call_count == 1
        write_batch.set.assert_called_once_with(new_reference, {"type": "connect_accepted"})
        write_batch.commit.assert_awaited_once()

    async def test_create_existing_document_conflicts(self, firestore, client):
        document = client.collection.return_value.document.return_value
        document.create = AsyncMock(side_effect=AlreadyExists("taken"))

        with pytest.raises(WriteConflict) as exc_info:
            await firestore.create(CONNECTIONS, "pair-1", {"status": "pending"})

        assert exc_info.value.document_id == "pair-1"

    async def test_batch_create_conflict(self, firestore, client):
        client.batch.return_value.commit = AsyncMock(side_effect=AlreadyExists("taken"))

        batch = firestore.batch()
        batch.create(CONNECTIONS, "pair-1", {"status": "pending"})
        batch.insert(NOTIFICATIONS, {"type": "connect_request"})

        with pytest.raises(WriteConflict):
            await batch.commit()
        client.batch.return_value.create.assert_called_once()


class TestFirestoreConditionalBatch:
    """Updates with expected values run in a transaction."""

    @pytest.fixture(autouse=True)
    def run_transaction_inline(self):
        with patch("connectup.store.firestore_store.async_transactional", lambda func: func):
            yield

    def references(self, client, current):
        connection = MagicMock(id="c-1")
        connection.get = AsyncMock(return_value=current)
        notification = MagicMock(id="n-9")
        client.collection.return_value.document.side_effect = [connection, notification]
        return connection, notification

    async def test_matching_document_is_written(self, firestore, client):
        connection, notification = self.references(client, snapshot("c-1", {"status": "pending"}))
        transaction = client.transaction.return_value

        batch = firestore.batch()
        batch.update(CONNECTIONS, "c-1", {"status": "friends"}, expected={"status": "pending"})
        batch.insert(NOTIFICATIONS, {"type": "connect_accepted"})

        assert await batch.commit() == ["c-1", "n-9"]
        connection.get.assert_awaited_once_with(transaction=transaction)
        transaction.update.assert_called_once_with(connection, {"status": "friends"})
        transaction.set.assert_called_once_with(notification, {"type": "connect_accepted"})
        client.batch.assert_not_called()

    async def test_changed_document_conflicts_without_writes(self, firestore, client):
        self.references(client, snapshot("c-1", {"status": "friends"}))
        transaction = client.transaction.return_value

        batch = firestore.batch()
        batch.update(CONNECTIONS, "c-1", {"status": "friends"}, expected={"status": "pending"})
        batch.insert(NOTIFICATIONS, {"type": "connect_accepted"})

        with pytest.raises(WriteConflict):
            await batch.commit()
        transaction.update.assert_not_called()
        transaction.set.assert_not_called()

    async def test_missing_document_is_a_store_error(self, firestore, client):
        self.references(client, snapshot("c-1", {}, exists=False))

        batch = firestore.batch()
        batch.update(CONNECTIONS, "c-1", {"status": "friends"}, expected={"status": "pending"})

        with pytest.raises(StoreError) as exc_info:
            await batch.commit()
        assert not isinstance(exc_info.value, WriteConflict)
