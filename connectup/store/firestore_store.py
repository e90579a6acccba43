import logging
from typing import Any, Dict, List, Optional, Sequence

from firebase_admin import firestore_async
from google.api_core.exceptions import AlreadyExists, GoogleAPICallError, NotFound
from google.cloud.firestore import Query
from google.cloud.firestore_v1.async_transaction import async_transactional
from google.cloud.firestore_v1.base_query import FieldFilter
from google.cloud.firestore_v1.field_path import FieldPath

from connectup.exceptions import StoreError, WriteConflict
from connectup.store.base import DocumentStore, Filter, OrderBy, WriteBatch, matches_expected

logger = logging.getLogger(__name__)


def _to_document(snapshot) -> Dict[str, Any]:
    document = snapshot.to_dict() or {}
    document["id"] = snapshot.id
    return document


def _queue_writes(writer, references):
    """Queue the batch's writes on a Firestore WriteBatch or Transaction."""
    for operation, reference in references:
        if operation.kind == "update":
            writer.update(reference, operation.fields)
        elif operation.kind == "create":
            writer.create(reference, operation.fields)
        else:
            writer.set(reference, operation.fields)


async def _commit_checked(transaction, references):
    # Firestore transactions need every read before the first write
    for operation, reference in references:
        if not operation.expected:
            continue
        snapshot = await reference.get(transaction=transaction)
        if not snapshot.exists:
            raise LookupError(f"document {operation.document_id} does not exist")
        if not matches_expected(snapshot.to_dict(), operation.expected):
            raise WriteConflict("batch commit", operation.collection, operation.document_id)
    _queue_writes(transaction, references)


class FirestoreWriteBatch(WriteBatch):
    """
    Maps onto a Firestore WriteBatch, which commits all writes or none.

    When an update carries expected values the writes run in a transaction
    instead, so the check and the writes commit together.
    """

    async def commit(self) -> List[str]:
        client = self.store.client
        references = []
        for operation in self.operations:
            collection = client.collection(operation.collection)
            if operation.kind == "insert":
                references.append((operation, collection.document()))
            else:
                references.append((operation, collection.document(operation.document_id)))

        collections = ",".join(operation.collection for operation in self.operations)
        try:
            if any(operation.expected for operation in self.operations):
                await async_transactional(_commit_checked)(client.transaction(), references)
            else:
                batch = client.batch()
                _queue_writes(batch, references)
                await batch.commit()
        except AlreadyExists as e:
            created = next((op for op in self.operations if op.kind == "create"), self.operations[0])
            raise WriteConflict("batch commit", created.collection, created.document_id, e) from e
        except (GoogleAPICallError, LookupError) as e:
            raise StoreError("batch commit", collections, e) from e

        return [
            operation.document_id if operation.document_id is not None else reference.id
            for operation, reference in references
        ]


class FirestoreDocumentStore(DocumentStore):
    """Document store over Cloud Firestore through the firebase_admin async client."""

    def __init__(self, client=None, app=None):
        self.client = client if client is not None else firestore_async.client(app)

    async def query_where(
        self,
        collection: str,
        filters: Sequence[Filter],
        order_by: Optional[Sequence[OrderBy]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query = self.client.collection(collection)
        for flt in filters:
            query = query.where(filter=FieldFilter(flt.field, flt.op, flt.value))
        for ordering in order_by or []:
            # "id" is not stored in the document body, order by the document name instead
            field = FieldPath.document_id() if ordering.field == "id" else ordering.field
            direction = Query.DESCENDING if ordering.descending else Query.ASCENDING
            query = query.order_by(field, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        try:
            return [_to_document(snapshot) async for snapshot in query.stream()]
        except GoogleAPICallError as e:
            raise StoreError("query", collection, e) from e

    async def get_by_id(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        try:
            snapshot = await self.client.collection(collection).document(document_id).get()
        except GoogleAPICallError as e:
            raise StoreError("get", collection, e) from e
        return _to_document(snapshot) if snapshot.exists else None

    async def insert(self, collection: str, fields: Dict[str, Any]) -> str:
        try:
            _, reference = await self.client.collection(collection).add(fields)
        except GoogleAPICallError as e:
            raise StoreError("insert", collection, e) from e
        return reference.id

    async def create(self, collection: str, document_id: str, fields: Dict[str, Any]) -> str:
        try:
            await self.client.collection(collection).document(document_id).create(fields)
        except AlreadyExists as e:
            raise WriteConflict("create", collection, document_id, e) from e
        except GoogleAPICallError as e:
            raise StoreError("create", collection, e) from e
        return document_id

    async def update_fields(self, collection: str, document_id: str, fields: Dict[str, Any]) -> bool:
        try:
            await self.client.collection(collection).document(document_id).update(fields)
        except NotFound:
            return False
        except GoogleAPICallError as e:
            raise StoreError("update", collection, e) from e
        return True

    def batch(self) -> FirestoreWriteBatch:
        return FirestoreWriteBatch(self)
