"""
Document store contract.

Documents are plain dicts carrying their identifier under ``id``. The base
``WriteBatch`` replays its writes one at a time; the SQL and Firestore backends
commit a batch all or nothing, checking update preconditions inside the same
transaction.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from connectup.exceptions import StoreError, WriteConflict

logger = logging.getLogger(__name__)

USERS = "users"
NOTIFICATIONS = "notifications"
CONNECTIONS = "connections"

OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in")


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


class PartialBatchError(StoreError):
    """A non-atomic batch stopped part way through."""

    def __init__(self, applied: int, collection: str, cause: Exception):
        self.applied = applied
        super().__init__("batch commit", collection, cause)


def matches_expected(document: Optional[Dict[str, Any]], expected: Optional[Dict[str, Any]]) -> bool:
    """True when every expected field has the given value in ``document``."""
    if not expected:
        return True
    return all(document.get(key) == value for key, value in expected.items())


@dataclass
class BatchOperation:
    kind: str  # "update", "insert" or "create"
    collection: str
    fields: Dict[str, Any]
    document_id: Optional[str] = None
    expected: Optional[Dict[str, Any]] = None


@dataclass
class WriteBatch:
    """
    Collects writes and applies them on ``commit``.

    The default implementation replays the writes one by one against the
    store, so a failure can leave earlier writes applied and update
    preconditions are only checked with a read just before the write.
    Backends with real transactions override ``commit``.
    """
    store: "DocumentStore"
    operations: List[BatchOperation] = field(default_factory=list)

    def update(
        self,
        collection: str,
        document_id: str,
        fields: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> "WriteBatch":
        """
        Queue a field update. With ``expected``, the commit fails with
        ``WriteConflict`` unless the stored document still has those values.
        """
        self.operations.append(
            BatchOperation("update", collection, dict(fields), document_id, dict(expected) if expected else None)
        )
        return self

    def insert(self, collection: str, fields: Dict[str, Any]) -> "WriteBatch":
        self.operations.append(BatchOperation("insert", collection, dict(fields)))
        return self

    def create(self, collection: str, document_id: str, fields: Dict[str, Any]) -> "WriteBatch":
        """Queue an insert under a fixed id; the commit fails with ``WriteConflict`` if it exists."""
        self.operations.append(BatchOperation("create", collection, dict(fields), document_id))
        return self

    async def _apply(self, operation: BatchOperation) -> str:
        if operation.kind == "create":
            return await self.store.create(operation.collection, operation.document_id, operation.fields)
        if operation.kind == "insert":
            return await self.store.insert(operation.collection, operation.fields)

        if operation.expected:
            current = await self.store.get_by_id(operation.collection, operation.document_id)
            if current is None:
                raise LookupError(f"document {operation.document_id} does not exist")
            if not matches_expected(current, operation.expected):
                raise WriteConflict("batch commit", operation.collection, operation.document_id)
        found = await self.store.update_fields(operation.collection, operation.document_id, operation.fields)
        if not found:
            raise LookupError(f"document {operation.document_id} does not exist")
        return operation.document_id

    async def commit(self) -> List[str]:
        """Returns the ids of the written documents, in operation order."""
        written = []
        for applied, operation in enumerate(self.operations):
            try:
                written.append(await self._apply(operation))
            except WriteConflict as e:
                if applied == 0:
                    raise
                raise PartialBatchError(applied, operation.collection, e) from e
            except Exception as e:
                if applied == 0:
                    raise StoreError("batch commit", operation.collection, e) from e
                raise PartialBatchError(applied, operation.collection, e) from e
        return written


class DocumentStore:
    """Query, point-read, insert and update primitives over named collections."""

    async def query_where(
        self,
        collection: str,
        filters: Sequence[Filter],
        order_by: Optional[Sequence[OrderBy]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def get_by_id(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def insert(self, collection: str, fields: Dict[str, Any]) -> str:
        raise NotImplementedError

    async def create(self, collection: str, document_id: str, fields: Dict[str, Any]) -> str:
        """Insert under ``document_id``. Raises WriteConflict when it is taken."""
        raise NotImplementedError

    async def update_fields(self, collection: str, document_id: str, fields: Dict[str, Any]) -> bool:
        """Returns False when the document does not exist."""
        raise NotImplementedError

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    async def ping(self) -> bool:
        """Cheap reachability check used by the debug endpoint."""
        await self.query_where(USERS, [], limit=1)
        return True

    async def close(self):
        pass
