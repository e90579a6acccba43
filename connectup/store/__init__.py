from .base import (
    CONNECTIONS,
    NOTIFICATIONS,
    USERS,
    DocumentStore,
    Filter,
    OrderBy,
    PartialBatchError,
    WriteBatch,
)
from .sql_store import SqlDocumentStore

__all__ = [
    "CONNECTIONS",
    "NOTIFICATIONS",
    "USERS",
    "DocumentStore",
    "Filter",
    "OrderBy",
    "PartialBatchError",
    "WriteBatch",
    "SqlDocumentStore",
]
