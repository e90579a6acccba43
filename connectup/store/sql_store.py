import logging
import operator
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from connectup.exceptions import StoreError, WriteConflict
from connectup.models import Connection, Notification, User
from connectup.store.base import (
    CONNECTIONS,
    NOTIFICATIONS,
    USERS,
    DocumentStore,
    Filter,
    OrderBy,
    WriteBatch,
)

logger = logging.getLogger(__name__)

COLLECTION_MODELS = {
    USERS: User,
    NOTIFICATIONS: Notification,
    CONNECTIONS: Connection,
}

_COMPARATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def _model(collection: str):
    try:
        return COLLECTION_MODELS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}")


def _to_document(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def _condition(model, flt: Filter):
    column = getattr(model, flt.field)
    if flt.op == "in":
        return column.in_(list(flt.value))
    return _COMPARATORS[flt.op](column, flt.value)


class SqlWriteBatch(WriteBatch):
    """
    All writes go through one session and commit in a single transaction.

    Updates are issued as ``UPDATE ... WHERE`` with the expected values, so a
    concurrent writer that got there first makes the update match no row.
    """

    async def commit(self) -> List[str]:
        written = []
        collection = None
        try:
            async with self.store.session_factory() as session:
                async with session.begin():
                    for operation in self.operations:
                        collection = operation.collection
                        model = _model(operation.collection)
                        if operation.kind == "update":
                            conditions = [model.id == operation.document_id]
                            conditions += [
                                getattr(model, key) == value for key, value in (operation.expected or {}).items()
                            ]
                            result = await session.execute(
                                update(model).where(*conditions).values(**operation.fields)
                            )
                            if result.rowcount == 0:
                                if await session.get(model, operation.document_id) is None:
                                    raise LookupError(f"document {operation.document_id} does not exist")
                                raise WriteConflict("batch commit", collection, operation.document_id)
                            written.append(operation.document_id)
                        else:
                            if operation.kind == "create":
                                row = model(id=operation.document_id, **operation.fields)
                            else:
                                row = model(**operation.fields)
                            session.add(row)
                            try:
                                await session.flush()
                            except IntegrityError as e:
                                if operation.kind == "create":
                                    raise WriteConflict("batch commit", collection, operation.document_id, e) from e
                                raise
                            written.append(row.id)
        except (SQLAlchemyError, LookupError) as e:
            raise StoreError("batch commit", collection or "", e) from e
        return written


class SqlDocumentStore(DocumentStore):
    """
    Document store backed by async SQLAlchemy tables.

    Every call opens its own session, so concurrent reads (sender lookups)
    never share a session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def query_where(
        self,
        collection: str,
        filters: Sequence[Filter],
        order_by: Optional[Sequence[OrderBy]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        model = _model(collection)
        stmt = select(model).where(*[_condition(model, flt) for flt in filters])
        for ordering in order_by or []:
            column = getattr(model, ordering.field)
            stmt = stmt.order_by(column.desc() if ordering.descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [_to_document(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError("query", collection, e) from e

    async def get_by_id(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        model = _model(collection)
        try:
            async with self.session_factory() as session:
                row = await session.get(model, document_id)
                return _to_document(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreError("get", collection, e) from e

    async def insert(self, collection: str, fields: Dict[str, Any]) -> str:
        model = _model(collection)
        try:
            async with self.session_factory() as session:
                row = model(**fields)
                session.add(row)
                await session.flush()
                document_id = row.id
                await session.commit()
                return document_id
        except SQLAlchemyError as e:
            raise StoreError("insert", collection, e) from e

    async def create(self, collection: str, document_id: str, fields: Dict[str, Any]) -> str:
        model = _model(collection)
        try:
            async with self.session_factory() as session:
                session.add(model(id=document_id, **fields))
                await session.commit()
        except IntegrityError as e:
            raise WriteConflict("create", collection, document_id, e) from e
        except SQLAlchemyError as e:
            raise StoreError("create", collection, e) from e
        return document_id

    async def update_fields(self, collection: str, document_id: str, fields: Dict[str, Any]) -> bool:
        model = _model(collection)
        stmt = update(model).where(model.id == document_id).values(**fields)
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StoreError("update", collection, e) from e

    def batch(self) -> SqlWriteBatch:
        return SqlWriteBatch(self)
