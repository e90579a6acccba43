import logging
from typing import Optional

from .config import settings
from .database import AsyncSessionLocal, Base, engine
from .store import DocumentStore, SqlDocumentStore

logger = logging.getLogger(__name__)

_store: Optional[DocumentStore] = None

def build_store() -> DocumentStore:
    if settings.store_backend == "firestore":
        from .store.firestore_store import FirestoreDocumentStore
        return FirestoreDocumentStore()
    return SqlDocumentStore(AsyncSessionLocal)

def get_store() -> DocumentStore:
    """FastAPI dependency returning the process-wide document store."""
    global _store
    if _store is None:
        _store = build_store()
        logger.info(f"Using {settings.store_backend} document store")
    return _store

async def create_tables():
    import connectup.models  # noqa: F401  registers the tables on Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
