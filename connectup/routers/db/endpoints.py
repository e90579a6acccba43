import logging
from fastapi import APIRouter, Depends
from connectup.init_db import get_store
from connectup.store import DocumentStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/debug", tags=["Debug"])

@router.get("/store-test")
async def store_test(store: DocumentStore = Depends(get_store)):
    """
    Test if the document store is reachable.
    """
    try:
        logger.info("Testing document store connection")
        return {"ok": await store.ping()}
    except Exception as e:
        logger.exception("Document store check failed")
        return {"ok": False, "error": str(e)}
