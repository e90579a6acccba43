import logging
from fastapi import APIRouter, Depends, HTTPException
from connectup.init_db import get_store
from connectup.common import get_current_user
from connectup.exceptions import ConnectUpError
from connectup.schemas.connections import ConnectionRequestCreate, ConnectionResponse
from connectup.services.connection_service import request_connection
from connectup.store import DocumentStore

router = APIRouter(prefix="/connections", tags=["connections"])

# Configure logging
logger = logging.getLogger(__name__)

@router.post("/request", response_model=ConnectionResponse, status_code=201)
async def request_connection_api(
    request: ConnectionRequestCreate,
    store: DocumentStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """
    Send a connect request to another user
    """
    try:
        return await request_connection(store, current_user["uid"], request.to_user_id)
    except ConnectUpError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
