import logging
from fastapi import APIRouter, Depends, HTTPException
from connectup.init_db import get_store
from connectup.common import get_current_user
from connectup.exceptions import ConnectUpError
from connectup.schemas.notifications import AcceptResponse, FeedResponse, NotificationResponse
from connectup.services.feed_session import FeedSession
from connectup.services.notification_service import render_message
from connectup.store import DocumentStore

logger = logging.getLogger(__name__)

# Initialize router with prefix and tags for API documentation
router = APIRouter(prefix="/notifications", tags=["notifications"])

@router.get("/feed", response_model=FeedResponse)
async def get_feed_api(
    store: DocumentStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """
    Notification feed for the current user, newest first.

    Each item carries its display message and whether it can be accepted.
    Load failures come back as an empty feed with ``error`` set rather than
    an HTTP error.
    """
    session = FeedSession(store, current_user["uid"])
    state = await session.load()
    return FeedResponse(
        notifications=[
            NotificationResponse(
                **notification.model_dump(),
                message=render_message(notification),
                can_accept=session.can_accept(notification),
            )
            for notification in state.notifications
        ],
        pending_connections=state.pending_connections,
        loading=state.loading,
        error=state.error,
    )

@router.post("/{notification_id}/accept", response_model=AcceptResponse)
async def accept_notification_api(
    notification_id: str,
    store: DocumentStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """
    Accept the connection request behind a connect_request notification.

    Raises:
        HTTPException: 404 when the notification or its pending connection
            is gone, 400 for notifications that are not connection requests
    """
    session = FeedSession(store, current_user["uid"])
    await session.load()
    try:
        result = await session.accept(notification_id)
    except ConnectUpError as e:
        logger.info(f"Accept of notification {notification_id} failed: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return AcceptResponse(connection_id=result.connection_id, notification_id=result.notification_id)
