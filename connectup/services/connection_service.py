import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from connectup.exceptions import ConnectionAlreadyExists, InvalidConnectionRequest, WriteConflict
from connectup.schemas.connections import ConnectionResponse, ConnectionStatus
from connectup.schemas.notifications import NotificationType
from connectup.services.notification_service import notification_fields
from connectup.store import CONNECTIONS, NOTIFICATIONS, USERS, DocumentStore, Filter

# Configure logging for this module
logger = logging.getLogger(__name__)

CONNECTION_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "connections.connectup")

def connection_id_for(user_id: str, other_user_id: str) -> str:
    """
    Id of the connection between two users, the same in either direction.

    Creating the connection under this id lets the store reject a second
    connection for the pair even when two requests race.
    """
    return str(uuid.uuid5(CONNECTION_ID_NAMESPACE, "\n".join(sorted((user_id, other_user_id)))))

async def get_connection_between(store: DocumentStore, user_id: str, other_user_id: str) -> Optional[dict]:
    """
    Find a connection for the unordered pair, in either direction and any status.
    """
    for requester, receiver in ((user_id, other_user_id), (other_user_id, user_id)):
        documents = await store.query_where(
            CONNECTIONS,
            [Filter("user_id_a", "==", requester), Filter("user_id_b", "==", receiver)],
            limit=1,
        )
        if documents:
            return documents[0]
    return None

async def request_connection(store: DocumentStore, from_user_id: str, to_user_id: str) -> ConnectionResponse:
    """
    Send a connection request.

    Creates a pending connection and a connect_request notification for the
    receiver in one batch. At most one connection may exist per pair of users.

    Args:
        store: Document store
        from_user_id: The requesting user
        to_user_id: The user being asked to connect

    Returns:
        ConnectionResponse: The new pending connection

    Raises:
        InvalidConnectionRequest: Self requests or unknown receiver
        ConnectionAlreadyExists: The pair already has a connection
    """
    if from_user_id == to_user_id:
        raise InvalidConnectionRequest("You can't send a connect request to yourself")

    receiver = await store.get_by_id(USERS, to_user_id)
    if not receiver:
        raise InvalidConnectionRequest("User not found", status_code=404)

    existing = await get_connection_between(store, from_user_id, to_user_id)
    if existing:
        logger.info(f"Connection {existing['id']} already exists between {from_user_id} and {to_user_id}")
        raise ConnectionAlreadyExists(existing["id"])

    connection_id = connection_id_for(from_user_id, to_user_id)
    fields = {
        "user_id_a": from_user_id,
        "user_id_b": to_user_id,
        "status": ConnectionStatus.PENDING.value,
        "created_at": datetime.now(timezone.utc),
    }
    batch = store.batch()
    batch.create(CONNECTIONS, connection_id, fields)
    batch.insert(NOTIFICATIONS, notification_fields(to_user_id, from_user_id, NotificationType.CONNECT_REQUEST))
    try:
        await batch.commit()
    except WriteConflict as e:
        logger.info(f"Concurrent connect request between {from_user_id} and {to_user_id} already created {connection_id}")
        raise ConnectionAlreadyExists(connection_id) from e

    logger.info(f"User {from_user_id} sent connect request {connection_id} to {to_user_id}")
    return ConnectionResponse(id=connection_id, **fields)
