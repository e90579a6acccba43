"""
Accepting connection requests.

Accepting a ``connect_request`` notification flips the matching pending
connection to ``friends`` and notifies the requester with a
``connect_accepted`` notification. Both writes go out as one store batch.
"""
import logging
from dataclasses import dataclass
from typing import List

from connectup.exceptions import ConnectionNotFound, NotAcceptable, PartialWriteFailure, WriteConflict
from connectup.schemas.connections import ConnectionResponse, ConnectionStatus
from connectup.schemas.notifications import Notification, NotificationType
from connectup.services.connection_index import find_pending
from connectup.services.notification_service import notification_fields
from connectup.store import CONNECTIONS, NOTIFICATIONS, DocumentStore, PartialBatchError

logger = logging.getLogger(__name__)

@dataclass
class AcceptResult:
    connection_id: str
    notification_id: str

async def accept(
    store: DocumentStore,
    current_user_id: str,
    notification: Notification,
    pending: List[ConnectionResponse],
) -> AcceptResult:
    """
    Accept a connection request notification.

    Args:
        store: Document store holding connections and notifications
        current_user_id: The user accepting the request
        notification: The connect_request notification being accepted
        pending: The caller's pending connection index. The matched
            connection is removed from it in place once it is no longer
            pending in the store.

    Returns:
        AcceptResult: Ids of the updated connection and the new notification

    Raises:
        NotAcceptable: The notification is not a connection request
        ConnectionNotFound: No pending connection matches, or another accept
            changed it first; nothing was written
        PartialWriteFailure: The connection was updated but the notification
            write failed (only on stores without atomic batches)
    """
    if notification.type != NotificationType.CONNECT_REQUEST:
        raise NotAcceptable(notification.id, notification.type.value)

    requester_id = notification.from_user_id
    matches = []
    if notification.to_user_id == current_user_id:
        matches = find_pending(pending, requester_id, current_user_id)
    if not matches:
        logger.info(f"No pending connection from {requester_id} to {current_user_id}")
        raise ConnectionNotFound(requester_id, current_user_id)
    if len(matches) > 1:
        logger.warning(
            f"Found {len(matches)} pending connections from {requester_id} to {current_user_id}: "
            f"{[m.id for m in matches]}, accepting {matches[0].id}"
        )
    connection = matches[0]

    batch = store.batch()
    batch.update(
        CONNECTIONS,
        connection.id,
        {"status": ConnectionStatus.FRIENDS.value},
        expected={"status": ConnectionStatus.PENDING.value},
    )
    batch.insert(NOTIFICATIONS, notification_fields(requester_id, current_user_id, NotificationType.CONNECT_ACCEPTED))
    try:
        _, notification_id = await batch.commit()
    except WriteConflict:
        # Accepted by another request between our load and this write
        pending.remove(connection)
        logger.info(f"Connection {connection.id} is no longer pending, nothing written")
        raise ConnectionNotFound(requester_id, current_user_id)
    except PartialBatchError as e:
        # The status update landed, so the connection is no longer pending
        pending.remove(connection)
        logger.error(f"Connection {connection.id} accepted without notifying {requester_id}: {e.cause}")
        raise PartialWriteFailure(connection.id, e.cause) from e

    pending.remove(connection)
    logger.info(f"User {current_user_id} accepted connection {connection.id} from {requester_id}")
    return AcceptResult(connection_id=connection.id, notification_id=notification_id)
