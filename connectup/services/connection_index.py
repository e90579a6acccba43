import logging
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import ValidationError

from connectup.schemas.connections import ConnectionResponse, ConnectionStatus
from connectup.store import CONNECTIONS, DocumentStore, Filter, OrderBy

logger = logging.getLogger(__name__)

@dataclass
class IndexResult:
    connections: List[ConnectionResponse] = field(default_factory=list)
    error: Optional[str] = None

async def load_pending(store: DocumentStore, current_user_id: Optional[str]) -> IndexResult:
    """
    Fetch the connection requests waiting on the current user.

    Ordered oldest first, so the first match for a sender is stable across
    loads. Failures are logged and give an empty index.
    """
    if not current_user_id:
        return IndexResult()

    try:
        documents = await store.query_where(
            CONNECTIONS,
            [
                Filter("user_id_b", "==", current_user_id),
                Filter("status", "==", ConnectionStatus.PENDING.value),
            ],
            order_by=[OrderBy("created_at"), OrderBy("id")],
        )
    except Exception as e:
        logger.exception(f"Error loading pending connections for user {current_user_id}")
        return IndexResult(error=f"Could not load connection requests: {e}")

    connections = []
    for document in documents:
        try:
            connections.append(ConnectionResponse.from_document(document))
        except (KeyError, ValidationError) as e:
            logger.warning(f"Skipping malformed connection {document.get('id')}: {e}")
    return IndexResult(connections=connections)

def find_pending(connections: List[ConnectionResponse], requester_id: str, receiver_id: str) -> List[ConnectionResponse]:
    """All pending connections from requester to receiver, in index order."""
    return [
        connection for connection in connections
        if connection.user_id_a == requester_id
        and connection.user_id_b == receiver_id
        and connection.status == ConnectionStatus.PENDING
    ]
