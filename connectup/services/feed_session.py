import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from connectup.exceptions import FeedNotLoaded, NotificationNotFound
from connectup.schemas.connections import ConnectionResponse
from connectup.schemas.notifications import Notification, NotificationType
from connectup.services import reconciliation
from connectup.services.connection_index import find_pending, load_pending
from connectup.services.feed_loader import load_feed
from connectup.store import DocumentStore

logger = logging.getLogger(__name__)

@dataclass
class FeedState:
    notifications: List[Notification] = field(default_factory=list)
    pending_connections: List[ConnectionResponse] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    loaded: bool = False

class FeedSession:
    """
    In-memory projection of one user's notification feed and pending
    connection requests.

    Rebuilt from the store by ``load`` and patched in place by ``accept``.
    Nothing is shared between sessions.
    """

    def __init__(self, store: DocumentStore, current_user_id: Optional[str], fetch_limit: Optional[int] = None):
        self.store = store
        self.current_user_id = current_user_id
        self.fetch_limit = fetch_limit
        self.state = FeedState()
        self._accept_lock = asyncio.Lock()

    async def load(self) -> FeedState:
        """Load the feed and the pending index concurrently. Either may fail alone."""
        if not self.current_user_id:
            logger.debug("No current user, feed session not loaded")
            return self.state

        self.state.loading = True
        feed, index = await asyncio.gather(
            load_feed(self.store, self.current_user_id, self.fetch_limit),
            load_pending(self.store, self.current_user_id),
        )
        errors = [e for e in (feed.error, index.error) if e]
        self.state = FeedState(
            notifications=feed.notifications,
            pending_connections=index.connections,
            loading=False,
            error="; ".join(errors) or None,
            loaded=True,
        )
        return self.state

    def get_notification(self, notification_id: str) -> Notification:
        for notification in self.state.notifications:
            if notification.id == notification_id:
                return notification
        raise NotificationNotFound(notification_id)

    def can_accept(self, notification: Notification) -> bool:
        """Whether the Accept control should be shown for this notification."""
        return (
            notification.type == NotificationType.CONNECT_REQUEST
            and notification.to_user_id == self.current_user_id
            and bool(find_pending(self.state.pending_connections, notification.from_user_id, self.current_user_id))
        )

    async def accept(self, notification_id: str) -> reconciliation.AcceptResult:
        if not self.state.loaded:
            raise FeedNotLoaded()
        notification = self.get_notification(notification_id)
        # Accepts are serialized per session
        async with self._accept_lock:
            return await reconciliation.accept(
                self.store, self.current_user_id, notification, self.state.pending_connections
            )
