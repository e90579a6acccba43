"""
Notification creation and display text.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from connectup.schemas.notifications import Notification, NotificationType
from connectup.store import NOTIFICATIONS, DocumentStore

# Set up logger
logger = logging.getLogger(__name__)

MESSAGE_TEMPLATES = {
    NotificationType.CONNECT_REQUEST: "👋 {name} sent you a connect request",
    NotificationType.CONNECT_ACCEPTED: "🤝 {name} accepted your connect request",
    NotificationType.LIKE: "❤️ {name} liked your post",
    NotificationType.COMMENT: "💬 {name} commented on your post",
}

def render_message(notification: Notification) -> str:
    """Display text for a feed item, using the sender's name when it was resolved."""
    template = MESSAGE_TEMPLATES.get(notification.type)
    if template is None:
        return "New notification"
    return template.format(name=notification.from_user_name or notification.from_user_id)

def notification_fields(to_user_id: str, from_user_id: str, notification_type: NotificationType) -> dict:
    """Stored fields of a new notification, stamped with the current time."""
    return {
        "to_user_id": to_user_id,
        "from_user_id": from_user_id,
        "type": notification_type.value,
        "created_at": datetime.now(timezone.utc),
    }

async def create_notification(
    store: DocumentStore,
    to_user_id: str,
    from_user_id: str,
    notification_type: NotificationType,
) -> str:
    """
    Insert a notification stamped with the current time.

    Returns:
        str: Id of the new notification
    """
    notification_id = await store.insert(
        NOTIFICATIONS, notification_fields(to_user_id, from_user_id, notification_type)
    )
    logger.info(f"Created {notification_type.value} notification for user {to_user_id} from user {from_user_id}")
    return notification_id

async def _notify_activity(
    store: DocumentStore, post_author_id: str, actor_id: str, notification_type: NotificationType
) -> Optional[str]:
    if post_author_id == actor_id:
        logger.debug(f"User {actor_id} acted on their own post, no notification created")
        return None
    return await create_notification(store, post_author_id, actor_id, notification_type)

async def notify_like(store: DocumentStore, post_author_id: str, liker_id: str) -> Optional[str]:
    """
    Notify a post's author that their post was liked.

    Args:
        store: Document store
        post_author_id: ID of the user who wrote the post
        liker_id: ID of the user who liked the post

    Returns:
        The new notification id, or None when users like their own post
    """
    return await _notify_activity(store, post_author_id, liker_id, NotificationType.LIKE)

async def notify_comment(store: DocumentStore, post_author_id: str, commenter_id: str) -> Optional[str]:
    """Same as notify_like, for comments."""
    return await _notify_activity(store, post_author_id, commenter_id, NotificationType.COMMENT)
