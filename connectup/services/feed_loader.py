import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from connectup.config import settings
from connectup.schemas.notifications import Notification
from connectup.store import NOTIFICATIONS, USERS, DocumentStore, Filter, OrderBy

# Configure logging
logger = logging.getLogger(__name__)

@dataclass
class FeedResult:
    notifications: List[Notification] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    # True when there was no current user and nothing was queried
    skipped: bool = False

def _parse_notifications(documents: Iterable[dict]) -> List[Notification]:
    notifications = []
    for document in documents:
        try:
            notifications.append(Notification.from_document(document))
        except (KeyError, ValidationError) as e:
            logger.warning(f"Skipping malformed notification {document.get('id')}: {e}")
    return notifications

async def _resolve_sender_name(store: DocumentStore, user_id: str) -> str:
    try:
        user = await store.get_by_id(USERS, user_id)
    except Exception:
        logger.exception(f"Failed to resolve sender {user_id}, falling back to the id")
        return user_id
    if not user or not user.get("name"):
        return user_id
    return user["name"]

async def resolve_sender_names(store: DocumentStore, user_ids: Iterable[str]) -> Dict[str, str]:
    """
    Look up display names for a set of users concurrently.

    Every lookup is awaited before returning, so callers never see a
    partially resolved mapping. Missing users map to their own id.
    """
    distinct_ids = list(dict.fromkeys(user_ids))
    names = await asyncio.gather(*[_resolve_sender_name(store, user_id) for user_id in distinct_ids])
    return dict(zip(distinct_ids, names))

async def load_feed(store: DocumentStore, current_user_id: Optional[str], limit: Optional[int] = None) -> FeedResult:
    """
    Load notifications addressed to the current user, newest first, with the
    sender's display name attached.

    Args:
        store: Document store to read from
        current_user_id: Identifier of the signed-in user, may be empty
        limit: Maximum number of notifications, defaults to the configured fetch size

    Returns:
        FeedResult: The feed. Query failures are logged and reported through
        ``error`` with an empty notification list.
    """
    if not current_user_id:
        logger.debug("No current user, skipping feed load")
        return FeedResult(skipped=True)

    try:
        documents = await store.query_where(
            NOTIFICATIONS,
            [Filter("to_user_id", "==", current_user_id)],
            order_by=[OrderBy("created_at", descending=True), OrderBy("id", descending=True)],
            limit=limit or settings.notification_fetch_limit,
        )
        notifications = _parse_notifications(documents)
        names = await resolve_sender_names(store, (n.from_user_id for n in notifications))
    except Exception as e:
        logger.exception(f"Error loading notifications for user {current_user_id}")
        return FeedResult(error=f"Could not load notifications: {e}")

    for notification in notifications:
        notification.from_user_name = names.get(notification.from_user_id, notification.from_user_id)

    logger.info(f"Loaded {len(notifications)} notifications for user {current_user_id}")
    return FeedResult(notifications=notifications)
