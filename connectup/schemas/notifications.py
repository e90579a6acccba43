from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from enum import Enum as PyEnum

from .connections import ConnectionResponse

class NotificationType(str, PyEnum):
    CONNECT_REQUEST = "connect_request"
    CONNECT_ACCEPTED = "connect_accepted"
    LIKE = "like"
    COMMENT = "comment"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        # Types written by newer clients still load, they just render generically
        return cls.UNKNOWN

class Notification(BaseModel):
    """A notification as read from the store, plus the sender's display name."""
    id: str
    to_user_id: str
    from_user_id: str
    type: NotificationType
    created_at: Optional[datetime] = None
    from_user_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_document(cls, document: dict) -> "Notification":
        return cls(
            id=document["id"],
            to_user_id=document["to_user_id"],
            from_user_id=document["from_user_id"],
            type=NotificationType(document.get("type")),
            created_at=document.get("created_at"),
        )

class NotificationResponse(Notification):
    message: str
    can_accept: bool = False

class FeedResponse(BaseModel):
    notifications: List[NotificationResponse]
    pending_connections: List[ConnectionResponse]
    loading: bool
    error: Optional[str] = None

class AcceptResponse(BaseModel):
    connection_id: str
    notification_id: str
