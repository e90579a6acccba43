from .user import User
from .notifications import Notification
from .connections import Connection

__all__ = ["User", "Notification", "Connection"]
