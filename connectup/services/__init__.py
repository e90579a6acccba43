from .feed_loader import load_feed, resolve_sender_names
from .connection_index import load_pending
from .reconciliation import accept
from .feed_session import FeedSession
from .notification_service import render_message, notify_like, notify_comment
from .connection_service import request_connection

__all__ = ["load_feed", "resolve_sender_names", "load_pending", "accept", "FeedSession", "render_message", "notify_like", "notify_comment", "request_connection"]
