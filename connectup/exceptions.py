"""Exceptions raised by the store and the notification services."""
from typing import Optional


class ConnectUpError(Exception):
    """Base exception for the service. Carries the HTTP status routers should use."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        super().__init__(message)


class StoreError(ConnectUpError):
    """A document store operation failed."""

    def __init__(self, operation: str, collection: str, cause: Exception):
        self.operation = operation
        self.collection = collection
        self.cause = cause
        super().__init__(f"{operation} on '{collection}' failed: {cause}")


class WriteConflict(StoreError):
    """
    A conditional write was refused: the document to create already exists,
    or the document to update no longer has the expected field values.
    """

    status_code = 409

    def __init__(self, operation: str, collection: str, document_id: str, cause: Optional[Exception] = None):
        self.document_id = document_id
        super().__init__(operation, collection, cause or LookupError(f"precondition failed for document {document_id}"))


class ConnectionNotFound(ConnectUpError):
    """No pending connection matches the notification being accepted."""

    status_code = 404

    def __init__(self, from_user_id: str, to_user_id: str):
        self.from_user_id = from_user_id
        self.to_user_id = to_user_id
        super().__init__("Connection not found")


class NotificationNotFound(ConnectUpError):
    status_code = 404

    def __init__(self, notification_id: str):
        self.notification_id = notification_id
        super().__init__(f"Notification {notification_id} not found")


class NotAcceptable(ConnectUpError):
    """Only connect_request notifications can be accepted."""

    status_code = 400

    def __init__(self, notification_id: str, notification_type: str):
        self.notification_id = notification_id
        self.notification_type = notification_type
        super().__init__(f"Notification of type '{notification_type}' cannot be accepted")


class FeedNotLoaded(ConnectUpError):
    status_code = 409

    def __init__(self):
        super().__init__("Feed must be loaded before accepting requests")


class PartialWriteFailure(ConnectUpError):
    """
    The connection was marked friends but the acceptance notification
    was not written.
    """

    def __init__(self, connection_id: str, cause: Exception):
        self.connection_id = connection_id
        self.cause = cause
        super().__init__(
            f"Connection {connection_id} accepted but the acceptance notification could not be created: {cause}"
        )


class InvalidConnectionRequest(ConnectUpError):
    status_code = 400


class ConnectionAlreadyExists(ConnectUpError):
    status_code = 400

    def __init__(self, connection_id: str):
        self.connection_id = connection_id
        super().__init__("A connection between these users already exists")
