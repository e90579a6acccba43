import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from connectup.database import Base

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    to_user_id = Column(String, index=True)
    from_user_id = Column(String)
    type = Column(String)  # connect_request, connect_accepted, like, comment
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
