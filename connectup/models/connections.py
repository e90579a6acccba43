import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from connectup.database import Base

class Connection(Base):
    __tablename__ = "connections"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id_a = Column(String, index=True)  # requester
    user_id_b = Column(String, index=True)  # receiver
    status = Column(String, default="pending")  # pending, friends
    created_at = Column(DateTime(timezone=True), server_default=func.now())
