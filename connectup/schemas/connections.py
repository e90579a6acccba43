from typing import Optional
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from enum import Enum as PyEnum

class ConnectionStatus(str, PyEnum):
    PENDING = "pending"
    FRIENDS = "friends"

class ConnectionRequestCreate(BaseModel):
    to_user_id: str

class ConnectionResponse(BaseModel):
    id: str
    user_id_a: str
    user_id_b: str
    status: ConnectionStatus
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_document(cls, document: dict) -> "ConnectionResponse":
        return cls(
            id=document["id"],
            user_id_a=document["user_id_a"],
            user_id_b=document["user_id_b"],
            status=document["status"],
            created_at=document.get("created_at"),
        )
