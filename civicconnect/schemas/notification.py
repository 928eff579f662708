import uuid
from typing import List, Optional
from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    title: str
    message: str
    type: str
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    is_read: bool = False
    created_at: str

    model_config = {"from_attributes": True}


class NotificationMarkRead(BaseModel):
    notification_ids: Optional[List[uuid.UUID]] = None
