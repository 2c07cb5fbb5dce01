from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from helpai.schemas.message import MessageRead

class ConversationCreate(BaseModel):
    title: Optional[str] = None

class ConversationRead(BaseModel):
    id: int
    title: str
    user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ConversationUpdate(BaseModel):
    title: str

class ConversationDetail(BaseModel):
    conversation: ConversationRead
    messages: List[MessageRead]
