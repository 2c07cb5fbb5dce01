from pydantic import BaseModel, Field
from typing import Literal
from datetime import datetime

Role = Literal["user", "assistant", "system"]

class MessageRead(BaseModel):
    id: int
    conversation_id: int
    role: Role
    content: str
    timestamp: datetime

    class Config:
        from_attributes = True

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    conversation_id: int

class ChatExchangeRead(BaseModel):
    user_message: MessageRead
    assistant_message: MessageRead
