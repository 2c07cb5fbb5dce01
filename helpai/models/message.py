from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from helpai.models.columns import utc_column
from helpai.utils.timeutils import utcnow

class Message(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="conversation.id", index=True)
    role: str  # "user" | "assistant" | "system"
    content: str
    timestamp: datetime = Field(default_factory=utcnow, sa_column=utc_column())
