from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from helpai.models.columns import utc_column
from helpai.utils.timeutils import utcnow

DEFAULT_TITLE = "New Conversation"

class Conversation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = DEFAULT_TITLE
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)  # None = invitado
    created_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())
