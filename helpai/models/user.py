from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from helpai.models.columns import utc_column
from helpai.utils.timeutils import utcnow


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: Optional[str] = Field(default=None, unique=True)
    password_hash: str
    created_date: datetime = Field(default_factory=utcnow, sa_column=utc_column())
    active: bool = True
