# schemas/user.py

from typing import Optional
from pydantic import BaseModel
from datetime import datetime


class UserCreate(BaseModel):
    username: str
    password: str
    email: Optional[str] = None


class UserRead(BaseModel):
    id: int
    username: str
    email: Optional[str]
    created_date: datetime
    active: bool

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
