from typing import Optional
from pydantic import BaseModel

class UserBase(BaseModel):
    email: Optional[str] = None

class UserCreate(UserBase):
    id: str

class UserUpdate(BaseModel):
    quota_bytes: Optional[int] = None

class User(UserBase):
    id: str
    quota_bytes: int
    used_bytes: int

    class Config:
        from_attributes = True

class UserStorage(User):
    available_bytes: int
