from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from .models import UserRole


class UserCreate(BaseModel):
    clerk_id: str = Field(..., min_length=1)
    email: EmailStr
    name: str = Field(..., min_length=1)
    role: UserRole


class UserRead(UserCreate):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
