# schoolms/schemas/student.py
from typing import Optional
from datetime import date, datetime
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, computed_field

from ..utils.avatar import build_avatar_url


class StudentCreate(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=150)
    email: EmailStr
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    class_id: Optional[UUID] = None
    roll_number: Optional[str] = Field(default=None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(default=None, max_length=10)
    profile_photo_url: Optional[str] = Field(default=None, max_length=500)


class StudentUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=150)
    class_id: Optional[UUID] = None
    roll_number: Optional[str] = Field(default=None, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(default=None, max_length=10)
    profile_photo_url: Optional[str] = Field(default=None, max_length=500)


class AddParentRequest(BaseModel):
    parent_id: UUID
    relationship: str = Field(default="guardian", max_length=30)
    is_primary: bool = False


class StudentResponse(BaseModel):
    id: UUID
    user_id: UUID
    class_id: Optional[UUID] = None
    full_name: str
    email: Optional[str] = None
    roll_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    profile_photo_url: Optional[str] = None
    created_at: datetime

    @computed_field
    @property
    def avatar_url(self) -> Optional[str]:
        return build_avatar_url(self.profile_photo_url)

    class Config:
        from_attributes = True
