# schoolms/schemas/parent.py
from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, computed_field

from ..utils.avatar import build_avatar_url


class ParentCreate(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=150)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=20)
    occupation: Optional[str] = Field(default=None, max_length=100)
    address: Optional[Dict[str, Any]] = None
    profile_photo_url: Optional[str] = Field(default=None, max_length=500)
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    student_ids: List[UUID] = []


class ParentUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    occupation: Optional[str] = Field(default=None, max_length=100)
    address: Optional[Dict[str, Any]] = None
    profile_photo_url: Optional[str] = Field(default=None, max_length=500)


class LinkChildRequest(BaseModel):
    student_id: UUID
    relationship: str = Field(default="guardian", max_length=30)
    is_primary: bool = False


class ParentResponse(BaseModel):
    id: UUID
    user_id: UUID
    full_name: str
    email: str
    phone: Optional[str] = None
    occupation: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    profile_photo_url: Optional[str] = None
    created_at: datetime

    @computed_field
    @property
    def avatar_url(self) -> Optional[str]:
        return build_avatar_url(self.profile_photo_url)

    class Config:
        from_attributes = True


class LinkedPersonResponse(BaseModel):
    """A parent-student link seen from either side."""
    link_id: UUID
    id: UUID
    full_name: str
    email: Optional[str] = None
    relationship: Optional[str] = None
    is_primary: bool
    avatar_url: Optional[str] = None
