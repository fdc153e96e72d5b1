# schoolms/schemas/room.py
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, field_validator


class RoomBase(BaseModel):
    room_no: str = Field(..., min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, max_length=100)
    floor: int = Field(default=0, ge=-5, le=200)
    building: Optional[str] = Field(default=None, max_length=100)
    capacity: int = Field(default=30, ge=1, le=1000)
    is_available: bool = True
    note: Optional[str] = None

    @field_validator('room_no')
    @classmethod
    def strip_room_no(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('room_no must not be blank')
        return v


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    room_no: Optional[str] = Field(default=None, min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, max_length=100)
    floor: Optional[int] = Field(default=None, ge=-5, le=200)
    building: Optional[str] = Field(default=None, max_length=100)
    capacity: Optional[int] = Field(default=None, ge=1, le=1000)
    is_available: Optional[bool] = None
    note: Optional[str] = None


class RoomClassSummary(BaseModel):
    id: UUID
    grade: int
    section: str

    class Config:
        from_attributes = True


class RoomResponse(RoomBase):
    id: UUID
    created_at: datetime
    updated_at: datetime
    classes: List[RoomClassSummary] = []

    class Config:
        from_attributes = True
