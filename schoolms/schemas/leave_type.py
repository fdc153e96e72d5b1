# schoolms/schemas/leave_type.py
from typing import Literal, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, field_validator


def clean_leave_type_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = " ".join(v.split())
    if not 2 <= len(v) <= 100:
        raise ValueError('name must be between 2 and 100 characters')
    return v


class LeaveTypeCreate(BaseModel):
    name: str
    description: Optional[str] = Field(default=None, max_length=500)
    max_days: int = Field(..., ge=1, le=365)
    is_paid: bool = False
    status: Literal["ACTIVE", "INACTIVE"] = "ACTIVE"

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return clean_leave_type_name(v)


class LeaveTypeUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)
    max_days: Optional[int] = Field(default=None, ge=1, le=365)
    is_paid: Optional[bool] = None
    status: Optional[Literal["ACTIVE", "INACTIVE"]] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return clean_leave_type_name(v)


class LeaveTypeResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    max_days: int
    is_paid: bool
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
