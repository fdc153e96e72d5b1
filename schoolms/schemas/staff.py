# schoolms/schemas/staff.py
from typing import Any, Dict, Literal, Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, computed_field

from ..utils.avatar import build_avatar_url

EmploymentStatusLiteral = Literal["active", "on_leave", "resigned", "terminated"]


class StaffBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    middle_name: Optional[str] = Field(default=None, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=20)
    employee_id: Optional[str] = Field(default=None, max_length=30)
    designation: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=50)
    qualification: Optional[str] = Field(default=None, max_length=200)
    experience_years: int = Field(default=0, ge=0, le=70)
    employment_date: Optional[date] = None
    employment_status: EmploymentStatusLiteral = "active"
    bio: Optional[str] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    address: Optional[Dict[str, Any]] = None
    profile_photo_url: Optional[str] = Field(default=None, max_length=500)


class StaffCreate(StaffBase):
    basic_salary: Decimal = Field(default=Decimal("0"), ge=0)
    allowances: Decimal = Field(default=Decimal("0"), ge=0)
    create_login_account: bool = False
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)


class StaffAdminUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    middle_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    employee_id: Optional[str] = Field(default=None, max_length=30)
    designation: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=50)
    qualification: Optional[str] = Field(default=None, max_length=200)
    experience_years: Optional[int] = Field(default=None, ge=0, le=70)
    employment_date: Optional[date] = None
    bio: Optional[str] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    address: Optional[Dict[str, Any]] = None
    profile_photo_url: Optional[str] = Field(default=None, max_length=500)


class StaffSelfUpdate(BaseModel):
    """Fields a staff member may change on their own record."""
    phone: Optional[str] = Field(default=None, max_length=20)
    qualification: Optional[str] = Field(default=None, max_length=200)
    bio: Optional[str] = None
    emergency_contact: Optional[Dict[str, Any]] = None
    address: Optional[Dict[str, Any]] = None
    profile_photo_url: Optional[str] = Field(default=None, max_length=500)


class StaffStatusUpdate(BaseModel):
    employment_status: EmploymentStatusLiteral


class StaffResponse(StaffBase):
    id: UUID
    user_id: Optional[UUID] = None
    email: str
    full_name: str
    basic_salary: float
    allowances: float
    total_salary: float
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def avatar_url(self) -> Optional[str]:
        return build_avatar_url(self.profile_photo_url)

    class Config:
        from_attributes = True


class SalaryCalculation(BaseModel):
    basic_salary: Decimal = Field(..., ge=0)
    allowances: Decimal = Field(default=Decimal("0"), ge=0)


class SalaryUpdateRequest(BaseModel):
    basic_salary: Decimal = Field(..., ge=0)
    allowances: Decimal = Field(default=Decimal("0"), ge=0)
    change_type: Literal["PROMOTION", "ADJUSTMENT", "INCREMENT", "DEMOTION"] = "ADJUSTMENT"
    change_reason: Optional[str] = Field(default=None, max_length=500)
    effective_month: Optional[date] = None


class SalaryHistoryResponse(BaseModel):
    id: UUID
    staff_id: UUID
    effective_month: date
    basic_salary: float
    allowances: float
    total_salary: float
    change_type: str
    change_reason: Optional[str] = None
    approved_by_id: Optional[UUID] = None
    approved_by_name: Optional[str] = None
    approved_by_email: Optional[str] = None
    created_at: datetime
