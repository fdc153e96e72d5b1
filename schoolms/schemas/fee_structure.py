# schoolms/schemas/fee_structure.py
from typing import List, Literal, Optional
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, Field

FrequencyLiteral = Literal["MONTHLY", "TERM", "ANNUAL", "ONE_TIME"]
StructureStatusLiteral = Literal["ACTIVE", "ARCHIVED", "DRAFT"]


class FeeItemIn(BaseModel):
    category: str = Field(default="General", min_length=1, max_length=50)
    label: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    frequency: FrequencyLiteral = "MONTHLY"
    is_optional: bool = False


class FeeStructureCreate(BaseModel):
    class_id: Optional[UUID] = None
    class_ids: Optional[List[UUID]] = None
    academic_year: str = Field(..., min_length=4, max_length=10)
    name: str = Field(..., min_length=1, max_length=150)
    effective_from: date
    status: StructureStatusLiteral = "ACTIVE"
    items: List[FeeItemIn] = Field(..., min_length=1)


class FeeStructureRevise(BaseModel):
    effective_from: date
    items: List[FeeItemIn] = Field(..., min_length=1)
    change_reason: Optional[str] = Field(default=None, max_length=500)


class FeeStatusUpdate(BaseModel):
    status: StructureStatusLiteral


class FeeItemResponse(BaseModel):
    id: UUID
    category: str
    label: str
    amount: float
    frequency: str
    is_optional: bool

    class Config:
        from_attributes = True


class FeeStructureResponse(BaseModel):
    id: UUID
    class_id: UUID
    academic_year: str
    name: str
    effective_from: date
    status: str
    created_at: datetime
    items: List[FeeItemResponse] = []

    class Config:
        from_attributes = True


class FeeHistoryResponse(BaseModel):
    id: UUID
    version: int
    effective_from: date
    total_annual: float
    snapshot: Optional[list] = None
    change_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
