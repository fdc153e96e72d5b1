# schoolms/models/leave_type.py
import enum
from sqlalchemy import Column, String, Integer, Boolean, Text, Uuid
from .base import Base


class LeaveTypeStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class LeaveType(Base):
    __tablename__ = "leave_types"

    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text)
    max_days = Column(Integer, nullable=False, default=1)
    is_paid = Column(Boolean, default=False, nullable=False)
    status = Column(String(10), default=LeaveTypeStatus.ACTIVE.value, nullable=False)

    created_by_id = Column(Uuid, nullable=True)
    updated_by_id = Column(Uuid, nullable=True)
