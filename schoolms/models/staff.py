# schoolms/models/staff.py
import enum
from sqlalchemy import Column, String, Integer, Date, Numeric, JSON, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class EmploymentStatus(str, enum.Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    RESIGNED = "resigned"
    TERMINATED = "terminated"


class SalaryChangeType(str, enum.Enum):
    INITIAL = "INITIAL"
    PROMOTION = "PROMOTION"
    ADJUSTMENT = "ADJUSTMENT"
    INCREMENT = "INCREMENT"
    DEMOTION = "DEMOTION"


class Staff(Base):
    __tablename__ = "staff"

    # Login account is optional for staff
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)

    # Basic Information
    first_name = Column(String(50), nullable=False)
    middle_name = Column(String(50))
    last_name = Column(String(50), nullable=False)
    email = Column(String(254), nullable=False, index=True)
    phone = Column(String(20))
    employee_id = Column(String(30), index=True)

    # Employment
    designation = Column(String(100))
    department = Column(String(50), index=True)
    qualification = Column(String(200))
    experience_years = Column(Integer, default=0)
    employment_date = Column(Date)
    employment_status = Column(String(20), default=EmploymentStatus.ACTIVE.value, nullable=False)

    # Current salary, history lives in staff_salary_history
    basic_salary = Column(Numeric(12, 2), default=0, nullable=False)
    allowances = Column(Numeric(12, 2), default=0, nullable=False)
    total_salary = Column(Numeric(12, 2), default=0, nullable=False)

    # Profile
    bio = Column(Text)
    emergency_contact = Column(JSON)
    address = Column(JSON)
    profile_photo_url = Column(String(500))

    created_by_id = Column(Uuid, nullable=True)
    updated_by_id = Column(Uuid, nullable=True)

    user = relationship("User")
    salary_history = relationship("StaffSalaryHistory", back_populates="staff")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.middle_name, self.last_name) if p)


class StaffSalaryHistory(Base):
    __tablename__ = "staff_salary_history"

    staff_id = Column(Uuid, ForeignKey("staff.id"), nullable=False, index=True)
    effective_month = Column(Date, nullable=False, index=True)  # always the 1st of a month

    basic_salary = Column(Numeric(12, 2), nullable=False)
    allowances = Column(Numeric(12, 2), nullable=False)
    total_salary = Column(Numeric(12, 2), nullable=False)

    change_type = Column(String(20), nullable=False, default=SalaryChangeType.ADJUSTMENT.value)
    change_reason = Column(Text)
    approved_by_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_by_id = Column(Uuid, nullable=True)

    staff = relationship("Staff", back_populates="salary_history")
    approved_by = relationship("User")
