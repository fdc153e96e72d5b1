# schoolms/models/__init__.py
"""Import all models here so Alembic and the test metadata see every table."""
from .base import Base
from .user import User, UserSession, UserRole
from .staff import Staff, StaffSalaryHistory, EmploymentStatus, SalaryChangeType
from .classroom import Classroom, ClassModel
from .student import Student
from .parent import Parent, ParentStudentLink
from .leave_type import LeaveType, LeaveTypeStatus
from .fee_structure import (
    FeeStructure, FeeStructureItem, FeeStructureHistory,
    FeeFrequency, FeeStructureStatus
)
from .timetable import ClassTimeslot, ScheduleSlot, DayOfWeek, TimeslotType
from .audit_log import AuditLog
