# schoolms/schemas/timetable.py
from typing import Literal, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field

DayLiteral = Literal["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]
TimeslotTypeLiteral = Literal["REGULAR", "BREAK", "LUNCH", "ACTIVITY", "STUDY_HALL", "FREE_PERIOD"]

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class TimeslotCreate(BaseModel):
    class_id: UUID
    day: DayLiteral
    start_time: str = Field(..., pattern=HHMM)
    end_time: str = Field(..., pattern=HHMM)
    type: TimeslotTypeLiteral = "REGULAR"
    label: Optional[str] = Field(default=None, max_length=50)


class TimeslotResponse(BaseModel):
    id: UUID
    class_id: UUID
    day: str
    start_time: str
    end_time: str
    type: str
    label: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AssignSubjectRequest(BaseModel):
    class_id: UUID
    timeslot_id: UUID
    subject_name: str = Field(..., min_length=1, max_length=100)
    room_id: Optional[UUID] = None


class AssignTeacherRequest(BaseModel):
    teacher_id: UUID


class ScheduleSlotResponse(BaseModel):
    id: UUID
    class_id: UUID
    timeslot_id: UUID
    day: str
    subject_name: Optional[str] = None
    teacher_id: Optional[UUID] = None
    room_id: Optional[UUID] = None
    has_conflict: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
