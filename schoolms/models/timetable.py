# schoolms/models/timetable.py
import enum
from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class DayOfWeek(str, enum.Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


DAY_ORDER = {day.value: index for index, day in enumerate(DayOfWeek)}


class TimeslotType(str, enum.Enum):
    REGULAR = "REGULAR"
    BREAK = "BREAK"
    LUNCH = "LUNCH"
    ACTIVITY = "ACTIVITY"
    STUDY_HALL = "STUDY_HALL"
    FREE_PERIOD = "FREE_PERIOD"


class ClassTimeslot(Base):
    __tablename__ = "class_timeslots"

    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=False, index=True)
    day = Column(String(10), nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)
    type = Column(String(20), default=TimeslotType.REGULAR.value, nullable=False)
    label = Column(String(50))

    created_by_id = Column(Uuid, nullable=True)


class ScheduleSlot(Base):
    __tablename__ = "schedule_slots"

    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=False, index=True)
    timeslot_id = Column(Uuid, ForeignKey("class_timeslots.id"), nullable=False, index=True)
    day = Column(String(10), nullable=False)
    subject_name = Column(String(100))
    teacher_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    room_id = Column(Uuid, ForeignKey("classrooms.id"), nullable=True)
    has_conflict = Column(Boolean, default=False, nullable=False)

    created_by_id = Column(Uuid, nullable=True)
    updated_by_id = Column(Uuid, nullable=True)

    timeslot = relationship("ClassTimeslot")
    teacher = relationship("User")
    room = relationship("Classroom")
