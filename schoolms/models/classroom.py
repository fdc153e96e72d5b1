# schoolms/models/classroom.py
from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Classroom(Base):
    """A physical room; classes are assigned to it."""
    __tablename__ = "classrooms"

    room_no = Column(String(20), nullable=False, unique=True, index=True)
    name = Column(String(100))
    floor = Column(Integer, nullable=False, default=0, index=True)
    building = Column(String(100))
    capacity = Column(Integer, nullable=False, default=30)
    is_available = Column(Boolean, default=True, nullable=False)
    note = Column(Text)

    created_by_id = Column(Uuid, nullable=True)
    updated_by_id = Column(Uuid, nullable=True)

    classes = relationship("ClassModel", back_populates="room")


class ClassModel(Base):
    __tablename__ = "classes"

    grade = Column(Integer, nullable=False)
    section = Column(String(10), nullable=False)
    capacity = Column(Integer, default=40)
    room_id = Column(Uuid, ForeignKey("classrooms.id"), nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint("grade", "section", name="uq_class_grade_section"),
    )

    room = relationship("Classroom", back_populates="classes")
    students = relationship("Student", back_populates="class_ref")

    @property
    def display_name(self) -> str:
        return f"{self.grade}-{self.section}"
