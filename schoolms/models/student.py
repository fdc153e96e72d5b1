# schoolms/models/student.py
from sqlalchemy import Column, String, Date, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Student(Base):
    __tablename__ = "students"

    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=True, index=True)

    full_name = Column(String(150), nullable=False)
    email = Column(String(254), index=True)
    roll_number = Column(String(20))
    date_of_birth = Column(Date)
    gender = Column(String(10))
    profile_photo_url = Column(String(500))

    created_by_id = Column(Uuid, nullable=True)
    updated_by_id = Column(Uuid, nullable=True)

    user = relationship("User")
    class_ref = relationship("ClassModel", back_populates="students")
    parent_links = relationship("ParentStudentLink", back_populates="student")
