# schoolms/models/parent.py
from sqlalchemy import Column, String, Boolean, JSON, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Parent(Base):
    __tablename__ = "parents"

    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    full_name = Column(String(150), nullable=False)
    email = Column(String(254), nullable=False, index=True)
    phone = Column(String(20))
    occupation = Column(String(100))
    address = Column(JSON)
    profile_photo_url = Column(String(500))

    created_by_id = Column(Uuid, nullable=True)
    updated_by_id = Column(Uuid, nullable=True)

    user = relationship("User")
    child_links = relationship("ParentStudentLink", back_populates="parent")


class ParentStudentLink(Base):
    """Join row between parents and students; removed physically on unlink."""
    __tablename__ = "parent_student_links"

    parent_id = Column(Uuid, ForeignKey("parents.id"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False, index=True)
    relationship_type = Column("relationship", String(30), default="guardian")
    is_primary = Column(Boolean, default=False, nullable=False)

    created_by_id = Column(Uuid, nullable=True)

    __table_args__ = (
        UniqueConstraint("parent_id", "student_id", name="uq_parent_student"),
    )

    parent = relationship("Parent", back_populates="child_links")
    student = relationship("Student", back_populates="parent_links")
