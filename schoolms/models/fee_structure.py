# schoolms/models/fee_structure.py
import enum
from sqlalchemy import Column, String, Integer, Boolean, Date, Numeric, JSON, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class FeeFrequency(str, enum.Enum):
    MONTHLY = "MONTHLY"
    TERM = "TERM"
    ANNUAL = "ANNUAL"
    ONE_TIME = "ONE_TIME"


class FeeStructureStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    DRAFT = "DRAFT"


class FeeStructure(Base):
    __tablename__ = "fee_structures"

    class_id = Column(Uuid, ForeignKey("classes.id"), nullable=False, index=True)
    academic_year = Column(String(10), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    effective_from = Column(Date, nullable=False)
    status = Column(String(10), default=FeeStructureStatus.ACTIVE.value, nullable=False)

    class_ref = relationship("ClassModel")
    items = relationship("FeeStructureItem", back_populates="fee_structure")
    histories = relationship("FeeStructureHistory", back_populates="fee_structure")


class FeeStructureItem(Base):
    __tablename__ = "fee_structure_items"

    fee_structure_id = Column(Uuid, ForeignKey("fee_structures.id"), nullable=False, index=True)
    category = Column(String(50), nullable=False, default="General")
    label = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(String(10), nullable=False, default=FeeFrequency.MONTHLY.value)
    is_optional = Column(Boolean, default=False, nullable=False)

    fee_structure = relationship("FeeStructure", back_populates="items")


class FeeStructureHistory(Base):
    __tablename__ = "fee_structure_history"

    fee_structure_id = Column(Uuid, ForeignKey("fee_structures.id"), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    effective_from = Column(Date, nullable=False)
    total_annual = Column(Numeric(14, 2), nullable=False)
    snapshot = Column(JSON)  # items as they were at this version
    change_reason = Column(Text)

    fee_structure = relationship("FeeStructure", back_populates="histories")
