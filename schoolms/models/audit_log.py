# schoolms/models/audit_log.py
from sqlalchemy import Column, String, JSON, Uuid
from .base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    user_id = Column(Uuid, nullable=True, index=True)
    action = Column(String(60), nullable=False, index=True)
    module = Column(String(40), nullable=False, index=True)
    status = Column(String(10), nullable=False, default="SUCCESS")
    details = Column(JSON)
    ip_address = Column(String(64))
    user_agent = Column(String(500))
