# schoolms/services/audit_service.py
"""Write-through audit trail. A failed audit write never fails the caller."""
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..models.audit_log import AuditLog
from ..schemas.common import RequestContext

logger = logging.getLogger(__name__)


class AuditService(BaseService[AuditLog]):
    def __init__(self, db: AsyncSession):
        super().__init__(AuditLog, db)

    async def record(
        self,
        action: str,
        module: str,
        status: str = "SUCCESS",
        user_id: Optional[UUID] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditLog]:
        entry = AuditLog(
            action=action,
            module=module,
            status=status,
            user_id=user_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            self.db.add(entry)
            await self.db.commit()
            return entry
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to write audit log {module}.{action}: {e}")
            return None

    async def log(
        self,
        action: str,
        module: str,
        user_id: Optional[UUID],
        ctx: Optional[RequestContext] = None,
        status: str = "SUCCESS",
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """record() with the caller's request context unpacked"""
        ctx = ctx or RequestContext()
        return await self.record(
            action=action,
            module=module,
            status=status,
            user_id=user_id,
            details=details,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
        )

    async def query(
        self,
        page: int = 1,
        limit: int = 10,
        user_id: Optional[UUID] = None,
        module: Optional[str] = None,
        action: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        stmt = self.active(select(AuditLog))
        if user_id:
            stmt = stmt.where(AuditLog.user_id == user_id)
        if module:
            stmt = stmt.where(AuditLog.module == module)
        if action:
            stmt = stmt.where(AuditLog.action == action)
        if status:
            stmt = stmt.where(AuditLog.status == status)
        stmt = stmt.order_by(AuditLog.created_at.desc())
        return await self.paginate(stmt, page, limit)
