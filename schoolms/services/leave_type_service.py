# schoolms/services/leave_type_service.py
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .audit_service import AuditService
from .base_service import BaseService
from ..core.exceptions import ConflictError
from ..models.leave_type import LeaveType, LeaveTypeStatus
from ..schemas.common import RequestContext
from ..schemas.leave_type import LeaveTypeCreate, LeaveTypeResponse, LeaveTypeUpdate
from ..utils.pagination import Paginator

logger = logging.getLogger(__name__)

MODULE = "LEAVE_TYPE"


class LeaveTypeService(BaseService[LeaveType]):
    not_found_message = "Leave type not found"

    def __init__(self, db: AsyncSession):
        super().__init__(LeaveType, db)
        self.audit = AuditService(db)

    @staticmethod
    def serialize(leave_type: LeaveType) -> Dict[str, Any]:
        return LeaveTypeResponse.model_validate(leave_type).model_dump(mode="json")

    async def _name_taken(self, name: str, exclude_id: Optional[UUID] = None) -> bool:
        stmt = self.active(select(LeaveType.id).where(func.lower(LeaveType.name) == name.lower()))
        if exclude_id:
            stmt = stmt.where(LeaveType.id != exclude_id)
        return (await self.db.execute(stmt)).first() is not None

    async def create(self, data: LeaveTypeCreate, user_id: UUID,
                     ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        if await self._name_taken(data.name):
            raise ConflictError(f"Leave type '{data.name}' already exists")

        leave_type = LeaveType(**data.model_dump(), created_by_id=user_id)
        self.db.add(leave_type)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log("CREATE_LEAVE_TYPE", MODULE, user_id, ctx,
                             details={"leave_type_id": str(leave_type.id), "name": leave_type.name})
        return self.serialize(leave_type)

    async def find_all(self, page: int = 1, limit: int = 10, search: Optional[str] = None,
                       status: Optional[str] = None) -> Dict[str, Any]:
        stmt = self.active(select(LeaveType))
        if search:
            term = f"%{search.strip().lower()}%"
            stmt = stmt.where(or_(
                func.lower(LeaveType.name).like(term),
                func.lower(LeaveType.description).like(term),
            ))
        if status:
            stmt = stmt.where(LeaveType.status == status)
        stmt = stmt.order_by(LeaveType.name.asc())
        result = await self.paginate(stmt, page, limit)
        return Paginator.create_response(
            [self.serialize(lt) for lt in result["items"]], page, limit, result["total"]
        )

    async def find_by_id(self, leave_type_id: UUID) -> Dict[str, Any]:
        return self.serialize(await self.get_or_404(leave_type_id))

    async def update(self, leave_type_id: UUID, data: LeaveTypeUpdate, user_id: UUID,
                     ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        leave_type = await self.get_or_404(leave_type_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if changes.get("name") and await self._name_taken(changes["name"], leave_type.id):
            raise ConflictError(f"Leave type '{changes['name']}' already exists")

        for field, value in changes.items():
            setattr(leave_type, field, value)
        leave_type.updated_by_id = user_id
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log("UPDATE_LEAVE_TYPE", MODULE, user_id, ctx,
                             details={"leave_type_id": str(leave_type_id), "updated_fields": sorted(changes)})
        return self.serialize(leave_type)

    async def toggle_status(self, leave_type_id: UUID, user_id: UUID,
                            ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        leave_type = await self.get_or_404(leave_type_id)
        leave_type.status = (
            LeaveTypeStatus.INACTIVE.value
            if leave_type.status == LeaveTypeStatus.ACTIVE.value
            else LeaveTypeStatus.ACTIVE.value
        )
        leave_type.updated_by_id = user_id
        await self.db.commit()

        await self.audit.log("TOGGLE_LEAVE_TYPE_STATUS", MODULE, user_id, ctx,
                             details={"leave_type_id": str(leave_type_id), "status": leave_type.status})
        return self.serialize(leave_type)

    async def soft_delete(self, leave_type_id: UUID, user_id: UUID,
                          ctx: Optional[RequestContext] = None) -> bool:
        leave_type = await self.get_or_404(leave_type_id)
        leave_type.mark_deleted(user_id)
        await self.db.commit()

        await self.audit.log("DELETE_LEAVE_TYPE", MODULE, user_id, ctx,
                             details={"leave_type_id": str(leave_type_id), "name": leave_type.name})
        return True
