from typing import Literal, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.audit import AuditLogResponse
from ..schemas.common import success_response
from ..services.audit_service import AuditService
from ..utils.deps import AdminUser
from ..utils.pagination import PaginationParams, Paginator

router = APIRouter(prefix="/api/v1/audit-logs", tags=["Audit Logs"])


@router.get("")
async def list_audit_logs(
    admin: AdminUser,
    pagination: PaginationParams = Depends(Paginator.get_pagination_params),
    user_id: Optional[UUID] = Query(None),
    module: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    status: Optional[Literal["SUCCESS", "FAIL"]] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    result = await AuditService(db).query(
        pagination.page, pagination.limit, user_id=user_id, module=module, action=action, status=status
    )
    items = [AuditLogResponse.model_validate(a).model_dump(mode="json") for a in result["items"]]
    return success_response(Paginator.create_response(items, pagination.page, pagination.limit, result["total"]))
