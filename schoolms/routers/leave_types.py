from typing import Literal, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.common import success_response
from ..schemas.leave_type import LeaveTypeCreate, LeaveTypeUpdate
from ..services.leave_type_service import LeaveTypeService
from ..utils.deps import AdminUser, Context, CurrentUser
from ..utils.pagination import PaginationParams, Paginator

router = APIRouter(prefix="/api/v1/leave-types", tags=["Leave Types"])


@router.post("", status_code=201)
async def create_leave_type(body: LeaveTypeCreate, admin: AdminUser, ctx: Context,
                            db: AsyncSession = Depends(get_db)):
    leave_type = await LeaveTypeService(db).create(body, admin.id, ctx)
    return success_response(leave_type, "Leave type created successfully")


@router.get("")
async def list_leave_types(
    current_user: CurrentUser,
    pagination: PaginationParams = Depends(Paginator.get_pagination_params),
    search: Optional[str] = Query(None, max_length=100),
    status: Optional[Literal["ACTIVE", "INACTIVE"]] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    result = await LeaveTypeService(db).find_all(pagination.page, pagination.limit, search, status)
    return success_response(result)


@router.get("/{leave_type_id}")
async def get_leave_type(leave_type_id: UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return success_response(await LeaveTypeService(db).find_by_id(leave_type_id))


@router.patch("/{leave_type_id}")
async def update_leave_type(leave_type_id: UUID, body: LeaveTypeUpdate, admin: AdminUser, ctx: Context,
                            db: AsyncSession = Depends(get_db)):
    leave_type = await LeaveTypeService(db).update(leave_type_id, body, admin.id, ctx)
    return success_response(leave_type, "Leave type updated successfully")


@router.patch("/{leave_type_id}/toggle-status")
async def toggle_leave_type_status(leave_type_id: UUID, admin: AdminUser, ctx: Context,
                                   db: AsyncSession = Depends(get_db)):
    leave_type = await LeaveTypeService(db).toggle_status(leave_type_id, admin.id, ctx)
    return success_response(leave_type, "Leave type status updated")


@router.delete("/{leave_type_id}")
async def delete_leave_type(leave_type_id: UUID, admin: AdminUser, ctx: Context,
                            db: AsyncSession = Depends(get_db)):
    await LeaveTypeService(db).soft_delete(leave_type_id, admin.id, ctx)
    return success_response(None, "Leave type deleted successfully")
