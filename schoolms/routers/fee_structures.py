from typing import Literal, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.common import success_response
from ..schemas.fee_structure import FeeStatusUpdate, FeeStructureCreate, FeeStructureRevise
from ..services.fee_structure_service import FeeStructureService
from ..utils.deps import AdminUser, Context
from ..utils.pagination import PaginationParams, Paginator

router = APIRouter(prefix="/api/v1/fees/structures", tags=["Fee Structures"])


@router.post("", status_code=201)
async def create_structure(body: FeeStructureCreate, admin: AdminUser, ctx: Context,
                           db: AsyncSession = Depends(get_db)):
    result = await FeeStructureService(db).create_structure(body, admin.id, ctx)
    return success_response(result, "Fee structure created successfully")


@router.get("")
async def list_structures(
    admin: AdminUser,
    pagination: PaginationParams = Depends(Paginator.get_pagination_params),
    class_id: Optional[UUID] = Query(None),
    academic_year: Optional[str] = Query(None),
    status: Optional[Literal["ACTIVE", "ARCHIVED", "DRAFT"]] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    result = await FeeStructureService(db).list_structures(
        pagination.page, pagination.limit, class_id, academic_year, status
    )
    return success_response(result)


@router.get("/{structure_id}")
async def get_structure(structure_id: UUID, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return success_response(await FeeStructureService(db).get_structure(structure_id))


@router.post("/{structure_id}/revise")
async def revise_structure(structure_id: UUID, body: FeeStructureRevise, admin: AdminUser, ctx: Context,
                           db: AsyncSession = Depends(get_db)):
    result = await FeeStructureService(db).revise_structure(structure_id, body, admin.id, ctx)
    return success_response(result, "Fee structure revised")


@router.get("/{structure_id}/history")
async def structure_history(structure_id: UUID, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return success_response(await FeeStructureService(db).get_structure_history(structure_id))


@router.patch("/{structure_id}/status")
async def update_structure_status(structure_id: UUID, body: FeeStatusUpdate, admin: AdminUser, ctx: Context,
                                  db: AsyncSession = Depends(get_db)):
    result = await FeeStructureService(db).update_status(structure_id, body.status, admin.id, ctx)
    return success_response(result, "Fee structure status updated")
