from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.common import success_response
from ..schemas.student import AddParentRequest, StudentCreate, StudentUpdate
from ..services.student_service import StudentService
from ..utils.deps import AdminUser, Context
from ..utils.pagination import PaginationParams, Paginator

router = APIRouter(prefix="/api/v1/students", tags=["Students"])


@router.post("", status_code=201)
async def create_student(body: StudentCreate, admin: AdminUser, ctx: Context,
                         db: AsyncSession = Depends(get_db)):
    result = await StudentService(db).create(body, admin.id, ctx)
    return success_response(result, "Student created successfully")


@router.get("")
async def list_students(
    admin: AdminUser,
    pagination: PaginationParams = Depends(Paginator.get_pagination_params),
    class_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    result = await StudentService(db).find_all(pagination.page, pagination.limit, class_id, search)
    return success_response(result)


@router.get("/{student_id}")
async def get_student(student_id: UUID, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return success_response(await StudentService(db).find_by_id(student_id))


@router.patch("/{student_id}")
async def update_student(student_id: UUID, body: StudentUpdate, admin: AdminUser, ctx: Context,
                         db: AsyncSession = Depends(get_db)):
    student = await StudentService(db).update(student_id, body, admin.id, ctx)
    return success_response(student, "Student updated successfully")


@router.delete("/{student_id}")
async def delete_student(student_id: UUID, admin: AdminUser, ctx: Context,
                         db: AsyncSession = Depends(get_db)):
    await StudentService(db).soft_delete(student_id, admin.id, ctx)
    return success_response(None, "Student deleted successfully")


@router.get("/{student_id}/parents")
async def get_parents(student_id: UUID, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return success_response(await StudentService(db).get_student_parents(student_id))


@router.post("/{student_id}/parents", status_code=201)
async def add_parent(student_id: UUID, body: AddParentRequest, admin: AdminUser, ctx: Context,
                     db: AsyncSession = Depends(get_db)):
    link = await StudentService(db).add_parent(student_id, body, admin.id, ctx)
    return success_response(link, "Parent linked successfully")


@router.delete("/{student_id}/parents/{parent_id}")
async def unlink_parent(student_id: UUID, parent_id: UUID, admin: AdminUser, ctx: Context,
                        db: AsyncSession = Depends(get_db)):
    await StudentService(db).unlink_parent(student_id, parent_id, admin.id, ctx)
    return success_response(None, "Parent unlinked successfully")


@router.patch("/{student_id}/parents/{parent_id}/primary")
async def make_primary(student_id: UUID, parent_id: UUID, admin: AdminUser, ctx: Context,
                       db: AsyncSession = Depends(get_db)):
    await StudentService(db).make_parent_primary(student_id, parent_id, admin.id, ctx)
    return success_response(None, "Primary parent updated")
