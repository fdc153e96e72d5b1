from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..models.user import UserRole
from ..schemas.common import success_response
from ..schemas.parent import LinkChildRequest, ParentCreate, ParentUpdate
from ..services.parent_service import ParentService
from ..utils.deps import AdminUser, Context, require_roles
from ..utils.pagination import PaginationParams, Paginator

router = APIRouter(prefix="/api/v1/parents", tags=["Parents"])


@router.post("", status_code=201)
async def create_parent(body: ParentCreate, admin: AdminUser, ctx: Context,
                        db: AsyncSession = Depends(get_db)):
    result = await ParentService(db).create(body, admin.id, ctx)
    return success_response(result, "Parent created successfully")


@router.get("")
async def list_parents(
    admin: AdminUser,
    pagination: PaginationParams = Depends(Paginator.get_pagination_params),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    result = await ParentService(db).find_all(pagination.page, pagination.limit, search)
    return success_response(result)


@router.get("/me")
async def my_profile(current_user=Depends(require_roles(UserRole.PARENT)),
                     db: AsyncSession = Depends(get_db)):
    return success_response(await ParentService(db).find_by_user_id(current_user.id))


@router.get("/me/children")
async def my_children(current_user=Depends(require_roles(UserRole.PARENT)),
                      db: AsyncSession = Depends(get_db)):
    service = ParentService(db)
    parent = await service.find_by_user_id(current_user.id)
    return success_response(await service.get_children(UUID(parent["id"])))


@router.get("/search-for-linking")
async def search_for_linking(admin: AdminUser, search: str = Query(..., min_length=1, max_length=100),
                             limit: int = Query(20, ge=1, le=50), db: AsyncSession = Depends(get_db)):
    return success_response(await ParentService(db).search_for_linking(search, limit))


@router.get("/{parent_id}")
async def get_parent(parent_id: UUID, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return success_response(await ParentService(db).find_by_id(parent_id))


@router.patch("/{parent_id}")
async def update_parent(parent_id: UUID, body: ParentUpdate, admin: AdminUser, ctx: Context,
                        db: AsyncSession = Depends(get_db)):
    parent = await ParentService(db).update_by_admin(parent_id, body, admin.id, ctx)
    return success_response(parent, "Parent updated successfully")


@router.delete("/{parent_id}")
async def delete_parent(parent_id: UUID, admin: AdminUser, ctx: Context,
                        db: AsyncSession = Depends(get_db)):
    await ParentService(db).soft_delete(parent_id, admin.id, ctx)
    return success_response(None, "Parent deleted successfully")


@router.get("/{parent_id}/children")
async def get_children(parent_id: UUID, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return success_response(await ParentService(db).get_children(parent_id))


@router.post("/{parent_id}/children", status_code=201)
async def link_child(parent_id: UUID, body: LinkChildRequest, admin: AdminUser, ctx: Context,
                     db: AsyncSession = Depends(get_db)):
    link = await ParentService(db).link_child(parent_id, body, admin.id, ctx)
    return success_response(link, "Child linked successfully")


@router.delete("/{parent_id}/children/{student_id}")
async def unlink_child(parent_id: UUID, student_id: UUID, admin: AdminUser, ctx: Context,
                       db: AsyncSession = Depends(get_db)):
    await ParentService(db).unlink_child(parent_id, student_id, admin.id, ctx)
    return success_response(None, "Child unlinked successfully")


@router.patch("/{parent_id}/children/{student_id}/primary")
async def set_primary(parent_id: UUID, student_id: UUID, admin: AdminUser, ctx: Context,
                      db: AsyncSession = Depends(get_db)):
    await ParentService(db).set_primary_parent(parent_id, student_id, admin.id, ctx)
    return success_response(None, "Primary parent updated")
