from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.common import success_response
from ..schemas.room import RoomCreate, RoomUpdate
from ..services.room_service import RoomService
from ..utils.deps import AdminUser, Context, CurrentUser
from ..utils.pagination import PaginationParams, Paginator

router = APIRouter(prefix="/api/v1/rooms", tags=["Rooms"])


@router.post("", status_code=201)
async def create_room(body: RoomCreate, admin: AdminUser, ctx: Context,
                      db: AsyncSession = Depends(get_db)):
    room = await RoomService(db).create(body, admin.id, ctx)
    return success_response(room, "Room created successfully")


@router.get("")
async def list_rooms(
    current_user: CurrentUser,
    pagination: PaginationParams = Depends(Paginator.get_pagination_params),
    floor: Optional[int] = Query(None),
    building: Optional[str] = Query(None),
    is_available: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    result = await RoomService(db).find_all(
        page=pagination.page,
        limit=pagination.limit,
        floor=floor,
        building=building,
        is_available=is_available,
        search=search,
    )
    return success_response(result)


@router.get("/available")
async def available_rooms(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return success_response(await RoomService(db).get_available_rooms())


@router.get("/floor/{floor}")
async def rooms_by_floor(floor: int, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return success_response(await RoomService(db).get_rooms_by_floor(floor))


@router.get("/{room_id}")
async def get_room(room_id: UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return success_response(await RoomService(db).find_by_id(room_id))


@router.patch("/{room_id}")
async def update_room(room_id: UUID, body: RoomUpdate, admin: AdminUser, ctx: Context,
                      db: AsyncSession = Depends(get_db)):
    room = await RoomService(db).update(room_id, body, admin.id, ctx)
    return success_response(room, "Room updated successfully")


@router.delete("/{room_id}")
async def delete_room(room_id: UUID, admin: AdminUser, ctx: Context,
                      db: AsyncSession = Depends(get_db)):
    await RoomService(db).soft_delete(room_id, admin.id, ctx)
    return success_response(None, "Room deleted successfully")
