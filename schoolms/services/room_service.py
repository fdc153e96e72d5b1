# schoolms/services/room_service.py
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .audit_service import AuditService
from .base_service import BaseService
from ..core.cache import CacheManager, cache, cached, invalidate_prefix
from ..core.exceptions import ConflictError, NotFoundError
from ..models.classroom import Classroom, ClassModel
from ..schemas.common import RequestContext
from ..schemas.room import RoomCreate, RoomResponse, RoomUpdate
from ..utils.pagination import Paginator
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

MODULE = "ROOM"
CACHE_PREFIX = "rooms"


class RoomService(BaseService[Classroom]):
    not_found_message = "Room not found"

    def __init__(self, db: AsyncSession):
        super().__init__(Classroom, db)
        self.audit = AuditService(db)

    def _with_classes(self, stmt):
        return stmt.options(
            selectinload(Classroom.classes.and_(ClassModel.deleted_at.is_(None)))
        ).execution_options(populate_existing=True)

    @staticmethod
    def serialize(room: Classroom) -> Dict[str, Any]:
        return RoomResponse.model_validate(room).model_dump(mode="json")

    async def _get_by_room_no(self, room_no: str, exclude_id: Optional[UUID] = None) -> Optional[Classroom]:
        stmt = select(Classroom).where(func.lower(Classroom.room_no) == room_no.lower())
        if exclude_id:
            stmt = stmt.where(Classroom.id != exclude_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def _load(self, room_id: UUID) -> Optional[Dict[str, Any]]:
        result = await self.db.execute(
            self._with_classes(self.active(select(Classroom).where(Classroom.id == room_id)))
        )
        room = result.scalar_one_or_none()
        return self.serialize(room) if room else None

    async def create(self, data: RoomCreate, user_id: UUID, ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        if await self._get_by_room_no(data.room_no):
            raise ConflictError(f"Room with number {data.room_no} already exists")

        room = Classroom(**data.model_dump(), created_by_id=user_id)
        self.db.add(room)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await invalidate_prefix(CACHE_PREFIX)
        await self.audit.log(
            "CREATE_ROOM", MODULE, user_id, ctx,
            details={"room_id": str(room.id), "room_no": room.room_no}
        )
        logger.info(f"Room {room.room_no} created by {user_id}")
        return await self._load(room.id)

    async def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        floor: Optional[int] = None,
        building: Optional[str] = None,
        is_available: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        key = CacheManager.make_key(
            CACHE_PREFIX, "list", page, limit, floor, building, is_available, search
        )

        async def load():
            stmt = self.active(select(Classroom))
            if floor is not None:
                stmt = stmt.where(Classroom.floor == floor)
            if building:
                stmt = stmt.where(Classroom.building == building)
            if is_available is not None:
                stmt = stmt.where(Classroom.is_available == is_available)
            if search:
                term = f"%{search.strip().lower()}%"
                stmt = stmt.where(or_(
                    func.lower(Classroom.room_no).like(term),
                    func.lower(Classroom.name).like(term),
                ))
            stmt = self._with_classes(stmt.order_by(Classroom.floor.asc(), Classroom.room_no.asc()))
            result = await self.paginate(stmt, page, limit)
            return Paginator.create_response(
                [self.serialize(r) for r in result["items"]], page, limit, result["total"]
            )

        return await cache.get_or_set(key, load)

    async def find_by_id(self, room_id: UUID) -> Dict[str, Any]:
        room = await cache.get_or_set(
            CacheManager.make_key(CACHE_PREFIX, "id", room_id),
            lambda: self._load(room_id),
        )
        if not room:
            raise NotFoundError(self.not_found_message)
        return room

    async def update(self, room_id: UUID, data: RoomUpdate, user_id: UUID,
                     ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        room = await self.get_or_404(room_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("room_no"):
            changes["room_no"] = changes["room_no"].strip()
            if changes["room_no"] != room.room_no and await self._get_by_room_no(changes["room_no"], room.id):
                raise ConflictError(f"Room with number {changes['room_no']} already exists")

        for field, value in changes.items():
            setattr(room, field, value)
        room.updated_by_id = user_id
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await invalidate_prefix(CACHE_PREFIX)
        await self.audit.log(
            "UPDATE_ROOM", MODULE, user_id, ctx,
            details={"room_id": str(room_id), "updated_fields": sorted(changes)}
        )
        return await self._load(room_id)

    async def count_active_classes(self, room_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(ClassModel).where(
                ClassModel.room_id == room_id,
                ClassModel.deleted_at.is_(None)
            )
        )
        return result.scalar() or 0

    async def soft_delete(self, room_id: UUID, user_id: UUID, ctx: Optional[RequestContext] = None) -> bool:
        room = await self.get_or_404(room_id)

        if await self.count_active_classes(room_id) > 0:
            raise ConflictError("Cannot delete room that has active classes assigned to it")

        room.deleted_at = utcnow()
        room.deleted_by_id = user_id
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await invalidate_prefix(CACHE_PREFIX)
        await self.audit.log(
            "DELETE_ROOM", MODULE, user_id, ctx,
            details={"room_id": str(room_id), "room_no": room.room_no}
        )
        return True

    @cached(CACHE_PREFIX)
    async def get_available_rooms(self) -> List[Dict[str, Any]]:
        has_active_class = (
            select(ClassModel.id)
            .where(ClassModel.room_id == Classroom.id, ClassModel.deleted_at.is_(None))
            .exists()
        )
        stmt = self.active(select(Classroom)).where(
            Classroom.is_available.is_(True),
            ~has_active_class,
        ).order_by(Classroom.floor.asc(), Classroom.room_no.asc())
        result = await self.db.execute(self._with_classes(stmt))
        return [self.serialize(r) for r in result.scalars().all()]

    @cached(CACHE_PREFIX)
    async def get_rooms_by_floor(self, floor: int) -> List[Dict[str, Any]]:
        stmt = self.active(select(Classroom)).where(Classroom.floor == floor).order_by(Classroom.room_no.asc())
        result = await self.db.execute(self._with_classes(stmt))
        return [self.serialize(r) for r in result.scalars().all()]
