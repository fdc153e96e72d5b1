# schoolms/services/base_service.py
"""Base service with common CRUD operations."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Type, Any, Dict, Optional, TypeVar, Generic

from ..core.exceptions import NotFoundError
from ..utils.pagination import Paginator

# Define generic type
T = TypeVar('T')


class BaseService(Generic[T]):
    not_found_message = "Resource not found"

    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    def active(self, stmt):
        """Restrict a statement to rows that are not soft deleted"""
        return stmt.where(self.model.deleted_at.is_(None))

    async def get(self, id: Any) -> Optional[T]:
        result = await self.db.execute(self.active(select(self.model).where(self.model.id == id)))
        return result.scalar_one_or_none()

    async def get_or_404(self, id: Any) -> T:
        obj = await self.get(id)
        if not obj:
            raise NotFoundError(self.not_found_message)
        return obj

    async def paginate(self, stmt, page: int, limit: int, *, scalars: bool = True) -> Dict[str, Any]:
        """Count a filtered statement, then fetch one page of it"""
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        result = await self.db.execute(
            stmt.offset(Paginator.calculate_offset(page, limit)).limit(limit)
        )
        items = result.scalars().all() if scalars else result.all()
        return {"items": list(items), "total": total, "page": page, "limit": limit}

    async def count(self, **filters) -> int:
        """Get count of non-deleted records"""
        stmt = self.active(select(func.count()).select_from(self.model))
        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)
        result = await self.db.execute(stmt)
        return result.scalar() or 0
