# schoolms/utils/pagination.py
"""Page/limit query handling and the {items, meta} list envelope."""
from typing import Any, Dict, List
from pydantic import BaseModel
from fastapi import Query
from math import ceil

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class PaginationParams(BaseModel):
    page: int
    limit: int


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


class Paginator:
    @staticmethod
    def get_pagination_params(
        page: int = Query(1, ge=1, description="Page number, starting at 1"),
        limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Items per page")
    ) -> PaginationParams:
        """FastAPI dependency; bounds are enforced by the query validation."""
        return PaginationParams(page=page, limit=limit)

    @staticmethod
    def calculate_offset(page: int, limit: int) -> int:
        return (page - 1) * limit

    @staticmethod
    def create_meta(page: int, limit: int, total: int) -> PaginationMeta:
        total_pages = ceil(total / limit) if limit > 0 else 0
        return PaginationMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1
        )

    @staticmethod
    def create_response(items: List[Any], page: int, limit: int, total: int) -> Dict[str, Any]:
        return {
            "items": items,
            "meta": Paginator.create_meta(page, limit, total).model_dump(),
        }
