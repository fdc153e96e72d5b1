"""Health check endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.cache import CacheManager, get_cache
from ..core.config import settings
from ..core.database import get_db, health_check_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["Health"])


@router.get("")
async def health_check(session: AsyncSession = Depends(get_db), cache: CacheManager = Depends(get_cache)):
    """Database and cache connectivity; always answers 200"""
    database_ok = await health_check_db(session)
    cache_ok = await cache.ping()
    return {
        "status": "healthy" if database_ok and cache_ok else "degraded",
        "database_status": "connected" if database_ok else "disconnected",
        "cache_status": "connected" if cache_ok else "disconnected",
        "version": settings.app_version,
    }
