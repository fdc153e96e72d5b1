# schoolms/services/session_cache_service.py
"""Cached session snapshots used by request authentication."""
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache import CacheManager, cache
from ..core.config import settings
from ..models.user import UserSession
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)


class SessionCacheService:
    def __init__(self, db: AsyncSession, cache_manager: Optional[CacheManager] = None):
        self.db = db
        self.cache = cache_manager or cache

    @staticmethod
    def key(session_id: Any) -> str:
        return CacheManager.make_key("session", session_id)

    @staticmethod
    def snapshot(session: UserSession) -> Dict[str, Any]:
        return {
            "id": session.id,
            "user_id": session.user_id,
            "revoked_at": session.revoked_at,
            "expires_at": session.expires_at,
            "last_activity_at": session.last_activity_at,
            "ip_address": session.ip_address,
            "user_agent": session.user_agent,
        }

    async def _load(self, session_id: UUID) -> Optional[Dict[str, Any]]:
        result = await self.db.execute(
            select(UserSession).where(
                UserSession.id == session_id,
                UserSession.deleted_at.is_(None)
            ).execution_options(populate_existing=True)
        )
        session = result.scalar_one_or_none()
        return self.snapshot(session) if session else None

    async def get_session(self, session_id: UUID) -> Optional[Dict[str, Any]]:
        return await self.cache.get_or_set(
            self.key(session_id),
            lambda: self._load(session_id),
            settings.session_cache_ttl_seconds,
        )

    async def invalidate(self, session_id: Any) -> None:
        await self.cache.delete(self.key(session_id))

    async def touch(self, session_id: UUID, ip_address: Optional[str] = None) -> None:
        values = {"last_activity_at": utcnow()}
        if ip_address:
            values["ip_address"] = ip_address
        await self.db.execute(
            update(UserSession).where(UserSession.id == session_id).values(**values)
        )
        await self.db.commit()

        snapshot = await self._load(session_id)
        if snapshot:
            await self.cache.set(self.key(session_id), snapshot, settings.session_cache_ttl_seconds)

    async def revoke(self, session_id: UUID) -> None:
        await self.db.execute(
            update(UserSession)
            .where(UserSession.id == session_id, UserSession.revoked_at.is_(None))
            .values(revoked_at=utcnow())
        )
        await self.db.commit()
        await self.invalidate(session_id)

    async def revoke_user_sessions(self, user_id: UUID) -> int:
        """Revoke every open session of a user; used when an account is removed"""
        result = await self.db.execute(
            select(UserSession.id).where(
                UserSession.user_id == user_id,
                UserSession.revoked_at.is_(None)
            )
        )
        session_ids = list(result.scalars().all())
        if session_ids:
            await self.db.execute(
                update(UserSession)
                .where(UserSession.id.in_(session_ids))
                .values(revoked_at=utcnow())
            )
        await self.db.commit()
        for session_id in session_ids:
            await self.invalidate(session_id)
        logger.info(f"Revoked {len(session_ids)} sessions for user {user_id}")
        return len(session_ids)
