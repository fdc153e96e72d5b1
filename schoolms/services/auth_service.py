# schoolms/services/auth_service.py
"""Login, logout and per-request session validation."""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .audit_service import AuditService
from .base_service import BaseService
from .email_service import EmailService
from .session_cache_service import SessionCacheService
from ..core.config import settings
from ..core.exceptions import UnauthorizedError
from ..core.security import create_access_token, generate_random_password, hash_password, verify_password
from ..models.user import User, UserSession
from ..schemas.auth import UserResponse
from ..schemas.common import RequestContext
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

MODULE = "AUTH"


class AuthService(BaseService[User]):
    not_found_message = "User not found"

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)
        self.sessions = SessionCacheService(db)
        self.audit = AuditService(db)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            self.active(select(User).where(func.lower(User.email) == email.strip().lower()))
        )
        return result.scalar_one_or_none()

    async def login(self, email: str, password: str, ctx: RequestContext) -> Dict[str, Any]:
        user = await self.get_by_email(email)

        if not user or not verify_password(password, user.password_hash):
            await self.audit.log(
                "LOGIN", MODULE, user.id if user else None, ctx,
                status="FAIL", details={"email": email, "reason": "invalid_credentials"}
            )
            raise UnauthorizedError("Invalid email or password")

        if not user.is_active:
            await self.audit.log(
                "LOGIN", MODULE, user.id, ctx,
                status="FAIL", details={"email": email, "reason": "inactive"}
            )
            raise UnauthorizedError("Account is disabled")

        now = utcnow()
        expires_in = settings.access_token_expire_minutes * 60
        session = UserSession(
            user_id=user.id,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
            last_activity_at=now,
            expires_at=now + timedelta(seconds=expires_in),
        )
        user.last_login_at = now
        self.db.add(session)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        token = create_access_token(user.id, session.id, user.role)
        await self.audit.log("LOGIN", MODULE, user.id, ctx, details={"session_id": str(session.id)})
        logger.info(f"User {user.id} logged in")

        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": expires_in,
            "user": UserResponse.model_validate(user).model_dump(mode="json"),
        }

    async def logout(self, user: User, session_id: UUID, ctx: RequestContext) -> None:
        await self.sessions.revoke(session_id)
        await self.audit.log("LOGOUT", MODULE, user.id, ctx, details={"session_id": str(session_id)})

    async def reset_password(self, user_id: UUID, reset_by_id: UUID,
                             ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        user = await self.get_or_404(user_id)
        temporary_password = generate_random_password()
        user.password_hash = hash_password(temporary_password)
        user.need_password_change = True
        user.updated_by_id = reset_by_id
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        revoked = await self.sessions.revoke_user_sessions(user.id)
        await self.audit.log(
            "RESET_PASSWORD", MODULE, reset_by_id, ctx,
            details={"user_id": str(user.id), "revoked_sessions": revoked}
        )
        await EmailService().send_password_reset(user.email, user.full_name, temporary_password)
        return {"user_id": str(user.id), "temporary_password": temporary_password}

    async def _reject(self, session_id: UUID, user_id: Any, reason: str, ctx: RequestContext,
                      message: str, revoke: bool = True):
        if revoke:
            await self.sessions.revoke(session_id)
        await self.audit.log(
            "SESSION_SECURITY_VIOLATION", MODULE,
            UUID(str(user_id)) if user_id else None, ctx,
            status="FAIL", details={"session_id": str(session_id), "reason": reason}
        )
        logger.warning(f"Session {session_id} rejected: {reason}")
        raise UnauthorizedError(message)

    async def validate_session(self, payload: Dict[str, Any], ctx: RequestContext) -> User:
        """
        Check the session behind a decoded token and return its active user.

        Revoked, expired or idle sessions are rejected. An IP change only
        rejects when IP validation is enabled; a user agent change is logged.
        """
        try:
            session_id = UUID(payload["sid"])
            user_id = UUID(payload["sub"])
        except (KeyError, ValueError):
            raise UnauthorizedError("Invalid token")

        snapshot = await self.sessions.get_session(session_id)
        if not snapshot or snapshot["user_id"] != user_id:
            await self._reject(session_id, user_id, "session_not_found", ctx,
                               "Session not found", revoke=False)
        if snapshot["revoked_at"] is not None:
            await self._reject(session_id, user_id, "session_revoked", ctx,
                               "Session has been revoked", revoke=False)

        now = utcnow()
        if snapshot["expires_at"] and snapshot["expires_at"] <= now:
            await self._reject(session_id, user_id, "session_expired", ctx, "Session has expired")

        last_activity = snapshot["last_activity_at"]
        if last_activity and now - last_activity > timedelta(minutes=settings.session_max_idle_minutes):
            await self._reject(session_id, user_id, "idle_timeout", ctx,
                               "Session expired due to inactivity")

        if (settings.session_validate_ip and snapshot["ip_address"]
                and ctx.ip_address and snapshot["ip_address"] != ctx.ip_address):
            await self._reject(session_id, user_id, "ip_mismatch", ctx,
                               "Session is not valid from this network")

        if (settings.session_validate_user_agent and snapshot["user_agent"]
                and ctx.user_agent and snapshot["user_agent"] != ctx.user_agent):
            logger.warning(f"User agent changed for session {session_id}")

        user = await self.get(user_id)
        if not user or not user.is_active:
            await self._reject(session_id, user_id, "user_inactive", ctx, "Account is disabled")

        await self.sessions.touch(session_id, ctx.ip_address)
        return user
