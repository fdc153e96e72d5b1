# schoolms/utils/deps.py
"""Request dependencies: caller context, current user and role guards."""
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import ForbiddenError, UnauthorizedError
from ..core.security import decode_token
from ..models.user import User, UserRole
from ..schemas.common import RequestContext
from ..services.auth_service import AuthService

# Security scheme for JWT Bearer token; missing headers are turned into our own 401
security = HTTPBearer(auto_error=False)


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


Context = Annotated[RequestContext, Depends(get_request_context)]


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    if not credentials or not credentials.credentials:
        raise UnauthorizedError("Not authenticated")
    return decode_token(credentials.credentials)


async def get_current_user(
    request: Request,
    ctx: Context,
    payload: dict = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await AuthService(db).validate_session(payload, ctx)
    request.state.session_id = payload["sid"]
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: UserRole):
    """Dependency factory: the current user must hold one of the roles. SUPER_ADMIN always passes."""
    allowed = {r.value if isinstance(r, UserRole) else r for r in roles}

    async def checker(current_user: CurrentUser) -> User:
        if current_user.role == UserRole.SUPER_ADMIN.value or current_user.role in allowed:
            return current_user
        raise ForbiddenError("You do not have permission to perform this action")

    return checker


AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
