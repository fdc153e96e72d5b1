from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from ..core.database import get_db
from ..schemas.auth import LoginRequest, UserResponse
from ..schemas.common import success_response
from ..services.auth_service import AuthService
from ..utils.deps import AdminUser, Context, CurrentUser

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post("/login")
async def login(body: LoginRequest, ctx: Context, db: AsyncSession = Depends(get_db)):
    result = await AuthService(db).login(body.email, body.password, ctx)
    return success_response(result, "Login successful")


@router.post("/logout")
async def logout(request: Request, current_user: CurrentUser, ctx: Context,
                 db: AsyncSession = Depends(get_db)):
    await AuthService(db).logout(current_user, UUID(request.state.session_id), ctx)
    return success_response(None, "Logged out")


@router.get("/me")
async def me(current_user: CurrentUser):
    return success_response(UserResponse.model_validate(current_user).model_dump(mode="json"))


@router.post("/users/{user_id}/reset-password")
async def reset_password(user_id: UUID, admin: AdminUser, ctx: Context,
                         db: AsyncSession = Depends(get_db)):
    result = await AuthService(db).reset_password(user_id, admin.id, ctx)
    return success_response(result, "Password reset")
