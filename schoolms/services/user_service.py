# schoolms/services/user_service.py
"""Login accounts shared by staff, parents and students."""
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import ConflictError
from ..core.security import generate_random_password, hash_password
from ..models.user import User, UserRole


class UserService(BaseService[User]):
    not_found_message = "User not found"

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def ensure_unique(self, email: Optional[str] = None, phone: Optional[str] = None,
                            exclude_id: Optional[UUID] = None) -> None:
        """Email and phone are unique across all users, deleted ones included"""
        if email:
            stmt = select(User.id).where(func.lower(User.email) == email.lower())
            if exclude_id:
                stmt = stmt.where(User.id != exclude_id)
            if (await self.db.execute(stmt)).first():
                raise ConflictError("A user with this email already exists")
        if phone:
            stmt = select(User.id).where(User.phone == phone)
            if exclude_id:
                stmt = stmt.where(User.id != exclude_id)
            if (await self.db.execute(stmt)).first():
                raise ConflictError("A user with this phone number already exists")

    def build_account(
        self,
        email: str,
        full_name: str,
        role: UserRole,
        password: Optional[str] = None,
        phone: Optional[str] = None,
        created_by_id: Optional[UUID] = None,
    ) -> Tuple[User, Optional[str]]:
        """New User added to the session; returns the generated password when none was given"""
        temporary_password = None
        if not password:
            temporary_password = password = generate_random_password()
        user = User(
            email=email.lower(),
            phone=phone,
            full_name=full_name,
            role=role.value,
            password_hash=hash_password(password),
            is_active=True,
            need_password_change=temporary_password is not None,
            created_by_id=created_by_id,
        )
        self.db.add(user)
        return user, temporary_password

    async def deactivate(self, user_id: UUID, deleted_by_id: Optional[UUID] = None) -> None:
        """Soft delete and disable a login; the caller commits"""
        user = await self.get(user_id)
        if user:
            user.is_active = False
            user.mark_deleted(deleted_by_id)
