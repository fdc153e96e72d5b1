# schoolms/services/parent_service.py
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func, or_, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from .audit_service import AuditService
from .base_service import BaseService
from .email_service import EmailService
from .session_cache_service import SessionCacheService
from .user_service import UserService
from ..core.exceptions import ConflictError, NotFoundError
from ..models.parent import Parent, ParentStudentLink
from ..models.student import Student
from ..models.user import UserRole
from ..schemas.common import RequestContext
from ..schemas.parent import LinkChildRequest, ParentCreate, ParentResponse, ParentUpdate
from ..utils.avatar import build_avatar_url
from ..utils.pagination import Paginator

logger = logging.getLogger(__name__)

MODULE = "PARENT"


class ParentService(BaseService[Parent]):
    not_found_message = "Parent not found"

    def __init__(self, db: AsyncSession):
        super().__init__(Parent, db)
        self.audit = AuditService(db)
        self.users = UserService(db)
        self.email = EmailService()

    @staticmethod
    def serialize(parent: Parent) -> Dict[str, Any]:
        return ParentResponse.model_validate(parent).model_dump(mode="json")

    async def _get_student(self, student_id: UUID) -> Student:
        result = await self.db.execute(
            select(Student).where(Student.id == student_id, Student.deleted_at.is_(None))
        )
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student not found")
        return student

    async def _get_link(self, parent_id: UUID, student_id: UUID) -> Optional[ParentStudentLink]:
        result = await self.db.execute(
            select(ParentStudentLink).where(
                ParentStudentLink.parent_id == parent_id,
                ParentStudentLink.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()

    async def _student_has_primary(self, student_id: UUID) -> bool:
        result = await self.db.execute(
            select(ParentStudentLink.id).where(
                ParentStudentLink.student_id == student_id,
                ParentStudentLink.is_primary.is_(True),
            )
        )
        return result.first() is not None

    async def _clear_primary(self, student_id: UUID) -> None:
        await self.db.execute(
            update(ParentStudentLink)
            .where(ParentStudentLink.student_id == student_id)
            .values(is_primary=False)
        )

    async def _fail(self, action: str, user_id: Optional[UUID], ctx: Optional[RequestContext],
                    error: Exception, **details) -> None:
        await self.audit.log(
            action, MODULE, user_id, ctx, status="FAIL",
            details={**{k: str(v) for k, v in details.items()}, "error": str(getattr(error, "detail", error))}
        )

    async def create(self, data: ParentCreate, created_by_id: UUID,
                     ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        email = data.email.lower()
        try:
            existing = await self.db.execute(
                self.active(select(Parent.id).where(func.lower(Parent.email) == email))
            )
            if existing.first():
                raise ConflictError("Parent with this email already exists")
            await self.users.ensure_unique(email, data.phone)
            for student_id in data.student_ids:
                await self._get_student(student_id)
        except (ConflictError, NotFoundError) as e:
            await self._fail("CREATE_PARENT", created_by_id, ctx, e, email=email)
            raise

        try:
            user, temporary_password = self.users.build_account(
                email=email,
                full_name=data.full_name,
                role=UserRole.PARENT,
                password=data.password,
                phone=data.phone,
                created_by_id=created_by_id,
            )
            await self.db.flush()

            parent = Parent(
                **data.model_dump(exclude={"password", "student_ids", "email"}),
                email=email,
                user_id=user.id,
                created_by_id=created_by_id,
            )
            self.db.add(parent)
            await self.db.flush()

            for student_id in dict.fromkeys(data.student_ids):
                self.db.add(ParentStudentLink(
                    parent_id=parent.id,
                    student_id=student_id,
                    is_primary=not await self._student_has_primary(student_id),
                    created_by_id=created_by_id,
                ))
                await self.db.flush()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log(
            "CREATE_PARENT", MODULE, created_by_id, ctx,
            details={"parent_id": str(parent.id), "email": email, "children": len(data.student_ids)}
        )
        if temporary_password:
            await self.email.send_welcome(email, parent.full_name, UserRole.PARENT.value, temporary_password)
        return {"parent": self.serialize(parent), "temporary_password": temporary_password}

    async def find_all(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Dict[str, Any]:
        stmt = self.active(select(Parent))
        if search:
            term = f"%{search.strip().lower()}%"
            stmt = stmt.where(or_(
                func.lower(Parent.full_name).like(term),
                func.lower(Parent.email).like(term),
                Parent.phone.like(term),
            ))
        stmt = stmt.order_by(Parent.full_name.asc())
        result = await self.paginate(stmt, page, limit)
        return Paginator.create_response(
            [self.serialize(p) for p in result["items"]], page, limit, result["total"]
        )

    async def find_by_id(self, parent_id: UUID) -> Dict[str, Any]:
        return self.serialize(await self.get_or_404(parent_id))

    async def find_by_user_id(self, user_id: UUID) -> Dict[str, Any]:
        result = await self.db.execute(self.active(select(Parent).where(Parent.user_id == user_id)))
        parent = result.scalar_one_or_none()
        if not parent:
            raise NotFoundError("Parent profile not found")
        return self.serialize(parent)

    async def update_by_admin(self, parent_id: UUID, data: ParentUpdate, updated_by_id: UUID,
                              ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        parent = await self.get_or_404(parent_id)
        changes = data.model_dump(exclude_unset=True)
        try:
            if changes.get("email"):
                changes["email"] = changes["email"].lower()
                if changes["email"] != parent.email:
                    taken = await self.db.execute(self.active(select(Parent.id).where(
                        func.lower(Parent.email) == changes["email"], Parent.id != parent.id
                    )))
                    if taken.first():
                        raise ConflictError("Parent with this email already exists")
            await self.users.ensure_unique(changes.get("email"), changes.get("phone"), exclude_id=parent.user_id)
        except ConflictError as e:
            await self._fail("UPDATE_PARENT", updated_by_id, ctx, e, parent_id=parent_id)
            raise

        try:
            for field, value in changes.items():
                setattr(parent, field, value)
            parent.updated_by_id = updated_by_id
            user = await self.users.get(parent.user_id)
            if user:
                user.full_name = parent.full_name
                user.email = parent.email
                user.phone = parent.phone
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log(
            "UPDATE_PARENT", MODULE, updated_by_id, ctx,
            details={"parent_id": str(parent_id), "updated_fields": sorted(changes)}
        )
        return self.serialize(parent)

    async def get_children(self, parent_id: UUID) -> List[Dict[str, Any]]:
        await self.get_or_404(parent_id)
        result = await self.db.execute(
            select(ParentStudentLink, Student)
            .join(Student, Student.id == ParentStudentLink.student_id)
            .where(ParentStudentLink.parent_id == parent_id, Student.deleted_at.is_(None))
            .order_by(Student.full_name.asc())
        )
        return [
            {
                "link_id": str(link.id),
                "id": str(student.id),
                "full_name": student.full_name,
                "email": student.email,
                "roll_number": student.roll_number,
                "class_id": str(student.class_id) if student.class_id else None,
                "relationship": link.relationship_type,
                "is_primary": link.is_primary,
                "avatar_url": build_avatar_url(student.profile_photo_url),
            }
            for link, student in result.all()
        ]

    async def link_child(self, parent_id: UUID, data: LinkChildRequest, user_id: UUID,
                         ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        try:
            await self.get_or_404(parent_id)
            await self._get_student(data.student_id)
            if await self._get_link(parent_id, data.student_id):
                raise ConflictError("Parent is already linked to this student")
        except (ConflictError, NotFoundError) as e:
            await self._fail("LINK_CHILD", user_id, ctx, e, parent_id=parent_id, student_id=data.student_id)
            raise

        try:
            is_primary = data.is_primary or not await self._student_has_primary(data.student_id)
            if data.is_primary:
                await self._clear_primary(data.student_id)
            link = ParentStudentLink(
                parent_id=parent_id,
                student_id=data.student_id,
                relationship_type=data.relationship,
                is_primary=is_primary,
                created_by_id=user_id,
            )
            self.db.add(link)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log(
            "LINK_CHILD", MODULE, user_id, ctx,
            details={"parent_id": str(parent_id), "student_id": str(data.student_id), "is_primary": is_primary}
        )
        return {
            "link_id": str(link.id),
            "parent_id": str(parent_id),
            "student_id": str(data.student_id),
            "relationship": link.relationship_type,
            "is_primary": link.is_primary,
        }

    async def unlink_child(self, parent_id: UUID, student_id: UUID, user_id: UUID,
                           ctx: Optional[RequestContext] = None) -> bool:
        link = await self._get_link(parent_id, student_id)
        if not link:
            error = NotFoundError("Parent is not linked to this student")
            await self._fail("UNLINK_CHILD", user_id, ctx, error, parent_id=parent_id, student_id=student_id)
            raise error

        await self.db.execute(delete(ParentStudentLink).where(ParentStudentLink.id == link.id))
        await self.db.commit()

        await self.audit.log(
            "UNLINK_CHILD", MODULE, user_id, ctx,
            details={"parent_id": str(parent_id), "student_id": str(student_id)}
        )
        return True

    async def set_primary_parent(self, parent_id: UUID, student_id: UUID, user_id: UUID,
                                 ctx: Optional[RequestContext] = None) -> bool:
        link = await self._get_link(parent_id, student_id)
        if not link:
            error = NotFoundError("Parent is not linked to this student")
            await self._fail("SET_PRIMARY_PARENT", user_id, ctx, error, parent_id=parent_id, student_id=student_id)
            raise error

        try:
            await self._clear_primary(student_id)
            await self.db.execute(
                update(ParentStudentLink).where(ParentStudentLink.id == link.id).values(is_primary=True)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log(
            "SET_PRIMARY_PARENT", MODULE, user_id, ctx,
            details={"parent_id": str(parent_id), "student_id": str(student_id)}
        )
        return True

    async def search_for_linking(self, search: str, limit: int = 20) -> List[Dict[str, Any]]:
        term = f"%{search.strip().lower()}%"
        stmt = self.active(select(Parent)).where(or_(
            func.lower(Parent.full_name).like(term),
            func.lower(Parent.email).like(term),
            Parent.phone.like(term),
        )).order_by(Parent.full_name.asc()).limit(limit)
        result = await self.db.execute(stmt)
        return [
            {
                "id": str(p.id),
                "full_name": p.full_name,
                "email": p.email,
                "phone": p.phone,
                "avatar_url": build_avatar_url(p.profile_photo_url),
            }
            for p in result.scalars().all()
        ]

    async def soft_delete(self, parent_id: UUID, deleted_by_id: UUID,
                          ctx: Optional[RequestContext] = None) -> bool:
        try:
            parent = await self.get_or_404(parent_id)
        except NotFoundError as e:
            await self._fail("DELETE_PARENT", deleted_by_id, ctx, e, parent_id=parent_id)
            raise

        try:
            parent.mark_deleted(deleted_by_id)
            await self.users.deactivate(parent.user_id, deleted_by_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await SessionCacheService(self.db).revoke_user_sessions(parent.user_id)
        await self.audit.log(
            "DELETE_PARENT", MODULE, deleted_by_id, ctx,
            details={"parent_id": str(parent_id), "email": parent.email}
        )
        return True
