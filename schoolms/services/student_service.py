# schoolms/services/student_service.py
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .audit_service import AuditService
from .base_service import BaseService
from .parent_service import ParentService
from .session_cache_service import SessionCacheService
from .user_service import UserService
from ..core.exceptions import ConflictError, NotFoundError
from ..models.classroom import ClassModel
from ..models.parent import Parent, ParentStudentLink
from ..models.student import Student
from ..models.user import UserRole
from ..schemas.common import RequestContext
from ..schemas.parent import LinkChildRequest
from ..schemas.student import AddParentRequest, StudentCreate, StudentResponse, StudentUpdate
from ..utils.avatar import build_avatar_url
from ..utils.pagination import Paginator

logger = logging.getLogger(__name__)

MODULE = "STUDENT"


class StudentService(BaseService[Student]):
    not_found_message = "Student not found"

    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)
        self.audit = AuditService(db)
        self.users = UserService(db)

    @staticmethod
    def serialize(student: Student) -> Dict[str, Any]:
        return StudentResponse.model_validate(student).model_dump(mode="json")

    async def _ensure_class(self, class_id: Optional[UUID]) -> None:
        if not class_id:
            return
        result = await self.db.execute(
            select(ClassModel.id).where(ClassModel.id == class_id, ClassModel.deleted_at.is_(None))
        )
        if not result.first():
            raise NotFoundError("Class not found")

    async def create(self, data: StudentCreate, created_by_id: UUID,
                     ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        email = data.email.lower()
        try:
            await self._ensure_class(data.class_id)
            await self.users.ensure_unique(email)
        except (ConflictError, NotFoundError) as e:
            await self.audit.log("CREATE_STUDENT", MODULE, created_by_id, ctx, status="FAIL",
                                 details={"email": email, "error": str(e.detail)})
            raise

        try:
            user, temporary_password = self.users.build_account(
                email=email,
                full_name=data.full_name,
                role=UserRole.STUDENT,
                password=data.password,
                created_by_id=created_by_id,
            )
            await self.db.flush()
            student = Student(
                **data.model_dump(exclude={"password", "email"}),
                email=email,
                user_id=user.id,
                created_by_id=created_by_id,
            )
            self.db.add(student)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log("CREATE_STUDENT", MODULE, created_by_id, ctx,
                             details={"student_id": str(student.id), "email": email})
        return {"student": self.serialize(student), "temporary_password": temporary_password}

    async def find_all(self, page: int = 1, limit: int = 10, class_id: Optional[UUID] = None,
                       search: Optional[str] = None) -> Dict[str, Any]:
        stmt = self.active(select(Student))
        if class_id:
            stmt = stmt.where(Student.class_id == class_id)
        if search:
            term = f"%{search.strip().lower()}%"
            stmt = stmt.where(or_(
                func.lower(Student.full_name).like(term),
                func.lower(Student.email).like(term),
                func.lower(Student.roll_number).like(term),
            ))
        stmt = stmt.order_by(Student.full_name.asc())
        result = await self.paginate(stmt, page, limit)
        return Paginator.create_response(
            [self.serialize(s) for s in result["items"]], page, limit, result["total"]
        )

    async def find_by_id(self, student_id: UUID) -> Dict[str, Any]:
        return self.serialize(await self.get_or_404(student_id))

    async def update(self, student_id: UUID, data: StudentUpdate, updated_by_id: UUID,
                     ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        student = await self.get_or_404(student_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("class_id"):
            await self._ensure_class(changes["class_id"])

        try:
            for field, value in changes.items():
                setattr(student, field, value)
            student.updated_by_id = updated_by_id
            if "full_name" in changes:
                user = await self.users.get(student.user_id)
                if user:
                    user.full_name = student.full_name
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log("UPDATE_STUDENT", MODULE, updated_by_id, ctx,
                             details={"student_id": str(student_id), "updated_fields": sorted(changes)})
        return self.serialize(student)

    async def soft_delete(self, student_id: UUID, deleted_by_id: UUID,
                          ctx: Optional[RequestContext] = None) -> bool:
        student = await self.get_or_404(student_id)
        try:
            student.mark_deleted(deleted_by_id)
            await self.users.deactivate(student.user_id, deleted_by_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await SessionCacheService(self.db).revoke_user_sessions(student.user_id)
        await self.audit.log("DELETE_STUDENT", MODULE, deleted_by_id, ctx,
                             details={"student_id": str(student_id)})
        return True

    async def get_student_parents(self, student_id: UUID) -> List[Dict[str, Any]]:
        await self.get_or_404(student_id)
        result = await self.db.execute(
            select(ParentStudentLink, Parent)
            .join(Parent, Parent.id == ParentStudentLink.parent_id)
            .where(ParentStudentLink.student_id == student_id, Parent.deleted_at.is_(None))
            .order_by(ParentStudentLink.is_primary.desc(), Parent.full_name.asc())
        )
        return [
            {
                "link_id": str(link.id),
                "id": str(parent.id),
                "full_name": parent.full_name,
                "email": parent.email,
                "phone": parent.phone,
                "relationship": link.relationship_type,
                "is_primary": link.is_primary,
                "avatar_url": build_avatar_url(parent.profile_photo_url),
            }
            for link, parent in result.all()
        ]

    async def add_parent(self, student_id: UUID, data: AddParentRequest, user_id: UUID,
                         ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        await self.get_or_404(student_id)
        return await ParentService(self.db).link_child(
            data.parent_id,
            LinkChildRequest(student_id=student_id, relationship=data.relationship, is_primary=data.is_primary),
            user_id,
            ctx,
        )

    async def unlink_parent(self, student_id: UUID, parent_id: UUID, user_id: UUID,
                            ctx: Optional[RequestContext] = None) -> bool:
        return await ParentService(self.db).unlink_child(parent_id, student_id, user_id, ctx)

    async def make_parent_primary(self, student_id: UUID, parent_id: UUID, user_id: UUID,
                                  ctx: Optional[RequestContext] = None) -> bool:
        return await ParentService(self.db).set_primary_parent(parent_id, student_id, user_id, ctx)
