# schoolms/services/staff_service.py
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .audit_service import AuditService
from .base_service import BaseService
from .csv_processor import CSVProcessor
from .email_service import EmailService
from .session_cache_service import SessionCacheService
from .staff_salary_service import StaffSalaryService, calculate_salary
from .user_service import UserService
from ..core.exceptions import BadRequestError, ConflictError, ForbiddenError
from ..models.staff import Staff
from ..models.user import User, UserRole
from ..schemas.common import RequestContext
from ..schemas.staff import StaffAdminUpdate, StaffCreate, StaffResponse, StaffSelfUpdate
from ..utils.pagination import Paginator

logger = logging.getLogger(__name__)

MODULE = "STAFF"

SORT_FIELDS = {
    "full_name": (Staff.first_name, Staff.last_name),
    "employment_date": (Staff.employment_date,),
    "department": (Staff.department,),
    "designation": (Staff.designation,),
    "created_at": (Staff.created_at,),
}


class StaffService(BaseService[Staff]):
    not_found_message = "Staff not found"

    def __init__(self, db: AsyncSession):
        super().__init__(Staff, db)
        self.audit = AuditService(db)
        self.users = UserService(db)
        self.salaries = StaffSalaryService(db)
        self.email = EmailService()

    @staticmethod
    def serialize(staff: Staff) -> Dict[str, Any]:
        return StaffResponse.model_validate(staff).model_dump(mode="json")

    @staticmethod
    def calculate_salary(basic_salary, allowances) -> Decimal:
        return calculate_salary(basic_salary, allowances)

    async def _email_taken(self, email: str, exclude_id: Optional[UUID] = None) -> bool:
        stmt = self.active(select(Staff.id).where(func.lower(Staff.email) == email.lower()))
        if exclude_id:
            stmt = stmt.where(Staff.id != exclude_id)
        return (await self.db.execute(stmt)).first() is not None

    async def _phone_taken(self, phone: str, exclude_id: Optional[UUID] = None) -> bool:
        stmt = self.active(select(Staff.id).where(Staff.phone == phone))
        if exclude_id:
            stmt = stmt.where(Staff.id != exclude_id)
        return (await self.db.execute(stmt)).first() is not None

    async def _add_staff(self, data: StaffCreate, created_by_id: Optional[UUID]) -> tuple:
        """Stage user (optional), staff and INITIAL salary rows; the caller commits"""
        user = None
        temporary_password = None
        full_name = " ".join(p for p in (data.first_name, data.middle_name, data.last_name) if p)

        if data.create_login_account:
            await self.users.ensure_unique(data.email, data.phone)
            user, temporary_password = self.users.build_account(
                email=data.email,
                full_name=full_name,
                role=UserRole.STAFF,
                password=data.password,
                phone=data.phone,
                created_by_id=created_by_id,
            )
            await self.db.flush()

        fields = data.model_dump(exclude={"create_login_account", "password"})
        fields["email"] = data.email.lower()
        staff = Staff(
            **fields,
            user_id=user.id if user else None,
            total_salary=calculate_salary(data.basic_salary, data.allowances),
            created_by_id=created_by_id,
        )
        self.db.add(staff)
        await self.db.flush()
        self.salaries.create_initial_salary_record(staff, created_by_id)
        return staff, user, temporary_password

    async def create(self, data: StaffCreate, created_by_id: UUID,
                     ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        if await self._email_taken(data.email):
            raise ConflictError("Staff with this email already exists")

        try:
            staff, user, temporary_password = await self._add_staff(data, created_by_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log(
            "CREATE_STAFF", MODULE, created_by_id, ctx,
            details={"staff_id": str(staff.id), "email": staff.email, "login_account": user is not None}
        )
        if temporary_password:
            await self.email.send_welcome(staff.email, staff.full_name, UserRole.STAFF.value, temporary_password)

        logger.info(f"Staff {staff.id} created by {created_by_id}")
        return {"staff": self.serialize(staff), "temporary_password": temporary_password}

    async def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        department: Optional[str] = None,
        employment_status: Optional[str] = None,
        sort_by: str = "full_name",
        sort_order: str = "asc",
    ) -> Dict[str, Any]:
        stmt = self.active(select(Staff))
        if search:
            term = f"%{search.strip().lower()}%"
            stmt = stmt.where(or_(
                func.lower(Staff.first_name).like(term),
                func.lower(Staff.last_name).like(term),
                func.lower(Staff.email).like(term),
                func.lower(Staff.designation).like(term),
            ))
        if department:
            stmt = stmt.where(Staff.department == department)
        if employment_status:
            stmt = stmt.where(Staff.employment_status == employment_status)

        columns = SORT_FIELDS.get(sort_by)
        if not columns:
            raise BadRequestError(f"Cannot sort by {sort_by}")
        if sort_order.lower() == "desc":
            stmt = stmt.order_by(*[c.desc() for c in columns])
        else:
            stmt = stmt.order_by(*[c.asc() for c in columns])

        result = await self.paginate(stmt, page, limit)
        return Paginator.create_response(
            [self.serialize(s) for s in result["items"]], page, limit, result["total"]
        )

    async def find_one(self, staff_id: UUID) -> Dict[str, Any]:
        return self.serialize(await self.get_or_404(staff_id))

    async def find_by_department(self, department: str) -> List[Dict[str, Any]]:
        stmt = self.active(select(Staff)).where(Staff.department == department).order_by(
            Staff.first_name.asc(), Staff.last_name.asc()
        )
        result = await self.db.execute(stmt)
        return [self.serialize(s) for s in result.scalars().all()]

    async def _sync_user(self, staff: Staff, changes: Dict[str, Any]) -> None:
        if not staff.user_id:
            return
        user = await self.users.get(staff.user_id)
        if not user:
            return
        if "email" in changes or "phone" in changes:
            await self.users.ensure_unique(changes.get("email"), changes.get("phone"), exclude_id=user.id)
        if "email" in changes:
            user.email = staff.email
        if "phone" in changes:
            user.phone = staff.phone
        user.full_name = staff.full_name

    async def update_by_admin(self, staff_id: UUID, data: StaffAdminUpdate, updated_by_id: UUID,
                              ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        staff = await self.get_or_404(staff_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("email"):
            changes["email"] = changes["email"].lower()
            if changes["email"] != staff.email and await self._email_taken(changes["email"], staff.id):
                raise ConflictError("Staff with this email already exists")
        if changes.get("phone") and changes["phone"] != staff.phone and await self._phone_taken(changes["phone"], staff.id):
            raise ConflictError("Staff with this phone number already exists")

        try:
            for field, value in changes.items():
                setattr(staff, field, value)
            staff.updated_by_id = updated_by_id
            await self._sync_user(staff, changes)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log(
            "UPDATE_STAFF", MODULE, updated_by_id, ctx,
            details={"staff_id": str(staff_id), "updated_fields": sorted(changes)}
        )
        return self.serialize(staff)

    async def update_self(self, staff_id: UUID, data: StaffSelfUpdate, current_user: User,
                          ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        staff = await self.get_or_404(staff_id)
        if staff.user_id != current_user.id:
            raise ForbiddenError("You can only update your own profile")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("phone") and changes["phone"] != staff.phone and await self._phone_taken(changes["phone"], staff.id):
            raise ConflictError("Staff with this phone number already exists")

        try:
            for field, value in changes.items():
                setattr(staff, field, value)
            staff.updated_by_id = current_user.id
            await self._sync_user(staff, changes)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log(
            "UPDATE_STAFF_SELF", MODULE, current_user.id, ctx,
            details={"staff_id": str(staff_id), "updated_fields": sorted(changes)}
        )
        return self.serialize(staff)

    async def update_status(self, staff_id: UUID, employment_status: str, updated_by_id: UUID,
                            ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        staff = await self.get_or_404(staff_id)
        previous = staff.employment_status
        staff.employment_status = employment_status
        staff.updated_by_id = updated_by_id
        await self.db.commit()

        await self.audit.log(
            "UPDATE_STAFF_STATUS", MODULE, updated_by_id, ctx,
            details={"staff_id": str(staff_id), "from": previous, "to": employment_status}
        )
        return self.serialize(staff)

    async def remove(self, staff_id: UUID, deleted_by_id: UUID,
                     ctx: Optional[RequestContext] = None) -> bool:
        staff = await self.get_or_404(staff_id)
        try:
            staff.mark_deleted(deleted_by_id)
            if staff.user_id:
                await self.users.deactivate(staff.user_id, deleted_by_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if staff.user_id:
            await SessionCacheService(self.db).revoke_user_sessions(staff.user_id)

        await self.audit.log(
            "DELETE_STAFF", MODULE, deleted_by_id, ctx,
            details={"staff_id": str(staff_id), "email": staff.email}
        )
        return True

    async def import_csv(self, file: UploadFile, created_by_id: UUID,
                         ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        try:
            valid_rows, errors = await CSVProcessor.process_staff_csv(file)
        except ValueError as e:
            raise BadRequestError(str(e))

        created = []
        login_accounts = []
        seen_emails = set()
        try:
            for row in valid_rows:
                data: StaffCreate = row["data"]
                email = data.email.lower()
                if email in seen_emails or await self._email_taken(email):
                    errors.append({
                        "row_number": row["row_number"],
                        "email": email,
                        "error": "Staff with this email already exists",
                    })
                    continue
                try:
                    staff, _, temporary_password = await self._add_staff(data, created_by_id)
                except ConflictError as e:
                    # login account clashes with another user, nothing was staged for this row
                    errors.append({"row_number": row["row_number"], "email": email, "error": e.detail})
                    continue
                seen_emails.add(email)
                created.append(staff)
                if temporary_password:
                    login_accounts.append((staff, temporary_password))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        errors.sort(key=lambda e: e["row_number"])
        await self.audit.log(
            "IMPORT_STAFF", MODULE, created_by_id, ctx,
            status="SUCCESS" if not errors else "FAIL",
            details={"created": len(created), "errors": len(errors), "login_accounts": len(login_accounts)}
        )

        credentials = []
        for staff, temporary_password in login_accounts:
            email_sent = await self.email.send_welcome(
                staff.email, staff.full_name, UserRole.STAFF.value, temporary_password
            )
            credentials.append({
                "staff_id": str(staff.id),
                "email": staff.email,
                "temporary_password": temporary_password,
                "email_sent": email_sent,
            })

        return {
            "created": len(created),
            "staff": [self.serialize(s) for s in created],
            "login_accounts": credentials,
            "errors": errors,
        }
