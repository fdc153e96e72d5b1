# schoolms/services/staff_salary_service.py
"""Staff salary changes and their monthly history."""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .audit_service import AuditService
from .base_service import BaseService
from ..core.exceptions import NotFoundError
from ..models.staff import Staff, StaffSalaryHistory, SalaryChangeType
from ..models.user import User
from ..schemas.common import RequestContext
from ..schemas.staff import SalaryHistoryResponse, SalaryUpdateRequest
from ..utils.dates import first_of_month, first_of_next_month, utcnow

logger = logging.getLogger(__name__)

MODULE = "STAFF"


def calculate_salary(basic_salary, allowances) -> Decimal:
    return Decimal(str(basic_salary or 0)) + Decimal(str(allowances or 0))


class StaffSalaryService(BaseService[StaffSalaryHistory]):
    def __init__(self, db: AsyncSession):
        super().__init__(StaffSalaryHistory, db)
        self.audit = AuditService(db)

    async def _get_staff(self, staff_id: UUID) -> Staff:
        result = await self.db.execute(
            select(Staff).where(Staff.id == staff_id, Staff.deleted_at.is_(None))
        )
        staff = result.scalar_one_or_none()
        if not staff:
            raise NotFoundError("Staff not found")
        return staff

    def create_initial_salary_record(self, staff: Staff,
                                     created_by_id: Optional[UUID] = None) -> StaffSalaryHistory:
        """Stage the INITIAL history row for a flushed staff member; the caller commits"""
        effective = first_of_month(staff.employment_date) if staff.employment_date else first_of_month(utcnow())
        record = StaffSalaryHistory(
            staff_id=staff.id,
            effective_month=effective,
            basic_salary=staff.basic_salary,
            allowances=staff.allowances,
            total_salary=staff.total_salary,
            change_type=SalaryChangeType.INITIAL.value,
            change_reason="Initial salary",
            approved_by_id=created_by_id,
            created_by_id=created_by_id,
        )
        self.db.add(record)
        return record

    async def update_staff_salary(
        self,
        staff_id: UUID,
        data: SalaryUpdateRequest,
        updated_by_id: UUID,
        ctx: Optional[RequestContext] = None,
    ) -> Dict[str, Any]:
        """
        Change a staff member's salary and record the change.

        The staff row and its new history row are committed together; if the
        commit fails nothing is written and no audit entry is made.
        """
        staff = await self._get_staff(staff_id)

        total = calculate_salary(data.basic_salary, data.allowances)
        effective_month = first_of_month(data.effective_month) if data.effective_month else first_of_next_month()
        previous = {
            "basic_salary": float(staff.basic_salary or 0),
            "allowances": float(staff.allowances or 0),
            "total_salary": float(staff.total_salary or 0),
        }

        staff.basic_salary = data.basic_salary
        staff.allowances = data.allowances
        staff.total_salary = total
        staff.updated_by_id = updated_by_id

        record = StaffSalaryHistory(
            staff_id=staff.id,
            effective_month=effective_month,
            basic_salary=data.basic_salary,
            allowances=data.allowances,
            total_salary=total,
            change_type=data.change_type,
            change_reason=data.change_reason,
            approved_by_id=updated_by_id,
            created_by_id=updated_by_id,
        )
        self.db.add(record)
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Salary update for staff {staff_id} failed: {e}")
            raise

        current = {
            "basic_salary": float(data.basic_salary),
            "allowances": float(data.allowances),
            "total_salary": float(total),
        }
        await self.audit.log(
            "STAFF_SALARY_UPDATED", MODULE, updated_by_id, ctx,
            details={
                "staff_id": str(staff_id),
                "effective_month": effective_month.isoformat(),
                "change_type": data.change_type,
                "previous": previous,
                "current": current,
            }
        )
        return {
            "staff_id": str(staff_id),
            "history_id": str(record.id),
            "effective_month": effective_month.isoformat(),
            "previous": previous,
            **current,
        }

    def _history_query(self, staff_id: UUID):
        return (
            select(StaffSalaryHistory, User.full_name, User.email)
            .outerjoin(User, User.id == StaffSalaryHistory.approved_by_id)
            .where(
                StaffSalaryHistory.staff_id == staff_id,
                StaffSalaryHistory.deleted_at.is_(None),
            )
            .order_by(StaffSalaryHistory.effective_month.desc(), StaffSalaryHistory.created_at.desc())
        )

    @staticmethod
    def _serialize(record: StaffSalaryHistory, approver_name, approver_email) -> Dict[str, Any]:
        return SalaryHistoryResponse(
            id=record.id,
            staff_id=record.staff_id,
            effective_month=record.effective_month,
            basic_salary=record.basic_salary,
            allowances=record.allowances,
            total_salary=record.total_salary,
            change_type=record.change_type,
            change_reason=record.change_reason,
            approved_by_id=record.approved_by_id,
            approved_by_name=approver_name,
            approved_by_email=approver_email,
            created_at=record.created_at,
        ).model_dump(mode="json")

    async def get_staff_salary_history(self, staff_id: UUID) -> List[Dict[str, Any]]:
        await self._get_staff(staff_id)
        result = await self.db.execute(self._history_query(staff_id))
        return [self._serialize(*row) for row in result.all()]

    async def get_salary_for_month(self, staff_id: UUID, month: date) -> Dict[str, Any]:
        stmt = self._history_query(staff_id).where(
            StaffSalaryHistory.effective_month <= first_of_month(month)
        ).limit(1)
        row = (await self.db.execute(stmt)).first()
        if not row:
            raise NotFoundError("No salary record found for this month")
        return self._serialize(*row)
