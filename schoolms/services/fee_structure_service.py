# schoolms/services/fee_structure_service.py
"""Fee structures per class and academic year, with versioned history."""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .audit_service import AuditService
from .base_service import BaseService
from ..core.exceptions import BadRequestError, ConflictError, NotFoundError
from ..models.classroom import ClassModel
from ..models.fee_structure import (
    FeeStructure, FeeStructureItem, FeeStructureHistory, FeeFrequency, FeeStructureStatus
)
from ..models.student import Student
from ..schemas.common import RequestContext
from ..schemas.fee_structure import (
    FeeHistoryResponse, FeeItemIn, FeeStructureCreate, FeeStructureResponse, FeeStructureRevise
)
from ..utils.pagination import Paginator
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

MODULE = "FEE_STRUCTURE"

ANNUAL_MULTIPLIERS = {
    FeeFrequency.MONTHLY.value: Decimal(12),
    FeeFrequency.TERM.value: Decimal(3),
    FeeFrequency.ANNUAL.value: Decimal(1),
    FeeFrequency.ONE_TIME.value: Decimal(1),
}

TWOPLACES = Decimal("0.01")


def _field(item: Any, name: str):
    return item.get(name) if isinstance(item, dict) else getattr(item, name)


def compute_annual(items: Iterable[Any]) -> Decimal:
    """Yearly amount of a set of fee items; unknown frequencies count once"""
    total = Decimal(0)
    for item in items:
        amount = Decimal(str(_field(item, "amount") or 0))
        total += amount * ANNUAL_MULTIPLIERS.get(_field(item, "frequency"), Decimal(1))
    return total.quantize(TWOPLACES)


def compute_monthly_portion(items: Iterable[Any]) -> Decimal:
    """Recurring monthly share: annual and term fees spread over 12 months, one-time fees excluded"""
    total = Decimal(0)
    for item in items:
        amount = Decimal(str(_field(item, "amount") or 0))
        frequency = _field(item, "frequency")
        if frequency == FeeFrequency.MONTHLY.value:
            total += amount
        elif frequency in (FeeFrequency.ANNUAL.value, FeeFrequency.TERM.value):
            total += amount / Decimal(12)
    return total.quantize(TWOPLACES)


def _snapshot(items: List[FeeItemIn]) -> List[Dict[str, Any]]:
    return [item.model_dump(mode="json") for item in items]


class FeeStructureService(BaseService[FeeStructure]):
    not_found_message = "Fee structure not found"

    def __init__(self, db: AsyncSession):
        super().__init__(FeeStructure, db)
        self.audit = AuditService(db)

    compute_annual = staticmethod(compute_annual)
    compute_monthly_portion = staticmethod(compute_monthly_portion)

    def _with_items(self, stmt):
        return stmt.options(
            selectinload(FeeStructure.items.and_(FeeStructureItem.deleted_at.is_(None)))
        ).execution_options(populate_existing=True)

    async def _load(self, structure_id: UUID) -> FeeStructure:
        result = await self.db.execute(
            self._with_items(self.active(select(FeeStructure).where(FeeStructure.id == structure_id)))
        )
        structure = result.scalar_one_or_none()
        if not structure:
            raise NotFoundError(self.not_found_message)
        return structure

    def serialize(self, structure: FeeStructure) -> Dict[str, Any]:
        data = FeeStructureResponse.model_validate(structure).model_dump(mode="json")
        data["total_annual"] = float(compute_annual(structure.items))
        data["monthly_portion"] = float(compute_monthly_portion(structure.items))
        return data

    async def create_structure(self, data: FeeStructureCreate, user_id: UUID,
                               ctx: Optional[RequestContext] = None) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
        class_ids = list(dict.fromkeys(data.class_ids or ([data.class_id] if data.class_id else [])))
        if not class_ids:
            raise BadRequestError("At least one class must be provided")

        found = await self.db.execute(
            select(ClassModel.id).where(ClassModel.id.in_(class_ids), ClassModel.deleted_at.is_(None))
        )
        missing = set(class_ids) - set(found.scalars().all())
        if missing:
            raise NotFoundError("Class not found")

        conflicts = await self.db.execute(
            self.active(select(FeeStructure.class_id)).where(
                FeeStructure.class_id.in_(class_ids),
                FeeStructure.academic_year == data.academic_year,
                FeeStructure.status == FeeStructureStatus.ACTIVE.value,
            )
        )
        conflicting = sorted({str(c) for c in conflicts.scalars().all()})
        if conflicting:
            raise ConflictError(
                f"An active fee structure already exists for {data.academic_year}",
                conflicting_class_ids=conflicting,
            )

        total_annual = compute_annual(data.items)
        snapshot = _snapshot(data.items)
        created_ids = []
        try:
            for class_id in class_ids:
                structure = FeeStructure(
                    class_id=class_id,
                    academic_year=data.academic_year,
                    name=data.name,
                    effective_from=data.effective_from,
                    status=data.status,
                )
                self.db.add(structure)
                await self.db.flush()
                for item in data.items:
                    self.db.add(FeeStructureItem(fee_structure_id=structure.id, **item.model_dump()))
                self.db.add(FeeStructureHistory(
                    fee_structure_id=structure.id,
                    version=1,
                    effective_from=data.effective_from,
                    total_annual=total_annual,
                    snapshot=snapshot,
                    change_reason="Initial structure",
                ))
                created_ids.append(structure.id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log("CREATE_FEE_STRUCTURE", MODULE, user_id, ctx, details={
            "structure_ids": [str(i) for i in created_ids],
            "academic_year": data.academic_year,
            "total_annual": float(total_annual),
        })

        structures = [self.serialize(await self._load(i)) for i in created_ids]
        return structures[0] if len(structures) == 1 else structures

    async def _latest_version(self, structure_id: UUID) -> int:
        result = await self.db.execute(
            select(func.max(FeeStructureHistory.version)).where(
                FeeStructureHistory.fee_structure_id == structure_id
            )
        )
        return result.scalar() or 0

    async def revise_structure(self, structure_id: UUID, data: FeeStructureRevise, user_id: UUID,
                               ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        structure = await self._load(structure_id)
        version = await self._latest_version(structure_id) + 1
        total_annual = compute_annual(data.items)

        try:
            now = utcnow()
            for item in structure.items:
                item.deleted_at = now
                item.deleted_by_id = user_id
            for item in data.items:
                self.db.add(FeeStructureItem(fee_structure_id=structure.id, **item.model_dump()))
            structure.effective_from = data.effective_from
            self.db.add(FeeStructureHistory(
                fee_structure_id=structure.id,
                version=version,
                effective_from=data.effective_from,
                total_annual=total_annual,
                snapshot=_snapshot(data.items),
                change_reason=data.change_reason,
            ))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log("REVISE_FEE_STRUCTURE", MODULE, user_id, ctx, details={
            "structure_id": str(structure_id), "version": version, "total_annual": float(total_annual),
        })
        return {"structure_id": str(structure_id), "version": version, "total_annual": float(total_annual)}

    async def get_structure_history(self, structure_id: UUID) -> List[Dict[str, Any]]:
        await self.get_or_404(structure_id)
        result = await self.db.execute(
            select(FeeStructureHistory)
            .where(FeeStructureHistory.fee_structure_id == structure_id,
                   FeeStructureHistory.deleted_at.is_(None))
            .order_by(FeeStructureHistory.version.asc())
        )
        return [FeeHistoryResponse.model_validate(h).model_dump(mode="json") for h in result.scalars().all()]

    async def get_structure(self, structure_id: UUID) -> Dict[str, Any]:
        return self.serialize(await self._load(structure_id))

    async def list_structures(self, page: int = 1, limit: int = 10, class_id: Optional[UUID] = None,
                              academic_year: Optional[str] = None, status: Optional[str] = None) -> Dict[str, Any]:
        stmt = self.active(select(FeeStructure))
        if class_id:
            stmt = stmt.where(FeeStructure.class_id == class_id)
        if academic_year:
            stmt = stmt.where(FeeStructure.academic_year == academic_year)
        if status:
            stmt = stmt.where(FeeStructure.status == status)
        stmt = self._with_items(stmt.order_by(FeeStructure.academic_year.desc(), FeeStructure.created_at.desc()))
        result = await self.paginate(stmt, page, limit)
        structures = result["items"]

        ids = [s.id for s in structures]
        class_ids = {s.class_id for s in structures}
        versions: Dict[UUID, int] = {}
        student_counts: Dict[UUID, int] = {}
        if ids:
            rows = await self.db.execute(
                select(FeeStructureHistory.fee_structure_id, func.max(FeeStructureHistory.version))
                .where(FeeStructureHistory.fee_structure_id.in_(ids))
                .group_by(FeeStructureHistory.fee_structure_id)
            )
            versions = dict(rows.all())
            rows = await self.db.execute(
                select(Student.class_id, func.count(Student.id))
                .where(Student.class_id.in_(class_ids), Student.deleted_at.is_(None))
                .group_by(Student.class_id)
            )
            student_counts = dict(rows.all())

        items = []
        for structure in structures:
            data = self.serialize(structure)
            data["latest_version"] = versions.get(structure.id, 0)
            data["student_count"] = student_counts.get(structure.class_id, 0)
            items.append(data)
        return Paginator.create_response(items, page, limit, result["total"])

    async def update_status(self, structure_id: UUID, status: str, user_id: UUID,
                            ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        structure = await self._load(structure_id)
        if status == FeeStructureStatus.ACTIVE.value and structure.status != status:
            clash = await self.db.execute(
                self.active(select(FeeStructure.id)).where(
                    FeeStructure.class_id == structure.class_id,
                    FeeStructure.academic_year == structure.academic_year,
                    FeeStructure.status == FeeStructureStatus.ACTIVE.value,
                    FeeStructure.id != structure.id,
                )
            )
            if clash.first():
                raise ConflictError(
                    f"An active fee structure already exists for {structure.academic_year}",
                    conflicting_class_ids=[str(structure.class_id)],
                )

        previous = structure.status
        structure.status = status
        await self.db.commit()

        await self.audit.log("UPDATE_FEE_STRUCTURE_STATUS", MODULE, user_id, ctx, details={
            "structure_id": str(structure_id), "from": previous, "to": status,
        })
        return self.serialize(await self._load(structure_id))
