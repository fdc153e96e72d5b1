# schoolms/services/timetable_service.py
import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .audit_service import AuditService
from .base_service import BaseService
from ..core.exceptions import BadRequestError, NotFoundError
from ..models.classroom import Classroom, ClassModel
from ..models.timetable import ClassTimeslot, ScheduleSlot, DAY_ORDER
from ..models.user import User, UserRole
from ..schemas.common import RequestContext
from ..schemas.timetable import (
    AssignSubjectRequest, ScheduleSlotResponse, TimeslotCreate, TimeslotResponse
)
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)

MODULE = "TIMETABLE"


def _day_start_key(day: str, start_time: str):
    return (DAY_ORDER.get(day, len(DAY_ORDER)), start_time)


class TimetableService(BaseService[ScheduleSlot]):
    not_found_message = "Schedule slot not found"

    def __init__(self, db: AsyncSession):
        super().__init__(ScheduleSlot, db)
        self.audit = AuditService(db)

    @staticmethod
    def serialize_slot(slot: ScheduleSlot, timeslot: ClassTimeslot) -> Dict[str, Any]:
        return ScheduleSlotResponse(
            id=slot.id,
            class_id=slot.class_id,
            timeslot_id=slot.timeslot_id,
            day=slot.day,
            subject_name=slot.subject_name,
            teacher_id=slot.teacher_id,
            room_id=slot.room_id,
            has_conflict=slot.has_conflict,
            start_time=timeslot.start_time if timeslot else None,
            end_time=timeslot.end_time if timeslot else None,
        ).model_dump(mode="json")

    async def _ensure_class(self, class_id: UUID) -> None:
        result = await self.db.execute(
            select(ClassModel.id).where(ClassModel.id == class_id, ClassModel.deleted_at.is_(None))
        )
        if not result.first():
            raise NotFoundError("Class not found")

    async def _get_timeslot(self, timeslot_id: UUID) -> ClassTimeslot:
        result = await self.db.execute(
            select(ClassTimeslot).where(ClassTimeslot.id == timeslot_id, ClassTimeslot.deleted_at.is_(None))
        )
        timeslot = result.scalar_one_or_none()
        if not timeslot:
            raise NotFoundError("Timeslot not found")
        return timeslot

    # Timeslots

    async def create_timeslot(self, data: TimeslotCreate, user_id: UUID,
                              ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        if data.start_time >= data.end_time:
            raise BadRequestError("Start time must be before end time")
        await self._ensure_class(data.class_id)

        timeslot = ClassTimeslot(**data.model_dump(), created_by_id=user_id)
        self.db.add(timeslot)
        await self.db.commit()

        await self.audit.log("CREATE_TIMESLOT", MODULE, user_id, ctx, details={
            "timeslot_id": str(timeslot.id), "class_id": str(data.class_id), "day": data.day,
        })
        return TimeslotResponse.model_validate(timeslot).model_dump(mode="json")

    async def get_timeslots_by_class(self, class_id: UUID) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(ClassTimeslot).where(ClassTimeslot.class_id == class_id, ClassTimeslot.deleted_at.is_(None))
        )
        timeslots = sorted(result.scalars().all(), key=lambda t: _day_start_key(t.day, t.start_time))
        return [TimeslotResponse.model_validate(t).model_dump(mode="json") for t in timeslots]

    async def delete_timeslot(self, timeslot_id: UUID, user_id: UUID,
                              ctx: Optional[RequestContext] = None) -> bool:
        timeslot = await self._get_timeslot(timeslot_id)
        result = await self.db.execute(self.active(select(ScheduleSlot).where(
            ScheduleSlot.timeslot_id == timeslot_id, ScheduleSlot.teacher_id.is_not(None)
        )))
        overlapping = []
        for slot in result.scalars().all():
            overlapping.extend(await self._find_conflicts(slot, timeslot, slot.teacher_id))

        now = utcnow()
        timeslot.deleted_at = now
        timeslot.deleted_by_id = user_id
        # Slots hanging off the timeslot go with it
        await self.db.execute(
            update(ScheduleSlot)
            .where(ScheduleSlot.timeslot_id == timeslot_id, ScheduleSlot.deleted_at.is_(None))
            .values(deleted_at=now, deleted_by_id=user_id)
        )
        await self._recheck_conflicts(overlapping)
        await self.db.commit()

        await self.audit.log("DELETE_TIMESLOT", MODULE, user_id, ctx, details={"timeslot_id": str(timeslot_id)})
        return True

    # Schedule slots

    async def assign_subject_to_timeslot(self, data: AssignSubjectRequest, user_id: UUID,
                                         ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        timeslot = await self._get_timeslot(data.timeslot_id)
        if timeslot.class_id != data.class_id:
            raise BadRequestError("Timeslot does not belong to this class")
        if data.room_id:
            room = await self.db.execute(
                select(Classroom.id).where(Classroom.id == data.room_id, Classroom.deleted_at.is_(None))
            )
            if not room.first():
                raise NotFoundError("Room not found")

        result = await self.db.execute(self.active(select(ScheduleSlot).where(
            ScheduleSlot.class_id == data.class_id,
            ScheduleSlot.timeslot_id == data.timeslot_id,
        )))
        slot = result.scalars().first()
        if slot:
            slot.subject_name = data.subject_name
            slot.room_id = data.room_id
            slot.day = timeslot.day
            slot.updated_by_id = user_id
        else:
            slot = ScheduleSlot(
                class_id=data.class_id,
                timeslot_id=data.timeslot_id,
                day=timeslot.day,
                subject_name=data.subject_name,
                room_id=data.room_id,
                created_by_id=user_id,
            )
            self.db.add(slot)
        await self.db.commit()

        await self.audit.log("ASSIGN_SUBJECT", MODULE, user_id, ctx, details={
            "slot_id": str(slot.id), "subject_name": data.subject_name,
        })
        return self.serialize_slot(slot, timeslot)

    async def _find_conflicts(self, slot: ScheduleSlot, timeslot: ClassTimeslot,
                              teacher_id: UUID) -> List[Tuple[ScheduleSlot, ClassTimeslot]]:
        """Other active slots of the teacher on the same day whose times overlap"""
        result = await self.db.execute(
            select(ScheduleSlot, ClassTimeslot)
            .join(ClassTimeslot, ClassTimeslot.id == ScheduleSlot.timeslot_id)
            .where(
                ScheduleSlot.teacher_id == teacher_id,
                ScheduleSlot.day == slot.day,
                ScheduleSlot.id != slot.id,
                ScheduleSlot.deleted_at.is_(None),
                ClassTimeslot.deleted_at.is_(None),
            )
        )
        return [
            (other, other_ts) for other, other_ts in result.all()
            if timeslot.start_time < other_ts.end_time and other_ts.start_time < timeslot.end_time
        ]

    async def _recheck_conflicts(self, slots: List[Tuple[ScheduleSlot, ClassTimeslot]]) -> None:
        """Recompute has_conflict for slots that overlapped one being removed or reassigned; the caller commits"""
        await self.db.flush()
        for other, other_ts in slots:
            if other.deleted_at is None and other.teacher_id:
                other.has_conflict = bool(await self._find_conflicts(other, other_ts, other.teacher_id))

    async def assign_teacher_to_slot(self, slot_id: UUID, teacher_id: UUID, user_id: UUID,
                                     ctx: Optional[RequestContext] = None) -> Dict[str, Any]:
        slot = await self.get_or_404(slot_id)
        timeslot = await self._get_timeslot(slot.timeslot_id)

        result = await self.db.execute(
            select(User).where(User.id == teacher_id, User.deleted_at.is_(None), User.is_active.is_(True))
        )
        teacher = result.scalar_one_or_none()
        if not teacher:
            raise NotFoundError("Teacher not found")
        if teacher.role != UserRole.TEACHER.value:
            raise BadRequestError("Selected user is not a teacher")

        previous_overlaps = []
        if slot.teacher_id and slot.teacher_id != teacher_id:
            previous_overlaps = await self._find_conflicts(slot, timeslot, slot.teacher_id)

        conflicts = [other for other, _ in await self._find_conflicts(slot, timeslot, teacher_id)]
        slot.teacher_id = teacher_id
        slot.has_conflict = bool(conflicts)
        slot.updated_by_id = user_id
        for other in conflicts:
            other.has_conflict = True
        await self._recheck_conflicts(previous_overlaps)
        await self.db.commit()

        if conflicts:
            logger.warning(f"Teacher {teacher_id} double booked on {slot.day} for slot {slot_id}")
        await self.audit.log("ASSIGN_TEACHER", MODULE, user_id, ctx, details={
            "slot_id": str(slot_id), "teacher_id": str(teacher_id), "conflicts": len(conflicts),
        })
        data = self.serialize_slot(slot, timeslot)
        data["conflicting_slot_ids"] = [str(o.id) for o in conflicts]
        return data

    async def get_timetable(self, class_id: UUID) -> List[Dict[str, Any]]:
        await self._ensure_class(class_id)
        result = await self.db.execute(
            select(ScheduleSlot, ClassTimeslot)
            .join(ClassTimeslot, ClassTimeslot.id == ScheduleSlot.timeslot_id)
            .where(
                ScheduleSlot.class_id == class_id,
                ScheduleSlot.deleted_at.is_(None),
                ClassTimeslot.deleted_at.is_(None),
            )
        )
        rows = sorted(result.all(), key=lambda row: _day_start_key(row[0].day, row[1].start_time))
        return [self.serialize_slot(slot, timeslot) for slot, timeslot in rows]

    async def remove_slot_assignment(self, slot_id: UUID, user_id: UUID,
                                     ctx: Optional[RequestContext] = None) -> bool:
        slot = await self.get_or_404(slot_id)
        overlapping = []
        if slot.teacher_id:
            timeslot = await self._get_timeslot(slot.timeslot_id)
            overlapping = await self._find_conflicts(slot, timeslot, slot.teacher_id)
        slot.mark_deleted(user_id)
        await self._recheck_conflicts(overlapping)
        await self.db.commit()

        await self.audit.log("REMOVE_SLOT", MODULE, user_id, ctx, details={"slot_id": str(slot_id)})
        return True
