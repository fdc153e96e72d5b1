from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.common import success_response
from ..schemas.timetable import AssignSubjectRequest, AssignTeacherRequest, TimeslotCreate
from ..services.timetable_service import TimetableService
from ..utils.deps import AdminUser, Context, CurrentUser

router = APIRouter(prefix="/api/v1/timetable", tags=["Timetable"])


@router.post("/timeslots", status_code=201)
async def create_timeslot(body: TimeslotCreate, admin: AdminUser, ctx: Context,
                          db: AsyncSession = Depends(get_db)):
    timeslot = await TimetableService(db).create_timeslot(body, admin.id, ctx)
    return success_response(timeslot, "Timeslot created successfully")


@router.get("/timeslots/class/{class_id}")
async def class_timeslots(class_id: UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return success_response(await TimetableService(db).get_timeslots_by_class(class_id))


@router.delete("/timeslots/{timeslot_id}")
async def delete_timeslot(timeslot_id: UUID, admin: AdminUser, ctx: Context,
                          db: AsyncSession = Depends(get_db)):
    await TimetableService(db).delete_timeslot(timeslot_id, admin.id, ctx)
    return success_response(None, "Timeslot deleted successfully")


@router.post("/slots")
async def assign_subject(body: AssignSubjectRequest, admin: AdminUser, ctx: Context,
                         db: AsyncSession = Depends(get_db)):
    slot = await TimetableService(db).assign_subject_to_timeslot(body, admin.id, ctx)
    return success_response(slot, "Subject assigned")


@router.put("/slots/{slot_id}/teacher")
async def assign_teacher(slot_id: UUID, body: AssignTeacherRequest, admin: AdminUser, ctx: Context,
                         db: AsyncSession = Depends(get_db)):
    slot = await TimetableService(db).assign_teacher_to_slot(slot_id, body.teacher_id, admin.id, ctx)
    message = "Teacher assigned with schedule conflict" if slot["has_conflict"] else "Teacher assigned"
    return success_response(slot, message)


@router.delete("/slots/{slot_id}")
async def remove_slot(slot_id: UUID, admin: AdminUser, ctx: Context,
                      db: AsyncSession = Depends(get_db)):
    await TimetableService(db).remove_slot_assignment(slot_id, admin.id, ctx)
    return success_response(None, "Slot assignment removed")


@router.get("/class/{class_id}")
async def class_timetable(class_id: UUID, current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    return success_response(await TimetableService(db).get_timetable(class_id))
