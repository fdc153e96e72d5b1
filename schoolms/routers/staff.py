from datetime import date
from typing import Literal, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.common import success_response
from ..schemas.staff import (
    SalaryCalculation, SalaryUpdateRequest, StaffAdminUpdate, StaffCreate,
    StaffSelfUpdate, StaffStatusUpdate
)
from ..services.csv_processor import CSVProcessor
from ..services.staff_salary_service import StaffSalaryService
from ..services.staff_service import StaffService
from ..utils.deps import AdminUser, Context, CurrentUser
from ..utils.pagination import PaginationParams, Paginator

router = APIRouter(prefix="/api/v1/staff", tags=["Staff"])


@router.post("", status_code=201)
async def create_staff(body: StaffCreate, admin: AdminUser, ctx: Context,
                       db: AsyncSession = Depends(get_db)):
    result = await StaffService(db).create(body, admin.id, ctx)
    return success_response(result, "Staff created successfully")


@router.get("")
async def list_staff(
    admin: AdminUser,
    pagination: PaginationParams = Depends(Paginator.get_pagination_params),
    search: Optional[str] = Query(None, max_length=100),
    department: Optional[str] = Query(None),
    employment_status: Optional[str] = Query(None),
    sort_by: Literal["full_name", "employment_date", "department", "designation", "created_at"] = Query("full_name"),
    sort_order: Literal["asc", "desc"] = Query("asc"),
    db: AsyncSession = Depends(get_db),
):
    result = await StaffService(db).find_all(
        page=pagination.page,
        limit=pagination.limit,
        search=search,
        department=department,
        employment_status=employment_status,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return success_response(result)


@router.get("/count")
async def count_staff(admin: AdminUser, department: Optional[str] = Query(None),
                      employment_status: Optional[str] = Query(None),
                      db: AsyncSession = Depends(get_db)):
    total = await StaffService(db).count(department=department, employment_status=employment_status)
    return success_response({"count": total})


@router.get("/department/{department}")
async def staff_by_department(department: str, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return success_response(await StaffService(db).find_by_department(department))


@router.post("/calculate-salary")
async def calculate_salary(body: SalaryCalculation, current_user: CurrentUser):
    total = StaffService.calculate_salary(body.basic_salary, body.allowances)
    return success_response({
        "basic_salary": float(body.basic_salary),
        "allowances": float(body.allowances),
        "total_salary": float(total),
    })


@router.get("/import/template", response_class=PlainTextResponse)
async def import_template(admin: AdminUser):
    return PlainTextResponse(CSVProcessor.generate_csv_template(), media_type="text/csv")


@router.post("/import")
async def import_staff(admin: AdminUser, ctx: Context, file: UploadFile = File(...),
                       db: AsyncSession = Depends(get_db)):
    result = await StaffService(db).import_csv(file, admin.id, ctx)
    return success_response(result, f"Imported {result['created']} staff")


@router.get("/{staff_id}")
async def get_staff(staff_id: UUID, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return success_response(await StaffService(db).find_one(staff_id))


@router.patch("/{staff_id}")
async def update_staff(staff_id: UUID, body: StaffAdminUpdate, admin: AdminUser, ctx: Context,
                       db: AsyncSession = Depends(get_db)):
    staff = await StaffService(db).update_by_admin(staff_id, body, admin.id, ctx)
    return success_response(staff, "Staff updated successfully")


@router.patch("/{staff_id}/profile")
async def update_own_profile(staff_id: UUID, body: StaffSelfUpdate, current_user: CurrentUser,
                             ctx: Context, db: AsyncSession = Depends(get_db)):
    staff = await StaffService(db).update_self(staff_id, body, current_user, ctx)
    return success_response(staff, "Profile updated successfully")


@router.patch("/{staff_id}/status")
async def update_staff_status(staff_id: UUID, body: StaffStatusUpdate, admin: AdminUser, ctx: Context,
                              db: AsyncSession = Depends(get_db)):
    staff = await StaffService(db).update_status(staff_id, body.employment_status, admin.id, ctx)
    return success_response(staff, "Status updated successfully")


@router.delete("/{staff_id}")
async def delete_staff(staff_id: UUID, admin: AdminUser, ctx: Context,
                       db: AsyncSession = Depends(get_db)):
    await StaffService(db).remove(staff_id, admin.id, ctx)
    return success_response(None, "Staff deleted successfully")


# Salary

@router.put("/{staff_id}/salary")
async def update_salary(staff_id: UUID, body: SalaryUpdateRequest, admin: AdminUser, ctx: Context,
                        db: AsyncSession = Depends(get_db)):
    result = await StaffSalaryService(db).update_staff_salary(staff_id, body, admin.id, ctx)
    return success_response(result, "Salary updated successfully")


@router.get("/{staff_id}/salary/history")
async def salary_history(staff_id: UUID, admin: AdminUser, db: AsyncSession = Depends(get_db)):
    return success_response(await StaffSalaryService(db).get_staff_salary_history(staff_id))


@router.get("/{staff_id}/salary/month")
async def salary_for_month(staff_id: UUID, admin: AdminUser, month: date = Query(...),
                           db: AsyncSession = Depends(get_db)):
    return success_response(await StaffSalaryService(db).get_salary_for_month(staff_id, month))
