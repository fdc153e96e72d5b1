import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolms.core.exceptions import NotFoundError
from schoolms.models import AuditLog, Staff, StaffSalaryHistory
from schoolms.schemas.staff import SalaryUpdateRequest, StaffCreate
from schoolms.services.staff_salary_service import StaffSalaryService, calculate_salary
from schoolms.services.staff_service import StaffService
from schoolms.utils.dates import first_of_month, first_of_next_month, utcnow


async def create_staff(db_session, created_by_id) -> uuid.UUID:
    result = await StaffService(db_session).create(
        StaffCreate(
            first_name="Asha",
            last_name="Verma",
            email="asha@school.example.com",
            employment_date=date(2024, 6, 15),
            basic_salary=Decimal("30000"),
            allowances=Decimal("5000"),
        ),
        created_by_id,
    )
    return uuid.UUID(result["staff"]["id"])


async def history_count(db_session) -> int:
    result = await db_session.execute(select(func.count()).select_from(StaffSalaryHistory))
    return result.scalar()


def test_calculate_salary():
    assert calculate_salary(Decimal("100.10"), Decimal("0.20")) == Decimal("100.30")
    assert calculate_salary(None, 5) == Decimal("5")


async def test_create_writes_initial_record(db_session, admin_user):
    staff_id = await create_staff(db_session, admin_user.id)

    history = await StaffSalaryService(db_session).get_staff_salary_history(staff_id)

    assert len(history) == 1
    assert history[0]["change_type"] == "INITIAL"
    assert history[0]["effective_month"] == "2024-06-01"
    assert history[0]["total_salary"] == 35000.0
    assert history[0]["approved_by_name"] == "Ada Admin"


async def test_initial_record_without_employment_date_uses_current_month(db_session, admin_user):
    staff = Staff(first_name="Ravi", last_name="Rao", email="ravi@school.example.com",
                  basic_salary=Decimal("20000"), allowances=Decimal("1500"), total_salary=Decimal("21500"))
    db_session.add(staff)
    await db_session.flush()

    record = StaffSalaryService(db_session).create_initial_salary_record(staff, admin_user.id)
    await db_session.commit()

    assert record.effective_month == first_of_month(utcnow())
    assert record.change_type == "INITIAL"
    assert record.total_salary == Decimal("21500")
    assert await history_count(db_session) == 1


async def test_update_salary_over_api(client, db_session, admin_user, admin_headers):
    staff_id = await create_staff(db_session, admin_user.id)

    response = await client.put(
        f"/api/v1/staff/{staff_id}/salary",
        json={
            "basic_salary": "40000",
            "allowances": "6000",
            "change_type": "PROMOTION",
            "change_reason": "Head of accounts",
            "effective_month": "2025-03-17",
        },
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["effective_month"] == "2025-03-01"
    assert data["total_salary"] == 46000.0
    assert data["previous"]["total_salary"] == 35000.0

    response = await client.get(f"/api/v1/staff/{staff_id}", headers=admin_headers)
    assert response.json()["data"]["total_salary"] == 46000.0

    response = await client.get(f"/api/v1/staff/{staff_id}/salary/history", headers=admin_headers)
    history = response.json()["data"]
    assert [h["change_type"] for h in history] == ["PROMOTION", "INITIAL"]
    assert history[0]["approved_by_email"] == "admin@school.example.com"

    audit = (await db_session.execute(
        select(AuditLog).where(AuditLog.action == "STAFF_SALARY_UPDATED")
    )).scalar_one()
    assert audit.details["previous"]["total_salary"] == 35000.0
    assert audit.details["current"]["total_salary"] == 46000.0


async def test_each_update_adds_exactly_one_record(db_session, admin_user):
    admin_id = admin_user.id
    staff_id = await create_staff(db_session, admin_id)
    service = StaffSalaryService(db_session)

    await service.update_staff_salary(staff_id, SalaryUpdateRequest(basic_salary=Decimal("31000")), admin_id)
    await service.update_staff_salary(staff_id, SalaryUpdateRequest(basic_salary=Decimal("32000")), admin_id)

    assert await history_count(db_session) == 3


async def test_effective_month_defaults_to_next_month(db_session, admin_user):
    staff_id = await create_staff(db_session, admin_user.id)

    result = await StaffSalaryService(db_session).update_staff_salary(
        staff_id, SalaryUpdateRequest(basic_salary=Decimal("31000")), admin_user.id
    )

    assert result["effective_month"] == first_of_next_month().isoformat()


async def test_update_missing_staff(db_session, admin_user):
    with pytest.raises(NotFoundError):
        await StaffSalaryService(db_session).update_staff_salary(
            uuid.uuid4(), SalaryUpdateRequest(basic_salary=Decimal("1")), admin_user.id
        )


async def test_failed_commit_leaves_nothing_behind(db_session, admin_user, monkeypatch):
    admin_id = admin_user.id
    staff_id = await create_staff(db_session, admin_id)

    async def failing_commit(self):
        raise RuntimeError("database went away")

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)
    with pytest.raises(RuntimeError):
        await StaffSalaryService(db_session).update_staff_salary(
            staff_id, SalaryUpdateRequest(basic_salary=Decimal("50000")), admin_id
        )
    monkeypatch.undo()

    assert await history_count(db_session) == 1
    total = (await db_session.execute(select(Staff.total_salary).where(Staff.id == staff_id))).scalar()
    assert total == Decimal("35000")
    audits = await db_session.execute(
        select(func.count()).select_from(AuditLog).where(AuditLog.action == "STAFF_SALARY_UPDATED")
    )
    assert audits.scalar() == 0


async def test_salary_for_month(client, db_session, admin_user, admin_headers):
    staff_id = await create_staff(db_session, admin_user.id)
    await StaffSalaryService(db_session).update_staff_salary(
        staff_id,
        SalaryUpdateRequest(basic_salary=Decimal("40000"), effective_month=date(2025, 3, 1)),
        admin_user.id,
    )

    response = await client.get(f"/api/v1/staff/{staff_id}/salary/month?month=2024-12-10", headers=admin_headers)
    assert response.json()["data"]["change_type"] == "INITIAL"

    response = await client.get(f"/api/v1/staff/{staff_id}/salary/month?month=2025-04-01", headers=admin_headers)
    assert response.json()["data"]["total_salary"] == 40000.0

    response = await client.get(f"/api/v1/staff/{staff_id}/salary/month?month=2024-01-31", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "No salary record found for this month"
