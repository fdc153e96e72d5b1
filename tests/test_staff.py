import uuid

from sqlalchemy import select

from schoolms.core.config import settings
from schoolms.models import User
from tests.conftest import login

STAFF_PAYLOAD = {
    "first_name": "Asha",
    "last_name": "Verma",
    "email": "Asha.Verma@school.example.com",
    "phone": "+91-9000000001",
    "designation": "Accountant",
    "department": "Accounts",
    "employment_date": "2024-06-15",
    "basic_salary": "30000",
    "allowances": "5000",
}


async def create_staff(client, headers, **overrides):
    payload = {**STAFF_PAYLOAD, **overrides}
    response = await client.post("/api/v1/staff", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_create_staff_without_login(client, admin_headers):
    data = await create_staff(client, admin_headers)

    staff = data["staff"]
    assert data["temporary_password"] is None
    assert staff["email"] == "asha.verma@school.example.com"
    assert staff["full_name"] == "Asha Verma"
    assert staff["total_salary"] == 35000.0
    assert staff["user_id"] is None


async def test_create_staff_with_login_account(client, db_session, admin_headers):
    data = await create_staff(client, admin_headers, create_login_account=True)

    temporary_password = data["temporary_password"]
    assert temporary_password
    user = (await db_session.execute(select(User).where(User.email == "asha.verma@school.example.com"))).scalar_one()
    assert user.role == "STAFF"
    assert user.need_password_change is True
    assert str(user.id) == data["staff"]["user_id"]

    await login(client, "asha.verma@school.example.com", temporary_password)


async def test_duplicate_staff_email_conflicts(client, admin_headers):
    await create_staff(client, admin_headers)

    response = await client.post(
        "/api/v1/staff", json={**STAFF_PAYLOAD, "email": "asha.verma@SCHOOL.example.com"}, headers=admin_headers
    )

    assert response.status_code == 409


async def test_login_account_email_must_be_unique_across_users(client, admin_headers):
    response = await client.post(
        "/api/v1/staff",
        json={**STAFF_PAYLOAD, "email": "admin@school.example.com", "phone": None, "create_login_account": True},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["message"] == "A user with this email already exists"


async def test_list_staff_search_and_sort(client, admin_headers):
    await create_staff(client, admin_headers)
    await create_staff(client, admin_headers, first_name="Rahul", last_name="Iyer",
                       email="rahul@school.example.com", phone=None, department="Library")

    response = await client.get("/api/v1/staff?sort_by=full_name&sort_order=desc", headers=admin_headers)
    items = response.json()["data"]["items"]
    assert [s["first_name"] for s in items] == ["Rahul", "Asha"]

    response = await client.get("/api/v1/staff?search=iyer", headers=admin_headers)
    data = response.json()["data"]
    assert data["meta"]["total"] == 1
    assert data["items"][0]["email"] == "rahul@school.example.com"

    response = await client.get("/api/v1/staff/count?department=Library", headers=admin_headers)
    assert response.json()["data"] == {"count": 1}

    response = await client.get("/api/v1/staff/department/Accounts", headers=admin_headers)
    assert [s["first_name"] for s in response.json()["data"]] == ["Asha"]


async def test_staff_routes_need_admin(client, teacher_headers):
    response = await client.get("/api/v1/staff", headers=teacher_headers)

    assert response.status_code == 403


async def test_get_missing_staff(client, admin_headers):
    response = await client.get(f"/api/v1/staff/{uuid.uuid4()}", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Staff not found"


async def test_admin_update_syncs_login_account(client, db_session, admin_headers):
    data = await create_staff(client, admin_headers, create_login_account=True)
    staff_id = data["staff"]["id"]

    response = await client.patch(
        f"/api/v1/staff/{staff_id}", json={"first_name": "Ashima", "designation": "Senior Accountant"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["designation"] == "Senior Accountant"
    user = (await db_session.execute(select(User).where(User.email == "asha.verma@school.example.com"))).scalar_one()
    assert user.full_name == "Ashima Verma"


async def test_update_own_profile(client, admin_headers, teacher_headers):
    data = await create_staff(client, admin_headers, create_login_account=True)
    staff_id = data["staff"]["id"]
    own_headers = await login(client, "asha.verma@school.example.com", data["temporary_password"])

    response = await client.patch(
        f"/api/v1/staff/{staff_id}/profile", json={"bio": "Numbers person"}, headers=teacher_headers
    )
    assert response.status_code == 403

    response = await client.patch(
        f"/api/v1/staff/{staff_id}/profile",
        json={"bio": "Numbers person", "profile_photo_url": "uploads/asha.png"},
        headers=own_headers,
    )
    assert response.status_code == 200
    staff = response.json()["data"]
    assert staff["bio"] == "Numbers person"
    assert staff["avatar_url"] == "/api/v1/files/asha.png"


async def test_update_status(client, admin_headers):
    data = await create_staff(client, admin_headers)

    response = await client.patch(
        f"/api/v1/staff/{data['staff']['id']}/status", json={"employment_status": "on_leave"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["employment_status"] == "on_leave"

    response = await client.patch(
        f"/api/v1/staff/{data['staff']['id']}/status", json={"employment_status": "retired"},
        headers=admin_headers,
    )
    assert response.status_code == 422


async def test_remove_staff_revokes_sessions(client, admin_headers):
    data = await create_staff(client, admin_headers, create_login_account=True)
    own_headers = await login(client, "asha.verma@school.example.com", data["temporary_password"])
    assert (await client.get("/api/v1/auth/me", headers=own_headers)).status_code == 200

    response = await client.delete(f"/api/v1/staff/{data['staff']['id']}", headers=admin_headers)
    assert response.status_code == 200

    assert (await client.get("/api/v1/auth/me", headers=own_headers)).status_code == 401
    response = await client.get(f"/api/v1/staff/{data['staff']['id']}", headers=admin_headers)
    assert response.status_code == 404


async def test_calculate_salary(client, teacher_headers):
    response = await client.post(
        "/api/v1/staff/calculate-salary", json={"basic_salary": "1200.50", "allowances": "99.50"},
        headers=teacher_headers,
    )

    assert response.json()["data"] == {"basic_salary": 1200.5, "allowances": 99.5, "total_salary": 1300.0}


async def test_import_template(client, admin_headers):
    response = await client.get("/api/v1/staff/import/template", headers=admin_headers)

    assert response.status_code == 200
    assert response.text.splitlines()[0].startswith("first_name,last_name,email")


async def test_import_staff_csv(client, admin_headers):
    await create_staff(client, admin_headers)
    content = (
        "First Name,Last Name,Email,Basic Salary,Allowances,Employment Date\n"
        "Rahul,Iyer,rahul@school.example.com,25000,3000,2023-04-15\n"
        "Bad,Row,not-an-email,100,0,\n"
        "Asha,Again,asha.verma@school.example.com,100,0,\n"
    )

    response = await client.post(
        "/api/v1/staff/import",
        files={"file": ("staff.csv", content.encode(), "text/csv")},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["created"] == 1
    assert data["staff"][0]["total_salary"] == 28000.0
    assert [e["row_number"] for e in data["errors"]] == [3, 4]
    assert data["errors"][1]["error"] == "Staff with this email already exists"


async def test_import_reports_login_email_taken_by_another_user(client, admin_headers):
    content = (
        "first_name,last_name,email,basic_salary,create_login_account\n"
        "Ada,Clash,admin@school.example.com,20000,true\n"
        "Rahul,Iyer,rahul@school.example.com,25000,false\n"
    )

    response = await client.post(
        "/api/v1/staff/import",
        files={"file": ("staff.csv", content.encode(), "text/csv")},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["created"] == 1
    assert data["staff"][0]["email"] == "rahul@school.example.com"
    assert data["errors"] == [{
        "row_number": 2,
        "email": "admin@school.example.com",
        "error": "A user with this email already exists",
    }]
    assert data["login_accounts"] == []


async def test_import_with_login_account_returns_temporary_password(client, admin_headers, db_session, monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", None)
    content = (
        "first_name,last_name,email,basic_salary,create_login_account\n"
        "Rahul,Iyer,Rahul@school.example.com,25000,true\n"
    )

    response = await client.post(
        "/api/v1/staff/import",
        files={"file": ("staff.csv", content.encode(), "text/csv")},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["created"] == 1
    account = data["login_accounts"][0]
    assert account["staff_id"] == data["staff"][0]["id"]
    assert account["email"] == "rahul@school.example.com"
    assert account["email_sent"] is False

    user = (await db_session.execute(select(User).where(User.email == "rahul@school.example.com"))).scalar_one()
    assert user.role == "STAFF"
    assert user.need_password_change is True
    await login(client, "rahul@school.example.com", account["temporary_password"])


async def test_import_rejects_missing_columns(client, admin_headers):
    response = await client.post(
        "/api/v1/staff/import",
        files={"file": ("staff.csv", b"first_name,email\nA,a@school.example.com\n", "text/csv")},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert "last_name" in response.json()["message"]
