import uuid

from sqlalchemy import select

from schoolms.models import AuditLog
from tests.conftest import create_class, login

PASSWORD = "ParentPass1!"


async def create_student(client, headers, name="Mira Rao", email="mira@school.example.com", **extra):
    response = await client.post(
        "/api/v1/students", json={"full_name": name, "email": email, **extra}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["student"]


async def create_parent(client, headers, name="Ravi Rao", email="ravi@family.example.com", **extra):
    response = await client.post(
        "/api/v1/parents",
        json={"full_name": name, "email": email, "password": PASSWORD, **extra},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["parent"]


async def test_create_student_in_class(client, db_session, admin_headers):
    class_obj = await create_class(db_session)

    response = await client.post(
        "/api/v1/students",
        json={"full_name": "Mira Rao", "email": "Mira@School.example.com", "class_id": str(class_obj.id),
              "profile_photo_url": "/uploads/mira.png"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["temporary_password"]
    assert data["student"]["email"] == "mira@school.example.com"
    assert data["student"]["avatar_url"] == "/api/v1/files/mira.png"


async def test_create_student_with_missing_class(client, db_session, admin_headers):
    response = await client.post(
        "/api/v1/students",
        json={"full_name": "Mira Rao", "email": "mira@school.example.com", "class_id": str(uuid.uuid4())},
        headers=admin_headers,
    )

    assert response.status_code == 404
    failed = (await db_session.execute(
        select(AuditLog).where(AuditLog.action == "CREATE_STUDENT")
    )).scalar_one()
    assert failed.status == "FAIL"


async def test_student_list_update_and_delete(client, admin_headers):
    student = await create_student(client, admin_headers)
    await create_student(client, admin_headers, name="Arjun Das", email="arjun@school.example.com")

    response = await client.get("/api/v1/students?search=mira", headers=admin_headers)
    assert [s["full_name"] for s in response.json()["data"]["items"]] == ["Mira Rao"]

    response = await client.patch(
        f"/api/v1/students/{student['id']}", json={"roll_number": "12"}, headers=admin_headers
    )
    assert response.json()["data"]["roll_number"] == "12"

    response = await client.delete(f"/api/v1/students/{student['id']}", headers=admin_headers)
    assert response.status_code == 200
    response = await client.get(f"/api/v1/students/{student['id']}", headers=admin_headers)
    assert response.status_code == 404


async def test_parent_created_with_children_becomes_primary(client, admin_headers):
    student = await create_student(client, admin_headers)
    parent = await create_parent(client, admin_headers, student_ids=[student["id"]])

    response = await client.get(f"/api/v1/parents/{parent['id']}/children", headers=admin_headers)

    children = response.json()["data"]
    assert [c["id"] for c in children] == [student["id"]]
    assert children[0]["is_primary"] is True


async def test_duplicate_parent_email_conflicts(client, admin_headers):
    await create_parent(client, admin_headers)

    response = await client.post(
        "/api/v1/parents", json={"full_name": "Other", "email": "RAVI@family.example.com"}, headers=admin_headers
    )

    assert response.status_code == 409


async def test_link_child_twice_conflicts_and_is_audited(client, db_session, admin_headers):
    student = await create_student(client, admin_headers)
    parent = await create_parent(client, admin_headers)
    url = f"/api/v1/parents/{parent['id']}/children"

    response = await client.post(url, json={"student_id": student["id"], "relationship": "father"},
                                 headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["data"]["is_primary"] is True

    response = await client.post(url, json={"student_id": student["id"]}, headers=admin_headers)
    assert response.status_code == 409

    statuses = (await db_session.execute(
        select(AuditLog.status).where(AuditLog.action == "LINK_CHILD").order_by(AuditLog.created_at)
    )).scalars().all()
    assert statuses == ["SUCCESS", "FAIL"]


async def test_link_missing_student(client, admin_headers):
    parent = await create_parent(client, admin_headers)

    response = await client.post(
        f"/api/v1/parents/{parent['id']}/children", json={"student_id": str(uuid.uuid4())}, headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Student not found"


async def test_primary_parent_switches(client, admin_headers):
    student = await create_student(client, admin_headers)
    father = await create_parent(client, admin_headers, student_ids=[student["id"]])
    mother = await create_parent(client, admin_headers, name="Sita Rao", email="sita@family.example.com")

    response = await client.post(
        f"/api/v1/students/{student['id']}/parents",
        json={"parent_id": mother["id"], "relationship": "mother", "is_primary": True},
        headers=admin_headers,
    )
    assert response.status_code == 201

    parents = (await client.get(f"/api/v1/students/{student['id']}/parents", headers=admin_headers)).json()["data"]
    assert [(p["id"], p["is_primary"]) for p in parents] == [(mother["id"], True), (father["id"], False)]

    response = await client.patch(
        f"/api/v1/students/{student['id']}/parents/{father['id']}/primary", headers=admin_headers
    )
    assert response.status_code == 200

    parents = (await client.get(f"/api/v1/students/{student['id']}/parents", headers=admin_headers)).json()["data"]
    assert [p["is_primary"] for p in parents if p["id"] == father["id"]] == [True]
    assert sum(p["is_primary"] for p in parents) == 1


async def test_unlink_child(client, admin_headers):
    student = await create_student(client, admin_headers)
    parent = await create_parent(client, admin_headers, student_ids=[student["id"]])
    url = f"/api/v1/parents/{parent['id']}/children/{student['id']}"

    assert (await client.delete(url, headers=admin_headers)).status_code == 200

    response = await client.delete(url, headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Parent is not linked to this student"

    response = await client.patch(f"{url}/primary", headers=admin_headers)
    assert response.status_code == 404


async def test_parent_self_service(client, admin_headers, teacher_headers):
    student = await create_student(client, admin_headers)
    await create_parent(client, admin_headers, student_ids=[student["id"]], profile_photo_url="uploads/ravi.jpg")
    parent_headers = await login(client, "ravi@family.example.com", PASSWORD)

    response = await client.get("/api/v1/parents/me", headers=parent_headers)
    assert response.status_code == 200
    assert response.json()["data"]["avatar_url"] == "/api/v1/files/ravi.jpg"

    response = await client.get("/api/v1/parents/me/children", headers=parent_headers)
    assert [c["full_name"] for c in response.json()["data"]] == ["Mira Rao"]

    response = await client.get("/api/v1/parents/me", headers=teacher_headers)
    assert response.status_code == 403


async def test_search_for_linking(client, admin_headers):
    await create_parent(client, admin_headers)
    await create_parent(client, admin_headers, name="Sita Rao", email="sita@family.example.com")

    response = await client.get("/api/v1/parents/search-for-linking?search=sita", headers=admin_headers)

    assert [p["email"] for p in response.json()["data"]] == ["sita@family.example.com"]


async def test_update_parent_syncs_user(client, admin_headers):
    parent = await create_parent(client, admin_headers)

    response = await client.patch(
        f"/api/v1/parents/{parent['id']}", json={"email": "ravi.rao@family.example.com"}, headers=admin_headers
    )
    assert response.status_code == 200

    await login(client, "ravi.rao@family.example.com", PASSWORD)


async def test_deleted_parent_cannot_login(client, admin_headers):
    parent = await create_parent(client, admin_headers)
    parent_headers = await login(client, "ravi@family.example.com", PASSWORD)

    response = await client.delete(f"/api/v1/parents/{parent['id']}", headers=admin_headers)
    assert response.status_code == 200

    assert (await client.get("/api/v1/parents/me", headers=parent_headers)).status_code == 401
    response = await client.post("/api/v1/auth/login", json={"email": "ravi@family.example.com", "password": PASSWORD})
    assert response.status_code == 401
