import uuid
from decimal import Decimal

from schoolms.services.fee_structure_service import compute_annual, compute_monthly_portion
from tests.conftest import create_class

ITEMS = [
    {"category": "Tuition", "label": "Tuition fee", "amount": "1000", "frequency": "MONTHLY"},
    {"category": "Exam", "label": "Term exam", "amount": "5000", "frequency": "TERM"},
    {"category": "Library", "label": "Library", "amount": "2000", "frequency": "ANNUAL"},
    {"category": "Admission", "label": "Admission", "amount": "500", "frequency": "ONE_TIME"},
]


def test_compute_annual():
    assert compute_annual(ITEMS) == Decimal("29500.00")


def test_compute_annual_counts_unknown_frequency_once():
    assert compute_annual([{"amount": "99.999", "frequency": "WEEKLY"}]) == Decimal("100.00")


def test_compute_monthly_portion():
    assert compute_monthly_portion(ITEMS) == Decimal("1583.33")
    assert compute_monthly_portion([{"amount": 500, "frequency": "ONE_TIME"}]) == Decimal("0.00")


def structure_payload(**overrides):
    return {
        "academic_year": "2025-26",
        "name": "Standard fees",
        "effective_from": "2025-04-01",
        "items": ITEMS,
        **overrides,
    }


async def test_create_for_single_class(client, db_session, admin_headers):
    class_obj = await create_class(db_session)

    response = await client.post(
        "/api/v1/fees/structures", json=structure_payload(class_id=str(class_obj.id)), headers=admin_headers
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["class_id"] == str(class_obj.id)
    assert data["total_annual"] == 29500.0
    assert data["monthly_portion"] == 1583.33
    assert len(data["items"]) == 4


async def test_create_for_many_classes_dedupes(client, db_session, admin_headers):
    first = await create_class(db_session, 5, "A")
    second = await create_class(db_session, 5, "B")

    response = await client.post(
        "/api/v1/fees/structures",
        json=structure_payload(class_ids=[str(first.id), str(first.id), str(second.id)]),
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert sorted(s["class_id"] for s in data) == sorted([str(first.id), str(second.id)])


async def test_create_needs_a_class(client, admin_headers):
    response = await client.post("/api/v1/fees/structures", json=structure_payload(), headers=admin_headers)

    assert response.status_code == 400


async def test_create_for_missing_class(client, admin_headers):
    response = await client.post(
        "/api/v1/fees/structures", json=structure_payload(class_id=str(uuid.uuid4())), headers=admin_headers
    )

    assert response.status_code == 404


async def test_active_structure_conflict_lists_classes(client, db_session, admin_headers):
    first = await create_class(db_session, 5, "A")
    second = await create_class(db_session, 5, "B")
    await client.post(
        "/api/v1/fees/structures", json=structure_payload(class_id=str(first.id)), headers=admin_headers
    )

    response = await client.post(
        "/api/v1/fees/structures",
        json=structure_payload(class_ids=[str(first.id), str(second.id)]),
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"]["details"]["conflicting_class_ids"] == [str(first.id)]

    response = await client.post(
        "/api/v1/fees/structures",
        json=structure_payload(class_id=str(first.id), academic_year="2026-27"),
        headers=admin_headers,
    )
    assert response.status_code == 201


async def test_revise_bumps_version_and_replaces_items(client, db_session, admin_headers):
    class_obj = await create_class(db_session)
    created = (await client.post(
        "/api/v1/fees/structures", json=structure_payload(class_id=str(class_obj.id)), headers=admin_headers
    )).json()["data"]

    response = await client.post(
        f"/api/v1/fees/structures/{created['id']}/revise",
        json={
            "effective_from": "2025-10-01",
            "items": [{"label": "Tuition fee", "amount": "1200", "frequency": "MONTHLY"}],
            "change_reason": "Mid-year revision",
        },
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"] == {
        "structure_id": created["id"],
        "version": 2,
        "total_annual": 14400.0,
    }

    structure = (await client.get(f"/api/v1/fees/structures/{created['id']}", headers=admin_headers)).json()["data"]
    assert [i["label"] for i in structure["items"]] == ["Tuition fee"]
    assert structure["effective_from"] == "2025-10-01"

    history = (await client.get(f"/api/v1/fees/structures/{created['id']}/history", headers=admin_headers)).json()["data"]
    assert [h["version"] for h in history] == [1, 2]
    assert [h["total_annual"] for h in history] == [29500.0, 14400.0]
    assert history[1]["snapshot"][0]["amount"] == "1200"


async def test_list_includes_version_and_student_count(client, db_session, admin_headers):
    class_obj = await create_class(db_session)
    created = (await client.post(
        "/api/v1/fees/structures", json=structure_payload(class_id=str(class_obj.id)), headers=admin_headers
    )).json()["data"]
    await client.post(
        "/api/v1/students",
        json={"full_name": "Mira Rao", "email": "mira@school.example.com", "class_id": str(class_obj.id)},
        headers=admin_headers,
    )

    response = await client.get("/api/v1/fees/structures?academic_year=2025-26", headers=admin_headers)

    items = response.json()["data"]["items"]
    assert len(items) == 1
    assert items[0]["id"] == created["id"]
    assert items[0]["latest_version"] == 1
    assert items[0]["student_count"] == 1


async def test_reactivating_clashing_structure_conflicts(client, db_session, admin_headers):
    class_obj = await create_class(db_session)
    first = (await client.post(
        "/api/v1/fees/structures", json=structure_payload(class_id=str(class_obj.id)), headers=admin_headers
    )).json()["data"]

    response = await client.patch(
        f"/api/v1/fees/structures/{first['id']}/status", json={"status": "ARCHIVED"}, headers=admin_headers
    )
    assert response.json()["data"]["status"] == "ARCHIVED"

    await client.post(
        "/api/v1/fees/structures", json=structure_payload(class_id=str(class_obj.id)), headers=admin_headers
    )
    response = await client.patch(
        f"/api/v1/fees/structures/{first['id']}/status", json={"status": "ACTIVE"}, headers=admin_headers
    )
    assert response.status_code == 409
