from datetime import date

import pytest
from httpx import AsyncClient

from sims.api.v1.people.schemas import PlanType, renewal_date
from sims.core.enums import UserRole


def admin_payload(**overrides):
    payload = {
        "school_name": "Green Valley School",
        "user_id": "gvs-admin",
        "email": "office@gvs.example.com",
        "contact_number": "9876543210",
        "password": "secret1",
        "confirm_password": "secret1",
        "plan_type": "yearly",
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize(
    "plan, start, expected",
    [
        (PlanType.MONTHLY, date(2024, 1, 15), date(2024, 2, 14)),
        (PlanType.YEARLY, date(2024, 3, 1), date(2025, 3, 1)),
        (PlanType.YEARLY, date(2024, 2, 29), date(2025, 2, 28)),
    ],
)
def test_renewal_date(plan, start, expected) -> None:
    assert renewal_date(plan, start) == expected


@pytest.mark.asyncio
async def test_directory_strips_passwords(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/parents", {"parents": [{"_id": "p1", "full_name": "Ravi", "password": "hash"}]})

    response = await client.get("/api/v1/people/parents", headers=auth_headers(UserRole.TEACHER))
    assert response.status_code == 200
    assert response.json() == [{"_id": "p1", "full_name": "Ravi"}]


@pytest.mark.asyncio
async def test_parents_hidden_from_students(client: AsyncClient, auth_headers) -> None:
    response = await client.get("/api/v1/people/parents", headers=auth_headers(UserRole.STUDENT))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_parent(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("POST", "/api/parents", {"parent": {"_id": "p9", "user_id": "ravi", "password": "x"}}, status_code=201)

    response = await client.post(
        "/api/v1/people/parents",
        json={
            "user_id": "ravi",
            "password": "pw",
            "full_name": "Ravi Kumar",
            "email": "ravi@example.com",
            "phone": "9123456780",
            "address": "12 Park Street",
        },
        headers=auth_headers(profile={"_id": "admin-4"}),
    )
    assert response.status_code == 201
    assert response.json()["data"] == {"_id": "p9", "user_id": "ravi"}
    body = backend.json_body(backend.sent("POST", "/api/parents")[0])
    assert body["admin_id"] == "admin-4"


@pytest.mark.asyncio
async def test_create_parent_rejects_bad_phone(client: AsyncClient, backend, auth_headers) -> None:
    response = await client.post(
        "/api/v1/people/parents",
        json={
            "user_id": "ravi",
            "password": "pw",
            "full_name": "Ravi Kumar",
            "email": "ravi@example.com",
            "phone": "12345",
            "address": "12 Park Street",
        },
        headers=auth_headers(),
    )
    assert response.status_code == 422
    assert backend.requests == []


@pytest.mark.asyncio
async def test_create_admin_by_superadmin(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/admins/", [{"userId": "other", "email": "x@example.com", "contactNumber": "1111111111"}])
    backend.add("POST", "/api/admins/", {"_id": "a1", "userId": "gvs-admin"}, status_code=201)

    response = await client.post(
        "/api/v1/people/admins", json=admin_payload(), headers=auth_headers(UserRole.SUPERADMIN, token=None)
    )
    assert response.status_code == 201

    body = backend.json_body(backend.sent("POST", "/api/admins/")[0])
    today = date.today()
    assert body["schoolName"] == "Green Valley School"
    assert body["planType"] == "yearly"
    assert body["createdAt"] == today.isoformat()
    assert body["renewalDate"] == renewal_date(PlanType.YEARLY, today).isoformat()
    assert "confirm_password" not in body


@pytest.mark.asyncio
async def test_create_admin_duplicate_email(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/admins/", [{"userId": "other", "email": "OFFICE@gvs.example.com"}])

    response = await client.post(
        "/api/v1/people/admins", json=admin_payload(), headers=auth_headers(UserRole.SUPERADMIN, token=None)
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Email ID already exists!"
    assert backend.sent("POST", "/api/admins/") == []


@pytest.mark.asyncio
async def test_create_admin_validation_and_access(client: AsyncClient, backend, auth_headers) -> None:
    mismatch = await client.post(
        "/api/v1/people/admins",
        json=admin_payload(confirm_password="secret2"),
        headers=auth_headers(UserRole.SUPERADMIN, token=None),
    )
    assert mismatch.status_code == 422

    forbidden = await client.post("/api/v1/people/admins", json=admin_payload(), headers=auth_headers())
    assert forbidden.status_code == 403
    assert backend.requests == []
