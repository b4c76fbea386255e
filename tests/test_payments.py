import pytest
from httpx import AsyncClient

from sims.core.enums import UserRole


def payments():
    return [
        {
            "_id": "pay1",
            "fee_id": {"_id": "f1"},
            "student_id": {"_id": "s1", "full_name": "Asha Rao", "class": "5", "section": "A"},
            "term": "first",
            "amount_paid": 5000,
            "payment_date": "2024-05-02T10:00:00.000Z",
            "payment_method": "UPI",
            "transaction_id": "TXN1",
            "status": "Verification Pending",
        },
        {
            "_id": "pay2",
            "student_id": "s2",
            "student_name": "Dev Patel",
            "class": "6",
            "section": "B",
            "term": "second",
            "amount_paid": 2500.5,
            "transaction_id": "TXN2",
            "status": "Verified",
        },
    ]


@pytest.mark.asyncio
async def test_list_payments_normalizes(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/payment-details", payments())

    response = await client.get("/api/v1/payment-details", headers=auth_headers())
    assert response.status_code == 200
    first, second = response.json()

    assert first["id"] == "pay1"
    assert first["fee_id"] == "f1"
    assert first["student_name"] == "Asha Rao"
    assert first["class"] == "5"
    assert first["payment_date"] == "2024-05-02"
    assert first["status"] == "Pending"
    assert second["status"] == "Verified"
    assert second["amount_paid"] == 2500.5


@pytest.mark.asyncio
async def test_list_payments_filters(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/payment-details", payments())

    verified = await client.get("/api/v1/payment-details", params={"status": "Verified"}, headers=auth_headers())
    assert [p["id"] for p in verified.json()] == ["pay2"]

    by_txn = await client.get("/api/v1/payment-details", params={"search": "txn1"}, headers=auth_headers())
    assert [p["id"] for p in by_txn.json()] == ["pay1"]


@pytest.mark.asyncio
async def test_payments_list_is_admin_only(client: AsyncClient, auth_headers) -> None:
    response = await client.get("/api/v1/payment-details", headers=auth_headers(UserRole.PARENT))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_payment_status(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("PATCH", "/api/payment-details/pay1/status", {"message": "updated"})

    response = await client.patch(
        "/api/v1/payment-details/pay1/status", json={"status": "Verified"}, headers=auth_headers()
    )
    assert response.status_code == 200
    assert response.json()["data"] == {"id": "pay1", "status": "Verified"}
    assert backend.json_body(backend.sent("PATCH", "/api/payment-details/pay1/status")[0]) == {"status": "Verified"}


@pytest.mark.asyncio
async def test_update_payment_status_rejects_unknown_value(client: AsyncClient, backend, auth_headers) -> None:
    response = await client.patch(
        "/api/v1/payment-details/pay1/status", json={"status": "Paid"}, headers=auth_headers()
    )
    assert response.status_code == 422
    assert backend.requests == []


@pytest.mark.asyncio
async def test_my_payments_for_parent(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/payment-details/my-payments", {"payments": payments()[:1]})

    response = await client.get("/api/v1/payment-details/my-payments", headers=auth_headers(UserRole.PARENT))
    assert response.status_code == 200
    assert [p["transaction_id"] for p in response.json()] == ["TXN1"]


@pytest.mark.asyncio
async def test_payment_by_transaction_not_found(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/payment-details/transaction/TXN9", [])

    response = await client.get("/api/v1/payment-details/transaction/TXN9", headers=auth_headers(UserRole.PARENT))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_export_payments(client: AsyncClient, backend, auth_headers) -> None:
    backend.add("GET", "/api/payment-details", payments())

    response = await client.get("/api/v1/payment-details/export", headers=auth_headers())
    lines = response.text.strip().split("\n")
    assert lines[0].split(",")[0] == "Payment ID"
    assert lines[1].startswith("pay1,s1,Asha Rao,5,A,first,5000.0,2024-05-02,UPI,TXN1,Pending")
