import uuid
from decimal import Decimal

import pytest

API = "/api/v1"


async def _create_lease(client, auth_headers, **overrides):
    resp = await client.post(
        f"{API}/customers/",
        json={"fullName": "Aysel Mammadova", "phoneNumber": "+994501234567"},
        headers=auth_headers,
    )
    assert resp.status_code == 201, resp.text
    body = {
        "customerId": resp.json()["id"],
        "carBrand": "Toyota",
        "carModel": "Corolla",
        "leasingAmount": "250.00",
        "monthlyInstallment": "100.00",
        "leaseDuration": 3,
        "leaseStartDate": "2024-01-01",
    }
    body.update(overrides)
    return await client.post(f"{API}/leases/", json=body, headers=auth_headers)


@pytest.fixture
async def lease(client, auth_headers):
    resp = await _create_lease(client, auth_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_health(client):
    resp = await client.get(f"{API}/health/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_requires_bearer_token(client):
    resp = await client.get(f"{API}/payments/")
    assert resp.status_code == 401
    assert resp.json()["code"] == "authentication_required"

    resp = await client.get(f"{API}/payments/", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


async def test_create_lease_schedules_payments(lease):
    payments = lease["payments"]
    assert [p["sequenceIndex"] for p in payments] == [0, 1, 2]
    assert [p["dueDate"] for p in payments] == ["2024-01-01", "2024-02-01", "2024-03-01"]
    # Clock is fixed at 2024-01-05.
    assert [p["status"] for p in payments] == ["overdue", "pending", "pending"]
    assert Decimal(lease["figures"]["profit"]) == Decimal("50")
    assert lease["customer"]["fullName"] == "Aysel Mammadova"


async def test_create_lease_rejects_zero_duration(client, auth_headers):
    resp = await _create_lease(client, auth_headers, leaseDuration=0)
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_lease"


async def test_create_lease_for_unknown_customer(client, auth_headers):
    resp = await client.post(
        f"{API}/leases/",
        json={
            "customerId": str(uuid.uuid4()),
            "leasingAmount": "250.00",
            "monthlyInstallment": "100.00",
            "leaseDuration": 3,
            "leaseStartDate": "2024-01-01",
        },
        headers=auth_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "customer_not_found"


async def test_validation_error_shape(client, auth_headers):
    resp = await client.post(f"{API}/leases/", json={"carBrand": "Kia"}, headers=auth_headers)
    assert resp.status_code == 422
    body = resp.json()
    assert body["message"] == "Validation error"
    assert body["errors"]


async def test_pay_with_overpayment_then_revert(client, auth_headers, lease):
    p0, p1, _ = (p["id"] for p in lease["payments"])

    resp = await client.post(
        f"{API}/payments/{p0}/pay",
        data={"paymentDate": "2024-01-05", "actualAmount": "150", "notes": "cash"},
        headers=auth_headers,
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["payment"]["status"] == "paid"
    assert Decimal(body["overpayment"]) == Decimal("50")
    assert [(c["paymentId"], Decimal(c["amount"])) for c in body["credits"]] == [(p1, Decimal("50"))]

    resp = await client.get(f"{API}/payments/{p1}", headers=auth_headers)
    assert Decimal(resp.json()["effectiveAmount"]) == Decimal("50")

    resp = await client.get(f"{API}/payments/{p0}/audit", headers=auth_headers)
    entries = resp.json()
    assert [e["kind"] for e in entries] == ["status_change", "credit_granted"]
    assert entries[0]["actor"] == "admin@leasedesk.test"

    resp = await client.post(f"{API}/payments/{p0}/revert", json={"notes": "wrong customer"}, headers=auth_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "overdue"

    resp = await client.get(f"{API}/payments/{p1}", headers=auth_headers)
    assert Decimal(resp.json()["effectiveAmount"]) == Decimal("100")

    resp = await client.get(f"{API}/leases/{lease['lease']['id']}/audit", headers=auth_headers)
    assert [e["kind"] for e in resp.json()] == [
        "status_change",
        "credit_granted",
        "credit_reversed",
        "status_change",
    ]


async def test_double_pay_is_a_conflict(client, auth_headers, lease):
    p0 = lease["payments"][0]["id"]
    first = await client.post(f"{API}/payments/{p0}/pay", data={"paymentDate": "2024-01-05"}, headers=auth_headers)
    assert first.status_code == 200

    second = await client.post(f"{API}/payments/{p0}/pay", data={"paymentDate": "2024-01-05"}, headers=auth_headers)
    assert second.status_code == 409
    assert second.json()["code"] == "already_paid"


async def test_pay_rejects_future_date_and_bad_amount(client, auth_headers, lease):
    p0 = lease["payments"][0]["id"]
    resp = await client.post(f"{API}/payments/{p0}/pay", data={"paymentDate": "2024-02-01"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_amount"

    resp = await client.post(
        f"{API}/payments/{p0}/pay",
        data={"paymentDate": "2024-01-05", "actualAmount": "-10"},
        headers=auth_headers,
    )
    assert resp.status_code == 400

    resp = await client.post(f"{API}/payments/{p0}/pay", data={"paymentDate": "yesterday"}, headers=auth_headers)
    assert resp.status_code == 400


async def test_pay_accepts_iso_datetime(client, auth_headers, lease):
    p0 = lease["payments"][0]["id"]
    resp = await client.post(
        f"{API}/payments/{p0}/pay",
        data={"paymentDate": "2024-01-04T09:30:00.000Z"},
        headers=auth_headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["payment"]["paymentDate"] == "2024-01-04"


async def test_unknown_payment(client, auth_headers):
    resp = await client.post(
        f"{API}/payments/{uuid.uuid4()}/pay", data={"paymentDate": "2024-01-05"}, headers=auth_headers
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "payment_not_found"


async def test_list_payments_filters(client, auth_headers, lease):
    resp = await client.get(f"{API}/payments/", params={"status": "overdue"}, headers=auth_headers)
    assert [p["sequenceIndex"] for p in resp.json()] == [0]
    assert resp.json()[0]["customer"]["fullName"] == "Aysel Mammadova"

    resp = await client.get(f"{API}/payments/", params={"search": "nobody"}, headers=auth_headers)
    assert resp.json() == []

    resp = await client.get(
        f"{API}/payments/", params={"startDate": "2024-02-01", "endDate": "2024-02-29"}, headers=auth_headers
    )
    assert [p["dueDate"] for p in resp.json()] == ["2024-02-01"]


async def test_reports(client, auth_headers, lease, clock):
    p0 = lease["payments"][0]["id"]
    await client.post(f"{API}/payments/{p0}/pay", data={"paymentDate": "2024-01-05"}, headers=auth_headers)

    resp = await client.get(f"{API}/reports/dashboard", headers=auth_headers)
    assert resp.status_code == 200
    dashboard = resp.json()
    assert dashboard["totalCustomers"] == 1
    assert dashboard["activeLeases"] == 1
    assert Decimal(dashboard["totalInvested"]) == Decimal("250")
    assert Decimal(dashboard["totalCollected"]) == Decimal("100")
    assert Decimal(dashboard["totalProfit"]) == Decimal("50")
    assert Decimal(dashboard["totalUnpaid"]) == Decimal("200")
    assert dashboard["overduePayments"] == 0

    resp = await client.get(f"{API}/reports/car-brands", headers=auth_headers)
    assert [(b["car_brand"], b["count"]) for b in resp.json()] == [("Toyota", 1)]

    resp = await client.get(f"{API}/reports/monthly", headers=auth_headers)
    assert [m["period"] for m in resp.json()] == ["2024-01", "2024-02", "2024-03"]

    resp = await client.post(f"{API}/reports/update-profit", json={"totalProfit": "999"}, headers=auth_headers)
    assert resp.status_code == 202
    assert Decimal(resp.json()["totalProfit"]) == Decimal("50")


async def test_customers_list_and_search(client, auth_headers, lease):
    resp = await client.get(f"{API}/customers/", params={"search": "aysel"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["total"] == 1

    resp = await client.get(f"{API}/customers/", params={"search": "zzz"}, headers=auth_headers)
    assert resp.json()["items"] == []


async def test_oversized_amounts_are_rejected(client, auth_headers, lease):
    p0 = lease["payments"][0]["id"]
    resp = await client.post(
        f"{API}/payments/{p0}/pay",
        data={"paymentDate": "2024-01-05", "actualAmount": "1e30"},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_amount"

    resp = await _create_lease(client, auth_headers, monthlyInstallment="1e30")
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_lease"

    resp = await _create_lease(client, auth_headers, leasingAmount="10000000000.00")
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_lease"


async def test_offset_payment_date_is_read_in_utc(client, auth_headers, lease):
    p0 = lease["payments"][0]["id"]
    # 23:30 at -05:00 on the 5th is already the 6th in UTC, after the clock's today.
    resp = await client.post(
        f"{API}/payments/{p0}/pay",
        data={"paymentDate": "2024-01-05T23:30:00-05:00"},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_amount"

    resp = await client.post(
        f"{API}/payments/{p0}/pay",
        data={"paymentDate": "2024-01-05T01:00:00+04:00"},
        headers=auth_headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["payment"]["paymentDate"] == "2024-01-04"


async def test_get_and_update_customer(client, auth_headers, lease):
    customer_id = lease["customer"]["id"]

    resp = await client.get(f"{API}/customers/{customer_id}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["fullName"] == "Aysel Mammadova"

    resp = await client.put(
        f"{API}/customers/{customer_id}",
        json={"fullName": " Aysel Aliyeva ", "phoneNumber": "+994551112233"},
        headers=auth_headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["fullName"] == "Aysel Aliyeva"
    assert resp.json()["phoneNumber"] == "+994551112233"

    resp = await client.put(f"{API}/customers/{customer_id}", json={"phoneNumber": ""}, headers=auth_headers)
    assert resp.json()["fullName"] == "Aysel Aliyeva"
    assert resp.json()["phoneNumber"] is None

    resp = await client.get(f"{API}/leases/{lease['lease']['id']}", headers=auth_headers)
    assert resp.json()["customer"]["fullName"] == "Aysel Aliyeva"
    assert Decimal(resp.json()["lease"]["monthlyInstallment"]) == Decimal("100")


async def test_update_customer_rejects_blank_name(client, auth_headers, lease):
    resp = await client.put(f"{API}/customers/{lease['customer']['id']}", json={"fullName": "  "}, headers=auth_headers)
    assert resp.status_code == 400


async def test_unknown_customer(client, auth_headers):
    resp = await client.get(f"{API}/customers/{uuid.uuid4()}", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json()["code"] == "customer_not_found"

    resp = await client.put(f"{API}/customers/{uuid.uuid4()}", json={"fullName": "X"}, headers=auth_headers)
    assert resp.status_code == 404
