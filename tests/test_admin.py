# tests/test_admin.py
import pytest

from conftest import API, bearer, login

ADMIN_URL = f"{API}/admin"


async def _place_order(client, token, catalog, quantity=1):
    await client.post(
        f"{API}/cart/items",
        json={"item_type": "car_part", "item_id": str(catalog.pads.id), "quantity": quantity},
        headers=bearer(token),
    )
    resp = await client.post(f"{API}/orders/checkout", json={"payment_method": "bank_transfer"}, headers=bearer(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["order"]


# ---------- Usuarios ----------
@pytest.mark.asyncio
async def test_admin_routes_reject_customers(client, user_token):
    resp = await client.get(f"{ADMIN_URL}/users", headers=bearer(user_token))
    assert resp.status_code == 403
    resp = await client.get(f"{ADMIN_URL}/orders", headers=bearer(user_token))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_list_users_filters(client, admin_token, normal_user, other_user):
    resp = await client.get(f"{ADMIN_URL}/users", params={"role": "customer"}, headers=bearer(admin_token))
    assert resp.status_code == 200, resp.text
    assert resp.json()["total"] == 2

    resp = await client.get(f"{ADMIN_URL}/users", params={"role": "admin"}, headers=bearer(admin_token))
    assert resp.json()["total"] == 1

    resp = await client.get(
        f"{ADMIN_URL}/users",
        params={"search": normal_user.email[:10]},
        headers=bearer(admin_token),
    )
    assert [u["email"] for u in resp.json()["items"]] == [normal_user.email]


@pytest.mark.asyncio
async def test_admin_creates_user(client, admin_token):
    resp = await client.post(
        f"{ADMIN_URL}/users",
        json={
            "email": "staff@example.com",
            "password": "Staff12345",
            "first_name": "Staff",
            "last_name": "Member",
            "is_superuser": True,
        },
        headers=bearer(admin_token),
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["role"] == "admin"
    assert (await login(client, "staff@example.com", "Staff12345")).status_code == 200


@pytest.mark.asyncio
async def test_promote_and_demote(client, admin_token, normal_user):
    url = f"{ADMIN_URL}/users/{normal_user.id}/role"
    resp = await client.patch(url, json={"make_admin": True}, headers=bearer(admin_token))
    assert resp.status_code == 200, resp.text
    assert resp.json()["is_superuser"] is True

    resp = await client.patch(url, json={"make_admin": False}, headers=bearer(admin_token))
    assert resp.json()["role"] == "customer"


@pytest.mark.asyncio
async def test_admin_cannot_demote_self(client, admin_token, admin_user):
    resp = await client.patch(
        f"{ADMIN_URL}/users/{admin_user.id}/role",
        json={"make_admin": False},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_deactivate_user_blocks_login(client, admin_token, admin_user, normal_user):
    resp = await client.patch(
        f"{ADMIN_URL}/users/{normal_user.id}/active",
        json={"is_active": False},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["is_active"] is False
    assert (await login(client, normal_user.email, "User1234")).status_code == 400

    resp = await client.patch(
        f"{ADMIN_URL}/users/{admin_user.id}/active",
        json={"is_active": False},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_get_unknown_user(client, admin_token):
    resp = await client.get(f"{ADMIN_URL}/users/00000000-0000-0000-0000-000000000000", headers=bearer(admin_token))
    assert resp.status_code == 404


# ---------- Órdenes ----------
@pytest.mark.asyncio
async def test_admin_order_list_includes_customer(client, admin_token, user_token, normal_user, catalog):
    order = await _place_order(client, user_token, catalog)
    resp = await client.get(f"{ADMIN_URL}/orders", headers=bearer(admin_token))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["total"] == 1
    row = data["items"][0]
    assert row["order_number"] == order["order_number"]
    assert row["customer_email"] == normal_user.email

    by_email = await client.get(
        f"{ADMIN_URL}/orders",
        params={"search": normal_user.email},
        headers=bearer(admin_token),
    )
    assert by_email.json()["total"] == 1

    by_status = await client.get(
        f"{ADMIN_URL}/orders",
        params={"status": "shipped"},
        headers=bearer(admin_token),
    )
    assert by_status.json()["total"] == 0

    by_amount = await client.get(
        f"{ADMIN_URL}/orders",
        params={"min_amount": "1000"},
        headers=bearer(admin_token),
    )
    assert by_amount.json()["total"] == 0


@pytest.mark.asyncio
async def test_full_status_progression(client, admin_token, user_token, catalog):
    order = await _place_order(client, user_token, catalog)
    url = f"{ADMIN_URL}/orders/{order['id']}/status"

    for target in ("confirmed", "processing", "shipped", "delivered"):
        resp = await client.patch(url, json={"status": target}, headers=bearer(admin_token))
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == target

    data = resp.json()
    assert data["confirmed_at"] and data["shipped_at"] and data["delivered_at"]

    tracking = await client.get(f"{API}/orders/track/{order['order_number']}")
    assert all(step["completed"] for step in tracking.json()["steps"])


@pytest.mark.asyncio
async def test_status_cannot_skip_steps(client, admin_token, user_token, catalog):
    order = await _place_order(client, user_token, catalog)
    url = f"{ADMIN_URL}/orders/{order['id']}/status"

    resp = await client.patch(url, json={"status": "shipped"}, headers=bearer(admin_token))
    assert resp.status_code == 409
    resp = await client.patch(url, json={"status": "pending"}, headers=bearer(admin_token))
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_admin_cancel_releases_stock(client, db_session, admin_token, user_token, catalog):
    order = await _place_order(client, user_token, catalog, quantity=5)
    db_session.refresh(catalog.pads)
    assert catalog.pads.stock_quantity == 35

    resp = await client.patch(
        f"{ADMIN_URL}/orders/{order['id']}/status",
        json={"status": "cancelled", "note": "Customer called"},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "cancelled"
    db_session.refresh(catalog.pads)
    assert catalog.pads.stock_quantity == 40


@pytest.mark.asyncio
async def test_payment_transitions(client, admin_token, user_token, catalog):
    order = await _place_order(client, user_token, catalog)
    url = f"{ADMIN_URL}/orders/{order['id']}/payment"

    resp = await client.patch(url, json={"payment_status": "refunded"}, headers=bearer(admin_token))
    assert resp.status_code == 409

    resp = await client.patch(url, json={"payment_status": "paid"}, headers=bearer(admin_token))
    assert resp.status_code == 200, resp.text
    assert resp.json()["payment_status"] == "paid"

    # cancelar una orden pagada la marca como reembolsada
    resp = await client.post(f"{API}/orders/{order['id']}/cancel", headers=bearer(user_token))
    assert resp.json()["payment_status"] == "refunded"


@pytest.mark.asyncio
async def test_cancelled_order_cannot_be_paid(client, admin_token, user_token, catalog):
    order = await _place_order(client, user_token, catalog)
    await client.post(f"{API}/orders/{order['id']}/cancel", headers=bearer(user_token))
    resp = await client.patch(
        f"{ADMIN_URL}/orders/{order['id']}/payment",
        json={"payment_status": "paid"},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_delivered_order_status_is_final(client, admin_token, user_token, catalog):
    order = await _place_order(client, user_token, catalog)
    url = f"{ADMIN_URL}/orders/{order['id']}/status"
    for target in ("confirmed", "processing", "shipped", "delivered"):
        resp = await client.patch(url, json={"status": target}, headers=bearer(admin_token))
        assert resp.status_code == 200, resp.text

    for target in ("delivered", "cancelled", "pending"):
        resp = await client.patch(url, json={"status": target}, headers=bearer(admin_token))
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Order is already delivered and its status can no longer change"
