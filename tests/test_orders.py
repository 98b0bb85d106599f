# tests/test_orders.py
import pytest

from conftest import API, bearer

CHECKOUT_URL = f"{API}/orders/checkout"


async def _add(client, token, item_type, item_id, quantity=1):
    resp = await client.post(
        f"{API}/cart/items",
        json={"item_type": item_type, "item_id": str(item_id), "quantity": quantity},
        headers=bearer(token),
    )
    assert resp.status_code == 201, resp.text


async def _checkout(client, token, **overrides):
    payload = {"payment_method": "credit_card"}
    payload.update(overrides)
    return await client.post(CHECKOUT_URL, json=payload, headers=bearer(token))


@pytest.mark.asyncio
async def test_checkout_creates_pending_order(client, db_session, user_token, catalog):
    await _add(client, user_token, "car_part", catalog.pads.id, 2)
    await _add(client, user_token, "car_part", catalog.fluid_filter.id, 1)

    resp = await _checkout(client, user_token, notes="Deliver after 5pm")
    assert resp.status_code == 201, resp.text
    data = resp.json()
    order = data["order"]
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["subtotal_amount"] == "101.79"
    assert order["shipping_amount"] == "50.00"
    assert order["tax_amount"] == "10.18"
    assert order["total_amount"] == "161.97"
    assert order["total_items"] == 3
    assert order["can_cancel"] is True
    assert order["shipping_address"] == "12 Galle Road, Colombo, Sri Lanka"
    assert order["order_number"].startswith("ORD-")
    assert data["tracking_number"] == "ABC" + order["order_number"].replace("-", "")

    # el stock se descuenta y el carrito queda vacío
    db_session.refresh(catalog.pads)
    db_session.refresh(catalog.fluid_filter)
    assert catalog.pads.stock_quantity == 38
    assert catalog.fluid_filter.stock_quantity == 4
    cart = (await client.get(f"{API}/cart", headers=bearer(user_token))).json()
    assert cart["items"] == []


@pytest.mark.asyncio
async def test_checkout_snapshots_item_names(client, admin_token, user_token, catalog):
    await _add(client, user_token, "car", catalog.corolla.id, 1)
    order = (await _checkout(client, user_token)).json()["order"]

    await client.put(
        f"{API}/cars/{catalog.corolla.id}",
        json={"model": "Corolla Cross", "price": "99999.00"},
        headers=bearer(admin_token),
    )
    resp = await client.get(f"{API}/orders/{order['id']}", headers=bearer(user_token))
    item = resp.json()["items"][0]
    assert item["item_name"] == "Toyota Corolla (2022)"
    assert item["unit_price"] == "21500.00"


@pytest.mark.asyncio
async def test_order_numbers_are_sequential(client, user_token, catalog):
    await _add(client, user_token, "car_part", catalog.pads.id, 1)
    first = (await _checkout(client, user_token)).json()["order"]["order_number"]
    await _add(client, user_token, "car_part", catalog.pads.id, 1)
    second = (await _checkout(client, user_token)).json()["order"]["order_number"]
    assert int(second.rsplit("-", 1)[1]) == int(first.rsplit("-", 1)[1]) + 1


@pytest.mark.asyncio
async def test_checkout_empty_cart(client, user_token):
    resp = await _checkout(client, user_token)
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Your cart is empty"


@pytest.mark.asyncio
async def test_checkout_requires_address(client, db_session, user_token, normal_user, catalog):
    normal_user.address = None
    db_session.add(normal_user)
    db_session.commit()
    await _add(client, user_token, "car_part", catalog.pads.id, 1)

    resp = await _checkout(client, user_token)
    assert resp.status_code == 422

    resp = await _checkout(client, user_token, shipping_address="99 Kandy Road", city="Kandy")
    assert resp.status_code == 201, resp.text
    assert resp.json()["order"]["shipping_address"] == "99 Kandy Road, Kandy, Sri Lanka"


@pytest.mark.asyncio
async def test_checkout_fails_when_stock_dropped(client, db_session, user_token, catalog):
    await _add(client, user_token, "car", catalog.corolla.id, 3)
    catalog.corolla.stock_quantity = 1
    db_session.add(catalog.corolla)
    db_session.commit()

    resp = await _checkout(client, user_token)
    assert resp.status_code == 409
    db_session.refresh(catalog.corolla)
    assert catalog.corolla.stock_quantity == 1


@pytest.mark.asyncio
async def test_my_orders_and_latest(client, user_token, other_token, catalog):
    await _add(client, user_token, "car_part", catalog.pads.id, 1)
    await _checkout(client, user_token)
    await _add(client, other_token, "car_part", catalog.pads.id, 1)
    await _checkout(client, other_token)

    mine = await client.get(f"{API}/orders/me", headers=bearer(user_token))
    assert mine.status_code == 200
    assert mine.json()["total"] == 1

    latest = await client.get(f"{API}/orders/me/latest", headers=bearer(user_token))
    assert latest.status_code == 200
    assert latest.json()["order"]["id"] == mine.json()["items"][0]["id"]


@pytest.mark.asyncio
async def test_latest_without_orders(client, user_token):
    resp = await client.get(f"{API}/orders/me/latest", headers=bearer(user_token))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_other_customers_order_is_forbidden(client, user_token, other_token, admin_token, catalog):
    await _add(client, user_token, "car_part", catalog.pads.id, 1)
    order_id = (await _checkout(client, user_token)).json()["order"]["id"]

    assert (await client.get(f"{API}/orders/{order_id}", headers=bearer(other_token))).status_code == 403
    assert (await client.post(f"{API}/orders/{order_id}/cancel", headers=bearer(other_token))).status_code == 403
    assert (await client.get(f"{API}/orders/{order_id}", headers=bearer(admin_token))).status_code == 200


@pytest.mark.asyncio
async def test_cancel_restores_stock(client, db_session, user_token, catalog):
    await _add(client, user_token, "car", catalog.rav4.id, 1)
    order_id = (await _checkout(client, user_token)).json()["order"]["id"]
    db_session.refresh(catalog.rav4)
    assert catalog.rav4.stock_quantity == 0

    resp = await client.post(f"{API}/orders/{order_id}/cancel", headers=bearer(user_token))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["status"] == "cancelled"
    assert data["cancelled_at"] is not None
    assert data["can_cancel"] is False

    db_session.refresh(catalog.rav4)
    assert catalog.rav4.stock_quantity == 1

    again = await client.post(f"{API}/orders/{order_id}/cancel", headers=bearer(user_token))
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_cannot_cancel_after_processing(client, admin_token, user_token, catalog):
    await _add(client, user_token, "car_part", catalog.pads.id, 1)
    order_id = (await _checkout(client, user_token)).json()["order"]["id"]
    for target in ("confirmed", "processing"):
        resp = await client.patch(
            f"{API}/admin/orders/{order_id}/status",
            json={"status": target},
            headers=bearer(admin_token),
        )
        assert resp.status_code == 200, resp.text

    resp = await client.post(f"{API}/orders/{order_id}/cancel", headers=bearer(user_token))
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_public_tracking(client, user_token, catalog):
    await _add(client, user_token, "car_part", catalog.pads.id, 1)
    order_number = (await _checkout(client, user_token)).json()["order"]["order_number"]

    resp = await client.get(f"{API}/orders/track/{order_number.lower()}")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["order_number"] == order_number
    assert [step["completed"] for step in data["steps"]] == [True, False, False, False, False]
    assert "shipping_address" not in data
    assert "items" not in data


@pytest.mark.asyncio
async def test_tracking_unknown_order(client):
    resp = await client.get(f"{API}/orders/track/ORD-000000-0000")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_cancelling_paid_order_refunds_payment(client, db_session, admin_token, user_token, catalog):
    await _add(client, user_token, "car_part", catalog.pads.id, 4)
    order_id = (await _checkout(client, user_token)).json()["order"]["id"]
    db_session.refresh(catalog.pads)
    assert catalog.pads.stock_quantity == 36

    resp = await client.patch(
        f"{API}/admin/orders/{order_id}/payment",
        json={"payment_status": "paid"},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 200, resp.text

    resp = await client.post(f"{API}/orders/{order_id}/cancel", headers=bearer(user_token))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["status"] == "cancelled"
    assert data["payment_status"] == "refunded"

    db_session.refresh(catalog.pads)
    assert catalog.pads.stock_quantity == 40


@pytest.mark.asyncio
async def test_order_number_sequence_restarts_each_month(async_db_session, normal_user):
    import re
    from datetime import datetime
    from decimal import Decimal

    from dealership.domain.enums import PaymentMethod
    from dealership.models.order import Order
    from dealership.services.order_service import next_order_number

    async_db_session.add(
        Order(
            order_number="ORD-202401-0007",
            user_id=normal_user.id,
            payment_method=PaymentMethod.cash,
            shipping_address="12 Galle Road, Colombo, Sri Lanka",
            subtotal_amount=Decimal("10.00"),
            shipping_amount=Decimal("50.00"),
            tax_amount=Decimal("1.00"),
            total_amount=Decimal("61.00"),
        )
    )
    await async_db_session.flush()

    january = await next_order_number(async_db_session, datetime(2024, 1, 5))
    february = await next_order_number(async_db_session, datetime(2024, 2, 1))
    assert january == "ORD-202401-0008"
    assert february == "ORD-202402-0001"
    assert re.fullmatch(r"ORD-\d{6}-\d{4}", january)
