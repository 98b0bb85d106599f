# tests/test_cars.py
import pytest

from conftest import API, bearer

CARS_URL = f"{API}/cars"


def _car_payload(catalog, **overrides):
    payload = {
        "brand_id": str(catalog.toyota.id),
        "category_id": str(catalog.sedan.id),
        "model": "Camry",
        "year": 2024,
        "price": "32999.99",
        "color": "Black",
        "fuel_type": "hybrid",
        "transmission": "automatic",
        "stock_quantity": 2,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_public_list_paginates(client, catalog):
    resp = await client.get(CARS_URL, params={"page_size": 1})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["total"] == 2
    assert data["pages"] == 2
    assert len(data["items"]) == 1
    assert data["items"][0]["brand"]["name"] == "Toyota"


@pytest.mark.asyncio
async def test_public_list_filters(client, catalog):
    resp = await client.get(CARS_URL, params={"fuel_type": "hybrid"})
    assert [c["model"] for c in resp.json()["items"]] == ["RAV4"]

    resp = await client.get(CARS_URL, params={"min_year": 2020, "max_price": "25000"})
    assert [c["model"] for c in resp.json()["items"]] == ["Corolla"]

    resp = await client.get(CARS_URL, params={"category_id": str(catalog.suv.id)})
    assert resp.json()["total"] == 1

    resp = await client.get(CARS_URL, params={"color": "white"})
    assert [c["model"] for c in resp.json()["items"]] == ["Corolla"]


@pytest.mark.asyncio
async def test_public_list_search_matches_brand(client, catalog):
    resp = await client.get(CARS_URL, params={"search": "toyo"})
    assert resp.json()["total"] == 2
    resp = await client.get(CARS_URL, params={"search": "100%_"})
    assert resp.json()["total"] == 0


@pytest.mark.asyncio
async def test_public_list_sorting(client, catalog):
    resp = await client.get(CARS_URL, params={"sort_by": "price", "descending": False})
    assert [c["model"] for c in resp.json()["items"]] == ["Corolla", "RAV4"]
    resp = await client.get(CARS_URL, params={"sort_by": "year", "descending": True})
    assert [c["model"] for c in resp.json()["items"]] == ["Corolla", "RAV4"]


@pytest.mark.asyncio
async def test_invalid_price_range(client, catalog):
    resp = await client.get(CARS_URL, params={"min_price": "5000", "max_price": "100"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_unknown_sort_rejected(client, catalog):
    resp = await client.get(CARS_URL, params={"sort_by": "mileage"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_unavailable_cars_hidden_from_public(client, admin_token, catalog):
    resp = await client.patch(
        f"{CARS_URL}/{catalog.rav4.id}/availability",
        json={"is_available": False},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 200, resp.text

    public = await client.get(CARS_URL)
    assert [c["model"] for c in public.json()["items"]] == ["Corolla"]
    assert (await client.get(f"{CARS_URL}/{catalog.rav4.id}")).status_code == 404

    admin = await client.get(f"{CARS_URL}/admin/all", headers=bearer(admin_token))
    assert admin.json()["total"] == 2


@pytest.mark.asyncio
async def test_detail_includes_related(client, catalog):
    resp = await client.get(f"{CARS_URL}/{catalog.corolla.id}")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["car"]["display_name"] == "Toyota Corolla (2022)"
    assert [c["model"] for c in data["related"]] == ["RAV4"]


@pytest.mark.asyncio
async def test_filter_options(client, catalog):
    resp = await client.get(f"{CARS_URL}/filters")
    assert resp.status_code == 200
    data = resp.json()
    assert data["years"] == [2022, 2019]
    assert sorted(data["colors"]) == ["Silver", "White"]
    assert [c["name"] for c in data["categories"]] == ["SUV", "Sedan"]
    assert data["min_price"] == "21500.00"


@pytest.mark.asyncio
async def test_featured_and_latest(client, catalog):
    featured = await client.get(f"{CARS_URL}/featured")
    assert featured.json()[0]["model"] == "RAV4"
    latest = await client.get(f"{CARS_URL}/latest", params={"limit": 1})
    assert len(latest.json()) == 1


@pytest.mark.asyncio
async def test_admin_create_car(client, admin_token, catalog):
    resp = await client.post(CARS_URL, json=_car_payload(catalog), headers=bearer(admin_token))
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["price"] == "32999.99"
    assert data["category"]["name"] == "Sedan"


@pytest.mark.asyncio
async def test_admin_create_car_rejects_part_category(client, admin_token, catalog):
    resp = await client.post(
        CARS_URL,
        json=_car_payload(catalog, category_id=str(catalog.brakes.id)),
        headers=bearer(admin_token),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_admin_create_car_requires_admin(client, user_token, catalog):
    resp = await client.post(CARS_URL, json=_car_payload(catalog), headers=bearer(user_token))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_update_car(client, admin_token, catalog):
    resp = await client.put(
        f"{CARS_URL}/{catalog.corolla.id}",
        json={"price": "19999.50", "mileage": 15000},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["price"] == "19999.50"
    assert resp.json()["mileage"] == 15000


@pytest.mark.asyncio
async def test_admin_stock_adjustments(client, admin_token, catalog):
    url = f"{CARS_URL}/{catalog.corolla.id}/stock"
    resp = await client.patch(url, json={"delta": 2}, headers=bearer(admin_token))
    assert resp.json()["stock_quantity"] == 5

    resp = await client.patch(url, json={"quantity": 0}, headers=bearer(admin_token))
    assert resp.json()["stock_quantity"] == 0
    assert resp.json()["in_stock"] is False

    resp = await client.patch(url, json={"delta": -1}, headers=bearer(admin_token))
    assert resp.status_code == 422

    resp = await client.patch(url, json={"delta": 1, "quantity": 3}, headers=bearer(admin_token))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_admin_low_stock(client, admin_token, catalog):
    resp = await client.get(f"{CARS_URL}/admin/low-stock", headers=bearer(admin_token))
    assert resp.status_code == 200
    assert [c["model"] for c in resp.json()] == ["RAV4", "Corolla"]


@pytest.mark.asyncio
async def test_admin_delete_car(client, admin_token, catalog):
    resp = await client.delete(f"{CARS_URL}/{catalog.rav4.id}", headers=bearer(admin_token))
    assert resp.status_code == 204
    assert (await client.get(f"{CARS_URL}/{catalog.rav4.id}")).status_code == 404
