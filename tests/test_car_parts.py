# tests/test_car_parts.py
import uuid

import pytest

from conftest import API, bearer

PARTS_URL = f"{API}/car-parts"


@pytest.mark.asyncio
async def test_list_parts(client, catalog):
    resp = await client.get(PARTS_URL, params={"sort_by": "price", "descending": False})
    assert resp.status_code == 200, resp.text
    assert [p["part_number"] for p in resp.json()["items"]] == ["BF-2002", "BP-1001"]


@pytest.mark.asyncio
async def test_filter_by_compatibility(client, catalog):
    resp = await client.get(PARTS_URL, params={"compatibility": "corolla"})
    assert [p["part_name"] for p in resp.json()["items"]] == ["Front Brake Pads"]


@pytest.mark.asyncio
async def test_search_by_part_number(client, catalog):
    resp = await client.get(PARTS_URL, params={"search": "bp-10"})
    assert resp.json()["total"] == 1


@pytest.mark.asyncio
async def test_compatibility_options_and_price_range(client, catalog):
    options = await client.get(f"{PARTS_URL}/compatibilities")
    assert options.json() == ["Toyota Corolla 2018-2023", "Toyota RAV4 2019-2023"]

    price_range = await client.get(f"{PARTS_URL}/price-range")
    assert price_range.json() == {"min_price": "9.99", "max_price": "45.90"}


@pytest.mark.asyncio
async def test_compare_parts(client, catalog):
    resp = await client.post(
        f"{PARTS_URL}/compare",
        json={"ids": [str(catalog.pads.id), str(catalog.fluid_filter.id)]},
    )
    assert resp.status_code == 200, resp.text
    assert [p["id"] for p in resp.json()] == [str(catalog.pads.id), str(catalog.fluid_filter.id)]


@pytest.mark.asyncio
async def test_compare_needs_two_existing_parts(client, catalog):
    resp = await client.post(
        f"{PARTS_URL}/compare",
        json={"ids": [str(catalog.pads.id), str(uuid.uuid4())]},
    )
    assert resp.status_code == 422

    resp = await client.post(
        f"{PARTS_URL}/compare",
        json={"ids": [str(catalog.pads.id), str(catalog.pads.id)]},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_part_detail(client, catalog):
    resp = await client.get(f"{PARTS_URL}/{catalog.pads.id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["part"]["display_name"] == "Bosch Front Brake Pads"
    assert [p["part_number"] for p in data["related"]] == ["BF-2002"]


@pytest.mark.asyncio
async def test_admin_create_part_uppercases_number(client, admin_token, catalog):
    resp = await client.post(
        PARTS_URL,
        json={
            "brand_id": str(catalog.bosch.id),
            "category_id": str(catalog.brakes.id),
            "part_name": "Rear Brake Disc",
            "part_number": " rd-300 ",
            "price": "89.00",
            "stock_quantity": 12,
        },
        headers=bearer(admin_token),
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["part_number"] == "RD-300"


@pytest.mark.asyncio
async def test_admin_create_part_duplicate_number(client, admin_token, catalog):
    resp = await client.post(
        PARTS_URL,
        json={
            "brand_id": str(catalog.bosch.id),
            "category_id": str(catalog.brakes.id),
            "part_name": "Copy",
            "part_number": "bp-1001",
            "price": "10.00",
        },
        headers=bearer(admin_token),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_admin_create_part_rejects_car_category(client, admin_token, catalog):
    resp = await client.post(
        PARTS_URL,
        json={
            "brand_id": str(catalog.bosch.id),
            "category_id": str(catalog.sedan.id),
            "part_name": "Wrong",
            "price": "10.00",
        },
        headers=bearer(admin_token),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_admin_low_stock_parts(client, admin_token, catalog):
    resp = await client.get(f"{PARTS_URL}/admin/low-stock", headers=bearer(admin_token))
    assert [p["part_number"] for p in resp.json()] == ["BF-2002"]


@pytest.mark.asyncio
async def test_admin_delete_part(client, admin_token, catalog):
    resp = await client.delete(f"{PARTS_URL}/{catalog.fluid_filter.id}", headers=bearer(admin_token))
    assert resp.status_code == 204
    assert (await client.get(f"{PARTS_URL}/{catalog.fluid_filter.id}")).status_code == 404
