# tests/test_brands.py
import pytest

from conftest import API, bearer

BRANDS_URL = f"{API}/brands"


@pytest.mark.asyncio
async def test_create_brand_generates_slug(client, admin_token):
    resp = await client.post(
        BRANDS_URL,
        json={"name": "Mercedes Benz", "description": "German cars"},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["slug"] == "mercedes-benz"
    assert data["is_active"] is True


@pytest.mark.asyncio
async def test_create_brand_requires_admin(client, user_token):
    resp = await client.post(BRANDS_URL, json={"name": "Kia"}, headers=bearer(user_token))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_create_brand_duplicate(client, admin_token):
    assert (await client.post(BRANDS_URL, json={"name": "Kia"}, headers=bearer(admin_token))).status_code == 201
    resp = await client.post(BRANDS_URL, json={"name": "Kia"}, headers=bearer(admin_token))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_public_list_hides_inactive(client, admin_token):
    await client.post(BRANDS_URL, json={"name": "Visible"}, headers=bearer(admin_token))
    await client.post(BRANDS_URL, json={"name": "Hidden", "is_active": False}, headers=bearer(admin_token))

    public = await client.get(BRANDS_URL)
    assert public.status_code == 200
    names = [b["name"] for b in public.json()["items"]]
    assert "Visible" in names and "Hidden" not in names

    everything = await client.get(f"{BRANDS_URL}/all", headers=bearer(admin_token))
    assert {b["name"] for b in everything.json()} >= {"Visible", "Hidden"}


@pytest.mark.asyncio
async def test_brand_detail_counts(client, catalog):
    resp = await client.get(f"{BRANDS_URL}/{catalog.toyota.id}")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["total_cars"] == 2
    assert data["available_cars"] == 2
    assert data["total_car_parts"] == 1


@pytest.mark.asyncio
async def test_update_brand_regenerates_slug(client, admin_token, catalog):
    resp = await client.put(
        f"{BRANDS_URL}/{catalog.bosch.id}",
        json={"name": "Bosch Automotive"},
        headers=bearer(admin_token),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["slug"] == "bosch-automotive"


@pytest.mark.asyncio
async def test_delete_brand_in_use_conflicts(client, admin_token, catalog):
    resp = await client.delete(f"{BRANDS_URL}/{catalog.toyota.id}", headers=bearer(admin_token))
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_delete_unused_brand(client, admin_token):
    created = (await client.post(BRANDS_URL, json={"name": "Lada"}, headers=bearer(admin_token))).json()
    resp = await client.delete(f"{BRANDS_URL}/{created['id']}", headers=bearer(admin_token))
    assert resp.status_code == 204
    assert (await client.get(f"{BRANDS_URL}/{created['id']}")).status_code == 404
