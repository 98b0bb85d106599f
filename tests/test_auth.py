# tests/test_auth.py
import pytest

from conftest import API, bearer, login
from dealership.core.security import create_password_reset_token

REGISTER_URL = f"{API}/auth/register"
ME_URL = f"{API}/users/me"


def _registration(**overrides):
    data = {
        "email": "New.Customer@Example.com",
        "password": "Customer123",
        "first_name": "New",
        "last_name": "Customer",
        "city": "Colombo",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_register_normalizes_email(client):
    resp = await client.post(REGISTER_URL, json=_registration())
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["email"] == "new.customer@example.com"
    assert body["role"] == "customer"
    assert body["full_name"] == "New Customer"
    assert "hashed_password" not in body


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    assert (await client.post(REGISTER_URL, json=_registration())).status_code == 201
    resp = await client.post(REGISTER_URL, json=_registration(email="new.customer@example.com"))
    assert resp.status_code == 400
    assert "already registered" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_register_rejects_short_password(client):
    resp = await client.post(REGISTER_URL, json=_registration(password="short"))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_success_returns_token_pair(client, normal_user):
    resp = await login(client, normal_user.email, "User1234")
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"] and body["refresh_token"]
    assert body["user"]["email"] == normal_user.email
    assert body["user"]["last_login_at"] is not None


@pytest.mark.asyncio
async def test_login_is_case_insensitive(client, normal_user):
    resp = await login(client, normal_user.email.upper(), "User1234")
    assert resp.status_code == 200, resp.text


@pytest.mark.asyncio
async def test_login_wrong_password(client, normal_user):
    resp = await login(client, normal_user.email, "wrong-pass")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Incorrect email or password"


@pytest.mark.asyncio
async def test_login_locks_account_after_repeated_failures(client, normal_user):
    for _ in range(4):
        resp = await login(client, normal_user.email, "wrong-pass")
        assert resp.status_code == 400

    resp = await login(client, normal_user.email, "wrong-pass")
    assert resp.status_code == 423
    assert "Retry-After" in resp.headers
    assert "locked" in resp.json()["detail"].lower()

    # ni siquiera la contraseña correcta entra mientras dure el bloqueo
    resp = await login(client, normal_user.email, "User1234")
    assert resp.status_code == 423


@pytest.mark.asyncio
async def test_successful_login_resets_failure_count(client, normal_user):
    for _ in range(4):
        await login(client, normal_user.email, "wrong-pass")
    assert (await login(client, normal_user.email, "User1234")).status_code == 200
    for _ in range(4):
        resp = await login(client, normal_user.email, "wrong-pass")
        assert resp.status_code == 400


@pytest.mark.asyncio
async def test_inactive_user_cannot_login(client, db_session, normal_user):
    normal_user.is_active = False
    db_session.add(normal_user)
    db_session.commit()

    resp = await login(client, normal_user.email, "User1234")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Inactive user"


@pytest.mark.asyncio
async def test_protected_requires_auth(client):
    resp = await client.get(ME_URL)
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_rejected(client):
    resp = await client.get(ME_URL, headers=bearer("not-a-jwt"))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh_issues_new_access_token(client, normal_user):
    tokens = (await login(client, normal_user.email, "User1234")).json()
    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200, resp.text
    new_access = resp.json()["access_token"]
    assert (await client.get(ME_URL, headers=bearer(new_access))).status_code == 200


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client, user_token):
    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": user_token})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh_rejected_for_deactivated_user(client, db_session, normal_user):
    tokens = (await login(client, normal_user.email, "User1234")).json()
    normal_user.is_active = False
    db_session.add(normal_user)
    db_session.commit()

    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_tokens(client, normal_user):
    tokens = (await login(client, normal_user.email, "User1234")).json()
    access = tokens["access_token"]

    resp = await client.post(
        f"{API}/auth/logout",
        json={"refresh_token": tokens["refresh_token"]},
        headers=bearer(access),
    )
    assert resp.status_code == 204

    assert (await client.get(ME_URL, headers=bearer(access))).status_code == 401
    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_forgot_password_does_not_reveal_accounts(client, normal_user):
    known = await client.post(f"{API}/auth/password/forgot", json={"email": normal_user.email})
    unknown = await client.post(f"{API}/auth/password/forgot", json={"email": "nobody@example.com"})
    assert known.status_code == unknown.status_code == 204


@pytest.mark.asyncio
async def test_reset_password_flow(client, normal_user):
    token = create_password_reset_token(str(normal_user.id), normal_user.hashed_password)

    resp = await client.post(
        f"{API}/auth/password/reset",
        json={"token": token, "new_password": "BrandNew123"},
    )
    assert resp.status_code == 204, resp.text

    assert (await login(client, normal_user.email, "User1234")).status_code == 400
    assert (await login(client, normal_user.email, "BrandNew123")).status_code == 200

    # el enlace es de un solo uso
    reused = await client.post(
        f"{API}/auth/password/reset",
        json={"token": token, "new_password": "Another123"},
    )
    assert reused.status_code == 422


@pytest.mark.asyncio
async def test_reset_password_invalid_token(client):
    resp = await client.post(
        f"{API}/auth/password/reset",
        json={"token": "definitely-not-a-token", "new_password": "BrandNew123"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_register_rate_limited(client):
    from dealership.api.routers import auth as auth_router
    from dealership.core.rate_limiter import rate_limit

    limited = rate_limit(2, 60, scope="register-test")
    from dealership.main import app
    app.dependency_overrides[auth_router.registration_rate_limit] = limited

    for idx in range(2):
        resp = await client.post(REGISTER_URL, json=_registration(email=f"limit{idx}@example.com"))
        assert resp.status_code == 201, resp.text
    resp = await client.post(REGISTER_URL, json=_registration(email="limit9@example.com"))
    assert resp.status_code == 429
    assert "Retry-After" in resp.headers


@pytest.mark.asyncio
async def test_login_rate_limited_per_ip(client, normal_user, other_user):
    import httpx

    from dealership.api.routers import auth as auth_router
    from dealership.core.rate_limiter import rate_limit
    from dealership.main import app

    app.dependency_overrides[auth_router.login_rate_limit] = rate_limit(3, 900, scope="login-test")

    # el límite es por IP: cuenta intentos de cualquier email, buenos o malos
    assert (await login(client, normal_user.email, "User1234")).status_code == 200
    assert (await login(client, other_user.email, "wrong-pass")).status_code == 400
    assert (await login(client, "nobody@example.com", "whatever1")).status_code == 400

    resp = await login(client, other_user.email, "Other1234")
    assert resp.status_code == 429
    assert resp.json()["detail"] == "Too many requests, please slow down."
    assert 1 <= int(resp.headers["Retry-After"]) <= 900

    transport = httpx.ASGITransport(app=app, client=("10.20.30.40", 5050))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as other_ip:
        resp = await login(other_ip, other_user.email, "Other1234")
    assert resp.status_code == 200, resp.text
