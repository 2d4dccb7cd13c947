from decimal import Decimal

from sqlalchemy import update

from qbuilder.core.rate_limit import auth_limiter
from qbuilder.models.users.user_models import User

PASSWORD = "Secret123"


async def test_health(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["service"] == "qbuilder-api"


async def test_register_returns_tokens_and_profile(register):
    _, data = await register(email="Dana@Builder.co.il")

    assert data["auth"]["token_type"] == "bearer"
    assert data["auth"]["access_token"]
    assert data["auth"]["refresh_token"]

    user = data["user"]
    assert user["email"] == "dana@builder.co.il"
    assert user["provider"] == "local"
    assert user["role"] == "user"
    assert Decimal(user["vat_rate"]) == Decimal("0.18")
    assert "password_hash" not in user


async def test_register_weak_password(client):
    response = await client.post(
        "/auth/register",
        json={
            "name": "Dana Cohen",
            "email": "dana@builder.co.il",
            "password": "short",
            "business_name": "Cohen Renovations",
            "phone": "050-1234567",
            "address": "12 Herzl St, Haifa",
        },
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "WEAK_PASSWORD"
    assert len(body["details"]) == 3


async def test_register_duplicate_email(client, register):
    await register()

    response = await client.post(
        "/auth/register",
        json={
            "name": "Other Person",
            "email": "OWNER@builder.co.il",
            "password": PASSWORD,
            "business_name": "Other Business",
            "phone": "050-0000000",
            "address": "1 Main St",
        },
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "USER_EXISTS"


async def test_register_unknown_profession(client):
    response = await client.post(
        "/auth/register",
        json={
            "name": "Dana Cohen",
            "email": "dana@builder.co.il",
            "password": PASSWORD,
            "business_name": "Cohen Renovations",
            "phone": "050-1234567",
            "address": "12 Herzl St, Haifa",
            "profession_ids": [999],
        },
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "PROFESSION_NOT_FOUND"


async def test_login(client, register):
    await register()

    response = await client.post(
        "/auth/login", json={"email": "owner@builder.co.il", "password": PASSWORD}
    )
    assert response.status_code == 200
    assert response.json()["data"]["user"]["last_login"] is not None

    response = await client.post(
        "/auth/login", json={"email": "owner@builder.co.il", "password": "Wrong1234"}
    )
    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_CREDENTIALS"


async def test_login_unknown_email(client):
    response = await client.post(
        "/auth/login", json={"email": "nobody@builder.co.il", "password": PASSWORD}
    )
    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_CREDENTIALS"


async def test_login_inactive_user(client, db, register):
    await register()
    await db.execute(update(User).where(User.email == "owner@builder.co.il").values(is_active=False))
    await db.commit()

    response = await client.post(
        "/auth/login", json={"email": "owner@builder.co.il", "password": PASSWORD}
    )
    assert response.status_code == 403
    assert response.json()["error_code"] == "PERMISSION_DENIED"


async def test_me_requires_token(client):
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["error_code"] == "UNAUTHORIZED"

    response = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


async def test_me(client, auth_headers):
    response = await client.get("/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["business_name"] == "Cohen Renovations"


async def test_refresh_rotates_token(client, register):
    _, data = await register()
    old_refresh = data["auth"]["refresh_token"]

    response = await client.post("/auth/refresh", json={"refresh_token": old_refresh})
    assert response.status_code == 200
    new_tokens = response.json()["data"]
    assert new_tokens["refresh_token"] != old_refresh

    response = await client.post("/auth/refresh", json={"refresh_token": old_refresh})
    assert response.status_code == 401

    response = await client.get(
        "/auth/me", headers={"Authorization": f"Bearer {new_tokens['access_token']}"}
    )
    assert response.status_code == 200


async def test_logout_invalidates_tokens(client, register):
    headers, data = await register()

    response = await client.post("/auth/logout", headers=headers)
    assert response.status_code == 200

    response = await client.get("/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Session expired"

    response = await client.post(
        "/auth/refresh", json={"refresh_token": data["auth"]["refresh_token"]}
    )
    assert response.status_code == 401


async def test_update_profile(client, auth_headers):
    response = await client.put(
        "/auth/profile",
        json={
            "business_name": "Cohen & Sons",
            "vat_rate": "0.17",
            "notification_settings": {"email_enabled": False},
        },
        headers=auth_headers,
    )
    assert response.status_code == 200
    user = response.json()["data"]
    assert user["business_name"] == "Cohen & Sons"
    assert Decimal(user["vat_rate"]) == Decimal("0.17")
    assert user["notification_settings"]["email_enabled"] is False
    assert user["notification_settings"]["quote_expiry"] is True


async def test_update_profile_without_changes(client, auth_headers):
    response = await client.put(
        "/auth/profile", json={"business_name": "Cohen Renovations"}, headers=auth_headers
    )
    assert response.status_code == 400


async def test_update_profile_rejects_bad_vat(client, auth_headers):
    response = await client.put("/auth/profile", json={"vat_rate": "1.5"}, headers=auth_headers)
    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"


async def test_change_password(client, auth_headers):
    response = await client.post(
        "/auth/change-password",
        json={"current_password": "Nope12345", "new_password": "Another123"},
        headers=auth_headers,
    )
    assert response.status_code == 401
    assert response.json()["error_code"] == "INVALID_PASSWORD"

    response = await client.post(
        "/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "weak"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "WEAK_PASSWORD"

    response = await client.post(
        "/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "Another123"},
        headers=auth_headers,
    )
    assert response.status_code == 200

    response = await client.post(
        "/auth/login", json={"email": "owner@builder.co.il", "password": "Another123"}
    )
    assert response.status_code == 200


async def test_login_rate_limited(client, register, monkeypatch):
    await register()
    auth_limiter.reset()
    monkeypatch.setattr(auth_limiter, "points", 2)

    for _ in range(2):
        response = await client.post(
            "/auth/login", json={"email": "owner@builder.co.il", "password": "Wrong1234"}
        )
        assert response.status_code == 401

    response = await client.post(
        "/auth/login", json={"email": "owner@builder.co.il", "password": PASSWORD}
    )
    assert response.status_code == 429
    assert response.json()["error_code"] == "RATE_LIMIT_EXCEEDED"
    assert int(response.headers["Retry-After"]) > 0


async def test_change_password_on_oauth_account(client, db, auth_headers):
    await db.execute(update(User).where(User.email == "owner@builder.co.il").values(password_hash=None))
    await db.commit()

    response = await client.post(
        "/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "Another123"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "OAUTH_ACCOUNT"
