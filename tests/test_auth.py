"""Registration, login, logout and bearer-token checks."""
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.core.security import cleanup_expired_blacklist_entries, create_access_token
from app.models.user import TokenBlacklist

from .conftest import register


class TestRegister:
    async def test_register_returns_token_and_user(self, client):
        body = await register(client, email="new@example.com")
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["user"]["email"] == "new@example.com"
        assert body["user"]["user_type"] == 1
        assert "password_hash" not in body["user"]

    async def test_register_duplicate_email(self, client, owner):
        response = await client.post("/auth/register", json={
            "first_name": "Again",
            "email": owner["user"]["email"],
            "password": "secret123",
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "User already exists"

    async def test_register_validates_email(self, client):
        response = await client.post("/auth/register", json={
            "first_name": "Bad",
            "email": "not-an-email",
            "password": "secret123",
        })
        assert response.status_code == 422


class TestLogin:
    async def test_login_with_valid_credentials(self, client, owner):
        response = await client.post("/auth/login", json={
            "email": "owner@example.com",
            "password": "secret123",
        })
        assert response.status_code == 200
        assert response.json()["user"]["id"] == owner["user"]["id"]

    async def test_login_wrong_password(self, client, owner):
        response = await client.post("/auth/login", json={
            "email": "owner@example.com",
            "password": "wrong-password",
        })
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    async def test_login_unknown_email(self, client):
        response = await client.post("/auth/login", json={
            "email": "nobody@example.com",
            "password": "secret123",
        })
        assert response.status_code == 401


class TestProtectedRoutes:
    async def test_missing_token_is_rejected(self, client):
        response = await client.get("/admin/profile")
        assert response.status_code in (401, 403)

    async def test_garbage_token(self, client):
        response = await client.get("/admin/profile", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Could not validate credentials"

    async def test_expired_token(self, client, owner):
        token = create_access_token(owner["user"]["id"], expires_delta=timedelta(seconds=-5))
        response = await client.get("/admin/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_profile(self, client, owner, auth_headers):
        response = await client.get("/admin/profile", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["email"] == "owner@example.com"


class TestLogout:
    async def test_logout_revokes_token(self, client, auth_headers):
        response = await client.post("/auth/logout", headers=auth_headers)
        assert response.status_code == 200

        response = await client.get("/admin/profile", headers=auth_headers)
        assert response.status_code == 401

    async def test_new_login_still_works_after_logout(self, client, auth_headers):
        await client.post("/auth/logout", headers=auth_headers)
        response = await client.post("/auth/login", json={
            "email": "owner@example.com",
            "password": "secret123",
        })
        token = response.json()["access_token"]

        response = await client.get("/admin/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    async def test_cleanup_keeps_unexpired_entries(self, client, db_session, owner, auth_headers):
        await client.post("/auth/logout", headers=auth_headers)

        user_id = uuid.UUID(owner["user"]["id"])
        db_session.add(TokenBlacklist(
            jti="stale-token",
            user_id=user_id,
            expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        ))
        await db_session.commit()

        assert await cleanup_expired_blacklist_entries(db_session) == 1
        await db_session.commit()

        remaining = (await db_session.execute(select(TokenBlacklist.jti))).scalars().all()
        assert len(remaining) == 1
        assert remaining[0] != "stale-token"
