"""Currencies: one global default, mirrored onto every user."""
import uuid

from app.models.user import User

from .conftest import register


async def create_currency(client, headers, name, code, is_default=False, **extra):
    payload = {"name": name, "code": code, "symbol": "$", "is_default": is_default}
    payload.update(extra)
    response = await client.post("/admin/currencies", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def default_codes(client, headers):
    response = await client.get("/admin/currencies", headers=headers)
    return [c["code"] for c in response.json()["items"] if c["is_default"]]


async def profile_currency(client, headers):
    response = await client.get("/admin/profile", headers=headers)
    return response.json()["default_currency_id"]


class TestDefaultCurrency:
    async def test_code_is_uppercased(self, client, auth_headers):
        currency = await create_currency(client, auth_headers, "Rupee", "inr")
        assert currency["code"] == "INR"

    async def test_new_default_replaces_old_and_reaches_users(self, client, auth_headers):
        await create_currency(client, auth_headers, "Rupee", "INR", is_default=True)
        dollar = await create_currency(client, auth_headers, "Dollar", "USD", is_default=True)

        assert await default_codes(client, auth_headers) == ["USD"]
        assert await profile_currency(client, auth_headers) == dollar["id"]

    async def test_status_patch_sets_default(self, client, auth_headers):
        await create_currency(client, auth_headers, "Rupee", "INR", is_default=True)
        euro = await create_currency(client, auth_headers, "Euro", "EUR")

        response = await client.patch(
            f"/admin/currencies/{euro['id']}/status",
            json={"is_default": True},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert await default_codes(client, auth_headers) == ["EUR"]

    async def test_deleting_default_promotes_remaining_currency(self, client, auth_headers):
        rupee = await create_currency(client, auth_headers, "Rupee", "INR")
        dollar = await create_currency(client, auth_headers, "Dollar", "USD", is_default=True)

        response = await client.delete(f"/admin/currencies/{dollar['id']}", headers=auth_headers)
        assert response.status_code == 200

        assert await default_codes(client, auth_headers) == ["INR"]
        assert await profile_currency(client, auth_headers) == rupee["id"]

    async def test_deleting_last_default_clears_users(self, client, auth_headers):
        only = await create_currency(client, auth_headers, "Rupee", "INR", is_default=True)

        await client.delete(f"/admin/currencies/{only['id']}", headers=auth_headers)

        assert await default_codes(client, auth_headers) == []
        assert await profile_currency(client, auth_headers) is None

    async def test_inactive_currency_cannot_be_default(self, client, auth_headers):
        response = await client.post(
            "/admin/currencies",
            json={"name": "Yen", "code": "JPY", "symbol": "¥", "status": False, "is_default": True},
            headers=auth_headers,
        )
        assert response.status_code == 400


class TestCurrencyUniqueness:
    async def test_duplicate_code(self, client, auth_headers):
        await create_currency(client, auth_headers, "Rupee", "INR")

        response = await client.post(
            "/admin/currencies",
            json={"name": "Indian Rupee", "code": "inr", "symbol": "R"},
            headers=auth_headers,
        )
        assert response.status_code == 409

    async def test_deleted_code_can_be_reused(self, client, auth_headers):
        rupee = await create_currency(client, auth_headers, "Rupee", "INR")
        await client.delete(f"/admin/currencies/{rupee['id']}", headers=auth_headers)

        await create_currency(client, auth_headers, "Rupee", "INR")


class TestNewUsersGetDefault:
    async def test_registered_user_starts_with_default(self, client, auth_headers):
        rupee = await create_currency(client, auth_headers, "Rupee", "INR", is_default=True)

        newcomer = await register(client, email="newcomer@example.com", first_name="Newcomer")
        headers = {"Authorization": f"Bearer {newcomer['access_token']}"}

        assert await profile_currency(client, headers) == rupee["id"]

    async def test_supplier_vendor_starts_with_default(self, client, auth_headers, db_session, create_supplier):
        rupee = await create_currency(client, auth_headers, "Rupee", "INR", is_default=True)
        supplier = await create_supplier()

        vendor = await db_session.get(User, uuid.UUID(supplier["vendor_id"]))
        assert str(vendor.default_currency_id) == rupee["id"]

    async def test_no_default_leaves_it_empty(self, client, auth_headers):
        await create_currency(client, auth_headers, "Rupee", "INR")

        newcomer = await register(client, email="newcomer@example.com", first_name="Newcomer")
        headers = {"Authorization": f"Bearer {newcomer['access_token']}"}

        assert await profile_currency(client, headers) is None
