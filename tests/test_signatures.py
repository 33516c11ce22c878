"""At most one default signature per owner."""
import os
import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.models.currency import Currency
from app.models.signature import Signature

from .conftest import form, png_file


async def create_signature(client, headers, name, mark_as_default=False, status=True):
    response = await client.post(
        "/admin/signatures",
        data=form({"name": name, "mark_as_default": mark_as_default, "status": status}),
        files={"signature_image": png_file()},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def defaults(client, headers):
    response = await client.get("/admin/signatures", headers=headers)
    return [s["name"] for s in response.json()["items"] if s["mark_as_default"]]


def stored_files(category):
    folder = os.path.join(settings.UPLOAD_DIR, category)
    return set(os.listdir(folder)) if os.path.isdir(folder) else set()


class TestDefaultSignature:
    async def test_new_default_clears_previous(self, client, auth_headers):
        await create_signature(client, auth_headers, "First", mark_as_default=True)
        await create_signature(client, auth_headers, "Second", mark_as_default=True)

        assert await defaults(client, auth_headers) == ["Second"]

    async def test_set_default(self, client, auth_headers):
        first = await create_signature(client, auth_headers, "First", mark_as_default=True)
        second = await create_signature(client, auth_headers, "Second")

        response = await client.patch(f"/admin/signatures/set-default/{second['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["mark_as_default"] is True

        response = await client.get(f"/admin/signatures/{first['id']}", headers=auth_headers)
        assert response.json()["mark_as_default"] is False

    async def test_inactive_signature_cannot_be_default(self, client, auth_headers):
        inactive = await create_signature(client, auth_headers, "Off", status=False)

        response = await client.patch(f"/admin/signatures/set-default/{inactive['id']}", headers=auth_headers)
        assert response.status_code == 400

    async def test_deactivating_default_promotes_another(self, client, auth_headers):
        await create_signature(client, auth_headers, "Older")
        current = await create_signature(client, auth_headers, "Current", mark_as_default=True)

        response = await client.patch(
            f"/admin/signatures/status/{current['id']}",
            json={"status": False},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["mark_as_default"] is False
        assert await defaults(client, auth_headers) == ["Older"]

    async def test_defaults_are_per_owner(self, client, auth_headers):
        await create_signature(client, auth_headers, "Mine", mark_as_default=True)

        other = await client.post("/auth/register", json={
            "first_name": "Other", "email": "other@example.com", "password": "secret123",
        })
        other_headers = {"Authorization": f"Bearer {other.json()['access_token']}"}
        await create_signature(client, other_headers, "Theirs", mark_as_default=True)

        assert await defaults(client, auth_headers) == ["Mine"]
        assert await defaults(client, other_headers) == ["Theirs"]


class TestSignatureUpload:
    async def test_image_is_required(self, client, auth_headers):
        response = await client.post(
            "/admin/signatures",
            data=form({"name": "No image"}),
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_file_is_stored(self, client, auth_headers):
        signature = await create_signature(client, auth_headers, "Stored")
        assert os.path.exists(os.path.join(settings.UPLOAD_DIR, signature["image_path"]))

    async def test_rejects_non_image(self, client, auth_headers):
        response = await client.post(
            "/admin/signatures",
            data=form({"name": "Bad"}),
            files={"signature_image": ("sig.png", b"not really a png", "image/png")},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_upload_removed_when_request_fails(self, client, auth_headers):
        before = stored_files("signatures")

        response = await client.put(
            "/admin/signatures/00000000-0000-0000-0000-000000000001",
            data=form({"name": "Ghost"}),
            files={"signature_image": png_file()},
            headers=auth_headers,
        )
        assert response.status_code == 404
        assert stored_files("signatures") == before

    async def test_document_signature_removed_when_invoice_fails(self, client, auth_headers):
        before = stored_files("document-signatures")

        response = await client.post(
            "/admin/invoices",
            data=form({
                "customer_id": "00000000-0000-0000-0000-000000000001",
                "invoice_date": "2025-03-05",
                "due_date": "2025-03-20",
                "payment_method": "Cash",
                "sign_type": "eSignature",
                "signature_name": "R. Iyer",
                "items": [{"name": "X", "quantity": "1", "rate": "1"}],
            }),
            files={"signature_image": png_file()},
            headers=auth_headers,
        )
        assert response.status_code == 404
        assert stored_files("document-signatures") == before


class TestDefaultConstraint:
    async def test_second_default_for_owner_is_rejected(self, db_session, owner):
        user_id = uuid.UUID(owner["user"]["id"])
        db_session.add(Signature(name="A", image_path="signatures/a.png", mark_as_default=True, user_id=user_id))
        await db_session.commit()

        db_session.add(Signature(name="B", image_path="signatures/b.png", mark_as_default=True, user_id=user_id))
        with pytest.raises(IntegrityError):
            await db_session.commit()

    async def test_deleted_default_does_not_count(self, db_session, owner):
        user_id = uuid.UUID(owner["user"]["id"])
        db_session.add(Signature(
            name="Old", image_path="signatures/old.png", mark_as_default=True, is_deleted=True, user_id=user_id,
        ))
        db_session.add(Signature(name="New", image_path="signatures/new.png", mark_as_default=True, user_id=user_id))
        await db_session.commit()

    async def test_second_default_currency_is_rejected(self, db_session):
        db_session.add(Currency(name="Rupee", code="INR", symbol="R", is_default=True))
        await db_session.commit()

        db_session.add(Currency(name="Dollar", code="USD", symbol="$", is_default=True))
        with pytest.raises(IntegrityError):
            await db_session.commit()
