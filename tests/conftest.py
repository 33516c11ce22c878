"""
Shared fixtures.

The app reads its settings at import time, so the environment is pointed
at a throwaway SQLite database and upload directory before anything from
``app`` is imported.
"""
import io
import json
import os
import tempfile

import pytest

TEST_DIR = tempfile.mkdtemp(prefix="kanakku-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DIR}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = os.path.join(TEST_DIR, "uploads")
os.environ["ENVIRONMENT"] = "test"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402

from app.database import Base, engine, async_session_factory  # noqa: E402
from app.database_init import import_models  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture(autouse=True)
async def database():
    """Fresh tables for every test."""
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def db_session():
    async with async_session_factory() as session:
        yield session


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def register(client, email="owner@example.com", password="secret123", first_name="Owner"):
    response = await client.post("/auth/register", json={
        "first_name": first_name,
        "email": email,
        "password": password,
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def owner(client):
    """Registered owner: the token response including ``user``."""
    return await register(client)


@pytest.fixture
def auth_headers(owner):
    return {"Authorization": f"Bearer {owner['access_token']}"}


def form(payload):
    """Multipart/form body carrying a JSON ``data`` field."""
    return {"data": json.dumps(payload, default=str)}


def png_file(name="signature.png"):
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(20, 40, 60)).save(buffer, format="PNG")
    return (name, buffer.getvalue(), "image/png")


@pytest.fixture
def create_customer(client, auth_headers):
    async def _create(name="Acme Traders", email="billing@example.com"):
        response = await client.post(
            "/admin/customers",
            data=form({"name": name, "email": email}),
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def create_product(client, auth_headers):
    async def _create(code="SKU-1", name="Widget", selling_price="50.00", purchase_price="30.00"):
        response = await client.post(
            "/admin/products",
            data=form({
                "name": name,
                "code": code,
                "selling_price": selling_price,
                "purchase_price": purchase_price,
            }),
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def create_supplier(client, auth_headers):
    async def _create(name="Bolt Supplies", email="sales@example.com"):
        response = await client.post(
            "/admin/suppliers",
            json={
                "supplier_name": name,
                "supplier_email": email,
                "supplier_phone": "9876543210",
            },
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def create_invoice(client, auth_headers):
    async def _create(customer_id, **overrides):
        payload = {
            "customer_id": customer_id,
            "invoice_date": "2025-03-05",
            "due_date": "2025-03-20",
            "payment_method": "Cash",
            "items": [{"name": "Consulting", "quantity": "2", "rate": "100.00", "tax": "18.00"}],
        }
        payload.update(overrides)
        response = await client.post("/admin/invoices", data=form(payload), headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def create_purchase(client, auth_headers):
    async def _create(vendor_id, items, **overrides):
        payload = {
            "vendor_id": vendor_id,
            "purchase_date": "2025-03-01",
            "items": items,
        }
        payload.update(overrides)
        response = await client.post("/admin/purchases", data=form(payload), headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create
