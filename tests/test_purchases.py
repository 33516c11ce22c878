"""Purchases and purchase orders: soft delete and display projections."""
from decimal import Decimal

from .conftest import form

STEEL = [{"name": "Steel", "quantity": "2", "rate": "25"}]


class TestPurchaseSoftDelete:
    async def test_deleted_purchase_leaves_lists_but_stays_readable(
        self, client, auth_headers, create_supplier, create_purchase
    ):
        supplier = await create_supplier()
        kept = await create_purchase(supplier["vendor_id"], STEEL)
        deleted = await create_purchase(supplier["vendor_id"], STEEL)

        response = await client.delete(f"/admin/purchases/{deleted['id']}", headers=auth_headers)
        assert response.status_code == 200

        response = await client.get("/admin/purchases", headers=auth_headers)
        assert [p["id"] for p in response.json()["items"]] == [kept["id"]]
        assert response.json()["total"] == 1

        response = await client.get(f"/admin/purchases/{deleted['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["is_deleted"] is True

        response = await client.put(
            f"/admin/purchases/{deleted['id']}",
            data=form({"notes": "too late"}),
            headers=auth_headers,
        )
        assert response.status_code == 404


class TestFormattedPurchases:
    async def test_purchase_detail_and_list(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], STEEL)

        response = await client.get(f"/admin/purchases/{purchase['id']}/formatted", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["purchase_number"] == "PUR-000001"
        assert body["purchase_date"] == "01, Mar 2025"
        assert body["vendor"]["id"] == supplier["vendor_id"]
        assert body["vendor"]["name"] == "Bolt Supplies"
        assert body["vendor"]["email"] == "sales@example.com"
        assert body["bank"] is None
        assert Decimal(str(body["total_amount"])) == Decimal("50.00")

        response = await client.get("/admin/purchases/formatted", headers=auth_headers)
        assert response.status_code == 200
        assert [p["purchase_number"] for p in response.json()["items"]] == ["PUR-000001"]

    async def test_purchase_order_detail_and_list(self, client, auth_headers, create_supplier):
        supplier = await create_supplier()
        response = await client.post("/admin/purchase-orders", data=form({
            "vendor_id": supplier["vendor_id"],
            "po_date": "2025-03-01",
            "due_date": "2025-03-15",
            "items": STEEL,
        }), headers=auth_headers)
        assert response.status_code == 201, response.text
        order = response.json()

        response = await client.get(f"/admin/purchase-orders/{order['id']}/formatted", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["po_number"] == "PO-000001"
        assert body["po_date"] == "01, Mar 2025"
        assert body["due_date"] == "15, Mar 2025"
        assert body["vendor"]["name"] == "Bolt Supplies"
        assert body["converted_purchase_id"] is None

        response = await client.get("/admin/purchase-orders/formatted", headers=auth_headers)
        assert response.json()["total"] == 1

    async def test_other_owner_gets_404(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], STEEL)

        other = await client.post("/auth/register", json={
            "first_name": "Other", "email": "other@example.com", "password": "secret123",
        })
        headers = {"Authorization": f"Bearer {other.json()['access_token']}"}

        response = await client.get(f"/admin/purchases/{purchase['id']}/formatted", headers=headers)
        assert response.status_code == 404
