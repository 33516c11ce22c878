"""Stock level always equals the sum of its movement history."""
from decimal import Decimal

from .conftest import form


async def stock_of(client, headers, product_id):
    response = await client.get(f"/admin/inventory/{product_id}", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


async def assert_consistent(client, headers, product_id):
    response = await client.get(f"/admin/inventory/{product_id}/verify", headers=headers)
    body = response.json()
    assert body["consistent"] is True
    assert Decimal(body["stored_quantity"]) == Decimal(body["history_quantity"])


class TestManualMovements:
    async def test_stock_in_then_out(self, client, auth_headers, create_product):
        product = await create_product()

        response = await client.post(
            "/admin/inventory/stock-in",
            json={"product_id": product["id"], "quantity": "10"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert Decimal(response.json()["quantity"]) == Decimal("10")

        response = await client.post(
            "/admin/inventory/stock-out",
            json={"product_id": product["id"], "quantity": "4"},
            headers=auth_headers,
        )
        assert response.status_code == 201

        detail = await stock_of(client, auth_headers, product["id"])
        assert Decimal(detail["quantity"]) == Decimal("6")
        assert [h["type"] for h in detail["history"]].count("stock_in") == 1
        assert len(detail["history"]) == 2
        await assert_consistent(client, auth_headers, product["id"])

    async def test_stock_out_cannot_go_negative(self, client, auth_headers, create_product):
        product = await create_product()
        await client.post(
            "/admin/inventory/stock-in",
            json={"product_id": product["id"], "quantity": "2"},
            headers=auth_headers,
        )

        response = await client.post(
            "/admin/inventory/stock-out",
            json={"product_id": product["id"], "quantity": "3"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["detail"]

        detail = await stock_of(client, auth_headers, product["id"])
        assert Decimal(detail["quantity"]) == Decimal("2")
        assert len(detail["history"]) == 1

    async def test_unknown_product(self, client, auth_headers):
        response = await client.post(
            "/admin/inventory/stock-in",
            json={"product_id": "00000000-0000-0000-0000-000000000001", "quantity": "1"},
            headers=auth_headers,
        )
        assert response.status_code == 422


class TestDocumentMovements:
    async def test_purchase_stocks_in(self, client, auth_headers, create_product, create_supplier, create_purchase):
        product = await create_product()
        supplier = await create_supplier()

        await create_purchase(supplier["vendor_id"], [
            {"product_id": product["id"], "quantity": "5", "rate": "30"},
            {"name": "Freight", "quantity": "1", "rate": "20"},
        ])

        detail = await stock_of(client, auth_headers, product["id"])
        assert Decimal(detail["quantity"]) == Decimal("5")
        assert detail["history"][0]["reference_type"] == "purchase"
        await assert_consistent(client, auth_headers, product["id"])

    async def test_purchase_item_change_moves_the_difference(
        self, client, auth_headers, create_product, create_supplier, create_purchase
    ):
        product = await create_product()
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [
            {"product_id": product["id"], "quantity": "5", "rate": "30"},
        ])

        response = await client.put(
            f"/admin/purchases/{purchase['id']}",
            data=form({"items": [{"product_id": product["id"], "quantity": "3", "rate": "30"}]}),
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text

        detail = await stock_of(client, auth_headers, product["id"])
        assert Decimal(detail["quantity"]) == Decimal("3")
        await assert_consistent(client, auth_headers, product["id"])

    async def test_debit_note_approval_stocks_out_once(
        self, client, auth_headers, create_product, create_supplier, create_purchase
    ):
        product = await create_product()
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [
            {"product_id": product["id"], "quantity": "5", "rate": "30"},
        ])

        response = await client.post("/admin/debit-notes", json={
            "purchase_id": purchase["id"],
            "debit_note_date": "2025-03-10",
            "items": [{"product_id": product["id"], "quantity": "2", "rate": "30", "reason": "Damaged"}],
        }, headers=auth_headers)
        assert response.status_code == 201, response.text
        note = response.json()
        assert note["status"] == "draft"
        assert note["vendor_id"] == supplier["vendor_id"]

        for _ in range(2):
            response = await client.patch(
                f"/admin/debit-notes/{note['id']}/status",
                json={"status": "approved"},
                headers=auth_headers,
            )
            assert response.status_code == 200

        detail = await stock_of(client, auth_headers, product["id"])
        assert Decimal(detail["quantity"]) == Decimal("3")
        await assert_consistent(client, auth_headers, product["id"])

        response = await client.patch(
            f"/admin/debit-notes/{note['id']}/status",
            json={"status": "rejected"},
            headers=auth_headers,
        )
        assert response.status_code == 400
