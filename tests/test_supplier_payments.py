"""Supplier payments against purchases."""
from decimal import Decimal

from .conftest import form


async def pay(client, headers, purchase_id, amount, **extra):
    payload = {
        "purchase_id": purchase_id,
        "payment_date": "2025-03-05",
        "payment_mode": "CASH",
        "amount": amount,
    }
    payload.update(extra)
    return await client.post("/admin/supplier-payments", data=form(payload), headers=headers)


class TestSupplierPayments:
    async def test_payments_move_purchase_status(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [{"name": "Steel", "quantity": "10", "rate": "30"}])
        assert purchase["status"] == "pending"
        assert purchase["purchase_number"] == "PUR-000001"

        response = await pay(client, auth_headers, purchase["id"], "100")
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["payment"]["payment_number"] == "PAY-000001"
        assert body["purchase_status"] == "partially_paid"
        assert Decimal(body["purchase_balance_amount"]) == Decimal("200.00")
        assert Decimal(body["payment"]["due_amount"]) == Decimal("200.00")

        response = await pay(client, auth_headers, purchase["id"], "200")
        assert response.json()["purchase_status"] == "paid"

    async def test_payment_above_balance_is_refused(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [{"name": "Steel", "quantity": "1", "rate": "50"}])

        response = await pay(client, auth_headers, purchase["id"], "50.01")
        assert response.status_code == 400

        response = await client.get(f"/admin/purchases/{purchase['id']}", headers=auth_headers)
        assert response.json()["status"] == "pending"

    async def test_pending_payment_counts_toward_paid(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [{"name": "Steel", "quantity": "1", "rate": "50"}])

        response = await pay(client, auth_headers, purchase["id"], "50", status="pending")
        assert response.json()["purchase_status"] == "paid"

    async def test_delete_reverses_payment(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [{"name": "Steel", "quantity": "1", "rate": "50"}])
        payment = (await pay(client, auth_headers, purchase["id"], "50")).json()["payment"]

        response = await client.delete(f"/admin/supplier-payments/{payment['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["purchase_status"] == "pending"
        assert Decimal(response.json()["purchase_paid_amount"]) == Decimal("0")

        response = await client.get("/admin/supplier-payments", headers=auth_headers)
        assert response.json()["total"] == 0

    async def test_attachment_is_stored(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [{"name": "Steel", "quantity": "1", "rate": "50"}])

        response = await client.post(
            "/admin/supplier-payments",
            data=form({
                "purchase_id": purchase["id"],
                "payment_date": "2025-03-05",
                "payment_mode": "BANK_TRANSFER",
                "amount": "10",
            }),
            files={"attachment": ("receipt.pdf", b"%PDF-1.4 receipt", "application/pdf")},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        assert response.json()["payment"]["attachment"].startswith("payments/")


class TestPurchaseRules:
    async def test_vendor_must_be_a_supplier(self, client, auth_headers, owner):
        response = await client.post("/admin/purchases", data=form({
            "vendor_id": owner["user"]["id"],
            "purchase_date": "2025-03-01",
            "items": [{"name": "Steel", "quantity": "1", "rate": "50"}],
        }), headers=auth_headers)
        assert response.status_code == 400

    async def test_purchase_order_converts_once(self, client, auth_headers, create_supplier, create_product):
        supplier = await create_supplier()
        product = await create_product()

        response = await client.post("/admin/purchase-orders", data=form({
            "vendor_id": supplier["vendor_id"],
            "po_date": "2025-03-01",
            "items": [{"product_id": product["id"], "quantity": "4", "rate": "30"}],
        }), headers=auth_headers)
        assert response.status_code == 201, response.text
        order = response.json()
        assert order["po_number"] == "PO-000001"
        assert order["status"] == "NEW"

        response = await client.post(f"/admin/purchase-orders/{order['id']}/convert", json={}, headers=auth_headers)
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["purchase_order"]["status"] == "CONVERTED"
        assert body["purchase"]["purchase_number"] == "PUR-000001"
        assert Decimal(body["purchase"]["total_amount"]) == Decimal("120.00")

        response = await client.post(f"/admin/purchase-orders/{order['id']}/convert", json={}, headers=auth_headers)
        assert response.status_code == 400

        response = await client.get(f"/admin/inventory/{product['id']}", headers=auth_headers)
        assert Decimal(response.json()["quantity"]) == Decimal("4")

    async def test_paid_status_cannot_be_set_by_hand(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [{"name": "Steel", "quantity": "1", "rate": "50"}])

        response = await client.put(
            f"/admin/purchases/{purchase['id']}",
            data=form({"status": "paid"}),
            headers=auth_headers,
        )
        assert response.status_code == 422

        response = await client.get(f"/admin/purchases/{purchase['id']}", headers=auth_headers)
        assert response.json()["status"] == "pending"
        assert Decimal(response.json()["balance_amount"]) == Decimal("50.00")

    async def test_cancel_then_reinstate_follows_payments(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [{"name": "Steel", "quantity": "1", "rate": "50"}])
        await pay(client, auth_headers, purchase["id"], "20")

        response = await client.put(
            f"/admin/purchases/{purchase['id']}",
            data=form({"status": "cancelled"}),
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "cancelled"

        response = await client.put(
            f"/admin/purchases/{purchase['id']}",
            data=form({"status": "pending"}),
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "partially_paid"

    async def test_required_field_cannot_be_cleared(self, client, auth_headers, create_supplier, create_purchase):
        supplier = await create_supplier()
        purchase = await create_purchase(supplier["vendor_id"], [{"name": "Steel", "quantity": "1", "rate": "50"}])

        response = await client.put(
            f"/admin/purchases/{purchase['id']}",
            data=form({"vendor_id": None}),
            headers=auth_headers,
        )
        assert response.status_code == 422
        assert response.json()["detail"][0]["loc"][:2] == ["body", "data"]

        response = await client.put(
            f"/admin/purchases/{purchase['id']}",
            data=form({"notes": None}),
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["vendor_id"] == supplier["vendor_id"]
