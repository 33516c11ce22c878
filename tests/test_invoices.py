"""Invoice lifecycle: numbering, totals, payments and soft delete."""
from decimal import Decimal

from .conftest import form


class TestCreateInvoice:
    async def test_first_invoice(self, client, auth_headers, owner, create_customer, create_invoice):
        customer = await create_customer()
        invoice = await create_invoice(customer["id"])

        assert invoice["invoice_number"] == "INV-000001"
        assert invoice["status"] == "DRAFT"
        assert Decimal(invoice["taxable_amount"]) == Decimal("200.00")
        assert Decimal(invoice["vat"]) == Decimal("18.00")
        assert Decimal(invoice["total_amount"]) == Decimal("218.00")
        assert Decimal(invoice["balance_amount"]) == Decimal("218.00")
        assert Decimal(invoice["paid_amount"]) == Decimal("0")
        assert invoice["items"][0]["amount"] == "200.00"
        assert invoice["bill_from"] == owner["user"]["id"]
        assert invoice["bill_to"] == customer["id"]

        second = await create_invoice(customer["id"])
        assert second["invoice_number"] == "INV-000002"

    async def test_client_totals_are_kept(self, client, auth_headers, create_customer, create_invoice):
        customer = await create_customer()
        invoice = await create_invoice(customer["id"], total_amount="210.00")

        assert Decimal(invoice["total_amount"]) == Decimal("210.00")
        assert Decimal(invoice["computed_totals"]["total_amount"]) == Decimal("218.00")

    async def test_unknown_customer(self, client, auth_headers):
        response = await client.post("/admin/invoices", data=form({
            "customer_id": "00000000-0000-0000-0000-000000000001",
            "invoice_date": "2025-03-05",
            "due_date": "2025-03-20",
            "payment_method": "Cash",
            "items": [{"name": "X", "quantity": "1", "rate": "1"}],
        }), headers=auth_headers)
        assert response.status_code == 404

    async def test_due_date_before_invoice_date(self, client, auth_headers, create_customer):
        customer = await create_customer()
        response = await client.post("/admin/invoices", data=form({
            "customer_id": customer["id"],
            "invoice_date": "2025-03-05",
            "due_date": "2025-03-01",
            "payment_method": "Cash",
            "items": [{"name": "X", "quantity": "1", "rate": "1"}],
        }), headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["detail"][0]["loc"][:2] == ["body", "data"]

    async def test_e_signature_requires_image(self, client, auth_headers, create_customer):
        customer = await create_customer()
        response = await client.post("/admin/invoices", data=form({
            "customer_id": customer["id"],
            "invoice_date": "2025-03-05",
            "due_date": "2025-03-20",
            "payment_method": "Cash",
            "sign_type": "eSignature",
            "signature_name": "R. Iyer",
            "items": [{"name": "X", "quantity": "1", "rate": "1"}],
        }), headers=auth_headers)
        assert response.status_code == 400

    async def test_update_cannot_null_required_fields(self, client, auth_headers, create_customer, create_invoice):
        customer = await create_customer()
        invoice = await create_invoice(customer["id"])

        response = await client.put(
            f"/admin/invoices/{invoice['id']}",
            data=form({"customer_id": None, "payment_method": None}),
            headers=auth_headers,
        )
        assert response.status_code == 422
        assert "customer_id, payment_method cannot be null" in response.json()["detail"][0]["msg"]


class TestInvoicePayments:
    async def test_partial_then_full_payment(self, client, auth_headers, create_customer, create_invoice):
        customer = await create_customer()
        invoice = await create_invoice(customer["id"])
        url = f"/admin/invoices/{invoice['id']}/payments"

        response = await client.post(url, json={"amount": "100", "payment_method": "Cash"}, headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["invoice_status"] == "PARTIALLY_PAID"
        assert Decimal(body["balance_amount"]) == Decimal("118.00")

        response = await client.post(url, json={"amount": "118", "payment_method": "UPI"}, headers=auth_headers)
        assert response.json()["invoice_status"] == "PAID"
        assert Decimal(response.json()["balance_amount"]) == Decimal("0")

        response = await client.get(url, headers=auth_headers)
        assert len(response.json()) == 2

    async def test_overpayment_is_refused(self, client, auth_headers, create_customer, create_invoice):
        customer = await create_customer()
        invoice = await create_invoice(customer["id"])

        response = await client.post(
            f"/admin/invoices/{invoice['id']}/payments",
            json={"amount": "500", "payment_method": "Cash"},
            headers=auth_headers,
        )
        assert response.status_code == 400

        response = await client.get(f"/admin/invoices/{invoice['id']}", headers=auth_headers)
        assert Decimal(response.json()["paid_amount"]) == Decimal("0")


class TestSoftDelete:
    async def test_deleted_invoice_leaves_lists_but_stays_readable(
        self, client, auth_headers, create_customer, create_invoice
    ):
        customer = await create_customer()
        kept = await create_invoice(customer["id"])
        deleted = await create_invoice(customer["id"])

        response = await client.delete(f"/admin/invoices/{deleted['id']}", headers=auth_headers)
        assert response.status_code == 200

        response = await client.get("/admin/invoices", headers=auth_headers)
        assert [i["id"] for i in response.json()["items"]] == [kept["id"]]
        assert response.json()["total"] == 1

        response = await client.get(f"/admin/invoices/{deleted['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["is_deleted"] is True

        response = await client.delete(f"/admin/invoices/{deleted['id']}", headers=auth_headers)
        assert response.status_code == 404

    async def test_deleted_customer(self, client, auth_headers, create_customer):
        customer = await create_customer()
        await client.delete(f"/admin/customers/{customer['id']}", headers=auth_headers)

        response = await client.get("/admin/customers", headers=auth_headers)
        assert response.json()["total"] == 0

        response = await client.get(f"/admin/customers/{customer['id']}", headers=auth_headers)
        assert response.json()["is_deleted"] is True


class TestSearch:
    async def test_wildcards_in_search_match_literally(self, client, auth_headers, create_customer):
        await create_customer(name="10% Off Stores", email="deals@example.com")
        await create_customer(name="Other Traders", email="other@example.com")
        await create_customer(name="North_East Mart", email="ne@example.com")

        response = await client.get("/admin/customers", params={"search": "%"}, headers=auth_headers)
        assert [c["name"] for c in response.json()["items"]] == ["10% Off Stores"]

        response = await client.get("/admin/customers", params={"search": "o_her"}, headers=auth_headers)
        assert response.json()["total"] == 0

        response = await client.get("/admin/customers", params={"search": "th_east"}, headers=auth_headers)
        assert [c["name"] for c in response.json()["items"]] == ["North_East Mart"]


class TestOwnership:
    async def test_other_owner_cannot_see_invoice(self, client, auth_headers, create_customer, create_invoice):
        customer = await create_customer()
        invoice = await create_invoice(customer["id"])

        other = await client.post("/auth/register", json={
            "first_name": "Other", "email": "other@example.com", "password": "secret123",
        })
        headers = {"Authorization": f"Bearer {other.json()['access_token']}"}

        response = await client.get(f"/admin/invoices/{invoice['id']}", headers=headers)
        assert response.status_code == 404


async def test_formatted_invoice(client, auth_headers, create_customer, create_invoice):
    customer = await create_customer()
    invoice = await create_invoice(customer["id"])

    response = await client.get(f"/admin/invoices/{invoice['id']}/formatted", headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["invoice_date"] == "05, Mar 2025"
    assert body["due_date"] == "20, Mar 2025"
    assert body["customer"]["name"] == "Acme Traders"
    assert body["signature"] is None
