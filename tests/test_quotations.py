"""Quotations: numbering, conversion into invoices and soft delete."""
from decimal import Decimal

from .conftest import form


async def create_quotation(client, headers, customer_id, **overrides):
    payload = {
        "customer_id": customer_id,
        "quotation_date": "2025-03-01",
        "expiry_date": "2025-03-31",
        "items": [
            {"name": "Design", "quantity": "2", "rate": "100"},
            {"name": "Hosting", "quantity": "1", "rate": "50", "tax": "9.00"},
        ],
    }
    payload.update(overrides)
    response = await client.post("/admin/quotations", data=form(payload), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def invoice_count(client, headers):
    response = await client.get("/admin/invoices", headers=headers)
    return response.json()["total"]


class TestCreateQuotation:
    async def test_numbering_and_totals(self, client, auth_headers, create_customer):
        customer = await create_customer()
        quotation = await create_quotation(client, auth_headers, customer["id"])

        assert quotation["quotation_number"] == "QT-000001"
        assert quotation["status"] == "draft"
        assert Decimal(quotation["sub_total"]) == Decimal("250.00")
        assert Decimal(quotation["total_tax"]) == Decimal("9.00")
        assert Decimal(quotation["grand_total"]) == Decimal("259.00")

        second = await create_quotation(client, auth_headers, customer["id"])
        assert second["quotation_number"] == "QT-000002"

    async def test_expiry_before_quotation_date(self, client, auth_headers, create_customer):
        customer = await create_customer()
        response = await client.post("/admin/quotations", data=form({
            "customer_id": customer["id"],
            "quotation_date": "2025-03-10",
            "expiry_date": "2025-03-01",
            "items": [{"name": "X", "quantity": "1", "rate": "1"}],
        }), headers=auth_headers)
        assert response.status_code == 422


class TestConvertToInvoice:
    async def test_creates_draft_invoice_and_marks_quotation(self, client, auth_headers, create_customer):
        customer = await create_customer()
        quotation = await create_quotation(client, auth_headers, customer["id"])

        response = await client.post(
            f"/admin/quotations/{quotation['id']}/convert-to-invoice",
            json={"invoice_date": "2025-03-10", "due_date": "2025-03-25"},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        body = response.json()

        invoice = body["invoice"]
        assert invoice["invoice_number"] == "INV-000001"
        assert invoice["status"] == "DRAFT"
        assert invoice["customer_id"] == customer["id"]
        assert invoice["reference_no"] == "QT-000001"
        assert Decimal(invoice["total_amount"]) == Decimal("259.00")
        assert Decimal(invoice["balance_amount"]) == Decimal("259.00")
        assert len(invoice["items"]) == 2

        assert body["quotation"]["status"] == "converted"
        assert body["quotation"]["converted_invoice_id"] == invoice["id"]

    async def test_second_conversion_is_refused(self, client, auth_headers, create_customer):
        customer = await create_customer()
        quotation = await create_quotation(client, auth_headers, customer["id"])

        response = await client.post(
            f"/admin/quotations/{quotation['id']}/convert-to-invoice", json={}, headers=auth_headers,
        )
        assert response.status_code == 201

        response = await client.post(
            f"/admin/quotations/{quotation['id']}/convert-to-invoice", json={}, headers=auth_headers,
        )
        assert response.status_code == 400
        assert await invoice_count(client, auth_headers) == 1

    async def test_deleted_quotation_cannot_be_converted(self, client, auth_headers, create_customer):
        customer = await create_customer()
        quotation = await create_quotation(client, auth_headers, customer["id"])
        await client.delete(f"/admin/quotations/{quotation['id']}", headers=auth_headers)

        response = await client.post(
            f"/admin/quotations/{quotation['id']}/convert-to-invoice", json={}, headers=auth_headers,
        )
        assert response.status_code == 404
        assert await invoice_count(client, auth_headers) == 0


class TestQuotationSoftDelete:
    async def test_deleted_quotation_leaves_lists_but_stays_readable(self, client, auth_headers, create_customer):
        customer = await create_customer()
        kept = await create_quotation(client, auth_headers, customer["id"])
        deleted = await create_quotation(client, auth_headers, customer["id"])

        response = await client.delete(f"/admin/quotations/{deleted['id']}", headers=auth_headers)
        assert response.status_code == 200

        response = await client.get("/admin/quotations", headers=auth_headers)
        assert [q["id"] for q in response.json()["items"]] == [kept["id"]]

        response = await client.get(f"/admin/quotations/{deleted['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["is_deleted"] is True

        response = await client.delete(f"/admin/quotations/{deleted['id']}", headers=auth_headers)
        assert response.status_code == 404


class TestFormattedQuotation:
    async def test_detail_and_list(self, client, auth_headers, create_customer):
        customer = await create_customer()
        quotation = await create_quotation(client, auth_headers, customer["id"])

        response = await client.get(f"/admin/quotations/{quotation['id']}/formatted", headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["quotation_number"] == "QT-000001"
        assert body["quotation_date"] == "01, Mar 2025"
        assert body["expiry_date"] == "31, Mar 2025"
        assert body["customer"]["name"] == "Acme Traders"
        assert body["signature"] is None

        response = await client.get("/admin/quotations/formatted", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["items"][0]["customer"]["email"] == "billing@example.com"
