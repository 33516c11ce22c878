"""Recurring invoice rollover, from the daily job and on demand."""
from datetime import date, timedelta
from decimal import Decimal

from app.jobs.recurring_invoices import run_recurring_invoice_job

from .conftest import form, register


async def recurring_parent(create_customer, create_invoice, **overrides):
    customer = await create_customer()
    payload = {"is_recurring": True, "recurring": "monthly", "recurring_duration": 1}
    payload.update(overrides)
    return await create_invoice(customer["id"], **payload)


class TestRecurringJob:
    async def test_rolls_due_invoice_once_per_day(self, client, auth_headers, db_session, create_customer, create_invoice):
        parent = await recurring_parent(create_customer, create_invoice)
        assert parent["next_recurring_date"] == "2025-04-05"

        summary = await run_recurring_invoice_job(db_session, today=date(2025, 4, 5))
        assert summary["created"] == 1
        assert summary["errors"] == []

        again = await run_recurring_invoice_job(db_session, today=date(2025, 4, 5))
        assert again["created"] == 0
        assert again["checked"] == 0

        response = await client.get(f"/admin/recurring-invoices/{parent['id']}/children", headers=auth_headers)
        children = response.json()["items"]
        assert len(children) == 1

        child = children[0]
        assert child["invoice_number"] == "INV-000002"
        assert child["status"] == "DRAFT"
        assert child["invoice_date"] == "2025-04-05"
        assert child["due_date"] == "2025-04-12"
        assert child["parent_invoice_id"] == parent["id"]
        assert child["is_recurring"] is False
        assert child["recurring"] == "monthly"
        assert child["next_recurring_date"] == "2025-05-05"
        assert Decimal(child["total_amount"]) == Decimal(parent["total_amount"])
        assert Decimal(child["paid_amount"]) == Decimal("0")

        response = await client.get(f"/admin/invoices/{parent['id']}", headers=auth_headers)
        assert response.json()["next_recurring_date"] == "2025-05-05"
        assert response.json()["last_rolled_on"] == "2025-04-05"

    async def test_not_yet_due(self, db_session, auth_headers, create_customer, create_invoice):
        await recurring_parent(create_customer, create_invoice)

        summary = await run_recurring_invoice_job(db_session, today=date(2025, 4, 4))
        assert summary["checked"] == 0
        assert summary["created"] == 0

    async def test_deleted_parent_is_ignored(self, client, auth_headers, db_session, create_customer, create_invoice):
        parent = await recurring_parent(create_customer, create_invoice)
        await client.delete(f"/admin/invoices/{parent['id']}", headers=auth_headers)

        summary = await run_recurring_invoice_job(db_session, today=date(2025, 4, 5))
        assert summary["created"] == 0

    async def test_lock_held_elsewhere_skips_run(self, db_session, auth_headers, create_customer, create_invoice):
        await recurring_parent(create_customer, create_invoice)

        from app.jobs.recurring_invoices import LOCK_NAME, claim_job_lock
        assert await claim_job_lock(db_session, LOCK_NAME, "other-host:1", ttl_minutes=30)

        summary = await run_recurring_invoice_job(db_session, today=date(2025, 4, 5), owner="this-host:2")
        assert summary["skipped_run"] is True
        assert summary["created"] == 0

    async def test_manual_run_endpoint(self, client, auth_headers, create_customer, create_invoice):
        await recurring_parent(create_customer, create_invoice, recurring="weekly", recurring_duration=2)

        response = await client.post(
            "/admin/jobs/recurring-invoices/run",
            params={"run_date": "2025-03-19"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["created"] == 1

    async def test_manual_run_only_touches_own_invoices(self, client, auth_headers, create_customer, create_invoice):
        parent = await recurring_parent(create_customer, create_invoice)

        other = await register(client, email="other@example.com", first_name="Other")
        other_headers = {"Authorization": f"Bearer {other['access_token']}"}

        response = await client.post(
            "/admin/jobs/recurring-invoices/run",
            params={"run_date": "2025-04-05"},
            headers=other_headers,
        )
        assert response.status_code == 200
        assert response.json()["checked"] == 0
        assert response.json()["created"] == 0

        response = await client.get(f"/admin/invoices/{parent['id']}", headers=auth_headers)
        assert response.json()["next_recurring_date"] == "2025-04-05"
        assert response.json()["last_rolled_on"] is None

    async def test_manual_run_rejects_future_date(self, client, auth_headers, create_customer, create_invoice):
        await recurring_parent(create_customer, create_invoice)
        tomorrow = date.today() + timedelta(days=1)

        response = await client.post(
            "/admin/jobs/recurring-invoices/run",
            params={"run_date": tomorrow.isoformat()},
            headers=auth_headers,
        )
        assert response.status_code == 400


class TestRollNow:
    async def test_second_roll_same_day_is_a_no_op(self, client, auth_headers, create_customer, create_invoice):
        parent = await recurring_parent(create_customer, create_invoice)

        response = await client.post(
            "/admin/recurring-invoices",
            json={"parent_invoice_id": parent["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        first = response.json()
        assert first["created"] is True
        assert first["invoice"]["parent_invoice_id"] == parent["id"]
        assert first["invoice"]["invoice_date"] == date.today().isoformat()

        response = await client.post(
            "/admin/recurring-invoices",
            json={"parent_invoice_id": parent["id"]},
            headers=auth_headers,
        )
        second = response.json()
        assert second["created"] is False
        assert second["reason"] == "already rolled today"
        assert second["invoice"] is None

    async def test_non_recurring_invoice(self, client, auth_headers, create_customer, create_invoice):
        customer = await create_customer()
        invoice = await create_invoice(customer["id"])

        response = await client.post(
            "/admin/recurring-invoices",
            json={"parent_invoice_id": invoice["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_listing_counts_children(self, client, auth_headers, create_customer, create_invoice):
        parent = await recurring_parent(create_customer, create_invoice)
        await client.post(
            "/admin/recurring-invoices",
            json={"parent_invoice_id": parent["id"]},
            headers=auth_headers,
        )

        response = await client.get("/admin/recurring-invoices", headers=auth_headers)
        items = response.json()["items"]
        assert [i["invoice_number"] for i in items] == ["INV-000001"]
        assert items[0]["children_count"] == 1


async def test_invoice_then_monthly_rollover(client, auth_headers, db_session, create_customer, create_invoice):
    customer = await create_customer()
    invoice = await create_invoice(customer["id"], items=[
        {"name": "Design", "quantity": "2", "rate": "100"},
        {"name": "Hosting", "quantity": "1", "rate": "50"},
    ])
    assert invoice["invoice_number"] == "INV-000001"
    assert Decimal(invoice["taxable_amount"]) == Decimal("250.00")
    assert Decimal(invoice["total_amount"]) == Decimal("250.00")

    response = await client.put(
        f"/admin/invoices/{invoice['id']}",
        data=form({"is_recurring": True, "recurring": "monthly", "recurring_duration": 1}),
        headers=auth_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["next_recurring_date"] == "2025-04-05"

    summary = await run_recurring_invoice_job(db_session, today=date(2025, 4, 20))
    assert summary["created"] == 1

    response = await client.get(f"/admin/recurring-invoices/{invoice['id']}/children", headers=auth_headers)
    [child] = response.json()["items"]
    assert child["parent_invoice_id"] == invoice["id"]
    assert child["next_recurring_date"] == "2025-05-20"
    assert Decimal(child["total_amount"]) == Decimal("250.00")

    response = await client.get(f"/admin/invoices/{invoice['id']}", headers=auth_headers)
    assert response.json()["next_recurring_date"] == "2025-05-20"
