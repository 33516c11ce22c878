"""Address dropdowns and email templates."""
import uuid

from app.models.geography import City, Country, State


async def seed_places(db_session):
    db_session.add_all([
        Country(id=101, name="India", iso2="IN", iso3="IND", phone_code="91", currency="INR"),
        Country(id=14, name="Australia", iso2="AU", iso3="AUS"),
    ])
    await db_session.flush()
    db_session.add_all([
        State(id=4035, name="Tamil Nadu", country_id=101, state_code="TN"),
        State(id=4008, name="Kerala", country_id=101, state_code="KL"),
        State(id=3907, name="Victoria", country_id=14),
    ])
    await db_session.flush()
    db_session.add_all([
        City(id=131517, name="Madurai", state_id=4035, country_id=101),
        City(id=131503, name="Chennai", state_id=4035, country_id=101),
        City(id=130000, name="Kochi", state_id=4008, country_id=101),
    ])
    await db_session.commit()


class TestPlaces:
    async def test_countries_by_name(self, client, auth_headers, db_session):
        await seed_places(db_session)
        response = await client.get("/admin/countries", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == [{"id": 14, "name": "Australia"}, {"id": 101, "name": "India"}]

    async def test_states_of_a_country(self, client, auth_headers, db_session):
        await seed_places(db_session)
        response = await client.get("/admin/states/101", headers=auth_headers)
        assert [s["name"] for s in response.json()] == ["Kerala", "Tamil Nadu"]

        response = await client.get("/admin/states/999", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == []

    async def test_cities_of_a_state(self, client, auth_headers, db_session):
        await seed_places(db_session)
        response = await client.get("/admin/cities/4035", headers=auth_headers)
        assert response.json() == [{"id": 131503, "name": "Chennai"}, {"id": 131517, "name": "Madurai"}]

    async def test_requires_login(self, client):
        response = await client.get("/admin/countries")
        assert response.status_code in (401, 403)


async def create_type(client, headers, slug="Invoice_Created"):
    response = await client.post("/admin/notification-types", json={
        "title": "Invoice created", "slug": slug,
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def create_template(client, headers, type_id, **overrides):
    payload = {
        "title": "New invoice",
        "notification_type_id": type_id,
        "subject": "Your invoice is ready",
        "sms_content": "Invoice ready",
    }
    payload.update(overrides)
    response = await client.post("/admin/email-templates", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestNotificationTypes:
    async def test_slug_is_lowercased_and_unique(self, client, auth_headers):
        ntype = await create_type(client, auth_headers)
        assert ntype["slug"] == "invoice_created"
        assert ntype["status"] is True

        response = await client.post("/admin/notification-types", json={
            "title": "Again", "slug": "INVOICE_CREATED",
        }, headers=auth_headers)
        assert response.status_code == 409

    async def test_type_in_use_cannot_be_deleted(self, client, auth_headers):
        ntype = await create_type(client, auth_headers)
        await create_template(client, auth_headers, ntype["id"])

        response = await client.delete(f"/admin/notification-types/{ntype['id']}", headers=auth_headers)
        assert response.status_code == 400


class TestEmailTemplates:
    async def test_create_carries_notification_type(self, client, auth_headers, owner):
        ntype = await create_type(client, auth_headers)
        template = await create_template(client, auth_headers, ntype["id"])

        assert template["status"] is True
        assert template["notification_type"]["slug"] == "invoice_created"
        assert template["created_by"] == owner["user"]["id"]

    async def test_unknown_notification_type(self, client, auth_headers):
        response = await client.post("/admin/email-templates", json={
            "title": "Orphan",
            "notification_type_id": str(uuid.uuid4()),
            "subject": "Hello",
        }, headers=auth_headers)
        assert response.status_code == 404

    async def test_list_newest_first(self, client, auth_headers):
        ntype = await create_type(client, auth_headers)
        first = await create_template(client, auth_headers, ntype["id"], title="First")
        second = await create_template(client, auth_headers, ntype["id"], title="Second")

        response = await client.get("/admin/email-templates", headers=auth_headers)
        body = response.json()
        assert body["total"] == 2
        assert [t["id"] for t in body["items"]] == [second["id"], first["id"]]
        assert body["items"][0]["notification_type"]["id"] == ntype["id"]

    async def test_update_and_delete(self, client, auth_headers):
        ntype = await create_type(client, auth_headers)
        template = await create_template(client, auth_headers, ntype["id"])

        response = await client.put(f"/admin/email-templates/{template['id']}", json={
            "subject": "Invoice {{invoice_number}}", "status": False,
        }, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["subject"] == "Invoice {{invoice_number}}"
        assert response.json()["status"] is False
        assert response.json()["sms_content"] == "Invoice ready"

        response = await client.put(f"/admin/email-templates/{template['id']}", json={
            "subject": None,
        }, headers=auth_headers)
        assert response.status_code == 422

        response = await client.delete(f"/admin/email-templates/{template['id']}", headers=auth_headers)
        assert response.status_code == 200

        response = await client.get(f"/admin/email-templates/{template['id']}", headers=auth_headers)
        assert response.status_code == 404
        response = await client.delete(f"/admin/email-templates/{template['id']}", headers=auth_headers)
        assert response.status_code == 404
