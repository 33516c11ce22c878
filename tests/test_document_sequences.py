"""Gap-free, unique document numbering."""
import asyncio

import pytest

from app.core.exceptions import NotFoundError
from app.database import async_session_factory
from app.services.document_sequence_service import DocumentSequenceService


async def issue(prefix):
    async with async_session_factory() as session:
        number = await DocumentSequenceService(session).get_next_number(prefix)
        await session.commit()
        return number


class TestNextNumber:
    async def test_numbers_are_sequential_per_prefix(self):
        assert await issue("INV") == "INV-000001"
        assert await issue("INV") == "INV-000002"
        assert await issue("PUR") == "PUR-000001"
        assert await issue("inv") == "INV-000003"

    async def test_unknown_prefix(self, db_session):
        with pytest.raises(NotFoundError):
            await DocumentSequenceService(db_session).get_next_number("XYZ")

    async def test_rollback_releases_the_number(self):
        async with async_session_factory() as session:
            assert await DocumentSequenceService(session).get_next_number("QT") == "QT-000001"
            await session.rollback()

        assert await issue("QT") == "QT-000001"

    async def test_concurrent_issues_never_collide(self):
        await issue("PAY")
        numbers = await asyncio.gather(*(issue("PAY") for _ in range(10)))

        assert len(set(numbers)) == 10
        assert sorted(numbers) == [f"PAY-{n:06d}" for n in range(2, 12)]


class TestPreview:
    async def test_preview_does_not_consume(self, client, auth_headers):
        response = await client.get("/admin/document-sequences/inv/preview", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"prefix": "INV", "next_number": "INV-000001", "current_number": 0}

        assert await issue("INV") == "INV-000001"

        response = await client.get("/admin/document-sequences/INV/preview", headers=auth_headers)
        assert response.json()["next_number"] == "INV-000002"
        assert response.json()["current_number"] == 1

    async def test_preview_unknown_prefix(self, client, auth_headers):
        response = await client.get("/admin/document-sequences/ABC/preview", headers=auth_headers)
        assert response.status_code == 404
