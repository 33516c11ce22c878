from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.geography import City, Country, State


class GeographyService:
    """Country, state and city dropdowns. An unknown parent id gives an empty list."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _names(self, stmt) -> List[dict]:
        result = await self.db.execute(stmt)
        return [{"id": row.id, "name": row.name} for row in result.all()]

    async def get_countries(self) -> List[dict]:
        return await self._names(select(Country.id, Country.name).order_by(Country.name))

    async def get_states(self, country_id: int) -> List[dict]:
        return await self._names(
            select(State.id, State.name).where(State.country_id == country_id).order_by(State.name)
        )

    async def get_cities(self, state_id: int) -> List[dict]:
        return await self._names(
            select(City.id, City.name).where(City.state_id == state_id).order_by(City.name)
        )
