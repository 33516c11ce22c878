"""Address dropdowns: countries, the states of a country, the cities of a state."""
from typing import List

from fastapi import APIRouter

from app.api.deps import DB, CurrentUser
from app.schemas.geography import PlaceItem
from app.services.geography_service import GeographyService

router = APIRouter(tags=["Geography"])


@router.get("/countries", response_model=List[PlaceItem])
async def list_countries(db: DB, current_user: CurrentUser):
    return await GeographyService(db).get_countries()


@router.get("/states/{country_id}", response_model=List[PlaceItem])
async def list_states(country_id: int, db: DB, current_user: CurrentUser):
    return await GeographyService(db).get_states(country_id)


@router.get("/cities/{state_id}", response_model=List[PlaceItem])
async def list_cities(state_id: int, db: DB, current_user: CurrentUser):
    return await GeographyService(db).get_cities(state_id)
