"""Dropdown feeds for the product form: active rows as {id, name}."""
from typing import List

from fastapi import APIRouter

from app.api.deps import DB, CurrentUser
from app.models.brand import Brand
from app.models.category import Category
from app.models.tax import TaxRate
from app.models.unit import Unit
from app.schemas.base import LookupItem
from app.services.product_service import ProductService

router = APIRouter(tags=["Lookups"])


@router.get("/product-categories", response_model=List[LookupItem])
async def category_lookup(db: DB, current_user: CurrentUser):
    return [LookupItem.model_validate(c) for c in await ProductService(db).get_lookup(Category)]


@router.get("/product-brands", response_model=List[LookupItem])
async def brand_lookup(db: DB, current_user: CurrentUser):
    return [LookupItem.model_validate(b) for b in await ProductService(db).get_lookup(Brand)]


@router.get("/product-units", response_model=List[LookupItem])
async def unit_lookup(db: DB, current_user: CurrentUser):
    return [LookupItem.model_validate(u) for u in await ProductService(db).get_lookup(Unit)]


@router.get("/product-taxes", response_model=List[LookupItem])
async def tax_lookup(db: DB, current_user: CurrentUser):
    return [LookupItem.model_validate(t) for t in await ProductService(db).get_lookup(TaxRate)]
