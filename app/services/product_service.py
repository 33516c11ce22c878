from decimal import Decimal
from typing import List, Optional, Tuple
import logging
import re
import uuid

from sqlalchemy import select, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, InvalidReferenceError, NotFoundError
from app.models.brand import Brand
from app.models.category import Category
from app.models.product import Product
from app.models.tax import TaxGroup, TaxRate
from app.models.unit import Unit
from app.schemas.brand import BrandCreate, BrandUpdate
from app.schemas.category import CategoryCreate, CategoryUpdate
from app.schemas.product import ProductCreate, ProductUpdate
from app.schemas.tax import TaxGroupCreate, TaxGroupUpdate, TaxRateCreate, TaxRateUpdate
from app.schemas.unit import UnitCreate, UnitUpdate
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "category"


class ProductService:
    """Service for the catalog: categories, brands, units, taxes and products."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _paginate(self, model, filters: list, order_by, skip: int, limit: int):
        stmt = select(model)
        if filters:
            stmt = stmt.where(and_(*filters))
        return await paginate(self.db, stmt.order_by(order_by), skip, limit)

    async def _get_or_404(self, model, obj_id: uuid.UUID, label: str):
        obj = await self.db.get(model, obj_id)
        if obj is None:
            raise NotFoundError(f"{label} not found")
        return obj

    async def _exists(self, *criteria) -> bool:
        result = await self.db.execute(select(func.count()).where(*criteria))
        return result.scalar() > 0

    async def _ensure_not_referenced(self, column, obj_id: uuid.UUID, label: str):
        if await self._exists(column == obj_id):
            raise ConflictError(f"{label} is used by one or more products and cannot be deleted")

    async def get_lookup(self, model) -> list:
        """Active rows as dropdown entries."""
        result = await self.db.execute(
            select(model).where(model.status == True).order_by(model.name)  # noqa: E712
        )
        return list(result.scalars().all())

    # ==================== CATEGORY METHODS ====================

    async def get_categories(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Category], int]:
        filters = []
        if search:
            search_filter = like(search)
            filters.append(or_(
                Category.name.ilike(search_filter, escape=LIKE_ESCAPE),
                Category.slug.ilike(search_filter, escape=LIKE_ESCAPE),
            ))
        return await self._paginate(Category, filters, Category.name, skip, limit)

    async def get_category(self, category_id: uuid.UUID) -> Category:
        return await self._get_or_404(Category, category_id, "Category")

    async def _unique_slug(self, base: str, exclude_id: Optional[uuid.UUID] = None) -> str:
        slug, counter = base, 1
        while True:
            criteria = [Category.slug == slug]
            if exclude_id:
                criteria.append(Category.id != exclude_id)
            if not await self._exists(*criteria):
                return slug
            counter += 1
            slug = f"{base}-{counter}"

    async def create_category(
        self,
        data: CategoryCreate,
        image: Optional[str],
        created_by: uuid.UUID
    ) -> Category:
        if data.slug:
            slug = slugify(data.slug)
            if await self._exists(Category.slug == slug):
                raise ConflictError(f"Category slug '{slug}' already exists")
        else:
            slug = await self._unique_slug(slugify(data.name))

        category = Category(
            name=data.name,
            slug=slug,
            image=image,
            status=data.status,
            created_by=created_by,
        )
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def update_category(
        self,
        category_id: uuid.UUID,
        data: CategoryUpdate,
        image: Optional[str] = None
    ) -> Tuple[Category, Optional[str]]:
        """Returns (category, replaced_image_path)."""
        category = await self.get_category(category_id)
        update_data = data.model_dump(exclude_unset=True, exclude={"image_removed"})

        if "slug" in update_data and update_data["slug"]:
            slug = slugify(update_data["slug"])
            if await self._exists(Category.slug == slug, Category.id != category.id):
                raise ConflictError(f"Category slug '{slug}' already exists")
            update_data["slug"] = slug

        for field, value in update_data.items():
            setattr(category, field, value)

        replaced = None
        if image or data.image_removed:
            replaced = category.image
            category.image = image

        await self.db.flush()
        await self.db.refresh(category)
        return category, replaced

    async def delete_category(self, category_id: uuid.UUID) -> Optional[str]:
        """Hard delete; returns the image path to remove."""
        category = await self.get_category(category_id)
        await self._ensure_not_referenced(Product.category_id, category.id, "Category")
        image = category.image
        await self.db.delete(category)
        await self.db.flush()
        return image

    # ==================== BRAND METHODS ====================

    async def get_brands(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Brand], int]:
        filters = []
        if search:
            filters.append(Brand.name.ilike(like(search), escape=LIKE_ESCAPE))
        return await self._paginate(Brand, filters, Brand.name, skip, limit)

    async def get_brand(self, brand_id: uuid.UUID) -> Brand:
        return await self._get_or_404(Brand, brand_id, "Brand")

    async def create_brand(self, data: BrandCreate, image: Optional[str], created_by: uuid.UUID) -> Brand:
        if await self._exists(func.lower(Brand.name) == data.name.lower()):
            raise ConflictError(f"Brand '{data.name}' already exists")

        brand = Brand(name=data.name, image=image, status=data.status, created_by=created_by)
        self.db.add(brand)
        await self.db.flush()
        await self.db.refresh(brand)
        return brand

    async def update_brand(
        self,
        brand_id: uuid.UUID,
        data: BrandUpdate,
        image: Optional[str] = None
    ) -> Tuple[Brand, Optional[str]]:
        brand = await self.get_brand(brand_id)
        update_data = data.model_dump(exclude_unset=True, exclude={"image_removed"})

        if update_data.get("name") and await self._exists(
            func.lower(Brand.name) == update_data["name"].lower(), Brand.id != brand.id
        ):
            raise ConflictError(f"Brand '{update_data['name']}' already exists")

        for field, value in update_data.items():
            setattr(brand, field, value)

        replaced = None
        if image or data.image_removed:
            replaced = brand.image
            brand.image = image

        await self.db.flush()
        await self.db.refresh(brand)
        return brand, replaced

    async def delete_brand(self, brand_id: uuid.UUID) -> Optional[str]:
        brand = await self.get_brand(brand_id)
        await self._ensure_not_referenced(Product.brand_id, brand.id, "Brand")
        image = brand.image
        await self.db.delete(brand)
        await self.db.flush()
        return image

    # ==================== UNIT METHODS ====================

    async def get_units(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Unit], int]:
        filters = []
        if search:
            search_filter = like(search)
            filters.append(or_(
                Unit.name.ilike(search_filter, escape=LIKE_ESCAPE),
                Unit.short_name.ilike(search_filter, escape=LIKE_ESCAPE),
            ))
        return await self._paginate(Unit, filters, Unit.name, skip, limit)

    async def get_unit(self, unit_id: uuid.UUID) -> Unit:
        return await self._get_or_404(Unit, unit_id, "Unit")

    async def create_unit(self, data: UnitCreate, created_by: uuid.UUID) -> Unit:
        if await self._exists(func.lower(Unit.name) == data.name.lower()):
            raise ConflictError(f"Unit '{data.name}' already exists")

        unit = Unit(**data.model_dump(), created_by=created_by)
        self.db.add(unit)
        await self.db.flush()
        await self.db.refresh(unit)
        return unit

    async def update_unit(self, unit_id: uuid.UUID, data: UnitUpdate) -> Unit:
        unit = await self.get_unit(unit_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("name") and await self._exists(
            func.lower(Unit.name) == update_data["name"].lower(), Unit.id != unit.id
        ):
            raise ConflictError(f"Unit '{update_data['name']}' already exists")

        for field, value in update_data.items():
            setattr(unit, field, value)
        await self.db.flush()
        await self.db.refresh(unit)
        return unit

    async def delete_unit(self, unit_id: uuid.UUID) -> None:
        unit = await self.get_unit(unit_id)
        await self._ensure_not_referenced(Product.unit_id, unit.id, "Unit")
        await self.db.delete(unit)
        await self.db.flush()

    # ==================== TAX METHODS ====================

    async def get_tax_rates(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[TaxRate], int]:
        filters = []
        if search:
            filters.append(TaxRate.name.ilike(like(search), escape=LIKE_ESCAPE))
        return await self._paginate(TaxRate, filters, TaxRate.name, skip, limit)

    async def get_tax_rate(self, tax_id: uuid.UUID) -> TaxRate:
        return await self._get_or_404(TaxRate, tax_id, "Tax rate")

    async def create_tax_rate(self, data: TaxRateCreate, created_by: uuid.UUID) -> TaxRate:
        tax = TaxRate(**data.model_dump(), created_by=created_by)
        self.db.add(tax)
        await self.db.flush()
        await self.db.refresh(tax)
        return tax

    async def update_tax_rate(self, tax_id: uuid.UUID, data: TaxRateUpdate) -> TaxRate:
        tax = await self.get_tax_rate(tax_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(tax, field, value)
        await self.db.flush()
        await self.db.refresh(tax)
        return tax

    async def delete_tax_rate(self, tax_id: uuid.UUID) -> None:
        tax = await self.get_tax_rate(tax_id)
        await self._ensure_not_referenced(Product.tax_id, tax.id, "Tax rate")
        await self.db.delete(tax)
        await self.db.flush()

    async def _validate_tax_rate_ids(self, ids: List[uuid.UUID]) -> List[TaxRate]:
        unique_ids = list(dict.fromkeys(ids))
        result = await self.db.execute(select(TaxRate).where(TaxRate.id.in_(unique_ids)))
        rates = list(result.scalars().all())
        if len(rates) != len(unique_ids):
            found = {r.id for r in rates}
            missing = [str(i) for i in unique_ids if i not in found]
            raise InvalidReferenceError(f"Unknown tax rate ids: {', '.join(missing)}")
        return rates

    async def group_total_rate(self, group: TaxGroup) -> Decimal:
        """Sum of the member rates."""
        ids = [uuid.UUID(str(i)) for i in (group.tax_rate_ids or [])]
        if not ids:
            return Decimal("0")
        result = await self.db.execute(select(func.coalesce(func.sum(TaxRate.rate), 0)).where(TaxRate.id.in_(ids)))
        return Decimal(str(result.scalar()))

    async def get_tax_groups(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[TaxGroup], int]:
        filters = []
        if search:
            filters.append(TaxGroup.name.ilike(like(search), escape=LIKE_ESCAPE))
        return await self._paginate(TaxGroup, filters, TaxGroup.name, skip, limit)

    async def get_tax_group(self, group_id: uuid.UUID) -> TaxGroup:
        return await self._get_or_404(TaxGroup, group_id, "Tax group")

    async def create_tax_group(self, data: TaxGroupCreate, created_by: uuid.UUID) -> TaxGroup:
        rates = await self._validate_tax_rate_ids(data.tax_rate_ids)
        group = TaxGroup(
            name=data.name,
            tax_rate_ids=[str(r.id) for r in rates],
            status=data.status,
            created_by=created_by,
        )
        self.db.add(group)
        await self.db.flush()
        await self.db.refresh(group)
        return group

    async def update_tax_group(self, group_id: uuid.UUID, data: TaxGroupUpdate) -> TaxGroup:
        group = await self.get_tax_group(group_id)
        update_data = data.model_dump(exclude_unset=True)
        if "tax_rate_ids" in update_data:
            rates = await self._validate_tax_rate_ids(data.tax_rate_ids)
            update_data["tax_rate_ids"] = [str(r.id) for r in rates]
        for field, value in update_data.items():
            setattr(group, field, value)
        await self.db.flush()
        await self.db.refresh(group)
        return group

    async def delete_tax_group(self, group_id: uuid.UUID) -> None:
        group = await self.get_tax_group(group_id)
        await self.db.delete(group)
        await self.db.flush()

    # ==================== PRODUCT METHODS ====================

    async def _validate_product_refs(self, data: dict) -> None:
        checks = (
            ("category_id", Category, "category"),
            ("brand_id", Brand, "brand"),
            ("unit_id", Unit, "unit"),
            ("tax_id", TaxRate, "tax"),
        )
        for field, model, label in checks:
            value = data.get(field)
            if value is not None and await self.db.get(model, value) is None:
                raise InvalidReferenceError(f"Invalid {label} id: {value}")

    async def get_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[uuid.UUID] = None,
        brand_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Product], int]:
        """Get products with filters."""
        filters = []
        if category_id:
            filters.append(Product.category_id == category_id)
        if brand_id:
            filters.append(Product.brand_id == brand_id)
        if search:
            search_filter = like(search)
            filters.append(
                or_(
                    Product.name.ilike(search_filter, escape=LIKE_ESCAPE),
                    Product.code.ilike(search_filter, escape=LIKE_ESCAPE),
                    Product.barcode.ilike(search_filter, escape=LIKE_ESCAPE),
                )
            )
        return await self._paginate(Product, filters, Product.created_at.desc(), skip, limit)

    async def get_recent_products(self, limit: int = 5) -> List[Product]:
        result = await self.db.execute(
            select(Product).order_by(Product.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def get_product(self, product_id: uuid.UUID) -> Product:
        return await self._get_or_404(Product, product_id, "Product")

    async def create_product(
        self,
        data: ProductCreate,
        product_image: Optional[str],
        created_by: uuid.UUID
    ) -> Product:
        payload = data.model_dump()
        await self._validate_product_refs(payload)
        if await self._exists(Product.code == data.code):
            raise ConflictError(f"Product code '{data.code}' already exists")

        payload["item_type"] = data.item_type.value
        payload["discount_type"] = data.discount_type.value if data.discount_type else None
        product = Product(**payload, product_image=product_image, created_by=created_by)
        self.db.add(product)
        await self.db.flush()
        await self.db.refresh(product)
        logger.info(f"Created product {product.code}")
        return product

    async def update_product(
        self,
        product_id: uuid.UUID,
        data: ProductUpdate,
        product_image: Optional[str] = None
    ) -> Tuple[Product, Optional[str]]:
        product = await self.get_product(product_id)
        update_data = data.model_dump(exclude_unset=True, exclude={"image_removed"}, mode="json")
        # mode="json" turns ids and decimals to strings; keep the typed values
        for key in ("category_id", "brand_id", "unit_id", "tax_id", "selling_price",
                    "purchase_price", "discount_value"):
            if key in update_data:
                update_data[key] = getattr(data, key)
        await self._validate_product_refs(update_data)

        if update_data.get("code") and await self._exists(
            Product.code == update_data["code"], Product.id != product.id
        ):
            raise ConflictError(f"Product code '{update_data['code']}' already exists")

        for field, value in update_data.items():
            setattr(product, field, value)

        replaced = None
        if product_image or data.image_removed:
            replaced = product.product_image
            product.product_image = product_image

        await self.db.flush()
        await self.db.refresh(product)
        return product, replaced

    async def delete_product(self, product_id: uuid.UUID) -> Optional[str]:
        product = await self.get_product(product_id)
        image = product.product_image
        await self.db.delete(product)
        await self.db.flush()
        return image
