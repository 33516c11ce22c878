"""
Inventory ledger.

Every stock change goes through InventoryService.apply_movement, which
locks (or creates) the (product, owner) row, applies the signed delta and
appends the history row in the caller's transaction. The cached
``Inventory.quantity`` therefore always equals the sum of history
adjustments; recompute_quantity / verify check exactly that.
"""
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, func, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.amounts import to_decimal
from app.core.exceptions import BusinessRuleError, InvalidReferenceError, NotFoundError
from app.models.inventory import Inventory, InventoryHistory, MovementType, ReferenceType
from app.models.product import Product
from app.services.query import LIKE_ESCAPE, like

logger = logging.getLogger(__name__)


class InventoryService:
    """Stock per product for one owner."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(Inventory)
        return sqlite_insert(Inventory)

    async def _lock_inventory(self, product_id: uuid.UUID) -> Inventory:
        """Fetch the inventory row FOR UPDATE, creating it on first use."""
        stmt = (
            select(Inventory)
            .where(Inventory.product_id == product_id, Inventory.user_id == self.user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        inventory = (await self.db.execute(stmt)).scalar_one_or_none()
        if inventory is not None:
            return inventory

        await self.db.execute(
            self._insert()
            .values(id=uuid.uuid4(), product_id=product_id, user_id=self.user_id, quantity=Decimal("0"))
            .on_conflict_do_nothing(index_elements=["product_id", "user_id"])
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def apply_movement(
        self,
        product_id: uuid.UUID,
        adjustment: Decimal,
        movement_type: MovementType,
        reference_type: ReferenceType = ReferenceType.ADJUSTMENT,
        reference_id: Optional[uuid.UUID] = None,
        unit_id: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
        allow_negative: bool = True,
    ) -> InventoryHistory:
        """
        Apply one signed stock change and log it.

        Args:
            adjustment: positive adds stock, negative removes it
            allow_negative: when False, a change that would take the
                quantity below zero is refused with BusinessRuleError
        """
        adjustment = to_decimal(adjustment)
        inventory = await self._lock_inventory(product_id)

        new_quantity = to_decimal(inventory.quantity) + adjustment
        if not allow_negative and new_quantity < 0:
            raise BusinessRuleError(
                f"Insufficient stock: available {inventory.quantity}, requested {abs(adjustment)}"
            )

        inventory.quantity = new_quantity
        history = InventoryHistory(
            inventory_id=inventory.id,
            product_id=product_id,
            type=movement_type.value,
            adjustment=adjustment,
            quantity=new_quantity,
            reference_id=reference_id,
            reference_type=reference_type.value,
            unit_id=unit_id,
            notes=notes,
            created_by=created_by or self.user_id,
        )
        self.db.add(history)
        await self.db.flush()
        return history

    async def apply_items(
        self,
        items: Iterable[dict],
        direction: int,
        reference_type: ReferenceType,
        reference_id: uuid.UUID,
        notes: str,
        movement_type: Optional[MovementType] = None,
    ) -> int:
        """
        Move stock for every document line that names a product.

        ``direction`` is +1 (stock in) or -1 (stock out). Returns the
        number of movements written.
        """
        if movement_type is None:
            movement_type = MovementType.STOCK_IN if direction > 0 else MovementType.STOCK_OUT

        count = 0
        for item in items:
            product_id = item.get("product_id")
            quantity = to_decimal(item.get("quantity"))
            if not product_id or quantity == 0:
                continue
            await self.apply_movement(
                product_id=uuid.UUID(str(product_id)),
                adjustment=quantity * direction,
                movement_type=movement_type,
                reference_type=reference_type,
                reference_id=reference_id,
                unit_id=uuid.UUID(str(item["unit_id"])) if item.get("unit_id") else None,
                notes=notes,
            )
            count += 1
        return count

    async def reapply_items(
        self,
        old_items: Iterable[dict],
        new_items: Iterable[dict],
        direction: int,
        reference_type: ReferenceType,
        reference_id: uuid.UUID,
        notes: str,
    ) -> int:
        """Adjust stock by the per-product difference between two item lists."""
        def totals(items):
            by_product: dict = {}
            for item in items:
                if item.get("product_id"):
                    key = str(item["product_id"])
                    by_product[key] = by_product.get(key, Decimal("0")) + to_decimal(item.get("quantity"))
            return by_product

        before, after = totals(old_items), totals(new_items)
        count = 0
        for product_id in sorted(set(before) | set(after)):
            delta = after.get(product_id, Decimal("0")) - before.get(product_id, Decimal("0"))
            if delta == 0:
                continue
            await self.apply_movement(
                product_id=uuid.UUID(product_id),
                adjustment=delta * direction,
                movement_type=MovementType.ADJUSTMENT,
                reference_type=reference_type,
                reference_id=reference_id,
                notes=notes,
            )
            count += 1
        return count

    async def _get_product(self, product_id: uuid.UUID) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise InvalidReferenceError(f"Invalid product id: {product_id}")
        return product

    async def stock_in(
        self,
        product_id: uuid.UUID,
        quantity: Decimal,
        unit_id: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
    ) -> InventoryHistory:
        await self._get_product(product_id)
        history = await self.apply_movement(
            product_id=product_id,
            adjustment=quantity,
            movement_type=MovementType.STOCK_IN,
            unit_id=unit_id,
            notes=notes or "Manual stock in",
        )
        logger.info(f"Stock in {quantity} of product {product_id} -> {history.quantity}")
        return history

    async def stock_out(
        self,
        product_id: uuid.UUID,
        quantity: Decimal,
        unit_id: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
    ) -> InventoryHistory:
        await self._get_product(product_id)
        history = await self.apply_movement(
            product_id=product_id,
            adjustment=-to_decimal(quantity),
            movement_type=MovementType.STOCK_OUT,
            unit_id=unit_id,
            notes=notes or "Manual stock out",
            allow_negative=False,
        )
        logger.info(f"Stock out {quantity} of product {product_id} -> {history.quantity}")
        return history

    async def recompute_quantity(self, product_id: uuid.UUID) -> Decimal:
        """Quantity derived from the movement log alone."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(InventoryHistory.adjustment), 0))
            .join(Inventory, Inventory.id == InventoryHistory.inventory_id)
            .where(Inventory.product_id == product_id, Inventory.user_id == self.user_id)
        )
        return to_decimal(result.scalar())

    async def get_inventories(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Tuple[Inventory, Product]], int]:
        stmt = (
            select(Inventory, Product)
            .join(Product, Product.id == Inventory.product_id)
            .where(Inventory.user_id == self.user_id)
        )
        if search:
            pattern = like(search)
            stmt = stmt.where(or_(Product.name.ilike(pattern, escape=LIKE_ESCAPE), Product.code.ilike(pattern, escape=LIKE_ESCAPE)))

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        result = await self.db.execute(
            stmt.order_by(Product.name).offset(skip).limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()], total

    async def get_inventory(self, product_id: uuid.UUID) -> Tuple[Inventory, Product, List[InventoryHistory]]:
        product = await self.db.get(Product, product_id)
        result = await self.db.execute(
            select(Inventory).where(Inventory.product_id == product_id, Inventory.user_id == self.user_id)
        )
        inventory = result.scalar_one_or_none()
        if inventory is None or product is None:
            raise NotFoundError("No inventory for this product")

        history = await self.db.execute(
            select(InventoryHistory)
            .where(InventoryHistory.inventory_id == inventory.id)
            .order_by(InventoryHistory.created_at.desc())
        )
        return inventory, product, list(history.scalars().all())

    async def verify(self, product_id: uuid.UUID) -> dict:
        """Compare the cached quantity with the history sum."""
        result = await self.db.execute(
            select(Inventory.quantity).where(
                Inventory.product_id == product_id, Inventory.user_id == self.user_id
            )
        )
        stored = result.scalar_one_or_none()
        if stored is None:
            raise NotFoundError("No inventory for this product")

        derived = await self.recompute_quantity(product_id)
        stored = to_decimal(stored)
        if stored != derived:
            logger.warning(f"Inventory mismatch for product {product_id}: stored {stored}, history {derived}")
        return {
            "product_id": product_id,
            "stored_quantity": stored,
            "history_quantity": derived,
            "consistent": stored == derived,
        }
