from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, update, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from app.models.currency import Currency
from app.models.user import User
from app.schemas.currency import CurrencyCreate, CurrencyUpdate
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)


class CurrencyService:
    """
    Global currency list.

    Exactly one active currency can be the default; choosing it also points
    every user's default_currency_id at it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_unique(self, name: Optional[str], code: Optional[str], exclude_id: Optional[uuid.UUID] = None):
        checks = []
        if name:
            checks.append(("name", func.lower(Currency.name) == name.lower(), name))
        if code:
            checks.append(("code", Currency.code == code.upper(), code.upper()))

        for label, criterion, value in checks:
            stmt = select(Currency.id).where(criterion, Currency.is_deleted == False)  # noqa: E712
            if exclude_id:
                stmt = stmt.where(Currency.id != exclude_id)
            if (await self.db.execute(stmt.limit(1))).scalar_one_or_none():
                raise ConflictError(f"Currency with {label} '{value}' already exists")

    async def _propagate_default(self, currency_id: Optional[uuid.UUID]) -> None:
        await self.db.execute(
            update(User)
            .values(default_currency_id=currency_id)
            .execution_options(synchronize_session=False)
        )

    async def _make_default(self, currency: Currency) -> None:
        if not currency.status:
            raise BusinessRuleError("An inactive currency cannot be the default")
        await self.db.execute(
            update(Currency)
            .where(Currency.id != currency.id, Currency.is_default == True)  # noqa: E712
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
        currency.is_default = True
        try:
            await self.db.flush()
        except IntegrityError:
            raise ConflictError("Another currency was made the default at the same time, please retry")
        await self._propagate_default(currency.id)
        logger.info(f"Currency {currency.code} is now the default")

    async def _promote_replacement(self, excluded_id: uuid.UUID) -> Optional[Currency]:
        # The outgoing default must be cleared in the database before another row takes the flag
        await self.db.flush()
        result = await self.db.execute(
            select(Currency)
            .where(
                Currency.id != excluded_id,
                Currency.is_deleted == False,  # noqa: E712
                Currency.status == True,  # noqa: E712
            )
            .order_by(Currency.created_at.desc())
            .limit(1)
        )
        replacement = result.scalar_one_or_none()
        if replacement is not None:
            replacement.is_default = True
            await self._propagate_default(replacement.id)
            logger.info(f"Currency {replacement.code} promoted to default")
        else:
            await self._propagate_default(None)
        return replacement

    async def _drop_default(self, currency: Currency) -> None:
        if currency.is_default:
            currency.is_default = False
            await self._promote_replacement(currency.id)

    async def get_currencies(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Currency], int]:
        stmt = select(Currency).where(Currency.is_deleted == False)  # noqa: E712
        if search:
            pattern = like(search)
            stmt = stmt.where(or_(Currency.name.ilike(pattern, escape=LIKE_ESCAPE), Currency.code.ilike(pattern, escape=LIKE_ESCAPE)))
        return await paginate(self.db, stmt.order_by(Currency.name), skip, limit)

    async def get_currency(self, currency_id: uuid.UUID) -> Currency:
        currency = await self.db.get(Currency, currency_id)
        if currency is None:
            raise NotFoundError("Currency not found")
        return currency

    async def get_default(self) -> Optional[Currency]:
        result = await self.db.execute(
            select(Currency).where(Currency.is_default == True, Currency.is_deleted == False)  # noqa: E712
        )
        return result.scalar_one_or_none()

    async def create_currency(self, data: CurrencyCreate, created_by: uuid.UUID) -> Currency:
        await self._ensure_unique(data.name, data.code)

        currency = Currency(
            name=data.name,
            code=data.code.upper(),
            symbol=data.symbol,
            status=data.status,
            is_default=False,
            created_by=created_by,
        )
        self.db.add(currency)
        await self.db.flush()

        if data.is_default:
            await self._make_default(currency)
            await self.db.flush()

        await self.db.refresh(currency)
        return currency

    async def update_currency(self, currency_id: uuid.UUID, data: CurrencyUpdate) -> Currency:
        currency = await self.get_currency(currency_id)
        if currency.is_deleted:
            raise NotFoundError("Currency not found")

        update_data = data.model_dump(exclude_unset=True)
        await self._ensure_unique(update_data.get("name"), update_data.get("code"), exclude_id=currency.id)

        status = update_data.pop("status", None)
        is_default = update_data.pop("is_default", None)
        for field, value in update_data.items():
            setattr(currency, field, value)

        await self._apply_flags(currency, status, is_default)
        await self.db.flush()
        await self.db.refresh(currency)
        return currency

    async def update_status(
        self,
        currency_id: uuid.UUID,
        status: Optional[bool] = None,
        is_default: Optional[bool] = None
    ) -> Currency:
        currency = await self.get_currency(currency_id)
        if currency.is_deleted:
            raise NotFoundError("Currency not found")
        await self._apply_flags(currency, status, is_default)
        await self.db.flush()
        await self.db.refresh(currency)
        return currency

    async def _apply_flags(self, currency: Currency, status: Optional[bool], is_default: Optional[bool]) -> None:
        if status is not None:
            currency.status = status
            if not status:
                await self._drop_default(currency)
        if is_default is True:
            await self._make_default(currency)
        elif is_default is False:
            await self._drop_default(currency)

    async def delete_currency(self, currency_id: uuid.UUID) -> Currency:
        currency = await self.get_currency(currency_id)
        if currency.is_deleted:
            raise NotFoundError("Currency not found")
        currency.is_deleted = True
        await self._drop_default(currency)
        await self.db.flush()
        return currency
