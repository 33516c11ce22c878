from typing import List, Optional, Tuple
import uuid

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.bank_detail import BankDetail
from app.schemas.bank_detail import BankDetailCreate, BankDetailUpdate
from app.services.query import LIKE_ESCAPE, paginate, like


class BankDetailService:
    """Bank accounts printed on documents."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id

    async def get_bank_details(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[BankDetail], int]:
        stmt = select(BankDetail).where(
            BankDetail.user_id == self.user_id,
            BankDetail.is_deleted == False,  # noqa: E712
        )
        if search:
            pattern = like(search)
            stmt = stmt.where(
                or_(
                    BankDetail.bank_name.ilike(pattern, escape=LIKE_ESCAPE),
                    BankDetail.account_holder_name.ilike(pattern, escape=LIKE_ESCAPE),
                    BankDetail.account_number.ilike(pattern, escape=LIKE_ESCAPE),
                    BankDetail.ifsc_code.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        return await paginate(self.db, stmt.order_by(BankDetail.created_at.desc()), skip, limit)

    async def get_bank_detail(self, bank_id: uuid.UUID) -> BankDetail:
        result = await self.db.execute(
            select(BankDetail).where(BankDetail.id == bank_id, BankDetail.user_id == self.user_id)
        )
        bank = result.scalar_one_or_none()
        if bank is None:
            raise NotFoundError("Bank detail not found")
        return bank

    async def create_bank_detail(self, data: BankDetailCreate) -> BankDetail:
        bank = BankDetail(**data.model_dump(), user_id=self.user_id)
        self.db.add(bank)
        await self.db.flush()
        await self.db.refresh(bank)
        return bank

    async def update_bank_detail(self, bank_id: uuid.UUID, data: BankDetailUpdate) -> BankDetail:
        bank = await self.get_bank_detail(bank_id)
        if bank.is_deleted:
            raise NotFoundError("Bank detail not found")
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(bank, field, value)
        await self.db.flush()
        await self.db.refresh(bank)
        return bank

    async def set_status(self, bank_id: uuid.UUID, status: bool) -> BankDetail:
        bank = await self.get_bank_detail(bank_id)
        if bank.is_deleted:
            raise NotFoundError("Bank detail not found")
        bank.status = status
        await self.db.flush()
        await self.db.refresh(bank)
        return bank

    async def delete_bank_detail(self, bank_id: uuid.UUID) -> BankDetail:
        bank = await self.get_bank_detail(bank_id)
        if bank.is_deleted:
            raise NotFoundError("Bank detail not found")
        bank.is_deleted = True
        await self.db.flush()
        return bank
