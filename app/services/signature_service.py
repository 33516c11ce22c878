from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BusinessRuleError, NotFoundError
from app.models.signature import Signature
from app.models.user import User
from app.schemas.signature import SignatureCreate, SignatureUpdate
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)


class SignatureService:
    """
    Stored signatures.

    An owner has at most one default signature. Losing the default (delete
    or deactivate) hands it to the most recently created active signature.
    """

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id

    async def _lock_owner(self) -> None:
        """Serialize default changes per owner on the user row."""
        await self.db.execute(select(User.id).where(User.id == self.user_id).with_for_update())

    async def _clear_default(self, keep_id: Optional[uuid.UUID] = None) -> None:
        await self._lock_owner()
        stmt = (
            update(Signature)
            .where(Signature.user_id == self.user_id, Signature.mark_as_default == True)  # noqa: E712
            .values(mark_as_default=False)
            .execution_options(synchronize_session="fetch")
        )
        if keep_id:
            stmt = stmt.where(Signature.id != keep_id)
        await self.db.execute(stmt)

    async def _promote_replacement(self, excluded_id: uuid.UUID) -> Optional[Signature]:
        """Make the newest active signature the default, if there is one."""
        await self._lock_owner()
        # The outgoing default must be cleared in the database before another row takes the flag
        await self.db.flush()
        result = await self.db.execute(
            select(Signature)
            .where(
                Signature.user_id == self.user_id,
                Signature.id != excluded_id,
                Signature.is_deleted == False,  # noqa: E712
                Signature.status == True,  # noqa: E712
            )
            .order_by(Signature.created_at.desc())
            .limit(1)
        )
        replacement = result.scalar_one_or_none()
        if replacement is not None:
            replacement.mark_as_default = True
            logger.info(f"Signature {replacement.id} promoted to default for user {self.user_id}")
        return replacement

    async def get_signatures(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Signature], int]:
        stmt = select(Signature).where(
            Signature.user_id == self.user_id,
            Signature.is_deleted == False,  # noqa: E712
        )
        if search:
            pattern = like(search)
            stmt = stmt.where(or_(Signature.name.ilike(pattern, escape=LIKE_ESCAPE), Signature.description.ilike(pattern, escape=LIKE_ESCAPE)))
        return await paginate(self.db, stmt.order_by(Signature.created_at.desc()), skip, limit)

    async def get_signature(self, signature_id: uuid.UUID) -> Signature:
        result = await self.db.execute(
            select(Signature).where(Signature.id == signature_id, Signature.user_id == self.user_id)
        )
        signature = result.scalar_one_or_none()
        if signature is None:
            raise NotFoundError("Signature not found")
        return signature

    async def get_default(self) -> Optional[Signature]:
        result = await self.db.execute(
            select(Signature).where(
                Signature.user_id == self.user_id,
                Signature.mark_as_default == True,  # noqa: E712
                Signature.is_deleted == False,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()

    async def create_signature(self, data: SignatureCreate, image_path: Optional[str]) -> Signature:
        if not image_path:
            raise BusinessRuleError("Signature image is required")

        make_default = data.mark_as_default and data.status
        if make_default:
            await self._clear_default()

        signature = Signature(
            name=data.name,
            description=data.description,
            status=data.status,
            mark_as_default=make_default,
            image_path=image_path,
            user_id=self.user_id,
        )
        self.db.add(signature)
        await self.db.flush()
        await self.db.refresh(signature)
        return signature

    async def update_signature(
        self,
        signature_id: uuid.UUID,
        data: SignatureUpdate,
        image_path: Optional[str] = None
    ) -> Tuple[Signature, Optional[str]]:
        """Returns (signature, replaced_image_path)."""
        signature = await self.get_signature(signature_id)
        if signature.is_deleted:
            raise NotFoundError("Signature not found")

        update_data = data.model_dump(exclude_unset=True)
        mark_default = update_data.pop("mark_as_default", None)
        new_status = update_data.pop("status", None)

        for field, value in update_data.items():
            setattr(signature, field, value)

        replaced = None
        if image_path:
            replaced = signature.image_path
            signature.image_path = image_path

        if new_status is not None:
            await self._apply_status(signature, new_status)

        if mark_default is True:
            await self._make_default(signature)
        elif mark_default is False and signature.mark_as_default:
            signature.mark_as_default = False
            await self._promote_replacement(signature.id)

        await self.db.flush()
        await self.db.refresh(signature)
        return signature, replaced

    async def _make_default(self, signature: Signature) -> None:
        if not signature.status:
            raise BusinessRuleError("An inactive signature cannot be the default")
        await self._clear_default(keep_id=signature.id)
        signature.mark_as_default = True

    async def _apply_status(self, signature: Signature, status: bool) -> None:
        signature.status = status
        if not status and signature.mark_as_default:
            signature.mark_as_default = False
            await self._promote_replacement(signature.id)

    async def set_default(self, signature_id: uuid.UUID) -> Signature:
        signature = await self.get_signature(signature_id)
        if signature.is_deleted:
            raise NotFoundError("Signature not found")
        await self._make_default(signature)
        await self.db.flush()
        await self.db.refresh(signature)
        return signature

    async def set_status(self, signature_id: uuid.UUID, status: bool) -> Signature:
        signature = await self.get_signature(signature_id)
        if signature.is_deleted:
            raise NotFoundError("Signature not found")
        await self._apply_status(signature, status)
        await self.db.flush()
        await self.db.refresh(signature)
        return signature

    async def delete_signature(self, signature_id: uuid.UUID) -> Signature:
        signature = await self.get_signature(signature_id)
        if signature.is_deleted:
            raise NotFoundError("Signature not found")

        signature.is_deleted = True
        if signature.mark_as_default:
            signature.mark_as_default = False
            await self._promote_replacement(signature.id)
        await self.db.flush()
        return signature
