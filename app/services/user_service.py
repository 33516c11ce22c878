from typing import List, Optional, Tuple
import uuid

from sqlalchemy import select, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.models.user import User
from app.schemas.user import ProfileUpdate
from app.services.query import LIKE_ESCAPE, like


class UserService:
    """Users and profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_users_by_type(
        self,
        user_type: int,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        """Users of one type (1 staff/owner, 2 supplier)."""
        filters = [User.user_type == user_type]
        if search:
            search_filter = like(search)
            filters.append(
                or_(
                    User.first_name.ilike(search_filter, escape=LIKE_ESCAPE),
                    User.last_name.ilike(search_filter, escape=LIKE_ESCAPE),
                    User.email.ilike(search_filter, escape=LIKE_ESCAPE),
                    User.phone.ilike(search_filter, escape=LIKE_ESCAPE),
                )
            )

        count_stmt = select(func.count(User.id)).where(and_(*filters))
        total = (await self.db.execute(count_stmt)).scalar()

        stmt = (
            select(User)
            .where(and_(*filters))
            .order_by(User.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def update_profile(
        self,
        user: User,
        data: ProfileUpdate,
        profile_image: Optional[str] = None
    ) -> Tuple[User, Optional[str]]:
        """
        Apply a profile update.

        Returns:
            (user, replaced_image_path) so the caller can drop the old file.
        """
        update_data = data.model_dump(exclude_unset=True)

        new_email = update_data.get("email")
        if new_email and new_email.lower() != user.email.lower():
            result = await self.db.execute(
                select(User.id).where(
                    func.lower(User.email) == new_email.lower(),
                    User.id != user.id,
                )
            )
            if result.scalar_one_or_none():
                raise ConflictError("Email already in use")
            update_data["email"] = new_email.lower()

        for field, value in update_data.items():
            setattr(user, field, value)

        replaced = None
        if profile_image:
            replaced = user.profile_image
            user.profile_image = profile_image

        await self.db.flush()
        await self.db.refresh(user)
        return user, replaced
