from datetime import datetime, timezone
from typing import Optional, Tuple
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BusinessRuleError
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    blacklist_token,
)
from app.models.user import User, UserType
from app.schemas.auth import RegisterRequest
from app.services.currency_service import CurrencyService
from app.config import settings

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service for sign up, login and token management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def register(self, data: RegisterRequest) -> User:
        """
        Create a staff/owner account.

        Raises:
            BusinessRuleError: if the email is already registered
        """
        if await self.get_user_by_email(data.email):
            raise BusinessRuleError("User already exists")

        default_currency = await CurrencyService(self.db).get_default()
        user = User(
            email=data.email.lower(),
            password_hash=get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            user_type=UserType.USER.value,
            default_currency_id=default_currency.id if default_currency else None,
            is_active=True,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        logger.info(f"Registered user {user.email}")
        return user

    async def authenticate_user(
        self,
        email: str,
        password: str
    ) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Inactive users are returned too; the caller decides how to refuse them.

        Returns:
            User object if the credentials match, None otherwise
        """
        user = await self.get_user_by_email(email)
        if user is None:
            return None

        if not verify_password(password, user.password_hash):
            return None

        return user

    async def create_tokens(self, user: User) -> Tuple[str, int]:
        """
        Create an access token for a user and stamp the login time.

        Returns:
            Tuple of (access_token, expires_in_seconds)
        """
        access_token = create_access_token(
            subject=user.id,
            additional_claims={"email": user.email, "user_type": user.user_type},
        )
        expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

        user.last_login_at = datetime.now(timezone.utc)
        await self.db.flush()

        return access_token, expires_in

    async def logout(self, token: str, user: User) -> bool:
        """Revoke the presented token until it expires."""
        revoked = await blacklist_token(self.db, token, user.id)
        if revoked:
            logger.info(f"Token revoked for user {user.id}")
        return revoked
