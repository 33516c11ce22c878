from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings


# Password hashing context with multi-algorithm support
# - bcrypt is the default for new hashes
# - argon2 hashes are still verified
pwd_context = CryptContext(
    schemes=["bcrypt", "argon2"],
    default="bcrypt",
    deprecated=[],
    bcrypt__rounds=12,
)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a plain password against a hashed password.

    Accounts without a password (supplier contacts) never verify.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception:
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with the default scheme."""
    return pwd_context.hash(password)


def create_access_token(
    subject: str | uuid.UUID,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The subject of the token (user ID)
        expires_delta: Optional custom expiration time
        additional_claims: Optional additional claims to include

    Returns:
        Encoded JWT token string
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    jti = str(uuid.uuid4())  # Unique token ID for blacklisting

    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "jti": jti,
        "type": "access"
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """Decode and validate a JWT token. Returns None if invalid or expired."""
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[str]:
    """
    Verify an access token and return the subject (user ID).

    Returns:
        User ID string or None if invalid
    """
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != "access":
        return None

    return payload.get("sub")


async def blacklist_token(db: AsyncSession, token: str, user_id: uuid.UUID) -> bool:
    """
    Add a token to the blacklist until it expires.

    Returns:
        True if token was blacklisted
    """
    from app.models.user import TokenBlacklist

    payload = decode_token(token)
    if payload is None:
        return False

    jti = payload.get("jti")
    if not jti:
        return False

    exp = payload.get("exp")
    if exp:
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
    else:
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    db.add(TokenBlacklist(
        jti=jti,
        token_type=payload.get("type", "access"),
        user_id=user_id,
        expires_at=expires_at,
    ))
    await db.flush()
    return True


async def is_token_blacklisted(db: AsyncSession, token: str) -> bool:
    """Check if a token is blacklisted. Undecodable tokens count as blacklisted."""
    from app.models.user import TokenBlacklist

    payload = decode_token(token)
    if payload is None:
        return True

    jti = payload.get("jti")
    if not jti:
        return False

    result = await db.execute(select(TokenBlacklist.id).where(TokenBlacklist.jti == jti))
    return result.scalar_one_or_none() is not None


async def cleanup_expired_blacklist_entries(db: AsyncSession) -> int:
    """Remove expired tokens from the blacklist. Returns number of rows removed."""
    from app.models.user import TokenBlacklist

    result = await db.execute(
        delete(TokenBlacklist).where(TokenBlacklist.expires_at < datetime.now(timezone.utc))
    )
    return result.rowcount
