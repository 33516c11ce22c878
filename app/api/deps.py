from typing import Annotated, AsyncGenerator, Type, TypeVar
import uuid
import logging

from fastapi import Depends, Form, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.security import verify_access_token, is_token_blacklisted
from app.models.user import User
from app.services.upload_service import UploadTracker


logger = logging.getLogger(__name__)

# HTTP Bearer security scheme
security = HTTPBearer()

ModelT = TypeVar("ModelT", bound=BaseModel)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Dependency to get the current authenticated user.
    Validates the JWT token, rejects logged-out tokens and returns the user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = credentials.credentials
    subject = verify_access_token(token)

    if subject is None:
        logger.warning("Token verification failed - invalid or expired token")
        raise credentials_exception

    if await is_token_blacklisted(db, token):
        logger.warning("Rejected blacklisted token")
        raise credentials_exception

    try:
        user_uuid = uuid.UUID(subject)
    except ValueError:
        logger.warning(f"Invalid subject in token: {subject}")
        raise credentials_exception

    user = await db.get(User, user_uuid)
    if user is None:
        logger.warning(f"User {user_uuid} from token not found")
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated"
        )

    return user


async def get_upload_tracker() -> AsyncGenerator[UploadTracker, None]:
    """
    Files stored during the request.

    Declared before DB and CurrentUser on an endpoint so that it is torn
    down after the commit: a failed commit still removes new files, and
    replaced files are only deleted once the commit went through.
    """
    tracker = UploadTracker()
    try:
        yield tracker
    except Exception:
        tracker.discard_written()
        raise
    else:
        tracker.purge_superseded()


def form_payload(model: Type[ModelT]):
    """
    Dependency factory for multipart endpoints.

    The JSON body travels in a ``data`` form field next to the file parts;
    it is validated against ``model`` and errors are reported like a
    regular body validation error.
    """
    async def parse(data: str = Form("{}")) -> ModelT:
        try:
            return model.model_validate_json(data)
        except ValidationError as e:
            errors = e.errors(include_url=False, include_context=False)
            for error in errors:
                error["loc"] = ("body", "data", *error["loc"])
            raise RequestValidationError(errors)

    return parse


# Type aliases for cleaner dependency injection
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Uploads = Annotated[UploadTracker, Depends(get_upload_tracker)]
