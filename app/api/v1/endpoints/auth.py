from fastapi import APIRouter, HTTPException, status, Request

from app.api.deps import DB, CurrentUser
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.schemas.base import MessageResponse
from app.schemas.user import UserResponse
from app.services.auth_service import AuthService

router = APIRouter(tags=["Authentication"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: DB,
):
    """
    Create an owner account and log it in.
    """
    auth_service = AuthService(db)

    user = await auth_service.register(data)
    access_token, expires_in = await auth_service.create_tokens(user)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    db: DB,
):
    """
    Authenticate user and return an access token.
    """
    auth_service = AuthService(db)

    user = await auth_service.authenticate_user(data.email, data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated"
        )

    access_token, expires_in = await auth_service.create_tokens(user)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    current_user: CurrentUser,
    db: DB,
):
    """
    Logout current user and invalidate the current token.

    Blacklists the current access token so it cannot be reused.
    """
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        await AuthService(db).logout(auth_header[7:], current_user)

    return MessageResponse(message="Successfully logged out. Token has been invalidated.")
