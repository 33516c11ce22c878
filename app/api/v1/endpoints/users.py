from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.models.user import UserType
from app.schemas.user import ProfileUpdate, UserResponse, UserListResponse
from app.services.upload_service import UploadCategory
from app.services.user_service import UserService

router = APIRouter(tags=["Users"])


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: CurrentUser):
    """Current user's profile."""
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: ProfileUpdate = Depends(form_payload(ProfileUpdate)),
    profile_image: Optional[UploadFile] = File(None),
):
    """
    Update the current user's profile.

    Multipart: ``data`` holds the JSON fields, ``profile_image`` an optional
    new picture that replaces the stored one.
    """
    image_path = await tracker.save_image(profile_image, UploadCategory.PROFILES)
    user, replaced = await UserService(db).update_profile(current_user, data, image_path)
    tracker.supersede(replaced)
    return UserResponse.model_validate(user)


@router.get("/users/type/{user_type}", response_model=UserListResponse)
async def list_users_by_type(
    user_type: int,
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
):
    """
    Get paginated users of one type.

    1 is staff/owner, 2 is supplier.
    """
    if user_type not in (UserType.USER.value, UserType.SUPPLIER.value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="user_type must be 1 (user) or 2 (supplier)"
        )

    skip = (page - 1) * size
    users, total = await UserService(db).get_users_by_type(user_type, search=search, skip=skip, limit=size)

    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Get a user by ID."""
    user = await UserService(db).get_user(user_id)
    return UserResponse.model_validate(user)
