from typing import Optional
import uuid
from math import ceil

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.schemas.bank_detail import StatusUpdate
from app.schemas.base import MessageResponse
from app.schemas.signature import (
    SignatureCreate,
    SignatureUpdate,
    SignatureResponse,
    SignatureListResponse,
)
from app.services.signature_service import SignatureService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Signatures"])


@router.get("", response_model=SignatureListResponse)
async def list_signatures(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
):
    """Get paginated list of the current user's signatures."""
    skip = (page - 1) * size
    signatures, total = await SignatureService(db, current_user.id).get_signatures(
        search=search, skip=skip, limit=size
    )

    return SignatureListResponse(
        items=[SignatureResponse.model_validate(s) for s in signatures],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/{signature_id}", response_model=SignatureResponse)
async def get_signature(signature_id: uuid.UUID, db: DB, current_user: CurrentUser):
    signature = await SignatureService(db, current_user.id).get_signature(signature_id)
    return SignatureResponse.model_validate(signature)


@router.post("", response_model=SignatureResponse, status_code=status.HTTP_201_CREATED)
async def create_signature(
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: SignatureCreate = Depends(form_payload(SignatureCreate)),
    signature_image: Optional[UploadFile] = File(None),
):
    """
    Create a signature.

    ``signature_image`` is required. Marking it as default clears the flag
    on every other signature of the owner.
    """
    image_path = await tracker.save_image(signature_image, UploadCategory.SIGNATURES)
    signature = await SignatureService(db, current_user.id).create_signature(data, image_path)
    return SignatureResponse.model_validate(signature)


@router.put("/{signature_id}", response_model=SignatureResponse)
async def update_signature(
    signature_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: SignatureUpdate = Depends(form_payload(SignatureUpdate)),
    signature_image: Optional[UploadFile] = File(None),
):
    image_path = await tracker.save_image(signature_image, UploadCategory.SIGNATURES)
    signature, replaced = await SignatureService(db, current_user.id).update_signature(
        signature_id, data, image_path
    )
    tracker.supersede(replaced)
    return SignatureResponse.model_validate(signature)


@router.patch("/set-default/{signature_id}", response_model=SignatureResponse)
async def set_default_signature(signature_id: uuid.UUID, db: DB, current_user: CurrentUser):
    """Make this signature the owner's only default."""
    signature = await SignatureService(db, current_user.id).set_default(signature_id)
    return SignatureResponse.model_validate(signature)


@router.patch("/status/{signature_id}", response_model=SignatureResponse)
async def update_signature_status(
    signature_id: uuid.UUID,
    data: StatusUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """
    Activate or deactivate a signature.

    Deactivating the default promotes the newest remaining active signature.
    """
    signature = await SignatureService(db, current_user.id).set_status(signature_id, data.status)
    return SignatureResponse.model_validate(signature)


@router.delete("/{signature_id}", response_model=MessageResponse)
async def delete_signature(signature_id: uuid.UUID, db: DB, current_user: CurrentUser):
    await SignatureService(db, current_user.id).delete_signature(signature_id)
    return MessageResponse(message="Signature deleted successfully")
