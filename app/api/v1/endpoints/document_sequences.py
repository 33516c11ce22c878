from fastapi import APIRouter

from app.api.deps import DB, CurrentUser
from app.schemas.document import SequencePreview
from app.services.document_sequence_service import DocumentSequenceService

router = APIRouter(tags=["Document Sequences"])


@router.get("/{prefix}/preview", response_model=SequencePreview)
async def preview_sequence(
    prefix: str,
    db: DB,
    current_user: CurrentUser,
):
    """
    Show the next number for a prefix without consuming it.

    Prefixes: INV, PUR, PO, QT, DN, PAY.
    """
    service = DocumentSequenceService(db)
    next_number = await service.preview_next_number(prefix)
    return SequencePreview(
        prefix=prefix.upper(),
        next_number=next_number,
        current_number=await service.get_current_number(prefix),
    )
