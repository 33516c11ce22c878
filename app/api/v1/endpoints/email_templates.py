from typing import List, Optional
import uuid
from math import ceil

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentUser
from app.models.email_template import EmailTemplate, NotificationType
from app.schemas.base import MessageResponse
from app.schemas.email_template import (
    EmailTemplateCreate,
    EmailTemplateUpdate,
    EmailTemplateResponse,
    EmailTemplateListResponse,
    NotificationTypeCreate,
    NotificationTypeResponse,
)
from app.services.email_template_service import EmailTemplateService

router = APIRouter(tags=["Email Templates"])


def template_response(template: EmailTemplate, ntype: Optional[NotificationType]) -> EmailTemplateResponse:
    response = EmailTemplateResponse.model_validate(template)
    if ntype is not None:
        response.notification_type = NotificationTypeResponse.model_validate(ntype)
    return response


# ==================== Notification types ====================

@router.get("/notification-types", response_model=List[NotificationTypeResponse])
async def list_notification_types(db: DB, current_user: CurrentUser):
    types = await EmailTemplateService(db).get_notification_types()
    return [NotificationTypeResponse.model_validate(t) for t in types]


@router.post("/notification-types", response_model=NotificationTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_notification_type(data: NotificationTypeCreate, db: DB, current_user: CurrentUser):
    ntype = await EmailTemplateService(db).create_notification_type(data)
    return NotificationTypeResponse.model_validate(ntype)


@router.delete("/notification-types/{type_id}", response_model=MessageResponse)
async def delete_notification_type(type_id: uuid.UUID, db: DB, current_user: CurrentUser):
    """Delete a notification type that no template uses."""
    await EmailTemplateService(db).delete_notification_type(type_id)
    return MessageResponse(message="Notification type deleted successfully")


# ==================== Email templates ====================

@router.get("/email-templates", response_model=EmailTemplateListResponse)
async def list_email_templates(
    db: DB,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    notification_type_id: Optional[uuid.UUID] = Query(None),
):
    """Get paginated list of email templates, newest first."""
    service = EmailTemplateService(db)
    skip = (page - 1) * size
    templates, total = await service.get_templates(
        search=search, notification_type_id=notification_type_id, skip=skip, limit=size
    )
    types = await service.types_for(templates)

    return EmailTemplateListResponse(
        items=[template_response(t, types.get(t.notification_type_id)) for t in templates],
        total=total,
        page=page,
        size=size,
        pages=ceil(total / size) if total > 0 else 1,
    )


@router.get("/email-templates/{template_id}", response_model=EmailTemplateResponse)
async def get_email_template(template_id: uuid.UUID, db: DB, current_user: CurrentUser):
    service = EmailTemplateService(db)
    template = await service.get_template(template_id)
    return template_response(template, await service.get_notification_type(template.notification_type_id))


@router.post("/email-templates", response_model=EmailTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_email_template(data: EmailTemplateCreate, db: DB, current_user: CurrentUser):
    service = EmailTemplateService(db)
    template = await service.create_template(data, current_user.id)
    return template_response(template, await service.get_notification_type(template.notification_type_id))


@router.put("/email-templates/{template_id}", response_model=EmailTemplateResponse)
async def update_email_template(
    template_id: uuid.UUID, data: EmailTemplateUpdate, db: DB, current_user: CurrentUser
):
    service = EmailTemplateService(db)
    template = await service.update_template(template_id, data)
    return template_response(template, await service.get_notification_type(template.notification_type_id))


@router.delete("/email-templates/{template_id}", response_model=MessageResponse)
async def delete_email_template(template_id: uuid.UUID, db: DB, current_user: CurrentUser):
    await EmailTemplateService(db).delete_template(template_id)
    return MessageResponse(message="Email template deleted successfully")
