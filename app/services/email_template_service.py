"""
Notification types and the email templates written for them.

Both are global masters. Templates are hard-deleted; a type that still
has templates cannot be removed.
"""
from typing import Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from app.models.email_template import EmailTemplate, NotificationType
from app.schemas.email_template import EmailTemplateCreate, EmailTemplateUpdate, NotificationTypeCreate
from app.services.query import LIKE_ESCAPE, paginate, like

logger = logging.getLogger(__name__)


class EmailTemplateService:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== NOTIFICATION TYPES ====================

    async def get_notification_types(self) -> List[NotificationType]:
        result = await self.db.execute(select(NotificationType).order_by(NotificationType.title))
        return list(result.scalars().all())

    async def get_notification_type(self, type_id: uuid.UUID) -> NotificationType:
        ntype = await self.db.get(NotificationType, type_id)
        if ntype is None:
            raise NotFoundError("Notification type not found")
        return ntype

    async def create_notification_type(self, data: NotificationTypeCreate) -> NotificationType:
        existing = await self.db.execute(select(NotificationType.id).where(NotificationType.slug == data.slug))
        if existing.first() is not None:
            raise ConflictError(f"Notification type '{data.slug}' already exists")
        ntype = NotificationType(**data.model_dump())
        self.db.add(ntype)
        await self.db.flush()
        await self.db.refresh(ntype)
        return ntype

    async def delete_notification_type(self, type_id: uuid.UUID) -> None:
        ntype = await self.get_notification_type(type_id)
        in_use = await self.db.execute(
            select(func.count()).select_from(EmailTemplate).where(EmailTemplate.notification_type_id == type_id)
        )
        if in_use.scalar():
            raise BusinessRuleError("Notification type is used by email templates")
        await self.db.delete(ntype)
        await self.db.flush()

    async def types_for(self, templates: List[EmailTemplate]) -> Dict[uuid.UUID, NotificationType]:
        ids = {t.notification_type_id for t in templates}
        if not ids:
            return {}
        result = await self.db.execute(select(NotificationType).where(NotificationType.id.in_(ids)))
        return {n.id: n for n in result.scalars().all()}

    # ==================== EMAIL TEMPLATES ====================

    async def get_templates(
        self,
        search: Optional[str] = None,
        notification_type_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[EmailTemplate], int]:
        stmt = select(EmailTemplate)
        if notification_type_id:
            stmt = stmt.where(EmailTemplate.notification_type_id == notification_type_id)
        if search:
            pattern = like(search)
            stmt = stmt.where(
                or_(
                    EmailTemplate.title.ilike(pattern, escape=LIKE_ESCAPE),
                    EmailTemplate.subject.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        return await paginate(self.db, stmt.order_by(EmailTemplate.created_at.desc()), skip, limit)

    async def get_template(self, template_id: uuid.UUID) -> EmailTemplate:
        template = await self.db.get(EmailTemplate, template_id)
        if template is None:
            raise NotFoundError("Email template not found")
        return template

    async def create_template(self, data: EmailTemplateCreate, created_by: uuid.UUID) -> EmailTemplate:
        await self.get_notification_type(data.notification_type_id)
        template = EmailTemplate(**data.model_dump(), created_by=created_by)
        self.db.add(template)
        await self.db.flush()
        await self.db.refresh(template)
        logger.info(f"Email template '{template.title}' created")
        return template

    async def update_template(self, template_id: uuid.UUID, data: EmailTemplateUpdate) -> EmailTemplate:
        template = await self.get_template(template_id)
        update_data = data.model_dump(exclude_unset=True)
        if "notification_type_id" in update_data:
            await self.get_notification_type(update_data["notification_type_id"])
        for field, value in update_data.items():
            setattr(template, field, value)
        await self.db.flush()
        await self.db.refresh(template)
        return template

    async def delete_template(self, template_id: uuid.UUID) -> None:
        template = await self.get_template(template_id)
        await self.db.delete(template)
        await self.db.flush()
