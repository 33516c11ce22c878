"""Per-owner settings: company details, email, localization, invoice template."""
from typing import Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PermissionDeniedError
from app.models.company import CompanySettings
from app.models.preferences import EmailSettings, Localization, InvoiceTemplate
from app.schemas.company import CompanySettingsUpdate
from app.schemas.preferences import EmailSettingsUpdate, LocalizationUpdate, InvoiceTemplateUpdate

logger = logging.getLogger(__name__)

COMPANY_IMAGE_FIELDS = ("site_logo", "favicon", "company_logo", "company_banner")


class SettingsService:
    """Settings rows are one per owner and created on first write."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id

    async def _get_one(self, model):
        result = await self.db.execute(select(model).where(model.user_id == self.user_id))
        return result.scalar_one_or_none()

    # ==================== COMPANY ====================

    def _check_owner(self, user_id: uuid.UUID) -> None:
        if user_id != self.user_id:
            raise PermissionDeniedError("You can only access your own company details")

    async def get_company(self, user_id: uuid.UUID) -> Optional[CompanySettings]:
        self._check_owner(user_id)
        return await self._get_one(CompanySettings)

    async def upsert_company(
        self,
        user_id: uuid.UUID,
        data: CompanySettingsUpdate,
        images: Dict[str, Optional[str]]
    ) -> Tuple[CompanySettings, List[str]]:
        """
        Create or update company details.

        ``images`` maps image field names to newly stored paths. Returns the
        row and the paths of images it replaced.
        """
        self._check_owner(user_id)
        company = await self._get_one(CompanySettings)
        if company is None:
            company = CompanySettings(user_id=self.user_id)
            self.db.add(company)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(company, field, value)

        replaced = []
        for field in COMPANY_IMAGE_FIELDS:
            path = images.get(field)
            if path:
                if getattr(company, field):
                    replaced.append(getattr(company, field))
                setattr(company, field, path)

        await self.db.flush()
        await self.db.refresh(company)
        return company, replaced

    # ==================== EMAIL ====================

    async def get_email_settings(self) -> Optional[EmailSettings]:
        return await self._get_one(EmailSettings)

    async def update_email_settings(self, data: EmailSettingsUpdate) -> EmailSettings:
        email_settings = await self._get_one(EmailSettings)
        if email_settings is None:
            email_settings = EmailSettings(user_id=self.user_id)
            self.db.add(email_settings)

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("provider_type") is not None:
            update_data["provider_type"] = update_data["provider_type"].value
        for field, value in update_data.items():
            setattr(email_settings, field, value)

        await self.db.flush()
        await self.db.refresh(email_settings)
        logger.info(f"Email settings updated for user {self.user_id} ({email_settings.provider_type})")
        return email_settings

    @staticmethod
    def email_settings_view(email_settings: Optional[EmailSettings], user_id: uuid.UUID) -> dict:
        """Response body for email settings, with passwords reduced to flags."""
        if email_settings is None:
            return {"user_id": user_id, "provider_type": "SMTP"}
        view = {
            column.name: getattr(email_settings, column.name)
            for column in EmailSettings.__table__.columns
            if not column.name.endswith("_password")
        }
        view["node_password_set"] = bool(email_settings.node_password)
        view["smtp_password_set"] = bool(email_settings.smtp_password)
        return view

    # ==================== LOCALIZATION ====================

    async def get_localization(self) -> Localization:
        """Stored localization, or unsaved defaults."""
        localization = await self._get_one(Localization)
        if localization is None:
            localization = Localization(
                user_id=self.user_id,
                date_format="DD/MM/YYYY",
                time_format="HH:mm",
                timezone="UTC",
                start_week="Monday",
                is_active=True,
            )
        return localization

    async def update_localization(self, data: LocalizationUpdate) -> Localization:
        localization = await self._get_one(Localization)
        if localization is None:
            localization = await self.get_localization()
            self.db.add(localization)

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(localization, field, value)

        await self.db.flush()
        await self.db.refresh(localization)
        return localization

    # ==================== INVOICE TEMPLATE ====================

    async def get_invoice_template(self) -> Optional[InvoiceTemplate]:
        return await self._get_one(InvoiceTemplate)

    async def set_invoice_template(self, data: InvoiceTemplateUpdate) -> Tuple[InvoiceTemplate, bool]:
        """Returns (template, created)."""
        template = await self._get_one(InvoiceTemplate)
        created = template is None
        if created:
            template = InvoiceTemplate(user_id=self.user_id, default_invoice_template=data.default_invoice_template)
            self.db.add(template)
        else:
            template.default_invoice_template = data.default_invoice_template

        await self.db.flush()
        await self.db.refresh(template)
        return template, created
