"""Per-owner settings: company details, email delivery, localization, invoice template."""
from typing import Optional
from zoneinfo import available_timezones
import uuid

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from app.api.deps import DB, CurrentUser, Uploads, form_payload
from app.schemas.company import CompanySettingsUpdate, CompanySettingsResponse
from app.schemas.preferences import (
    DATE_FORMATS,
    TIME_FORMATS,
    WEEK_DAYS,
    EmailSettingsUpdate,
    EmailSettingsResponse,
    LocalizationUpdate,
    LocalizationResponse,
    LocalizationOptions,
    InvoiceTemplateUpdate,
    InvoiceTemplateResponse,
)
from app.services.settings_service import SettingsService
from app.services.upload_service import UploadCategory

router = APIRouter(tags=["Settings"])


# ==================== COMPANY DETAILS ====================

@router.get("/company-details/{user_id}", response_model=CompanySettingsResponse)
async def get_company_details(
    user_id: uuid.UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Company details of the current user; other users' details are 403."""
    company = await SettingsService(db, current_user.id).get_company(user_id)
    if company is None:
        return CompanySettingsResponse(user_id=user_id)
    return CompanySettingsResponse.model_validate(company)


@router.put("/company-details/{user_id}", response_model=CompanySettingsResponse)
async def update_company_details(
    user_id: uuid.UUID,
    tracker: Uploads,
    current_user: CurrentUser,
    db: DB,
    data: CompanySettingsUpdate = Depends(form_payload(CompanySettingsUpdate)),
    site_logo: Optional[UploadFile] = File(None),
    favicon: Optional[UploadFile] = File(None),
    company_logo: Optional[UploadFile] = File(None),
    company_banner: Optional[UploadFile] = File(None),
):
    """
    Create or update company details.

    Each image part replaces the stored file of the same name.
    """
    images = {
        "site_logo": await tracker.save_image(site_logo, UploadCategory.COMPANY),
        "favicon": await tracker.save_image(favicon, UploadCategory.COMPANY),
        "company_logo": await tracker.save_image(company_logo, UploadCategory.COMPANY),
        "company_banner": await tracker.save_image(company_banner, UploadCategory.COMPANY),
    }
    company, replaced = await SettingsService(db, current_user.id).upsert_company(user_id, data, images)
    tracker.supersede(*replaced)
    return CompanySettingsResponse.model_validate(company)


# ==================== EMAIL SETTINGS ====================

@router.get("/email-settings", response_model=EmailSettingsResponse)
async def get_email_settings(db: DB, current_user: CurrentUser):
    """Email delivery settings. Passwords are reported only as ``*_password_set``."""
    email_settings = await SettingsService(db, current_user.id).get_email_settings()
    return SettingsService.email_settings_view(email_settings, current_user.id)


@router.put("/email-settings", response_model=EmailSettingsResponse)
async def update_email_settings(
    data: EmailSettingsUpdate,
    db: DB,
    current_user: CurrentUser,
):
    email_settings = await SettingsService(db, current_user.id).update_email_settings(data)
    return SettingsService.email_settings_view(email_settings, current_user.id)


# ==================== LOCALIZATION ====================

@router.get("/localization/options", response_model=LocalizationOptions)
async def get_localization_options(current_user: CurrentUser):
    """Supported date formats, time formats, time zones and week days."""
    return LocalizationOptions(
        date_formats=DATE_FORMATS,
        time_formats=TIME_FORMATS,
        timezones=sorted(available_timezones()),
        week_days=WEEK_DAYS,
    )


@router.get("/localization", response_model=LocalizationResponse)
async def get_localization(db: DB, current_user: CurrentUser):
    localization = await SettingsService(db, current_user.id).get_localization()
    return LocalizationResponse.model_validate(localization)


@router.put("/localization", response_model=LocalizationResponse)
async def update_localization(
    data: LocalizationUpdate,
    db: DB,
    current_user: CurrentUser,
):
    """Update localization; the time zone must be an IANA zone name."""
    localization = await SettingsService(db, current_user.id).update_localization(data)
    return LocalizationResponse.model_validate(localization)


# ==================== INVOICE TEMPLATE ====================

@router.get("/invoice-template", response_model=Optional[InvoiceTemplateResponse])
async def get_invoice_template(db: DB, current_user: CurrentUser):
    """The owner's default invoice template, or null when none is chosen."""
    template = await SettingsService(db, current_user.id).get_invoice_template()
    return InvoiceTemplateResponse.model_validate(template) if template else None


@router.put("/invoice-template", response_model=InvoiceTemplateResponse)
async def set_invoice_template(
    data: InvoiceTemplateUpdate,
    response: Response,
    db: DB,
    current_user: CurrentUser,
):
    """Set the default invoice template: 201 when first created, 200 after."""
    template, created = await SettingsService(db, current_user.id).set_invoice_template(data)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return InvoiceTemplateResponse.model_validate(template)
