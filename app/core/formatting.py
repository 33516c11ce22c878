"""
Read-side projections for documents.

Pure functions: they take plain values, mappings or ORM objects and return
new dicts. Nothing here touches the database or the filesystem.
"""

from datetime import date, datetime
from typing import Any, Mapping, Optional

from app.config import settings

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

SIGN_NONE = "none"
SIGN_DIGITAL = "digitalSignature"
SIGN_INLINE = ("eSignature", "manualSignature")


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def format_display_date(value: Any) -> Optional[str]:
    """
    Format a date as "DD, Mon YYYY" (e.g. "05, Mar 2025").

    Accepts date, datetime or ISO-8601 strings; None and "" give None.
    Month names are fixed English abbreviations, independent of locale.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        raise TypeError(f"Cannot format {type(value).__name__} as a date")
    return f"{value.day:02d}, {MONTH_ABBR[value.month - 1]} {value.year}"


def resolve_image_url(
    path: Optional[str],
    placeholder: Optional[str] = None,
    base_url: Optional[str] = None,
) -> str:
    """
    Turn a stored image path into an absolute URL.

    Absolute http(s) URLs pass through; relative paths are served from
    /uploads on the public base URL; empty values give the placeholder.
    """
    if placeholder is None:
        placeholder = settings.PLACEHOLDER_IMAGE_URL
    if not path:
        return placeholder

    path = path.replace("\\", "/")
    if path.startswith("http://") or path.startswith("https://"):
        return path

    base = (base_url if base_url is not None else settings.PUBLIC_BASE_URL).rstrip("/")
    path = path.lstrip("/")
    if not path.startswith("uploads/"):
        path = f"uploads/{path}"
    return f"{base}/{path}"


def build_signature_block(
    sign_type: Optional[str],
    signature: Any = None,
    signature_name: Optional[str] = None,
    signature_image: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Optional[dict]:
    """
    Signature block keyed by sign_type.

    none             -> None
    digitalSignature -> name/image of the stored Signature
    eSignature,
    manualSignature  -> name/image uploaded with the document
    """
    if not sign_type or sign_type == SIGN_NONE:
        return None

    if sign_type == SIGN_DIGITAL:
        if signature is None:
            return None
        return {
            "type": sign_type,
            "id": str(_get(signature, "id")) if _get(signature, "id") else None,
            "name": _get(signature, "name"),
            "image": resolve_image_url(_get(signature, "image_path"), base_url=base_url),
        }

    if sign_type in SIGN_INLINE:
        return {
            "type": sign_type,
            "id": None,
            "name": signature_name,
            "image": resolve_image_url(signature_image, base_url=base_url),
        }

    return None


def format_party(party: Any, base_url: Optional[str] = None) -> Optional[dict]:
    """Flatten a customer or user into a display block."""
    if party is None:
        return None

    name = _get(party, "name")
    if name is None:
        first = _get(party, "first_name") or ""
        last = _get(party, "last_name") or ""
        name = f"{first} {last}".strip() or None

    image = _get(party, "image")
    if image is None:
        image = _get(party, "profile_image")

    return {
        "id": str(_get(party, "id")) if _get(party, "id") else None,
        "name": name,
        "email": _get(party, "email"),
        "phone": _get(party, "phone"),
        "image": resolve_image_url(image, base_url=base_url),
        "billing_address": _get(party, "billing_address") or _get(party, "address"),
    }


def format_bank(bank: Any) -> Optional[dict]:
    if bank is None:
        return None
    return {
        "id": str(_get(bank, "id")) if _get(bank, "id") else None,
        "bank_name": _get(bank, "bank_name"),
        "account_holder_name": _get(bank, "account_holder_name"),
        "account_number": _get(bank, "account_number"),
        "branch_name": _get(bank, "branch_name"),
        "ifsc_code": _get(bank, "ifsc_code"),
    }


def format_document(
    document: Any,
    number_field: str,
    date_fields: tuple,
    party: Any = None,
    party_key: str = "customer",
    bank: Any = None,
    signature: Any = None,
    amount_fields: tuple = (),
    extra_fields: tuple = (),
    base_url: Optional[str] = None,
) -> dict:
    """
    Generic flattened projection used by invoices, quotations and purchases.

    Dates in ``date_fields`` are rendered as "DD, Mon YYYY"; the referenced
    party, bank and signature are folded in as nested blocks.
    """
    result = {
        "id": str(_get(document, "id")) if _get(document, "id") else None,
        number_field: _get(document, number_field),
        "status": _get(document, "status"),
        "reference_no": _get(document, "reference_no"),
        "notes": _get(document, "notes"),
        "terms_and_condition": _get(document, "terms_and_condition"),
        "is_deleted": bool(_get(document, "is_deleted", False)),
    }
    for name in date_fields:
        result[name] = format_display_date(_get(document, name))
    for name in amount_fields:
        result[name] = _get(document, name)
    for name in extra_fields:
        result[name] = _get(document, name)

    result["items"] = [dict(item) for item in (_get(document, "items") or [])]
    result[party_key] = format_party(party, base_url=base_url)
    result["bank"] = format_bank(bank)
    result["sign_type"] = _get(document, "sign_type") or SIGN_NONE
    result["signature"] = build_signature_block(
        result["sign_type"],
        signature=signature,
        signature_name=_get(document, "signature_name"),
        signature_image=_get(document, "signature_image"),
        base_url=base_url,
    )
    return result


def format_invoice(
    invoice: Any,
    customer: Any = None,
    bank: Any = None,
    signature: Any = None,
    base_url: Optional[str] = None,
) -> dict:
    """Flattened invoice for detail and list views."""
    result = format_document(
        invoice,
        number_field="invoice_number",
        date_fields=("invoice_date", "due_date", "next_recurring_date"),
        party=customer,
        bank=bank,
        signature=signature,
        amount_fields=(
            "taxable_amount", "vat", "total_discount", "total_amount",
            "paid_amount", "balance_amount",
        ),
        extra_fields=(
            "payment_method", "is_recurring", "recurring", "recurring_duration",
        ),
        base_url=base_url,
    )
    parent_id = _get(invoice, "parent_invoice_id")
    result["parent_invoice_id"] = str(parent_id) if parent_id else None
    return result


def format_quotation(
    quotation: Any,
    customer: Any = None,
    bank: Any = None,
    signature: Any = None,
    base_url: Optional[str] = None,
) -> dict:
    result = format_document(
        quotation,
        number_field="quotation_number",
        date_fields=("quotation_date", "expiry_date"),
        party=customer,
        bank=bank,
        signature=signature,
        amount_fields=("sub_total", "total_discount", "total_tax", "grand_total"),
        extra_fields=("payment_terms", "convert_type", "round_off"),
        base_url=base_url,
    )
    converted = _get(quotation, "converted_invoice_id")
    result["converted_invoice_id"] = str(converted) if converted else None
    return result


def format_purchase_order(
    order: Any,
    vendor: Any = None,
    bank: Any = None,
    signature: Any = None,
    base_url: Optional[str] = None,
) -> dict:
    result = format_document(
        order,
        number_field="po_number",
        date_fields=("po_date", "due_date"),
        party=vendor,
        party_key="vendor",
        bank=bank,
        signature=signature,
        amount_fields=("taxable_amount", "total_discount", "total_tax", "total_amount"),
        extra_fields=("convert_type", "round_off"),
        base_url=base_url,
    )
    converted = _get(order, "converted_purchase_id")
    result["converted_purchase_id"] = str(converted) if converted else None
    return result


def format_purchase(
    purchase: Any,
    vendor: Any = None,
    bank: Any = None,
    signature: Any = None,
    base_url: Optional[str] = None,
) -> dict:
    """Flattened purchase; the supplier appears under ``vendor``."""
    return format_document(
        purchase,
        number_field="purchase_number",
        date_fields=("purchase_date",),
        party=vendor,
        party_key="vendor",
        bank=bank,
        signature=signature,
        amount_fields=(
            "taxable_amount", "total_discount", "total_tax", "total_amount",
            "paid_amount", "balance_amount",
        ),
        extra_fields=("supplier_invoice_serial_number", "payment_mode", "round_off"),
        base_url=base_url,
    )
