from datetime import date, datetime, timezone

import pytest

from app.core.formatting import (
    build_signature_block,
    format_display_date,
    format_invoice,
    resolve_image_url,
)
from app.core.recurrence import advance_date

BASE = "https://api.example.com"
PLACEHOLDER = "https://placehold.test/none.png"


class TestDisplayDate:
    def test_date(self):
        assert format_display_date(date(2025, 3, 5)) == "05, Mar 2025"

    def test_datetime_and_iso_string(self):
        assert format_display_date(datetime(2024, 12, 31, 23, 0, tzinfo=timezone.utc)) == "31, Dec 2024"
        assert format_display_date("2025-01-09") == "09, Jan 2025"

    def test_empty(self):
        assert format_display_date(None) is None
        assert format_display_date("") is None


class TestImageUrl:
    def test_relative_path_is_served_from_uploads(self):
        assert resolve_image_url("signatures/a.png", base_url=BASE) == f"{BASE}/uploads/signatures/a.png"

    def test_uploads_prefix_and_backslashes(self):
        assert resolve_image_url("uploads\\products\\b.png", base_url=BASE) == f"{BASE}/uploads/products/b.png"

    def test_absolute_url_passes_through(self):
        assert resolve_image_url("https://cdn.test/x.png", base_url=BASE) == "https://cdn.test/x.png"

    def test_missing_gives_placeholder(self):
        assert resolve_image_url(None, placeholder=PLACEHOLDER) == PLACEHOLDER


class TestSignatureBlock:
    def test_none(self):
        assert build_signature_block("none") is None

    def test_digital_uses_stored_signature(self):
        signature = {"id": "abc", "name": "Director", "image_path": "signatures/d.png"}
        block = build_signature_block("digitalSignature", signature=signature, base_url=BASE)
        assert block == {
            "type": "digitalSignature",
            "id": "abc",
            "name": "Director",
            "image": f"{BASE}/uploads/signatures/d.png",
        }

    def test_e_signature_uses_document_fields(self):
        block = build_signature_block(
            "eSignature",
            signature_name="R. Iyer",
            signature_image="document-signatures/e.png",
            base_url=BASE,
        )
        assert block["name"] == "R. Iyer"
        assert block["id"] is None
        assert block["image"].endswith("/uploads/document-signatures/e.png")


def test_format_invoice_flattens_related_rows():
    invoice = {
        "id": "inv-1",
        "invoice_number": "INV-000001",
        "status": "DRAFT",
        "invoice_date": date(2025, 3, 5),
        "due_date": date(2025, 3, 20),
        "items": [{"name": "Consulting", "amount": "200.00"}],
        "sign_type": "none",
        "total_amount": "218.00",
    }
    customer = {"id": "c-1", "name": "Acme", "email": "a@example.com", "image": None}

    result = format_invoice(invoice, customer=customer, base_url=BASE)

    assert result["invoice_number"] == "INV-000001"
    assert result["invoice_date"] == "05, Mar 2025"
    assert result["due_date"] == "20, Mar 2025"
    assert result["customer"]["name"] == "Acme"
    assert result["signature"] is None
    assert result["bank"] is None
    assert result["parent_invoice_id"] is None


class TestAdvanceDate:
    def test_daily_and_weekly(self):
        assert advance_date(date(2025, 3, 5), "daily", 3) == date(2025, 3, 8)
        assert advance_date(date(2025, 3, 5), "weekly", 2) == date(2025, 3, 19)

    def test_monthly_clamps_month_end(self):
        assert advance_date(date(2025, 1, 31), "monthly") == date(2025, 2, 28)

    def test_yearly(self):
        assert advance_date(date(2024, 2, 29), "yearly") == date(2025, 2, 28)

    def test_rejects_bad_input(self):
        with pytest.raises(ValueError):
            advance_date(date(2025, 1, 1), "hourly")
        with pytest.raises(ValueError):
            advance_date(date(2025, 1, 1), "daily", 0)
