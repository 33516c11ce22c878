# Services module
from app.services.auth_service import AuthService
from app.services.user_service import UserService
from app.services.product_service import ProductService
from app.services.customer_service import CustomerService
from app.services.supplier_service import SupplierService
from app.services.bank_detail_service import BankDetailService
from app.services.signature_service import SignatureService
from app.services.currency_service import CurrencyService
from app.services.document_sequence_service import DocumentSequenceService
from app.services.inventory_service import InventoryService

# Documents
from app.services.invoice_service import InvoiceService
from app.services.quotation_service import QuotationService
from app.services.purchase_service import PurchaseService
from app.services.supplier_payment_service import SupplierPaymentService
from app.services.debit_note_service import DebitNoteService

from app.services.settings_service import SettingsService
from app.services.upload_service import UploadService, UploadTracker

__all__ = [
    "AuthService",
    "UserService",
    "ProductService",
    "CustomerService",
    "SupplierService",
    "BankDetailService",
    "SignatureService",
    "CurrencyService",
    "DocumentSequenceService",
    "InventoryService",
    # Documents
    "InvoiceService",
    "QuotationService",
    "PurchaseService",
    "SupplierPaymentService",
    "DebitNoteService",
    "SettingsService",
    "UploadService",
    "UploadTracker",
]
