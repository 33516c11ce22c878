from fastapi import APIRouter

from app.api.v1.endpoints import (
    # Access
    auth,
    users,
    # Catalog
    categories,
    brands,
    units,
    taxes,
    lookups,
    products,
    # Parties
    customers,
    suppliers,
    bank_details,
    signatures,
    currencies,
    # Numbering
    document_sequences,
    # Sales
    invoices,
    recurring_invoices,
    quotations,
    # Purchasing
    purchase_orders,
    purchases,
    supplier_payments,
    debit_notes,
    # Inventory
    inventory,
    # Settings
    settings,
    email_templates,
    geography,
    # Background jobs
    jobs,
)


# Create main API router
api_router = APIRouter()

# ==================== Access ====================
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"]
)
api_router.include_router(
    users.router,
    prefix="/admin",
    tags=["Users"]
)

# ==================== Product Catalog ====================
api_router.include_router(
    categories.router,
    prefix="/admin/categories",
    tags=["Categories"]
)
api_router.include_router(
    brands.router,
    prefix="/admin/brands",
    tags=["Brands"]
)
api_router.include_router(
    units.router,
    prefix="/admin/units",
    tags=["Units"]
)
api_router.include_router(
    taxes.router,
    prefix="/admin",
    tags=["Taxes"]
)
api_router.include_router(
    lookups.router,
    prefix="/admin",
    tags=["Lookups"]
)
api_router.include_router(
    products.router,
    prefix="/admin/products",
    tags=["Products"]
)

# ==================== Parties ====================
api_router.include_router(
    customers.router,
    prefix="/admin/customers",
    tags=["Customers"]
)
api_router.include_router(
    suppliers.router,
    prefix="/admin/suppliers",
    tags=["Suppliers"]
)
api_router.include_router(
    bank_details.router,
    prefix="/admin/bank-details",
    tags=["Bank Details"]
)
api_router.include_router(
    signatures.router,
    prefix="/admin/signatures",
    tags=["Signatures"]
)
api_router.include_router(
    currencies.router,
    prefix="/admin/currencies",
    tags=["Currencies"]
)

# ==================== Numbering ====================
api_router.include_router(
    document_sequences.router,
    prefix="/admin/document-sequences",
    tags=["Document Sequences"]
)

# ==================== Sales ====================
api_router.include_router(
    invoices.router,
    prefix="/admin/invoices",
    tags=["Invoices"]
)
api_router.include_router(
    recurring_invoices.router,
    prefix="/admin/recurring-invoices",
    tags=["Recurring Invoices"]
)
api_router.include_router(
    quotations.router,
    prefix="/admin/quotations",
    tags=["Quotations"]
)

# ==================== Purchasing ====================
api_router.include_router(
    purchase_orders.router,
    prefix="/admin/purchase-orders",
    tags=["Purchase Orders"]
)
api_router.include_router(
    purchases.router,
    prefix="/admin/purchases",
    tags=["Purchases"]
)
api_router.include_router(
    supplier_payments.router,
    prefix="/admin/supplier-payments",
    tags=["Supplier Payments"]
)
api_router.include_router(
    debit_notes.router,
    prefix="/admin/debit-notes",
    tags=["Debit Notes"]
)

# ==================== Inventory ====================
api_router.include_router(
    inventory.router,
    prefix="/admin/inventory",
    tags=["Inventory"]
)

# ==================== Settings ====================
api_router.include_router(
    settings.router,
    prefix="/admin",
    tags=["Settings"]
)

# ==================== Reference Data ====================
api_router.include_router(
    geography.router,
    prefix="/admin",
    tags=["Geography"]
)
api_router.include_router(
    email_templates.router,
    prefix="/admin",
    tags=["Email Templates"]
)

# ==================== Background Jobs ====================
api_router.include_router(
    jobs.router,
    prefix="/admin/jobs",
    tags=["Jobs"]
)
