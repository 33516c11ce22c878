from contextlib import asynccontextmanager
from pathlib import Path
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import settings
from app.api.v1.router import api_router
from app.core.exceptions import ServiceError
from app.database import async_session_factory
from app.database_init import startup_initialization
from app.jobs.scheduler import start_scheduler, shutdown_scheduler


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Create missing tables
    - Start the background scheduler (recurring invoice rollover)
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await startup_initialization()

    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    else:
        logger.info("Background scheduler disabled")

    yield

    if settings.SCHEDULER_ENABLED:
        shutdown_scheduler()
    logger.info("Shutting down...")


OPENAPI_TAGS = [
    {"name": "Authentication", "description": "Registration, login and token revocation"},
    {"name": "Users", "description": "Profiles and user lookup"},
    {"name": "Products", "description": "Product catalog with images, prices and tax"},
    {"name": "Categories", "description": "Product categories"},
    {"name": "Brands", "description": "Product brands"},
    {"name": "Units", "description": "Units of measure"},
    {"name": "Taxes", "description": "Tax rates and tax groups"},
    {"name": "Lookups", "description": "Active catalog rows as id/name pairs for dropdowns"},
    {"name": "Customers", "description": "Customers with billing and shipping addresses"},
    {"name": "Suppliers", "description": "Suppliers and their balances"},
    {"name": "Bank Details", "description": "Bank accounts printed on documents"},
    {"name": "Signatures", "description": "Stored signatures and the default signature"},
    {"name": "Currencies", "description": "Currencies and the global default"},
    {"name": "Document Sequences", "description": "Document number counters"},
    {"name": "Invoices", "description": "Sales invoices and invoice payments"},
    {"name": "Recurring Invoices", "description": "Recurring invoice templates and rollover"},
    {"name": "Quotations", "description": "Quotations and conversion to invoices"},
    {"name": "Purchase Orders", "description": "Purchase orders and conversion to purchases"},
    {"name": "Purchases", "description": "Purchases that stock items in"},
    {"name": "Supplier Payments", "description": "Payments against purchases"},
    {"name": "Debit Notes", "description": "Returns to suppliers"},
    {"name": "Inventory", "description": "Stock levels and movement history"},
    {"name": "Settings", "description": "Company details, email, localization and invoice template"},
    {"name": "Geography", "description": "Countries, states and cities for address forms"},
    {"name": "Email Templates", "description": "Notification types and their email, SMS and in-app templates"},
    {"name": "Jobs", "description": "Background job status and manual runs"},
]

API_DESCRIPTION = """
## Kanakku Invoicing API

Invoicing, purchasing and inventory for small businesses.

### Authentication

All `/admin/*` endpoints require a bearer token from `/auth/login` or
`/auth/register`. Include it in the Authorization header: `Bearer <token>`.

### Error Codes

| Code | Description |
|------|-------------|
| 400 | Bad Request - Business rule violated |
| 401 | Unauthorized - Invalid/expired/revoked token |
| 403 | Forbidden - Inactive account or another owner's record |
| 404 | Not Found - Resource doesn't exist |
| 409 | Conflict - Duplicate value |
| 422 | Unprocessable Entity - Validation failed or invalid reference |
| 500 | Internal Server Error |
"""

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=API_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=OPENAPI_TAGS,
    swagger_ui_parameters={
        "deepLinking": True,
        "persistAuthorization": True,
        "filter": True,
    },
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)

# Uploaded files are served from here; see app.core.storage
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Business rule failures raised by the service layer."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unexpected failures and hide their details in production."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")

    detail = "Internal server error" if settings.is_production else f"{type(exc).__name__}: {exc}"
    response = JSONResponse(status_code=500, content={"detail": detail})

    # Error responses bypass CORSMiddleware
    origin = request.headers.get("origin", "")
    if origin in settings.cors_origins_list or "*" in settings.cors_origins_list:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"

    return response


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint with database validation."""
    from sqlalchemy import text
    from datetime import datetime, timezone

    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "database": "unknown"
        }
    }

    try:
        async with async_session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            health_status["checks"]["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = f"error: {str(e)}"

    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
