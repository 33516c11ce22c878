"""Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; the handler registered in
app.main turns them into ``{"detail": ...}`` responses.
"""

from typing import Any


class ServiceError(Exception):
    """Base class for business-rule failures."""
    status_code = 400

    def __init__(self, detail: Any):
        super().__init__(detail)
        self.detail = detail


class BusinessRuleError(ServiceError):
    """Input is well-formed but violates a business rule."""
    status_code = 400


class NotFoundError(ServiceError):
    """Addressed record does not exist (or is not visible to the caller)."""
    status_code = 404


class ConflictError(ServiceError):
    """Duplicate unique value or state conflict."""
    status_code = 409


class InvalidReferenceError(ServiceError):
    """A referenced id (user, product, unit, bank, signature...) is invalid."""
    status_code = 422


class PermissionDeniedError(ServiceError):
    status_code = 403
