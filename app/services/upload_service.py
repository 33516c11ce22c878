"""Upload service for file validation and request-scoped cleanup."""
import io
import logging
from enum import Enum
from typing import Optional, Tuple

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from app.core.exceptions import BusinessRuleError
from app.core.storage import StorageClient

logger = logging.getLogger(__name__)


# Allowed MIME types by category
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/svg+xml": ".svg",
}

ALLOWED_DOCUMENT_TYPES = {
    "application/pdf": ".pdf",
}

# Size limits in bytes
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB
MAX_DOCUMENT_SIZE = 10 * 1024 * 1024  # 10MB


class UploadCategory(str, Enum):
    """Sub-directory of the upload root, per kind of owner."""
    PROFILES = "profiles"
    BRANDS = "brands"
    CATEGORIES = "categories"
    PRODUCTS = "products"
    CUSTOMERS = "customers"
    SIGNATURES = "signatures"
    COMPANY = "company"
    DOCUMENT_SIGNATURES = "document-signatures"
    PAYMENTS = "payments"


class UploadError(BusinessRuleError):
    """Rejected upload (type, size or corrupt content)."""
    pass


class UploadService:
    """Validation for uploaded files."""

    @staticmethod
    def validate_image(
        content: bytes,
        content_type: str,
        filename: str
    ) -> Tuple[bool, Optional[str]]:
        """
        Validate image file.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if content_type not in ALLOWED_IMAGE_TYPES:
            return False, f"Invalid image type: {content_type}. Allowed: {', '.join(ALLOWED_IMAGE_TYPES.keys())}"

        if len(content) > MAX_IMAGE_SIZE:
            max_mb = MAX_IMAGE_SIZE / (1024 * 1024)
            actual_mb = len(content) / (1024 * 1024)
            return False, f"Image too large: {actual_mb:.1f}MB. Maximum: {max_mb}MB"

        # For non-SVG images, validate it's a valid image
        if content_type != "image/svg+xml":
            try:
                img = Image.open(io.BytesIO(content))
                img.verify()
            except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
                return False, "Invalid or corrupted image file"

        return True, None

    @staticmethod
    def validate_document(
        content: bytes,
        content_type: str,
        filename: str
    ) -> Tuple[bool, Optional[str]]:
        """Validate a PDF attachment."""
        if content_type not in ALLOWED_DOCUMENT_TYPES:
            return False, f"Invalid document type: {content_type}. Allowed: PDF"

        if len(content) > MAX_DOCUMENT_SIZE:
            max_mb = MAX_DOCUMENT_SIZE / (1024 * 1024)
            actual_mb = len(content) / (1024 * 1024)
            return False, f"Document too large: {actual_mb:.1f}MB. Maximum: {max_mb}MB"

        if not content.startswith(b"%PDF"):
            return False, "Invalid PDF file"

        return True, None


def _has_file(file: Optional[UploadFile]) -> bool:
    # Browsers send an empty part for untouched file inputs
    return file is not None and bool(file.filename)


class UploadTracker:
    """
    Files written or superseded during one request.

    Newly written files are removed if the request fails; superseded files
    are removed only once the request has succeeded. The ``Uploads``
    dependency in app.api.deps drives both.
    """

    def __init__(self):
        self.written: list[str] = []
        self.superseded: list[str] = []

    async def save_image(self, file: Optional[UploadFile], category: UploadCategory) -> Optional[str]:
        """Validate and store an image; returns the stored path or None when no file was sent."""
        if not _has_file(file):
            return None

        content = await file.read()
        is_valid, error = UploadService.validate_image(content, file.content_type, file.filename)
        if not is_valid:
            raise UploadError(error)
        return self._store(content, file, category)

    async def save_attachment(self, file: Optional[UploadFile], category: UploadCategory) -> Optional[str]:
        """Store an image or PDF attachment."""
        if not _has_file(file):
            return None

        content = await file.read()
        if file.content_type in ALLOWED_DOCUMENT_TYPES:
            is_valid, error = UploadService.validate_document(content, file.content_type, file.filename)
        else:
            is_valid, error = UploadService.validate_image(content, file.content_type, file.filename)
        if not is_valid:
            raise UploadError(error)
        return self._store(content, file, category)

    def _store(self, content: bytes, file: UploadFile, category: UploadCategory) -> str:
        path = StorageClient.generate_unique_filename(file.filename, category.value)
        StorageClient.upload(content, path, file.content_type)
        self.written.append(path)
        return path

    def supersede(self, *paths: Optional[str]) -> None:
        """Schedule old files for deletion after a successful request."""
        self.superseded.extend(path for path in paths if path)

    def discard_written(self) -> None:
        for path in self.written:
            if StorageClient.delete(path):
                logger.info(f"Removed upload {path} after failed request")
        self.written.clear()

    def purge_superseded(self) -> None:
        for path in self.superseded:
            StorageClient.delete(path)
        self.superseded.clear()
