"""Local filesystem storage for uploaded files."""
import logging
import uuid
from pathlib import Path
from typing import Optional

from app.config import settings

logger = logging.getLogger(__name__)


class StorageClient:
    """
    Client for storing uploads under settings.UPLOAD_DIR.

    Stored paths are relative ("brands/3f2a9c1e5b7d.png") and are served
    by the static mount at /uploads.
    """

    @classmethod
    def root(cls) -> Path:
        return Path(settings.UPLOAD_DIR)

    @classmethod
    def upload(
        cls,
        content: bytes,
        path: str,
        content_type: str
    ) -> str:
        """
        Write a file to storage.

        Args:
            content: File content as bytes
            path: Storage path (e.g., "logos/company-logo.png")
            content_type: MIME type (e.g., "image/png")

        Returns:
            The stored relative path
        """
        target = cls.root() / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.debug(f"Stored {content_type} upload at {target}")
        return path

    @classmethod
    def delete(cls, path: Optional[str]) -> bool:
        """
        Delete a file from storage.

        Args:
            path: Stored relative path or full public URL

        Returns:
            True if a file was removed
        """
        if not path:
            return False

        if path.startswith("http"):
            path = cls.extract_path_from_url(path)
            if not path:
                return False

        target = cls.root() / path
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not delete stored file {target}: {e}")
            return False
        return True

    @classmethod
    def exists(cls, path: str) -> bool:
        return (cls.root() / path).is_file()

    @classmethod
    def extract_path_from_url(cls, url: str) -> Optional[str]:
        """Extract the stored path from a public /uploads/ URL."""
        marker = "/uploads/"
        if marker in url:
            return url.split(marker, 1)[1]
        return None

    @classmethod
    def generate_unique_filename(cls, original_filename: str, prefix: str = "") -> str:
        """
        Generate a unique filename to prevent collisions.

        Args:
            original_filename: Original file name
            prefix: Optional prefix for organization (e.g., "logos", "products")

        Returns:
            Unique filename with path
        """
        ext = ""
        if original_filename and "." in original_filename:
            ext = "." + original_filename.rsplit(".", 1)[1].lower()

        unique_id = uuid.uuid4().hex[:12]

        if prefix:
            return f"{prefix}/{unique_id}{ext}"
        return f"{unique_id}{ext}"
