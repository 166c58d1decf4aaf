"""
Google Cloud Storage service for uploaded documents.
"""
import logging
from typing import Optional, Tuple
from datetime import datetime, timedelta
import mimetypes
from pathlib import Path

from google.cloud import storage
from google.cloud.exceptions import GoogleCloudError

from app.core.config import settings


logger = logging.getLogger(__name__)


def validate_upload(filename: str, file_size: int) -> Tuple[bool, str]:
    """Check the extension and size of an upload against the settings."""
    file_extension = Path(filename or "").suffix.lower()
    if file_extension not in settings.ALLOWED_FILE_EXTENSIONS:
        return False, f"File type '{file_extension}' is not allowed."

    if file_size > settings.MAX_UPLOAD_SIZE:
        return False, f"File size exceeds the maximum limit of {settings.MAX_UPLOAD_SIZE} bytes."

    if file_size == 0:
        return False, "File size is zero."
    return True, ""


def guess_content_type(filename: str, content_type: Optional[str] = None) -> str:
    if content_type and content_type != "application/octet-stream":
        return content_type
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


class FileService:
    """Google Cloud Storage service for managing document objects."""

    def __init__(self):
        try:
            self.client = storage.Client(project=settings.GCS_PROJECT_ID or None)
            self.bucket = self.client.bucket(settings.GCS_BUCKET_NAME)
        except GoogleCloudError as e:
            logger.error(f"Failed to initialize Google Cloud Storage client: {e}")
            raise

    def upload_bytes(
        self,
        content: bytes,
        filename: str,
        owner_id: str,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload raw bytes under the owner's prefix.

        Returns:
            Object key of the stored file
        """
        object_key = f"user_{owner_id}/{datetime.now().strftime('%Y%m%d%H%M%S%f')}_{filename}"
        try:
            blob = self.bucket.blob(object_key)
            blob.metadata = {
                "original_filename": filename,
                "uploaded_by": str(owner_id),
                "upload_time": datetime.now().isoformat(),
            }
            blob.upload_from_string(content, content_type=guess_content_type(filename, content_type), timeout=120)
            logger.info(f"File '{filename}' uploaded successfully as '{object_key}'.")
            return object_key
        except GoogleCloudError as e:
            logger.error(f"Failed to upload file '{filename}': {e}")
            raise

    def get_file_content(self, object_key: str) -> bytes:
        """Retrieve the content of a stored file."""
        try:
            blob = self.bucket.blob(object_key)
            content = blob.download_as_bytes()
            logger.info(f"Retrieved content for file '{object_key}'.")
            return content
        except GoogleCloudError as e:
            logger.error(f"Failed to retrieve content for file '{object_key}': {e}")
            raise

    def delete_file(self, object_key: str) -> bool:
        """Delete a stored file; False when the storage call fails."""
        try:
            self.bucket.blob(object_key).delete()
            logger.info(f"File '{object_key}' deleted successfully.")
            return True
        except GoogleCloudError as e:
            logger.error(f"Failed to delete file '{object_key}': {e}")
            return False

    def generate_signed_url(self, object_key: str, expiration_minutes: int = 15) -> str:
        """
        Generate a signed URL for downloading a stored file.
        """
        try:
            blob = self.bucket.blob(object_key)
            url = blob.generate_signed_url(
                expiration=timedelta(minutes=expiration_minutes),
                method="GET"
            )
            logger.info(f"Generated signed URL for '{object_key}' valid for {expiration_minutes} minutes.")
            return url
        except GoogleCloudError as e:
            logger.error(f"Failed to generate signed URL for '{object_key}': {e}")
            raise
