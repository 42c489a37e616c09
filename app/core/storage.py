"""
File storage abstraction layer supporting both local filesystem and AWS S3.

Candidate documents (resume, about-me video, sales pitch video) are uploaded
here; the returned public URL is what gets stored on the candidate row.
"""

import logging
import os
from typing import BinaryIO
import boto3
from botocore.exceptions import ClientError
from app.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an upload cannot be completed."""
    pass


class StorageBackend:
    """Abstract base class for storage backends"""

    def upload_file(self, file: BinaryIO, path: str) -> str:
        """Upload file to `path` and return its public URL"""
        raise NotImplementedError


def _clean_path(path: str) -> str:
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".", "..")]
    if not parts:
        raise StorageError(f"Invalid storage path: {path!r}")
    return "/".join(parts)


class LocalStorage(StorageBackend):
    """Local filesystem storage backend"""

    def __init__(self, base_dir: str = "uploads", public_url: str = "http://localhost:8000/uploads"):
        self.base_dir = base_dir
        self.public_url = public_url.rstrip("/")
        os.makedirs(self.base_dir, exist_ok=True)

    def upload_file(self, file: BinaryIO, path: str) -> str:
        """Save file under the uploads directory, overwriting any previous version"""
        key = _clean_path(path)
        file_path = os.path.join(self.base_dir, *key.split("/"))
        os.makedirs(os.path.dirname(file_path), exist_ok=True)

        with open(file_path, "wb") as buffer:
            buffer.write(file.read())

        return f"{self.public_url}/{key}"


class S3Storage(StorageBackend):
    """AWS S3 storage backend"""

    CONTENT_TYPES = {
        'pdf': 'application/pdf',
        'docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
        'doc': 'application/msword',
        'mp4': 'video/mp4',
        'webm': 'video/webm',
        'mov': 'video/quicktime',
    }

    def __init__(self):
        self.bucket_name = settings.S3_BUCKET_NAME

        # Without explicit keys boto3 falls back to IAM roles
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            self.s3_client = boto3.client(
                's3',
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=settings.AWS_REGION
            )
        else:
            self.s3_client = boto3.client('s3', region_name=settings.AWS_REGION)

    def upload_file(self, file: BinaryIO, path: str) -> str:
        """Upload file to S3 and return its public URL"""
        key = _clean_path(path)
        try:
            self.s3_client.upload_fileobj(
                file,
                self.bucket_name,
                key,
                ExtraArgs={'ContentType': self._get_content_type(key)}
            )
        except ClientError as e:
            logger.error(f"Error uploading to S3: {e}")
            raise StorageError(f"Failed to upload file to S3: {e}")

        return f"https://{self.bucket_name}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"

    def _get_content_type(self, filename: str) -> str:
        extension = filename.lower().split('.')[-1]
        return self.CONTENT_TYPES.get(extension, 'application/octet-stream')


# Storage factory - returns appropriate backend based on settings
def get_storage() -> StorageBackend:
    """Get storage backend based on USE_S3 setting"""
    if settings.USE_S3:
        if not settings.S3_BUCKET_NAME:
            raise ValueError("S3_BUCKET_NAME must be set when USE_S3=True")
        return S3Storage()
    return LocalStorage(settings.LOCAL_STORAGE_DIR, settings.PUBLIC_STORAGE_URL)


# Singleton instance
storage = get_storage()


def get_storage_backend() -> StorageBackend:
    """FastAPI dependency for the active storage backend; overridden in tests."""
    return storage
