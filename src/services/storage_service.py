"""
Object storage service for Cloudflare R2 (S3 compatible API via boto3)
"""

import os
import re
import time
import random
import string
import logging
from typing import Dict, Any, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config.settings import (
    R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME, R2_PUBLIC_URL
)

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "webm": "video/webm",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "m4a": "audio/mp4",
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "txt": "text/plain",
    "csv": "text/csv",
    "zip": "application/zip",
}

ALLOWED_UPLOAD_TYPES = set(CONTENT_TYPES.values()) | {"application/x-zip-compressed"}

DOCUMENT_EXTENSIONS = {"pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt", "csv"}


class StorageError(Exception):
    """Raised when the object store is unavailable or rejects a request"""


def file_extension(filename: str) -> str:
    _, ext = os.path.splitext(filename or "")
    return ext.lstrip(".").lower()


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(file_extension(filename), "application/octet-stream")


def file_type_category(name_or_mime: str) -> str:
    """Classify a filename or MIME type as image, video, audio, document or other"""
    value = (name_or_mime or "").lower()
    if "/" in value:
        major = value.split("/", 1)[0]
        if major in ("image", "video", "audio"):
            return major
        if value.startswith("text/") or "pdf" in value or "word" in value or "sheet" in value \
                or "excel" in value or "powerpoint" in value or "presentation" in value:
            return "document"
        return "other"
    return file_type_category(content_type_for(value))


def sanitize_filename(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "-", name).strip("-") or "file"


def build_object_key(filename: str, folder: str = "uploads", custom_name: Optional[str] = None) -> str:
    """
    Build the object key "{folder}/{name}.{ext}".

    Without a custom name the name is "{epoch millis}-{6 random chars}".
    """
    ext = file_extension(filename) or "bin"
    if custom_name:
        base = sanitize_filename(custom_name)
        if base.lower().endswith(f".{ext}"):
            base = base[: -(len(ext) + 1)]
    else:
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
        base = f"{int(time.time() * 1000)}-{suffix}"
    folder = folder.strip("/") or "uploads"
    return f"{folder}/{base}.{ext}"


class StorageService:
    """Thin wrapper over the R2 bucket"""

    def __init__(self):
        self._client = None
        self.bucket = R2_BUCKET_NAME
        self.public_url = (R2_PUBLIC_URL or "").rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(R2_ACCOUNT_ID and R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY)

    @property
    def client(self):
        if not self.is_configured:
            raise StorageError("Object storage is not configured")
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
                aws_access_key_id=R2_ACCESS_KEY_ID,
                aws_secret_access_key=R2_SECRET_ACCESS_KEY,
                region_name="auto",
            )
        return self._client

    def public_url_for(self, key: str) -> str:
        return f"{self.public_url}/{key}"

    def upload_file(self, file_data: bytes, key: str, content_type: str,
                    metadata: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Upload bytes and return key, url and size"""
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=file_data,
                ContentType=content_type,
                Metadata=metadata or {},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload {key} to R2: {e}")
            raise StorageError(f"Upload failed: {e}") from e

        logger.info(f"Uploaded {key} ({len(file_data)} bytes) to bucket {self.bucket}")
        return {"key": key, "url": self.public_url_for(key), "size": len(file_data)}

    def delete_file(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete {key} from R2: {e}")
            raise StorageError(f"Delete failed: {e}") from e
        logger.info(f"Deleted {key} from bucket {self.bucket}")

    def list_files(self, prefix: str = "", max_keys: int = 1000) -> List[Dict[str, Any]]:
        try:
            response = self.client.list_objects_v2(Bucket=self.bucket, Prefix=prefix, MaxKeys=max_keys)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to list R2 objects under '{prefix}': {e}")
            raise StorageError(f"List failed: {e}") from e

        files = []
        for item in response.get("Contents", []):
            key = item["Key"]
            files.append({
                "key": key,
                "url": self.public_url_for(key),
                "size": item.get("Size", 0),
                "last_modified": item["LastModified"].isoformat() if item.get("LastModified") else None,
                "file_type": file_type_category(key),
            })
        return files


# Global service instance
_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get the global storage service instance"""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
