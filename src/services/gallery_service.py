"""
Gallery service - media files in R2 object storage and the folders that group them
"""

import logging
from typing import Dict, Any, Optional

from services.base_service import BaseService, ServiceResult, failure
from services.storage_service import (
    get_storage_service, build_object_key, file_type_category, StorageError, ALLOWED_UPLOAD_TYPES
)
from config.settings import MAX_UPLOAD_BYTES

logger = logging.getLogger(__name__)


class GalleryFoldersService(BaseService):
    """Service for gallery folders"""

    def __init__(self):
        super().__init__("gallery_folders")

    async def list_folders(self, search: Optional[str] = None) -> ServiceResult:
        """Folders newest first, each with its media count and latest image as cover"""
        result = await self.read(
            search=search,
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=100
        )
        if not result.success or not result.data:
            return result

        stats = await self.fetch(
            """
            SELECT folder_id,
                   COUNT(*) AS image_count,
                   (ARRAY_AGG(url ORDER BY created_at DESC)
                        FILTER (WHERE file_type = 'image'))[1] AS latest_image
            FROM media_files
            WHERE folder_id IS NOT NULL
            GROUP BY folder_id
            """
        )
        by_folder = {row["folder_id"]: row for row in stats.data} if stats.success else {}

        for folder in result.data:
            row = by_folder.get(folder["folder_id"], {})
            folder["image_count"] = row.get("image_count", 0)
            folder["cover_image"] = folder.get("cover_image") or row.get("latest_image")
        return result

    async def create_folder(self, data: Dict[str, Any]) -> ServiceResult:
        record = {key: value for key, value in data.items() if value is not None}
        logger.info(f"Creating gallery folder '{record['name']}'")
        result = await self.create(record)
        if result.success:
            result.data[0]["image_count"] = 0
        return result


class MediaService(BaseService):
    """Service for uploaded media files"""

    def __init__(self):
        super().__init__("media_files")

    async def list_media(
        self,
        folder_id: Optional[str] = None,
        file_type: Optional[str] = None,
        search: Optional[str] = None,
        public_only: bool = False,
        page: int = 1,
        limit: int = 100
    ) -> ServiceResult:
        filters: Dict[str, Any] = {}
        if folder_id:
            filters["folder_id"] = folder_id
        if file_type:
            filters["file_type"] = file_type
        if public_only:
            filters["is_public"] = True
        return await self.read(
            filters=filters,
            search=search,
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=limit,
            offset=(page - 1) * limit,
            with_total=True
        )

    async def upload(
        self,
        file_data: bytes,
        filename: str,
        content_type: Optional[str],
        uploaded_by: Optional[str] = None,
        folder: str = "gallery",
        custom_name: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        folder_id: Optional[str] = None,
        category: str = "general"
    ) -> ServiceResult:
        """
        Upload a file to object storage and record it

        Returns:
            ServiceResult with the media record (including its public url).
            INVALID_REQUEST for disallowed or oversized files, CONFIGURATION_ERROR
            when storage is not configured, UPSTREAM_ERROR when the upload fails.
        """
        if not file_data:
            return failure("No file provided", "INVALID_REQUEST")
        if content_type not in ALLOWED_UPLOAD_TYPES:
            return failure(f"File type not allowed: {content_type}", "INVALID_REQUEST")
        if len(file_data) > MAX_UPLOAD_BYTES:
            return failure(f"File exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)}MB upload limit", "INVALID_REQUEST")

        storage = get_storage_service()
        if not storage.is_configured:
            return failure("Object storage is not configured", "CONFIGURATION_ERROR")

        key = build_object_key(filename, folder=folder, custom_name=custom_name)
        metadata = {"original-name": filename}
        if uploaded_by:
            metadata["uploaded-by"] = uploaded_by
        try:
            stored = storage.upload_file(file_data, key, content_type, metadata)
        except StorageError as e:
            return failure(str(e), "UPSTREAM_ERROR")

        result = await self.create({
            "folder_id": folder_id,
            "title": title or filename,
            "description": description,
            "file_key": key,
            "url": stored["url"],
            "file_type": file_type_category(content_type),
            "content_type": content_type,
            "size_bytes": stored["size"],
            "category": category,
            "uploaded_by": uploaded_by,
        })
        if not result.success:
            logger.error(f"Uploaded {key} but could not record it: {result.error}")
        return result

    async def delete_media(self, file_id: str) -> ServiceResult:
        """Delete the record and its object in storage"""
        result = await self.delete(file_id)
        if not result.success:
            return result

        storage = get_storage_service()
        if storage.is_configured:
            try:
                storage.delete_file(result.data[0]["file_key"])
            except StorageError as e:
                logger.warning(f"Media record {file_id} deleted but object removal failed: {e}")
        return result

    async def toggle_like(self, file_id: str, member_id: str) -> ServiceResult:
        """Like a public media item, or unlike it when the member already liked it"""
        media = await self.get_by_id(file_id)
        if not media.success:
            if media.error_type == "RESOURCE_NOT_FOUND":
                return failure("Media not found", "RESOURCE_NOT_FOUND")
            return media
        if not media.data[0].get("is_public", True):
            return failure("Media not found", "RESOURCE_NOT_FOUND")

        if member_id in (media.data[0].get("likes") or []):
            result = await self.remove_from_array(file_id, "likes", member_id)
            liked = False
        else:
            result = await self.add_to_array(file_id, "likes", member_id)
            liked = True
        if result.success:
            result.data[0]["liked"] = liked
            result.data[0]["like_count"] = len(result.data[0].get("likes") or [])
        return result

    def list_stored_files(self, prefix: str = "") -> ServiceResult:
        """Raw object listing straight from the bucket"""
        storage = get_storage_service()
        if not storage.is_configured:
            return failure("Object storage is not configured", "CONFIGURATION_ERROR")
        try:
            files = storage.list_files(prefix=prefix)
        except StorageError as e:
            return failure(str(e), "UPSTREAM_ERROR")
        return ServiceResult(success=True, data=files, count=len(files))


# Global service instances
_gallery_folders_service: Optional[GalleryFoldersService] = None
_media_service: Optional[MediaService] = None


def get_gallery_folders_service() -> GalleryFoldersService:
    """Get the global gallery folders service instance"""
    global _gallery_folders_service
    if _gallery_folders_service is None:
        _gallery_folders_service = GalleryFoldersService()
    return _gallery_folders_service


def get_media_service() -> MediaService:
    """Get the global media service instance"""
    global _media_service
    if _media_service is None:
        _media_service = MediaService()
    return _media_service
