"""
Gallery API routes - media uploads to R2, folders and the raw bucket listing
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query, UploadFile, File, Form

from models.content import FolderCreateRequest, MediaUpdateRequest
from models.enums import FileType
from services.gallery_service import get_gallery_folders_service, get_media_service
from services.storage_service import content_type_for
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result
from utils.helpers import paginate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/upload", status_code=201)
async def upload_media(
    file: Optional[UploadFile] = File(None),
    folder: str = Form("gallery"),
    custom_name: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    folder_id: Optional[str] = Form(None),
    category: str = Form("general"),
    user: AuthContext = Depends(AuthConfig.require("gallery.create"))
):
    """
    Upload a file to object storage

    The object key is {folder}/{custom_name or timestamp-random}.{ext}; the
    response carries the public URL of the stored object.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    try:
        file_data = await file.read()
        content_type = file.content_type
        if not content_type or content_type == "application/octet-stream":
            content_type = content_type_for(file.filename)

        result = await get_media_service().upload(
            file_data,
            file.filename,
            content_type,
            uploaded_by=user.member_id or user.user_id,
            folder=folder,
            custom_name=custom_name,
            title=title,
            description=description,
            folder_id=folder_id,
            category=category
        )
        raise_for_result(result)
        media = result.data[0]
        return {"success": True, "message": "File uploaded successfully", "url": media["url"], "data": media}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to upload media: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("")
async def list_media(
    folder_id: Optional[str] = Query(None),
    file_type: Optional[FileType] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    _: AuthContext = Depends(AuthConfig.require("gallery.view"))
):
    try:
        result = await get_media_service().list_media(
            folder_id=folder_id,
            file_type=file_type.value if file_type else None,
            search=search,
            page=page,
            limit=limit
        )
        raise_for_result(result)
        total = result.page_info["total"]
        return {"success": True, "data": result.data, "total": total, "pagination": paginate(total, page, limit)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list media: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/folders")
async def list_folders(
    search: Optional[str] = Query(None),
    _: AuthContext = Depends(AuthConfig.require("gallery.view"))
):
    try:
        result = await get_gallery_folders_service().list_folders(search=search)
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list gallery folders: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/folders", status_code=201)
async def create_folder(
    request: FolderCreateRequest,
    user: AuthContext = Depends(AuthConfig.require("gallery.create"))
):
    if not request.name.strip():
        raise HTTPException(status_code=400, detail="Folder name is required")

    try:
        data = request.model_dump(mode="json")
        data["name"] = request.name.strip()
        data["created_by"] = user.member_id
        result = await get_gallery_folders_service().create_folder(data)
        raise_for_result(result)
        return {"success": True, "message": "Folder created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create gallery folder: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/files")
async def list_stored_files(
    folder: str = Query(""),
    _: AuthContext = Depends(AuthConfig.require("gallery.view"))
):
    """Objects currently in the bucket under a folder prefix"""
    try:
        prefix = f"{folder.strip('/')}/" if folder.strip("/") else ""
        result = get_media_service().list_stored_files(prefix=prefix)
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list stored files: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{file_id}")
async def get_media(file_id: str, _: AuthContext = Depends(AuthConfig.require("gallery.view"))):
    try:
        result = await get_media_service().get_by_id(file_id)
        raise_for_result(result, not_found="Media file not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get media file: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{file_id}")
async def update_media(
    file_id: str,
    request: MediaUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("gallery.edit"))
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    try:
        result = await get_media_service().update(file_id, updates)
        raise_for_result(result, not_found="Media file not found")
        return {"success": True, "message": "Media updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update media file: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{file_id}")
async def delete_media(file_id: str, _: AuthContext = Depends(AuthConfig.require("gallery.delete"))):
    try:
        result = await get_media_service().delete_media(file_id)
        raise_for_result(result, not_found="Media file not found")
        return {"success": True, "message": "Media deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete media file: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
