"""
Mobile media API routes - public gallery items and likes
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.enums import FileType
from services.gallery_service import get_media_service
from utils.auth import AuthConfig, AuthContext, require_member_profile
from utils.error_handling import raise_for_result
from utils.helpers import paginate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_public_media(
    folder_id: Optional[str] = Query(None),
    file_type: Optional[FileType] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    try:
        result = await get_media_service().list_media(
            folder_id=folder_id,
            file_type=file_type.value if file_type else None,
            public_only=True,
            page=page,
            limit=limit
        )
        raise_for_result(result)
        items = [
            dict(
                item,
                like_count=len(item.get("likes") or []),
                liked=bool(user.member_id) and user.member_id in (item.get("likes") or []),
            )
            for item in result.data
        ]
        total = result.page_info["total"]
        return {"success": True, "data": items, "pagination": paginate(total, page, limit)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list public media: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/{file_id}/like")
async def toggle_media_like(file_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    member_id = require_member_profile(user)
    try:
        result = await get_media_service().toggle_like(file_id, member_id)
        raise_for_result(result, not_found="Media not found")
        media = result.data[0]
        return {
            "success": True,
            "message": "Media liked" if media["liked"] else "Media unliked",
            "data": {"file_id": media["file_id"], "liked": media["liked"], "like_count": media["like_count"]},
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to toggle media like: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
