"""
Mobile blog API routes - published posts only
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query

from services.blog_service import get_blog_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result
from utils.helpers import paginate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_published_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    _: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    try:
        result = await get_blog_service().list_published(page=page, limit=limit)
        raise_for_result(result)
        total = result.page_info["total"]
        return {"success": True, "data": result.data, "pagination": paginate(total, page, limit)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list published blog posts: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
