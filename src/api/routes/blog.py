"""
Blog API routes
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.content import BlogPostCreateRequest, BlogPostUpdateRequest
from services.blog_service import get_blog_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result
from utils.helpers import paginate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
async def list_posts(
    search: Optional[str] = Query(None),
    is_draft: Optional[bool] = Query(None),
    tag: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _: AuthContext = Depends(AuthConfig.require("blog.view"))
):
    try:
        result = await get_blog_service().list_posts(
            search=search, is_draft=is_draft, tag=tag, page=page, limit=limit
        )
        raise_for_result(result)
        total = result.page_info["total"]
        return {"success": True, "data": result.data, "total": total, "pagination": paginate(total, page, limit)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list blog posts: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_post(
    request: BlogPostCreateRequest,
    _: AuthContext = Depends(AuthConfig.require("blog.create"))
):
    if not request.title or not request.content or not request.excerpt or not request.author:
        raise HTTPException(status_code=400, detail="Title, content, excerpt, and author are required")

    try:
        result = await get_blog_service().create_post(request.model_dump(mode="json"))
        raise_for_result(result)
        return {"success": True, "message": "Blog post created successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create blog post: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{post_id}")
async def get_post(post_id: str, _: AuthContext = Depends(AuthConfig.require("blog.view"))):
    """Fetch a post by id or by slug"""
    try:
        result = await get_blog_service().get_post(post_id)
        raise_for_result(result, not_found="Blog post not found")
        return {"success": True, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get blog post: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{post_id}")
async def update_post(
    post_id: str,
    request: BlogPostUpdateRequest,
    _: AuthContext = Depends(AuthConfig.require("blog.edit"))
):
    updates = request.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")

    try:
        result = await get_blog_service().update_post(post_id, updates)
        raise_for_result(result, not_found="Blog post not found")
        return {"success": True, "message": "Blog post updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update blog post: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{post_id}")
async def delete_post(post_id: str, _: AuthContext = Depends(AuthConfig.require("blog.delete"))):
    try:
        result = await get_blog_service().delete(post_id)
        raise_for_result(result, not_found="Blog post not found")
        logger.info(f"Deleted blog post {post_id}")
        return {"success": True, "message": "Blog post deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete blog post: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
