"""
Comment API routes - threaded comments attached to events, posts and media
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Query

from models.content import CommentCreateRequest, CommentUpdateRequest
from models.enums import CommentTargetType
from services.comments_service import get_comments_service
from utils.auth import AuthConfig, AuthContext
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)


async def _load_comment(comment_id: str):
    result = await get_comments_service().get_by_id(comment_id)
    raise_for_result(result, not_found="Comment not found")
    return result.data[0]


@router.get("")
async def list_comments(
    target_type: CommentTargetType = Query(...),
    target_id: str = Query(...),
    include_unapproved: bool = Query(False),
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """Threads for one target; unapproved comments only show up for moderators"""
    try:
        result = await get_comments_service().get_threads(
            target_type.value,
            target_id,
            include_unapproved=include_unapproved and user.has_permission("comments.moderate")
        )
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list comments: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("", status_code=201)
async def create_comment(
    request: CommentCreateRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    # Staff may post on behalf of a member
    author_id = request.author_id if request.author_id and user.is_staff else user.member_id
    if not request.content or not request.content.strip() or not request.target_type or not request.target_id:
        raise HTTPException(status_code=400, detail="Content, target type, and target ID are required")
    if not author_id:
        raise HTTPException(status_code=400, detail="Comment author is required")

    try:
        comments_service = get_comments_service()
        result = await comments_service.create_comment(
            content=request.content,
            author_id=author_id,
            target_type=request.target_type.value,
            target_id=request.target_id,
            parent_comment_id=request.parent_comment_id
        )
        raise_for_result(result, not_found="Parent comment not found")
        comment = (await comments_service.with_authors(result.data))[0]
        return {"success": True, "message": "Comment added successfully", "data": comment}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create comment: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.put("/{comment_id}")
async def update_comment(
    comment_id: str,
    request: CommentUpdateRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """Authors edit their text; moderators edit anything and approve or reject"""
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided for update")
    if "content" in updates and not (updates["content"] or "").strip():
        raise HTTPException(status_code=400, detail="Comment content cannot be empty")

    try:
        comment = await _load_comment(comment_id)
        is_moderator = user.has_permission("comments.moderate")
        if "is_approved" in updates and not is_moderator:
            raise HTTPException(status_code=403, detail="Only moderators can approve comments")
        if not is_moderator and comment["author_id"] != user.member_id:
            raise HTTPException(status_code=403, detail="You can only edit your own comments")

        if "content" in updates:
            updates["content"] = updates["content"].strip()
        result = await get_comments_service().update(comment_id, updates)
        raise_for_result(result, not_found="Comment not found")
        return {"success": True, "message": "Comment updated successfully", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update comment: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.delete("/{comment_id}")
async def delete_comment(comment_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    try:
        comment = await _load_comment(comment_id)
        if not user.has_permission("comments.moderate") and comment["author_id"] != user.member_id:
            raise HTTPException(status_code=403, detail="You can only delete your own comments")

        result = await get_comments_service().delete_comment(comment_id)
        raise_for_result(result, not_found="Comment not found")
        return {
            "success": True,
            "message": "Comment deleted successfully",
            "deleted_replies": result.data[0].get("deleted_replies", 0),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete comment: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
