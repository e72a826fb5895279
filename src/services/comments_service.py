"""
Comments service - threaded comments on events, posts, media and community posts
"""

import logging
from typing import Dict, Any, List, Optional

from services.base_service import BaseService, ServiceResult, failure
from services.members_service import get_members_service
from services.activity_service import get_activity_service
from utils.helpers import parse_timestamp, full_name

logger = logging.getLogger(__name__)


def build_threads(comments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Nest replies under their parents.

    Top-level comments come back newest first; replies oldest first so a
    conversation reads top to bottom. Replies whose parent is missing from
    the list are promoted to the top level.
    """
    by_id = {c["comment_id"]: dict(c, replies=[]) for c in comments}
    roots = []
    for comment in by_id.values():
        parent = by_id.get(comment.get("parent_comment_id"))
        if parent is not None:
            parent["replies"].append(comment)
        else:
            roots.append(comment)

    for comment in by_id.values():
        comment["replies"].sort(key=lambda c: parse_timestamp(c["created_at"]))
    roots.sort(key=lambda c: parse_timestamp(c["created_at"]), reverse=True)
    return roots


class CommentsService(BaseService):
    """Service for comment operations"""

    def __init__(self):
        super().__init__("comments")

    async def list_comments(
        self,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        author_id: Optional[str] = None,
        include_unapproved: bool = False
    ) -> ServiceResult:
        filters: Dict[str, Any] = {}
        if target_type:
            filters["target_type"] = target_type
        if target_id:
            filters["target_id"] = target_id
        if author_id:
            filters["author_id"] = author_id
        if not include_unapproved:
            filters["is_approved"] = True
        return await self.read(
            filters=filters,
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=500
        )

    async def get_threads(self, target_type: str, target_id: str,
                          include_unapproved: bool = False) -> ServiceResult:
        """Comments on one target, nested into threads with author names"""
        result = await self.list_comments(target_type, target_id, include_unapproved=include_unapproved)
        if not result.success:
            return result
        comments = await self.with_authors(result.data)
        threads = build_threads(comments)
        return ServiceResult(success=True, data=threads, count=result.count)

    async def with_authors(self, comments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        author_ids = list({c["author_id"] for c in comments})
        members = await get_members_service().get_members_by_ids(author_ids)
        authors = {m["member_id"]: m for m in members.data} if members.success else {}

        enriched = []
        for comment in comments:
            author = authors.get(comment["author_id"])
            enriched.append(dict(
                comment,
                author_name=full_name(author) or None,
                author_avatar=author.get("avatar") if author else None,
            ))
        return enriched

    async def create_comment(
        self,
        content: str,
        author_id: str,
        target_type: str,
        target_id: str,
        parent_comment_id: Optional[str] = None,
        is_approved: bool = True
    ) -> ServiceResult:
        """
        Post a comment or a reply

        A reply's parent must exist and be attached to the same target.
        """
        if parent_comment_id:
            parent = await self.get_by_id(parent_comment_id)
            if not parent.success:
                if parent.error_type == "RESOURCE_NOT_FOUND":
                    return failure("Parent comment not found", "RESOURCE_NOT_FOUND")
                return parent
            if parent.data[0]["target_type"] != target_type or parent.data[0]["target_id"] != target_id:
                return failure("Reply must be on the same target as its parent comment", "INVALID_REQUEST")

        result = await self.create({
            "content": content.strip(),
            "author_id": author_id,
            "target_type": target_type,
            "target_id": target_id,
            "parent_comment_id": parent_comment_id,
            "is_approved": is_approved,
        })
        if result.success:
            await get_activity_service().record(
                author_id, "comment_posted", f"Commented on a {target_type.replace('_', ' ')}",
                {"comment_id": result.data[0]["comment_id"], "target_id": target_id}
            )
        return result

    async def delete_comment(self, comment_id: str) -> ServiceResult:
        """Delete a comment; replies go with it through the parent foreign key"""
        replies = await self.count(filters={"parent_comment_id": comment_id})
        result = await self.delete(comment_id)
        if result.success:
            result.data[0]["deleted_replies"] = replies.count if replies.success else 0
            logger.info(f"Deleted comment {comment_id} and {result.data[0]['deleted_replies']} direct replies")
        return result


# Global service instance
_comments_service: Optional[CommentsService] = None


def get_comments_service() -> CommentsService:
    """Get the global comments service instance"""
    global _comments_service
    if _comments_service is None:
        _comments_service = CommentsService()
    return _comments_service
