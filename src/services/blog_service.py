"""
Blog service - church blog posts addressed by id or slug
"""

import logging
from typing import Dict, Any, Optional

from services.base_service import BaseService, ServiceResult, failure, is_uuid
from utils.helpers import slugify, utc_now

logger = logging.getLogger(__name__)


class BlogService(BaseService):
    """Service for blog post operations"""

    def __init__(self):
        super().__init__("blog_posts")

    async def list_posts(
        self,
        search: Optional[str] = None,
        is_draft: Optional[bool] = None,
        tag: Optional[str] = None,
        page: int = 1,
        limit: int = 100
    ) -> ServiceResult:
        filters: Dict[str, Any] = {}
        if is_draft is not None:
            filters["is_draft"] = is_draft
        if tag:
            filters["tags"] = {"op": "ANY", "value": tag}
        return await self.read(
            filters=filters,
            search=search,
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=limit,
            offset=(page - 1) * limit,
            with_total=True
        )

    async def list_published(self, page: int = 1, limit: int = 10) -> ServiceResult:
        return await self.read(
            filters={"is_draft": False},
            order_by=[{"field": "published_at", "dir": "desc"}],
            limit=limit,
            offset=(page - 1) * limit,
            with_total=True
        )

    async def get_post(self, id_or_slug: str) -> ServiceResult:
        """Look a post up by id, falling back to its slug"""
        if is_uuid(id_or_slug):
            result = await self.get_by_id(id_or_slug)
        else:
            result = await self.read(filters={"slug": id_or_slug}, limit=1)
            if result.success and not result.data:
                result = failure(f"Blog post not found: {id_or_slug}", "RESOURCE_NOT_FOUND")
        return result

    async def create_post(self, data: Dict[str, Any]) -> ServiceResult:
        """
        Create a post

        The slug defaults to the slugified title. Publishing (is_draft false)
        stamps published_at.

        Returns:
            ServiceResult with the post; CONFLICT when the slug is taken
        """
        post = {key: value for key, value in data.items() if value is not None}
        post["slug"] = slugify(post.get("slug") or post["title"])
        if not post["slug"]:
            return failure("Title must contain letters or numbers", "INVALID_REQUEST")
        if not post.get("is_draft", True):
            post["published_at"] = utc_now()

        existing = await self.read(filters={"slug": post["slug"]}, limit=1)
        if not existing.success:
            return existing
        if existing.data:
            return failure("A blog post with this slug already exists", "CONFLICT")

        logger.info(f"Creating blog post '{post['title']}' ({post['slug']})")
        result = await self.create(post)
        if not result.success and result.error_type == "CONFLICT":
            return failure("A blog post with this slug already exists", "CONFLICT")
        return result

    async def update_post(self, post_id: str, data: Dict[str, Any]) -> ServiceResult:
        current = await self.get_by_id(post_id)
        if not current.success:
            return current

        updates = dict(data)
        if updates.get("slug"):
            updates["slug"] = slugify(updates["slug"])
            if updates["slug"] != current.data[0]["slug"]:
                clash = await self.read(filters={"slug": updates["slug"]}, limit=1)
                if clash.success and clash.data:
                    return failure("A blog post with this slug already exists", "CONFLICT")
        if updates.get("is_draft") is False and not current.data[0].get("published_at"):
            updates["published_at"] = utc_now()

        result = await self.update(post_id, updates)
        if not result.success and result.error_type == "CONFLICT":
            return failure("A blog post with this slug already exists", "CONFLICT")
        return result


# Global service instance
_blog_service: Optional[BlogService] = None


def get_blog_service() -> BlogService:
    """Get the global blog service instance"""
    global _blog_service
    if _blog_service is None:
        _blog_service = BlogService()
    return _blog_service
