"""
Communities service - life groups and ministries, membership and discussion posts
"""

import logging
from typing import Dict, Any, List, Optional

from services.base_service import BaseService, ServiceResult, failure
from services.members_service import get_members_service

logger = logging.getLogger(__name__)

RECENT_POSTS_LIMIT = 20


class CommunitiesService(BaseService):
    """Service for community operations"""

    def __init__(self):
        super().__init__("communities")

    async def list_communities(
        self,
        search: Optional[str] = None,
        community_type: Optional[str] = None,
        leader_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        limit: int = 100
    ) -> ServiceResult:
        filters: Dict[str, Any] = {}
        if community_type:
            filters["type"] = community_type
        if leader_id:
            filters["leader_id"] = leader_id
        if is_active is not None:
            filters["is_active"] = is_active
        return await self.read(
            filters=filters,
            search=search,
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=limit
        )

    async def get_community(self, community_id: str) -> ServiceResult:
        result = await self.get_by_id(community_id)
        if not result.success and result.error_type == "RESOURCE_NOT_FOUND":
            return failure("Community not found", "RESOURCE_NOT_FOUND")
        return result

    async def create_community(self, data: Dict[str, Any]) -> ServiceResult:
        """Create a community; the leader must exist and becomes its first member"""
        leader = await get_members_service().get_by_id(data["leader_id"])
        if not leader.success:
            if leader.error_type == "RESOURCE_NOT_FOUND":
                return failure("Leader not found", "RESOURCE_NOT_FOUND")
            return leader

        record = {key: value for key, value in data.items() if value is not None}
        record["member_ids"] = [data["leader_id"]]
        result = await self.create(record)
        if result.success:
            await get_members_service().add_to_array(
                data["leader_id"], "community_ids", result.data[0]["community_id"]
            )
            logger.info(f"Created community '{data['name']}' led by {data['leader_id']}")
        return result

    async def update_community(self, community_id: str, data: Dict[str, Any]) -> ServiceResult:
        result = await self.update(community_id, data)
        if not result.success:
            if result.error_type == "RESOURCE_NOT_FOUND":
                return failure("Community not found", "RESOURCE_NOT_FOUND")
            return result
        if data.get("leader_id"):
            await self.add_member(community_id, data["leader_id"])
        return result

    async def delete_community(self, community_id: str) -> ServiceResult:
        """Delete a community and drop it from every member's community list"""
        result = await self.delete(community_id)
        if result.success:
            await self.execute(
                "UPDATE members SET community_ids = array_remove(community_ids, $1::uuid), updated_at = NOW() "
                "WHERE $1::uuid = ANY(community_ids)",
                result.data[0]["community_id"]
            )
        elif result.error_type == "RESOURCE_NOT_FOUND":
            return failure("Community not found", "RESOURCE_NOT_FOUND")
        return result

    async def add_member(self, community_id: str, member_id: str) -> ServiceResult:
        """Add a member to the community and mirror it on the member record"""
        result = await self.add_to_array(community_id, "member_ids", member_id)
        if result.success:
            synced = await get_members_service().add_to_array(member_id, "community_ids", community_id)
            if not synced.success:
                logger.warning(f"Could not record community {community_id} on member {member_id}: {synced.error}")
        return result

    async def remove_member(self, community_id: str, member_id: str) -> ServiceResult:
        result = await self.remove_from_array(community_id, "member_ids", member_id)
        if result.success:
            await get_members_service().remove_from_array(member_id, "community_ids", community_id)
        return result

    async def join(self, community_id: str, member_id: str) -> ServiceResult:
        """Join a community; invite-only communities refuse self-joins"""
        community = await self.get_community(community_id)
        if not community.success:
            return community
        data = community.data[0]
        if data.get("invite_only"):
            return failure("This community is invite-only", "FORBIDDEN")
        if member_id in (data.get("member_ids") or []):
            return failure("Already a member of this community", "INVALID_REQUEST")
        logger.info(f"Member {member_id} joining community {community_id}")
        return await self.add_member(community_id, member_id)

    async def leave(self, community_id: str, member_id: str) -> ServiceResult:
        community = await self.get_community(community_id)
        if not community.success:
            return community
        data = community.data[0]
        if data.get("leader_id") == member_id:
            return failure("The community leader cannot leave the community", "INVALID_REQUEST")
        if member_id not in (data.get("member_ids") or []):
            return failure("Not a member of this community", "INVALID_REQUEST")
        logger.info(f"Member {member_id} leaving community {community_id}")
        return await self.remove_member(community_id, member_id)

    async def manage_member(
        self,
        community_id: str,
        acting_member_id: Optional[str],
        is_staff: bool,
        action: str,
        member_id: str
    ) -> ServiceResult:
        """
        Leader (or staff) adds or removes a member

        Returns:
            ServiceResult with the updated community. FORBIDDEN for callers who
            neither lead the community nor are staff.
        """
        community = await self.get_community(community_id)
        if not community.success:
            return community
        data = community.data[0]
        if not is_staff and data.get("leader_id") != acting_member_id:
            return failure("Only community leaders can manage members", "FORBIDDEN")

        target = await get_members_service().get_by_id(member_id)
        if not target.success:
            if target.error_type == "RESOURCE_NOT_FOUND":
                return failure("Member not found", "RESOURCE_NOT_FOUND")
            return target

        if action == "add":
            return await self.add_member(community_id, member_id)
        if member_id == data.get("leader_id"):
            return failure("The community leader cannot be removed", "INVALID_REQUEST")
        return await self.remove_member(community_id, member_id)

    async def get_member_communities(self, member_id: str) -> ServiceResult:
        return await self.read(filters={"member_ids": {"op": "ANY", "value": member_id}}, limit=100)


class CommunityPostsService(BaseService):
    """Service for community discussion posts"""

    def __init__(self):
        super().__init__("community_posts")

    async def list_posts(self, community_id: str, limit: int = RECENT_POSTS_LIMIT) -> ServiceResult:
        return await self.read(
            filters={"community_id": community_id},
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=limit
        )

    async def create_post(self, community: Dict[str, Any], author_id: str,
                          content: str, image_url: Optional[str] = None) -> ServiceResult:
        """Only members of the community may post"""
        if author_id not in (community.get("member_ids") or []):
            return failure("Only community members can post", "FORBIDDEN")
        if not content or not content.strip():
            return failure("Post content is required", "INVALID_REQUEST")
        return await self.create({
            "community_id": community["community_id"],
            "author_id": author_id,
            "content": content.strip(),
            "image_url": image_url,
        })

    async def toggle_like(self, post_id: str, member_id: str) -> ServiceResult:
        """Like the post, or unlike it when the member already liked it"""
        post = await self.get_by_id(post_id)
        if not post.success:
            if post.error_type == "RESOURCE_NOT_FOUND":
                return failure("Post not found", "RESOURCE_NOT_FOUND")
            return post

        if member_id in (post.data[0].get("likes") or []):
            result = await self.remove_from_array(post_id, "likes", member_id)
            liked = False
        else:
            result = await self.add_to_array(post_id, "likes", member_id)
            liked = True
        if result.success:
            likes = result.data[0].get("likes") or []
            result.data[0]["liked"] = liked
            result.data[0]["like_count"] = len(likes)
        return result


def attach_authors(items: List[Dict[str, Any]], members: List[Dict[str, Any]],
                   key: str = "author_id") -> List[Dict[str, Any]]:
    """Embed a short author profile on each item"""
    by_id = {m["member_id"]: m for m in members}
    enriched = []
    for item in items:
        author = by_id.get(item.get(key))
        enriched.append(dict(item, author={
            "member_id": author["member_id"],
            "first_name": author["first_name"],
            "last_name": author["last_name"],
            "avatar": author.get("avatar"),
        } if author else None))
    return enriched


# Global service instances
_communities_service: Optional[CommunitiesService] = None
_community_posts_service: Optional[CommunityPostsService] = None


def get_communities_service() -> CommunitiesService:
    """Get the global communities service instance"""
    global _communities_service
    if _communities_service is None:
        _communities_service = CommunitiesService()
    return _communities_service


def get_community_posts_service() -> CommunityPostsService:
    """Get the global community posts service instance"""
    global _community_posts_service
    if _community_posts_service is None:
        _community_posts_service = CommunityPostsService()
    return _community_posts_service
