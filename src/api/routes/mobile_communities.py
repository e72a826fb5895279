"""
Mobile community API routes - browsing, membership, posts, likes and comments
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query

from models.community import MembershipRequest, ManageMemberRequest, CommunityPostRequest
from models.content import CommentCreateRequest
from models.enums import CommunityType, MembershipAction
from services.communities_service import get_communities_service, get_community_posts_service, attach_authors
from services.comments_service import get_comments_service
from services.events_service import get_events_service
from services.members_service import get_members_service
from utils.auth import AuthConfig, AuthContext, require_member_profile
from utils.error_handling import raise_for_result

router = APIRouter()
logger = logging.getLogger(__name__)

UPCOMING_COMMUNITY_EVENTS = 5


async def _load_community(community_id: str):
    result = await get_communities_service().get_community(community_id)
    raise_for_result(result, not_found="Community not found")
    return result.data[0]


async def _with_authors(items, key: str = "author_id"):
    members = await get_members_service().get_members_by_ids([item[key] for item in items if item.get(key)])
    return attach_authors(items, members.data if members.success else [], key=key)


@router.get("")
async def list_communities(
    type: Optional[CommunityType] = Query(None),
    search: Optional[str] = Query(None),
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """Active communities, each flagged with whether the caller belongs to it"""
    try:
        result = await get_communities_service().list_communities(
            search=search,
            community_type=type.value if type else None,
            is_active=True
        )
        raise_for_result(result)
        data = [
            dict(
                community,
                member_count=len(community.get("member_ids") or []),
                is_member=bool(user.member_id) and user.member_id in (community.get("member_ids") or []),
                is_leader=bool(user.member_id) and community.get("leader_id") == user.member_id,
            )
            for community in result.data
        ]
        return {"success": True, "data": data, "total": len(data)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list mobile communities: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{community_id}")
async def get_community_detail(community_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    """Community with its members, recent posts (authors and comments included) and upcoming events"""
    try:
        community = await _load_community(community_id)
        members = await get_members_service().get_members_by_ids(community.get("member_ids") or [])

        posts = await get_community_posts_service().list_posts(community["community_id"])
        raise_for_result(posts)
        comments_service = get_comments_service()
        recent_posts = []
        for post in await _with_authors(posts.data):
            threads = await comments_service.get_threads("community_post", post["post_id"])
            recent_posts.append(dict(
                post,
                like_count=len(post.get("likes") or []),
                liked=bool(user.member_id) and user.member_id in (post.get("likes") or []),
                comments=threads.data if threads.success else [],
            ))

        events = await get_events_service().upcoming_events(
            limit=UPCOMING_COMMUNITY_EVENTS, community_id=community["community_id"]
        )
        return {
            "success": True,
            "data": dict(
                community,
                members=members.data if members.success else [],
                posts=recent_posts,
                upcoming_events=events,
                is_member=bool(user.member_id) and user.member_id in (community.get("member_ids") or []),
                is_leader=bool(user.member_id) and community.get("leader_id") == user.member_id,
            ),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to load community detail: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/{community_id}")
async def change_membership(
    community_id: str,
    request: MembershipRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """Join or leave a community"""
    member_id = require_member_profile(user)
    try:
        communities_service = get_communities_service()
        if request.action == MembershipAction.JOIN:
            result = await communities_service.join(community_id, member_id)
            message = "Joined community successfully"
        else:
            result = await communities_service.leave(community_id, member_id)
            message = "Left community successfully"
        raise_for_result(result, not_found="Community not found")
        return {"success": True, "message": message, "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to change community membership: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/{community_id}/manage")
async def manage_member(
    community_id: str,
    request: ManageMemberRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    """Leaders and staff add or remove members"""
    try:
        result = await get_communities_service().manage_member(
            community_id,
            acting_member_id=user.member_id,
            is_staff=user.is_staff,
            action=request.action.value,
            member_id=request.member_id
        )
        raise_for_result(result, not_found=result.error or "Community not found")
        verb = "added to" if request.action.value == "add" else "removed from"
        return {"success": True, "message": f"Member {verb} community", "data": result.data[0]}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to manage community member: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/{community_id}/posts")
async def list_posts(
    community_id: str,
    limit: int = Query(20, ge=1, le=100),
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    try:
        community = await _load_community(community_id)
        result = await get_community_posts_service().list_posts(community["community_id"], limit=limit)
        raise_for_result(result)
        posts = [
            dict(
                post,
                like_count=len(post.get("likes") or []),
                liked=bool(user.member_id) and user.member_id in (post.get("likes") or []),
            )
            for post in await _with_authors(result.data)
        ]
        return {"success": True, "data": posts, "total": len(posts)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list community posts: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/{community_id}/posts", status_code=201)
async def create_post(
    community_id: str,
    request: CommunityPostRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    member_id = require_member_profile(user)
    try:
        community = await _load_community(community_id)
        result = await get_community_posts_service().create_post(
            community, member_id, request.content, request.image_url
        )
        raise_for_result(result)
        post = (await _with_authors(result.data))[0]
        return {"success": True, "message": "Post created successfully", "data": post}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create community post: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/posts/{post_id}/like")
async def toggle_like(post_id: str, user: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    member_id = require_member_profile(user)
    try:
        result = await get_community_posts_service().toggle_like(post_id, member_id)
        raise_for_result(result, not_found="Post not found")
        post = result.data[0]
        return {
            "success": True,
            "message": "Post liked" if post["liked"] else "Post unliked",
            "data": {"post_id": post["post_id"], "liked": post["liked"], "like_count": post["like_count"]},
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to toggle post like: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.get("/posts/{post_id}/comments")
async def list_post_comments(post_id: str, _: AuthContext = Depends(AuthConfig.get_auth_dependency())):
    try:
        post = await get_community_posts_service().get_by_id(post_id)
        raise_for_result(post, not_found="Post not found")
        result = await get_comments_service().get_threads("community_post", post.data[0]["post_id"])
        raise_for_result(result)
        return {"success": True, "data": result.data, "total": result.count}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list post comments: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")


@router.post("/posts/{post_id}/comments", status_code=201)
async def create_post_comment(
    post_id: str,
    request: CommentCreateRequest,
    user: AuthContext = Depends(AuthConfig.get_auth_dependency())
):
    member_id = require_member_profile(user)
    if not request.content or not request.content.strip():
        raise HTTPException(status_code=400, detail="Comment content is required")

    try:
        post = await get_community_posts_service().get_by_id(post_id)
        raise_for_result(post, not_found="Post not found")
        community = await _load_community(post.data[0]["community_id"])
        if member_id not in (community.get("member_ids") or []) and not user.is_staff:
            raise HTTPException(status_code=403, detail="Only community members can comment")

        comments_service = get_comments_service()
        result = await comments_service.create_comment(
            content=request.content,
            author_id=member_id,
            target_type="community_post",
            target_id=post.data[0]["post_id"],
            parent_comment_id=request.parent_comment_id
        )
        raise_for_result(result, not_found="Parent comment not found")
        comment = (await comments_service.with_authors(result.data))[0]
        return {"success": True, "message": "Comment added successfully", "data": comment}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to comment on post: {e}")
        raise HTTPException(status_code=500, detail=f"Service error: {str(e)}")
