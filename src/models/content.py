"""
Blog, comment and gallery Pydantic models
"""

from typing import List, Optional
from pydantic import BaseModel
from models.enums import CommentTargetType


class BlogPostCreateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    author: Optional[str] = None
    slug: Optional[str] = None
    is_draft: bool = True
    featured_image: Optional[str] = None
    tags: List[str] = []


class BlogPostUpdateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    author: Optional[str] = None
    slug: Optional[str] = None
    is_draft: Optional[bool] = None
    featured_image: Optional[str] = None
    tags: Optional[List[str]] = None


class CommentCreateRequest(BaseModel):
    content: Optional[str] = None
    target_type: Optional[CommentTargetType] = None
    target_id: Optional[str] = None
    parent_comment_id: Optional[str] = None
    author_id: Optional[str] = None


class CommentUpdateRequest(BaseModel):
    content: Optional[str] = None
    is_approved: Optional[bool] = None


class FolderCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    cover_image: Optional[str] = None
    event_id: Optional[str] = None
    is_public: bool = True


class MediaUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    folder_id: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None
