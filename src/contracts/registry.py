"""
Contract registry for centralized contract management
"""

from typing import Dict, List
from contracts.base import (
    ResourceContract, ContractField, FieldType, FilterOperator, ContractLimits
)
from models.enums import (
    UserRole, MaritalStatus, TaskStatus, TaskPriority, CommunityType, RecurringType,
    AttendanceStatus, GivingMethod, GivingCategory, PaymentStatus, CommentTargetType,
    FileType, FormType, SubmissionStatus, AnniversaryType, ActivityType
)

EQ = [FilterOperator.EQ, FilterOperator.NEQ, FilterOperator.IN]
REF = [FilterOperator.EQ, FilterOperator.IN, FilterOperator.IS_NULL]
TEXT = [FilterOperator.EQ, FilterOperator.LIKE, FilterOperator.ILIKE]
RANGE = [FilterOperator.EQ, FilterOperator.GT, FilterOperator.GTE,
         FilterOperator.LT, FilterOperator.LTE, FilterOperator.BETWEEN]
ARRAY = [FilterOperator.ANY]
FLAG = [FilterOperator.EQ]


def _field(name: str, type: FieldType, writable: bool = True, nullable: bool = True,
           readable: bool = True, enum=None) -> ContractField:
    return ContractField(
        name=name,
        type=type,
        writable=writable,
        nullable=nullable,
        readable=readable,
        enum_values=[e.value for e in enum] if enum else None
    )


def _pk(name: str) -> ContractField:
    return _field(name, FieldType.UUID, writable=False, nullable=False)


def _timestamps() -> List[ContractField]:
    return [
        _field("created_at", FieldType.TIMESTAMP, writable=False, nullable=False),
        _field("updated_at", FieldType.TIMESTAMP, writable=False, nullable=False),
    ]


def get_users_contract() -> ResourceContract:
    return ResourceContract(
        resource="users",
        table="users",
        primary_key="user_id",
        fields=[
            _pk("user_id"),
            _field("email", FieldType.STRING, nullable=False),
            _field("password_hash", FieldType.STRING, nullable=False),
            _field("first_name", FieldType.STRING, nullable=False),
            _field("last_name", FieldType.STRING, nullable=False),
            _field("role", FieldType.STRING, nullable=False, enum=UserRole),
            _field("permissions", FieldType.STRING_ARRAY),
            _field("is_active", FieldType.BOOLEAN),
            _field("member_id", FieldType.UUID),
            _field("team_ids", FieldType.UUID_ARRAY),
            _field("avatar", FieldType.STRING),
            _field("login_attempts", FieldType.INTEGER),
            _field("lockout_until", FieldType.TIMESTAMP),
            _field("last_login", FieldType.TIMESTAMP),
            _field("reset_password_token", FieldType.STRING),
            _field("reset_password_token_expiry", FieldType.TIMESTAMP),
            _field("must_change_password", FieldType.BOOLEAN),
        ] + _timestamps(),
        filters_allowed={
            "user_id": EQ,
            "email": TEXT,
            "role": EQ,
            "is_active": FLAG,
            "member_id": REF,
            "reset_password_token": [FilterOperator.EQ],
            "reset_password_token_expiry": RANGE,
        },
        order_allowed=["created_at", "email", "last_login"],
        search_fields=["first_name", "last_name", "email"],
    )


def get_members_contract() -> ResourceContract:
    return ResourceContract(
        resource="members",
        table="members",
        primary_key="member_id",
        fields=[
            _pk("member_id"),
            _field("first_name", FieldType.STRING, nullable=False),
            _field("last_name", FieldType.STRING, nullable=False),
            _field("email", FieldType.STRING, nullable=False),
            _field("phone", FieldType.STRING),
            _field("date_joined", FieldType.TIMESTAMP),
            _field("is_first_timer", FieldType.BOOLEAN),
            _field("team_id", FieldType.UUID),
            _field("is_team_lead", FieldType.BOOLEAN),
            _field("is_admin", FieldType.BOOLEAN),
            _field("avatar", FieldType.STRING),
            _field("address", FieldType.TEXT),
            _field("date_of_birth", FieldType.DATE),
            _field("wedding_anniversary", FieldType.DATE),
            _field("marital_status", FieldType.STRING, enum=MaritalStatus),
            _field("emergency_contact", FieldType.JSON),
            _field("user_id", FieldType.UUID),
            _field("community_ids", FieldType.UUID_ARRAY),
            _field("attendance_streak", FieldType.INTEGER),
            _field("total_attendance", FieldType.INTEGER),
            _field("total_giving", FieldType.NUMBER),
            _field("last_activity_date", FieldType.TIMESTAMP),
            _field("skills", FieldType.STRING_ARRAY),
            _field("interests", FieldType.STRING_ARRAY),
        ] + _timestamps(),
        filters_allowed={
            "member_id": EQ,
            "email": TEXT,
            "first_name": TEXT,
            "last_name": TEXT,
            "team_id": REF,
            "is_first_timer": FLAG,
            "is_team_lead": FLAG,
            "user_id": REF,
            "community_ids": ARRAY,
            "date_joined": RANGE,
            "date_of_birth": REF,
            "wedding_anniversary": REF,
        },
        order_allowed=["created_at", "date_joined", "first_name", "last_name"],
        search_fields=["first_name", "last_name", "email"],
    )


def get_teams_contract() -> ResourceContract:
    return ResourceContract(
        resource="teams",
        table="teams",
        primary_key="team_id",
        fields=[
            _pk("team_id"),
            _field("name", FieldType.STRING, nullable=False),
            _field("description", FieldType.TEXT),
            _field("team_lead_id", FieldType.UUID),
            _field("member_ids", FieldType.UUID_ARRAY),
        ] + _timestamps(),
        filters_allowed={
            "team_id": EQ,
            "name": TEXT,
            "team_lead_id": REF,
            "member_ids": ARRAY,
        },
        order_allowed=["created_at", "name"],
        search_fields=["name", "description"],
    )


def get_tasks_contract() -> ResourceContract:
    return ResourceContract(
        resource="tasks",
        table="tasks",
        primary_key="task_id",
        fields=[
            _pk("task_id"),
            _field("title", FieldType.STRING, nullable=False),
            _field("description", FieldType.TEXT, nullable=False),
            _field("team_id", FieldType.UUID, nullable=False),
            _field("assignee_id", FieldType.UUID),
            _field("creator_id", FieldType.UUID, nullable=False),
            _field("status", FieldType.STRING, enum=TaskStatus),
            _field("priority", FieldType.STRING, enum=TaskPriority),
            _field("due_date", FieldType.TIMESTAMP),
            _field("completed_at", FieldType.TIMESTAMP),
            _field("pickup_date", FieldType.TIMESTAMP),
            _field("tags", FieldType.STRING_ARRAY),
            _field("is_public", FieldType.BOOLEAN),
        ] + _timestamps(),
        filters_allowed={
            "task_id": EQ,
            "team_id": REF,
            "assignee_id": REF,
            "creator_id": EQ,
            "status": EQ,
            "priority": EQ,
            "is_public": FLAG,
            "due_date": RANGE,
            "completed_at": RANGE,
        },
        order_allowed=["created_at", "due_date", "priority", "status"],
        search_fields=["title", "description"],
    )


def get_events_contract() -> ResourceContract:
    return ResourceContract(
        resource="events",
        table="events",
        primary_key="event_id",
        fields=[
            _pk("event_id"),
            _field("name", FieldType.STRING, nullable=False),
            _field("description", FieldType.TEXT),
            _field("date", FieldType.TIMESTAMP, nullable=False),
            _field("end_date", FieldType.TIMESTAMP),
            _field("location", FieldType.STRING),
            _field("capacity", FieldType.INTEGER),
            _field("is_recurring", FieldType.BOOLEAN),
            _field("recurring_type", FieldType.STRING, enum=RecurringType),
            _field("banner_image", FieldType.STRING),
            _field("allow_self_attendance", FieldType.BOOLEAN),
            _field("community_id", FieldType.UUID),
        ] + _timestamps(),
        filters_allowed={
            "event_id": EQ,
            "date": RANGE,
            "is_recurring": FLAG,
            "community_id": REF,
            "name": TEXT,
        },
        order_allowed=["date", "created_at", "name"],
        search_fields=["name", "description", "location"],
        limits=ContractLimits(max_rows=500),
    )


def get_attendance_contract() -> ResourceContract:
    return ResourceContract(
        resource="attendance_records",
        table="attendance_records",
        primary_key="record_id",
        fields=[
            _pk("record_id"),
            _field("member_id", FieldType.UUID, nullable=False),
            _field("event_id", FieldType.UUID, nullable=False),
            _field("date", FieldType.TIMESTAMP, nullable=False),
            _field("status", FieldType.STRING, nullable=False, enum=AttendanceStatus),
            _field("checked_in_at", FieldType.TIMESTAMP),
            _field("notes", FieldType.TEXT),
        ] + _timestamps(),
        filters_allowed={
            "record_id": EQ,
            "member_id": EQ,
            "event_id": EQ,
            "date": RANGE,
            "status": EQ,
        },
        order_allowed=["date", "checked_in_at", "created_at"],
        limits=ContractLimits(max_rows=1000),
    )


def get_givings_contract() -> ResourceContract:
    return ResourceContract(
        resource="givings",
        table="givings",
        primary_key="giving_id",
        fields=[
            _pk("giving_id"),
            _field("member_id", FieldType.UUID, nullable=False),
            _field("amount", FieldType.NUMBER, nullable=False),
            _field("currency", FieldType.STRING),
            _field("method", FieldType.STRING, nullable=False, enum=GivingMethod),
            _field("category", FieldType.STRING, nullable=False, enum=GivingCategory),
            _field("description", FieldType.TEXT),
            _field("date", FieldType.TIMESTAMP),
            _field("is_recurring", FieldType.BOOLEAN),
            _field("recurring_frequency", FieldType.STRING, enum=RecurringType),
            _field("payment_reference", FieldType.STRING),
            _field("payment_status", FieldType.STRING, enum=PaymentStatus),
        ] + _timestamps(),
        filters_allowed={
            "giving_id": EQ,
            "member_id": EQ,
            "category": EQ,
            "method": EQ,
            "date": RANGE,
            "is_recurring": FLAG,
            "payment_reference": [FilterOperator.EQ],
            "payment_status": EQ,
        },
        order_allowed=["date", "amount", "created_at"],
        limits=ContractLimits(max_rows=1000),
    )


def get_communities_contract() -> ResourceContract:
    return ResourceContract(
        resource="communities",
        table="communities",
        primary_key="community_id",
        fields=[
            _pk("community_id"),
            _field("name", FieldType.STRING, nullable=False),
            _field("description", FieldType.TEXT, nullable=False),
            _field("type", FieldType.STRING, nullable=False, enum=CommunityType),
            _field("leader_id", FieldType.UUID, nullable=False),
            _field("member_ids", FieldType.UUID_ARRAY),
            _field("is_active", FieldType.BOOLEAN),
            _field("is_private", FieldType.BOOLEAN),
            _field("invite_only", FieldType.BOOLEAN),
            _field("meeting_schedule", FieldType.STRING),
            _field("cover_image", FieldType.STRING),
        ] + _timestamps(),
        filters_allowed={
            "community_id": EQ,
            "type": EQ,
            "leader_id": EQ,
            "is_active": FLAG,
            "is_private": FLAG,
            "member_ids": ARRAY,
        },
        order_allowed=["created_at", "name"],
        search_fields=["name", "description"],
    )


def get_community_posts_contract() -> ResourceContract:
    return ResourceContract(
        resource="community_posts",
        table="community_posts",
        primary_key="post_id",
        fields=[
            _pk("post_id"),
            _field("community_id", FieldType.UUID, nullable=False),
            _field("author_id", FieldType.UUID, nullable=False),
            _field("content", FieldType.TEXT, nullable=False),
            _field("image_url", FieldType.STRING),
            _field("likes", FieldType.UUID_ARRAY),
        ] + _timestamps(),
        filters_allowed={
            "post_id": EQ,
            "community_id": EQ,
            "author_id": EQ,
        },
        order_allowed=["created_at"],
    )


def get_blog_posts_contract() -> ResourceContract:
    return ResourceContract(
        resource="blog_posts",
        table="blog_posts",
        primary_key="post_id",
        fields=[
            _pk("post_id"),
            _field("title", FieldType.STRING, nullable=False),
            _field("content", FieldType.TEXT, nullable=False),
            _field("excerpt", FieldType.TEXT, nullable=False),
            _field("author", FieldType.STRING, nullable=False),
            _field("published_at", FieldType.TIMESTAMP),
            _field("is_draft", FieldType.BOOLEAN),
            _field("featured_image", FieldType.STRING),
            _field("tags", FieldType.STRING_ARRAY),
            _field("slug", FieldType.STRING, nullable=False),
        ] + _timestamps(),
        filters_allowed={
            "post_id": EQ,
            "slug": [FilterOperator.EQ],
            "is_draft": FLAG,
            "author": TEXT,
            "tags": ARRAY,
            "published_at": RANGE,
        },
        order_allowed=["created_at", "published_at", "title"],
        search_fields=["title", "content", "excerpt"],
    )


def get_comments_contract() -> ResourceContract:
    return ResourceContract(
        resource="comments",
        table="comments",
        primary_key="comment_id",
        fields=[
            _pk("comment_id"),
            _field("content", FieldType.TEXT, nullable=False),
            _field("author_id", FieldType.UUID, nullable=False),
            _field("target_type", FieldType.STRING, nullable=False, enum=CommentTargetType),
            _field("target_id", FieldType.UUID, nullable=False),
            _field("parent_comment_id", FieldType.UUID),
            _field("is_approved", FieldType.BOOLEAN),
            _field("likes", FieldType.UUID_ARRAY),
        ] + _timestamps(),
        filters_allowed={
            "comment_id": EQ,
            "target_type": EQ,
            "target_id": EQ,
            "author_id": EQ,
            "parent_comment_id": REF,
            "is_approved": FLAG,
        },
        order_allowed=["created_at"],
        limits=ContractLimits(max_rows=500),
    )


def get_gallery_folders_contract() -> ResourceContract:
    return ResourceContract(
        resource="gallery_folders",
        table="gallery_folders",
        primary_key="folder_id",
        fields=[
            _pk("folder_id"),
            _field("name", FieldType.STRING, nullable=False),
            _field("description", FieldType.TEXT),
            _field("cover_image", FieldType.STRING),
            _field("event_id", FieldType.UUID),
            _field("created_by", FieldType.UUID),
            _field("is_public", FieldType.BOOLEAN),
        ] + _timestamps(),
        filters_allowed={
            "folder_id": EQ,
            "event_id": REF,
            "is_public": FLAG,
        },
        order_allowed=["created_at", "name"],
        search_fields=["name", "description"],
    )


def get_media_files_contract() -> ResourceContract:
    return ResourceContract(
        resource="media_files",
        table="media_files",
        primary_key="file_id",
        fields=[
            _pk("file_id"),
            _field("folder_id", FieldType.UUID),
            _field("title", FieldType.STRING, nullable=False),
            _field("description", FieldType.TEXT),
            _field("file_key", FieldType.STRING, nullable=False),
            _field("url", FieldType.STRING, nullable=False),
            _field("file_type", FieldType.STRING, nullable=False, enum=FileType),
            _field("content_type", FieldType.STRING, nullable=False),
            _field("size_bytes", FieldType.INTEGER),
            _field("category", FieldType.STRING),
            _field("tags", FieldType.STRING_ARRAY),
            _field("uploaded_by", FieldType.UUID),
            _field("is_public", FieldType.BOOLEAN),
            _field("likes", FieldType.UUID_ARRAY),
        ] + _timestamps(),
        filters_allowed={
            "file_id": EQ,
            "folder_id": REF,
            "file_type": EQ,
            "category": EQ,
            "is_public": FLAG,
            "tags": ARRAY,
        },
        order_allowed=["created_at", "title"],
        search_fields=["title", "description"],
    )


def get_forms_contract() -> ResourceContract:
    return ResourceContract(
        resource="forms",
        table="forms",
        primary_key="form_id",
        fields=[
            _pk("form_id"),
            _field("title", FieldType.STRING, nullable=False),
            _field("description", FieldType.TEXT),
            _field("type", FieldType.STRING, enum=FormType),
            _field("fields", FieldType.JSON),
            _field("is_active", FieldType.BOOLEAN),
            _field("requires_approval", FieldType.BOOLEAN),
            _field("created_by", FieldType.UUID),
        ] + _timestamps(),
        filters_allowed={
            "form_id": EQ,
            "type": EQ,
            "is_active": FLAG,
        },
        order_allowed=["created_at", "title"],
        search_fields=["title", "description"],
    )


def get_form_submissions_contract() -> ResourceContract:
    return ResourceContract(
        resource="form_submissions",
        table="form_submissions",
        primary_key="submission_id",
        fields=[
            _pk("submission_id"),
            _field("form_id", FieldType.UUID, nullable=False),
            _field("submitter_id", FieldType.UUID),
            _field("submitter_name", FieldType.STRING),
            _field("submitter_email", FieldType.STRING),
            _field("responses", FieldType.JSON),
            _field("status", FieldType.STRING, enum=SubmissionStatus),
            _field("submitted_at", FieldType.TIMESTAMP),
            _field("processed_at", FieldType.TIMESTAMP),
            _field("processed_by", FieldType.UUID),
            _field("notes", FieldType.TEXT),
        ] + _timestamps(),
        filters_allowed={
            "submission_id": EQ,
            "form_id": EQ,
            "submitter_id": EQ,
            "status": EQ,
            "submitted_at": RANGE,
        },
        order_allowed=["submitted_at", "created_at"],
        limits=ContractLimits(max_rows=5000),
    )


def get_anniversaries_contract() -> ResourceContract:
    return ResourceContract(
        resource="anniversaries",
        table="anniversaries",
        primary_key="anniversary_id",
        fields=[
            _pk("anniversary_id"),
            _field("member_id", FieldType.UUID, nullable=False),
            _field("type", FieldType.STRING, nullable=False, enum=AnniversaryType),
            _field("date", FieldType.DATE, nullable=False),
            _field("recurring", FieldType.BOOLEAN),
            _field("notes", FieldType.TEXT),
        ] + _timestamps(),
        filters_allowed={
            "anniversary_id": EQ,
            "member_id": EQ,
            "type": EQ,
        },
        order_allowed=["date", "created_at"],
        limits=ContractLimits(max_rows=1000),
    )


def get_user_activities_contract() -> ResourceContract:
    return ResourceContract(
        resource="user_activities",
        table="user_activities",
        primary_key="activity_id",
        fields=[
            _pk("activity_id"),
            _field("member_id", FieldType.UUID, nullable=False),
            _field("activity_type", FieldType.STRING, nullable=False, enum=ActivityType),
            _field("description", FieldType.TEXT, nullable=False),
            _field("metadata", FieldType.JSON),
            _field("timestamp", FieldType.TIMESTAMP),
        ] + _timestamps(),
        filters_allowed={
            "activity_id": EQ,
            "member_id": EQ,
            "activity_type": EQ,
            "timestamp": RANGE,
        },
        order_allowed=["timestamp"],
    )


_CONTRACT_BUILDERS = {
    "users": get_users_contract,
    "members": get_members_contract,
    "teams": get_teams_contract,
    "tasks": get_tasks_contract,
    "events": get_events_contract,
    "attendance_records": get_attendance_contract,
    "givings": get_givings_contract,
    "communities": get_communities_contract,
    "community_posts": get_community_posts_contract,
    "blog_posts": get_blog_posts_contract,
    "comments": get_comments_contract,
    "gallery_folders": get_gallery_folders_contract,
    "media_files": get_media_files_contract,
    "forms": get_forms_contract,
    "form_submissions": get_form_submissions_contract,
    "anniversaries": get_anniversaries_contract,
    "user_activities": get_user_activities_contract,
}

_contracts: Dict[str, ResourceContract] = {}


def get_all_contracts() -> Dict[str, ResourceContract]:
    """Get all resource contracts"""
    if not _contracts:
        for name, builder in _CONTRACT_BUILDERS.items():
            _contracts[name] = builder()
    return _contracts


def get_contract(resource_name: str) -> ResourceContract:
    contracts = get_all_contracts()
    if resource_name not in contracts:
        raise ValueError(f"Resource not found in contracts: {resource_name}")
    return contracts[resource_name]


def get_available_resources() -> list[str]:
    """Get list of all available resource names"""
    return list(_CONTRACT_BUILDERS.keys())
