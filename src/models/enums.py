"""
Enum definitions for the Sycamore Church backend
"""

from enum import Enum


# Accounts
class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    TEAM_LEADER = "team_leader"
    MEMBER = "member"


class MaritalStatus(str, Enum):
    SINGLE = "single"
    MARRIED = "married"
    DIVORCED = "divorced"


# Teams and tasks
class TaskStatus(str, Enum):
    """
    Task lifecycle.

    - OPEN: created, nobody has picked it up
    - ASSIGNED: an assignee has been set
    - IN_PROGRESS: the assignee is working on it
    - COMPLETED: done, completed_at is stamped
    - CANCELLED: abandoned
    """
    OPEN = "open"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# Communities
class CommunityType(str, Enum):
    TEAM = "team"
    LIFE_GROUP = "life-group"
    MINISTRY = "ministry"
    CUSTOM = "custom"


class MembershipAction(str, Enum):
    JOIN = "join"
    LEAVE = "leave"


class ManageAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


# Events and attendance
class RecurringType(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class EventListType(str, Enum):
    UPCOMING = "upcoming"
    PAST = "past"
    ALL = "all"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"


# Giving
class GivingMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"
    OTHER = "other"


class GivingCategory(str, Enum):
    TITHE = "tithe"
    OFFERING = "offering"
    SPECIAL_OFFERING = "special_offering"
    BUILDING_FUND = "building_fund"
    MISSIONS = "missions"
    OTHER = "other"


class PaymentStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class DonationView(str, Enum):
    HISTORY = "history"
    STATS = "stats"


# Content
class CommentTargetType(str, Enum):
    EVENT = "event"
    BLOG = "blog"
    GALLERY = "gallery"
    ANNOUNCEMENT = "announcement"
    COMMUNITY_POST = "community_post"
    MEDIA = "media"


class FileType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    OTHER = "other"


# Forms
class FormType(str, Enum):
    BABY_DEDICATION = "baby_dedication"
    PRAYER_REQUEST = "prayer_request"
    BUSINESS_DEDICATION = "business_dedication"
    CUSTOM = "custom"


class FormFieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    SELECT = "select"
    CHECKBOX = "checkbox"
    FILE = "file"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


# Anniversaries and activity
class AnniversaryType(str, Enum):
    BIRTHDAY = "birthday"
    WEDDING = "wedding"


class ActivityType(str, Enum):
    LOGIN = "login"
    EVENT_ATTENDANCE = "event_attendance"
    TEAM_JOINED = "team_joined"
    TASK_COMPLETED = "task_completed"
    COMMENT_POSTED = "comment_posted"
    GIVING_MADE = "giving_made"
