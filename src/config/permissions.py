"""
Role permissions configuration - Single source of truth for what each role may do
"""

from typing import Dict, List, Any

ALL_PERMISSIONS = "*"

ROLE_PERMISSIONS: Dict[str, Dict[str, Any]] = {
    "super_admin": {
        "permissions": [ALL_PERMISSIONS],
        "description": "Unrestricted access including user management"
    },
    "admin": {
        "permissions": [
            "members.view", "members.create", "members.edit", "members.delete",
            "teams.view", "teams.create", "teams.edit", "teams.delete",
            "tasks.view", "tasks.create", "tasks.edit", "tasks.delete",
            "events.view", "events.create", "events.edit", "events.delete",
            "attendance.view", "attendance.create", "attendance.edit", "attendance.delete",
            "giving.view", "giving.create", "giving.edit", "giving.delete",
            "communities.view", "communities.create", "communities.edit", "communities.delete",
            "blog.view", "blog.create", "blog.edit", "blog.delete",
            "comments.moderate",
            "gallery.view", "gallery.create", "gallery.edit", "gallery.delete",
            "forms.view", "forms.create", "forms.edit", "forms.delete",
            "form-submissions.view", "form-submissions.edit", "form-submissions.export",
            "anniversaries.view", "anniversaries.create", "anniversaries.edit", "anniversaries.delete",
            "activities.view",
            "users.view", "users.create", "users.edit", "users.delete",
            "maintenance.run",
        ],
        "description": "Church administration"
    },
    "team_leader": {
        "permissions": [
            "teams.view.own",
            "members.view.team",
            "tasks.create.team",
            "tasks.view.team",
            "profile.view",
            "profile.edit",
        ],
        "description": "Leads a ministry team and manages its tasks"
    },
    "member": {
        "permissions": [
            "profile.view",
            "profile.edit",
        ],
        "description": "Regular church member"
    },
}

# Permissions granted to self-registered mobile accounts
MOBILE_MEMBER_PERMISSIONS = ["read:own_profile", "update:own_profile"]

STAFF_ROLES = ["super_admin", "admin"]


def is_valid_role(role: str) -> bool:
    """Check whether a role is configured"""
    return role in ROLE_PERMISSIONS


def get_role_permissions(role: str) -> List[str]:
    """Get the permission list configured for a role"""
    config = ROLE_PERMISSIONS.get(role)
    if not config:
        return []
    return list(config["permissions"])


def has_permission(role: str, permission: str, extra_permissions: List[str] = None) -> bool:
    """
    Check whether a role (plus any per-user grants) holds a permission.

    super_admin holds everything. A grant of "members.view" also covers the
    narrower "members.view.team".
    """
    granted = get_role_permissions(role) + list(extra_permissions or [])
    if ALL_PERMISSIONS in granted:
        return True
    if permission in granted:
        return True

    parts = permission.split(".")
    for i in range(len(parts) - 1, 0, -1):
        if ".".join(parts[:i]) in granted:
            return True
    return False


def is_staff(role: str) -> bool:
    return role in STAFF_ROLES
