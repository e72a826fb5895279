"""
Auth service - logins, mobile registration, password changes and staff accounts
"""

import math
import logging
from typing import Dict, Any, Optional

from config.permissions import MOBILE_MEMBER_PERMISSIONS, is_valid_role
from config.settings import MIN_PASSWORD_LENGTH
from services.base_service import ServiceResult, failure
from services.users_service import get_users_service, to_public_user, is_locked_out
from services.members_service import get_members_service
from services.activity_service import get_activity_service
from services.jwt_service import get_token_service
from services.email_service import send_welcome_email, send_password_reset_email, EmailDeliveryError
from utils.helpers import is_valid_email, parse_timestamp, utc_now
from utils.security import hash_password, verify_password, generate_reset_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, a password reset link has been sent"
PASSWORD_TOO_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"


def mobile_profile(user: Dict[str, Any], member: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """User fields plus the member profile and cached journey numbers the app shows after login"""
    member = member or {}
    return dict(
        to_public_user(user),
        avatar=member.get("avatar"),
        phone=member.get("phone"),
        date_joined=member.get("date_joined"),
        is_first_timer=member.get("is_first_timer"),
        team_id=member.get("team_id"),
        community_ids=member.get("community_ids") or [],
        stats={
            "attendance_streak": member.get("attendance_streak") or 0,
            "total_attendance": member.get("total_attendance") or 0,
            "total_giving": member.get("total_giving") or 0,
            "communities_count": len(member.get("community_ids") or []),
        },
    )


class AuthService:
    """Credential checks and account lifecycle on top of the users and members services"""

    async def authenticate(self, email: Optional[str], password: Optional[str]) -> ServiceResult:
        """
        Check credentials and update the lockout bookkeeping

        Returns:
            ServiceResult with the user row. UNAUTHORIZED for unknown users,
            wrong passwords, deactivated or locked accounts.
        """
        if not email or not password:
            return failure("Email and password are required", "INVALID_REQUEST")

        users = get_users_service()
        found = await users.get_user_by_email(email)
        if not found.success:
            if found.error_type == "RESOURCE_NOT_FOUND":
                logger.info(f"AUTH: Login attempt for unknown email {email}")
                return failure(INVALID_CREDENTIALS, "UNAUTHORIZED")
            return found

        user = found.data[0]
        if not user.get("is_active", True):
            return failure("Account is deactivated. Please contact support.", "UNAUTHORIZED")

        if is_locked_out(user):
            remaining = parse_timestamp(user["lockout_until"]) - utc_now()
            minutes = max(1, math.ceil(remaining.total_seconds() / 60))
            return failure(f"Account locked. Try again in {minutes} minutes.", "UNAUTHORIZED")

        if not verify_password(password, user["password_hash"]):
            await users.record_failed_login(user)
            logger.info(f"AUTH: Invalid password for {user['email']}")
            return failure(INVALID_CREDENTIALS, "UNAUTHORIZED")

        updated = await users.record_successful_login(user["user_id"])
        return updated if updated.success else ServiceResult(success=True, data=[user], count=1)

    async def _after_login(self, user: Dict[str, Any], client: str) -> None:
        member_id = user.get("member_id")
        if not member_id:
            return
        await get_members_service().update(member_id, {"last_activity_date": utc_now()})
        await get_activity_service().record(
            member_id, "login", f"Logged in from the {client} app", {"client": client}
        )

    async def web_login(self, email: Optional[str], password: Optional[str]) -> ServiceResult:
        authenticated = await self.authenticate(email, password)
        if not authenticated.success:
            return authenticated
        user = authenticated.data[0]
        token = get_token_service().create_web_token(user)
        await self._after_login(user, "web")
        return ServiceResult(success=True, data=[{"token": token, "user": to_public_user(user)}], count=1)

    async def mobile_login(self, email: Optional[str], password: Optional[str]) -> ServiceResult:
        authenticated = await self.authenticate(email, password)
        if not authenticated.success:
            return authenticated
        user = authenticated.data[0]

        member = None
        if user.get("member_id"):
            member = (await get_members_service().get_by_id(user["member_id"])).first
            if member is None:
                logger.warning(f"AUTH: User {user['email']} points at a missing member {user['member_id']}")

        token = get_token_service().create_mobile_token(user)
        await self._after_login(user, "mobile")
        return ServiceResult(success=True, data=[{"token": token, "user": mobile_profile(user, member)}], count=1)

    async def register_mobile(self, data: Dict[str, Any]) -> ServiceResult:
        """
        Self-registration from the mobile app

        Creates a first-timer member and a member-role user pointing at each
        other, then signs the new user in. A failed welcome email does not
        fail the registration.
        """
        fields = {key: (data.get(key) or "").strip() for key in ("first_name", "last_name", "email", "phone")}
        password = data.get("password") or ""
        if not all(fields.values()) or not password:
            return failure("All fields are required", "INVALID_REQUEST")
        if not is_valid_email(fields["email"]):
            return failure("Please provide a valid email address", "INVALID_REQUEST")
        if len(password) < MIN_PASSWORD_LENGTH:
            return failure(PASSWORD_TOO_SHORT, "INVALID_REQUEST")

        email = fields["email"].lower()
        members = get_members_service()
        users = get_users_service()
        if await members.email_exists(email) or (await users.get_user_by_email(email)).success:
            return failure("Email already registered", "INVALID_REQUEST")

        member = await members.create_member({
            "first_name": fields["first_name"],
            "last_name": fields["last_name"],
            "email": email,
            "phone": fields["phone"],
            "is_first_timer": True,
            "date_joined": utc_now(),
        })
        if not member.success:
            if member.error_type == "CONFLICT":
                return failure("Email already registered", "INVALID_REQUEST")
            return member
        member_id = member.data[0]["member_id"]

        user = await users.create_user(
            email=email,
            password_hash=hash_password(password),
            first_name=fields["first_name"],
            last_name=fields["last_name"],
            role="member",
            permissions=MOBILE_MEMBER_PERMISSIONS,
            member_id=member_id
        )
        if not user.success:
            await members.delete(member_id)
            if user.error_type == "CONFLICT":
                return failure("Email already registered", "INVALID_REQUEST")
            return user

        linked = await members.update(member_id, {"user_id": user.data[0]["user_id"]})
        profile = linked.first or member.data[0]
        token = get_token_service().create_mobile_token(user.data[0])

        try:
            send_welcome_email(email, fields["first_name"])
        except EmailDeliveryError as e:
            logger.warning(f"Welcome email to {email} failed: {e}")

        logger.info(f"Registered mobile member {email}")
        return ServiceResult(success=True, data=[{
            "token": token,
            "user": mobile_profile(user.data[0], profile),
        }], count=1)

    async def forgot_password(self, email: Optional[str]) -> ServiceResult:
        """
        Start a password reset

        The same message comes back whether or not the email is registered.
        When the reset email cannot be sent the stored token is cleared again.
        """
        if not email:
            return failure("Email is required", "INVALID_REQUEST")

        users = get_users_service()
        found = await users.get_user_by_email(email)
        if not found.success:
            if found.error_type != "RESOURCE_NOT_FOUND":
                return found
            logger.info(f"Password reset requested for unknown email {email}")
            return ServiceResult(success=True, data=[{"message": FORGOT_PASSWORD_MESSAGE}], count=1)

        user = found.data[0]
        token = generate_reset_token()
        stored = await users.set_reset_token(user["user_id"], token)
        if not stored.success:
            return stored

        try:
            send_password_reset_email(user["email"], user.get("first_name") or "", token)
        except EmailDeliveryError as e:
            logger.error(f"Password reset email to {user['email']} failed: {e}")
            await users.set_reset_token(user["user_id"], None)
            return failure("Failed to send password reset email. Please try again later.", "EMAIL_ERROR")

        return ServiceResult(success=True, data=[{"message": FORGOT_PASSWORD_MESSAGE}], count=1)

    async def reset_password(self, token: Optional[str], password: Optional[str]) -> ServiceResult:
        if not token or not password:
            return failure("Token and password are required", "INVALID_REQUEST")
        if len(password) < MIN_PASSWORD_LENGTH:
            return failure(PASSWORD_TOO_SHORT, "INVALID_REQUEST")

        users = get_users_service()
        found = await users.find_by_reset_token(token)
        if not found.success:
            return found
        user = found.data[0]
        result = await users.set_password(user["user_id"], hash_password(password))
        if result.success:
            logger.info(f"Password reset completed for {user['email']}")
        return result

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> ServiceResult:
        users = get_users_service()
        found = await users.get_by_id(user_id)
        if not found.success:
            return found
        if not verify_password(current_password, found.data[0]["password_hash"]):
            return failure("Current password is incorrect", "INVALID_REQUEST")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return failure(PASSWORD_TOO_SHORT, "INVALID_REQUEST")
        return await users.set_password(user_id, hash_password(new_password))

    # Staff account management

    async def list_users(self, role: Optional[str] = None, search: Optional[str] = None) -> ServiceResult:
        filters = {"role": role} if role else {}
        result = await get_users_service().read(
            filters=filters,
            search=search,
            order_by=[{"field": "created_at", "dir": "desc"}],
            limit=100
        )
        if result.success:
            result.data = [to_public_user(user) for user in result.data]
        return result

    async def create_staff_user(self, data: Dict[str, Any]) -> ServiceResult:
        """Create an account on behalf of an admin; the user must change the password at first login"""
        if not is_valid_email(data.get("email")):
            return failure("Please provide a valid email address", "INVALID_REQUEST")
        if len(data.get("password") or "") < MIN_PASSWORD_LENGTH:
            return failure(PASSWORD_TOO_SHORT, "INVALID_REQUEST")
        if not is_valid_role(data.get("role", "")):
            return failure(f"Invalid role: {data.get('role')}", "INVALID_REQUEST")

        users = get_users_service()
        if (await users.get_user_by_email(data["email"])).success:
            return failure("A user with this email already exists", "CONFLICT")

        result = await users.create_user(
            email=data["email"],
            password_hash=hash_password(data["password"]),
            first_name=data["first_name"],
            last_name=data["last_name"],
            role=data["role"],
            permissions=data.get("permissions") or [],
            member_id=data.get("member_id"),
            must_change_password=True
        )
        if not result.success:
            if result.error_type == "CONFLICT":
                return failure("A user with this email already exists", "CONFLICT")
            return result
        if data.get("member_id"):
            await get_members_service().update(data["member_id"], {"user_id": result.data[0]["user_id"]})
        return ServiceResult(success=True, data=[to_public_user(result.data[0])], count=1)

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> ServiceResult:
        if "role" in updates and not is_valid_role(updates["role"]):
            return failure(f"Invalid role: {updates['role']}", "INVALID_REQUEST")
        result = await get_users_service().update(user_id, updates)
        if not result.success:
            if result.error_type == "RESOURCE_NOT_FOUND":
                return failure("User not found", "RESOURCE_NOT_FOUND")
            return result
        return ServiceResult(success=True, data=[to_public_user(result.data[0])], count=1)

    async def delete_user(self, user_id: str, acting_user_id: str) -> ServiceResult:
        if user_id == acting_user_id:
            return failure("You cannot delete your own account", "INVALID_REQUEST")
        result = await get_users_service().delete(user_id)
        if not result.success:
            if result.error_type == "RESOURCE_NOT_FOUND":
                return failure("User not found", "RESOURCE_NOT_FOUND")
            return result

        removed = result.data[0]
        if removed.get("member_id"):
            await get_members_service().execute(
                "UPDATE members SET user_id = NULL, updated_at = NOW() WHERE member_id = $1::uuid",
                removed["member_id"]
            )
        logger.info(f"Deleted user account {removed['email']}")
        return ServiceResult(success=True, data=[to_public_user(removed)], count=1)


# Global service instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the global auth service instance"""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
