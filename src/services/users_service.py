"""
Users service - login accounts, lockout bookkeeping and password resets
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional

from config.settings import MAX_LOGIN_ATTEMPTS, LOCKOUT_MINUTES, RESET_TOKEN_TTL_MINUTES
from services.base_service import BaseService, ServiceResult
from utils.helpers import utc_now, parse_timestamp

logger = logging.getLogger(__name__)

PRIVATE_USER_FIELDS = (
    "password_hash", "reset_password_token", "reset_password_token_expiry",
    "login_attempts", "lockout_until",
)


def to_public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Strip credentials and lockout bookkeeping from a user row"""
    return {key: value for key, value in user.items() if key not in PRIVATE_USER_FIELDS}


def is_locked_out(user: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    lockout_until = parse_timestamp(user.get("lockout_until"))
    return lockout_until is not None and lockout_until > (now or utc_now())


class UsersService(BaseService):
    """Service for user account operations"""

    def __init__(self):
        super().__init__("users")

    async def get_user_by_email(self, email: str) -> ServiceResult:
        """Look up a user by email (emails are stored lowercased)"""
        result = await self.read(filters={"email": email.strip().lower()}, limit=1)
        if result.success and not result.data:
            return ServiceResult(success=False, error="User not found", error_type="RESOURCE_NOT_FOUND")
        return result

    async def create_user(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: str = "member",
        permissions: Optional[List[str]] = None,
        member_id: Optional[str] = None,
        must_change_password: bool = False
    ) -> ServiceResult:
        data = {
            "email": email.strip().lower(),
            "password_hash": password_hash,
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
            "permissions": permissions or [],
            "must_change_password": must_change_password,
        }
        if member_id:
            data["member_id"] = member_id

        logger.info(f"Creating {role} account for {data['email']}")
        return await self.create(data)

    async def record_failed_login(self, user: Dict[str, Any]) -> ServiceResult:
        """Increment the failed-attempt counter, locking the account once the limit is hit"""
        attempts = int(user.get("login_attempts") or 0) + 1
        updates: Dict[str, Any] = {"login_attempts": attempts}
        if attempts >= MAX_LOGIN_ATTEMPTS:
            updates["lockout_until"] = utc_now() + timedelta(minutes=LOCKOUT_MINUTES)
            logger.warning(f"Locking account {user['email']} after {attempts} failed attempts")
        return await self.update(user["user_id"], updates)

    async def record_successful_login(self, user_id: str) -> ServiceResult:
        return await self.update(user_id, {
            "login_attempts": 0,
            "lockout_until": None,
            "last_login": utc_now(),
        })

    async def set_reset_token(self, user_id: str, token: Optional[str]) -> ServiceResult:
        """Store (or clear, when token is None) a password reset token"""
        expiry = utc_now() + timedelta(minutes=RESET_TOKEN_TTL_MINUTES) if token else None
        return await self.update(user_id, {
            "reset_password_token": token,
            "reset_password_token_expiry": expiry,
        })

    async def find_by_reset_token(self, token: str) -> ServiceResult:
        """Find the user holding an unexpired reset token"""
        result = await self.read(
            filters={
                "reset_password_token": token,
                "reset_password_token_expiry": {"op": ">", "value": utc_now()},
            },
            limit=1
        )
        if result.success and not result.data:
            return ServiceResult(success=False, error="Invalid or expired reset token", error_type="INVALID_REQUEST")
        return result

    async def set_password(self, user_id: str, password_hash: str) -> ServiceResult:
        """Replace the password and clear reset and lockout state"""
        return await self.update(user_id, {
            "password_hash": password_hash,
            "reset_password_token": None,
            "reset_password_token_expiry": None,
            "must_change_password": False,
            "login_attempts": 0,
            "lockout_until": None,
        })

    async def link_member(self, user_id: str, member_id: Optional[str]) -> ServiceResult:
        return await self.update(user_id, {"member_id": member_id})


# Global service instance
_users_service: Optional[UsersService] = None


def get_users_service() -> UsersService:
    """Get the global users service instance"""
    global _users_service
    if _users_service is None:
        _users_service = UsersService()
    return _users_service
