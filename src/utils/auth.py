"""
Authentication utilities for API endpoints
"""

import logging
from typing import Optional, List, Dict, Any
from fastapi import HTTPException, Header, Cookie, Depends
from dataclasses import dataclass, field
import jwt

from config.permissions import has_permission, is_staff
from config.settings import AUTH_COOKIE_NAME
from services.jwt_service import get_token_service
from services.users_service import get_users_service

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    """Authenticated user attached to a request"""
    is_authenticated: bool
    user_id: str
    email: str
    role: str = "member"
    permissions: List[str] = field(default_factory=list)
    member_id: Optional[str] = None
    first_name: str = ""
    last_name: str = ""

    def has_permission(self, permission: str) -> bool:
        return has_permission(self.role, permission, self.permissions)

    @property
    def is_staff(self) -> bool:
        return is_staff(self.role)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "role": self.role,
            "permissions": self.permissions,
            "member_id": self.member_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }


def extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    """Bearer header wins over the auth cookie"""
    if authorization:
        if not authorization.startswith("Bearer "):
            raise HTTPException(
                status_code=401,
                detail="Invalid authorization header format. Expected 'Bearer <token>'"
            )
        return authorization[7:]
    return cookie_token or None


async def resolve_token(token: str) -> AuthContext:
    """Decode a session token and load the (still active) user behind it"""
    try:
        payload = get_token_service().decode_token(token)
    except jwt.ExpiredSignatureError:
        logger.info("AUTH: Expired token")
        raise HTTPException(401, "Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"AUTH: Invalid JWT token: {str(e)}")
        raise HTTPException(401, "Invalid token")

    result = await get_users_service().get_by_id(payload["sub"])
    if not result.success:
        if result.error_type == "RESOURCE_NOT_FOUND":
            raise HTTPException(401, "User not found")
        raise HTTPException(500, f"Service error: {result.error}")

    user = result.data[0]
    if not user.get("is_active", True):
        logger.warning(f"AUTH: Inactive account {user['email']} presented a token")
        raise HTTPException(401, "Account is deactivated")

    return AuthContext(
        is_authenticated=True,
        user_id=user["user_id"],
        email=user["email"],
        role=user["role"],
        permissions=list(user.get("permissions") or []),
        member_id=user.get("member_id"),
        first_name=user.get("first_name", ""),
        last_name=user.get("last_name", ""),
    )


async def authenticate_user(
    authorization: Optional[str] = Header(None),
    auth_token: Optional[str] = Cookie(None, alias=AUTH_COOKIE_NAME)
) -> AuthContext:
    """
    FastAPI dependency for session authentication.

    Accepts a Bearer token or the web auth cookie.

    Raises:
        HTTPException: 401 if authentication fails
    """
    token = extract_token(authorization, auth_token)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")
    return await resolve_token(token)


async def authenticate_optional(
    authorization: Optional[str] = Header(None),
    auth_token: Optional[str] = Cookie(None, alias=AUTH_COOKIE_NAME)
) -> Optional[AuthContext]:
    """Like authenticate_user but anonymous callers get None instead of a 401"""
    try:
        token = extract_token(authorization, auth_token)
        if not token:
            return None
        return await resolve_token(token)
    except HTTPException as e:
        if e.status_code == 401:
            return None
        raise


def require_permission(permission: str):
    """Build a dependency that authenticates and then checks a permission"""

    async def dependency(user: AuthContext = Depends(authenticate_user)) -> AuthContext:
        if not user.has_permission(permission):
            logger.warning(f"AUTH: {user.email} ({user.role}) denied '{permission}'")
            raise HTTPException(403, "Insufficient permissions")
        return user

    return dependency


def require_member_profile(user: AuthContext) -> str:
    """Return the caller's member id or fail with 404"""
    if not user.member_id:
        raise HTTPException(404, "Member profile not found")
    return user.member_id


class AuthConfig:
    """
    Centralized authentication configuration for the application.
    """

    @staticmethod
    def get_auth_dependency():
        """Get the mandatory auth dependency"""
        return authenticate_user

    @staticmethod
    def get_optional_auth_dependency():
        """Get the auth dependency for endpoints that also serve anonymous callers"""
        return authenticate_optional

    @staticmethod
    def require(permission: str):
        return require_permission(permission)


get_current_user = authenticate_user
