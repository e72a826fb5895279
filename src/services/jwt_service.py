"""
JWT service for issuing and validating web and mobile session tokens
"""

import jwt
import time
import logging
from typing import Dict, Any, Optional
from datetime import timedelta

from config.settings import (
    JWT_SECRET, JWT_ALGORITHM, JWT_ISSUER, ENV,
    WEB_TOKEN_TTL_HOURS, MOBILE_TOKEN_TTL_DAYS
)

logger = logging.getLogger(__name__)


class TokenService:
    """Signs session tokens for users; web and mobile clients differ only in lifetime"""

    def __init__(self, secret_key: str = JWT_SECRET, algorithm: str = JWT_ALGORITHM, issuer: str = JWT_ISSUER):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.issuer = issuer

    def issue_token(self, user: Dict[str, Any], ttl: timedelta, client: str) -> str:
        """
        Generate a session JWT for a user record

        Args:
            user: User row (user_id, email, role, permissions, member_id)
            ttl: Token lifetime
            client: "web" or "mobile"

        Returns:
            JWT token string
        """
        current_time = int(time.time())
        payload = {
            "iss": self.issuer,
            "sub": str(user["user_id"]),
            "email": user["email"],
            "role": user["role"],
            "permissions": list(user.get("permissions") or []),
            "member_id": str(user["member_id"]) if user.get("member_id") else None,
            "client": client,
            "environment": ENV,
            "iat": current_time,
            "exp": current_time + int(ttl.total_seconds())
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.info(f"Issued {client} token for user {payload['sub']} (expires in {ttl})")
        return token

    def create_web_token(self, user: Dict[str, Any]) -> str:
        return self.issue_token(user, timedelta(hours=WEB_TOKEN_TTL_HOURS), "web")

    def create_mobile_token(self, user: Dict[str, Any]) -> str:
        return self.issue_token(user, timedelta(days=MOBILE_TOKEN_TTL_DAYS), "mobile")

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Validate a token's signature, issuer and expiry

        Raises:
            jwt.InvalidTokenError: If the token is invalid, expired or tampered with
        """
        payload = jwt.decode(
            token,
            self.secret_key,
            algorithms=[self.algorithm],
            issuer=self.issuer,
            options={
                "require": ["exp", "iat", "sub", "iss"],
                "verify_signature": True,
                "verify_exp": True,
                "verify_iss": True,
            }
        )
        if payload.get("environment") != ENV:
            raise jwt.InvalidTokenError(f"Token issued for environment {payload.get('environment')}")
        return payload


# Global service instance
_token_service: Optional[TokenService] = None


def get_token_service() -> TokenService:
    """Get the global token service instance"""
    global _token_service
    if _token_service is None:
        _token_service = TokenService()
    return _token_service
