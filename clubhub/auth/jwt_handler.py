"""
JWT token handler.

Issues and verifies the stateless bearer tokens used for every
authenticated API call. Nothing is stored server-side, so a token stays
valid until it expires; an account is cut off by deactivating it or by
rotating the signing key.
"""

import os
import time
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from jose import jwt, JWTError

from ..errors import InvalidTokenError

logger = logging.getLogger(__name__)

# Token configuration
DEFAULT_SECRET_KEY = "clubhub-secret-key-change-in-production"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_SECONDS = 86400 * 7  # 7 days


@dataclass
class TokenPayload:
    """JWT token payload."""
    user_id: str
    role: str
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
    token_type: str = "access"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TokenPayload":
        return cls(
            user_id=data["user_id"],
            role=data.get("role", "student"),
            exp=int(data["exp"]),
            iat=int(data["iat"]),
            token_type=data.get("token_type", "access")
        )


class JWTHandler:
    """Handles JWT token generation and validation."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        expires_in: Optional[int] = None
    ):
        """
        Initialize JWT handler.

        Args:
            secret_key: Secret key for signing tokens.
                       Falls back to JWT_SECRET_KEY env var or default.
            expires_in: Default token lifetime in seconds
        """
        self.secret_key = (
            secret_key
            or os.getenv("JWT_SECRET_KEY")
            or DEFAULT_SECRET_KEY
        )
        self.expires_in = expires_in or ACCESS_TOKEN_EXPIRE_SECONDS

        if self.secret_key == DEFAULT_SECRET_KEY:
            logger.warning(
                "Using default JWT secret key. "
                "Set JWT_SECRET_KEY environment variable in production!"
            )

    def create_access_token(
        self,
        user_id: str,
        role: str = "student",
        expires_in: Optional[int] = None
    ) -> str:
        """
        Create an access token.

        Args:
            user_id: Account identifier the token is bound to
            role: Account role at issue time (informational only)
            expires_in: Custom expiration in seconds

        Returns:
            Encoded JWT token string
        """
        now = int(time.time())
        exp = now + (self.expires_in if expires_in is None else expires_in)

        payload = TokenPayload(
            user_id=user_id,
            role=role,
            exp=exp,
            iat=now
        )

        token = jwt.encode(payload.to_dict(), self.secret_key, algorithm=ALGORITHM)
        logger.debug(f"Created access token for user {user_id}, expires in {exp - now}s")
        return token

    def verify_token(self, token: str) -> TokenPayload:
        """
        Verify and decode a token.

        Args:
            token: JWT token string

        Returns:
            TokenPayload for the bound account

        Raises:
            InvalidTokenError: If the token is malformed, badly signed,
                expired or not an access token
        """
        if not token:
            raise InvalidTokenError()

        try:
            data = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
            payload = TokenPayload.from_dict(data)
        except (JWTError, KeyError, TypeError, ValueError) as e:
            logger.debug(f"Token verification failed: {e}")
            raise InvalidTokenError() from e

        # valid strictly before exp
        if payload.exp <= int(time.time()):
            logger.debug("Token expired")
            raise InvalidTokenError()

        if payload.token_type != "access":
            raise InvalidTokenError("Invalid token type")

        return payload
