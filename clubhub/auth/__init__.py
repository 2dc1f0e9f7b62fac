"""
Authentication module for ClubHub.

Credential store, email OTP lifecycle and JWT session tokens.
"""

from .jwt_handler import JWTHandler, TokenPayload
from .password import PasswordHandler, normalize_email
from .accounts import Account, AccountStore
from .otp import OTPManager, OTPState

__all__ = [
    "JWTHandler",
    "TokenPayload",
    "PasswordHandler",
    "normalize_email",
    "Account",
    "AccountStore",
    "OTPManager",
    "OTPState",
]
