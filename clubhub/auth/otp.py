"""
One-time code lifecycle for email verification.

Per account the code moves through:

    UNVERIFIED_NO_CODE --issue--> CODE_PENDING --validate--> VERIFIED
                                   |    ^
                                   +----+ issue (replaces the code)

Only the latest code is ever valid. Expiry is checked when a code is
validated; nothing sweeps expired codes.
"""

import logging
import secrets
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from ..errors import AlreadyVerifiedError, InvalidOrExpiredOTPError
from .accounts import Account, AccountStore, utcnow

logger = logging.getLogger(__name__)

OTP_LENGTH = 6
OTP_TTL_SECONDS = 600  # 10 minutes


class OTPState(str, Enum):
    UNVERIFIED_NO_CODE = "unverified_no_code"
    CODE_PENDING = "code_pending"
    VERIFIED = "verified"


def generate_code(length: int = OTP_LENGTH) -> str:
    """Uniformly random fixed-width numeric code, leading zeros kept."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def otp_state(account: Account) -> OTPState:
    if account.is_email_verified:
        return OTPState.VERIFIED
    if account.has_pending_otp():
        return OTPState.CODE_PENDING
    return OTPState.UNVERIFIED_NO_CODE


class OTPManager:
    """
    Issues and validates email verification codes.

    Usage:
        otp = OTPManager(accounts)
        code = otp.issue(user_id)        # deliver out-of-band
        account = otp.validate(user_id, code)
    """

    def __init__(
        self,
        accounts: AccountStore,
        ttl_seconds: int = OTP_TTL_SECONDS,
        length: int = OTP_LENGTH,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Args:
            accounts: Credential store holding the verification fields
            ttl_seconds: Lifetime of an issued code
            length: Number of digits
            clock: Returns the current aware UTC datetime
        """
        self.accounts = accounts
        self.ttl = timedelta(seconds=ttl_seconds)
        self.length = length
        self.clock = clock or utcnow

    def issue(self, user_id: str) -> str:
        """
        Issue a fresh code, replacing any pending one.

        Returns:
            The plaintext code

        Raises:
            AlreadyVerifiedError: If the account is already verified
            NotFoundError: If the account doesn't exist
        """
        code = generate_code(self.length)
        expires_at = self.clock() + self.ttl

        def _issue(doc: dict):
            if doc.get("is_email_verified"):
                raise AlreadyVerifiedError()
            doc["otp_code"] = code
            doc["otp_expires_at"] = expires_at.isoformat()

        account = self.accounts.apply(user_id, _issue)
        logger.info(f"Issued OTP for {account.email}, expires at {expires_at.isoformat()}")
        return code

    def validate(self, user_id: str, candidate: str) -> Account:
        """
        Check a candidate code and mark the account verified.

        Succeeds only if a code is pending, ``candidate`` equals it exactly
        and the current time is strictly before the stored expiry. On
        failure the account is left untouched.

        Returns:
            The now-verified Account

        Raises:
            AlreadyVerifiedError: If the account is already verified
            InvalidOrExpiredOTPError: On no pending code, mismatch or expiry
            NotFoundError: If the account doesn't exist
        """
        now = self.clock()

        def _validate(doc: dict):
            if doc.get("is_email_verified"):
                raise AlreadyVerifiedError()

            code = doc.get("otp_code")
            expires_at = doc.get("otp_expires_at")
            if not code or not expires_at or not isinstance(candidate, str):
                raise InvalidOrExpiredOTPError()
            if not secrets.compare_digest(code.encode("utf-8"), candidate.encode("utf-8")):
                raise InvalidOrExpiredOTPError()
            if now >= datetime.fromisoformat(expires_at):
                raise InvalidOrExpiredOTPError()

            doc["otp_code"] = None
            doc["otp_expires_at"] = None
            doc["is_email_verified"] = True

        account = self.accounts.apply(user_id, _validate)
        logger.info(f"Email verified for {account.email}")
        return account

    def state(self, user_id: str) -> Optional[OTPState]:
        account = self.accounts.get_by_id(user_id)
        return otp_state(account) if account else None
