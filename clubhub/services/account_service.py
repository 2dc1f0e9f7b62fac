"""
Account service.

Registration, email OTP verification, login, request authentication and
profile management on top of the credential store, OTP manager and
session issuer.
"""

import logging
from typing import Optional
from dataclasses import dataclass

from ..auth import Account, TokenPayload
from ..auth.validation import ROLE_SUPER_ADMIN
from ..errors import (
    DeactivatedError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidTokenError,
    MailDispatchError,
    NotFoundError,
    UnauthenticatedError,
)
from .base import BaseService, ServiceContext

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """Successful verification or login: session token plus account."""
    access_token: str
    account: Account
    token_type: str = "bearer"
    expires_in: int = 0

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "user": self.account.to_public_dict()
        }


class AccountService(BaseService):
    """
    Service for account lifecycle.

    Handles:
    - Registration (creates an unverified account and mails the first OTP)
    - OTP resend and verification
    - Login with email and password
    - Bearer token resolution for protected calls
    - Profile self-edits and administrative overrides
    """

    def __init__(self, context: ServiceContext):
        super().__init__(context)
        self.jwt = context.jwt
        self.otp = context.otp
        self.email = context.email

    # === Registration & verification ===

    async def register(self, fields: dict) -> Account:
        """
        Register a new account.

        The account starts unverified; no token is issued. A mail failure
        here is logged and does not block registration.

        Raises:
            ValidationError: If a field is missing or malformed
            DuplicateKeyError: If email or enrollment number is taken
        """
        account = self.accounts.create_account(fields)
        code = self.otp.issue(account.user_id)

        try:
            await self._mail_otp(account, code)
        except MailDispatchError as e:
            logger.error(f"OTP email failed during registration for {account.email}: {e}")
            if not self.config.app.is_production:
                logger.info(f"Fallback OTP for {account.email}: {code}")

        logger.info(f"User registered: {account.email}")
        return account

    async def request_otp(self, email: str) -> None:
        """
        Issue and mail a fresh OTP (initial send or resend).

        Any earlier code stops validating.

        Raises:
            NotFoundError: If no account has this email
            AlreadyVerifiedError: If the email is already verified
            MailDispatchError: If delivery fails in production
        """
        account = self.accounts.get_by_email(email)
        if account is None:
            raise NotFoundError("User not found")

        code = self.otp.issue(account.user_id)

        try:
            await self._mail_otp(account, code)
        except MailDispatchError:
            if self.config.app.is_production:
                raise
            logger.warning(f"OTP email failed for {account.email}, fallback OTP: {code}")

    async def verify_otp(self, email: str, code: str) -> AuthResult:
        """
        Verify an email with its OTP and start a session.

        Raises:
            NotFoundError: If no account has this email
            DeactivatedError: If the account is deactivated
            AlreadyVerifiedError: If the email is already verified
            InvalidOrExpiredOTPError: On wrong, replaced or expired code
        """
        account = self.accounts.get_by_email(email)
        if account is None:
            raise NotFoundError("User not found")

        account = self.otp.validate(account.user_id, code)
        if not account.is_active:
            raise DeactivatedError()

        try:
            await self.email.send_welcome_email(account.email, account.full_name)
        except MailDispatchError as e:
            logger.warning(f"Welcome email failed for {account.email}: {e}")

        return self._start_session(account)

    async def _mail_otp(self, account: Account, code: str) -> None:
        minutes = max(1, int(self.otp.ttl.total_seconds()) // 60)
        await self.email.send_otp_email(
            account.email, code, account.full_name, expires_minutes=minutes
        )

    # === Login & authentication ===

    def login(self, email: str, password: str) -> AuthResult:
        """
        Login with email and password.

        Unknown email and wrong password fail identically.

        Raises:
            InvalidCredentialsError: On unknown email or wrong password
            DeactivatedError: If the account is deactivated
        """
        account = self.accounts.get_by_email(email, include_secret=True)
        if account is None or not self.accounts.verify_secret(account, password):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        if not account.is_active:
            raise DeactivatedError()

        account = self.accounts.record_login(account.user_id)
        logger.info(f"User logged in: {account.email}")
        return self._start_session(account)

    def _start_session(self, account: Account) -> AuthResult:
        token = self.jwt.create_access_token(account.user_id, role=account.role)
        return AuthResult(
            access_token=token,
            account=account,
            expires_in=self.jwt.expires_in
        )

    def verify_access_token(self, token: Optional[str]) -> TokenPayload:
        """
        Raises:
            UnauthenticatedError: If the token is missing or invalid
        """
        if not token:
            raise UnauthenticatedError()
        try:
            return self.jwt.verify_token(token)
        except InvalidTokenError as e:
            raise UnauthenticatedError(e.message) from e

    def authenticate(self, token: Optional[str]) -> Account:
        """
        Resolve a bearer token to a live, active account.

        Raises:
            UnauthenticatedError: Missing/invalid token or unknown account
            DeactivatedError: Valid token for a deactivated account
        """
        payload = self.verify_access_token(token)

        account = self.accounts.get_by_id(payload.user_id)
        if account is None:
            raise UnauthenticatedError("User not found")

        if not account.is_active:
            raise DeactivatedError()

        return account

    # === Profiles ===

    def get_account(self, user_id: str) -> Account:
        account = self.accounts.get_by_id(user_id)
        if account is None:
            raise NotFoundError("User not found")
        return account

    def update_profile(self, user_id: str, patch: dict) -> Account:
        """Self-edit; only name, phone, bio, skills and interests are applied."""
        self.get_account(user_id)
        return self.accounts.update_profile(user_id, patch)

    def set_profile_picture(self, user_id: str, url: Optional[str]) -> Account:
        self.get_account(user_id)
        return self.accounts.set_profile_picture(user_id, url)

    # === Administration ===

    def admin_update(
        self,
        admin: Account,
        user_id: str,
        is_active: Optional[bool] = None,
        revoke_verification: bool = False,
        role: Optional[str] = None
    ) -> Account:
        """
        Site-administrator overrides.

        Verification can be revoked here but never granted; a revoked
        account verifies again through the OTP flow.

        Raises:
            ForbiddenError: If ``admin`` is not a site administrator
            NotFoundError: If the target account doesn't exist
        """
        if admin.role != ROLE_SUPER_ADMIN:
            raise ForbiddenError()

        account = self.get_account(user_id)
        if role is not None:
            account = self.accounts.set_role(user_id, role)
        if is_active is not None:
            account = self.accounts.set_active(user_id, is_active)
        if revoke_verification:
            account = self.accounts.revoke_verification(user_id)

        logger.info(f"Admin {admin.email} updated account {account.email}")
        return account
